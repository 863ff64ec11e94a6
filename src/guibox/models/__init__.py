"""Pydantic models for aspects, configuration and settings."""

from guibox.models.aspect import ImageSnippet, ContextFile, ConfigOption, SetupStep
from guibox.models.config import Configuration, OptionValue
from guibox.models.settings import GuiboxSettings, DEFAULT_ENTRYPOINT_PATH, ENV_ENTRYPOINT_PATH

__all__ = [
    "ImageSnippet",
    "ContextFile",
    "ConfigOption",
    "SetupStep",
    "Configuration",
    "OptionValue",
    "GuiboxSettings",
    "DEFAULT_ENTRYPOINT_PATH",
    "ENV_ENTRYPOINT_PATH",
]
