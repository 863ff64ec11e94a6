"""Aspect composition and container lifecycle orchestration."""

from guibox.core.archive import ImageRecipe, compose_recipe, write_build_context
from guibox.core.config import ConfigStore
from guibox.core.entrypoint import EntrypointDispatcher, EntrypointMode, PathEscalator
from guibox.core.manager import ContainerManager

__all__ = [
    "ImageRecipe",
    "compose_recipe",
    "write_build_context",
    "ConfigStore",
    "EntrypointDispatcher",
    "EntrypointMode",
    "PathEscalator",
    "ContainerManager",
]
