"""Tool settings read from the environment."""

import os
from pathlib import Path
from typing import Mapping, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from guibox.errors import MissingDirectoryError


DEFAULT_ENTRYPOINT_PATH = "/guibox/entrypoint"
ENV_ENTRYPOINT_PATH = "GUIBOX_ENTRYPOINT_PATH"


class GuiboxSettings(BaseModel):
    """Settings shared by every guibox application."""
    config_dir: Optional[str] = Field(default=None, description="Where option records are persisted")
    data_dir: Optional[str] = Field(default=None, description="Where profile data directories live")
    docker_socket: str = Field(default="/var/run/docker.sock")
    docker_binary: str = Field(default="docker")
    escalator: str = Field(default="sudo")
    entrypoint_path: str = Field(default=DEFAULT_ENTRYPOINT_PATH)
    log_level: str = Field(default="WARNING")

    model_config = ConfigDict(extra="ignore")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}")
        return v.upper()

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "GuiboxSettings":
        """Build settings from ``GUIBOX_*`` and XDG variables."""
        env = os.environ if environ is None else environ
        home = env.get("HOME")

        config_home = env.get("XDG_CONFIG_HOME") or (f"{home}/.config" if home else None)
        data_home = env.get("XDG_DATA_HOME") or (f"{home}/.local/share" if home else None)

        values = {
            "config_dir": env.get("GUIBOX_CONFIG_DIR") or (f"{config_home}/guibox" if config_home else None),
            "data_dir": env.get("GUIBOX_DATA_DIR") or (f"{data_home}/guibox" if data_home else None),
        }

        docker_host = env.get("DOCKER_HOST", "")
        if docker_host.startswith("unix://"):
            values["docker_socket"] = docker_host[len("unix://"):]

        for field, variable in (
            ("docker_binary", "GUIBOX_DOCKER"),
            ("escalator", "GUIBOX_ESCALATOR"),
            ("entrypoint_path", ENV_ENTRYPOINT_PATH),
            ("log_level", "GUIBOX_LOG_LEVEL"),
        ):
            if env.get(variable):
                values[field] = env[variable]

        return cls(**values)

    def require_config_dir(self) -> Path:
        if not self.config_dir:
            raise MissingDirectoryError("configuration directory ($HOME is not set)")
        return Path(self.config_dir)

    def require_data_dir(self) -> Path:
        if not self.data_dir:
            raise MissingDirectoryError("data directory ($HOME is not set)")
        return Path(self.data_dir)
