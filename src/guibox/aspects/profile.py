"""Profile aspect for per-profile persistent application data."""

import logging
from pathlib import Path
from typing import List, Optional

from guibox.aspects.base import Aspect
from guibox.models.aspect import ConfigOption
from guibox.models.config import Configuration
from guibox.models.settings import GuiboxSettings


logger = logging.getLogger(__name__)

DEFAULT_PROFILE = "default"


def _directory_name(container_path: str) -> str:
    """Flatten a container path into a single host directory name."""
    flattened = container_path.strip("/").replace("/", "-")
    return flattened or "root"


class Profile(Aspect):
    """Back each container data path with a host directory per profile.

    The same application can keep several independent states (for example
    a work and a personal browser) by selecting ``--profile`` at run time.
    """

    def __init__(self, app_name: str, container_paths: List[str], settings: GuiboxSettings):
        self.app_name = app_name
        self.container_paths = list(container_paths)
        self.settings = settings

    @property
    def name(self) -> str:
        return "profile"

    def configurable_options(self) -> List[ConfigOption]:
        return [ConfigOption(name="profile", help="Profile whose settings and data to use")]

    def profile_name(self, configuration: Optional[Configuration]) -> str:
        if configuration is not None:
            value = configuration.get("profile")
            if isinstance(value, str) and value:
                return value
        return DEFAULT_PROFILE

    def host_path(self, container_path: str, profile: str) -> Path:
        data_dir = self.settings.require_data_dir()
        return data_dir / self.app_name / profile / _directory_name(container_path)

    def runtime_flags(self, configuration: Optional[Configuration] = None) -> List[str]:
        profile = self.profile_name(configuration)
        flags = []
        for container_path in self.container_paths:
            host_path = self.host_path(container_path, profile)
            # Docker would otherwise create the directory owned by root
            host_path.mkdir(parents=True, exist_ok=True)
            logger.debug(f"Profile {profile}: {host_path} -> {container_path}")
            flags.extend(["-v", f"{host_path}:{container_path}"])
        return flags
