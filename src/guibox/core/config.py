"""Persistence of per-application option values."""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import ValidationError
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from guibox.errors import ConfigLoadError, ConfigSaveError
from guibox.models.config import Configuration


logger = logging.getLogger(__name__)


class ConfigStore:
    """Loads and saves option records keyed by application and profile.

    Records are plain YAML mappings of option name to a value or a list of
    values, so they can be edited by hand::

        locale: en_US.UTF-8
        mount:
          - /home/me/visual:/home/me/visual
    """

    def __init__(self, config_dir: Path):
        """Initialize configuration store."""
        self.config_dir = Path(config_dir)
        self.yaml = YAML()
        self.yaml.default_flow_style = False

    def path_for(self, app: str, profile: Optional[str] = None) -> Path:
        """Location of the record for ``app`` and ``profile``."""
        app_dir = self.config_dir / app
        if profile:
            return app_dir / "profiles" / f"{profile}.yaml"
        return app_dir / "config.yaml"

    def load(self, app: str, profile: Optional[str] = None) -> Configuration:
        """Load a record; a missing record is an empty configuration."""
        path = self.path_for(app, profile)
        if not path.exists():
            logger.debug(f"No saved configuration at {path}")
            return Configuration()

        try:
            data = self._read_yaml(path)
        except (OSError, YAMLError) as e:
            raise ConfigLoadError(path, str(e)) from e

        if data is None:
            return Configuration()
        if not isinstance(data, dict):
            raise ConfigLoadError(path, "expected a mapping of option to value")

        try:
            configuration = Configuration(values=dict(data))
        except ValidationError as e:
            raise ConfigLoadError(path, str(e)) from e

        logger.debug(f"Loaded configuration from {path}")
        return configuration

    def save(self, configuration: Configuration, app: str, profile: Optional[str] = None) -> Path:
        """Write a record, replacing whatever was saved before."""
        path = self.path_for(app, profile)
        data: Dict[str, Any] = {
            name: list(value) if isinstance(value, list) else value
            for name, value in configuration.values.items()
        }

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w") as f:
                self.yaml.dump(data, f)
        except (OSError, YAMLError) as e:
            raise ConfigSaveError(path, str(e)) from e

        logger.info(f"Saved configuration to {path}")
        return path

    def _read_yaml(self, file_path: Path) -> Any:
        """Read and parse YAML file."""
        content = file_path.read_text()
        return self.yaml.load(content)
