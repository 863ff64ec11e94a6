"""Registry of aspects that are re-derived from configuration values."""

import logging
from typing import Callable, Dict, List, Optional

from guibox.aspects.base import Aspect
from guibox.aspects.localization import Locale, Timezone
from guibox.aspects.runtime import CPUShares, Memory, Mount, Mounts, NetHost
from guibox.models.aspect import ConfigOption
from guibox.models.config import Configuration, OptionValue


logger = logging.getLogger(__name__)

AspectFactory = Callable[[OptionValue], Optional[Aspect]]


def _as_list(value: OptionValue) -> List[str]:
    return list(value) if isinstance(value, list) else [value]


def _as_scalar(value: OptionValue) -> str:
    return value[-1] if isinstance(value, list) else value


def _mounts(value: OptionValue) -> Aspect:
    return Mounts([Mount.parse(spec) for spec in _as_list(value)])


def _network(value: OptionValue) -> Optional[Aspect]:
    mode = _as_scalar(value)
    if mode == "host":
        return NetHost()
    logger.warning(f"Ignoring unsupported network mode {mode!r}")
    return None


class AspectRegistry:
    """Maps configuration options to the aspects they produce."""

    def __init__(self):
        """Initialize aspect registry."""
        self._options: Dict[str, ConfigOption] = {}
        self._factories: Dict[str, AspectFactory] = {}

        self.register(
            ConfigOption(name="mount", help="Bind mount <host>:<container>", multiple=True),
            _mounts,
        )
        self.register(
            ConfigOption(name="locale", help="Locale, e.g. en_US.UTF-8"),
            lambda v: Locale.parse(_as_scalar(v)),
        )
        self.register(
            ConfigOption(name="timezone", help="Timezone, e.g. America/Chicago"),
            lambda v: Timezone(_as_scalar(v)),
        )
        self.register(
            ConfigOption(name="cpu-shares", help="Relative CPU weight"),
            lambda v: CPUShares(_as_scalar(v)),
        )
        self.register(
            ConfigOption(name="memory", help="Memory limit, e.g. 3072mb"),
            lambda v: Memory(_as_scalar(v)),
        )
        self.register(
            ConfigOption(name="network", help="Network mode (only 'host' is supported)"),
            _network,
        )

    def register(self, option: ConfigOption, factory: AspectFactory):
        """Register a factory building an aspect from an option's value."""
        self._options[option.name] = option
        self._factories[option.name] = factory

    def options(self) -> List[ConfigOption]:
        """Options understood by the registry, in registration order."""
        return list(self._options.values())

    def derive(self, configuration: Configuration) -> List[Aspect]:
        """Build the aspects implied by ``configuration``.

        Aspects come out in option registration order so that composition
        does not depend on how the configuration file was written.
        """
        aspects = []
        for name, factory in self._factories.items():
            value = configuration.get(name)
            if value is None or value == []:
                continue
            aspect = factory(value)
            if aspect is not None:
                logger.debug(f"Derived aspect {aspect.name} from --{name}")
                aspects.append(aspect)
        return aspects


_registry: Optional[AspectRegistry] = None


def get_aspect_registry() -> AspectRegistry:
    """Return the process-wide default registry."""
    global _registry
    if _registry is None:
        _registry = AspectRegistry()
    return _registry
