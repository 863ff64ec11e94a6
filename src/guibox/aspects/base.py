"""Base aspect interface."""

from abc import ABC, abstractmethod
from typing import List, Optional

from guibox.models.aspect import ImageSnippet, ContextFile, ConfigOption, SetupStep
from guibox.models.config import Configuration


class Aspect(ABC):
    """Capability unit contributing to every stage of the container lifecycle.

    Every stage defaults to contributing nothing, so an aspect only overrides
    the stages it takes part in. Aspects never decide their own position in
    the composition; the manager does.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Stable identifier used for logging and config namespacing."""
        pass

    def runtime_flags(self, configuration: Optional[Configuration] = None) -> List[str]:
        """Flags passed to ``docker run``."""
        return []

    def image_snippets(self) -> List[ImageSnippet]:
        """Contributions to the image recipe."""
        return []

    def context_files(self) -> List[ContextFile]:
        """Extra files embedded in the build context."""
        return []

    def configurable_options(self) -> List[ConfigOption]:
        """Options exposed on the ``run`` and ``config`` commands."""
        return []

    def privileged_setup_steps(self) -> List[SetupStep]:
        """Steps run as root inside the container before the real command."""
        return []

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"
