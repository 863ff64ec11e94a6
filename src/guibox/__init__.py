"""
guibox - GUI desktop applications in Docker containers.

Composes small capability units ("aspects") into the image recipe and the
``docker run`` flags a GUI program needs to look native on the host.
"""

__version__ = "0.1.0"

# Re-export key components for easier access
from guibox.aspects.base import Aspect
from guibox.core.manager import ContainerManager
from guibox.models.config import Configuration
from guibox.models.settings import GuiboxSettings

__all__ = [
    "Aspect",
    "ContainerManager",
    "Configuration",
    "GuiboxSettings",
]
