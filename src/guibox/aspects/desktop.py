"""Aspects wiring host desktop services into the container."""

import glob
import logging
import os
from typing import List, Optional

from guibox.aspects.base import Aspect
from guibox.errors import MissingEnvironmentError
from guibox.models.aspect import ImageSnippet
from guibox.models.config import Configuration


logger = logging.getLogger(__name__)

X11_SOCKET_DIR = "/tmp/.X11-unix"
CONTAINER_XAUTHORITY = "/tmp/.Xauthority"
CONTAINER_PULSE_DIR = "/run/guibox/pulse"
SYSTEM_BUS_SOCKET = "/run/dbus/system_bus_socket"


def _runtime_dir() -> str:
    return os.environ.get("XDG_RUNTIME_DIR") or f"/run/user/{os.getuid()}"


class X11(Aspect):
    """Share the host X server."""

    @property
    def name(self) -> str:
        return "x11"

    def runtime_flags(self, configuration: Optional[Configuration] = None) -> List[str]:
        display = os.environ.get("DISPLAY")
        if not display:
            raise MissingEnvironmentError("DISPLAY", self.name)

        flags = [
            "-e", f"DISPLAY={display}",
            "-v", f"{X11_SOCKET_DIR}:{X11_SOCKET_DIR}",
        ]

        xauthority = os.environ.get("XAUTHORITY")
        if xauthority and os.path.exists(xauthority):
            flags.extend([
                "-v", f"{xauthority}:{CONTAINER_XAUTHORITY}:ro",
                "-e", f"XAUTHORITY={CONTAINER_XAUTHORITY}",
            ])
        return flags


class PulseAudio(Aspect):
    """Route audio through the host PulseAudio (or pipewire-pulse) socket."""

    @property
    def name(self) -> str:
        return "pulseaudio"

    def runtime_flags(self, configuration: Optional[Configuration] = None) -> List[str]:
        return [
            "-v", f"{_runtime_dir()}/pulse:{CONTAINER_PULSE_DIR}",
            "-e", f"PULSE_SERVER=unix:{CONTAINER_PULSE_DIR}/native",
        ]

    def image_snippets(self) -> List[ImageSnippet]:
        return [ImageSnippet(priority=10, content="""RUN apt-get update && apt-get install -y --no-install-recommends \\
    libpulse0 \\
    pulseaudio-utils \\
  && rm -rf /var/lib/apt/lists/*""")]


class DBus(Aspect):
    """Expose the host session and system buses."""

    @property
    def name(self) -> str:
        return "dbus"

    def runtime_flags(self, configuration: Optional[Configuration] = None) -> List[str]:
        address = os.environ.get("DBUS_SESSION_BUS_ADDRESS") or f"unix:path={_runtime_dir()}/bus"

        flags = []
        if address.startswith("unix:path="):
            socket_path = address[len("unix:path="):].split(",", 1)[0]
            flags.extend(["-v", f"{socket_path}:{socket_path}"])
        else:
            # Abstract sockets are only reachable with the host network namespace
            logger.warning(f"Session bus address {address} is not a socket path")

        flags.extend([
            "-e", f"DBUS_SESSION_BUS_ADDRESS={address}",
            "-v", f"{SYSTEM_BUS_SOCKET}:{SYSTEM_BUS_SOCKET}",
        ])
        return flags

    def image_snippets(self) -> List[ImageSnippet]:
        return [ImageSnippet(priority=10, content="""RUN apt-get update && apt-get install -y --no-install-recommends \\
    dbus-x11 \\
  && rm -rf /var/lib/apt/lists/*""")]


class Video(Aspect):
    """GPU acceleration and video capture devices."""

    def __init__(self, devices: Optional[List[str]] = None):
        self.devices = devices

    @property
    def name(self) -> str:
        return "video"

    def runtime_flags(self, configuration: Optional[Configuration] = None) -> List[str]:
        devices = self.devices
        if devices is None:
            devices = ["/dev/dri"] + sorted(glob.glob("/dev/video*"))

        flags = []
        for device in devices:
            flags.extend(["--device", device])
        return flags

    def image_snippets(self) -> List[ImageSnippet]:
        return [ImageSnippet(priority=10, content="""RUN apt-get update && apt-get install -y --no-install-recommends \\
    libgl1 \\
    libgl1-mesa-dri \\
  && rm -rf /var/lib/apt/lists/*""")]
