"""Built-in aspects."""

from guibox.aspects.base import Aspect
from guibox.aspects.desktop import X11, PulseAudio, DBus, Video
from guibox.aspects.localization import Locale, Timezone
from guibox.aspects.profile import Profile
from guibox.aspects.registry import AspectRegistry, get_aspect_registry
from guibox.aspects.runtime import NetHost, SysAdmin, Shm, Name, CPUShares, Memory, Mount, Mounts
from guibox.aspects.system import Debian, GuiboxRuntime, launcher_script
from guibox.aspects.user import CurrentUser, UserIdentity

__all__ = [
    "Aspect",
    "AspectRegistry",
    "get_aspect_registry",
    "X11",
    "PulseAudio",
    "DBus",
    "Video",
    "Locale",
    "Timezone",
    "Profile",
    "NetHost",
    "SysAdmin",
    "Shm",
    "Name",
    "CPUShares",
    "Memory",
    "Mount",
    "Mounts",
    "Debian",
    "GuiboxRuntime",
    "launcher_script",
    "CurrentUser",
    "UserIdentity",
]
