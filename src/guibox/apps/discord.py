"""Discord in a container."""

import os
import sys
from typing import List

from guibox import __version__
from guibox.aspects import (
    Aspect,
    CPUShares,
    CurrentUser,
    DBus,
    Locale,
    Memory,
    Name,
    NetHost,
    PulseAudio,
    Shm,
    SysAdmin,
    Video,
    X11,
)
from guibox.core.manager import ContainerManager
from guibox.models.aspect import ImageSnippet


DISCORD_URL = "https://discord.com/api/download?platform=linux&format=deb"


class Discord(Aspect):
    """Discord package."""

    @property
    def name(self) -> str:
        return "discord"

    def image_snippets(self) -> List[ImageSnippet]:
        return [ImageSnippet(priority=91, content=f"""WORKDIR /opt/
RUN curl -sSL "{DISCORD_URL}" > /opt/discord.deb \\
  && dpkg --force-depends -i /opt/discord.deb ; rm /opt/discord.deb
RUN apt-get update && apt-get --fix-broken install -y \\
  && apt-get purge --autoremove \\
  && rm -rf /var/lib/apt/lists/* \\
  && rm -rf /src/*.deb""")]


def create_manager() -> ContainerManager:
    # Mirrors the host home directory, which is also the container user's home
    config_path = os.path.expanduser("~/.config/discord")
    return ContainerManager(
        name="discord",
        tags=[f"guibox/discord:{__version__}"],
        container_paths=[config_path],
        launcher="guibox.apps.discord:main",
        aspects=[
            Discord(),
            Name("discord"),
            Locale(language="en", territory="US", codeset="UTF-8"),
            PulseAudio(),
            X11(),
            Video(),
            DBus(),
            NetHost(),
            SysAdmin(),
            Shm(),
            CPUShares("512"),
            Memory("3072mb"),
            CurrentUser(),
        ],
        args=["discord"],
    )


def main():
    """Console script entry point."""
    sys.exit(create_manager().execute())


if __name__ == "__main__":
    main()
