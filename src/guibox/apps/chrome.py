"""Google Chrome in a container."""

import os
import sys
from typing import List, Optional

from guibox import __version__
from guibox.aspects import (
    Aspect,
    CPUShares,
    CurrentUser,
    DBus,
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
from guibox.errors import MissingEnvironmentError
from guibox.models.aspect import ImageSnippet
from guibox.models.config import Configuration


class Chrome(Aspect):
    """Chrome package and download directory."""

    @property
    def name(self) -> str:
        return "chrome"

    def runtime_flags(self, configuration: Optional[Configuration] = None) -> List[str]:
        home = os.environ.get("HOME")
        if not home:
            raise MissingEnvironmentError("HOME", self.name)
        return ["-v", f"{home}/Downloads:{home}/Downloads"]

    def image_snippets(self) -> List[ImageSnippet]:
        return [ImageSnippet(priority=91, content="""RUN curl -sSL https://dl.google.com/linux/linux_signing_key.pub \\
    | gpg --dearmor > /usr/share/keyrings/google-chrome.gpg \\
  && echo "deb [arch=amd64 signed-by=/usr/share/keyrings/google-chrome.gpg] http://dl.google.com/linux/chrome/deb/ stable main" \\
    > /etc/apt/sources.list.d/google-chrome.list \\
  && apt-get update && apt-get install -y --no-install-recommends google-chrome-stable \\
  && rm -rf /var/lib/apt/lists/*""")]


def create_manager() -> ContainerManager:
    return ContainerManager(
        name="chrome",
        tags=[f"guibox/chrome:{__version__}"],
        container_paths=["/data"],
        launcher="guibox.apps.chrome:main",
        aspects=[
            Chrome(),
            Name("chrome"),
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
        args=["google-chrome", "--user-data-dir=/data"],
    )


def main():
    """Console script entry point."""
    sys.exit(create_manager().execute())


if __name__ == "__main__":
    main()
