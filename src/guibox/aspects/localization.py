"""Locale and timezone aspects."""

import re
from typing import List, Optional

from guibox.aspects.base import Aspect
from guibox.errors import InvalidLocaleError
from guibox.models.aspect import ImageSnippet
from guibox.models.config import Configuration


LOCALE_PATTERN = re.compile(r"^(?P<language>[a-z]{2,3})_(?P<territory>[A-Z]{2})(?:\.(?P<codeset>[A-Za-z0-9-]+))?$")


class Locale(Aspect):
    """Generate a locale in the image and select it at run time."""

    def __init__(self, language: str, territory: str, codeset: str = "UTF-8"):
        self.language = language
        self.territory = territory
        self.codeset = codeset

    @classmethod
    def parse(cls, spec: str) -> "Locale":
        """Parse ``<language>_<territory>[.<codeset>]``, e.g. ``en_US.UTF-8``."""
        match = LOCALE_PATTERN.match(spec.strip())
        if not match:
            raise InvalidLocaleError(spec)
        return cls(
            language=match.group("language"),
            territory=match.group("territory"),
            codeset=match.group("codeset") or "UTF-8",
        )

    @property
    def name(self) -> str:
        return "locale"

    @property
    def tag(self) -> str:
        return f"{self.language}_{self.territory}.{self.codeset}"

    def runtime_flags(self, configuration: Optional[Configuration] = None) -> List[str]:
        return [
            "-e", f"LANG={self.tag}",
            "-e", f"LANGUAGE={self.language}_{self.territory}:{self.language}",
            "-e", f"LC_ALL={self.tag}",
        ]

    def image_snippets(self) -> List[ImageSnippet]:
        entry = f"{self.tag} {self.codeset}"
        return [ImageSnippet(priority=5, content=(
            f"RUN sed -i -e 's/# {entry}/{entry}/' /etc/locale.gen \\\n"
            f"  && locale-gen \\\n"
            f"  && update-locale LANG={self.tag}"
        ))]


class Timezone(Aspect):
    """Set the container timezone, e.g. ``America/Chicago``."""

    def __init__(self, zone: str):
        self.zone = zone

    @property
    def name(self) -> str:
        return "timezone"

    def runtime_flags(self, configuration: Optional[Configuration] = None) -> List[str]:
        return ["-e", f"TZ={self.zone}"]

    def image_snippets(self) -> List[ImageSnippet]:
        return [ImageSnippet(priority=5, content=(
            f"RUN ln -snf /usr/share/zoneinfo/{self.zone} /etc/localtime \\\n"
            f"  && echo {self.zone} > /etc/timezone"
        ))]
