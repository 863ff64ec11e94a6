"""Base operating system aspects."""

import json
from importlib import metadata
from pathlib import Path
from typing import List, Optional

from guibox import __version__
from guibox.aspects.base import Aspect
from guibox.errors import ArchiveWriteError, PackageMetadataError
from guibox.models.aspect import ContextFile, ImageSnippet


BASE_PACKAGES = """RUN apt-get update && apt-get install -y \\
    --no-install-recommends \\
    apt-utils \\
    apt-transport-https \\
    apt \\
    bzip2 \\
    ca-certificates \\
    curl \\
    debian-goodies \\
    dirmngr \\
    gnupg \\
    keychain \\
    lsb-release \\
    locales \\
    lsof \\
    procps \\
    sudo \\
    tzdata \\
  && apt-get purge --autoremove \\
  && rm -rf /var/lib/apt/lists/* \\
  && rm -rf /src/*.deb"""

LANGUAGE_FONTS = """# Useful language packs
RUN apt-get update && apt-get install -y --no-install-recommends \\
  fonts-arphic-bkai00mp \\
  fonts-arphic-bsmi00lp \\
  fonts-arphic-gbsn00lp \\
  \\
  && rm -rf /var/lib/apt/lists/* \\
  && rm -rf /src/*.deb"""


class Debian(Aspect):
    """Debian base image with the tooling GUI applications expect."""

    def __init__(self, release: str = "bookworm"):
        self.release = release

    @property
    def name(self) -> str:
        return "debian"

    def image_snippets(self) -> List[ImageSnippet]:
        return [
            ImageSnippet(priority=0, content=f"FROM debian:{self.release}"),
            ImageSnippet(priority=2, content=BASE_PACKAGES),
            ImageSnippet(priority=3, content=LANGUAGE_FONTS),
        ]


RUNTIME_DIR = "/opt/guibox"
RUNTIME_PYTHON = f"{RUNTIME_DIR}/venv/bin/python3"
CONTEXT_DIR = "guibox"

PYPROJECT_TEMPLATE = """[build-system]
requires = ["setuptools>=64"]
build-backend = "setuptools.build_meta"

[project]
name = "guibox"
version = "{version}"
dependencies = [
{dependencies}]

[tool.setuptools.packages.find]
where = ["src"]
"""


def launcher_script(target: str) -> str:
    """Script running ``module:function`` with the interpreter inside the image."""
    module, _, function = target.partition(":")
    return (
        f"#!{RUNTIME_PYTHON}\n"
        "import sys\n"
        f"from {module} import {function}\n"
        f"sys.exit({function}())\n"
    )


class GuiboxRuntime(Aspect):
    """Install guibox itself into the image.

    The container entrypoint is guibox, so the image needs an interpreter
    with this package installed. The package source travels in the build
    context with a generated ``pyproject.toml`` and is installed into a
    virtual environment under ``/opt/guibox``.
    """

    def __init__(self, requirements: Optional[List[str]] = None, source_dir: Optional[Path] = None):
        self._requirements = requirements
        self.source_dir = Path(source_dir) if source_dir else Path(__file__).resolve().parents[1]

    @property
    def name(self) -> str:
        return "guibox-runtime"

    def requirements(self) -> List[str]:
        """Runtime dependencies of the installed guibox distribution."""
        if self._requirements is not None:
            return list(self._requirements)
        try:
            declared = metadata.requires("guibox") or []
        except metadata.PackageNotFoundError as e:
            raise PackageMetadataError(str(e)) from e
        return [requirement for requirement in declared if "extra ==" not in requirement]

    def pyproject(self) -> str:
        dependencies = "".join(f"    {json.dumps(r)},\n" for r in self.requirements())
        return PYPROJECT_TEMPLATE.format(version=__version__, dependencies=dependencies)

    def context_files(self) -> List[ContextFile]:
        files = [ContextFile(path=f"{CONTEXT_DIR}/pyproject.toml", content=self.pyproject())]
        for source in sorted(self.source_dir.rglob("*.py")):
            relative = source.relative_to(self.source_dir.parent).as_posix()
            try:
                content = source.read_text()
            except OSError as e:
                raise ArchiveWriteError(relative, str(e)) from e
            files.append(ContextFile(path=f"{CONTEXT_DIR}/src/{relative}", content=content))
        return files

    def image_snippets(self) -> List[ImageSnippet]:
        return [ImageSnippet(priority=4, content=f"""RUN apt-get update && apt-get install -y --no-install-recommends \\
    python3 \\
    python3-venv \\
  && rm -rf /var/lib/apt/lists/*
COPY {CONTEXT_DIR} {RUNTIME_DIR}/dist
RUN python3 -m venv {RUNTIME_DIR}/venv \\
  && {RUNTIME_DIR}/venv/bin/pip install --no-cache-dir {RUNTIME_DIR}/dist""")]
