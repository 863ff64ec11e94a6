"""Build context assembly."""

import io
import logging
import tarfile
from typing import BinaryIO, Dict, Iterable, List

from guibox.aspects.base import Aspect
from guibox.errors import ArchiveWriteError


logger = logging.getLogger(__name__)

DOCKERFILE = "Dockerfile"


class ImageRecipe:
    """Priority-ordered image recipe.

    Snippets sharing a priority are joined with a newline in the order they
    were added; the rendered recipe lists priorities in ascending order, each
    followed by a blank line.
    """

    def __init__(self):
        self._contents: Dict[int, str] = {}

    def add(self, priority: int, content: str):
        if priority in self._contents:
            self._contents[priority] = f"{self._contents[priority]}\n{content}"
        else:
            self._contents[priority] = content

    def render(self) -> str:
        return "".join(f"{self._contents[p]}\n\n" for p in sorted(self._contents))


def compose_recipe(aspects: Iterable[Aspect]) -> str:
    """Render the image recipe contributed by ``aspects``."""
    recipe = ImageRecipe()
    for aspect in aspects:
        for snippet in aspect.image_snippets():
            recipe.add(snippet.priority, snippet.content)
    return recipe.render()


def add_file_to_archive(archive: tarfile.TarFile, name: str, content: str):
    """Append an in-memory file to ``archive``."""
    data = content.encode()
    info = tarfile.TarInfo(name=name)
    info.size = len(data)
    info.mode = 0o644
    try:
        archive.addfile(info, io.BytesIO(data))
    except (OSError, tarfile.TarError) as e:
        raise ArchiveWriteError(name, str(e)) from e


def write_build_context(aspects: List[Aspect], fileobj: BinaryIO):
    """Write the complete build context for ``aspects`` as a tar stream.

    Context files are written as they are collected; the Dockerfile is always
    the final entry. A failure leaves ``fileobj`` partially written.
    """
    try:
        archive = tarfile.open(fileobj=fileobj, mode="w", format=tarfile.GNU_FORMAT)
    except (OSError, tarfile.TarError) as e:
        raise ArchiveWriteError("archive", str(e)) from e

    try:
        # Closing writes the end-of-archive blocks
        with archive:
            for aspect in aspects:
                for context_file in aspect.context_files():
                    logger.debug(f"Adding {context_file.path} from {aspect.name}")
                    add_file_to_archive(archive, context_file.path, context_file.content)

            add_file_to_archive(archive, DOCKERFILE, compose_recipe(aspects))
        fileobj.flush()
    except (OSError, tarfile.TarError) as e:
        raise ArchiveWriteError("archive", str(e)) from e
