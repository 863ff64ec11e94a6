"""Container manager orchestrating aspects through the container lifecycle."""

import io
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from rich.console import Console

from guibox.aspects.base import Aspect
from guibox.aspects.profile import Profile
from guibox.aspects.registry import AspectRegistry, get_aspect_registry
from guibox.aspects.system import Debian, GuiboxRuntime, launcher_script
from guibox.core.archive import DOCKERFILE, write_build_context
from guibox.core.config import ConfigStore
from guibox.core.entrypoint import (
    EntrypointDispatcher,
    EntrypointMode,
    ExecutablePathResolver,
    PathEscalator,
    PrivilegeEscalator,
    current_executable,
)
from guibox.errors import (
    ArchiveWriteError,
    ContainerEngineError,
    GuiboxError,
    LauncherWriteError,
    MissingOptionError,
)
from guibox.models.aspect import ConfigOption
from guibox.models.config import Configuration
from guibox.models.settings import ENV_ENTRYPOINT_PATH, GuiboxSettings
from guibox.utils.docker import ContainerEngine, DockerEngine, parse_build_line


logger = logging.getLogger(__name__)


class ContainerManager:
    """Composes aspects into images and container invocations for one app.

    The manager owns the aspect order: it puts the profile, base OS and
    guibox runtime aspects in front of the application's own aspects, and
    appends the aspects re-derived from saved and command-line configuration.

    ``launcher`` names the ``module:function`` the container entrypoint runs.
    When set, a launcher script for the interpreter installed in the image is
    mounted at the sentinel path; otherwise the running executable itself is.
    """

    def __init__(
        self,
        name: str,
        tags: List[str],
        aspects: List[Aspect],
        args: Optional[List[str]] = None,
        container_paths: Optional[List[str]] = None,
        base_os: Optional[Aspect] = None,
        runtime: Optional[Aspect] = None,
        launcher: Optional[str] = None,
        engine: Optional[ContainerEngine] = None,
        escalator: Optional[PrivilegeEscalator] = None,
        settings: Optional[GuiboxSettings] = None,
        config_store: Optional[ConfigStore] = None,
        registry: Optional[AspectRegistry] = None,
        executable_path: ExecutablePathResolver = current_executable,
        console: Optional[Console] = None,
    ):
        """Initialize container manager."""
        if not tags:
            raise ValueError("at least one image tag is required")

        self.name = name
        self.tags = list(tags)
        self.aspects = list(aspects)
        self.args = list(args or [])
        self.container_paths = list(container_paths or [])
        self.base_os = base_os if base_os is not None else Debian()
        self.runtime = runtime if runtime is not None else GuiboxRuntime()
        self.launcher = launcher
        self.settings = settings or GuiboxSettings.from_env()
        self.engine = engine or DockerEngine(
            socket_path=self.settings.docker_socket,
            docker_binary=self.settings.docker_binary,
        )
        self.registry = registry or get_aspect_registry()
        self.console = console or Console()
        self.executable_path = executable_path
        self.dispatcher = EntrypointDispatcher(
            sentinel_path=self.settings.entrypoint_path,
            executable_path=executable_path,
            escalator=escalator or PathEscalator(self.settings.escalator),
        )
        self._config_store = config_store
        self._prepared = False

    @property
    def image(self) -> str:
        """Canonical image tag."""
        return self.tags[0]

    @property
    def config_store(self) -> ConfigStore:
        if self._config_store is None:
            self._config_store = ConfigStore(self.settings.require_config_dir())
        return self._config_store

    def prepare(self):
        """Put the profile, base OS and runtime aspects in front, once."""
        if self._prepared:
            return
        self.aspects[:0] = [
            Profile(self.name, self.container_paths, self.settings),
            self.base_os,
            self.runtime,
        ]
        self._prepared = True

    def options(self) -> List[ConfigOption]:
        """Every option understood by the registry and the aspects."""
        options = {}
        for option in self.registry.options():
            options.setdefault(option.name, option)
        for aspect in self.aspects:
            for option in aspect.configurable_options():
                options.setdefault(option.name, option)
        return list(options.values())

    def load_config(self, cli_config: Optional[Configuration] = None) -> Configuration:
        """Merge saved configuration with command-line values.

        The aspects implied by the merged values are appended to the aspect
        list so later stages see them.
        """
        cli_config = cli_config or Configuration()
        profile = self._profile(cli_config)

        saved = self.config_store.load(self.name, profile)
        merged = saved.merge(cli_config, self.options())

        for option in self.options():
            if option.required and option.name not in merged:
                raise MissingOptionError(option.name)

        derived = self.registry.derive(merged)
        self.aspects.extend(derived)
        logger.debug(f"Loaded configuration for {self.name} (profile={profile}): {merged.values}")
        return merged

    def runtime_flags(self, configuration: Optional[Configuration] = None) -> List[str]:
        """Full ``docker run`` flag list, without running anything."""
        flags = ["--rm"]

        if self.needs_entrypoint():
            entrypoint = self.settings.entrypoint_path
            flags.extend([
                "-v", f"{self.entrypoint_source()}:{entrypoint}:ro",
                "-e", f"{ENV_ENTRYPOINT_PATH}={entrypoint}",
                "--entrypoint", entrypoint,
            ])

        for aspect in self.aspects:
            logger.info(f"Applying aspect {aspect.name}")
            flags.extend(aspect.runtime_flags(configuration))

        flags.append(self.image)
        flags.extend(self.args)
        return flags

    def needs_entrypoint(self) -> bool:
        return any(aspect.privileged_setup_steps() for aspect in self.aspects)

    def entrypoint_source(self) -> Path:
        """Host file mounted at the sentinel path."""
        if self.launcher is None:
            return self.executable_path()

        path = self.settings.require_data_dir() / self.name / "entrypoint"
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(launcher_script(self.launcher))
            path.chmod(0o755)
        except OSError as e:
            raise LauncherWriteError(path, str(e)) from e
        return path

    def run(self, configuration: Optional[Configuration] = None) -> int:
        """Run the application in a fresh container."""
        flags = self.runtime_flags(configuration)
        return self.engine.run(flags)

    def build_context(self) -> bytes:
        """Build context as an in-memory tar archive."""
        buffer = io.BytesIO()
        write_build_context(self.aspects, buffer)
        return buffer.getvalue()

    def build(self):
        """Build the image, printing build output as it arrives."""
        context = self.build_context()
        for line in self.engine.build(context, self.tags, dockerfile=DOCKERFILE):
            output = parse_build_line(line)
            if output is None:
                continue
            if output.error is not None:
                raise ContainerEngineError(output.error.strip())
            self.console.out(output.stream, end="", highlight=False)
        logger.info(f"Built {', '.join(self.tags)}")

    def generate_archive(self, path: Optional[Path] = None) -> Path:
        """Write the build context to a local file for inspection."""
        path = Path(path) if path else Path.cwd() / f"{self.name}.tar"
        try:
            f = open(path, "wb")
        except OSError as e:
            raise ArchiveWriteError(str(path), str(e)) from e
        with f:
            write_build_context(self.aspects, f)
        logger.info(f"Wrote build context to {path}")
        return path

    def config(self, cli_config: Configuration) -> Path:
        """Save the supplied options for later runs and builds."""
        profile = self._profile(cli_config)
        options = [option for option in self.options() if option.name != "profile"]
        return self.config_store.save(cli_config.restrict(options), self.name, profile)

    def entrypoint(self, argv: Sequence[str]) -> int:
        """Run privileged setup and hand off to the container command."""
        return self.dispatcher.dispatch(self.aspects, argv)

    def execute(self, argv: Optional[Sequence[str]] = None) -> int:
        """Entry point for application binaries."""
        from guibox.cli.main import report_error, run_app

        argv = list(sys.argv if argv is None else argv)
        self.prepare()

        try:
            if self.dispatcher.mode() is EntrypointMode.ENTRYPOINT:
                return self.entrypoint(argv)
        except GuiboxError as e:
            report_error(e)
            return 1

        return run_app(self, argv[1:])

    @staticmethod
    def _profile(configuration: Configuration) -> Optional[str]:
        value = configuration.get("profile")
        if isinstance(value, list):
            value = value[-1] if value else None
        return value or None
