"""Error kinds raised by guibox."""

from typing import Optional


class GuiboxError(Exception):
    """Base class for every error guibox reports to the user."""
    pass


class NotInEntrypointModeError(GuiboxError):
    """Entrypoint logic invoked outside of the container entrypoint."""

    def __init__(self, path: Optional[str] = None):
        message = "not in entrypoint mode"
        if path:
            message = f"{message} (running as {path})"
        super().__init__(message)


class MissingEntrypointArgsError(GuiboxError):
    """Entrypoint invoked without a downstream command."""

    def __init__(self):
        super().__init__("missing entrypoint args")


class ExecutablePathError(GuiboxError):
    """The running executable could not be resolved."""

    def __init__(self, reason: str = ""):
        message = "could not find current binary"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class ArchiveWriteError(GuiboxError):
    """Writing an entry into the build context failed."""

    def __init__(self, name: str, reason: str):
        self.name = name
        super().__init__(f"failed to add {name} to archive: {reason}")


class MissingUserError(GuiboxError):
    """No user matches the requested uid."""

    def __init__(self, uid):
        super().__init__(f"could not identify user with uid `{uid}`")


class MissingGroupError(GuiboxError):
    """No group matches the requested gid."""

    def __init__(self, gid):
        super().__init__(f"could not identify group with gid `{gid}`")


class InvalidMountError(GuiboxError):
    """Mount string is not of the form <host>:<container>."""

    def __init__(self, spec: str):
        super().__init__(f"invalid mount string `{spec}`")


class InvalidLocaleError(GuiboxError):
    """Locale string is not of the form <language>_<territory>[.<codeset>]."""

    def __init__(self, spec: str):
        super().__init__(f"invalid locale `{spec}`")


class MissingDirectoryError(GuiboxError):
    """A required directory could not be determined."""

    def __init__(self, what: str = "directory"):
        super().__init__(f"could not identify {what}")


class MissingEnvironmentError(GuiboxError):
    """A host environment variable required by an aspect is not set."""

    def __init__(self, variable: str, aspect: str):
        self.variable = variable
        super().__init__(f"{aspect} requires ${variable} to be set")


class MissingOptionError(GuiboxError):
    """A required option was neither supplied nor persisted."""

    def __init__(self, option: str):
        super().__init__(f"missing required option --{option}")


class ContainerEngineError(GuiboxError):
    """The container engine rejected a request or could not be reached."""
    pass


class ConfigSaveError(GuiboxError):
    """Persisting configuration failed."""

    def __init__(self, path, reason: str):
        super().__init__(f"failed to save config to {path}: {reason}")


class ConfigLoadError(GuiboxError):
    """Persisted configuration could not be read or is malformed."""

    def __init__(self, path, reason: str):
        super().__init__(f"failed to load config from {path}: {reason}")


class EscalatorNotFoundError(GuiboxError):
    """The privilege escalation executable is not on PATH."""

    def __init__(self, name: str):
        super().__init__(f"failed to find binary `{name}` on PATH")


class SetupStepError(GuiboxError):
    """A privileged setup step failed inside the container."""

    def __init__(self, description: str, reason: str):
        super().__init__(f"setup step '{description}' failed: {reason}")


class LauncherWriteError(GuiboxError):
    """The container entrypoint launcher could not be written."""

    def __init__(self, path, reason: str):
        super().__init__(f"failed to write entrypoint launcher {path}: {reason}")


class PackageMetadataError(GuiboxError):
    """guibox's own distribution metadata is unavailable."""

    def __init__(self, reason: str):
        super().__init__(f"guibox must be installed to build images: {reason}")
