"""Tests for ContainerManager."""

import io
import json
import os
import tarfile
from pathlib import Path
from typing import List
from unittest.mock import MagicMock

import pytest
from rich.console import Console

from guibox.aspects import Aspect, Debian, GuiboxRuntime, Locale, Profile
from guibox.aspects.system import RUNTIME_PYTHON
from guibox.core.manager import ContainerManager
from guibox.errors import (
    ContainerEngineError,
    ExecutablePathError,
    MissingEnvironmentError,
    MissingOptionError,
)
from guibox.models.aspect import ConfigOption, ImageSnippet, SetupStep
from guibox.models.config import Configuration
from guibox.models.settings import GuiboxSettings


SENTINEL = "/guibox/entrypoint"


class FakeEngine:
    """Engine recording what it was asked to do."""

    def __init__(self, lines=(), status=0):
        self.lines = list(lines)
        self.status = status
        self.run_calls = []
        self.build_calls = []

    def build(self, context, tags, dockerfile="Dockerfile"):
        self.build_calls.append((context, list(tags), dockerfile))
        for line in self.lines:
            yield line

    def run(self, flags):
        self.run_calls.append(list(flags))
        return self.status


class FlagAspect(Aspect):
    """Aspect contributing fixed run flags and snippets."""

    def __init__(self, name="flags", flags=(), snippets=(), options=(), steps=()):
        self._name = name
        self.flags = list(flags)
        self.snippets = [ImageSnippet(priority=p, content=c) for p, c in snippets]
        self.options = list(options)
        self.steps = list(steps)

    @property
    def name(self) -> str:
        return self._name

    def runtime_flags(self, configuration=None) -> List[str]:
        return list(self.flags)

    def image_snippets(self):
        return list(self.snippets)

    def configurable_options(self):
        return list(self.options)

    def privileged_setup_steps(self):
        return list(self.steps)


class FailingAspect(Aspect):
    """Aspect whose run flags cannot be computed."""

    @property
    def name(self) -> str:
        return "failing"

    def runtime_flags(self, configuration=None):
        raise MissingEnvironmentError("DISPLAY", "x11")


@pytest.fixture
def settings(tmp_path):
    """Create settings rooted in a temporary directory."""
    return GuiboxSettings(
        config_dir=str(tmp_path / "config"),
        data_dir=str(tmp_path / "data"),
    )


def make_manager(settings, aspects, engine=None, **kwargs):
    kwargs.setdefault("tags", ["app:v1"])
    return ContainerManager(
        name="app",
        aspects=aspects,
        engine=engine or FakeEngine(),
        settings=settings,
        executable_path=lambda: Path("/usr/local/bin/guibox-app"),
        console=Console(file=io.StringIO()),
        **kwargs,
    )


class TestRun:
    """Test run flag composition."""

    def test_flag_order(self, settings):
        """Test --rm, aspect flags, image, then args."""
        engine = FakeEngine()
        manager = make_manager(
            settings,
            [FlagAspect(flags=["--foo", "bar"])],
            engine=engine,
            args=["cmd", "--flag"],
        )

        assert manager.run() == 0
        assert engine.run_calls == [["--rm", "--foo", "bar", "app:v1", "cmd", "--flag"]]

    def test_aspect_order_is_kept(self, settings):
        """Test flags follow aspect registration order."""
        manager = make_manager(settings, [
            FlagAspect("b", flags=["-e", "B=1"]),
            FlagAspect("a", flags=["-e", "A=1"]),
        ])

        assert manager.runtime_flags() == ["--rm", "-e", "B=1", "-e", "A=1", "app:v1"]

    def test_exit_status_passthrough(self, settings):
        """Test the container's exit status is returned."""
        manager = make_manager(settings, [], engine=FakeEngine(status=42))

        assert manager.run() == 42

    def test_entrypoint_injected_for_setup_steps(self, settings):
        """Test the executable is mounted at the sentinel when setup is needed."""
        step = SetupStep(description="noop", action=lambda: None)
        manager = make_manager(settings, [FlagAspect(steps=[step], flags=["--x"])])

        assert manager.runtime_flags() == [
            "--rm",
            "-v", f"/usr/local/bin/guibox-app:{SENTINEL}:ro",
            "-e", f"GUIBOX_ENTRYPOINT_PATH={SENTINEL}",
            "--entrypoint", SENTINEL,
            "--x",
            "app:v1",
        ]

    def test_custom_sentinel_reaches_container(self, tmp_path):
        """Test a relocated sentinel is handed to the container environment."""
        settings = GuiboxSettings(config_dir=str(tmp_path), data_dir=str(tmp_path), entrypoint_path="/opt/ep")
        step = SetupStep(description="noop", action=lambda: None)
        manager = make_manager(settings, [FlagAspect(steps=[step])])

        flags = manager.runtime_flags()

        assert flags[1:7] == [
            "-v", "/usr/local/bin/guibox-app:/opt/ep:ro",
            "-e", "GUIBOX_ENTRYPOINT_PATH=/opt/ep",
            "--entrypoint", "/opt/ep",
        ]
        container = GuiboxSettings.from_env({"GUIBOX_ENTRYPOINT_PATH": flags[4].split("=", 1)[1]})
        assert container.entrypoint_path == "/opt/ep"

    def test_launcher_mounted_at_sentinel(self, settings, tmp_path):
        """Test a launcher for the image interpreter replaces the host executable."""
        step = SetupStep(description="noop", action=lambda: None)
        manager = make_manager(settings, [FlagAspect(steps=[step])], launcher="guibox.apps.app:main")

        flags = manager.runtime_flags()

        launcher = tmp_path / "data" / "app" / "entrypoint"
        assert flags[1:3] == ["-v", f"{launcher}:{SENTINEL}:ro"]
        assert launcher.read_text() == (
            f"#!{RUNTIME_PYTHON}\n"
            "import sys\n"
            "from guibox.apps.app import main\n"
            "sys.exit(main())\n"
        )
        assert os.access(launcher, os.X_OK)

    def test_no_entrypoint_without_setup_steps(self, settings):
        """Test no entrypoint flags when nothing needs setup."""
        manager = make_manager(settings, [FlagAspect(flags=["--x"])])

        assert "--entrypoint" not in manager.runtime_flags()

    def test_aspect_failure_aborts_before_engine(self, settings):
        """Test a failing aspect stops the run before the engine is used."""
        engine = FakeEngine()
        manager = make_manager(settings, [FlagAspect(flags=["--x"]), FailingAspect()], engine=engine)

        with pytest.raises(MissingEnvironmentError):
            manager.run()

        assert engine.run_calls == []

    def test_requires_a_tag(self, settings):
        """Test an empty tag list is rejected."""
        with pytest.raises(ValueError):
            make_manager(settings, [], tags=[])


class TestPrepare:
    """Test the manager-owned aspect order."""

    def test_profile_and_base_os_first(self, settings):
        """Test profile, base OS and runtime come before the app aspects."""
        app_aspect = FlagAspect("app")
        manager = make_manager(settings, [app_aspect])

        manager.prepare()
        manager.prepare()

        assert len(manager.aspects) == 4
        assert isinstance(manager.aspects[0], Profile)
        assert isinstance(manager.aspects[1], Debian)
        assert isinstance(manager.aspects[2], GuiboxRuntime)
        assert manager.aspects[3] is app_aspect

    def test_custom_base_os(self, settings):
        """Test a replacement base OS aspect."""
        base = FlagAspect("alpine")
        manager = make_manager(settings, [], base_os=base)

        manager.prepare()

        assert manager.aspects[1] is base


class TestConfiguration:
    """Test loading, merging and saving options."""

    def test_saved_locale_applies_to_run(self, settings):
        """Test a saved locale shows up in a later run."""
        manager = make_manager(settings, [])
        manager.prepare()
        manager.config(Configuration(values={"locale": "en_US"}))

        later = make_manager(settings, [])
        later.prepare()
        configuration = later.load_config()
        flags = later.runtime_flags(configuration)

        assert "LANG=en_US.UTF-8" in flags
        assert isinstance(later.aspects[-1], Locale)

    def test_command_line_wins(self, settings):
        """Test command-line values override saved ones."""
        manager = make_manager(settings, [])
        manager.config(Configuration(values={"timezone": "UTC", "mount": ["/a:/a"]}))

        merged = manager.load_config(Configuration(values={"timezone": "Europe/Berlin", "mount": ["/b:/b"]}))

        assert merged.get("timezone") == "Europe/Berlin"
        assert merged.get("mount") == ["/a:/a", "/b:/b"]

    def test_config_overwrites_record(self, settings):
        """Test config stores only the values supplied this time."""
        manager = make_manager(settings, [])
        manager.config(Configuration(values={"timezone": "UTC"}))
        manager.config(Configuration(values={"memory": "2g"}))

        assert manager.config_store.load("app").values == {"memory": "2g"}

    def test_config_per_profile(self, settings):
        """Test the profile selects the record and is not itself saved."""
        manager = make_manager(settings, [])
        manager.prepare()

        path = manager.config(Configuration(values={"profile": "work", "timezone": "UTC"}))

        assert path.name == "work.yaml"
        assert manager.config_store.load("app", "work").values == {"timezone": "UTC"}
        assert manager.load_config().get("timezone") is None

    def test_unknown_values_are_not_saved(self, settings):
        """Test values for undeclared options are dropped."""
        manager = make_manager(settings, [])

        manager.config(Configuration(values={"timezone": "UTC", "bogus": "1"}))

        assert manager.config_store.load("app").values == {"timezone": "UTC"}

    def test_required_option(self, settings):
        """Test a required option missing from both sources."""
        aspect = FlagAspect(options=[ConfigOption(name="token", required=True)])
        manager = make_manager(settings, [aspect])

        with pytest.raises(MissingOptionError):
            manager.load_config()

        assert manager.load_config(Configuration(values={"token": "abc"})).get("token") == "abc"

    def test_options_deduplicated(self, settings):
        """Test options declared twice are listed once."""
        aspect = FlagAspect(options=[ConfigOption(name="locale"), ConfigOption(name="extra")])
        manager = make_manager(settings, [aspect])

        names = [option.name for option in manager.options()]

        assert names.count("locale") == 1
        assert "extra" in names


class TestBuild:
    """Test building and archiving."""

    def test_streams_build_output(self, settings):
        """Test stream text is printed and noise skipped."""
        engine = FakeEngine(lines=[
            json.dumps({"stream": "Step 1/2 : FROM debian\n"}),
            "not json",
            json.dumps({"aux": {"ID": "sha256:abc"}}),
            json.dumps({"stream": "Successfully built abc\n"}),
        ])
        output = io.StringIO()
        manager = make_manager(settings, [FlagAspect(snippets=[(0, "FROM debian")])], engine=engine)
        manager.console = Console(file=output)

        manager.build()

        assert output.getvalue() == "Step 1/2 : FROM debian\nSuccessfully built abc\n"
        context, tags, dockerfile = engine.build_calls[0]
        assert tags == ["app:v1"]
        assert dockerfile == "Dockerfile"
        with tarfile.open(fileobj=io.BytesIO(context)) as archive:
            assert archive.extractfile("Dockerfile").read() == b"FROM debian\n\n"

    def test_build_error_line(self, settings):
        """Test an error line fails the build."""
        engine = FakeEngine(lines=[json.dumps({"error": "no space left on device\n"})])
        manager = make_manager(settings, [], engine=engine)

        with pytest.raises(ContainerEngineError, match="no space left"):
            manager.build()

    def test_generate_archive(self, settings, tmp_path):
        """Test the archive is written where asked."""
        manager = make_manager(settings, [FlagAspect(snippets=[(0, "FROM debian")])])
        target = tmp_path / "context.tar"

        path = manager.generate_archive(target)

        assert path == target
        with tarfile.open(target) as archive:
            assert archive.getnames() == ["Dockerfile"]

    def test_generate_archive_default_path(self, settings, tmp_path, monkeypatch):
        """Test the default archive name."""
        monkeypatch.chdir(tmp_path)
        manager = make_manager(settings, [])

        assert manager.generate_archive() == tmp_path / "app.tar"
        assert (tmp_path / "app.tar").exists()


class TestExecute:
    """Test the application entry point."""

    def test_entrypoint_mode(self, settings):
        """Test running at the sentinel path dispatches to the entrypoint."""
        manager = ContainerManager(
            name="app",
            tags=["app:v1"],
            aspects=[],
            engine=FakeEngine(),
            settings=settings,
            executable_path=lambda: Path(SENTINEL),
        )
        manager.entrypoint = MagicMock(return_value=5)

        assert manager.execute([SENTINEL, "ls"]) == 5
        manager.entrypoint.assert_called_once_with([SENTINEL, "ls"])

    def test_normal_mode_runs_cli(self, settings):
        """Test the host mode goes through the command line."""
        engine = FakeEngine(status=3)
        manager = make_manager(settings, [], engine=engine)

        assert manager.execute(["guibox-app", "run"]) == 3
        assert engine.run_calls[0][-1] == "app:v1"

    def test_entrypoint_error_reported(self, settings, capsys):
        """Test entrypoint failures print an error and exit with status 1."""
        manager = make_manager(settings, [])
        manager.dispatcher.executable_path = lambda: Path(SENTINEL)

        assert manager.execute([SENTINEL]) == 1
        err = capsys.readouterr().err
        assert "Error:" in err
        assert "missing entrypoint args" in err

    def test_unresolvable_executable_reported(self, settings, capsys):
        """Test a failed executable lookup is reported, not raised."""
        def lookup():
            raise ExecutablePathError("gone")

        manager = make_manager(settings, [])
        manager.dispatcher.executable_path = lookup

        assert manager.execute(["guibox-app"]) == 1
        assert "could not find current binary" in capsys.readouterr().err
