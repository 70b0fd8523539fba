#!/usr/bin/env python3
"""Tests for the command-line interface."""

import io
import logging
import sys

import pytest

from restream.cli import (
    CLIError,
    load_configuration,
    main,
    parse_arguments,
    run_module,
    setup_logging,
    show_source,
)
from restream.core.constants import RESTREAM_VERSION, ConfigKey
from restream.infrastructure.config_manager import ConfigManager
from restream.infrastructure.logger import LogLevel, Logger, get_logger, set_global_logger
from restream.loader.hooks import MetaPathHooks
from restream.loader.module_loader import ModuleLoader


@pytest.fixture(autouse=True)
def reset_logger():
    """Keep the package logger set up by main() from leaking into other tests."""
    yield
    set_global_logger(Logger("restream"))


@pytest.fixture
def loader(registry, hooks, sample_package):
    return ModuleLoader(
        registry=registry,
        hooks=hooks,
        vendor_dir=str(sample_package.site / "vendor"),
        register=False,
    )


class TestParseArguments:
    """Tests for argument parsing."""

    def test_show(self):
        args = parse_arguments(["show", "myapp.views"])
        assert args.command == "show"
        assert args.identifier == "myapp.views"
        assert args.config is None
        assert not args.debug

    def test_run_keeps_module_arguments(self):
        args = parse_arguments(["run", "myapp.server", "--port", "8000", "-v"])
        assert args.module == "myapp.server"
        assert args.args == ["--port", "8000", "-v"]

    def test_logging_options(self, temp_dir):
        args = parse_arguments(["--debug", "--log-file", str(temp_dir / "x.log"), "show", "a"])
        assert args.debug
        assert args.log_file == str(temp_dir / "x.log")

    def test_command_required(self, capsys):
        with pytest.raises(SystemExit):
            parse_arguments([])

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            parse_arguments(["--version"])
        assert exc_info.value.code == 0
        assert RESTREAM_VERSION in capsys.readouterr().out

    def test_missing_config(self, temp_dir):
        with pytest.raises(CLIError, match="not found"):
            parse_arguments(["--config", str(temp_dir / "absent.yaml"), "show", "a"])

    def test_config_is_directory(self, temp_dir):
        with pytest.raises(CLIError, match="not a file"):
            parse_arguments(["--config", str(temp_dir), "show", "a"])


class TestConfiguration:
    """Tests for load_configuration and setup_logging."""

    def test_loads_file(self, config_file):
        config = load_configuration(parse_arguments(["--config", str(config_file), "show", "a"]))
        assert config.get(ConfigKey.RULES)[0]["name"] == "greeting"

    def test_cli_overrides(self, temp_dir):
        log_file = str(temp_dir / "restream.log")
        config = load_configuration(parse_arguments(["--debug", "--log-file", log_file, "show", "a"]))
        assert config.get(ConfigKey.LOGGING_LEVEL) == "DEBUG"
        assert config.get(ConfigKey.LOGGING_FILE) == log_file

    def test_invalid_file(self, temp_dir):
        path = temp_dir / "broken.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(CLIError, match="Invalid config format"):
            load_configuration(parse_arguments(["--config", str(path), "show", "a"]))

    def test_setup_logging(self, temp_dir):
        config = ConfigManager(load_environment=False)
        config.set(ConfigKey.LOGGING_LEVEL, "DEBUG")
        config.set(ConfigKey.LOGGING_FILE, str(temp_dir / "restream.log"))

        logger = setup_logging(config)
        try:
            assert get_logger() is logger
            assert logger.get_level() == LogLevel.DEBUG
            assert any(isinstance(h, logging.FileHandler) for h in logger.logger.handlers)
        finally:
            for handler in list(logger.logger.handlers):
                logger.remove_handler(handler)
                handler.close()


class TestShowSource:
    """Tests for show_source."""

    def test_prints_rewritten_source(self, loader, sample_package):
        loader.when().file_name("views").then(lambda s: s.replace(b"hello", b"hola"))
        out = io.StringIO()
        assert show_source(loader, f"{sample_package.name}.views", out) == 0
        assert out.getvalue() == "GREETING = 'hola'\n"

    def test_unrouted(self, loader, sample_package):
        loader.when().fqn("other.module")
        with pytest.raises(CLIError, match="No rule routes module"):
            show_source(loader, f"{sample_package.name}.views", io.StringIO())


class TestRunModule:
    """Tests for run_module."""

    def test_runs_as_main_with_rules(self, registry, sample_package, temp_dir):
        loader = ModuleLoader(
            registry=registry,
            hooks=MetaPathHooks(),
            vendor_dir=str(sample_package.site / "vendor"),
            register=False,
        )
        (sample_package.root / "tool.py").write_text(
            "import sys\n"
            f"from {sample_package.name} import views\n"
            "if __name__ == '__main__':\n"
            "    with open(sys.argv[1], 'w') as f:\n"
            "        f.write(views.GREETING)\n"
        )
        loader.when().file_name("views").then(lambda s: s.replace(b"hello", b"hola"))
        output = temp_dir / "out.txt"
        saved_argv = sys.argv

        assert run_module(loader, f"{sample_package.name}.tool", [str(output)]) == 0

        assert output.read_text() == "hola"
        assert sys.argv is saved_argv
        assert not loader.is_registered()

    def test_unregisters_on_failure(self, loader, sample_package):
        (sample_package.root / "crash.py").write_text("raise RuntimeError('crash')\n")
        with pytest.raises(RuntimeError, match="crash"):
            run_module(loader, f"{sample_package.name}.crash", [])
        assert not loader.is_registered()


class TestMain:
    """Tests for the main entry point."""

    def test_show(self, config_file, sample_package, capsys):
        assert main(["--config", str(config_file), "show", f"{sample_package.name}.views"]) == 0
        assert capsys.readouterr().out == "GREETING = 'bonjour'\n"

    def test_show_unrouted(self, config_file, sample_package, capsys):
        assert main(["--config", str(config_file), "show", f"{sample_package.name}.settings"]) == 1
        assert "No rule routes module" in capsys.readouterr().err

    def test_missing_config(self, temp_dir, capsys):
        assert main(["--config", str(temp_dir / "absent.yaml"), "show", "a"]) == 1
        assert "Configuration file not found" in capsys.readouterr().err

    def test_invalid_rule(self, temp_dir, capsys):
        path = temp_dir / "bad.yaml"
        path.write_text("restream:\n  rules:\n    - match: {file_name_matches: '('}\n")
        assert main(["--config", str(path), "show", "a"]) == 1
        assert "Invalid pattern" in capsys.readouterr().err

    def test_debug_logs_traceback(self, temp_dir, capsys):
        path = temp_dir / "bad.yaml"
        path.write_text("restream:\n  rules:\n    - match: {file_name_matches: '('}\n")
        assert main(["--debug", "--config", str(path), "show", "a"]) == 1
        err = capsys.readouterr().err
        assert "Command failed | exception_type=ValidationError" in err
        assert "Traceback" in err

    def test_run(self, config_file, sample_package, temp_dir):
        (sample_package.root / "tool.py").write_text(
            "import sys\n"
            f"from {sample_package.name} import views\n"
            "with open(sys.argv[1], 'w') as f:\n"
            "    f.write(views.GREETING)\n"
        )
        output = temp_dir / "out.txt"
        assert main(["--config", str(config_file), "run", f"{sample_package.name}.tool", str(output)]) == 0
        assert output.read_text() == "bonjour"

    def test_keyboard_interrupt(self, monkeypatch, capsys):
        def interrupt(args):
            raise KeyboardInterrupt

        monkeypatch.setattr("restream.cli.parse_arguments", interrupt)
        assert main(["show", "a"]) == 130
        assert "Interrupted" in capsys.readouterr().err
