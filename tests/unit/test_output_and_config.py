"""Tests for the output module and workspace configuration."""

import io
from pathlib import Path

import pytest

from simpack import output
from simpack.config import SimpackConfig, get_default_root, get_npx_command


class TestOutput:
    def test_timestamp_prefix(self, log_output):
        output.init_timer(log_output)
        output.log("hello")

        line = log_output.getvalue()
        assert line.endswith(" hello\n")
        assert line[:8].count(":") == 1

    def test_phase_and_detail(self, log_output):
        output.log_phase(2, 7, "Deriving code artifacts...")
        output.log_detail("Production: 10 bytes")

        text = log_output.getvalue()
        assert "[2/7] Deriving code artifacts..." in text
        assert "      Production: 10 bytes" in text

    def test_verbose_only_dropped_when_quiet(self, log_output):
        output.set_verbose(False)
        output.log("hidden", verbose_only=True)
        output.log_artifact(Path("a.html"), 3)
        output.log_warning("shown")

        assert log_output.getvalue().strip().endswith("WARNING: shown")
        assert "hidden" not in log_output.getvalue()
        assert "a.html" not in log_output.getvalue()

    def test_timed_logger(self, log_output):
        with output.TimedLogger("Resolving shared inputs", phase=(1, 7)) as timed:
            timed.detail("Locales: en")

        text = log_output.getvalue()
        assert "[1/7] Resolving shared inputs..." in text
        assert "Locales: en" in text
        assert "Done (" in text

    def test_timed_logger_no_done_on_error(self, log_output):
        with pytest.raises(RuntimeError):
            with output.TimedLogger("Failing"):
                raise RuntimeError("boom")

        assert "Done (" not in log_output.getvalue()

    def test_init_timer_keeps_stream_when_none(self):
        stream = io.StringIO()
        output.init_timer(stream)
        output.init_timer()
        output.log("x")
        assert stream.getvalue().endswith(" x\n")


class TestConfig:
    def test_default_root_from_environment(self, monkeypatch, tmp_path):
        monkeypatch.setenv("SIMPACK_ROOT", str(tmp_path))
        assert get_default_root() == tmp_path

    def test_default_root_is_parent_of_cwd(self, monkeypatch, tmp_path):
        monkeypatch.delenv("SIMPACK_ROOT", raising=False)
        repo = tmp_path / "example-sim"
        repo.mkdir()
        monkeypatch.chdir(repo)
        assert get_default_root().resolve() == tmp_path.resolve()

    def test_npx_command(self, monkeypatch):
        monkeypatch.delenv("SIMPACK_NPX", raising=False)
        assert get_npx_command() == ("npx",)
        monkeypatch.setenv("SIMPACK_NPX", "npx --no-install")
        assert get_npx_command() == ("npx", "--no-install")

    def test_from_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("SIMPACK_NPX", "pnpm exec")
        config = SimpackConfig.from_env(root=tmp_path, verbose=True)

        assert config.root == tmp_path.resolve()
        assert config.npx == ("pnpm", "exec")
        assert config.verbose
        assert config.build_dir("example-sim", "phet") == tmp_path.resolve() / "example-sim" / "build" / "phet"
