"""Tests for the dependency, license and supplemental-file collaborators."""

import asyncio
import json
from unittest.mock import patch

import pytest

from simpack.build.brands import Brand
from simpack.collaborators.dependencies import GitDependencyResolver, get_git_revision
from simpack.collaborators.supplemental import WrapperCopier
from simpack.collaborators.third_party import LicenseFileResolver
from simpack.config import SimpackConfig
from simpack.errors import PreconditionError, ToolInvocationError


def _run(coro):
    return asyncio.run(coro)


def _fake_git(cmd, input_text=None, cwd=None, env=None):
    if cmd[-2:] == ["--abbrev-ref", "HEAD"]:
        return "main\n"
    return f"sha-of-{cwd.name}\n"


class TestDependencies:
    @patch("simpack.collaborators.dependencies.run_tool", side_effect=_fake_git)
    def test_get_git_revision(self, mock_run_tool, tmp_path):
        assert get_git_revision(tmp_path) == {"sha": f"sha-of-{tmp_path.name}", "branch": "main"}
        assert mock_run_tool.call_count == 2

    @patch("simpack.collaborators.dependencies.run_tool", side_effect=_fake_git)
    def test_resolve_sorted_and_skips_missing(self, mock_run_tool, workspace, log_output):
        resolver = GitDependencyResolver(SimpackConfig(root=workspace))

        manifest = _run(resolver.resolve("example-sim", ["joist", "babel", "not-checked-out"]))

        assert list(manifest) == ["babel", "example-sim", "joist"]
        assert manifest["joist"] == {"sha": "sha-of-joist", "branch": "main"}
        assert "not-checked-out is not checked out" in log_output.getvalue()

    @patch("simpack.collaborators.dependencies.run_tool")
    def test_git_failure_propagates(self, mock_run_tool, workspace):
        mock_run_tool.side_effect = ToolInvocationError("git failed", ["git"], 128, "not a git repository")
        resolver = GitDependencyResolver(SimpackConfig(root=workspace))

        with pytest.raises(ToolInvocationError):
            _run(resolver.resolve("example-sim", []))


class TestLicenses:
    def test_merge_and_conflict(self, workspace, log_output):
        (workspace / "sherpa" / "third-party-licenses.json").write_text(
            json.dumps({"lodash": {"license": "BSD"}, "jquery": {"license": "MIT"}}), encoding="utf-8"
        )
        resolver = LicenseFileResolver(SimpackConfig(root=workspace))

        entries = resolver.get_entries("example-sim", Brand.PHET, ["sherpa", "joist"])

        assert list(entries) == ["jquery", "lodash"]
        # joist sorts before sherpa, so its entry wins
        assert entries["lodash"]["license"] == "MIT"
        assert "Conflicting license entry 'lodash' in sherpa" in log_output.getvalue()

    def test_invalid_file(self, workspace):
        (workspace / "joist" / "third-party-licenses.json").write_text("{", encoding="utf-8")
        with pytest.raises(PreconditionError):
            LicenseFileResolver(SimpackConfig(root=workspace)).get_entries("example-sim", Brand.PHET, ["joist"])


class TestWrapperCopier:
    def test_copies_and_fills_placeholders(self, workspace, tmp_path):
        wrappers = workspace / "phet-io" / "wrappers"
        (wrappers / "studio").mkdir(parents=True)
        (wrappers / "studio" / "index.html").write_text("<title>{{REPO}} {{VERSION}}</title>", encoding="utf-8")
        (wrappers / "logo.png").write_bytes(b"\x89PNG{{REPO}}")
        build_dir = tmp_path / "build"
        build_dir.mkdir()

        written = _run(WrapperCopier(SimpackConfig(root=workspace)).copy("example-sim", "1.2.0", build_dir))

        assert sorted(p.relative_to(build_dir).as_posix() for p in written) == [
            "wrappers/logo.png",
            "wrappers/studio/index.html",
        ]
        assert (build_dir / "wrappers" / "studio" / "index.html").read_text(encoding="utf-8") == "<title>example-sim 1.2.0</title>"
        assert (build_dir / "wrappers" / "logo.png").read_bytes() == b"\x89PNG{{REPO}}"

    def test_missing_wrappers(self, workspace, tmp_path):
        with pytest.raises(PreconditionError, match="Supplemental wrappers not found"):
            _run(WrapperCopier(SimpackConfig(root=workspace)).copy("example-sim", "1.2.0", tmp_path))
