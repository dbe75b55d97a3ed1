"""Tests for build requests and package info."""

import json

import pytest

from simpack.build.brands import Brand
from simpack.build.build_context import BuildRequest, PackageInfo, get_libs, parse_locales_option
from simpack.errors import PreconditionError


class TestParseLocalesOption:
    def test_all_locales(self):
        assert parse_locales_option("*") is None
        assert parse_locales_option(" * ") is None

    def test_comma_separated(self):
        assert parse_locales_option("en, es,fr") == ("en", "es", "fr")

    @pytest.mark.parametrize("value", ["", "   ", ",", None])
    def test_invalid(self, value):
        with pytest.raises(PreconditionError):
            parse_locales_option(value)

    def test_region_suffix(self):
        assert parse_locales_option("zh_CN,ast") == ("zh_CN", "ast")

    @pytest.mark.parametrize("code", ["x/y", "../..", "en.js", "en\\es", "e", "english", "en_", "en_US_x y"])
    def test_malformed_code(self, code):
        with pytest.raises(PreconditionError, match="Invalid locale code"):
            parse_locales_option(f"en,{code}")


class TestBuildRequest:
    def test_defaults(self):
        request = BuildRequest.create("example-sim")

        assert request.brand is Brand.PHET
        assert request.locales is None
        assert request.minify is True
        assert request.mangle is True
        assert request.instrument is False
        assert request.all_html is False

    def test_brand_from_string(self):
        assert BuildRequest.create("example-sim", brand="phet-io").brand is Brand.PHET_IO

    def test_unknown_brand(self):
        with pytest.raises(PreconditionError, match="Unknown brand: acme"):
            BuildRequest.create("example-sim", brand="acme")

    @pytest.mark.parametrize("repo", ["", "  ", "../example-sim", "a/b", "a\\b", ".."])
    def test_invalid_repo(self, repo):
        with pytest.raises(PreconditionError):
            BuildRequest.create(repo)

    def test_path_like_locale_rejected(self):
        with pytest.raises(PreconditionError, match="x/y"):
            BuildRequest.create("example-sim", locales="en,x/y")

    def test_non_bool_flag(self):
        with pytest.raises(PreconditionError, match="minify must be a bool"):
            BuildRequest.create("example-sim", minify="yes")

    def test_frozen(self):
        request = BuildRequest.create("example-sim")
        with pytest.raises(AttributeError):
            request.repo = "other"  # type: ignore[misc]


class TestPackageInfo:
    def _write(self, tmp_path, data):
        repo_dir = tmp_path / "example-sim"
        repo_dir.mkdir()
        (repo_dir / "package.json").write_text(json.dumps(data), encoding="utf-8")
        return repo_dir

    def test_load(self, tmp_path):
        repo_dir = self._write(
            tmp_path,
            {
                "version": "1.2.0",
                "simpack": {
                    "namespace": "EXAMPLE_SIM",
                    "libs": ["joist", "scenery"],
                    "preload": ["sherpa/lib/a.js"],
                    "brandPreload": {"phet-io": ["phet-io/js/b.js"]},
                    "accessible": True,
                },
            },
        )

        info = PackageInfo.load(repo_dir)

        assert info.name == "example-sim"
        assert info.version == "1.2.0"
        assert info.libs == ("joist", "scenery")
        assert info.brand_preload == {"phet-io": ("phet-io/js/b.js",)}
        assert info.accessible is True
        assert info.title_string_key == "EXAMPLE_SIM/example-sim.title"

    def test_missing_file(self, tmp_path):
        with pytest.raises(PreconditionError, match="package.json not found"):
            PackageInfo.load(tmp_path)

    def test_invalid_json(self, tmp_path):
        (tmp_path / "package.json").write_text("{", encoding="utf-8")
        with pytest.raises(PreconditionError, match="Failed to read"):
            PackageInfo.load(tmp_path)

    def test_missing_section(self, tmp_path):
        repo_dir = self._write(tmp_path, {"version": "1.0.0"})
        with pytest.raises(PreconditionError, match="no 'simpack' section"):
            PackageInfo.load(repo_dir)

    def test_missing_namespace(self, tmp_path):
        repo_dir = self._write(tmp_path, {"version": "1.0.0", "simpack": {}})
        with pytest.raises(PreconditionError, match="namespace"):
            PackageInfo.load(repo_dir)


def test_get_libs_sorted_and_deduplicated():
    info = PackageInfo(name="example-sim", version="1.0.0", namespace="EXAMPLE_SIM", libs=("scenery", "joist", "scenery"))
    assert get_libs(info, Brand.PHET) == ("brand", "example-sim", "joist", "scenery")
