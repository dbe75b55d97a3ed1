"""Tests for the JSON string resolver."""

import json

import pytest

from simpack.collaborators.strings import JsonStringResolver, read_string_file
from simpack.config import SimpackConfig
from simpack.errors import PreconditionError


@pytest.fixture
def resolver(workspace):
    return JsonStringResolver(SimpackConfig(root=workspace))


def test_get_locales(resolver):
    assert resolver.get_locales("example-sim") == ["es", "fr"]


def test_get_locales_without_translations(resolver):
    assert resolver.get_locales("joist") == []


def test_fallback_keys_are_namespaced(resolver):
    string_map = resolver.get_string_map(("en",), ("example-sim", "joist"))

    assert string_map == {
        "en": {
            "EXAMPLE_SIM/example-sim.title": "Example Sim",
            "EXAMPLE_SIM/greeting": "Hello",
            "JOIST/menu": "Menu",
        }
    }


def test_translations_filled_from_fallback(resolver):
    string_map = resolver.get_string_map(("en", "es", "fr"), ("example-sim", "joist"))

    assert string_map["es"]["EXAMPLE_SIM/example-sim.title"] == "Simulación"
    assert string_map["es"]["EXAMPLE_SIM/greeting"] == "Hello"
    assert string_map["fr"]["EXAMPLE_SIM/greeting"] == "Bonjour"
    assert string_map["fr"]["JOIST/menu"] == "Menu"


def test_libs_without_strings_are_skipped(resolver):
    string_map = resolver.get_string_map(("en",), ("brand", "sherpa"))
    assert string_map == {"en": {}}


def test_strings_without_package_json(resolver, workspace):
    (workspace / "scenery").mkdir()
    (workspace / "scenery" / "scenery-strings_en.json").write_text("{}", encoding="utf-8")

    with pytest.raises(PreconditionError, match="scenery has strings but no package.json"):
        resolver.get_string_map(("en",), ("scenery",))


class TestReadStringFile:
    def test_value_objects_and_plain_strings(self, tmp_path):
        path = tmp_path / "s.json"
        path.write_text(json.dumps({"a": {"value": "A"}, "b": "B"}), encoding="utf-8")
        assert read_string_file(path) == {"a": "A", "b": "B"}

    def test_malformed_entry(self, tmp_path):
        path = tmp_path / "s.json"
        path.write_text(json.dumps({"a": 3}), encoding="utf-8")
        with pytest.raises(PreconditionError, match="Malformed entry 'a'"):
            read_string_file(path)

    def test_not_an_object(self, tmp_path):
        path = tmp_path / "s.json"
        path.write_text("[]", encoding="utf-8")
        with pytest.raises(PreconditionError, match="must contain a JSON object"):
            read_string_file(path)
