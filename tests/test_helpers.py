"""Tests for vellum.templating.helpers and vellum.templating.loader."""

from pathlib import Path

import pytest

from vellum.templating.helpers import HelperRegistry
from vellum.templating.loader import is_glob, load_helpers


class TestHelperRegistry:
    def test_set_and_get(self) -> None:
        registry = HelperRegistry()
        registry.set("upper", str.upper)
        assert registry.get("upper") is str.upper
        assert "upper" in registry
        assert len(registry) == 1

    def test_missing_returns_none(self) -> None:
        assert HelperRegistry().get("missing") is None

    def test_replace(self) -> None:
        registry = HelperRegistry()
        registry.set("f", str.upper)
        registry.set("f", str.lower)
        assert registry.get("f") is str.lower

    def test_not_callable(self) -> None:
        with pytest.raises(TypeError, match="async helper 'x'"):
            HelperRegistry("async").set("x", 42)  # type: ignore[arg-type]

    def test_remove(self) -> None:
        registry = HelperRegistry()
        registry.set("f", str.upper)
        registry.remove("f")
        registry.remove("f")
        assert "f" not in registry

    def test_as_dict_is_a_copy(self) -> None:
        registry = HelperRegistry()
        registry.set("f", str.upper)
        registry.as_dict().clear()
        assert list(registry) == ["f"]


class TestIsGlob:
    @pytest.mark.parametrize("value", ["*.py", "helpers/**/*.py", "h?.py", ["a.py", "b/*.py"]])
    def test_globs(self, value: object) -> None:
        assert is_glob(value)

    @pytest.mark.parametrize("value", ["helpers.py", [], [{"a": 1}], {"a": 1}, 42])
    def test_not_globs(self, value: object) -> None:
        assert not is_glob(value)


class TestLoadHelpers:
    def test_module_functions(self, tmp_path: Path) -> None:
        (tmp_path / "text.py").write_text(
            "import os\n"
            "def shout(s):\n    return s.upper()\n"
            "def _private():\n    pass\n"
        )
        helpers = load_helpers("*.py", cwd=tmp_path)
        assert set(helpers) == {"shout"}
        assert helpers["shout"]("a") == "A"

    def test_dunder_all(self, tmp_path: Path) -> None:
        (tmp_path / "math_helpers.py").write_text(
            "__all__ = ['double']\n"
            "def double(n):\n    return n * 2\n"
            "def triple(n):\n    return n * 3\n"
        )
        helpers = load_helpers("*.py", cwd=tmp_path)
        assert set(helpers) == {"double"}

    def test_helpers_mapping_nested_under_stem(self, tmp_path: Path) -> None:
        (tmp_path / "dates.py").write_text("helpers = {'year': lambda: 2024}\n")
        helpers = load_helpers("*.py", cwd=tmp_path)
        assert set(helpers) == {"dates"}
        assert helpers["dates"]["year"]() == 2024

    def test_recursive_glob(self, tmp_path: Path) -> None:
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        (nested / "deep.py").write_text("def deep():\n    return 1\n")
        assert set(load_helpers("**/*.py", cwd=tmp_path)) == {"deep"}

    def test_non_python_files_skipped(self, tmp_path: Path) -> None:
        (tmp_path / "notes.txt").write_text("hi")
        assert load_helpers("*", cwd=tmp_path) == {}

    def test_no_matches(self, tmp_path: Path) -> None:
        assert load_helpers(["*.py", "lib/*.py"], cwd=tmp_path) == {}
