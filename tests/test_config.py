"""Tests for vellum.config: TemplatesConfig frozen dataclass."""

import re

import pytest

from vellum.config import DEFAULT_LAYOUT_TAG, TemplatesConfig


class TestTemplatesConfig:
    def test_defaults(self) -> None:
        cfg = TemplatesConfig()

        assert cfg.autoescape is True
        assert cfg.trim_blocks is False
        assert cfg.lstrip_blocks is False
        assert cfg.layout_tag == DEFAULT_LAYOUT_TAG
        assert cfg.default_layout is None
        assert cfg.layout_types == ("layout",)
        assert cfg.on_load is True
        assert cfg.methods == ()
        assert cfg.rename_key is None
        assert cfg.helper_cwd == "."

    def test_override(self) -> None:
        cfg = TemplatesConfig(default_layout="base", on_load=False, methods=("onPublish",))

        assert cfg.default_layout == "base"
        assert cfg.on_load is False
        assert cfg.methods == ("onPublish",)

    def test_frozen(self) -> None:
        cfg = TemplatesConfig()

        with pytest.raises(AttributeError):
            cfg.on_load = False  # type: ignore[misc]


class TestDefaultLayoutTag:
    @pytest.mark.parametrize("tag", ["{{ content }}", "{{content}}", "{%   body %}", "{% body %}"])
    def test_matches(self, tag: str) -> None:
        assert re.fullmatch(DEFAULT_LAYOUT_TAG, tag)

    @pytest.mark.parametrize("tag", ["{{ contents }}", "{{ body }}", "{% content %}"])
    def test_does_not_match(self, tag: str) -> None:
        assert not re.fullmatch(DEFAULT_LAYOUT_TAG, tag)
