"""Templates configuration.

``TemplatesConfig`` is shared by the app, its collections and the kida
engine. It is frozen; build a new one to change settings.
"""

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

# Matches ``{{ content }}`` and ``{% body %}`` insertion points
DEFAULT_LAYOUT_TAG = r"\{\{\s*content\s*\}\}|\{%\s*body\s*%\}"


@dataclass(frozen=True, slots=True)
class TemplatesConfig:
    """Templates configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = TemplatesConfig(default_layout="base", autoescape=False)
    """

    # Kida environment
    autoescape: bool = True
    trim_blocks: bool = False
    lstrip_blocks: bool = False

    # Layouts
    layout_tag: str = DEFAULT_LAYOUT_TAG
    default_layout: str | None = None
    layout_types: tuple[str, ...] = ("layout",)

    # Dispatch
    on_load: bool = True
    methods: tuple[str, ...] = ()  # Extra stage names beyond the built-ins

    # Collections
    rename_key: Callable[[str], str] | None = None

    # Helper globs are resolved relative to this directory
    helper_cwd: str | Path = "."
