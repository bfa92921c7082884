"""Glob-based helper loading.

Resolves glob patterns to Python files and collects the helpers each
module exports. Modeled on how page discovery loads ``_context.py``
modules: each file is imported in an isolated module namespace.
"""

from __future__ import annotations

import glob
import importlib.util
import logging
from collections.abc import Mapping, Sequence
from pathlib import Path
from types import ModuleType
from typing import Any

logger = logging.getLogger("vellum.helpers")

_GLOB_CHARS = frozenset("*?[")


def is_glob(value: Any) -> bool:
    """Return True for a glob string or a non-empty sequence of them."""
    if isinstance(value, str):
        return any(char in value for char in _GLOB_CHARS)
    if isinstance(value, Sequence) and not isinstance(value, (bytes, bytearray)) and value:
        return all(isinstance(v, str) for v in value) and any(is_glob(v) for v in value)
    return False


def load_helpers(patterns: str | Sequence[str], *, cwd: str | Path = ".") -> dict[str, Any]:
    """Import every ``.py`` file matching *patterns* and collect helpers.

    A module exporting a ``helpers`` mapping contributes that mapping
    under the module's stem. Otherwise its public callables are used:
    the names in ``__all__`` if defined, else the functions defined in
    the module itself.

    Returns an empty dict when nothing matches.
    """
    if isinstance(patterns, str):
        patterns = [patterns]

    found: dict[str, Any] = {}
    for pattern in patterns:
        for match in sorted(glob.glob(pattern, root_dir=str(cwd), recursive=True)):
            file = Path(cwd, match)
            if not file.is_file() or file.suffix != ".py":
                continue
            module = _load_module(file)
            if module is None:
                continue
            exported = getattr(module, "helpers", None)
            if isinstance(exported, Mapping):
                found[file.stem] = dict(exported)
                continue
            found.update(_module_helpers(module))

    logger.debug("loaded %d helper(s) from %r", len(found), patterns)
    return found


def _load_module(file: Path) -> ModuleType | None:
    spec = importlib.util.spec_from_file_location(f"_vellum_helpers_{file.stem}", file)
    if spec is None or spec.loader is None:
        return None
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def _module_helpers(module: ModuleType) -> dict[str, Any]:
    names = getattr(module, "__all__", None)
    if names is not None:
        return {name: getattr(module, name) for name in names if callable(getattr(module, name, None))}
    return {
        name: value
        for name, value in vars(module).items()
        if not name.startswith("_")
        and callable(value)
        and getattr(value, "__module__", None) == module.__name__
    }
