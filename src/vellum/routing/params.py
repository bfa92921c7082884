"""Path parameter patterns.

Built-in patterns for segments like ``{id:int}``. ``:name`` parameters
use the ``str`` pattern. Captured values are always strings.
"""

PARAM_PATTERNS: dict[str, str] = {
    "str": r"[^/]+",
    "int": r"\d+",
    "float": r"\d+(?:\.\d+)?",
    "path": r".+",
}
