"""Templating: kida compile/render plus template helper registries."""

from vellum.templating.async_helpers import AsyncHelperCalls
from vellum.templating.engine import Engine, create_environment
from vellum.templating.helpers import HelperRegistry
from vellum.templating.loader import is_glob, load_helpers

__all__ = [
    "AsyncHelperCalls",
    "Engine",
    "HelperRegistry",
    "create_environment",
    "is_glob",
    "load_helpers",
]
