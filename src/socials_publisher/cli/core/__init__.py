"""Shared CLI utilities."""

from .console import console, print_error, print_info, print_success
from .context import build_publisher, get_settings, load_settings, set_settings

__all__ = [
    "build_publisher",
    "console",
    "get_settings",
    "load_settings",
    "print_error",
    "print_info",
    "print_success",
    "set_settings",
]
