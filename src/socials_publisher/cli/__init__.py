"""Command-line interface for Socials Publisher.

This package is organized by feature:
- core/: Console and settings shared by commands
- connections/: connect, complete-auth, disconnect, connections
- publish/: publish

Usage:
    socials-publisher --help
    socials-publisher connect youtube --user alice
    socials-publisher publish video.mp4 -p youtube -p facebook --user alice
"""

from .app import app, main

__all__ = ["app", "main"]
