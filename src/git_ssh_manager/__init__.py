"""Top-level package entrypoints for :mod:`git_ssh_manager`.

Importing exposes :func:`git_ssh_manager.main.main` so the CLI script can re-use it.
"""

from .main import main

__all__ = ["main"]
