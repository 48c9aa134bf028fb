"""
ocacli - interactive shell for browsing a remote device object tree.

Run ``ocacli --host <device>`` (or ``python -m ocacli``) to open a prompt
whose working directory is an object in the device tree.  Navigation and
path resolution live in context.py and resolver.py; commands live in the
commands package; the device side is provided by :mod:`ocadev`.
"""

from __future__ import annotations

from .cli import main

__all__ = ["main"]
__version__ = "0.1.0"
