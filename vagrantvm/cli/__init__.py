"""CLI package exports for top-level command entry points."""

from __future__ import annotations

from .main import VagrantVMModalCLI, main

__all__ = ['VagrantVMModalCLI', 'main']
