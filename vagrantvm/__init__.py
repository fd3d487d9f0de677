"""Reconcile a declared Vagrant environment against the machines vagrant manages."""

from __future__ import annotations

__version__ = '0.1.0'
