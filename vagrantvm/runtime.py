"""Runtime helpers for constructing vagrant invocations: argv, environment, deadlines."""

from __future__ import annotations

import os
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from loguru import logger

log = logger

VAGRANT_BIN_ENV = 'VAGRANTVM_VAGRANT_BIN'


def vagrant_cmd(*args: str) -> list[str]:
    return [os.environ.get(VAGRANT_BIN_ENV) or 'vagrant', *args]


def build_environment(env: Mapping[str, Any]) -> list[str] | None:
    """
    Turn a declared environment mapping into ``KEY=VALUE`` strings.

    An empty mapping returns ``None`` rather than ``[]`` so callers can tell
    "no override" apart from an override that happens to be empty. Values are
    converted with ``str``; keys or values containing ``=`` or newlines are
    passed through unescaped.

    Example:
        >>> build_environment({})
        >>> build_environment({'BOX': 'jammy', 'CPUS': 2})
        ['BOX=jammy', 'CPUS=2']
    """
    if not env:
        return None
    items = [f'{key}={value}' for key, value in env.items()]
    log.debug('Environment: {}', items)
    return items


def process_environment(env: list[str] | None) -> dict[str, str] | None:
    """Layer ``KEY=VALUE`` overrides on top of the inherited environment."""
    if env is None:
        return None
    merged = dict(os.environ)
    for item in env:
        key, _, value = item.partition('=')
        merged[key] = value
    return merged


def deadline_from_timeout(timeout_s: float | None) -> float | None:
    """Absolute monotonic deadline, or ``None`` when the timeout is unset or non-positive."""
    if timeout_s is None or timeout_s <= 0:
        return None
    return time.monotonic() + float(timeout_s)


@dataclass(frozen=True)
class CallOptions:
    """Everything a single vagrant invocation needs besides its arguments."""

    workdir: str
    env: Optional[list[str]] = None
    deadline: Optional[float] = None
    cancel: Optional[threading.Event] = field(default=None, compare=False)
