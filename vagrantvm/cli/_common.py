from __future__ import annotations

import contextlib
import json
import signal
import sys
import threading
from pathlib import Path
from typing import Any, Iterator

import scriptconfig as scfg
import ubelt as ub
from loguru import logger

from ..config import VagrantVMConfig, load

log = logger

DEFAULT_CONFIG_NAME = '.vagrantvm.toml'


class _BaseCommand(scfg.DataConfig):
    """Base options shared by all commands."""

    config = scfg.Value(
        None,
        short_alias=['c'],
        help=f'Path to config TOML (default: {DEFAULT_CONFIG_NAME}).',
    )
    verbose = scfg.Value(
        0,
        short_alias=['v'],
        isflag='counter',
        help='Increase verbosity (-v, -vv).',
    )


def _cfg_path(p: str | None) -> Path:
    return Path(p or DEFAULT_CONFIG_NAME).resolve()


def _load_cfg(config_path: str | None) -> VagrantVMConfig:
    path = _cfg_path(config_path)
    if not path.exists():
        raise FileNotFoundError(
            f'Config not found: {path}. Run: vagrantvm init --config {path}'
        )
    log.debug('Loading config from {}', path)
    return load(path)


@contextlib.contextmanager
def _cancel_on_interrupt() -> Iterator[threading.Event]:
    """Yield an event that is set on SIGINT so running commands get terminated."""
    cancel = threading.Event()
    if threading.current_thread() is not threading.main_thread():
        yield cancel
        return

    def _handler(signum, frame):
        log.warning('Interrupted; terminating running vagrant command')
        cancel.set()

    previous = signal.signal(signal.SIGINT, _handler)
    try:
        yield cancel
    finally:
        signal.signal(signal.SIGINT, previous)


def _emit(data: Any) -> None:
    text = json.dumps(data, indent=2)
    if sys.stdout.isatty():
        text = ub.highlight_code(text, lexer_name='json')
    print(text)
