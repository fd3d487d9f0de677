"""Top-level modal CLI wiring and logging setup."""

from __future__ import annotations

import os
import sys

import scriptconfig as scfg
from loguru import logger

from .. import engine
from ..config import DEFAULT_NAME, VagrantVMConfig, save
from ..errors import VagrantVMError
from ..schema import render_schema
from ._common import (
    _BaseCommand,
    _cancel_on_interrupt,
    _cfg_path,
    _emit,
    _load_cfg,
    log,
)


class _ResourceCommand(_BaseCommand):
    id = scfg.Value(
        '',
        help='Identity previously returned by create (e.g. vagrant:db:web).',
    )


class CreateCLI(_ResourceCommand):
    """Bring up every machine and print the resulting resource snapshot."""

    @classmethod
    def main(cls, argv=True, **kwargs):
        args = cls.cli(argv=argv, data=kwargs)
        cfg = _load_cfg(args.config).resource_config()
        with _cancel_on_interrupt() as cancel:
            snapshot = engine.create(cfg, cancel=cancel)
        _emit(snapshot.as_dict())
        return 0


class ReadCLI(_ResourceCommand):
    """Refresh the resource; prints null when it must be recreated."""

    @classmethod
    def main(cls, argv=True, **kwargs):
        args = cls.cli(argv=argv, data=kwargs)
        cfg = _load_cfg(args.config).resource_config()
        with _cancel_on_interrupt() as cancel:
            snapshot = engine.read(cfg, args.id, cancel=cancel)
        _emit(None if snapshot is None else snapshot.as_dict())
        return 0


class UpdateCLI(_ResourceCommand):
    """Reload machines, bring up new ones, and print the snapshot."""

    @classmethod
    def main(cls, argv=True, **kwargs):
        args = cls.cli(argv=argv, data=kwargs)
        cfg = _load_cfg(args.config).resource_config()
        with _cancel_on_interrupt() as cancel:
            snapshot = engine.update(cfg, args.id, cancel=cancel)
        _emit(snapshot.as_dict())
        return 0


class DeleteCLI(_ResourceCommand):
    """Destroy every machine of the environment."""

    @classmethod
    def main(cls, argv=True, **kwargs):
        args = cls.cli(argv=argv, data=kwargs)
        cfg = _load_cfg(args.config).resource_config()
        with _cancel_on_interrupt() as cancel:
            identity = engine.delete(cfg, args.id, cancel=cancel)
        _emit({'id': identity})
        return 0


class SchemaCLI(_BaseCommand):
    """Describe the resource attributes."""

    @classmethod
    def main(cls, argv=True, **kwargs):
        cls.cli(argv=argv, data=kwargs)
        print(render_schema())
        return 0


class InitCLI(_BaseCommand):
    """Write a default config file."""

    vagrantfile_dir = scfg.Value('.', help='Directory holding the Vagrantfile.')
    force = scfg.Value(
        False, isflag=True, help='Overwrite an existing config file.'
    )

    @classmethod
    def main(cls, argv=True, **kwargs):
        args = cls.cli(argv=argv, data=kwargs)
        path = _cfg_path(args.config)
        if path.exists() and not args.force:
            print(f'Config already exists: {path}', file=sys.stderr)
            print('Use --force to overwrite it.', file=sys.stderr)
            return 2
        cfg = VagrantVMConfig(
            resource={
                'name': DEFAULT_NAME,
                'vagrantfile_dir': str(args.vagrantfile_dir),
                'get_ports': False,
            }
        )
        save(path, cfg)
        print(f'Wrote config: {path}')
        return 0


class VagrantVMModalCLI(scfg.ModalCLI):
    """Reconcile a Vagrantfile environment with the machines vagrant manages."""

    init = InitCLI
    schema = SchemaCLI
    create = CreateCLI
    read = ReadCLI
    update = UpdateCLI
    delete = DeleteCLI


def main(argv: list[str] | None = None) -> None:
    verbosity = 1
    if argv is None:
        argv = sys.argv[1:]
    config_value = _config_from_argv(argv)
    try:
        if config_value is not None or _cfg_path(None).exists():
            verbosity = _load_cfg(config_value).verbosity
    except (OSError, VagrantVMError):
        verbosity = 1

    _setup_logging(_count_verbose(argv), verbosity)

    try:
        rc = VagrantVMModalCLI.main(argv=argv, _noexit=True)
    except (VagrantVMError, FileNotFoundError) as ex:
        print(f'ERROR: {ex}', file=sys.stderr)
        log.error('Unhandled vagrantvm error: {}', ex)
        sys.exit(2)

    if any(flag in argv for flag in ('-h', '--help')):
        sys.exit(0)
    if isinstance(rc, int):
        sys.exit(rc)
    sys.exit(0)


def _setup_logging(args_verbose: int, cfg_verbosity: int) -> None:
    logger.remove()
    effective_verbosity = args_verbose if args_verbose > 0 else cfg_verbosity
    level = 'WARNING'
    if effective_verbosity == 1:
        level = 'INFO'
    elif effective_verbosity >= 2:
        level = 'DEBUG'
    colorize = sys.stderr.isatty() and os.getenv('NO_COLOR') is None
    logger.add(
        sys.stderr,
        level=level,
        colorize=colorize,
        format='<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>',
    )
    log.debug(
        'Logging configured at {} (effective_verbosity={}, colorize={})',
        level,
        effective_verbosity,
        colorize,
    )


def _count_verbose(argv: list[str]) -> int:
    count = 0
    for item in argv:
        if item == '--verbose':
            count += 1
        elif item.startswith('-') and not item.startswith('--'):
            short = item[1:]
            if short and set(short) <= {'v'}:
                count += len(short)
    return count


def _config_from_argv(argv: list[str]) -> str | None:
    """Find the --config / -c value early so logging can use its verbosity."""
    for i, item in enumerate(argv):
        if item.startswith('--config='):
            return item.split('=', 1)[1]
        if item in {'--config', '-c'} and i + 1 < len(argv):
            return argv[i + 1]
    return None
