"""Declared resource configuration: typed dataclasses, validation, and TOML load/save."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

from .errors import ConfigurationError
from .util import expand

VAGRANTFILE = 'Vagrantfile'
DEFAULT_NAME = 'vagrantbox'
DEFAULT_VAGRANTFILE_DIR = '.'
# Suggested create timeout; the default configuration imposes no deadline.
DEFAULT_CREATE_TIMEOUT = 120.0

OPERATIONS = ('create', 'read', 'update', 'delete')


def validate_vagrantfile_dir(path: str) -> Path:
    """Return the resolved Vagrantfile path or raise :class:`ConfigurationError`."""
    vagrantfile = Path(expand(path)) / VAGRANTFILE
    try:
        vagrantfile.stat()
    except OSError as ex:
        raise ConfigurationError(f'{VAGRANTFILE} not usable: {ex}') from ex
    return vagrantfile


@dataclass(frozen=True)
class Timeouts:
    """Per-operation timeouts in seconds; zero or negative means none."""

    create: float = 0.0
    read: float = 0.0
    update: float = 0.0
    delete: float = 0.0

    def for_operation(self, op: str) -> float:
        if op not in OPERATIONS:
            raise ValueError(f'unknown operation {op!r}')
        return float(getattr(self, op))


@dataclass(frozen=True)
class ResourceConfig:
    name: str = DEFAULT_NAME
    vagrantfile_dir: str = DEFAULT_VAGRANTFILE_DIR
    env: dict[str, str] = field(default_factory=dict)
    get_ports: bool = False
    timeouts: Timeouts = field(default_factory=Timeouts)

    @property
    def workdir(self) -> str:
        return expand(self.vagrantfile_dir)

    def validate(self) -> 'ResourceConfig':
        validate_vagrantfile_dir(self.vagrantfile_dir)
        return self

    @classmethod
    def from_mapping(
        cls, raw: Mapping[str, Any], *, timeouts: Timeouts | None = None
    ) -> 'ResourceConfig':
        """
        Convert a loosely typed attribute mapping into a validated config.

        Missing keys take their defaults. Wrong types raise
        :class:`ConfigurationError` and so does a directory without a
        Vagrantfile.
        """
        unknown = set(raw) - {'name', 'vagrantfile_dir', 'env', 'get_ports'}
        if unknown:
            raise ConfigurationError(
                f'Unknown resource attributes: {", ".join(sorted(unknown))}'
            )
        name = raw.get('name', DEFAULT_NAME)
        vagrantfile_dir = raw.get('vagrantfile_dir', DEFAULT_VAGRANTFILE_DIR)
        env = raw.get('env') or {}
        get_ports = raw.get('get_ports', False)
        if not isinstance(name, str) or not name:
            raise ConfigurationError('name must be a non-empty string')
        if not isinstance(vagrantfile_dir, str):
            raise ConfigurationError('vagrantfile_dir must be a string')
        if not isinstance(env, Mapping):
            raise ConfigurationError('env must be a mapping of strings')
        if not isinstance(get_ports, bool):
            raise ConfigurationError('get_ports must be a boolean')
        cfg = cls(
            name=name,
            vagrantfile_dir=vagrantfile_dir,
            env={str(k): str(v) for k, v in env.items()},
            get_ports=get_ports,
            timeouts=timeouts or Timeouts(),
        )
        return cfg.validate()


@dataclass
class VagrantVMConfig:
    """Contents of a ``.vagrantvm.toml`` file."""

    resource: dict[str, Any] = field(default_factory=dict)
    timeouts: Timeouts = field(default_factory=Timeouts)
    verbosity: int = 1

    def resource_config(self) -> ResourceConfig:
        return ResourceConfig.from_mapping(self.resource, timeouts=self.timeouts)


def _timeouts_from_dict(raw: Any) -> Timeouts:
    if not isinstance(raw, dict):
        return Timeouts()
    values: dict[str, float] = {}
    for op in OPERATIONS:
        if op in raw:
            try:
                values[op] = float(raw[op])
            except (TypeError, ValueError) as ex:
                raise ConfigurationError(
                    f'timeouts.{op} must be a number of seconds'
                ) from ex
    return Timeouts(**values)


def _toml_escape(s: str) -> str:
    return s.replace('\\', '\\\\').replace('"', '\\"')


def _toml_value(val: object) -> str:
    if isinstance(val, bool):
        return 'true' if val else 'false'
    if isinstance(val, (int, float)):
        return str(val)
    return f'"{_toml_escape(str(val))}"'


def dump_toml(cfg: VagrantVMConfig) -> str:
    lines: list[str] = []
    if cfg.verbosity != 1:
        lines.append(f'verbosity = {cfg.verbosity}')
        lines.append('')
    lines.append('[resource]')
    env: Mapping[str, Any] = {}
    for key, val in cfg.resource.items():
        if key == 'env':
            env = val or {}
            continue
        lines.append(f'{key} = {_toml_value(val)}')
    lines.append('')
    if env:
        lines.append('[resource.env]')
        for key, val in env.items():
            lines.append(f'"{_toml_escape(str(key))}" = {_toml_value(str(val))}')
        lines.append('')
    lines.append('[timeouts]')
    for op in OPERATIONS:
        lines.append(f'{op} = {cfg.timeouts.for_operation(op)}')
    return '\n'.join(lines).rstrip() + '\n'


def loads(text: str) -> VagrantVMConfig:
    try:
        raw = tomllib.loads(text)
    except tomllib.TOMLDecodeError as ex:
        raise ConfigurationError(f'Invalid config TOML: {ex}') from ex
    cfg = VagrantVMConfig()
    resource = raw.get('resource', {})
    if not isinstance(resource, dict):
        raise ConfigurationError('[resource] must be a table')
    cfg.resource = dict(resource)
    cfg.timeouts = _timeouts_from_dict(raw.get('timeouts'))
    if 'verbosity' in raw:
        cfg.verbosity = int(raw['verbosity'])
    return cfg


def load(path: Path) -> VagrantVMConfig:
    return loads(path.read_text(encoding='utf-8'))


def save(path: Path, cfg: VagrantVMConfig) -> None:
    path.write_text(dump_toml(cfg), encoding='utf-8')
