"""Vagrant CLI gateway: run subcommands in a working directory and parse their output."""

from __future__ import annotations

from dataclasses import dataclass, field

from loguru import logger

from .runtime import CallOptions, process_environment, vagrant_cmd
from .util import CmdResult, run_cmd

log = logger


@dataclass(frozen=True)
class MachineLine:
    """One ``timestamp,target,type,data...`` record of machine-readable output."""

    timestamp: str
    target: str
    kind: str
    data: tuple[str, ...]


@dataclass(frozen=True)
class MachineInfo:
    name: str
    provider: str = ''


@dataclass(frozen=True)
class SSHConfigEntry:
    """The fields of one ``Host`` block printed by ``vagrant ssh-config``."""

    name: str
    hostname: str = ''
    user: str = ''
    port: int = 22
    identity_file: str = ''
    options: dict[str, str] = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class ForwardedPort:
    guest: int
    host: int


_ESCAPES = (
    ('%!(VAGRANT_COMMA)', ','),
    ('\\n', '\n'),
    ('\\r', '\r'),
)


def _unescape(text: str) -> str:
    for needle, repl in _ESCAPES:
        text = text.replace(needle, repl)
    return text


def parse_machine_readable(text: str) -> list[MachineLine]:
    lines: list[MachineLine] = []
    for raw in (text or '').splitlines():
        parts = raw.rstrip('\r').split(',')
        if len(parts) < 3:
            continue
        timestamp, target, kind, *data = parts
        lines.append(
            MachineLine(
                timestamp=timestamp,
                target=target,
                kind=kind,
                data=tuple(_unescape(d) for d in data),
            )
        )
    return lines


def parse_states(text: str) -> dict[str, str]:
    """Map machine name to state token from ``state`` records, in output order."""
    states: dict[str, str] = {}
    for line in parse_machine_readable(text):
        if line.kind == 'state' and line.target and line.data:
            states[line.target] = line.data[0]
    return states


def parse_machine_info(text: str) -> dict[str, MachineInfo]:
    machines: dict[str, MachineInfo] = {}
    for line in parse_machine_readable(text):
        if not line.target:
            continue
        if line.kind == 'metadata' and len(line.data) >= 2:
            if line.data[0] == 'provider':
                machines[line.target] = MachineInfo(line.target, line.data[1])
    return machines


def parse_forwarded_ports(text: str) -> list[ForwardedPort]:
    ports: list[ForwardedPort] = []
    for line in parse_machine_readable(text):
        if line.kind != 'forwarded_port' or len(line.data) < 2:
            continue
        try:
            ports.append(ForwardedPort(int(line.data[0]), int(line.data[1])))
        except ValueError:
            log.warning('Ignoring malformed forwarded_port record: {}', line)
    return ports


def parse_ssh_config(text: str) -> dict[str, SSHConfigEntry]:
    """
    Parse OpenSSH ``Host`` blocks as printed by ``vagrant ssh-config``.

    Example:
        >>> text = 'Host web\\n  HostName 127.0.0.1\\n  User vagrant\\n  Port 2222\\n'
        >>> parse_ssh_config(text)['web'].port
        2222
    """
    blocks: list[tuple[str, dict[str, str]]] = []
    for raw in (text or '').splitlines():
        stripped = raw.strip()
        if not stripped or stripped.startswith('#'):
            continue
        key, _, value = stripped.partition(' ')
        value = value.strip().strip('"')
        if key.lower() == 'host':
            blocks.append((value, {}))
        elif blocks:
            # First occurrence wins, as with ssh itself.
            blocks[-1][1].setdefault(key.lower(), value)

    configs: dict[str, SSHConfigEntry] = {}
    for name, opts in blocks:
        port_text = opts.get('port', '22')
        try:
            port = int(port_text)
        except ValueError:
            log.warning('Bad Port {!r} for host {}; using 22', port_text, name)
            port = 22
        configs[name] = SSHConfigEntry(
            name=name,
            hostname=opts.get('hostname', ''),
            user=opts.get('user', ''),
            port=port,
            identity_file=opts.get('identityfile', ''),
            options=opts,
        )
    return configs


def _run(opts: CallOptions, *args: str) -> CmdResult:
    return run_cmd(
        vagrant_cmd(*args),
        cwd=opts.workdir,
        env=process_environment(opts.env),
        deadline=opts.deadline,
        cancel=opts.cancel,
    )


def up(opts: CallOptions, *, parallel: bool = True) -> dict[str, MachineInfo]:
    flag = '--parallel' if parallel else '--no-parallel'
    res = _run(opts, 'up', '--machine-readable', flag)
    return parse_machine_info(res.stdout)


def status(opts: CallOptions) -> dict[str, str]:
    res = _run(opts, 'status', '--machine-readable')
    return parse_states(res.stdout)


def reload(opts: CallOptions) -> dict[str, str]:
    """
    Halt and restart every known machine.

    Machines that were never created are left alone. The returned mapping
    only holds whatever ``state`` records the tool printed, which may be
    none; callers wanting a full picture should follow up with
    :func:`status`.
    """
    res = _run(opts, 'reload', '--machine-readable')
    return parse_states(res.stdout)


def destroy(opts: CallOptions) -> None:
    _run(opts, 'destroy', '--force', '--machine-readable')


def ssh_config(opts: CallOptions) -> dict[str, SSHConfigEntry]:
    res = _run(opts, 'ssh-config')
    return parse_ssh_config(res.stdout)


def port(opts: CallOptions, machine: str) -> list[ForwardedPort]:
    res = _run(opts, 'port', '--machine-readable', machine)
    return parse_forwarded_ports(res.stdout)
