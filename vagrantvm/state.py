"""Resource identity, existence, and snapshot projection for vagrant environments."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional, Sequence

from loguru import logger

from .errors import PartialReadFailure
from .gateway import ForwardedPort, SSHConfigEntry

log = logger

IDENTITY_PREFIX = 'vagrant'
IDENTITY_SEP = ':'
RUNNING = 'running'
NOT_CREATED = 'not_created'


@dataclass(frozen=True)
class SSHEndpoint:
    user: str
    host: str
    port: str
    private_key: str = ''
    type: str = 'ssh'
    # vagrant never reports whether agent forwarding is in use.
    agent: str = 'false'

    def as_dict(self) -> dict[str, str]:
        return {
            'type': self.type,
            'user': self.user,
            'host': self.host,
            'port': self.port,
            'private_key': self.private_key,
            'agent': self.agent,
        }


@dataclass
class ResourceSnapshot:
    identity: str
    machine_names: list[str] = field(default_factory=list)
    ssh_config: list[SSHEndpoint] = field(default_factory=list)
    ports: list[list[ForwardedPort]] = field(default_factory=list)
    connection_info: Optional[SSHEndpoint] = None

    def as_dict(self) -> dict:
        return {
            'id': self.identity,
            'machine_names': list(self.machine_names),
            'ssh_config': [c.as_dict() for c in self.ssh_config],
            'ports': [
                [{'guest': p.guest, 'host': p.host} for p in machine_ports]
                for machine_ports in self.ports
            ],
            'connection_info': (
                self.connection_info.as_dict()
                if self.connection_info is not None
                else None
            ),
        }


def build_identity(machines: Mapping[str, object] | Sequence[str]) -> str:
    """
    Derive the resource identity from the machine names brought up.

    Example:
        >>> build_identity({'web': None, 'db': None})
        'vagrant:db:web'
        >>> build_identity({})
        'vagrant'
    """
    return IDENTITY_SEP.join([IDENTITY_PREFIX, *sorted(machines)])


def resource_exists(statuses: Mapping[str, str]) -> bool:
    """
    True only when every machine is running.

    Halted or suspended machines count as missing so the resource gets
    recreated instead of resumed.
    """
    return all(state == RUNNING for state in statuses.values())


def read_private_key(path: str) -> str:
    if not path:
        raise PartialReadFailure('no IdentityFile reported')
    try:
        return Path(path).expanduser().read_text(encoding='utf-8')
    except (OSError, UnicodeDecodeError) as ex:
        raise PartialReadFailure(f'cannot read private key {path}: {ex}') from ex


def endpoint_from_ssh_config(entry: SSHConfigEntry) -> SSHEndpoint:
    try:
        private_key = read_private_key(entry.identity_file)
    except PartialReadFailure as ex:
        log.warning('Machine {}: {}', entry.name, ex)
        private_key = ''
    return SSHEndpoint(
        user=entry.user,
        host=entry.hostname,
        port=str(entry.port),
        private_key=private_key,
    )


def project_snapshot(
    identity: str,
    configs: Mapping[str, SSHConfigEntry],
    ports: Optional[Mapping[str, list[ForwardedPort]]] = None,
) -> ResourceSnapshot:
    """
    Build the output snapshot from ssh-config (and optional port) results.

    Machine order follows ``configs``; ``ssh_config[i]`` and ``ports[i]``
    always describe ``machine_names[i]``. Without ``ports`` every machine
    gets an empty list.
    """
    names = list(configs)
    endpoints = [endpoint_from_ssh_config(configs[name]) for name in names]
    if ports is None:
        port_lists: list[list[ForwardedPort]] = [[] for _ in names]
    else:
        port_lists = [list(ports.get(name, [])) for name in names]
    return ResourceSnapshot(
        identity=identity,
        machine_names=names,
        ssh_config=endpoints,
        ports=port_lists,
        connection_info=endpoints[0] if len(endpoints) == 1 else None,
    )
