"""Attribute schema of the vagrant_vm resource and its description rendering."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from .config import DEFAULT_NAME, DEFAULT_VAGRANTFILE_DIR


@dataclass(frozen=True)
class Attribute:
    name: str
    type: str
    description: str
    default: Optional[Any] = None
    computed: bool = False
    force_new: bool = False
    deprecated: str = ''
    nested: tuple[Attribute, ...] = ()


SSH_CONFIG_ATTRIBUTES: tuple[Attribute, ...] = (
    Attribute(
        'type',
        'string',
        'Connection type. Only valid option is ssh at this time.',
        computed=True,
    ),
    Attribute('user', 'string', 'The user for the connection.', computed=True),
    Attribute(
        'host',
        'string',
        'The address of the resource to connect to.',
        computed=True,
    ),
    Attribute('port', 'string', 'The port to connect to.', computed=True),
    Attribute(
        'private_key',
        'string',
        'Private SSH key for the connection.',
        computed=True,
    ),
    Attribute(
        'agent',
        'string',
        'Whether or not to use the agent to authenticate.',
        computed=True,
    ),
)

PORT_ATTRIBUTES: tuple[Attribute, ...] = (
    Attribute('guest', 'number', 'The port on the guest machine.', computed=True),
    Attribute(
        'host',
        'number',
        'The port on the host machine which maps to the guest port.',
        computed=True,
    ),
)

RESOURCE_ATTRIBUTES: tuple[Attribute, ...] = (
    Attribute(
        'name',
        'string',
        'Name of the Vagrant resource. Forces resource to destroy/recreate if changed.',
        default=DEFAULT_NAME,
        force_new=True,
    ),
    Attribute(
        'vagrantfile_dir',
        'string',
        'Path to the directory where the Vagrantfile can be found.',
        default=DEFAULT_VAGRANTFILE_DIR,
    ),
    Attribute(
        'env',
        'map(string)',
        'Environment variables to pass to the Vagrantfile.',
    ),
    Attribute(
        'get_ports',
        'bool',
        'Whether or not to retrieve forwarded port information. See `ports`.',
        default=False,
    ),
    Attribute(
        'machine_names',
        'list(string)',
        'Names of the vagrant machines from the Vagrantfile. Names are in the same order as ssh_config.',
        computed=True,
    ),
    Attribute(
        'ssh_config',
        'list(object)',
        'SSH connection information.',
        computed=True,
        nested=SSH_CONFIG_ATTRIBUTES,
    ),
    Attribute(
        'ports',
        'list(list(object))',
        'Forwarded ports per machine. Only set if `get_ports` is true.',
        computed=True,
        nested=PORT_ATTRIBUTES,
    ),
)


def _format_default(value: Any) -> str:
    if isinstance(value, bool):
        return 'true' if value else 'false'
    return str(value)


def render_description(attr: Attribute) -> str:
    """
    Example:
        >>> render_description(RESOURCE_ATTRIBUTES[3])
        'Whether or not to retrieve forwarded port information. See `ports`. Defaults to `false`.'
    """
    desc = attr.description
    if attr.default is not None:
        desc += f' Defaults to `{_format_default(attr.default)}`.'
    if attr.deprecated:
        desc += ' ' + attr.deprecated
    return desc


def _render_lines(attr: Attribute, depth: int = 1) -> list[str]:
    indent = '  ' * depth
    lines = [f'{indent}- {attr.name} ({attr.type}) {render_description(attr)}']
    for child in attr.nested:
        lines.extend(_render_lines(child, depth + 1))
    return lines


def render_schema(attributes: tuple[Attribute, ...] = RESOURCE_ATTRIBUTES) -> str:
    inputs = [a for a in attributes if not a.computed]
    outputs = [a for a in attributes if a.computed]
    lines = ['Arguments']
    for attr in inputs:
        lines.extend(_render_lines(attr))
    lines.append('')
    lines.append('Read-Only')
    for attr in outputs:
        lines.extend(_render_lines(attr))
    return '\n'.join(lines)
