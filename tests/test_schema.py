from __future__ import annotations

from vagrantvm.schema import (
    RESOURCE_ATTRIBUTES,
    Attribute,
    render_description,
    render_schema,
)


def test_render_description_appends_default() -> None:
    by_name = {a.name: a for a in RESOURCE_ATTRIBUTES}
    assert render_description(by_name['name']).endswith('Defaults to `vagrantbox`.')
    assert render_description(by_name['vagrantfile_dir']).endswith('Defaults to `.`.')
    assert render_description(by_name['env']) == (
        'Environment variables to pass to the Vagrantfile.'
    )


def test_render_description_deprecated() -> None:
    attr = Attribute('old', 'string', 'Old thing.', default='x', deprecated='Use new.')
    assert render_description(attr) == 'Old thing. Defaults to `x`. Use new.'


def test_render_description_is_pure() -> None:
    attr = RESOURCE_ATTRIBUTES[0]
    assert render_description(attr) == render_description(attr)
    assert 'Defaults' not in attr.description


def test_render_schema_sections() -> None:
    text = render_schema()
    args, _, read_only = text.partition('Read-Only')
    assert '- get_ports (bool)' in args
    assert 'machine_names' not in args
    assert '- ports (list(list(object)))' in read_only


def test_render_schema_lists_nested_attributes() -> None:
    text = render_schema()
    _, _, read_only = text.partition('Read-Only')
    lines = read_only.splitlines()
    ssh_idx = next(i for i, ln in enumerate(lines) if '- ssh_config ' in ln)
    nested = [ln.strip() for ln in lines[ssh_idx + 1:ssh_idx + 7]]
    assert [ln.split(' ')[1] for ln in nested] == [
        'type', 'user', 'host', 'port', 'private_key', 'agent',
    ]
    assert all(ln.startswith('    - ') for ln in lines[ssh_idx + 1:ssh_idx + 7])
    assert '    - guest (number) The port on the guest machine.' in lines
    assert (
        '    - host (number) The port on the host machine which maps to the guest port.'
        in lines
    )
