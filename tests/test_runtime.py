from __future__ import annotations

import time

from vagrantvm.runtime import (
    VAGRANT_BIN_ENV,
    build_environment,
    deadline_from_timeout,
    process_environment,
    vagrant_cmd,
)


def test_build_environment_empty_is_none() -> None:
    assert build_environment({}) is None


def test_build_environment_stringifies_values() -> None:
    env = build_environment({'BOX': 'ubuntu/jammy64', 'CPUS': 2, 'GUI': False})
    assert sorted(env) == ['BOX=ubuntu/jammy64', 'CPUS=2', 'GUI=False']


def test_build_environment_leaves_separators_unescaped() -> None:
    env = build_environment({'ODD': 'a=b\nc'})
    assert env == ['ODD=a=b\nc']


def test_build_environment_is_pure() -> None:
    src = {'A': '1', 'B': '2'}
    assert sorted(build_environment(src)) == sorted(build_environment(dict(src)))
    assert src == {'A': '1', 'B': '2'}


def test_process_environment_layers_on_ambient(monkeypatch) -> None:
    monkeypatch.setenv('VAGRANTVM_AMBIENT', 'kept')
    monkeypatch.setenv('BOX', 'old')
    assert process_environment(None) is None
    merged = process_environment(['BOX=new', 'ODD=a=b'])
    assert merged['VAGRANTVM_AMBIENT'] == 'kept'
    assert merged['BOX'] == 'new'
    assert merged['ODD'] == 'a=b'


def test_deadline_from_timeout() -> None:
    assert deadline_from_timeout(None) is None
    assert deadline_from_timeout(0) is None
    assert deadline_from_timeout(-5) is None
    before = time.monotonic()
    deadline = deadline_from_timeout(30)
    assert before + 29 < deadline <= time.monotonic() + 30


def test_vagrant_cmd_binary_override(monkeypatch) -> None:
    monkeypatch.delenv(VAGRANT_BIN_ENV, raising=False)
    assert vagrant_cmd('status') == ['vagrant', 'status']
    monkeypatch.setenv(VAGRANT_BIN_ENV, '/opt/vagrant/bin/vagrant')
    assert vagrant_cmd('up', '--parallel') == [
        '/opt/vagrant/bin/vagrant',
        'up',
        '--parallel',
    ]
