"""Tests for the modal CLI entry points."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from vagrantvm.cli import VagrantVMModalCLI
from vagrantvm.cli.main import _config_from_argv, _count_verbose
from vagrantvm.config import load
from vagrantvm.state import ResourceSnapshot, SSHEndpoint


def _run(argv: list[str]) -> int:
    rc = VagrantVMModalCLI.main(argv=argv, _noexit=True)
    return 0 if rc is None else int(rc)


@pytest.fixture
def cfg_path(tmp_path: Path) -> Path:
    env_dir = tmp_path / 'env'
    env_dir.mkdir()
    (env_dir / 'Vagrantfile').write_text('Vagrant.configure("2")\n', encoding='utf-8')
    path = tmp_path / '.vagrantvm.toml'
    assert _run(['init', '--config', str(path), '--vagrantfile_dir', str(env_dir)]) == 0
    return path


def test_init_writes_loadable_config(cfg_path: Path) -> None:
    cfg = load(cfg_path)
    assert cfg.resource['name'] == 'vagrantbox'
    assert cfg.resource_config().get_ports is False


def test_init_refuses_overwrite(cfg_path: Path) -> None:
    assert _run(['init', '--config', str(cfg_path)]) == 2
    assert _run(['init', '--config', str(cfg_path), '--force']) == 0


def test_create_prints_snapshot(monkeypatch, cfg_path: Path, capsys) -> None:
    endpoint = SSHEndpoint('vagrant', '127.0.0.1', '2222')
    seen = {}

    def fake_create(cfg, cancel=None):
        seen['cfg'] = cfg
        seen['cancel'] = cancel
        return ResourceSnapshot(
            'vagrant:web', ['web'], [endpoint], [[]], endpoint
        )

    monkeypatch.setattr('vagrantvm.engine.create', fake_create)
    capsys.readouterr()
    assert _run(['create', '--config', str(cfg_path)]) == 0
    out = json.loads(capsys.readouterr().out)
    assert out['id'] == 'vagrant:web'
    assert out['connection_info']['port'] == '2222'
    assert seen['cancel'] is not None
    assert not seen['cancel'].is_set()


def test_read_prints_null_when_gone(monkeypatch, cfg_path: Path, capsys) -> None:
    seen = {}

    def fake_read(cfg, identity, cancel=None):
        seen['identity'] = identity
        return None

    monkeypatch.setattr('vagrantvm.engine.read', fake_read)
    capsys.readouterr()
    assert _run(['read', '--config', str(cfg_path), '--id', 'vagrant:web']) == 0
    assert json.loads(capsys.readouterr().out) is None
    assert seen['identity'] == 'vagrant:web'


def test_delete_prints_cleared_identity(monkeypatch, cfg_path: Path, capsys) -> None:
    monkeypatch.setattr('vagrantvm.engine.delete', lambda cfg, identity, cancel=None: '')
    capsys.readouterr()
    assert _run(['delete', '--config', str(cfg_path)]) == 0
    assert json.loads(capsys.readouterr().out) == {'id': ''}


def test_schema_command(capsys) -> None:
    assert _run(['schema']) == 0
    assert 'Defaults to `vagrantbox`.' in capsys.readouterr().out


def test_count_verbose() -> None:
    assert _count_verbose(['read', '-vv']) == 2
    assert _count_verbose(['read', '--verbose', '-v']) == 2
    assert _count_verbose(['read', '--config', 'x']) == 0


def test_config_from_argv() -> None:
    assert _config_from_argv(['read', '--config', 'a.toml']) == 'a.toml'
    assert _config_from_argv(['read', '-c', 'b.toml']) == 'b.toml'
    assert _config_from_argv(['read', '--config=c.toml', '-v']) == 'c.toml'
    assert _config_from_argv(['read', '--config']) is None
    assert _config_from_argv(['read']) is None


def test_short_config_alias(monkeypatch, cfg_path: Path, capsys) -> None:
    monkeypatch.setattr('vagrantvm.engine.delete', lambda cfg, identity, cancel=None: '')
    capsys.readouterr()
    assert _run(['delete', '-c', str(cfg_path)]) == 0
    assert json.loads(capsys.readouterr().out) == {'id': ''}
