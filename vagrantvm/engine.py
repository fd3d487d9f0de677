"""
Reconciliation engine for a vagrant environment resource.

Each lifecycle operation (create, read, update, delete) runs strictly
sequentially under one deadline computed on entry from the configured
timeout for that operation. Gateway errors are never retried; they
propagate unchanged to the caller.
"""

from __future__ import annotations

import threading
from typing import Optional

from loguru import logger

from . import gateway
from .config import ResourceConfig
from .gateway import ForwardedPort
from .runtime import CallOptions, build_environment, deadline_from_timeout
from .state import (
    NOT_CREATED,
    ResourceSnapshot,
    build_identity,
    project_snapshot,
    resource_exists,
)

log = logger


def _call_options(
    cfg: ResourceConfig, op: str, cancel: Optional[threading.Event]
) -> CallOptions:
    cfg.validate()
    return CallOptions(
        workdir=cfg.workdir,
        env=build_environment(cfg.env),
        deadline=deadline_from_timeout(cfg.timeouts.for_operation(op)),
        cancel=cancel,
    )


def requires_replacement(old: ResourceConfig, new: ResourceConfig) -> bool:
    """Renaming the resource forces destroy then create."""
    return old.name != new.name


def read_vagrant_info(
    cfg: ResourceConfig, opts: CallOptions, identity: str
) -> ResourceSnapshot:
    log.info('Getting vagrant ssh-config...')
    configs = gateway.ssh_config(opts)
    ports: Optional[dict[str, list[ForwardedPort]]] = None
    if cfg.get_ports:
        ports = {}
        for machine in configs:
            log.info('Getting forwarded ports for {}...', machine)
            ports[machine] = gateway.port(opts, machine)
    snapshot = project_snapshot(identity, configs, ports)
    log.debug(
        'Projected {} machine(s): {}',
        len(snapshot.machine_names),
        snapshot.machine_names,
    )
    return snapshot


def create(
    cfg: ResourceConfig, *, cancel: Optional[threading.Event] = None
) -> ResourceSnapshot:
    opts = _call_options(cfg, 'create', cancel)
    log.info('Bringing up vagrant...')
    machines = gateway.up(opts, parallel=True)
    identity = build_identity(machines)
    log.info('Vagrant resource {} is up', identity)
    return read_vagrant_info(cfg, opts, identity)


def read(
    cfg: ResourceConfig,
    identity: str,
    *,
    cancel: Optional[threading.Event] = None,
) -> Optional[ResourceSnapshot]:
    """
    Refresh a resource.

    Returns:
        The current snapshot, or ``None`` when any machine is not running,
        in which case the caller should drop ``identity`` so the resource is
        created again.
    """
    opts = _call_options(cfg, 'read', cancel)
    log.info('Getting vagrant status...')
    statuses = gateway.status(opts)
    if not resource_exists(statuses):
        log.info(
            'Resource {} is not fully running ({}); dropping identity',
            identity,
            statuses,
        )
        return None
    return read_vagrant_info(cfg, opts, identity)


def update(
    cfg: ResourceConfig,
    identity: str,
    *,
    cancel: Optional[threading.Event] = None,
) -> ResourceSnapshot:
    opts = _call_options(cfg, 'update', cancel)
    # reload halts, recreates and restarts known machines but never creates
    # new ones, so those are brought up separately.
    log.info('Reloading vagrant...')
    gateway.reload(opts)
    log.info('Checking machine states...')
    statuses = gateway.status(opts)
    missing = [name for name, state in statuses.items() if state == NOT_CREATED]
    if missing:
        log.info('Bringing up new machines: {}', missing)
        gateway.up(opts, parallel=True)
    return read_vagrant_info(cfg, opts, identity)


def delete(
    cfg: ResourceConfig,
    identity: str = '',
    *,
    cancel: Optional[threading.Event] = None,
) -> str:
    """Destroy every machine; returns the cleared identity."""
    opts = _call_options(cfg, 'delete', cancel)
    log.info('Destroying vagrant {}...', identity or '(no identity)')
    gateway.destroy(opts)
    return ''
