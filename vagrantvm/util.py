"""Shared utility helpers for subprocess execution, paths, and command formatting."""

from __future__ import annotations

import os
import shlex
import signal
import subprocess
import threading
import time
from dataclasses import dataclass
from typing import Optional, Sequence

from loguru import logger

from .errors import ExternalToolFailure, OperationCancelled, TimeoutExceeded

log = logger

# How often a running child is checked for deadline expiry or cancellation.
POLL_INTERVAL = 0.1
# Seconds to wait after SIGTERM before escalating to SIGKILL.
KILL_GRACE = 5.0


@dataclass(frozen=True)
class CmdResult:
    code: int
    stdout: str
    stderr: str


def shell_join(cmd: Sequence[str]) -> str:
    return ' '.join(shlex.quote(c) for c in cmd)


def _signal_group(proc: subprocess.Popen, sig: int) -> None:
    # The child leads its own session, so its pgid equals its pid.
    try:
        os.killpg(proc.pid, sig)
    except ProcessLookupError:
        pass


def _terminate(proc: subprocess.Popen) -> CmdResult:
    """Stop the child and everything it spawned, then reap it."""
    _signal_group(proc, signal.SIGTERM)
    try:
        stdout, stderr = proc.communicate(timeout=KILL_GRACE)
    except subprocess.TimeoutExpired:
        _signal_group(proc, signal.SIGKILL)
        try:
            stdout, stderr = proc.communicate(timeout=KILL_GRACE)
        except subprocess.TimeoutExpired:
            # Something outside the group still holds our pipes.
            log.warning('Output pipes still open after SIGKILL pid={}', proc.pid)
            proc.kill()
            proc.wait()
            stdout, stderr = '', ''
    # Members left behind after the leader exited still get signalled.
    _signal_group(proc, signal.SIGKILL)
    return CmdResult(proc.returncode, stdout or '', stderr or '')


def run_cmd(
    cmd: Sequence[str],
    *,
    cwd: Optional[str] = None,
    check: bool = True,
    env: Optional[dict[str, str]] = None,
    deadline: Optional[float] = None,
    cancel: Optional[threading.Event] = None,
) -> CmdResult:
    """
    Run ``cmd`` to completion and capture its output.

    Args:
        cwd: working directory for the child.
        check: raise :class:`ExternalToolFailure` on a non-zero exit.
        env: full environment for the child, ``None`` inherits ours.
        deadline: absolute :func:`time.monotonic` value after which the
            child is terminated and :class:`TimeoutExceeded` is raised.
        cancel: when this event is set the child is terminated and
            :class:`OperationCancelled` is raised.

    The child runs in its own session; on deadline or cancellation the
    whole process group is signalled and the child is reaped before an
    exception leaves this function.
    """
    cmd = list(cmd)
    log.opt(depth=1).debug('RUN: {} (cwd={})', shell_join(cmd), cwd or '.')
    try:
        proc = subprocess.Popen(
            cmd,
            cwd=cwd,
            env=env,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            start_new_session=True,
        )
    except OSError as ex:
        res = CmdResult(127, '', str(ex))
        log.opt(depth=1).error(
            'Command could not start cmd={} error={}', shell_join(cmd), ex
        )
        raise ExternalToolFailure(cmd, res) from ex

    with proc:
        while True:
            wait = POLL_INTERVAL
            if cancel is not None and cancel.is_set():
                res = _terminate(proc)
                log.opt(depth=1).warning(
                    'Command cancelled cmd={}', shell_join(cmd)
                )
                raise OperationCancelled(cmd, res)
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    res = _terminate(proc)
                    log.opt(depth=1).error(
                        'Command timed out cmd={}', shell_join(cmd)
                    )
                    raise TimeoutExceeded(cmd, res)
                wait = min(wait, remaining)
            try:
                stdout, stderr = proc.communicate(timeout=wait)
            except subprocess.TimeoutExpired:
                continue
            break

    res = CmdResult(proc.returncode, stdout or '', stderr or '')
    if check and res.code != 0:
        log.opt(depth=1).error(
            'Command failed code={} cmd={} stderr={} stdout={}',
            res.code,
            shell_join(cmd),
            res.stderr.strip(),
            res.stdout.strip(),
        )
        raise ExternalToolFailure(cmd, res)
    if res.code == 0:
        log.opt(depth=1).debug('Command ok code=0 cmd={}', shell_join(cmd))
    return res


def expand(path: str) -> str:
    return os.path.expandvars(os.path.expanduser(path))
