"""Project-specific exception types."""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from .util import CmdResult


class VagrantVMError(RuntimeError):
    """Base error for domain-level vagrantvm failures."""


class ConfigurationError(VagrantVMError):
    """Raised when the declared resource configuration is unusable."""


class ExternalToolFailure(VagrantVMError):
    """Raised when a vagrant subcommand exits non-zero or cannot start."""

    def __init__(self, cmd: Sequence[str] | str, result: CmdResult):
        self.cmd = cmd
        self.result = result
        super().__init__(self._message())

    def _message(self) -> str:
        detail = (self.result.stderr or self.result.stdout or '').strip()
        return f'Command failed (code={self.result.code}): {self.cmd}\n{detail}'.strip()


class TimeoutExceeded(ExternalToolFailure):
    """Raised when the deadline elapsed before the process exited."""

    def _message(self) -> str:
        return f'Command timed out and was terminated: {self.cmd}'


class OperationCancelled(ExternalToolFailure):
    """Raised when the caller cancelled a running command."""

    def _message(self) -> str:
        return f'Command cancelled and was terminated: {self.cmd}'


class PartialReadFailure(VagrantVMError):
    """Raised when optional data (like a private key) could not be read."""
