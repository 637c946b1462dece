"""Errors raised during a provisioning run.

Both kinds are fatal: the run stops and the operator re-runs from the
parameter sheet.
"""


class EdgebootError(Exception):
    """Base class for provisioning errors."""


class ValidationError(EdgebootError):
    """Bad or inconsistent input parameters."""

    def __init__(self, parameter: str, value: str | None, reason: str):
        self.parameter = parameter
        self.value = value
        self.reason = reason
        super().__init__(
            f"Invalid parameter {parameter}={value!r}: {reason}"
        )


class RemoteOperationError(EdgebootError):
    """A remote call failed, returned an unexpected status, or timed out."""

    def __init__(self, operation: str, reason: str):
        self.operation = operation
        self.reason = reason
        super().__init__(f"{operation} failed: {reason}")


class PollTimeoutError(RemoteOperationError):
    """A poll budget was exhausted before the remote operation completed."""

    def __init__(self, operation: str, attempts: int, last_status: str):
        self.attempts = attempts
        self.last_status = last_status
        super().__init__(
            operation,
            f"timed out after {attempts} attempts "
            f"(last status: {last_status})",
        )
