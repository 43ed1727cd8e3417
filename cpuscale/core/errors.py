from __future__ import annotations


# Return codes of mutating helper calls. Denial and an unavailable unit share
# -1 on the wire; -13 mirrors EACCES without asserting the actual cause.
RC_OK = 0
RC_NOT_AUTHORIZED = -1
RC_UNIT_UNAVAILABLE = -1
RC_WRITE_FAILED = -13


class CpuScaleError(RuntimeError):
    pass


class NotConnected(CpuScaleError):
    """No helper endpoint is reachable; the client is read-only."""


class NotAuthorized(CpuScaleError):
    pass


class UnitUnavailable(CpuScaleError):
    """Target CPU is absent, offline, or cannot change online state."""


class WriteFailed(CpuScaleError):
    pass


class ProfileInvalid(CpuScaleError):
    pass


class ServiceRegistrationError(CpuScaleError):
    pass


def return_code_for(exc: BaseException) -> int:
    if isinstance(exc, NotAuthorized):
        return RC_NOT_AUTHORIZED
    if isinstance(exc, UnitUnavailable):
        return RC_UNIT_UNAVAILABLE
    return RC_WRITE_FAILED


def describe_return_code(code: int) -> str:
    if code == RC_OK:
        return "success"
    if code == -1:
        return "not authorized or CPU unavailable (code -1)"
    if code == RC_WRITE_FAILED:
        return "failed to write CPU setting (code -13)"
    return f"operation failed with code {code}"
