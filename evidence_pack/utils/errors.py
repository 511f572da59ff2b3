"""
Error types and message extraction for the evidence pack codec.
"""


class EvidencePackError(Exception):
    """Base class for codec failures callers are expected to handle."""


class PackWriteError(EvidencePackError):
    """Raised when a pack could not be written to storage.

    Always chained to the underlying ``OSError``.
    """

    def __init__(self, run_id: str, path: str, reason: str) -> None:
        super().__init__(f"Failed to write {path} for run {run_id}: {reason}")
        self.run_id = run_id
        self.path = path


def get_error_message(error: BaseException | object) -> str:
    """
    Safely extract an error message from an unknown error type.

    Falls back to the exception class name when the message is empty.
    """
    if isinstance(error, BaseException):
        return str(error) or type(error).__name__
    return "Unknown error"
