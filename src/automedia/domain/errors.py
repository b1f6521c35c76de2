"""Error taxonomy. Generation failures carry an explicit kind instead of relying on subclass checks."""

from enum import Enum


class ErrorKind(str, Enum):
    TRANSIENT = "transient"
    QUOTA_EXHAUSTED = "quota_exhausted"


class AutoMediaError(Exception):
    """Base class for all pipeline errors."""


class ScriptParseError(AutoMediaError):
    """No usable lines in the uploaded script."""


class CredentialError(AutoMediaError):
    """Credential rejected or budget invalid. The operator may try again."""


class GenerationError(AutoMediaError):
    def __init__(self, message: str, kind: ErrorKind = ErrorKind.TRANSIENT):
        super().__init__(message)
        self.kind = kind

    @property
    def is_quota_exhausted(self) -> bool:
        return self.kind == ErrorKind.QUOTA_EXHAUSTED


class SyncError(AutoMediaError):
    """Audio alignment failed; nothing was committed."""


class RenderError(AutoMediaError):
    """Frame compositing or encoding failed."""
