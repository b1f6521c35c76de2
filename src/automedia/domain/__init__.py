"""Domain models and value objects."""

from automedia.domain.errors import (
    AutoMediaError,
    CredentialError,
    ErrorKind,
    GenerationError,
    RenderError,
    ScriptParseError,
    SyncError,
)
from automedia.domain.models import (
    AlignmentHint,
    CredentialSession,
    DecodedAudio,
    LineStatus,
    ManifestEntry,
    PipelineLog,
    RenderConfig,
    ScriptLine,
    SessionState,
    Stage,
    TimelineEntry,
)

__all__ = [
    "AlignmentHint",
    "AutoMediaError",
    "CredentialError",
    "CredentialSession",
    "DecodedAudio",
    "ErrorKind",
    "GenerationError",
    "LineStatus",
    "ManifestEntry",
    "PipelineLog",
    "RenderConfig",
    "RenderError",
    "ScriptLine",
    "ScriptParseError",
    "SessionState",
    "Stage",
    "SyncError",
    "TimelineEntry",
]
