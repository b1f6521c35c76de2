"""Domain models – script lines, credential sessions, timeline and manifest records."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

import numpy as np


class LineStatus(str, Enum):
    PENDING = "pending"
    GENERATING = "generating"
    COMPLETED = "completed"
    FAILED = "failed"


class SessionState(str, Enum):
    ACTIVE = "active"
    EXHAUSTED = "exhausted"  # budget used up or quota signal received
    REPLACED = "replaced"


class Stage(str, Enum):
    SCRIPT_INPUT = "SCRIPT_INPUT"
    IMAGE_GENERATION = "IMAGE_GENERATION"
    AUDIO_SYNC = "AUDIO_SYNC"
    RENDERING = "RENDERING"
    COMPLETED = "COMPLETED"


@dataclass
class ScriptLine:
    """One script record. Created by the parser, mutated only by the batch controller."""
    id: str
    original_text: str
    spoken_text: str
    image_prompt: str = ""
    status: LineStatus = LineStatus.PENDING
    image_data: Optional[bytes] = None
    image_filename: Optional[str] = None
    batch_id: Optional[int] = None
    timestamp: Optional[str] = None  # ISO string of completion
    error: Optional[str] = None

    @property
    def is_open(self) -> bool:
        """Still needs an image (pending or failed)."""
        return self.status in (LineStatus.PENDING, LineStatus.FAILED)

    @property
    def is_terminal(self) -> bool:
        return self.status in (LineStatus.COMPLETED, LineStatus.FAILED)


@dataclass
class CredentialSession:
    key: str
    limit: int
    batch_id: int
    used: int = 0
    state: SessionState = SessionState.ACTIVE

    @property
    def is_active(self) -> bool:
        return self.state == SessionState.ACTIVE and self.used < self.limit

    @property
    def remaining(self) -> int:
        return max(0, self.limit - self.used)


@dataclass(frozen=True)
class AlignmentHint:
    line_id: str
    start_time: float
    end_time: float


@dataclass(frozen=True)
class TimelineEntry:
    id: str
    script_line_id: str
    start_time: float
    end_time: float
    text: str
    image: bytes
    image_filename: str = ""

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time


@dataclass(frozen=True)
class ManifestEntry:
    script_line: str
    pic_prompt: str
    filename: str
    status: str
    api_key_batch: Optional[int]
    timestamp: Optional[str]


@dataclass
class DecodedAudio:
    """Float samples in [-1, 1], shaped (frames, channels)."""
    samples: np.ndarray
    sample_rate: int
    channels: int = 1

    @property
    def duration(self) -> float:
        if not self.sample_rate:
            return 0.0
        return len(self.samples) / float(self.sample_rate)


@dataclass(frozen=True)
class RenderConfig:
    width: int = 1920
    height: int = 1080
    fps: int = 30
    fade_in_duration: float = 0.5


@dataclass
class PipelineLog:
    """Keeps the last few log messages, newest last."""
    max_entries: int = 10
    messages: List[str] = field(default_factory=list)

    def add(self, message: str) -> None:
        self.messages.append(message)
        if len(self.messages) > self.max_entries:
            del self.messages[: len(self.messages) - self.max_entries]
