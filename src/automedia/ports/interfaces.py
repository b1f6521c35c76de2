"""
Port interfaces (SOLID – Dependency Inversion).
Implement these in adapters; application layer depends only on these abstractions.
"""

from abc import ABC, abstractmethod
from typing import Callable, List, Sequence

from automedia.domain.models import (
    AlignmentHint,
    DecodedAudio,
    RenderConfig,
    ScriptLine,
    TimelineEntry,
)


class IImageGenerator(ABC):
    """Image generation for a single script line."""

    @abstractmethod
    def generate_image(self, api_key: str, line: ScriptLine, style: str) -> bytes:
        """Return encoded image bytes.

        Raise GenerationError with kind QUOTA_EXHAUSTED when the key can no
        longer generate; any other failure is treated as transient.
        """
        pass


class IKeyValidator(ABC):
    """Checks whether a credential can be used at all."""

    @abstractmethod
    def validate_key(self, api_key: str) -> bool:
        pass


class IAudioAligner(ABC):
    """Produces per-line timing hints from narration audio."""

    @abstractmethod
    def align(
        self,
        api_key: str,
        audio_bytes: bytes,
        mime_type: str,
        lines: Sequence[ScriptLine],
    ) -> List[AlignmentHint]:
        """Hints may be missing for some lines, or out of order, or overlapping."""
        pass


class IAudioDecoder(ABC):
    """Decodes an audio file into raw samples for the renderer."""

    @abstractmethod
    def decode(self, audio_path: str) -> DecodedAudio:
        pass


class IVideoRenderer(ABC):
    """Video assembly: timeline + decoded audio -> encoded video bytes."""

    @abstractmethod
    def render(
        self,
        timeline: Sequence[TimelineEntry],
        audio: DecodedAudio,
        config: RenderConfig,
        on_progress: Callable[[float], None],
    ) -> bytes:
        """on_progress receives 0-100, never decreasing."""
        pass
