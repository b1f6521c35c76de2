"""In-memory fakes for every port, so tests never touch the network or ffmpeg."""

from typing import Dict, List, Optional

import numpy as np
import pytest

from automedia.application.script_parser import parse_script
from automedia.domain.errors import ErrorKind, GenerationError
from automedia.domain.models import AlignmentHint, DecodedAudio, ScriptLine
from automedia.ports.interfaces import (
    IAudioAligner,
    IAudioDecoder,
    IImageGenerator,
    IKeyValidator,
    IVideoRenderer,
)


def quota_error(message: str = "RESOURCE_EXHAUSTED") -> GenerationError:
    return GenerationError(message, kind=ErrorKind.QUOTA_EXHAUSTED)


class FakeImageGenerator(IImageGenerator):
    """
    Returns b"img:<line id>" unless a scripted outcome is queued for the line.
    Outcomes are consumed in order; an Exception instance is raised, bytes are returned.
    """

    def __init__(self, outcomes: Optional[Dict[str, list]] = None):
        self.outcomes = {k: list(v) for k, v in (outcomes or {}).items()}
        self.calls: List[tuple] = []

    def generate_image(self, api_key: str, line: ScriptLine, style: str) -> bytes:
        self.calls.append((api_key, line.id, style))
        queued = self.outcomes.get(line.id)
        if queued:
            outcome = queued.pop(0)
            if isinstance(outcome, Exception):
                raise outcome
            return outcome
        return f"img:{line.id}".encode()


class FakeKeyValidator(IKeyValidator):
    def __init__(self, valid: bool = True):
        self.valid = valid
        self.calls: List[str] = []

    def validate_key(self, api_key: str) -> bool:
        self.calls.append(api_key)
        return self.valid


class FakeAligner(IAudioAligner):
    def __init__(self, hints: Optional[List[AlignmentHint]] = None, error: Optional[Exception] = None):
        self.hints = hints or []
        self.error = error
        self.calls: List[dict] = []

    def align(self, api_key, audio_bytes, mime_type, lines):
        self.calls.append(
            {"api_key": api_key, "audio": audio_bytes, "mime_type": mime_type, "line_ids": [l.id for l in lines]}
        )
        if self.error is not None:
            raise self.error
        return list(self.hints)


class FakeDecoder(IAudioDecoder):
    def __init__(self, seconds: float = 2.0, sample_rate: int = 8000):
        self.seconds = seconds
        self.sample_rate = sample_rate

    def decode(self, audio_path: str) -> DecodedAudio:
        frames = int(self.seconds * self.sample_rate)
        return DecodedAudio(samples=np.zeros((frames, 1), dtype=np.float32), sample_rate=self.sample_rate)


class FakeRenderer(IVideoRenderer):
    def __init__(self, steps=(0, 10, 10, 55.4, 40, 99.6)):
        self.steps = steps
        self.calls: List[dict] = []

    def render(self, timeline, audio, config, on_progress):
        self.calls.append({"timeline": list(timeline), "audio": audio, "config": config})
        for step in self.steps:
            on_progress(step)
        return b"fake-mp4"


@pytest.fixture
def five_lines():
    return parse_script("\n".join(f"Line {i}|prompt {i}" for i in range(1, 6)))


@pytest.fixture
def fakes():
    return {
        "image_generator": FakeImageGenerator(),
        "key_validator": FakeKeyValidator(),
        "audio_aligner": FakeAligner(),
        "audio_decoder": FakeDecoder(),
        "video_renderer": FakeRenderer(),
    }
