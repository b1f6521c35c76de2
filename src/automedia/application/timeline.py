"""
Timeline alignment and normalization.

Alignment hints from the audio service can be missing, overlapping or out of
order. The script order is authoritative: hints are looked up per line and a
single left-to-right pass makes the timeline monotonic with a minimum
duration per image.
"""

import math
from typing import Dict, Iterable, List, Sequence

from automedia.config import FALLBACK_IMAGE_DURATION, MIN_IMAGE_DURATION
from automedia.domain.errors import SyncError
from automedia.domain.models import AlignmentHint, LineStatus, ScriptLine, TimelineEntry
from automedia.ports.interfaces import IAudioAligner


def select_timeline_lines(lines: Iterable[ScriptLine]) -> List[ScriptLine]:
    """Completed lines that actually have an image, in document order."""
    return [line for line in lines if line.status == LineStatus.COMPLETED and line.image_data]


def _clean_time(value) -> float:
    try:
        value = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(value) or value < 0:
        return 0.0
    return value


def _end_after(start: float, duration: float) -> float:
    """start + duration, nudged up until end - start >= duration holds in floats."""
    end = start + duration
    while end - start < duration:
        end = math.nextafter(end, math.inf)
    return end


def normalize_timeline(
    entries: Sequence[TimelineEntry],
    min_duration: float = MIN_IMAGE_DURATION,
    fallback_duration: float = FALLBACK_IMAGE_DURATION,
) -> List[TimelineEntry]:
    """
    Single sweep, order preserving:
      - a start before the previous end is pushed up to it
      - an end not at least min_duration past the start becomes
        start + fallback_duration if there was no hint at all (end == 0),
        otherwise start + min_duration
    """
    normalized = []
    last_end = 0.0
    for entry in entries:
        start = entry.start_time
        end = entry.end_time
        if start < last_end:
            start = last_end
        if end <= start + min_duration or end - start < min_duration:
            if entry.end_time == 0:
                end = _end_after(start, max(fallback_duration, min_duration))
            else:
                end = _end_after(start, min_duration)
        normalized.append(
            TimelineEntry(
                id=entry.id,
                script_line_id=entry.script_line_id,
                start_time=start,
                end_time=end,
                text=entry.text,
                image=entry.image,
                image_filename=entry.image_filename,
            )
        )
        last_end = end
    return normalized


def build_timeline(
    lines: Sequence[ScriptLine],
    hints: Iterable[AlignmentHint],
    min_duration: float = MIN_IMAGE_DURATION,
    fallback_duration: float = FALLBACK_IMAGE_DURATION,
) -> List[TimelineEntry]:
    """Join hints onto the lines by id (missing hint -> 0/0) and normalize."""
    by_id: Dict[str, AlignmentHint] = {}
    for hint in hints:
        # first hint for an id wins
        by_id.setdefault(hint.line_id, hint)

    raw = []
    for line in lines:
        hint = by_id.get(line.id)
        raw.append(
            TimelineEntry(
                id=line.id,
                script_line_id=line.id,
                start_time=_clean_time(hint.start_time) if hint else 0.0,
                end_time=_clean_time(hint.end_time) if hint else 0.0,
                text=line.spoken_text,
                image=line.image_data or b"",
                image_filename=line.image_filename or "",
            )
        )
    return normalize_timeline(raw, min_duration=min_duration, fallback_duration=fallback_duration)


class TimelineSynchronizer:
    """Asks the aligner for hints and turns them into a render-ready timeline."""

    def __init__(
        self,
        aligner: IAudioAligner,
        *,
        min_duration: float = MIN_IMAGE_DURATION,
        fallback_duration: float = FALLBACK_IMAGE_DURATION,
    ):
        self._aligner = aligner
        self._min_duration = min_duration
        self._fallback_duration = fallback_duration

    def sync(
        self,
        lines: Sequence[ScriptLine],
        audio_bytes: bytes,
        mime_type: str,
        api_key: str,
    ) -> List[TimelineEntry]:
        selected = select_timeline_lines(lines)
        if not selected:
            raise SyncError("No completed images to place on the timeline.")

        try:
            hints = self._aligner.align(api_key, audio_bytes, mime_type, selected)
        except Exception as e:
            raise SyncError(f"Sync failed: {e}. Please try again (check Key).") from e

        return build_timeline(
            selected,
            hints or [],
            min_duration=self._min_duration,
            fallback_duration=self._fallback_duration,
        )
