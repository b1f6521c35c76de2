"""
Batch generation controller – resumable driver over the script lines.

A run processes lines in document order under one credential session and
stops when every line is terminal, when the session budget is used up, or
when the image service reports quota exhaustion. Calling run() again with a
new session resumes from the first pending/failed line.
"""

import time
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, List, Optional, Sequence

from automedia.application.script_parser import image_filename_for
from automedia.config import IMAGE_STYLE, MAX_GENERATION_ATTEMPTS, RETRY_BACKOFF_SECONDS
from automedia.domain.errors import GenerationError
from automedia.domain.models import CredentialSession, LineStatus, ScriptLine, SessionState
from automedia.ports.interfaces import IImageGenerator


class BatchOutcome(str, Enum):
    COMPLETED = "completed"
    BUDGET_REACHED = "budget_reached"
    QUOTA_EXHAUSTED = "quota_exhausted"
    ALREADY_RUNNING = "already_running"


@dataclass
class BatchReport:
    outcome: BatchOutcome
    message: str
    batch_id: Optional[int] = None
    generated: int = 0
    failed: int = 0
    stopped_at: Optional[int] = None  # index of the line that was in flight on quota exhaustion

    @property
    def needs_new_key(self) -> bool:
        return self.outcome in (BatchOutcome.BUDGET_REACHED, BatchOutcome.QUOTA_EXHAUSTED)


class BatchObserver:
    """Receives live progress from the controller. All hooks are optional."""

    def on_run_started(self, resume_index: int, session: CredentialSession) -> None:
        pass

    def on_line_update(self, index: int, line: ScriptLine) -> None:
        pass

    def on_attempt_failed(self, index: int, line: ScriptLine, attempt: int, error: Exception) -> None:
        pass

    def on_session_update(self, session: CredentialSession) -> None:
        pass

    def on_run_finished(self, report: BatchReport) -> None:
        pass


class BatchController:
    def __init__(
        self,
        image_generator: IImageGenerator,
        *,
        style: str = IMAGE_STYLE,
        max_attempts: int = MAX_GENERATION_ATTEMPTS,
        backoff_seconds: float = RETRY_BACKOFF_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
        observers: Optional[List[BatchObserver]] = None,
    ):
        self._images = image_generator
        self._style = style
        self._max_attempts = max_attempts
        self._backoff_seconds = backoff_seconds
        self._sleep = sleep
        self._clock = clock
        self._observers = list(observers or [])
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    def add_observer(self, observer: BatchObserver) -> None:
        self._observers.append(observer)

    def _notify(self, hook: str, *args) -> None:
        for observer in self._observers:
            getattr(observer, hook)(*args)

    def run(self, lines: Sequence[ScriptLine], session: CredentialSession) -> BatchReport:
        """Process lines until done, out of budget, or quota exhausted."""
        if self._running:
            return BatchReport(BatchOutcome.ALREADY_RUNNING, "A batch is already running.", session.batch_id)

        self._running = True
        try:
            report = self._run(lines, session)
        finally:
            self._running = False
        self._notify("on_run_finished", report)
        return report

    def _run(self, lines: Sequence[ScriptLine], session: CredentialSession) -> BatchReport:
        resume_index = next((i for i, line in enumerate(lines) if line.is_open), None)
        if resume_index is None:
            return BatchReport(BatchOutcome.COMPLETED, "All images completed!", session.batch_id)

        if session.state != SessionState.ACTIVE or not session.key or session.used >= session.limit:
            return BatchReport(
                BatchOutcome.BUDGET_REACHED,
                f"Batch #{session.batch_id} is no longer active. Enter next key to continue.",
                session.batch_id,
            )

        self._notify("on_run_started", resume_index, session)
        generated = 0
        failed = 0
        index = resume_index

        while index < len(lines) and session.used < session.limit:
            line = lines[index]
            if line.status == LineStatus.COMPLETED:
                index += 1
                continue

            line.status = LineStatus.GENERATING
            line.error = None
            try:
                self._notify("on_line_update", index, line)
                quota_error = self._generate_with_retries(index, line, session)
            finally:
                # never leave a line half-done if something unexpected escapes
                if line.status == LineStatus.GENERATING:
                    line.status = LineStatus.PENDING

            if quota_error is not None:
                self._notify("on_line_update", index, line)
                self._pause(session)
                return BatchReport(
                    BatchOutcome.QUOTA_EXHAUSTED,
                    f"Quota exhausted at line #{index + 1}. {quota_error}",
                    session.batch_id,
                    generated=generated,
                    failed=failed,
                    stopped_at=index,
                )

            if line.status == LineStatus.COMPLETED:
                generated += 1
            else:
                failed += 1
            self._notify("on_line_update", index, line)
            index += 1

        if any(line.status == LineStatus.PENDING for line in lines):
            self._pause(session)
            return BatchReport(
                BatchOutcome.BUDGET_REACHED,
                f"Batch of {session.limit} images complete. Enter next key to continue.",
                session.batch_id,
                generated=generated,
                failed=failed,
            )

        if session.used >= session.limit:
            session.state = SessionState.EXHAUSTED
        return BatchReport(
            BatchOutcome.COMPLETED,
            "All lines processed successfully.",
            session.batch_id,
            generated=generated,
            failed=failed,
        )

    def _generate_with_retries(
        self,
        index: int,
        line: ScriptLine,
        session: CredentialSession,
    ) -> Optional[GenerationError]:
        """
        Try up to max_attempts times. Returns the quota error if one was raised
        (line is left for the caller to roll back), otherwise None with the
        line marked completed or failed.
        """
        for attempt in range(1, self._max_attempts + 1):
            try:
                payload = self._images.generate_image(session.key, line, self._style)
            except GenerationError as e:
                if e.is_quota_exhausted:
                    line.status = LineStatus.PENDING
                    return e
                last_error: Exception = e
            except Exception as e:
                last_error = e
            else:
                self._complete(line, payload, session)
                return None

            self._notify("on_attempt_failed", index, line, attempt, last_error)
            if attempt < self._max_attempts:
                self._sleep(self._backoff_seconds)

        line.status = LineStatus.FAILED
        line.error = str(last_error) or type(last_error).__name__
        return None

    def _complete(self, line: ScriptLine, payload: bytes, session: CredentialSession) -> None:
        line.image_data = payload
        line.image_filename = image_filename_for(line)
        line.status = LineStatus.COMPLETED
        line.batch_id = session.batch_id
        line.timestamp = self._clock().isoformat()
        session.used += 1
        self._notify("on_session_update", session)

    def _pause(self, session: CredentialSession) -> None:
        session.state = SessionState.EXHAUSTED
        session.key = ""
        self._notify("on_session_update", session)
