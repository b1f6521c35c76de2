"""
Production pipeline – owns the line sequence, the credential session and the
current stage, and drives script -> images (batches) -> audio sync -> manifest -> render.
Depends only on port interfaces (SOLID – Dependency Inversion).
"""

import mimetypes
import os
import time
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional, Tuple, Union

from automedia.application.batch_controller import (
    BatchController,
    BatchObserver,
    BatchOutcome,
    BatchReport,
)
from automedia.application.credentials import CredentialManager
from automedia.application.manifest import build_manifest, write_manifest
from automedia.application.script_parser import parse_script
from automedia.application.timeline import TimelineSynchronizer
from automedia.config import (
    FADE_IN_DURATION,
    FPS,
    IMAGE_STYLE,
    MAX_GENERATION_ATTEMPTS,
    OUTPUT_DIR,
    VIDEO_HEIGHT,
    VIDEO_WIDTH,
)
from automedia.domain.errors import CredentialError, RenderError, ScriptParseError, SyncError
from automedia.domain.models import (
    CredentialSession,
    LineStatus,
    ManifestEntry,
    PipelineLog,
    RenderConfig,
    ScriptLine,
    Stage,
    TimelineEntry,
)
from automedia.ports.interfaces import (
    IAudioAligner,
    IAudioDecoder,
    IImageGenerator,
    IKeyValidator,
    IVideoRenderer,
)

DEFAULT_KEY_MESSAGE = "Enter a valid Google GenAI API key to continue."
QUOTA_KEY_MESSAGE = (
    "Quota exhausted or API blocked. Please enter a NEW API key "
    "(or re-enter if you believe this is a cache error)."
)


class ConsoleObserver(BatchObserver):
    """Turns controller events into log lines."""

    def __init__(self, log: Callable[[str], None], max_attempts: int = MAX_GENERATION_ATTEMPTS):
        self._log = log
        self._max_attempts = max_attempts

    def on_run_started(self, resume_index: int, session: CredentialSession) -> None:
        self._log(f"Processing lines starting from #{resume_index + 1}...")

    def on_line_update(self, index: int, line: ScriptLine) -> None:
        if line.status == LineStatus.GENERATING:
            self._log(f"Generating img for line #{index + 1}...")
        elif line.status == LineStatus.COMPLETED:
            self._log(f"✅ Line #{index + 1} -> {line.image_filename}")
        elif line.status == LineStatus.FAILED:
            self._log(f"❌ Line #{index + 1} failed after {self._max_attempts} attempts.")

    def on_attempt_failed(self, index: int, line: ScriptLine, attempt: int, error: Exception) -> None:
        self._log(f"⚠️  Attempt {attempt} failed for line #{index + 1}: {error}")

    def on_session_update(self, session: CredentialSession) -> None:
        if session.key:
            self._log(f"Batch #{session.batch_id} • Used: {session.used}/{session.limit}")


class ProductionPipeline:
    """
    Explicit aggregate for one production run (lines + session + stage).
    All collaborators are injected (ports); no concrete implementations here.
    """

    def __init__(
        self,
        *,
        image_generator: IImageGenerator,
        key_validator: IKeyValidator,
        audio_aligner: IAudioAligner,
        audio_decoder: IAudioDecoder,
        video_renderer: IVideoRenderer,
        style: str = IMAGE_STYLE,
        render_config: Optional[RenderConfig] = None,
        output_dir: Union[str, Path] = OUTPUT_DIR,
        sleep: Callable[[float], None] = time.sleep,
        verbose: bool = True,
    ):
        self._decoder = audio_decoder
        self._renderer = video_renderer
        self._credentials = CredentialManager(key_validator)
        self._controller = BatchController(
            image_generator, style=style, max_attempts=MAX_GENERATION_ATTEMPTS, sleep=sleep
        )
        self._controller.add_observer(ConsoleObserver(self._log, max_attempts=MAX_GENERATION_ATTEMPTS))
        self._synchronizer = TimelineSynchronizer(audio_aligner)
        self._render_config = render_config or RenderConfig(
            width=VIDEO_WIDTH, height=VIDEO_HEIGHT, fps=FPS, fade_in_duration=FADE_IN_DURATION
        )
        self._output_dir = Path(output_dir)
        self._verbose = verbose

        self.stage = Stage.SCRIPT_INPUT
        self.lines: List[ScriptLine] = []
        self.timeline: List[TimelineEntry] = []
        self.manifest: List[ManifestEntry] = []
        self.audio_path: Optional[str] = None
        self.video: Optional[bytes] = None
        self.render_progress = 0
        self.error: Optional[str] = None
        self.key_prompt_message = DEFAULT_KEY_MESSAGE
        self.last_report: Optional[BatchReport] = None
        self.log = PipelineLog()

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------

    def _log(self, message: str) -> None:
        self.log.add(message)
        if self._verbose:
            print(message)

    def _fail(self, message: str) -> None:
        self.error = message
        if self._verbose:
            print(f"❌ {message}")

    @property
    def session(self) -> Optional[CredentialSession]:
        return self._credentials.session

    @property
    def is_processing(self) -> bool:
        return self._controller.is_running

    def progress(self) -> Tuple[int, int]:
        """(completed images, total lines)"""
        done = sum(1 for line in self.lines if line.status == LineStatus.COMPLETED)
        return done, len(self.lines)

    def has_pending(self) -> bool:
        return any(line.status == LineStatus.PENDING for line in self.lines)

    # ------------------------------------------------------------------
    # Step 1 – script
    # ------------------------------------------------------------------

    def load_script(self, text: str) -> bool:
        """Parse the script. Reports parse failures through self.error instead of raising."""
        self.error = None
        try:
            parsed = parse_script(text)
        except ScriptParseError as e:
            self._fail(str(e))
            return False

        self.lines = parsed
        self.timeline = []
        self.manifest = []
        self.stage = Stage.IMAGE_GENERATION
        self.key_prompt_message = "Initial Setup: Please enter your first API key."
        self._log(f"Loaded {len(parsed)} lines from TXT.")
        return True

    def load_script_file(self, path: Union[str, Path]) -> bool:
        try:
            text = Path(path).read_text(encoding="utf-8-sig")
        except (OSError, UnicodeDecodeError) as e:
            self._fail(f"Could not read script: {e}")
            return False
        return self.load_script(text)

    # ------------------------------------------------------------------
    # Step 2 – image batches
    # ------------------------------------------------------------------

    def submit_credential(self, key: str, limit: Union[int, str], *, start: bool = True) -> Optional[BatchReport]:
        """Validate a key, open a new batch and start/resume generation.

        With start=False the session is only opened (e.g. a key just for audio sync).
        Raises CredentialError for a bad key or budget; nothing else changes in that case.
        """
        self.error = None
        self._log("Testing API Key...")
        try:
            session = self._credentials.submit(key, limit)
        except CredentialError as e:
            self._fail(str(e))
            raise

        self._log(f"Key accepted. Batch #{session.batch_id} started. Limit: {session.limit}")
        self.key_prompt_message = DEFAULT_KEY_MESSAGE
        if not start:
            return None
        return self._run_batch(session)

    def resume(self) -> Optional[BatchReport]:
        """Continue with the current session, if it still has budget."""
        session = self.session
        if session is None or not session.key or not session.is_active:
            self.key_prompt_message = "Resume Generation: Enter API Key"
            return None
        return self._run_batch(session)

    def _run_batch(self, session: CredentialSession) -> BatchReport:
        report = self._controller.run(self.lines, session)
        self.last_report = report
        if report.outcome == BatchOutcome.ALREADY_RUNNING:
            return report

        if report.outcome == BatchOutcome.QUOTA_EXHAUSTED:
            self._credentials.release()
            self._fail(report.message)
            self.key_prompt_message = QUOTA_KEY_MESSAGE
        elif report.outcome == BatchOutcome.BUDGET_REACHED:
            self._credentials.release()
            self._log(f"Batch limit ({session.limit}) reached. Pausing.")
            self.key_prompt_message = report.message
        else:
            self._log(report.message)
        return report

    def ready_for_sync(self) -> bool:
        return (
            bool(self.lines)
            and not self.is_processing
            and all(line.is_terminal for line in self.lines)
        )

    # ------------------------------------------------------------------
    # Step 3 – audio sync
    # ------------------------------------------------------------------

    def set_audio(self, path: Union[str, Path]) -> None:
        if not os.path.isfile(path):
            raise FileNotFoundError(f"Audio file not found: {path}")
        self.audio_path = str(path)
        self._log("Audio loaded.")

    def sync_audio(self) -> List[TimelineEntry]:
        """
        Align narration against completed lines and commit a normalized timeline.
        On any failure the previous timeline is kept and SyncError is raised.
        """
        if not self.audio_path:
            self._fail("Please upload an audio file first.")
            raise SyncError(self.error)
        session = self.session
        if session is None or not session.key:
            self.key_prompt_message = "Need API Key for Audio Sync."
            self._fail("Need API Key for Audio Sync.")
            raise SyncError(self.error)
        if not self.ready_for_sync():
            self._fail("Finish image generation before syncing audio.")
            raise SyncError(self.error)

        self.stage = Stage.AUDIO_SYNC
        self._log("Syncing audio to script...")
        mime_type = mimetypes.guess_type(self.audio_path)[0] or "audio/mpeg"
        try:
            audio_bytes = Path(self.audio_path).read_bytes()
            timeline = self._synchronizer.sync(self.lines, audio_bytes, mime_type, session.key)
        except OSError as e:
            self._fail(f"Sync failed: {e}. Please try again (check Key).")
            raise SyncError(self.error) from e
        except SyncError as e:
            self._fail(str(e))
            raise

        self.timeline = timeline
        self.manifest = build_manifest(self.lines)
        self.stage = Stage.RENDERING
        self._log(f"Timeline ready: {len(timeline)} images, {timeline[-1].end_time:.1f}s.")
        return timeline

    # ------------------------------------------------------------------
    # Step 4 – render + export
    # ------------------------------------------------------------------

    def render(self, on_progress: Optional[Callable[[int], None]] = None) -> bytes:
        if not self.timeline or not self.audio_path:
            raise RenderError("Nothing to render: sync the timeline first.")

        try:
            audio = self._decoder.decode(self.audio_path)
        except Exception as e:
            self._fail(f"Could not decode audio: {e}")
            raise RenderError(self.error) from e
        self.render_progress = 0

        def _progress(value: float) -> None:
            pct = max(self.render_progress, min(100, int(round(value))))
            if pct != self.render_progress:
                self.render_progress = pct
                if on_progress:
                    on_progress(pct)

        self._log("Starting render...")
        video = self._renderer.render(self.timeline, audio, self._render_config, _progress)
        _progress(100)
        self.video = video
        self.stage = Stage.COMPLETED
        self._log("Render Complete.")
        return video

    def export_manifest(self, output_dir: Optional[Union[str, Path]] = None) -> Path:
        directory = Path(output_dir) if output_dir else self._output_dir
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        return write_manifest(self.lines, directory / f"automedia_manifest_{timestamp}.json")

    def export_video(self, output_dir: Optional[Union[str, Path]] = None) -> Path:
        if self.video is None:
            raise RenderError("No rendered video to export.")
        directory = Path(output_dir) if output_dir else self._output_dir
        directory.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        path = directory / f"automedia_video_{timestamp}.mp4"
        path.write_bytes(self.video)
        return path

    def export_images(self, output_dir: Optional[Union[str, Path]] = None) -> List[Path]:
        """Write every completed image under its derived filename (duplicates get a numeric suffix)."""
        directory = Path(output_dir) if output_dir else self._output_dir / "images"
        directory.mkdir(parents=True, exist_ok=True)
        written = []
        seen = {}
        for line in self.lines:
            if line.status != LineStatus.COMPLETED or not line.image_data:
                continue
            name = line.image_filename or f"{line.id}.png"
            count = seen.get(name, 0)
            seen[name] = count + 1
            if count:
                stem, ext = os.path.splitext(name)
                name = f"{stem}_{count + 1}{ext}"
            path = directory / name
            path.write_bytes(line.image_data)
            written.append(path)
        return written
