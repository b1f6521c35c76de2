"""IVideoRenderer adapter using MoviePy (2.x) + Pillow."""

import io
import os
import tempfile
from typing import Callable, Sequence

import numpy as np
from moviepy import CompositeVideoClip, ImageClip, vfx
from moviepy.audio.AudioClip import AudioArrayClip
from PIL import Image
from proglog import ProgressBarLogger

from automedia.domain.errors import RenderError
from automedia.domain.models import DecodedAudio, RenderConfig, TimelineEntry
from automedia.ports.interfaces import IVideoRenderer


class _FrameProgressLogger(ProgressBarLogger):
    """Forwards MoviePy's frame bar as a 0-99 percentage (100 is sent once the file is written)."""

    def __init__(self, on_progress: Callable[[float], None]):
        super().__init__()
        self._on_progress = on_progress
        self._last = 0.0

    def bars_callback(self, bar, attr, value, old_value=None):
        if bar != "frame_index" or attr != "index":
            return
        total = self.bars[bar].get("total") or 0
        if not total:
            return
        pct = min(99.0, 100.0 * value / total)
        if pct > self._last:
            self._last = pct
            self._on_progress(pct)


def fit_image(image_bytes: bytes, width: int, height: int) -> np.ndarray:
    """Scale to cover the frame (LANCZOS) and center on black, cropping the overflow."""
    pil_img = Image.open(io.BytesIO(image_bytes)).convert("RGB")
    img_w, img_h = pil_img.size
    scale = max(width / img_w, height / img_h)
    new_w = max(1, int(round(img_w * scale)))
    new_h = max(1, int(round(img_h * scale)))
    pil_img = pil_img.resize((new_w, new_h), Image.Resampling.LANCZOS)

    final_img = Image.new("RGB", (width, height), color="black")
    x_offset = (width - new_w) // 2
    y_offset = (height - new_h) // 2
    final_img.paste(pil_img, (x_offset, y_offset))
    return np.array(final_img)


class MoviePyRenderer(IVideoRenderer):
    def __init__(self, codec: str = "libx264", audio_codec: str = "aac", preset: str = "fast", threads: int = 4):
        self.codec = codec
        self.audio_codec = audio_codec
        self.preset = preset
        self.threads = threads

    def _build_clips(self, timeline: Sequence[TimelineEntry], config: RenderConfig, total_duration: float):
        clips = []
        for i, entry in enumerate(timeline):
            duration = entry.duration
            if i == len(timeline) - 1:
                # hold the last image until the narration ends
                duration = max(duration, total_duration - entry.start_time)
            frame = fit_image(entry.image, config.width, config.height)
            clip = (
                ImageClip(frame, duration=duration)
                .with_start(entry.start_time)
                .with_position("center")
            )
            if config.fade_in_duration > 0:
                clip = clip.with_effects([vfx.FadeIn(min(config.fade_in_duration, duration))])
            clips.append(clip)
        return clips

    def render(
        self,
        timeline: Sequence[TimelineEntry],
        audio: DecodedAudio,
        config: RenderConfig,
        on_progress: Callable[[float], None],
    ) -> bytes:
        if not timeline:
            raise RenderError("Timeline is empty")

        total_duration = max(timeline[-1].end_time, audio.duration)
        on_progress(0)
        try:
            clips = self._build_clips(timeline, config, total_duration)
            video = CompositeVideoClip(clips, size=(config.width, config.height), bg_color=(0, 0, 0))
            video = video.with_duration(total_duration)
            if len(audio.samples):
                audio_clip = AudioArrayClip(np.asarray(audio.samples), fps=audio.sample_rate)
                video = video.with_audio(audio_clip)

            with tempfile.TemporaryDirectory() as tmp_dir:
                output_path = os.path.join(tmp_dir, "render.mp4")
                video.write_videofile(
                    output_path,
                    fps=config.fps,
                    codec=self.codec,
                    audio_codec=self.audio_codec,
                    preset=self.preset,
                    threads=self.threads,
                    logger=_FrameProgressLogger(on_progress),
                )
                video.close()
                with open(output_path, "rb") as f:
                    data = f.read()
        except RenderError:
            raise
        except Exception as e:
            raise RenderError(f"Error creating video: {e}") from e

        on_progress(100)
        return data
