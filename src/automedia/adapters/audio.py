"""IAudioDecoder adapter using pydub (ffmpeg under the hood)."""

import numpy as np
from pydub import AudioSegment

from automedia.domain.models import DecodedAudio
from automedia.ports.interfaces import IAudioDecoder


class PydubAudioDecoder(IAudioDecoder):
    """Decodes any ffmpeg-readable file to float samples shaped (frames, channels)."""

    def decode(self, audio_path: str) -> DecodedAudio:
        segment = AudioSegment.from_file(audio_path)
        return self.from_segment(segment)

    @staticmethod
    def from_segment(segment: AudioSegment) -> DecodedAudio:
        samples = np.array(segment.get_array_of_samples(), dtype=np.float32)
        channels = segment.channels or 1
        if channels > 1:
            samples = samples.reshape((-1, channels))
        else:
            samples = samples.reshape((-1, 1))
        # int PCM -> [-1, 1]
        scale = float(1 << (8 * segment.sample_width - 1))
        samples = samples / scale
        return DecodedAudio(samples=samples, sample_rate=segment.frame_rate, channels=channels)
