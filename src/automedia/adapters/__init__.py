"""
Adapters – concrete implementations of ports.
Gemini (REST) for key validation, images and alignment; pydub for audio
decoding; MoviePy for rendering. Inject fakes through default_adapters(**overrides).
"""

from automedia.adapters.audio import PydubAudioDecoder
from automedia.adapters.gemini import (
    GeminiAlignerAdapter,
    GeminiImageAdapter,
    GeminiKeyValidator,
)
from automedia.adapters.video import MoviePyRenderer


def default_adapters(**overrides):
    """
    Build default adapter instances.
    Overrides: image_generator=..., audio_aligner=..., etc. for testing or other services.
    """
    defaults = {
        "image_generator": GeminiImageAdapter(),
        "key_validator": GeminiKeyValidator(),
        "audio_aligner": GeminiAlignerAdapter(),
        "audio_decoder": PydubAudioDecoder(),
        "video_renderer": MoviePyRenderer(),
    }
    defaults.update(overrides)
    return defaults


__all__ = [
    "GeminiAlignerAdapter",
    "GeminiImageAdapter",
    "GeminiKeyValidator",
    "MoviePyRenderer",
    "PydubAudioDecoder",
    "default_adapters",
]
