"""Ports (interfaces) – depend on these, implement in adapters."""

from automedia.ports.interfaces import (
    IAudioAligner,
    IAudioDecoder,
    IImageGenerator,
    IKeyValidator,
    IVideoRenderer,
)

__all__ = [
    "IAudioAligner",
    "IAudioDecoder",
    "IImageGenerator",
    "IKeyValidator",
    "IVideoRenderer",
]
