"""Singer IO reader and writer classes."""

from __future__ import annotations

from .base import DecodeResult, GenericSingerReader, GenericSingerWriter
from .simple import SingerReader, SingerWriter

__all__ = [
    "DecodeResult",
    "GenericSingerReader",
    "GenericSingerWriter",
    "SingerReader",
    "SingerWriter",
]
