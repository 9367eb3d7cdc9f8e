"""Save container codec.

A save file is a single zlib (DEFLATE) stream whose payload is a SQLite database file.
There is no other framing. Encoding uses zlib's default level; only decode-ability is
guaranteed, never byte equality with the game's own encoder.
"""

from __future__ import annotations

import zlib

from config import CONTAINER_HEADER_BYTE
from errors import FormatError


def is_container(data: bytes) -> bool:
    return bool(data) and data[0] == CONTAINER_HEADER_BYTE


def decode(data: bytes) -> bytes:
    """Container bytes -> raw database bytes."""
    if not is_container(data):
        first = data[0] if data else None
        raise FormatError(
            "File is not in DEFLATE format",
            {"first_byte": first},
        )
    inflater = zlib.decompressobj()
    try:
        out = inflater.decompress(data)
        out += inflater.flush()
    except zlib.error as exc:
        raise FormatError(f"Corrupt save container: {exc}") from exc
    if not inflater.eof:
        raise FormatError("Truncated save container")
    return out


def encode(database: bytes) -> bytes:
    """Raw database bytes -> container bytes (deterministic, default level)."""
    return zlib.compress(bytes(database), zlib.Z_DEFAULT_COMPRESSION)
