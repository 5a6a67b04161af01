"""
Packed blocking bitmaps.

Cell ``(x, y)`` of a ``width`` x ``height`` map lives at bit
``(x + width * y) % 8`` of byte ``(x + width * y) // 8``, least significant
bit first. A set bit means the cell blocks line of sight.
"""

from __future__ import annotations

import numpy as np
import structlog

log = structlog.get_logger(__name__)


def packed_size(width: int, height: int) -> int:
    """Number of bytes needed to hold a full ``width`` x ``height`` bitmap."""
    return (width * height + 7) // 8


def unpack_blocking_bits(
    buffer: bytes | bytearray | np.ndarray, width: int, height: int
) -> np.ndarray:
    """
    Decode a packed bitmap into a ``(height, width)`` boolean array.

    Cells whose byte lies past the end of ``buffer`` stay non-blocking.
    """
    cell_count = width * height
    raw = np.frombuffer(bytes(buffer), dtype=np.uint8)
    bits = np.unpackbits(raw, bitorder="little")[:cell_count].astype(bool)
    if bits.size < cell_count:
        log.debug(
            "Blocking bitmap shorter than map",
            expected_bytes=packed_size(width, height),
            actual_bytes=raw.size,
        )
        bits = np.concatenate([bits, np.zeros(cell_count - bits.size, dtype=bool)])
    return bits.reshape((height, width))


def pack_blocking_bits(blocking: np.ndarray) -> bytes:
    """Inverse of :func:`unpack_blocking_bits` for a ``(height, width)`` array."""
    flat = np.ascontiguousarray(blocking, dtype=bool).reshape(-1)
    return np.packbits(flat, bitorder="little").tobytes()
