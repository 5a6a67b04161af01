"""Fog-of-war mask helpers for rendering."""

import numpy as np
import structlog
from numba import njit

log = structlog.get_logger()

MASK_CHANNELS = 4
OPAQUE_ALPHA = 255
SEEN_LEVEL = 255


def new_fog_mask(width: int, height: int) -> np.ndarray:
    """An all-dark RGBA mask of shape ``(height, width, 4)``."""
    mask = np.zeros((height, width, MASK_CHANNELS), dtype=np.uint8)
    mask[:, :, 3] = OPAQUE_ALPHA
    return mask


@njit(cache=True, nogil=True)
def sweep_fog_mask(
    seen: np.ndarray,
    remembered: np.ndarray,
    mask: np.ndarray,
    dark_fog_gray: int,
) -> int:
    """
    Writes the current seen/remembered state into ``mask`` and clears ``seen``.

    Red and blue carry the current level; green keeps the previous frame's
    red so the shader can blend between the two.
    Returns the number of cells that were seen.
    """
    height, width = seen.shape
    seen_count = 0
    for y in range(height):
        for x in range(width):
            previous_red = mask[y, x, 0]
            if seen[y, x]:
                level = SEEN_LEVEL
                seen_count += 1
            elif remembered[y, x]:
                level = dark_fog_gray
            else:
                level = 0
            mask[y, x, 0] = level
            mask[y, x, 1] = previous_red
            mask[y, x, 2] = level
            mask[y, x, 3] = OPAQUE_ALPHA
            seen[y, x] = False
    return seen_count


def mark_source_pixel(mask: np.ndarray, x: int, y: int) -> None:
    """Paints the viewer's own cell pure white."""
    height, width = mask.shape[:2]
    if 0 <= x < width and 0 <= y < height:
        mask[y, x, :] = SEEN_LEVEL
    else:
        log.warning("Fog source pixel outside mask", x=x, y=y, shape=(height, width))
