import numpy as np
from typing import List, Optional

from pbnart.artwork import PixelBuffer, RGBColor
from pbnart.palette_tools import nearest_centroid_indices

QUANTIZE_PASSES = 5


def seed_centroids(opaque_rgb: np.ndarray, num_colors: int, rng: np.random.Generator) -> np.ndarray:
    """
    Pick the starting centroids as the colors of randomly chosen opaque pixels.

    Pixels are drawn with replacement, so the same pixel can seed more than one
    centroid. With no opaque pixels every centroid starts at black.

    Args:
        opaque_rgb (np.ndarray): Opaque pixel colors, shape [N, 3].
        num_colors (int): Number of centroids (K).
        rng (np.random.Generator): Source of randomness, owned by the caller.

    Returns:
        np.ndarray: Centroids, shape [K, 3], dtype int64.
    """
    if len(opaque_rgb) == 0:
        return np.zeros((num_colors, 3), dtype=np.int64)
    picks = rng.integers(0, len(opaque_rgb), size=num_colors)
    return opaque_rgb[picks].astype(np.int64)


def quantize_colors(
    buffer: PixelBuffer,
    num_colors: int,
    rng: np.random.Generator,
    passes: int = QUANTIZE_PASSES,
    opaque_mask: Optional[np.ndarray] = None
) -> List[RGBColor]:
    """
    Derive `num_colors` representative colors with a fixed number of k-means passes.

    Each pass assigns every opaque pixel to its nearest centroid (lowest index on
    ties) and moves each centroid to the rounded mean of its members. A centroid
    that attracts no pixels keeps its previous value. Duplicate centroids are not
    collapsed here; unused ones drop out when the palette is filtered.

    Args:
        buffer (PixelBuffer): Decoded image. Only pixels with alpha >= 128 take part.
        num_colors (int): Palette size K, must be positive.
        rng (np.random.Generator): Generator used for the initial centroid picks.
        passes (int): Number of refinement passes. Default: 5.
        opaque_mask (np.ndarray, optional): Precomputed opacity mask for the buffer.

    Returns:
        List[RGBColor]: K centroids, in centroid index order.

    Raises:
        ValueError: If num_colors or passes is not a positive/non-negative integer.
    """
    if isinstance(num_colors, bool) or not isinstance(num_colors, (int, np.integer)) or num_colors < 1:
        raise ValueError(f"num_colors must be a positive integer, got {num_colors!r}")
    if passes < 0:
        raise ValueError(f"passes must be >= 0, got {passes}")

    mask = buffer.opaque_mask if opaque_mask is None else opaque_mask
    opaque_rgb = buffer.rgba[:, :, :3][mask].astype(np.int64)  # [N, 3], row-major order

    centroids = seed_centroids(opaque_rgb, int(num_colors), rng)

    if len(opaque_rgb) > 0:
        for _ in range(passes):
            assignment = nearest_centroid_indices(opaque_rgb, centroids)
            counts = np.bincount(assignment, minlength=len(centroids))
            populated = counts > 0
            for channel in range(3):
                sums = np.bincount(assignment, weights=opaque_rgb[:, channel], minlength=len(centroids))
                # Round half up.
                means = np.floor(sums[populated] / counts[populated] + 0.5)
                centroids[populated, channel] = means.astype(np.int64)

    return [RGBColor(int(r), int(g), int(b)) for r, g, b in centroids]
