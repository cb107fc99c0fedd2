import numpy as np
from typing import List, Optional, Sequence

from pbnart.artwork import PixelBuffer, PaletteColor, RGBColor, EXCLUDED, rgb_to_hex

_CHUNK_PIXELS = 65536  # bounds the [chunk, K, 3] distance temporary


def nearest_centroid_indices(pixels_rgb: np.ndarray, centroids) -> np.ndarray:
    """
    Index of the nearest centroid for every pixel, by Euclidean RGB distance.

    Squared distances are compared in exact integer arithmetic, and argmin keeps
    the first minimum, so ties always go to the lowest centroid index.

    Args:
        pixels_rgb (np.ndarray): Nx3 pixel colors.
        centroids: Kx3 centroid colors (array or sequence of RGB triples).

    Returns:
        np.ndarray: Length-N int64 array of centroid indices.
    """
    flat = np.asarray(pixels_rgb, dtype=np.int64).reshape((-1, 3))
    cents = np.asarray(centroids, dtype=np.int64).reshape((-1, 3))
    if len(cents) == 0:
        raise ValueError("At least one centroid is required.")

    nearest = np.empty(len(flat), dtype=np.int64)
    for start in range(0, len(flat), _CHUNK_PIXELS):
        block = flat[start:start + _CHUNK_PIXELS]
        diff = block[:, None, :] - cents[None, :, :]
        dists = np.einsum("nkc,nkc->nk", diff, diff)
        nearest[start:start + _CHUNK_PIXELS] = np.argmin(dists, axis=1)
    return nearest


def label_pixels(
    buffer: PixelBuffer,
    centroids: Sequence[RGBColor],
    opaque_mask: Optional[np.ndarray] = None
) -> np.ndarray:
    """
    Build the label map: nearest centroid index per opaque pixel, EXCLUDED elsewhere.

    Args:
        buffer (PixelBuffer): Decoded image.
        centroids (Sequence[RGBColor]): Quantized colors, in index order.
        opaque_mask (np.ndarray, optional): Precomputed (height, width) opacity mask,
            the same one given to `quantize_colors`.

    Returns:
        np.ndarray: (height, width) int32 label map.
    """
    labels = np.full((buffer.height, buffer.width), EXCLUDED, dtype=np.int32)
    mask = buffer.opaque_mask if opaque_mask is None else opaque_mask
    if mask.any():
        labels[mask] = nearest_centroid_indices(buffer.rgba[:, :, :3][mask], centroids)
    return labels


def build_palette(centroids: Sequence[RGBColor]) -> List[PaletteColor]:
    """Palette entries for each centroid. Ids are 1-based centroid positions and never change."""
    return [
        PaletteColor(id=idx + 1, color=RGBColor(*c), hex=rgb_to_hex(c), count=0)
        for idx, c in enumerate(centroids)
    ]
