from pathlib import Path
from typing import Optional, Union
import numpy as np

from pbnart.artwork import PixelBuffer, ProcessedArt, Region, DecodeFailure
from pbnart.quantize import quantize_colors
from pbnart.palette_tools import label_pixels, build_palette
from pbnart.segment import extract_regions, filter_palette, find_label_point, MIN_REGION_AREA
from pbnart.contour import build_edge_soup
from pbnart.file_utils import load_pixel_buffer, MAX_SIDE


def process_buffer(
    buffer: Optional[PixelBuffer],
    num_colors: int,
    rng: Optional[np.random.Generator] = None,
    min_region_area: int = MIN_REGION_AREA,
    source: Optional[str] = None
) -> ProcessedArt:
    """
    Turn a decoded pixel buffer into a paint-by-numbers artwork.

    Quantize, label, extract regions, then outline and place a label for each
    surviving region. The palette only lists colors used by at least one region,
    under their original ids.

    Args:
        buffer (PixelBuffer): Decoded RGBA image. None means decoding produced nothing.
        num_colors (int): Palette size K.
        rng (np.random.Generator, optional): Generator for centroid seeding. A fresh,
            OS-seeded generator is used when omitted; pass a seeded one for repeatable output.
        min_region_area (int): Smallest region kept, in pixels. Default: 10.
        source (str, optional): Reference to the source image, stored on the result.

    Returns:
        ProcessedArt: The finished artwork; zero regions for a fully transparent buffer.

    Raises:
        DecodeFailure: If no buffer was supplied.
        ValueError: If num_colors or min_region_area is invalid.
    """
    if buffer is None:
        raise DecodeFailure("No pixel buffer was supplied.")
    if rng is None:
        rng = np.random.default_rng()

    opaque_mask = buffer.opaque_mask
    centroids = quantize_colors(buffer, num_colors, rng, opaque_mask=opaque_mask)
    palette = build_palette(centroids)
    label_map = label_pixels(buffer, centroids, opaque_mask=opaque_mask)
    pixel_regions = extract_regions(label_map, min_area=min_region_area)
    del label_map

    regions = tuple(
        Region(
            color_id=palette[pr.label].id,
            boundary=build_edge_soup(pr.pixels, buffer.width, buffer.height),
            label_point=find_label_point(pr.pixels, buffer.width),
            area=pr.area,
            pixels=pr.pixels,
        )
        for pr in pixel_regions
    )

    return ProcessedArt(
        width=buffer.width,
        height=buffer.height,
        palette=tuple(filter_palette(palette, pixel_regions)),
        regions=regions,
        source=source,
    )


def process_image(
    input_path: Union[str, Path],
    num_colors: int,
    rng: Optional[np.random.Generator] = None,
    min_region_area: int = MIN_REGION_AREA,
    max_side: int = MAX_SIDE,
    blur_radius: float = 1.0
) -> ProcessedArt:
    """Decode an image file (downscaled, lightly blurred) and run `process_buffer` on it."""
    buffer = load_pixel_buffer(input_path, max_side=max_side, blur_radius=blur_radius)
    return process_buffer(
        buffer, num_colors, rng=rng, min_region_area=min_region_area, source=str(input_path)
    )
