from collections import deque
from dataclasses import dataclass, replace
from typing import Optional, List, Tuple, Sequence
import numpy as np

from pbnart.artwork import PaletteColor, EXCLUDED

MIN_REGION_AREA = 10


@dataclass(frozen=True)
class PixelRegion:
    """One surviving connected component: its centroid index and its pixels."""
    label: int
    pixels: Tuple[int, ...]

    @property
    def area(self) -> int:
        return len(self.pixels)


def extract_regions(
    label_map: np.ndarray,
    min_area: int = MIN_REGION_AREA,
    visited: Optional[bytearray] = None
) -> List[PixelRegion]:
    """
    Split a label map into 4-connected same-label components.

    A single row-major scan seeds a breadth-first flood fill at every unvisited,
    non-excluded pixel. Each pixel is visited exactly once over the whole map.
    Components smaller than `min_area` are dropped outright; their pixels are not
    handed to any neighbour.

    Args:
        label_map (np.ndarray): (height, width) array of centroid indices or EXCLUDED.
        min_area (int): Smallest component, in pixels, that becomes a region. Default: 10.
        visited (bytearray, optional): Zeroed visitation bitmap of width*height bytes.
            The call owns it until it returns. Allocated internally if omitted.

    Returns:
        List[PixelRegion]: Regions in discovery order. Pixel indices are y * width + x.
    """
    if min_area < 1:
        raise ValueError(f"min_area must be >= 1, got {min_area}")
    if label_map.ndim != 2:
        raise ValueError(f"label_map must be 2-D, got shape {label_map.shape}")

    height, width = label_map.shape
    total = width * height
    if visited is None:
        visited = bytearray(total)
    elif len(visited) != total or any(visited):
        raise ValueError("visited bitmap must be zeroed and hold exactly width*height entries")

    labels = label_map.ravel().tolist()
    regions: List[PixelRegion] = []

    for seed in range(total):
        if visited[seed] or labels[seed] == EXCLUDED:
            continue
        label = labels[seed]
        visited[seed] = 1
        component = [seed]
        queue = deque([seed])
        while queue:
            idx = queue.popleft()
            x = idx % width
            # right, left, down, up
            if x + 1 < width:
                n = idx + 1
                if not visited[n] and labels[n] == label:
                    visited[n] = 1; queue.append(n); component.append(n)
            if x > 0:
                n = idx - 1
                if not visited[n] and labels[n] == label:
                    visited[n] = 1; queue.append(n); component.append(n)
            n = idx + width
            if n < total and not visited[n] and labels[n] == label:
                visited[n] = 1; queue.append(n); component.append(n)
            n = idx - width
            if n >= 0 and not visited[n] and labels[n] == label:
                visited[n] = 1; queue.append(n); component.append(n)

        if len(component) >= min_area:
            regions.append(PixelRegion(label=label, pixels=tuple(component)))

    return regions


def filter_palette(palette: Sequence[PaletteColor], regions: Sequence[PixelRegion]) -> List[PaletteColor]:
    """
    Fill in usage counts and drop palette entries no region uses.

    Entries keep their ids, so the surviving ids can have gaps.
    """
    usage = [0] * len(palette)
    for region in regions:
        usage[region.label] += 1
    return [replace(entry, count=usage[idx]) for idx, entry in enumerate(palette) if usage[idx] > 0]


def find_label_point(pixels: Sequence[int], width: int) -> Tuple[float, float]:
    """
    Mean pixel position shifted onto pixel centres.

    For concave or multi-lobed regions the point can land outside the region.
    """
    if not pixels:
        raise ValueError("Cannot place a label for an empty region.")
    idx = np.asarray(pixels, dtype=np.int64)
    xs = idx % width
    ys = idx // width
    return float(xs.mean()) + 0.5, float(ys.mean()) + 0.5
