from typing import Dict, List, Sequence, Tuple

from pbnart.artwork import Edge, Point


def build_edge_soup(pixels: Sequence[int], width: int, height: int) -> Tuple[Edge, ...]:
    """
    Unit grid edges separating a region's pixels from everything else.

    For each pixel, each of its four sides (top, bottom, left, right) is emitted
    when the neighbour across it is off-image or not part of the region. The
    result is unordered and not merged into runs; drawn together the edges trace
    the exact pixel outline, holes included.

    Args:
        pixels (Sequence[int]): Linear pixel indices (y * width + x) of one region.
        width (int): Image width.
        height (int): Image height.

    Returns:
        Tuple[Edge, ...]: Edges as ((x0, y0), (x1, y1)) grid coordinates.
    """
    members = set(pixels)
    edges: List[Edge] = []
    for idx in pixels:
        x, y = idx % width, idx // width
        if y == 0 or (idx - width) not in members:
            edges.append(((x, y), (x + 1, y)))
        if y == height - 1 or (idx + width) not in members:
            edges.append(((x, y + 1), (x + 1, y + 1)))
        if x == 0 or (idx - 1) not in members:
            edges.append(((x, y), (x, y + 1)))
        if x == width - 1 or (idx + 1) not in members:
            edges.append(((x + 1, y), (x + 1, y + 1)))
    return tuple(edges)


def _oriented_edges(pixels: Sequence[int], width: int, height: int) -> List[Edge]:
    # Same boundary as build_edge_soup, but each edge runs with the region on its right
    # (image coordinates, y down): outer loops come out clockwise, holes anticlockwise.
    members = set(pixels)
    edges: List[Edge] = []
    for idx in pixels:
        x, y = idx % width, idx // width
        if y == 0 or (idx - width) not in members:
            edges.append(((x, y), (x + 1, y)))
        if x == width - 1 or (idx + 1) not in members:
            edges.append(((x + 1, y), (x + 1, y + 1)))
        if y == height - 1 or (idx + width) not in members:
            edges.append(((x + 1, y + 1), (x, y + 1)))
        if x == 0 or (idx - 1) not in members:
            edges.append(((x, y + 1), (x, y)))
    return edges


def trace_boundary_loops(pixels: Sequence[int], width: int, height: int) -> List[List[Point]]:
    """
    Chain a region's boundary into closed, consistently oriented vertex loops.

    Every unit vertex is kept; the first vertex is not repeated at the end. Where
    two loops touch at a single corner, the walk takes the sharpest right turn so
    diagonal neighbours end up in separate loops. The loops together use each
    boundary edge exactly once, so their segment count equals the edge-soup size.
    """
    edges = _oriented_edges(pixels, width, height)
    outgoing: Dict[Point, List[Edge]] = {}
    for edge in edges:
        outgoing.setdefault(edge[0], []).append(edge)

    used = set()
    loops: List[List[Point]] = []
    for first in edges:
        if first in used:
            continue
        used.add(first)
        loop = [first[0]]
        start, (cx, cy) = first[0], first[1]
        dx, dy = cx - first[0][0], cy - first[0][1]
        while (cx, cy) != start:
            loop.append((cx, cy))
            # Candidate headings: right turn, straight on, left turn.
            preferred = [(-dy, dx), (dx, dy), (dy, -dx)]
            candidates = [e for e in outgoing.get((cx, cy), []) if e not in used]
            candidates.sort(key=lambda e: preferred.index((e[1][0] - cx, e[1][1] - cy))
                            if (e[1][0] - cx, e[1][1] - cy) in preferred else len(preferred))
            nxt = candidates[0]
            used.add(nxt)
            dx, dy = nxt[1][0] - cx, nxt[1][1] - cy
            cx, cy = nxt[1]
        loops.append(loop)
    return loops
