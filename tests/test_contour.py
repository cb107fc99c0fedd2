# tests/test_contour.py
from pbnart.contour import build_edge_soup, trace_boundary_loops


def rect_pixels(x0, y0, w, h, width):
    return [y * width + x for y in range(y0, y0 + h) for x in range(x0, x0 + w)]


def signed_area(loop):
    total = 0
    for (x0, y0), (x1, y1) in zip(loop, loop[1:] + loop[:1]):
        total += x0 * y1 - x1 * y0
    return total / 2.0


def test_single_pixel_image_is_unit_square():
    edges = build_edge_soup([0], 1, 1)
    assert len(edges) == 4
    assert set(edges) == {
        ((0, 0), (1, 0)),
        ((0, 1), (1, 1)),
        ((0, 0), (0, 1)),
        ((1, 0), (1, 1)),
    }


def test_isolated_rectangle_edge_count():
    width, height = 10, 8
    for w, h in [(1, 1), (3, 2), (4, 5)]:
        pixels = rect_pixels(2, 2, w, h, width)
        assert len(build_edge_soup(pixels, width, height)) == 2 * (w + h)


def test_region_touching_image_border_keeps_border_edges():
    # Full 3x2 image: the outline is the image border
    edges = build_edge_soup(rect_pixels(0, 0, 3, 2, 3), 3, 2)
    assert len(edges) == 10
    assert ((2, 0), (3, 0)) in edges
    assert ((3, 1), (3, 2)) in edges


def test_hole_edges_are_included():
    # 3x3 ring with the centre missing
    width = 5
    pixels = [p for p in rect_pixels(1, 1, 3, 3, width) if p != 2 * width + 2]
    edges = build_edge_soup(pixels, width, 5)
    assert len(edges) == 12 + 4
    for hole_edge in [((2, 2), (3, 2)), ((2, 3), (3, 3)), ((2, 2), (2, 3)), ((3, 2), (3, 3))]:
        assert hole_edge in edges


def test_loops_for_single_pixel():
    loops = trace_boundary_loops([0], 1, 1)
    assert loops == [[(0, 0), (1, 0), (1, 1), (0, 1)]]


def test_loops_use_every_edge_once_and_close():
    width = 7
    pixels = rect_pixels(1, 1, 4, 3, width) + [5 * width + 1]
    loops = trace_boundary_loops(pixels, width, 7)
    assert sum(len(loop) for loop in loops) == len(build_edge_soup(pixels, width, 7))
    for loop in loops:
        for (x0, y0), (x1, y1) in zip(loop, loop[1:] + loop[:1]):
            assert abs(x1 - x0) + abs(y1 - y0) == 1


def test_hole_loop_has_opposite_orientation():
    width = 5
    pixels = [p for p in rect_pixels(1, 1, 3, 3, width) if p != 2 * width + 2]
    loops = trace_boundary_loops(pixels, width, 5)
    areas = sorted(signed_area(loop) for loop in loops)
    assert areas == [-1.0, 9.0]
    assert sum(areas) == len(pixels)


def test_corner_touching_pixels_make_two_loops():
    # (0,0) and (1,1) meet only at a corner
    loops = trace_boundary_loops([0, 3], 2, 2)
    assert len(loops) == 2
    assert all(len(loop) == 4 for loop in loops)
