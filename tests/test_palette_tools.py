# tests/test_palette_tools.py
import numpy as np
import pytest
from pbnart.artwork import PixelBuffer, RGBColor, EXCLUDED
from pbnart import palette_tools


def test_nearest_centroid_basic():
    pixels = np.array([[250, 5, 5], [3, 3, 240], [10, 250, 10]])
    centroids = [RGBColor(255, 0, 0), RGBColor(0, 255, 0), RGBColor(0, 0, 255)]
    assert palette_tools.nearest_centroid_indices(pixels, centroids).tolist() == [0, 2, 1]


def test_nearest_centroid_ties_go_to_lowest_index():
    # Equidistant from both centroids
    pixels = np.array([[10, 10, 10]])
    centroids = [RGBColor(0, 10, 10), RGBColor(20, 10, 10)]
    assert palette_tools.nearest_centroid_indices(pixels, centroids).tolist() == [0]

    duplicates = [RGBColor(5, 5, 5), RGBColor(5, 5, 5), RGBColor(5, 5, 5)]
    assert palette_tools.nearest_centroid_indices(pixels, duplicates).tolist() == [0]


def test_nearest_centroid_requires_centroids():
    with pytest.raises(ValueError):
        palette_tools.nearest_centroid_indices(np.zeros((1, 3)), [])


def test_label_pixels_marks_transparent_as_excluded():
    rgba = np.array([[
        (255, 0, 0, 255),
        (255, 0, 0, 10),
        (0, 0, 255, 200),
    ]], dtype=np.uint8)
    labels = palette_tools.label_pixels(
        PixelBuffer.from_array(rgba), [RGBColor(0, 0, 255), RGBColor(255, 0, 0)]
    )
    assert labels.shape == (1, 3)
    assert labels.tolist() == [[1, EXCLUDED, 0]]


def test_label_pixels_fully_transparent():
    rgba = np.zeros((2, 3, 4), dtype=np.uint8)
    labels = palette_tools.label_pixels(PixelBuffer.from_array(rgba), [RGBColor(0, 0, 0)])
    assert (labels == EXCLUDED).all()


def test_label_pixels_with_precomputed_mask():
    rgba = np.array([[
        (255, 0, 0, 255),
        (0, 0, 255, 255),
        (0, 0, 255, 255),
    ]], dtype=np.uint8)
    buffer = PixelBuffer.from_array(rgba)
    centroids = [RGBColor(255, 0, 0), RGBColor(0, 0, 255)]
    mask = np.array([[True, False, True]])
    labels = palette_tools.label_pixels(buffer, centroids, opaque_mask=mask)
    assert labels.tolist() == [[0, EXCLUDED, 1]]
    np.testing.assert_array_equal(
        palette_tools.label_pixels(buffer, centroids, opaque_mask=buffer.opaque_mask),
        palette_tools.label_pixels(buffer, centroids),
    )


def test_build_palette_ids_and_hex():
    palette = palette_tools.build_palette([RGBColor(255, 0, 0), RGBColor(0, 16, 255)])
    assert [p.id for p in palette] == [1, 2]
    assert [p.hex for p in palette] == ["#ff0000", "#0010ff"]
    assert all(p.count == 0 for p in palette)
