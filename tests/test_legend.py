# tests/test_legend.py
from PIL import Image
from pbnart import legend
from pbnart.artwork import PaletteColor, RGBColor, rgb_to_hex


def make_palette(entries):
    return [PaletteColor(id=i, color=RGBColor(*c), hex=rgb_to_hex(c), count=1) for i, c in entries]


def test_create_legend_image_returns_image(tmp_path):
    palette = make_palette([(1, (255, 0, 0)), (2, (0, 255, 0)), (3, (0, 0, 255))])

    legend_image = legend.create_legend_image(palette, font_size=12, swatch_size=20, padding=5)

    assert isinstance(legend_image, Image.Image)
    num_colors = len(palette)
    expected_width = (20 * num_colors) + (5 * (num_colors + 1))
    expected_height = 20 + (2 * 5)
    assert legend_image.size == (expected_width, expected_height)

    outpath = tmp_path / "legend_test_output.png"
    legend_image.save(outpath)
    assert outpath.exists()


def test_create_legend_image_with_empty_palette():
    assert legend.create_legend_image([]) is None


def test_create_legend_image_with_sparse_ids():
    # Ids 2 and 5 survived filtering; swatches are still laid out back to back
    palette = make_palette([(2, (255, 255, 0)), (5, (0, 40, 40))])
    img = legend.create_legend_image(palette, font_size=10, swatch_size=15, padding=2)
    assert img.size == (15 * 2 + 2 * 3, 15 + 2 * 2)
    # Swatch corner keeps the palette color
    assert img.getpixel((2 + 1, 2 + 1)) == (255, 255, 0)
    assert img.getpixel((2 + 15 + 2 + 1, 2 + 1)) == (0, 40, 40)
