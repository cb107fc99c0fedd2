from PIL import Image, ImageDraw
from typing import Optional, Sequence

from pbnart.artwork import PaletteColor
from pbnart.render import get_label_font


def create_legend_image(
    palette: Sequence[PaletteColor],
    font_path: Optional[str] = None,
    font_size: int = 14,
    swatch_size: int = 40,
    padding: int = 10
) -> Optional[Image.Image]:
    """
    Creates a palette legend PIL Image object.

    Each swatch is numbered with its palette id, the same number painted into
    the matching regions. Ids can have gaps after unused colors are dropped.

    Args:
        palette (Sequence[PaletteColor]): Palette entries, in display order.
        font_path (str, optional): Path to a TTF font file.
        font_size (int): Font size for the id numbers.
        swatch_size (int): Width/height of each color swatch.
        padding (int): Space around elements and between swatches.

    Returns:
        PIL.Image.Image: The generated legend image, or None if the palette is empty.
    """
    num_colors = len(palette)
    if num_colors == 0:
        return None

    width = (swatch_size * num_colors) + (padding * (num_colors + 1))
    height = swatch_size + (2 * padding)

    image = Image.new("RGB", (width, height), color=(255, 255, 255))
    draw = ImageDraw.Draw(image)
    loaded_font = get_label_font(font_path, font_size)

    for idx, entry in enumerate(palette):
        x_start_swatch = padding + idx * (swatch_size + padding)
        y_start_swatch = padding
        fill_color = tuple(int(c) for c in entry.color)

        draw.rectangle(
            [x_start_swatch, y_start_swatch, x_start_swatch + swatch_size, y_start_swatch + swatch_size],
            fill=fill_color,
            outline=(0, 0, 0)
        )

        # Dark text on light swatches, light text on dark ones.
        luminance = 0.299 * fill_color[0] + 0.587 * fill_color[1] + 0.114 * fill_color[2]
        text_color = (0, 0, 0) if luminance >= 128 else (255, 255, 255)

        draw.text(
            (x_start_swatch + swatch_size / 2.0, y_start_swatch + swatch_size / 2.0),
            str(entry.id), fill=text_color, font=loaded_font, anchor="mm"
        )

    return image
