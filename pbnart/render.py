import os
from pathlib import Path
from typing import Optional, Union
import numpy as np
from PIL import Image, ImageDraw, ImageFont, ImageColor
import typer

from pbnart.artwork import ProcessedArt


def get_label_font(font_path_str: Optional[str], font_size: int) -> ImageFont.ImageFont:
    font_to_use = None
    if font_path_str and os.path.isfile(font_path_str):
        try:
            font_to_use = ImageFont.truetype(font_path_str, font_size)
        except OSError:
            typer.secho(f"Warning: Could not load font '{font_path_str}', using default font.", fg=typer.colors.YELLOW)
    if font_to_use is None:
        font_to_use = ImageFont.load_default(size=font_size)
    return font_to_use


def _parse_color(color_str: str, fallback: tuple) -> tuple:
    try:
        return ImageColor.getrgb(color_str)[:3]
    except ValueError:
        typer.secho(f"Warning: Invalid color string '{color_str}'. Defaulting to {fallback}.", fg=typer.colors.YELLOW)
        return fallback


def render_outline_image(
    art: ProcessedArt,
    font_path: Optional[Union[str, Path]] = None,
    font_size: int = 10,
    label_text_color: str = "#88ddff",
    outline_color_str_hex: str = "#88ddff"
) -> Image.Image:
    """
    Raster paint-by-numbers canvas: every boundary edge as a 1px line and each
    region's palette id centred on its label point.

    Grid vertex (x, y) is drawn on pixel (x, y), clamped to the canvas, so the
    right/bottom image border lands on the last pixel column/row.
    """
    width, height = art.width, art.height
    output_img = Image.new("RGB", (max(1, width), max(1, height)), color=(255, 255, 255))
    draw = ImageDraw.Draw(output_img)

    outline_rgb = _parse_color(outline_color_str_hex, (102, 204, 255))
    label_rgb = _parse_color(label_text_color, (102, 204, 255))
    font_to_use = get_label_font(str(font_path) if font_path else None, font_size)

    max_x, max_y = max(0, width - 1), max(0, height - 1)
    for region in art.regions:
        for (x0, y0), (x1, y1) in region.boundary:
            draw.line(
                [(min(x0, max_x), min(y0, max_y)), (min(x1, max_x), min(y1, max_y))],
                fill=outline_rgb, width=1
            )

    for region in art.regions:
        lx, ly = region.label_point
        draw.text((float(lx), float(ly)), str(region.color_id), font=font_to_use, fill=label_rgb, anchor="mm")

    return output_img


def render_filled_preview(art: ProcessedArt) -> Image.Image:
    """
    What the finished painting looks like: region pixels in their palette colors,
    everything not covered by a region (transparent or dropped as noise) left white.
    """
    canvas = np.full((max(1, art.height), max(1, art.width), 3), 255, dtype=np.uint8)
    flat = canvas.reshape((-1, 3))
    colors_by_id = art.palette_by_id()
    for region in art.regions:
        if not region.pixels:
            continue
        flat[np.asarray(region.pixels, dtype=np.int64)] = colors_by_id[region.color_id].color
    return Image.fromarray(canvas, "RGB")
