import json
import re
from pathlib import Path
from PIL import Image, ImageFilter, ImageOps, PngImagePlugin, UnidentifiedImageError
from typing import Optional, Dict, Union
import numpy as np
import svgwrite

from pbnart.artwork import (
    PixelBuffer, ProcessedArt, DecodeFailure, artwork_to_dict, artwork_from_dict,
)
from pbnart.contour import trace_boundary_loops

MAX_SIDE = 600
SOFTWARE_TAG = "pbnart paint-by-numbers generator"


def _clean_metadata_key(key: str) -> str:
    key_clean = re.sub(r'\s+', '_', key)
    key_clean = re.sub(r'[^a-zA-Z0-9_.-]', '', key_clean)
    if not re.match(r'^[a-zA-Z_]', key_clean):  # must start with letter or underscore
        key_clean = "pbnart_" + key_clean
    return key_clean[:70]  # tEXt keywords are capped at 79 bytes, leave room for the prefix


def load_pixel_buffer(
    input_path: Union[str, Path],
    max_side: int = MAX_SIDE,
    blur_radius: float = 1.0
) -> PixelBuffer:
    """
    Decode an image file into an RGBA pixel buffer.

    The image is EXIF-rotated, converted to RGBA, downscaled so its longer side is
    at most `max_side` and then softened with a small Gaussian blur to cut speckle.
    The blur runs on premultiplied alpha, so soft edges keep the opaque color.

    Args:
        input_path (str | Path): Image file to open.
        max_side (int): Longest allowed side in pixels. Default: 600.
        blur_radius (float): Gaussian blur radius; 0 disables it. Default: 1.

    Returns:
        PixelBuffer: The decoded, bounded image.

    Raises:
        DecodeFailure: If the file is missing, unreadable or not an image.
    """
    if max_side < 1:
        raise ValueError(f"max_side must be >= 1, got {max_side}")
    try:
        with Image.open(input_path) as img:
            img.load()
            image = ImageOps.exif_transpose(img).convert("RGBA")
    except FileNotFoundError as e:
        raise DecodeFailure(f"Input file not found at {input_path}") from e
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        raise DecodeFailure(f"Could not decode image {input_path}: {e}") from e

    width, height = image.size
    if width == 0 or height == 0:
        raise DecodeFailure(f"Image {input_path} has zero dimension.")

    longer = max(width, height)
    if longer > max_side:
        scale = max_side / float(longer)
        new_size = (max(1, round(width * scale)), max(1, round(height * scale)))
        image = image.resize(new_size, Image.Resampling.LANCZOS)

    if blur_radius and blur_radius > 0:
        image = image.convert("RGBa").filter(ImageFilter.GaussianBlur(radius=blur_radius)).convert("RGBA")

    return PixelBuffer.from_array(np.array(image))


def save_pbn_png(
    image_to_save: Image.Image,
    output_path: Path,
    command_line_invocation: Optional[str] = None,
    additional_metadata: Optional[Dict[str, str]] = None
):
    """
    Saves a PIL Image object as a PNG file, embedding specified metadata.
    """
    if not isinstance(output_path, Path):
        output_path = Path(output_path)

    if not output_path.parent.exists():
        output_path.parent.mkdir(parents=True, exist_ok=True)

    png_info = PngImagePlugin.PngInfo()

    if command_line_invocation:
        png_info.add_text("pbnart:command_line", command_line_invocation)

    png_info.add_text("Software", SOFTWARE_TAG)

    if additional_metadata:
        for key, value in additional_metadata.items():
            png_info.add_text(f"pbnart:{_clean_metadata_key(key)}", str(value))

    image_to_save.save(output_path, "PNG", pnginfo=png_info)


def save_pbn_svg(
    output_path: Path,
    art: ProcessedArt,
    label_color_str: str = "#88ddff",
    outline_color_hex: str = "#88ddff",
    default_font_size: int = 10,
    fill_regions: bool = False
):
    """
    Write the artwork as SVG: one even-odd path per region plus its number.

    Region outlines are chained into closed loops so holes render correctly. With
    `fill_regions` each path is filled with its palette color (a finished preview);
    otherwise the canvas is blank for painting.
    """
    if not isinstance(output_path, Path):
        output_path = Path(output_path)
    if not output_path.parent.exists():
        output_path.parent.mkdir(parents=True, exist_ok=True)

    width, height = art.width, art.height
    dwg = svgwrite.Drawing(
        filename=str(output_path),
        size=(f"{width}px", f"{height}px"),
        viewBox=f"0 0 {width} {height}",
        profile='full'
    )
    if art.caption is not None:
        dwg.set_desc(title=art.caption.title, desc=art.caption.description)
    else:
        dwg.set_desc(title="Paint by numbers", desc=SOFTWARE_TAG)

    dwg.add(dwg.rect(insert=(0, 0), size=(width, height), fill='white'))

    colors_by_id = art.palette_by_id()
    region_group = dwg.g(id="pbn-regions", style=f"stroke:{outline_color_hex}; stroke-width:1px; fill-rule:evenodd;")
    for region_idx, region in enumerate(art.regions):
        if region.pixels:
            loops = trace_boundary_loops(region.pixels, width, height)
            d = " ".join(
                "M" + " L".join(f"{x},{y}" for x, y in loop) + " Z" for loop in loops
            )
        else:
            # Loaded from JSON without pixel data: fall back to drawing the edge soup.
            d = " ".join(f"M{a[0]},{a[1]} L{b[0]},{b[1]}" for a, b in region.boundary)
        fill = colors_by_id[region.color_id].hex if fill_regions and region.pixels else "none"
        region_group.add(dwg.path(d=d, fill=fill, id=f"region-{region_idx}",
                                  class_=f"color-{region.color_id}"))
    dwg.add(region_group)

    label_group = dwg.g(id="pbn-labels", style=f"fill:{label_color_str}; text-anchor:middle; dominant-baseline:middle; font-family:sans-serif;")
    for region in art.regions:
        x, y = region.label_point
        label_group.add(dwg.text(str(region.color_id), insert=(round(x, 2), round(y, 2)),
                                 font_size=f"{default_font_size}px"))
    dwg.add(label_group)

    dwg.save(pretty=True)


def save_artwork_json(
    art: ProcessedArt,
    output_path: Path,
    command_line_invocation: Optional[str] = None
):
    """Serialize the artwork record (palette ids stay sparse) with a small metadata block."""
    if not isinstance(output_path, Path):
        output_path = Path(output_path)
    if not output_path.parent.exists():
        output_path.parent.mkdir(parents=True, exist_ok=True)

    data = artwork_to_dict(art)
    data["pbnart"] = {"software": SOFTWARE_TAG}
    if command_line_invocation:
        data["pbnart"]["command_line"] = command_line_invocation

    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=1)


def load_artwork_json(input_path: Union[str, Path]) -> ProcessedArt:
    try:
        with open(input_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"Artwork file {input_path} is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ValueError(f"Artwork file {input_path} does not contain an object.")
    return artwork_from_dict(data)
