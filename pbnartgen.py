import typer
from pbnart import pipeline, legend, render, file_utils, caption
from pbnart.artwork import DecodeFailure, check_artwork
from pbnart.segment import MIN_REGION_AREA
import os
from pathlib import Path
import numpy as np
from typing import Optional, List, Dict
from enum import Enum

import sys

import rich.traceback

DEFAULT_NUM_COLORS = 12


class PBNFile(Enum):
    SVG_CANVAS = "svg_canvas"
    PNG_CANVAS = "png_canvas"
    LEGEND = "legend"
    PREVIEW = "preview"
    ARTWORK = "artwork"


OUTPUT_NAMES: Dict[PBNFile, str] = {
    PBNFile.SVG_CANVAS: "pbn-vector_canvas.svg",
    PBNFile.PNG_CANVAS: "pbn-raster_canvas.png",
    PBNFile.LEGEND: "pbn-palette_legend.png",
    PBNFile.PREVIEW: "pbn-filled_preview.png",
    PBNFile.ARTWORK: "pbn-artwork.json",
}

PRESETS: Dict[str, Dict[str, int]] = {
    "beginner": {"num_colors": 6, "min_region_area": 40},
    "intermediate": {"num_colors": 12, "min_region_area": 20},
    "master": {"num_colors": 24, "min_region_area": MIN_REGION_AREA},
}


def plan_outputs(output_dir: Path, wanted: List[PBNFile], overwrite: bool = False) -> Dict[PBNFile, Path]:
    """Map each wanted output to its path, refusing to replace existing files unless `overwrite`."""
    paths = {kind: output_dir / OUTPUT_NAMES[kind] for kind in wanted}
    existing = [p for p in paths.values() if p.exists()]
    if existing and not overwrite:
        typer.secho("Error: these outputs already exist:", fg=typer.colors.RED)
        for p in existing:
            typer.secho(f"  {p}", fg=typer.colors.RED)
        typer.secho("Pass --yes (-y) to replace them.", fg=typer.colors.YELLOW)
        raise typer.Exit(code=1)
    return paths


def pbn_cli(
    input_path: Path = typer.Argument(
        ...,
        help="Source picture (PNG, JPEG, WebP, ...).",
        metavar="INPUT_FILE",
        exists=True, file_okay=True, dir_okay=False, readable=True, resolve_path=True,
    ),
    output_dir: Path = typer.Argument(
        ...,
        help="Where the canvas, legend, preview and artwork JSON go. Created if missing.",
        metavar="OUTPUT_DIRECTORY",
        file_okay=False, dir_okay=True, writable=True, resolve_path=True,
    ),
    preset: Optional[str] = typer.Option(
        None, help=f"Difficulty preset setting colors and minimum region size: {', '.join(PRESETS)}."
    ),
    num_colors: Optional[int] = typer.Option(
        None, "--num-colors", min=1, help=f"Palette size K. Default: {DEFAULT_NUM_COLORS}."
    ),
    min_region_area_cli: Optional[int] = typer.Option(
        None, "--min-region-area", min=1,
        help=f"Smallest region kept, in pixels; smaller specks are dropped. Default: {MIN_REGION_AREA}."
    ),
    max_side: int = typer.Option(
        file_utils.MAX_SIDE, "--max-side", min=1, envvar="PBNART_MAX_SIDE",
        help="Downscale the input so its longer side is at most this many pixels."
    ),
    blur_radius: float = typer.Option(
        1.0, "--blur-radius", min=0.0, help="Gaussian blur applied after downscaling to reduce speckle. 0 disables. Default: 1."
    ),
    seed: Optional[int] = typer.Option(
        None, "--seed", envvar="PBNART_SEED",
        help="Random seed for palette initialization. Same seed and input give identical output."
    ),
    caption_file: Optional[Path] = typer.Option(
        None, "--caption-file",
        help="JSON caption (title, description, difficulty, funFact) from a captioning service to attach.",
    ),
    font_path: Optional[Path] = typer.Option(
        None, "--font-path", help="TrueType font for the numbers.",
        exists=True, file_okay=True, dir_okay=False, readable=True, resolve_path=True,
    ),
    font_size: int = typer.Option(10, "--font-size", min=1, help="Number font size. Default: 10."),
    label_color: str = typer.Option(
        "#88ddff", "--label-color", help="Color of the region numbers, as hex or a color name. Default: '#88ddff'."
    ),
    outline_color_cli: str = typer.Option(
        "#88ddff", "--outline-color", help="Color of the region outlines, as hex or a color name. Default: '#88ddff'."
    ),
    fill_svg: bool = typer.Option(
        False, "--fill-svg/--no-fill-svg", help="Fill SVG regions with their palette colors. Default: False."
    ),
    swatch_size: int = typer.Option(40, "--swatch-size", min=10, help="Legend swatch edge in pixels. Default: 40."),
    skip_legend: bool = typer.Option(False, "--skip-legend", help="Do not write the palette legend."),
    raster_only: bool = typer.Option(False, "--raster-only", help="Do not write the SVG canvas."),
    skip_preview: bool = typer.Option(False, "--skip-preview", help="Do not write the filled color preview."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Replace outputs that already exist."),
):
    """
    Turn a picture into a paint-by-numbers kit: numbered outlines, legend and preview.
    """
    command_line_str = " ".join(sys.argv)

    try:
        os.makedirs(output_dir, exist_ok=True)
    except OSError as e:
        typer.secho(f"Error: cannot create {output_dir}: {e}", fg=typer.colors.RED); raise typer.Exit(code=1)
    typer.echo(f"Writing outputs to {output_dir}")

    wanted: List[PBNFile] = [PBNFile.PNG_CANVAS, PBNFile.ARTWORK]
    if not raster_only: wanted.append(PBNFile.SVG_CANVAS)
    if not skip_legend: wanted.append(PBNFile.LEGEND)
    if not skip_preview: wanted.append(PBNFile.PREVIEW)

    output_paths = plan_outputs(output_dir, wanted, overwrite=yes)

    effective_num_colors = num_colors
    effective_min_region_area = min_region_area_cli
    if preset:
        if preset not in PRESETS:
            typer.secho(f"Error: Unknown preset '{preset}'. Choose from: {', '.join(PRESETS)}.", fg=typer.colors.RED); raise typer.Exit(code=1)
        typer.echo(f"Preset '{preset}'")
        preset_values = PRESETS[preset]
        if effective_num_colors is None: effective_num_colors = preset_values["num_colors"]
        if effective_min_region_area is None: effective_min_region_area = preset_values["min_region_area"]
    if effective_num_colors is None: effective_num_colors = DEFAULT_NUM_COLORS
    if effective_min_region_area is None: effective_min_region_area = MIN_REGION_AREA

    typer.echo(f"PBN palette will aim for {effective_num_colors} colors.")
    typer.echo(f"Regions smaller than {effective_min_region_area} pixels are dropped.")
    if seed is not None:
        typer.echo(f"Using random seed: {seed}")

    rng = np.random.default_rng(seed)
    try:
        art = pipeline.process_image(
            input_path,
            effective_num_colors,
            rng=rng,
            min_region_area=effective_min_region_area,
            max_side=max_side,
            blur_radius=blur_radius,
        )
    except DecodeFailure as e:
        typer.secho(f"Error: {e}", fg=typer.colors.RED); raise typer.Exit(code=1)
    check_artwork(art)

    typer.echo(f"Canvas size: {art.width}x{art.height} pixels.")
    typer.echo(f"Found {len(art.regions)} regions using {len(art.palette)} of {effective_num_colors} colors.")
    if not art.regions:
        typer.secho("Warning: No regions were found (fully transparent or all-noise image).", fg=typer.colors.YELLOW)

    output_metadata = {
        "SourceImage": str(input_path),
        "PaletteColors": str(len(art.palette)),
        "Regions": str(len(art.regions)),
        "Seed": str(seed) if seed is not None else "random",
    }

    if not raster_only:
        vector_path = output_paths[PBNFile.SVG_CANVAS]
        file_utils.save_pbn_svg(
            vector_path, art,
            label_color_str=label_color,
            outline_color_hex=outline_color_cli,
            default_font_size=font_size,
            fill_regions=fill_svg,
        )
        typer.echo(f"SVG canvas: {vector_path}")

    labeled_path = output_paths[PBNFile.PNG_CANVAS]
    labeled_img = render.render_outline_image(
        art, font_path=font_path, font_size=font_size,
        label_text_color=label_color, outline_color_str_hex=outline_color_cli,
    )
    file_utils.save_pbn_png(
        labeled_img, labeled_path, command_line_invocation=command_line_str,
        additional_metadata={**output_metadata, "PbNart-FileType": "Labeled Raster PBN Output"},
    )
    typer.echo(f"PNG canvas: {labeled_path}")

    if not skip_preview:
        preview_path = output_paths[PBNFile.PREVIEW]
        file_utils.save_pbn_png(
            render.render_filled_preview(art), preview_path, command_line_invocation=command_line_str,
            additional_metadata={**output_metadata, "PbNart-FileType": "Filled Color Preview"},
        )
        typer.echo(f"Preview: {preview_path}")

    if not skip_legend:
        legend_path = output_paths[PBNFile.LEGEND]
        legend_img = legend.create_legend_image(
            art.palette,
            font_path=str(font_path) if font_path else None,
            font_size=font_size,
            swatch_size=swatch_size,
            padding=10
        )
        if legend_img is not None:
            file_utils.save_pbn_png(
                legend_img, legend_path, command_line_invocation=command_line_str,
                additional_metadata={
                    **output_metadata,
                    "PbNart-FileType": "Palette Legend",
                    "SwatchSize": str(swatch_size),
                    "PaletteIds": ",".join(str(p.id) for p in art.palette),
                },
            )
            typer.echo(f"Legend: {legend_path}")
        else:
            typer.secho("Warning: Palette legend image could not be generated (empty palette).", fg=typer.colors.YELLOW)

    # Only the artwork JSON carries the caption.
    if caption_file is not None:
        art = art.with_caption(caption.request_caption(caption.load_caption_file, caption_file))
        typer.echo(f"Caption: '{art.caption.title}' ({art.caption.difficulty.value})")

    file_utils.save_artwork_json(art, output_paths[PBNFile.ARTWORK], command_line_invocation=command_line_str)
    typer.echo(f"Artwork JSON: {output_paths[PBNFile.ARTWORK]}")

    typer.secho("\nProcessing complete!", fg=typer.colors.GREEN)
    typer.echo(f"Outputs in: {output_dir.resolve()}")


def main():
    rich.traceback.install(show_locals=False, suppress=[typer])
    typer.run(pbn_cli)


if __name__ == "__main__":
    main()
