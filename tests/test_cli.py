# tests/test_cli.py
import json
import subprocess
import sys
from pathlib import Path
from PIL import Image, ImageDraw

REPO_ROOT = Path(__file__).resolve().parent.parent


def create_dummy_image(path: Path):
    img = Image.new("RGB", (256, 256), color=(150, 120, 200))
    draw = ImageDraw.Draw(img)
    draw.rectangle([(50, 50), (150, 150)], fill=(200, 50, 50))
    draw.ellipse([(100, 100), (200, 200)], fill=(50, 200, 50))
    img.save(path)


def run_cli(*args):
    return subprocess.run(
        [sys.executable, "pbnartgen.py", *[str(a) for a in args]],
        capture_output=True,
        text=True,
        cwd=REPO_ROOT,
    )


def test_pbnartgen_cli_with_all_outputs(tmp_path):
    input_image = tmp_path / "dummy_input.png"
    create_dummy_image(input_image)
    output_dir = tmp_path / "output"

    result = run_cli(input_image, output_dir, "--num-colors", "3", "--seed", "1")

    assert result.returncode == 0, f"CLI failed: {result.stderr}"

    expected_files = [
        "pbn-vector_canvas.svg",
        "pbn-raster_canvas.png",
        "pbn-palette_legend.png",
        "pbn-filled_preview.png",
        "pbn-artwork.json",
    ]
    for filename in expected_files:
        file_path = output_dir / filename
        assert file_path.exists(), f"Expected output file not found: {file_path}"

    assert "Processing complete!" in result.stdout

    data = json.loads((output_dir / "pbn-artwork.json").read_text())
    assert (data["width"], data["height"]) == (256, 256)
    assert 1 <= len(data["palette"]) <= 3
    assert "caption" not in data


def test_pbnartgen_cli_refuses_to_clobber(tmp_path):
    input_image = tmp_path / "dummy_input.png"
    create_dummy_image(input_image)
    output_dir = tmp_path / "output"

    first = run_cli(input_image, output_dir, "--num-colors", "2", "--seed", "3", "--skip-legend")
    assert first.returncode == 0, f"CLI failed: {first.stderr}"

    second = run_cli(input_image, output_dir, "--num-colors", "2", "--seed", "3", "--skip-legend")
    assert second.returncode == 1
    assert "already exist" in second.stdout

    third = run_cli(input_image, output_dir, "--num-colors", "2", "--seed", "3", "--skip-legend", "-y")
    assert third.returncode == 0, f"CLI failed: {third.stderr}"


def test_pbnartgen_cli_seed_is_repeatable(tmp_path):
    input_image = tmp_path / "dummy_input.png"
    create_dummy_image(input_image)

    for name in ("a", "b"):
        result = run_cli(input_image, tmp_path / name, "--preset", "beginner", "--seed", "42", "--raster-only")
        assert result.returncode == 0, f"CLI failed: {result.stderr}"

    data_a = json.loads((tmp_path / "a" / "pbn-artwork.json").read_text())
    data_b = json.loads((tmp_path / "b" / "pbn-artwork.json").read_text())
    assert data_a["palette"] == data_b["palette"]
    assert data_a["regions"] == data_b["regions"]
    assert not (tmp_path / "a" / "pbn-vector_canvas.svg").exists()


def test_pbnartgen_cli_attaches_caption_file(tmp_path):
    input_image = tmp_path / "dummy_input.png"
    create_dummy_image(input_image)
    caption_path = tmp_path / "caption.json"
    caption_path.write_text(json.dumps({
        "title": "Shapes",
        "description": "A square and a circle.",
        "difficulty": "Easy",
        "funFact": "Circles have no corners.",
    }))
    output_dir = tmp_path / "output"

    result = run_cli(input_image, output_dir, "--num-colors", "3", "--seed", "1",
                     "--caption-file", caption_path)

    assert result.returncode == 0, f"CLI failed: {result.stderr}"
    data = json.loads((output_dir / "pbn-artwork.json").read_text())
    assert data["caption"]["title"] == "Shapes"
    assert data["caption"]["difficulty"] == "Easy"

    # Drawings are written before the captioner is consulted; the JSON after it.
    out = result.stdout
    for drawing in ("SVG canvas:", "PNG canvas:", "Preview:", "Legend:"):
        assert out.index(drawing) < out.index("Caption:")
    assert out.index("Caption:") < out.index("Artwork JSON:")


def test_pbnartgen_cli_unknown_preset(tmp_path):
    input_image = tmp_path / "dummy_input.png"
    create_dummy_image(input_image)
    result = run_cli(input_image, tmp_path / "output", "--preset", "legendary")
    assert result.returncode == 1
    assert "Unknown preset" in result.stdout


def test_pbnartgen_cli_undecodable_input(tmp_path):
    bogus = tmp_path / "not_an_image.png"
    bogus.write_text("plain text")
    result = run_cli(bogus, tmp_path / "output")
    assert result.returncode == 1
    assert "Could not decode" in result.stdout


def test_pbnartgen_cli_help_output():
    result = run_cli("--help")
    assert result.returncode == 0
    assert "usage" in result.stdout.lower()
