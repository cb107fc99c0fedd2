from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, List, Tuple, Dict, NamedTuple, Any
import numpy as np

ALPHA_THRESHOLD = 128  # alpha below this is treated as transparent
EXCLUDED = -1  # label map sentinel for pixels that belong to no region

Point = Tuple[int, int]
Edge = Tuple[Point, Point]


class DecodeFailure(ValueError):
    """Raised when no usable pixel buffer could be produced from the input image."""


class RGBColor(NamedTuple):
    r: int
    g: int
    b: int


def rgb_to_hex(color) -> str:
    r, g, b = (int(c) for c in color[:3])
    return f"#{r:02x}{g:02x}{b:02x}"


@dataclass(frozen=True)
class PixelBuffer:
    """
    Decoded RGBA8 image, row-major, shape (height, width, 4).

    The array is stored as a read-only view; nothing in the pipeline writes to it.
    """
    width: int
    height: int
    rgba: np.ndarray = field(repr=False, compare=False)

    def __post_init__(self):
        if self.rgba.shape != (self.height, self.width, 4):
            raise ValueError(
                f"RGBA array shape {self.rgba.shape} does not match {self.width}x{self.height}x4."
            )
        if self.rgba.dtype != np.uint8:
            raise ValueError(f"RGBA array must be uint8, got {self.rgba.dtype}.")

    @classmethod
    def from_array(cls, array) -> "PixelBuffer":
        """Build a buffer from an (h, w, 3) RGB or (h, w, 4) RGBA array."""
        arr = np.asarray(array)
        if arr.ndim != 3 or arr.shape[2] not in (3, 4):
            raise ValueError(f"Expected an (h, w, 3) or (h, w, 4) array, got shape {arr.shape}.")
        arr = arr.astype(np.uint8)
        if arr.shape[2] == 3:
            alpha = np.full(arr.shape[:2] + (1,), 255, dtype=np.uint8)
            arr = np.concatenate([arr, alpha], axis=2)
        else:
            arr = arr.copy()
        arr.flags.writeable = False
        return cls(width=arr.shape[1], height=arr.shape[0], rgba=arr)

    @classmethod
    def from_bytes(cls, width: int, height: int, data: bytes) -> "PixelBuffer":
        if width < 0 or height < 0:
            raise ValueError(f"Invalid buffer dimensions {width}x{height}.")
        expected = width * height * 4
        if len(data) != expected:
            raise ValueError(f"Expected {expected} RGBA bytes for {width}x{height}, got {len(data)}.")
        arr = np.frombuffer(bytes(data), dtype=np.uint8).reshape((height, width, 4))
        return cls(width=width, height=height, rgba=arr)

    @property
    def opaque_mask(self) -> np.ndarray:
        return self.rgba[:, :, 3] >= ALPHA_THRESHOLD


@dataclass(frozen=True)
class PaletteColor:
    id: int
    color: RGBColor
    hex: str
    count: int = 0


class Difficulty(str, Enum):
    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"


@dataclass(frozen=True)
class Caption:
    title: str
    description: str
    difficulty: Difficulty
    fun_fact: str


@dataclass(frozen=True)
class Region:
    color_id: int
    boundary: Tuple[Edge, ...] = field(repr=False)
    label_point: Tuple[float, float]
    area: int
    # Linear indices (y * width + x) in flood-fill order; not serialized.
    pixels: Tuple[int, ...] = field(default=(), repr=False, compare=False)


@dataclass(frozen=True)
class ProcessedArt:
    width: int
    height: int
    palette: Tuple[PaletteColor, ...]
    regions: Tuple[Region, ...]
    source: Optional[str] = None
    caption: Optional[Caption] = None

    def palette_by_id(self) -> Dict[int, PaletteColor]:
        return {p.id: p for p in self.palette}

    def with_caption(self, caption: Optional[Caption]) -> "ProcessedArt":
        return replace(self, caption=caption)


def check_artwork(art: ProcessedArt) -> None:
    """
    Assert the structural invariants of a finished artwork.

    A failure here means the pipeline itself is broken, not that the input was bad.
    """
    ids = [p.id for p in art.palette]
    assert len(ids) == len(set(ids)), f"duplicate palette ids: {ids}"
    assert all(p.count > 0 for p in art.palette), "palette exposes an unused color"
    usage: Dict[int, int] = {}
    seen = set()
    total = art.width * art.height
    for region in art.regions:
        assert region.color_id in ids, f"region references missing color id {region.color_id}"
        usage[region.color_id] = usage.get(region.color_id, 0) + 1
        if region.pixels:
            assert len(region.pixels) == region.area, "region area disagrees with its pixels"
            for idx in region.pixels:
                assert 0 <= idx < total, f"pixel index {idx} outside {art.width}x{art.height}"
                assert idx not in seen, f"pixel index {idx} belongs to two regions"
                seen.add(idx)
    for p in art.palette:
        assert usage.get(p.id, 0) == p.count, f"usage count mismatch for color id {p.id}"


def caption_to_dict(caption: Caption) -> Dict[str, str]:
    return {
        "title": caption.title,
        "description": caption.description,
        "difficulty": caption.difficulty.value,
        "funFact": caption.fun_fact,
    }


def caption_from_dict(payload: Dict[str, Any]) -> Caption:
    """
    Validate a captioning result. Accepts both `funFact` and `fun_fact` keys.

    Raises:
        ValueError: If a field is missing, not a string, or the difficulty is unknown.
    """
    if not isinstance(payload, dict):
        raise ValueError(f"Caption payload must be an object, got {type(payload).__name__}.")
    fun_fact = payload.get("funFact", payload.get("fun_fact"))
    fields = {
        "title": payload.get("title"),
        "description": payload.get("description"),
        "difficulty": payload.get("difficulty"),
        "funFact": fun_fact,
    }
    for key, value in fields.items():
        if not isinstance(value, str) or not value.strip():
            raise ValueError(f"Caption field '{key}' is missing or empty.")
    try:
        difficulty = Difficulty(fields["difficulty"].strip().capitalize())
    except ValueError:
        raise ValueError(
            f"Caption difficulty must be one of Easy, Medium, Hard; got '{fields['difficulty']}'."
        ) from None
    return Caption(
        title=fields["title"].strip(),
        description=fields["description"].strip(),
        difficulty=difficulty,
        fun_fact=fun_fact.strip(),
    )


def artwork_to_dict(art: ProcessedArt) -> Dict[str, Any]:
    """JSON-friendly form of an artwork. Palette ids are kept as-is (sparse)."""
    data: Dict[str, Any] = {
        "width": art.width,
        "height": art.height,
        "source": art.source,
        "palette": [
            {"id": p.id, "r": p.color.r, "g": p.color.g, "b": p.color.b, "hex": p.hex, "count": p.count}
            for p in art.palette
        ],
        "regions": [
            {
                "colorId": r.color_id,
                "area": r.area,
                "labelPoint": {"x": r.label_point[0], "y": r.label_point[1]},
                "boundary": [[list(a), list(b)] for a, b in r.boundary],
            }
            for r in art.regions
        ],
    }
    if art.caption is not None:
        data["caption"] = caption_to_dict(art.caption)
    return data


def artwork_from_dict(data: Dict[str, Any]) -> ProcessedArt:
    """
    Rebuild an artwork from `artwork_to_dict` output.

    Raises:
        ValueError: If the data is malformed or breaks palette/region referential integrity.
    """
    try:
        palette = tuple(
            PaletteColor(
                id=int(p["id"]),
                color=RGBColor(int(p["r"]), int(p["g"]), int(p["b"])),
                hex=str(p.get("hex") or rgb_to_hex((p["r"], p["g"], p["b"]))),
                count=int(p["count"]),
            )
            for p in data["palette"]
        )
        regions = tuple(
            Region(
                color_id=int(r["colorId"]),
                boundary=tuple(
                    ((int(a[0]), int(a[1])), (int(b[0]), int(b[1]))) for a, b in r["boundary"]
                ),
                label_point=(float(r["labelPoint"]["x"]), float(r["labelPoint"]["y"])),
                area=int(r["area"]),
            )
            for r in data["regions"]
        )
        width, height = int(data["width"]), int(data["height"])
    except (KeyError, TypeError, ValueError, IndexError) as e:
        raise ValueError(f"Malformed artwork data: {e}") from e

    ids = [p.id for p in palette]
    if len(ids) != len(set(ids)):
        raise ValueError(f"Duplicate palette ids in artwork data: {ids}")
    known = set(ids)
    for r in regions:
        if r.color_id not in known:
            raise ValueError(f"Region references color id {r.color_id}, which is not in the palette.")

    caption = caption_from_dict(data["caption"]) if data.get("caption") else None

    return ProcessedArt(
        width=width, height=height, palette=palette, regions=regions,
        source=data.get("source"), caption=caption,
    )
