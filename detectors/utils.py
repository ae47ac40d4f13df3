from __future__ import annotations

import io
import math
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import numpy as np
from PIL import Image


class DecodeError(ValueError):
    """Raised when bytes cannot be decoded into a usable pixel buffer."""
    pass


@dataclass(frozen=True, eq=False)
class PixelBuffer:
    """Read-only RGBA8 view of a decoded image, shape (height, width, 4)."""

    width: int
    height: int
    pixels: np.ndarray = field(repr=False)

    @classmethod
    def from_array(cls, arr: np.ndarray) -> "PixelBuffer":
        arr = np.asarray(arr, dtype=np.uint8)
        if arr.ndim != 3 or arr.shape[2] != 4:
            raise DecodeError(f"expected (H, W, 4) RGBA array, got shape {arr.shape}")
        H, W = arr.shape[:2]
        if H == 0 or W == 0:
            raise DecodeError("zero-area image")
        arr = arr.copy()
        arr.flags.writeable = False
        return cls(width=int(W), height=int(H), pixels=arr)

    @property
    def data(self) -> np.ndarray:
        """Flat row-major RGBA channel sequence (width*height*4 values)."""
        return self.pixels.reshape(-1)

    @property
    def num_pixels(self) -> int:
        return self.width * self.height


@dataclass(frozen=True)
class FileFacts:
    """File-level facts, independent of pixel content."""

    name: str
    size: int
    mime_type: Optional[str] = None
    last_modified: Optional[float] = None  # epoch milliseconds


@dataclass(frozen=True)
class DecodedImage:
    buffer: PixelBuffer
    exif: Dict[int, Any] = field(default_factory=dict, repr=False)


def decode_image(data: bytes) -> DecodedImage:
    """Decode raw image bytes to RGBA8 (first frame for animated formats)."""
    if not data:
        raise DecodeError("empty image data")
    try:
        im = Image.open(io.BytesIO(data))
        im.seek(0)
        im.load()
        exif = dict(im.getexif()) if hasattr(im, "getexif") else {}
        rgba = np.array(im.convert("RGBA"), dtype=np.uint8)
    except (OSError, SyntaxError, ValueError, Image.DecompressionBombError) as e:
        # UnidentifiedImageError and truncated-file errors are OSErrors
        raise DecodeError(f"{type(e).__name__}: {e}") from e
    return DecodedImage(buffer=PixelBuffer.from_array(rgba), exif=exif)


def round_half_up(x: float) -> int:
    """Round .5 away from zero for non-negative scores (not banker's rounding)."""
    return int(math.floor(x + 0.5))


def clamp_score(x: float, lo: float = 0.0, hi: float = 100.0) -> float:
    return max(lo, min(hi, x))


def sample_pixel_coords(buffer: PixelBuffer, n: int, rng: np.random.Generator) -> Tuple[np.ndarray, np.ndarray]:
    """Uniform draw of n pixel positions with replacement -> (ys, xs)."""
    idx = rng.integers(0, buffer.num_pixels, size=n)
    ys, xs = np.divmod(idx, buffer.width)
    return ys, xs


def neighbor_average(pixels: np.ndarray, ys: np.ndarray, xs: np.ndarray) -> np.ndarray:
    """
    Mean RGB of the up/down/left/right in-bounds neighbors of each (y, x).

    Out-of-bounds neighbors are left out of the denominator.  A pixel with
    no neighbors at all (1x1 image) averages to itself.  Only the gathered
    neighbor values are widened; the full pixel array is never copied.
    """
    H, W = pixels.shape[:2]
    total = np.zeros((len(ys), 3), dtype=np.float64)
    count = np.zeros(len(ys), dtype=np.float64)
    for dy, dx in ((-1, 0), (1, 0), (0, -1), (0, 1)):
        ny = ys + dy
        nx = xs + dx
        ok = (ny >= 0) & (ny < H) & (nx >= 0) & (nx < W)
        if not ok.any():
            continue
        total[ok] += pixels[ny[ok], nx[ok], :3]
        count[ok] += 1
    alone = count == 0
    if alone.any():
        total[alone] = pixels[ys[alone], xs[alone], :3]
        count[alone] = 1
    return total / count[:, None]


def neighbor_diffs(buffer: PixelBuffer, ys: np.ndarray, xs: np.ndarray) -> np.ndarray:
    """Sum of per-channel |pixel - neighbor average| for each sampled pixel."""
    center = buffer.pixels[ys, xs, :3].astype(np.float64)
    avg = neighbor_average(buffer.pixels, ys, xs)
    return np.abs(center - avg).sum(axis=1)


def json_sanitize(obj: Any) -> Any:
    """Convert numpy types + Path + dataclasses to JSON-safe Python types."""
    if obj is None:
        return None
    if isinstance(obj, Path):
        return str(obj)
    if hasattr(obj, "__dataclass_fields__"):
        return {k: json_sanitize(v) for k, v in asdict(obj).items()}
    if isinstance(obj, (np.bool_,)):
        return bool(obj)
    if isinstance(obj, (np.integer,)):
        return int(obj)
    if isinstance(obj, (np.floating,)):
        return float(obj)
    if isinstance(obj, (np.ndarray,)):
        return json_sanitize(obj.tolist())
    if isinstance(obj, (list, tuple)):
        return [json_sanitize(x) for x in obj]
    if isinstance(obj, dict):
        return {str(k): json_sanitize(v) for k, v in obj.items()}
    if isinstance(obj, (int, float, str, bool)):
        # normalize NaN/inf
        if isinstance(obj, float) and (math.isnan(obj) or math.isinf(obj)):
            return None
        return obj
    return str(obj)
