"""
scoring.heatmap — Decorative suspicious-region overlay.

Region count scales with pixel-anomaly severity plus AI-artifact
confidence; positions and sizes are random.  The regions are illustrative
only and do not localise anything the detectors found.

`render_overlay` draws them over the image as translucent red boxes, each
with opacity intensity x 0.3.
"""

from __future__ import annotations

import io
from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union

import numpy as np
from PIL import Image, ImageDraw

MAX_REGIONS = 8
SCORE_PER_REGION = 20
OVERLAY_COLOR = (239, 68, 68)     # red-500
OVERLAY_OPACITY = 0.3


@dataclass(frozen=True)
class HeatmapRegion:
    x: float            # fractions of image width/height
    y: float
    width: float
    height: float
    intensity: float    # [0.3, 1.0)


@dataclass
class Heatmap:
    regions: List[HeatmapRegion] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "regions": [
                {"x": r.x, "y": r.y, "width": r.width, "height": r.height, "intensity": r.intensity}
                for r in self.regions
            ]
        }


def region_count(pixel_severity: float, ai_confidence: float) -> int:
    return min(int((pixel_severity + ai_confidence) // SCORE_PER_REGION), MAX_REGIONS)


def synthesize_heatmap(
    pixel_severity: float,
    ai_confidence: float,
    rng: Optional[np.random.Generator] = None,
) -> Heatmap:
    rng = rng if rng is not None else np.random.default_rng()
    regions = []
    for _ in range(region_count(pixel_severity, ai_confidence)):
        x, y, w, h, i = rng.random(5)
        regions.append(HeatmapRegion(
            x=float(x * 0.8),
            y=float(y * 0.8),
            width=float(0.1 + w * 0.15),
            height=float(0.1 + h * 0.15),
            intensity=float(0.3 + i * 0.7),
        ))
    return Heatmap(regions=regions)


def region_box(region: HeatmapRegion, width: int, height: int) -> Tuple[int, int, int, int]:
    """Pixel box (left, top, right, bottom), inclusive and clipped to the image."""
    left = int(round(region.x * width))
    top = int(round(region.y * height))
    right = int(round((region.x + region.width) * width)) - 1
    bottom = int(round((region.y + region.height) * height)) - 1
    return (
        min(max(left, 0), width - 1),
        min(max(top, 0), height - 1),
        min(max(right, left), width - 1),
        min(max(bottom, top), height - 1),
    )


def render_overlay(image: Union[bytes, Image.Image], heatmap: Heatmap) -> Image.Image:
    """
    Composite the heatmap regions over an image and return an RGBA copy.

    Regions are blended one at a time so overlapping boxes darken, as
    stacked translucent layers would.
    """
    if isinstance(image, (bytes, bytearray)):
        image = Image.open(io.BytesIO(image))
        image.seek(0)
    out = image.convert("RGBA")
    W, H = out.size
    for region in heatmap.regions:
        alpha = int(round(255 * region.intensity * OVERLAY_OPACITY))
        layer = Image.new("RGBA", out.size, (0, 0, 0, 0))
        ImageDraw.Draw(layer).rectangle(
            region_box(region, W, H),
            fill=OVERLAY_COLOR + (alpha,),
        )
        out = Image.alpha_composite(out, layer)
    return out
