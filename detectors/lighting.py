"""
detectors.lighting — Global brightness-spread consistency.

Brightness is the unweighted RGB mean of every pixel (full scan).  The
population standard deviation, normalised by 255, is mapped to a 0-100
consistency score; a very wide spread reads as composited lighting.
"""

from __future__ import annotations

import numpy as np

from .base import LightingResult, SignalDetector
from .utils import FileFacts, PixelBuffer, round_half_up

CONSISTENCY_THRESHOLD = 40


def brightness_stats(buffer: PixelBuffer) -> tuple:
    """Population (mean, variance) of per-pixel (R+G+B)/3."""
    brightness = buffer.pixels[..., :3].astype(np.float64).mean(axis=2)
    return float(brightness.mean()), float(brightness.var())


class LightingDetector(SignalDetector):
    name = "lighting_shadows"

    def detect(self, buffer: PixelBuffer, facts: FileFacts) -> LightingResult:
        _, variance = brightness_stats(buffer)
        std_dev = float(np.sqrt(variance))

        normalized_std_dev = std_dev / 255
        consistency_score = max(0.0, 100 - normalized_std_dev * 200)
        consistent = consistency_score > CONSISTENCY_THRESHOLD

        return LightingResult(
            consistent=consistent,
            score=round_half_up(consistency_score),
            description=(
                "Lighting and shadow patterns appear natural and consistent"
                if consistent
                else "Unusual lighting variations detected suggesting possible compositing"
            ),
        )
