"""
detectors.ai_artifacts — Symmetry + smoothness heuristic for generated images.

Two independent sub-scores:

* symmetry   — random rows whose leftmost and rightmost pixels nearly match.
* smoothness — random pixels that barely differ from their neighbor average.

Generated images tend to be both, so the weighted blend leans on smoothness.
"""

from __future__ import annotations

import numpy as np

from .base import AIArtifactResult, SignalDetector
from .utils import FileFacts, PixelBuffer, neighbor_diffs, round_half_up, sample_pixel_coords

SYMMETRY_ROWS = 50
SYMMETRY_THRESHOLD = 30
SMOOTHNESS_SAMPLES = 1000
SMOOTHNESS_THRESHOLD = 20
SYMMETRY_WEIGHT = 0.3
SMOOTHNESS_WEIGHT = 0.7
CONFIDENCE_THRESHOLD = 60


class AIArtifactDetector(SignalDetector):
    name = "ai_artifacts"

    def symmetry_percent(self, buffer: PixelBuffer, rng: np.random.Generator) -> float:
        rows = rng.integers(0, buffer.height, size=SYMMETRY_ROWS)
        left = buffer.pixels[rows, 0, :3].astype(np.int32)
        right = buffer.pixels[rows, buffer.width - 1, :3].astype(np.int32)
        diff = np.abs(left - right).sum(axis=1)
        return int((diff < SYMMETRY_THRESHOLD).sum()) / SYMMETRY_ROWS * 100

    def smoothness_percent(self, buffer: PixelBuffer, rng: np.random.Generator) -> float:
        ys, xs = sample_pixel_coords(buffer, SMOOTHNESS_SAMPLES, rng)
        diffs = neighbor_diffs(buffer, ys, xs)
        return int((diffs < SMOOTHNESS_THRESHOLD).sum()) / SMOOTHNESS_SAMPLES * 100

    def detect(self, buffer: PixelBuffer, facts: FileFacts) -> AIArtifactResult:
        rng = self.rng
        symmetry = self.symmetry_percent(buffer, rng)
        smoothness = self.smoothness_percent(buffer, rng)

        ai_confidence = symmetry * SYMMETRY_WEIGHT + smoothness * SMOOTHNESS_WEIGHT
        detected = ai_confidence > CONFIDENCE_THRESHOLD

        return AIArtifactResult(
            detected=detected,
            confidence=round_half_up(ai_confidence),
            description=(
                "High symmetry and smoothness patterns typical of GAN/diffusion models detected"
                if detected
                else "No significant AI generation artifacts found"
            ),
        )
