"""
detectors.pixel_anomaly — Local pixel discontinuity check.

Draws random pixels and compares each against the average of its in-bounds
4-neighborhood.  A large summed RGB difference is counted as a
discontinuity, the kind of seam left by cloning or splicing.
"""

from __future__ import annotations

from .base import PixelAnomalyResult, SignalDetector
from .utils import FileFacts, PixelBuffer, neighbor_diffs, round_half_up, sample_pixel_coords

SAMPLE_SIZE = 1000
DIFF_THRESHOLD = 100
SEVERITY_THRESHOLD = 15


class PixelAnomalyDetector(SignalDetector):
    name = "pixel_anomalies"

    def detect(self, buffer: PixelBuffer, facts: FileFacts) -> PixelAnomalyResult:
        ys, xs = sample_pixel_coords(buffer, SAMPLE_SIZE, self.rng)
        diffs = neighbor_diffs(buffer, ys, xs)
        anomaly_count = int((diffs > DIFF_THRESHOLD).sum())

        severity = anomaly_count / SAMPLE_SIZE * 100
        detected = severity > SEVERITY_THRESHOLD

        return PixelAnomalyResult(
            detected=detected,
            severity=round_half_up(severity),
            description=(
                f"{anomaly_count} pixel discontinuities detected indicating potential manipulation"
                if detected
                else "No significant pixel anomalies detected"
            ),
        )
