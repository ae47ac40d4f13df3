"""
detectors.semantic — Coarse color-palette diversity.

Samples every tenth pixel from the start of the buffer (channel positions
0, 40, 80, ... below 10000), quantises RGB to 8 levels per channel and
counts distinct colors.  A narrow palette reads as synthetic.
"""

from __future__ import annotations

import numpy as np

from .base import SemanticResult, SignalDetector
from .utils import FileFacts, PixelBuffer, round_half_up

SCAN_LIMIT = 10000
CHANNEL_STRIDE = 40
QUANT_STEP = 32
DIVERSITY_NORM = 250
LOGIC_THRESHOLD = 30


def distinct_quantized_colors(buffer: PixelBuffer) -> int:
    data = buffer.data
    starts = np.arange(0, min(SCAN_LIMIT, data.size), CHANNEL_STRIDE)
    rgb = buffer.pixels.reshape(-1, 4)[starts // 4, :3] // QUANT_STEP
    return len({tuple(c) for c in rgb.tolist()})


class SemanticDetector(SignalDetector):
    name = "semantic_logic"

    def detect(self, buffer: PixelBuffer, facts: FileFacts) -> SemanticResult:
        distinct = distinct_quantized_colors(buffer)
        diversity_score = min(100.0, distinct / DIVERSITY_NORM * 100)
        logical = diversity_score > LOGIC_THRESHOLD

        return SemanticResult(
            logical=logical,
            score=round_half_up(diversity_score),
            description=(
                "Color distribution and composition appear natural"
                if logical
                else "Limited color diversity may indicate synthetic generation"
            ),
        )
