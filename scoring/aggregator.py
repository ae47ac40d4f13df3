"""
VerdictAggregator: Combines the five signal results into a single Verdict.

=== Manipulation score ===

A fixed linear weighting of each detector's suspicion value:

    pixel_anomalies   severity              x 0.25
    lighting_shadows  (100 - consistency)   x 0.20
    ai_artifacts      confidence            x 0.35
    metadata          number of flags       x 5
    semantic_logic    (100 - logic score)   x 0.20

The weighted sum is rounded half-up.  Trust is 100 - manipulation, floored
at 0, computed before the manipulation score itself is clamped.

=== Classification (first match wins) ===

  1. AI artifacts detected and confidence > 70  -> "ai_generated"
  2. manipulation score > 50                    -> "edited"
  3. otherwise                                  -> "real"

The AI rule takes priority even when the weighted score alone is low.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Mapping, Optional

from detectors.base import (
    AIArtifactResult,
    LightingResult,
    MetadataResult,
    PixelAnomalyResult,
    SignalResult,
)
from detectors.utils import clamp_score, round_half_up

logger = logging.getLogger(__name__)

RESULT_TYPES = ("real", "edited", "ai_generated")

SIGNAL_WEIGHTS: Dict[str, float] = {
    "pixel_anomalies": 0.25,
    "lighting_shadows": 0.2,
    "ai_artifacts": 0.35,
    "metadata": 5.0,
    "semantic_logic": 0.2,
}

AI_PRIORITY_CONFIDENCE = 70
EDITED_THRESHOLD = 50

REAL_EXPLANATION = (
    "This image appears authentic. No significant manipulation detected. "
    "Lighting and shadows are consistent, pixel patterns are natural, "
    "and metadata checks passed."
)


@dataclass
class Verdict:
    """The aggregated decision over all signals."""

    result_type: str                    # "real" | "edited" | "ai_generated"
    manipulation_score: int             # [0 – 100]
    trust_score: int                    # [0 – 100]
    explanation: str
    raw_manipulation_score: int = 0     # before clamping

    def to_dict(self) -> dict:
        return {
            "result_type": self.result_type,
            "manipulation_score": self.manipulation_score,
            "trust_score": self.trust_score,
            "explanation": self.explanation,
        }


class VerdictAggregator:
    """
    Turns a mapping of detector name -> SignalResult into a Verdict.

    Args:
        weights: per-detector weight table; signals without an entry
                 contribute nothing to the manipulation score.
    """

    def __init__(self, weights: Optional[Mapping[str, float]] = None):
        self.weights = dict(SIGNAL_WEIGHTS if weights is None else weights)

    def manipulation_score(self, signals: Mapping[str, SignalResult]) -> int:
        total = 0.0
        for name, result in signals.items():
            weight = self.weights.get(name)
            if weight is None:
                logger.debug("No weight for signal %r; ignored in score", name)
                continue
            total += result.suspicion * weight
        return round_half_up(total)

    def aggregate(self, signals: Mapping[str, SignalResult]) -> Verdict:
        missing = [k for k in SIGNAL_WEIGHTS if k not in signals]
        if missing:
            raise ValueError(f"Missing signal results: {', '.join(missing)}")

        pixel: PixelAnomalyResult = signals["pixel_anomalies"]
        lighting: LightingResult = signals["lighting_shadows"]
        ai: AIArtifactResult = signals["ai_artifacts"]
        metadata: MetadataResult = signals["metadata"]

        manipulation = self.manipulation_score(signals)
        trust = max(0, 100 - manipulation)

        if ai.detected and ai.confidence > AI_PRIORITY_CONFIDENCE:
            result_type = "ai_generated"
            explanation = (
                f"This image appears to be AI-generated. {ai.description}. "
                f"The analysis detected "
                f"{'artificial pixel patterns' if pixel.detected else 'synthetic characteristics'} "
                f"with a manipulation score of {manipulation}%."
            )
        elif manipulation > EDITED_THRESHOLD:
            result_type = "edited"
            explanation = "This image shows signs of editing. "
            if pixel.detected:
                explanation += pixel.description + ". "
            if not lighting.consistent:
                explanation += lighting.description + ". "
            if metadata.flags:
                explanation += metadata.description
        else:
            result_type = "real"
            explanation = REAL_EXPLANATION

        return Verdict(
            result_type=result_type,
            manipulation_score=int(clamp_score(manipulation)),
            trust_score=int(clamp_score(trust)),
            explanation=explanation,
            raw_manipulation_score=manipulation,
        )
