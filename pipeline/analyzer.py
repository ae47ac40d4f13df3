"""
ImageAnalyzer — decodes an image, fans the five signal detectors out over a
thread pool and aggregates their results into an AnalysisResult.

Flow
----
  1. decode_image        — bytes -> read-only RGBA PixelBuffer (+ EXIF)
  2. detectors           — pixel anomalies, lighting, AI artifacts,
                           metadata, semantic diversity (concurrent)
  3. VerdictAggregator   — manipulation / trust scores + classification
  4. synthesize_heatmap  — decorative regions from two of the signals
  5. AnalysisResult      — everything above plus timing and EXIF summary

Usage
-----
    from pipeline.analyzer import ImageAnalyzer
    from detectors import FileFacts

    analyzer = ImageAnalyzer()
    result = analyzer.analyze(image_bytes, FileFacts(name="x.jpg", size=len(image_bytes)))
    print(result.result_type, result.manipulation_score)
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from concurrent.futures import TimeoutError as FuturesTimeout
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

import numpy as np

from detectors import (
    DecodeError,
    DecodedImage,
    FileFacts,
    PixelBuffer,
    SignalDetector,
    SignalResult,
    decode_image,
    default_detectors,
)
from detectors.metadata import summarize_exif
from detectors.utils import json_sanitize
from scoring import Heatmap, VerdictAggregator, synthesize_heatmap

from .config import AnalyzerSettings, load_settings
from .sources import facts_from_path, fetch_image

logger = logging.getLogger(__name__)


@dataclass
class MetadataSummary:
    has_exif: bool
    flags: List[str] = field(default_factory=list)
    camera_model: Optional[str] = None
    software: Optional[str] = None
    date_time: Optional[str] = None

    def to_dict(self) -> dict:
        return json_sanitize(self)


@dataclass
class AnalysisResult:
    """Aggregate output of one analysis call."""

    result_type: str                        # "real" | "edited" | "ai_generated"
    manipulation_score: int                 # [0 – 100]
    trust_score: int                        # [0 – 100]
    explanation: str
    details: Dict[str, SignalResult]        # detector name -> result
    heatmap: Heatmap
    metadata_summary: MetadataSummary
    processing_time_ms: int = 0
    image_width: int = 0
    image_height: int = 0

    @property
    def pixel_anomalies(self):
        return self.details["pixel_anomalies"]

    @property
    def lighting_shadows(self):
        return self.details["lighting_shadows"]

    @property
    def ai_artifacts(self):
        return self.details["ai_artifacts"]

    @property
    def metadata(self):
        return self.details["metadata"]

    @property
    def semantic_logic(self):
        return self.details["semantic_logic"]

    def to_dict(self) -> dict:
        return {
            "result_type": self.result_type,
            "manipulation_score": self.manipulation_score,
            "trust_score": self.trust_score,
            "explanation": self.explanation,
            "detection_details": {k: v.to_dict() for k, v in self.details.items()},
            "heatmap_data": self.heatmap.to_dict(),
            "metadata_analysis": self.metadata_summary.to_dict(),
            "processing_time_ms": self.processing_time_ms,
            "image_width": self.image_width,
            "image_height": self.image_height,
        }


class ImageAnalyzer:
    """
    Stateless analysis service; safe to share across threads and images.

    Args:
        settings: runtime timeouts / pool size; loaded from
                  configs/analyzer.yaml when omitted.
        rng: optional numpy Generator. When given, detectors and the heatmap
             draw from streams derived from it (reproducible runs); when
             omitted each call samples fresh randomness.
        detectors: override the default five detectors.
    """

    def __init__(
        self,
        settings: Optional[AnalyzerSettings] = None,
        rng: Optional[np.random.Generator] = None,
        detectors: Optional[Sequence[SignalDetector]] = None,
        aggregator: Optional[VerdictAggregator] = None,
    ):
        self.settings = settings or load_settings()
        self._rng = rng
        self._detectors = list(detectors) if detectors is not None else None
        self.aggregator = aggregator or VerdictAggregator()

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def analyze(
        self,
        image_bytes: bytes,
        facts: FileFacts,
        timeout: Optional[float] = None,
    ) -> AnalysisResult:
        """
        Score one image.

        Raises DecodeError for unreadable input and TimeoutError when decode
        (``timeout`` or the configured decode_timeout) or the detectors run
        too long.
        """
        t0 = time.perf_counter()
        logger.debug("Analyzing %s (%d bytes)", facts.name, len(image_bytes))
        decode_timeout = timeout if timeout is not None else self.settings.decode_timeout
        decoded = self.decode(image_bytes, timeout=decode_timeout)
        buffer = decoded.buffer

        signals = self.run_detectors(buffer, facts)
        verdict = self.aggregator.aggregate(signals)

        heatmap = synthesize_heatmap(
            signals["pixel_anomalies"].severity,
            signals["ai_artifacts"].confidence,
            rng=self._child_rng(),
        )
        summary = MetadataSummary(
            flags=list(signals["metadata"].flags),
            **summarize_exif(decoded.exif, facts),
        )

        elapsed_ms = int(round((time.perf_counter() - t0) * 1000))
        logger.info(
            "Analyzed %s (%dx%d): %s manipulation=%d trust=%d in %d ms",
            facts.name, buffer.width, buffer.height, verdict.result_type,
            verdict.manipulation_score, verdict.trust_score, elapsed_ms,
        )
        return AnalysisResult(
            result_type=verdict.result_type,
            manipulation_score=verdict.manipulation_score,
            trust_score=verdict.trust_score,
            explanation=verdict.explanation,
            details=signals,
            heatmap=heatmap,
            metadata_summary=summary,
            processing_time_ms=elapsed_ms,
            image_width=buffer.width,
            image_height=buffer.height,
        )

    def analyze_path(self, image_path: Union[str, Path], timeout: Optional[float] = None) -> AnalysisResult:
        image_path = Path(image_path)
        return self.analyze(image_path.read_bytes(), facts_from_path(image_path), timeout=timeout)

    def analyze_url(self, url: str, timeout: Optional[float] = None) -> AnalysisResult:
        """Fetch with the configured connect/read timeouts, then analyze."""
        data, facts = fetch_image(
            url,
            connect_timeout=self.settings.fetch_connect_timeout,
            read_timeout=self.settings.fetch_read_timeout,
            user_agent=self.settings.user_agent,
        )
        return self.analyze(data, facts, timeout=timeout)

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def decode(self, image_bytes: bytes, timeout: Optional[float] = None) -> DecodedImage:
        pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="decode")
        future = pool.submit(decode_image, image_bytes)
        try:
            return future.result(timeout=timeout)
        except FuturesTimeout as exc:
            future.cancel()
            logger.warning("Decode timed out after %.1fs", timeout)
            raise TimeoutError(f"Image decode exceeded {timeout:.1f}s") from exc
        except DecodeError as exc:
            logger.warning("Could not decode image: %s", exc)
            raise
        finally:
            pool.shutdown(wait=False)

    def run_detectors(self, buffer: PixelBuffer, facts: FileFacts) -> Dict[str, SignalResult]:
        """Run every detector concurrently; join before returning."""
        detectors = self._detectors if self._detectors is not None else default_detectors(self._child_rng())
        timeout = self.settings.detector_timeout

        pool = ThreadPoolExecutor(
            max_workers=min(self.settings.max_workers, len(detectors)) or 1,
            thread_name_prefix="detector",
        )
        try:
            futures = {d.name: pool.submit(d.detect, buffer, facts) for d in detectors}
            done, not_done = wait(futures.values(), timeout=timeout, return_when=FIRST_EXCEPTION)
            if not_done:
                failed = [f for f in done if f.exception() is not None]
                if failed:
                    raise failed[0].exception()
                pending = [name for name, f in futures.items() if f in not_done]
                raise TimeoutError(
                    f"Detectors exceeded {timeout:.1f}s: {', '.join(pending)}"
                )
            # Preserve detector order for the weighted sum
            return {name: f.result() for name, f in futures.items()}
        finally:
            pool.shutdown(wait=False, cancel_futures=True)

    def _child_rng(self) -> Optional[np.random.Generator]:
        if self._rng is None:
            return None
        return np.random.default_rng(int(self._rng.integers(0, 2**63 - 1)))


def analyze(
    image_bytes: bytes,
    file_facts: FileFacts,
    timeout: Optional[float] = None,
    rng: Optional[np.random.Generator] = None,
) -> AnalysisResult:
    """Module-level entry point: one fresh stateless analyzer per call."""
    return ImageAnalyzer(rng=rng).analyze(image_bytes, file_facts, timeout=timeout)
