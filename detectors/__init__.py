"""
detectors — Independent heuristic signal detectors for image authenticity.

Each detector inspects a decoded RGBA pixel buffer and/or the facts of the
source file and returns a small typed result (verdict, 0-100 score and a
description).  Detectors share no state and never modify the buffer, so the
analysis pipeline runs them concurrently and joins before aggregation.

Modules
-------
base            ``SignalDetector`` abstraction and the five result types.
pixel_anomaly   Random-sample neighbor discontinuities (clone/splice seams).
lighting        Full-scan brightness spread mapped to a consistency score.
ai_artifacts    Edge-row symmetry + local smoothness blend.
metadata        File-fact plausibility flags and EXIF summary.
semantic        Quantised color diversity over the start of the buffer.
utils           Pixel loader, shared dataclasses and sampling helpers.

Usage
-----
    from detectors import decode_image, default_detectors, FileFacts

    decoded = decode_image(open("photo.jpg", "rb").read())
    facts = FileFacts(name="photo.jpg", size=123456, mime_type="image/jpeg")
    results = {d.name: d.detect(decoded.buffer, facts) for d in default_detectors()}
"""

from typing import List, Optional

import numpy as np

from .ai_artifacts import AIArtifactDetector
from .base import (
    AIArtifactResult,
    LightingResult,
    MetadataResult,
    PixelAnomalyResult,
    SemanticResult,
    SignalDetector,
    SignalResult,
)
from .lighting import LightingDetector
from .metadata import MetadataDetector, metadata_flags, summarize_exif
from .pixel_anomaly import PixelAnomalyDetector
from .semantic import SemanticDetector
from .utils import DecodeError, DecodedImage, FileFacts, PixelBuffer, decode_image


def default_detectors(rng: Optional[np.random.Generator] = None) -> List[SignalDetector]:
    """
    The five detectors in aggregation order.

    A supplied generator is split into one child stream per detector so a
    seeded run stays reproducible when the detectors execute concurrently.
    """
    classes = [
        PixelAnomalyDetector,
        LightingDetector,
        AIArtifactDetector,
        MetadataDetector,
        SemanticDetector,
    ]
    if rng is None:
        return [cls() for cls in classes]
    seeds = rng.integers(0, 2**63 - 1, size=len(classes))
    return [cls(np.random.default_rng(int(s))) for cls, s in zip(classes, seeds)]


__all__ = [
    "AIArtifactDetector",
    "AIArtifactResult",
    "DecodeError",
    "DecodedImage",
    "FileFacts",
    "LightingDetector",
    "LightingResult",
    "MetadataDetector",
    "MetadataResult",
    "PixelAnomalyDetector",
    "PixelAnomalyResult",
    "PixelBuffer",
    "SemanticDetector",
    "SemanticResult",
    "SignalDetector",
    "SignalResult",
    "decode_image",
    "default_detectors",
    "metadata_flags",
    "summarize_exif",
]
