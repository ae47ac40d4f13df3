"""
SignalDetector: Abstract base class for all heuristic signal detectors.
Defines the contract every detector must fulfil.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np

from .utils import FileFacts, PixelBuffer, json_sanitize


# ---------------------------------------------------------------------------
# Signal results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SignalResult(ABC):
    """Common shape: a verdict, a 0-100 number and a description."""

    description: str

    @property
    @abstractmethod
    def suspicion(self) -> float:
        """Contribution fed to the aggregator before weighting."""

    def to_dict(self) -> dict:
        return json_sanitize(self)


@dataclass(frozen=True)
class PixelAnomalyResult(SignalResult):
    detected: bool = False
    severity: int = 0                       # [0 – 100]

    @property
    def suspicion(self) -> float:
        return self.severity


@dataclass(frozen=True)
class LightingResult(SignalResult):
    consistent: bool = True
    score: int = 100                        # consistency [0 – 100]

    @property
    def suspicion(self) -> float:
        return 100 - self.score


@dataclass(frozen=True)
class AIArtifactResult(SignalResult):
    detected: bool = False
    confidence: int = 0                     # [0 – 100]

    @property
    def suspicion(self) -> float:
        return self.confidence


@dataclass(frozen=True)
class MetadataResult(SignalResult):
    authentic: bool = True
    flags: List[str] = field(default_factory=list)

    @property
    def suspicion(self) -> float:
        return len(self.flags)


@dataclass(frozen=True)
class SemanticResult(SignalResult):
    logical: bool = True
    score: int = 100                        # logic strength [0 – 100]

    @property
    def suspicion(self) -> float:
        return 100 - self.score


# ---------------------------------------------------------------------------
# Abstract base class
# ---------------------------------------------------------------------------

class SignalDetector(ABC):
    """
    Abstract base detector. Subclasses implement `detect` over a read-only
    PixelBuffer and/or FileFacts and return a typed SignalResult.

    Detectors that sample pixels take an optional numpy Generator; without
    one a fresh unseeded generator is created on every call, so repeated
    runs on the same image may differ.
    """

    name: str = "signal"

    def __init__(self, rng: Optional[np.random.Generator] = None):
        self._rng = rng

    @property
    def rng(self) -> np.random.Generator:
        return self._rng if self._rng is not None else np.random.default_rng()

    @abstractmethod
    def detect(self, buffer: PixelBuffer, facts: FileFacts) -> SignalResult:
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"
