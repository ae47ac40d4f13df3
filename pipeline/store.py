"""
AnalysisStore: JSON-file persistence for analysis and batch records.

=== Layout ===
<results_dir>/
    <uuid>.json            one AnalysisRecord per analysed image
    batches/<uuid>.json    one BatchRecord per batch run

The store assigns the durable id and the UTC creation timestamp; the
analysis result itself is stored verbatim in its to_dict() form.
"""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from detectors.utils import FileFacts, json_sanitize
from scoring.aggregator import RESULT_TYPES

logger = logging.getLogger(__name__)

BATCH_STATUSES = {"processing", "completed", "failed"}


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class AnalysisRecord:
    """A stored analysis: result fields plus image identity/display data."""

    id: str
    created_at: str
    image_url: str
    file_name: str
    file_size: int
    image_width: int
    image_height: int
    result_type: str
    manipulation_score: float
    trust_score: float
    explanation: str
    detection_details: Dict[str, Any] = field(default_factory=dict)
    heatmap_data: Dict[str, Any] = field(default_factory=dict)
    metadata_analysis: Dict[str, Any] = field(default_factory=dict)
    processing_time_ms: int = 0

    def validate(self) -> None:
        if self.result_type not in RESULT_TYPES:
            raise ValueError(f"Invalid result_type: {self.result_type!r}")
        for name in ("manipulation_score", "trust_score"):
            v = getattr(self, name)
            if not 0 <= v <= 100:
                raise ValueError(f"{name} out of range [0, 100]: {v}")

    def to_dict(self) -> dict:
        return json_sanitize(asdict(self))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AnalysisRecord":
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**known)


@dataclass
class BatchRecord:
    id: str
    total_images: int
    completed_images: int = 0
    status: str = "processing"            # "processing" | "completed" | "failed"
    created_at: str = ""
    completed_at: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


class AnalysisStore:
    """
    Usage:
        store = AnalysisStore("outputs/analyses")
        record = store.save(result, facts, image_url="photo.jpg")
        store.get(record.id)
        store.list(result_type="edited")
    """

    def __init__(self, results_dir: Union[str, Path]):
        self.results_dir = Path(results_dir)
        self.batches_dir = self.results_dir / "batches"

    # ------------------------------------------------------------------
    # Analyses
    # ------------------------------------------------------------------

    def save(self, result: Any, facts: FileFacts, image_url: str = "") -> AnalysisRecord:
        """Persist an AnalysisResult; returns the stored record with its id."""
        data = result.to_dict()
        record = AnalysisRecord(
            id=str(uuid.uuid4()),
            created_at=_utcnow(),
            image_url=image_url or facts.name,
            file_name=facts.name,
            file_size=int(facts.size),
            image_width=int(data.get("image_width", 0)),
            image_height=int(data.get("image_height", 0)),
            result_type=data["result_type"],
            manipulation_score=data["manipulation_score"],
            trust_score=data["trust_score"],
            explanation=data["explanation"],
            detection_details=data.get("detection_details", {}),
            heatmap_data=data.get("heatmap_data", {}),
            metadata_analysis=data.get("metadata_analysis", {}),
            processing_time_ms=int(data.get("processing_time_ms", 0)),
        )
        record.validate()
        self._write(self.results_dir / f"{record.id}.json", record.to_dict())
        logger.info("Saved analysis %s (%s)", record.id, record.result_type)
        return record

    def get(self, record_id: str) -> AnalysisRecord:
        path = self.results_dir / f"{record_id}.json"
        if not path.exists():
            raise KeyError(f"No analysis with id {record_id!r}")
        return AnalysisRecord.from_dict(self._read(path))

    def list(self, result_type: Optional[str] = None) -> List[AnalysisRecord]:
        """All stored analyses, newest first, optionally filtered by type."""
        records = []
        if not self.results_dir.exists():
            return records
        for path in self.results_dir.glob("*.json"):
            rec = AnalysisRecord.from_dict(self._read(path))
            if result_type is None or rec.result_type == result_type:
                records.append(rec)
        records.sort(key=lambda r: r.created_at, reverse=True)
        return records

    def delete(self, record_id: str) -> None:
        path = self.results_dir / f"{record_id}.json"
        if not path.exists():
            raise KeyError(f"No analysis with id {record_id!r}")
        path.unlink()

    # ------------------------------------------------------------------
    # Batches
    # ------------------------------------------------------------------

    def create_batch(self, total_images: int) -> BatchRecord:
        batch = BatchRecord(id=str(uuid.uuid4()), total_images=int(total_images), created_at=_utcnow())
        self.update_batch(batch)
        return batch

    def update_batch(self, batch: BatchRecord) -> BatchRecord:
        if batch.status not in BATCH_STATUSES:
            raise ValueError(f"Invalid batch status: {batch.status!r}")
        if batch.status != "processing" and batch.completed_at is None:
            batch.completed_at = _utcnow()
        self._write(self.batches_dir / f"{batch.id}.json", batch.to_dict())
        return batch

    def get_batch(self, batch_id: str) -> BatchRecord:
        path = self.batches_dir / f"{batch_id}.json"
        if not path.exists():
            raise KeyError(f"No batch with id {batch_id!r}")
        return BatchRecord(**self._read(path))

    # ------------------------------------------------------------------
    # JSON I/O
    # ------------------------------------------------------------------

    @staticmethod
    def _write(path: Path, data: Dict[str, Any]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(json_sanitize(data), f, ensure_ascii=False, indent=2)

    @staticmethod
    def _read(path: Path) -> Dict[str, Any]:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
