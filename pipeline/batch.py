"""
BatchAnalyzer: runs the full analysis independently over many images.

Each item is analysed on its own; a failure (undecodable file, fetch
error, timeout, unreadable path) is recorded on that item and the batch
moves on.  Nothing is shared between items.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from tqdm import tqdm

from detectors.utils import DecodeError

from .analyzer import AnalysisResult, ImageAnalyzer
from .sources import FetchError, facts_from_path, fetch_image
from .store import AnalysisStore, BatchRecord

logger = logging.getLogger(__name__)

ITEM_ERRORS = (DecodeError, FetchError, TimeoutError, OSError)


@dataclass
class BatchItem:
    source: str
    status: str = "pending"             # "pending" | "completed" | "failed"
    result: Optional[AnalysisResult] = None
    record_id: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"source": self.source, "status": self.status}
        if self.result is not None:
            out["result_type"] = self.result.result_type
            out["manipulation_score"] = self.result.manipulation_score
            out["trust_score"] = self.result.trust_score
        if self.record_id is not None:
            out["record_id"] = self.record_id
        if self.error is not None:
            out["error"] = self.error
        return out


def _is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


class BatchAnalyzer:
    """
    Usage:
        batch = BatchAnalyzer(ImageAnalyzer(), store=AnalysisStore("outputs/analyses"))
        items = batch.run(["a.jpg", "b.png", "https://example.com/c.webp"])
    """

    def __init__(
        self,
        analyzer: Optional[ImageAnalyzer] = None,
        store: Optional[AnalysisStore] = None,
        show_progress: bool = True,
    ):
        self.analyzer = analyzer or ImageAnalyzer()
        self.store = store
        self.show_progress = show_progress
        self.batch_record: Optional[BatchRecord] = None

    def _update_batch(self) -> None:
        try:
            self.store.update_batch(self.batch_record)
        except OSError as exc:
            logger.warning("Could not update batch %s: %s", self.batch_record.id, exc)

    def _load(self, source: str) -> tuple:
        if _is_url(source):
            s = self.analyzer.settings
            return fetch_image(
                source,
                connect_timeout=s.fetch_connect_timeout,
                read_timeout=s.fetch_read_timeout,
                user_agent=s.user_agent,
            )
        p = Path(source)
        return p.read_bytes(), facts_from_path(p)

    def analyze_one(self, source: Union[str, Path]) -> BatchItem:
        source = str(source)
        item = BatchItem(source=source)
        try:
            data, facts = self._load(source)
            result = self.analyzer.analyze(data, facts)
            if self.store is not None:
                item.record_id = self.store.save(result, facts, image_url=source).id
        except ITEM_ERRORS as exc:
            item.status = "failed"
            item.error = f"{type(exc).__name__}: {exc}"
            logger.warning("Batch item %s failed: %s", source, item.error)
            return item

        item.result = result
        item.status = "completed"
        return item

    def run(self, sources: Sequence[Union[str, Path]]) -> List[BatchItem]:
        sources = list(sources)
        if self.store is not None:
            self.batch_record = self.store.create_batch(len(sources))

        items: List[BatchItem] = []
        try:
            for source in tqdm(sources, desc="Analyzing", unit="img", disable=not self.show_progress):
                item = self.analyze_one(source)
                items.append(item)
                if self.batch_record is not None and item.status == "completed":
                    self.batch_record.completed_images += 1
                    self._update_batch()
        finally:
            if self.batch_record is not None:
                # An interrupted run never reaches "completed"
                done = len(items) == len(sources)
                ok = done and (self.batch_record.completed_images > 0 or not sources)
                self.batch_record.status = "completed" if ok else "failed"
                self._update_batch()

        n_ok = sum(1 for it in items if it.status == "completed")
        logger.info("Batch finished: %d/%d images analysed", n_ok, len(items))
        return items


def summarize(items: Sequence[BatchItem]) -> Dict[str, Any]:
    counts: Dict[str, int] = {"real": 0, "edited": 0, "ai_generated": 0, "failed": 0}
    for it in items:
        if it.status == "failed":
            counts["failed"] += 1
        elif it.result is not None:
            counts[it.result.result_type] += 1
    return {"total": len(items), "counts": counts, "items": [it.to_dict() for it in items]}
