"""
detectors.metadata — File-fact plausibility flags and EXIF summary.

Flags come from name, size, MIME type and modification time only, in a
fixed order; pixel content is never read.  The EXIF summary is reported
alongside the verdict but does not feed the score.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .base import MetadataResult, SignalDetector
from .utils import FileFacts, PixelBuffer

MIN_FILE_SIZE = 1000
MAX_FILE_SIZE = 50 * 1024 * 1024
SCREENSHOT_MARKERS = ("screenshot", "screen shot")
AI_NAME_MARKERS = ("ai", "generated", "midjourney", "dalle")

# EXIF tag ids
TAG_MAKE = 271
TAG_MODEL = 272
TAG_SOFTWARE = 305
TAG_DATETIME = 306


def metadata_flags(facts: FileFacts) -> List[str]:
    """Ordered plausibility flags for a file; deterministic in `facts`."""
    flags: List[str] = []

    if facts.mime_type and not facts.mime_type.startswith("image/"):
        flags.append("Invalid MIME type")

    if facts.size < MIN_FILE_SIZE:
        flags.append("Suspiciously small file size")

    if facts.size > MAX_FILE_SIZE:
        flags.append("Unusually large file size")

    if not facts.last_modified:
        flags.append("Missing modification timestamp")

    name = (facts.name or "").lower()
    if any(m in name for m in SCREENSHOT_MARKERS):
        flags.append("Screenshot detected")

    if any(m in name for m in AI_NAME_MARKERS):
        flags.append("AI-related filename")

    return flags


class MetadataDetector(SignalDetector):
    """File-fact checks only; pixel content is ignored."""

    name = "metadata"

    def detect(self, buffer: Optional[PixelBuffer], facts: FileFacts) -> MetadataResult:
        flags = metadata_flags(facts)
        authentic = len(flags) == 0
        return MetadataResult(
            authentic=authentic,
            flags=flags,
            description=(
                "File metadata appears legitimate"
                if authentic
                else f"Metadata concerns: {', '.join(flags)}"
            ),
        )


def _exif_text(exif: Dict[int, Any], tag: int) -> Optional[str]:
    val = exif.get(tag)
    if val is None:
        return None
    if isinstance(val, bytes):
        val = val.decode("utf-8", errors="replace")
    val = str(val).strip("\x00 ").strip()
    return val or None


def iso_timestamp(epoch_ms: Optional[float]) -> Optional[str]:
    if not epoch_ms:
        return None
    dt = datetime.fromtimestamp(epoch_ms / 1000.0, tz=timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def summarize_exif(exif: Dict[int, Any], facts: FileFacts) -> Dict[str, Any]:
    """
    Camera / software / timestamp fields for the result's metadata summary.

    EXIF DateTime wins over the file modification time when both exist.
    """
    make = _exif_text(exif, TAG_MAKE)
    model = _exif_text(exif, TAG_MODEL)
    if make and model and not model.lower().startswith(make.lower()):
        camera = f"{make} {model}"
    else:
        camera = model or make

    return {
        "has_exif": bool(exif),
        "camera_model": camera,
        "software": _exif_text(exif, TAG_SOFTWARE),
        "date_time": _exif_text(exif, TAG_DATETIME) or iso_timestamp(facts.last_modified),
    }
