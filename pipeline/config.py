"""
AnalyzerSettings: runtime settings loaded from configs/analyzer.yaml.

Missing keys (or a missing file) fall back to the dataclass defaults.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Union

import yaml

logger = logging.getLogger(__name__)

CONFIG_PATH = Path(__file__).parent.parent / "configs" / "analyzer.yaml"


@dataclass(frozen=True)
class AnalyzerSettings:
    decode_timeout: float = 10.0
    detector_timeout: float = 30.0
    max_workers: int = 5
    fetch_connect_timeout: float = 10.0
    fetch_read_timeout: float = 30.0
    user_agent: str = "image-authenticity-analyzer/0.1"
    results_dir: Path = Path("outputs/analyses")
    reports_dir: Path = Path("outputs/reports")

    @classmethod
    def from_dict(cls, cfg: Dict[str, Any]) -> "AnalyzerSettings":
        a_cfg = cfg.get("analyzer", {}) or {}
        f_cfg = cfg.get("fetch", {}) or {}
        s_cfg = cfg.get("storage", {}) or {}
        d = cls()
        return cls(
            decode_timeout=float(a_cfg.get("decode_timeout", d.decode_timeout)),
            detector_timeout=float(a_cfg.get("detector_timeout", d.detector_timeout)),
            max_workers=max(1, int(a_cfg.get("max_workers", d.max_workers))),
            fetch_connect_timeout=float(f_cfg.get("connect_timeout", d.fetch_connect_timeout)),
            fetch_read_timeout=float(f_cfg.get("read_timeout", d.fetch_read_timeout)),
            user_agent=str(f_cfg.get("user_agent", d.user_agent)),
            results_dir=Path(s_cfg.get("results_dir", d.results_dir)),
            reports_dir=Path(s_cfg.get("reports_dir", d.reports_dir)),
        )


def load_settings(config_path: Union[str, Path] = CONFIG_PATH) -> AnalyzerSettings:
    config_path = Path(config_path)
    if not config_path.exists():
        logger.debug("No config at %s; using defaults", config_path)
        return AnalyzerSettings()
    with open(config_path, encoding="utf-8") as f:
        cfg = yaml.safe_load(f) or {}
    return AnalyzerSettings.from_dict(cfg)
