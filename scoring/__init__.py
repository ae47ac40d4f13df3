from .aggregator import RESULT_TYPES, SIGNAL_WEIGHTS, Verdict, VerdictAggregator
from .heatmap import Heatmap, HeatmapRegion, render_overlay, synthesize_heatmap

__all__ = [
    "RESULT_TYPES",
    "SIGNAL_WEIGHTS",
    "Heatmap",
    "HeatmapRegion",
    "Verdict",
    "VerdictAggregator",
    "render_overlay",
    "synthesize_heatmap",
]
