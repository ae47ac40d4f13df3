from .analyzer import AnalysisResult, ImageAnalyzer, MetadataSummary, analyze
from .batch import BatchAnalyzer, BatchItem
from .config import AnalyzerSettings, load_settings
from .report import generate_report, image_data_url, report_filename, save_report
from .sources import FetchError, facts_from_path, fetch_image
from .store import AnalysisRecord, AnalysisStore, BatchRecord

__all__ = [
    "AnalysisRecord",
    "AnalysisResult",
    "AnalysisStore",
    "AnalyzerSettings",
    "BatchAnalyzer",
    "BatchItem",
    "BatchRecord",
    "FetchError",
    "ImageAnalyzer",
    "MetadataSummary",
    "analyze",
    "facts_from_path",
    "fetch_image",
    "generate_report",
    "image_data_url",
    "load_settings",
    "report_filename",
    "save_report",
]
