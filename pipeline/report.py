"""
Standalone HTML forensic report for a stored analysis.

The document is self-contained (inline CSS, image embedded as a data URL)
so it can be downloaded and opened offline or printed.
"""

from __future__ import annotations

import base64
import html
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .store import AnalysisRecord

BADGES = {
    "real": ("result-real", "&#10003; AUTHENTIC IMAGE"),
    "edited": ("result-edited", "&#9888; EDITED IMAGE"),
    "ai_generated": ("result-ai", "&#10007; AI GENERATED"),
}

# (details key, title, verdict field that means "pass", score field, score label)
DETECTION_ROWS = (
    ("pixel_anomalies", "Pixel Anomaly Detection", ("detected", False), "severity", "Severity"),
    ("lighting_shadows", "Lighting &amp; Shadow Analysis", ("consistent", True), "score", "Consistency Score"),
    ("ai_artifacts", "AI Artifact Detection", ("detected", False), "confidence", "AI Confidence"),
    ("metadata", "Metadata Analysis", ("authentic", True), None, None),
    ("semantic_logic", "Semantic Logic Analysis", ("logical", True), "score", "Logic Score"),
)

STYLE = """
* { margin: 0; padding: 0; box-sizing: border-box; }
body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
       line-height: 1.6; color: #333; max-width: 1200px; margin: 0 auto;
       padding: 40px 20px; background: #f9fafb; }
.header { background: linear-gradient(135deg, #1e40af 0%, #3b82f6 100%); color: white;
          padding: 40px; border-radius: 12px; margin-bottom: 30px; }
.header h1 { font-size: 36px; margin-bottom: 10px; }
.summary, .section { background: white; padding: 30px; border-radius: 12px;
                     margin-bottom: 30px; box-shadow: 0 1px 3px rgba(0,0,0,0.1); }
.result-badge { display: inline-block; padding: 12px 24px; border-radius: 8px;
                font-weight: bold; font-size: 20px; margin-bottom: 20px; }
.result-real { background: #dcfce7; color: #166534; }
.result-edited { background: #fef3c7; color: #92400e; }
.result-ai { background: #fee2e2; color: #991b1b; }
.metrics { display: grid; grid-template-columns: repeat(auto-fit, minmax(200px, 1fr));
           gap: 20px; margin: 20px 0; }
.metric { background: #f3f4f6; padding: 20px; border-radius: 8px; }
.metric-label { font-size: 14px; color: #6b7280; margin-bottom: 5px; }
.metric-value { font-size: 32px; font-weight: bold; color: #1f2937; }
.section h2 { font-size: 24px; margin-bottom: 20px; color: #1f2937;
              border-bottom: 2px solid #e5e7eb; padding-bottom: 10px; }
.image-container { text-align: center; margin: 20px 0; }
.image-container img { max-width: 100%; height: auto; border-radius: 8px; }
.image-frame { position: relative; display: inline-block; }
.image-frame img { display: block; }
.heatmap-region { position: absolute; background: #ef4444; border: 2px solid #ef4444; box-sizing: border-box; }
.detection-item { display: flex; align-items: start; gap: 15px; padding: 15px;
                  background: #f9fafb; border-radius: 8px; margin-bottom: 15px; }
.status-indicator { width: 12px; height: 12px; border-radius: 50%; margin-top: 6px; flex-shrink: 0; }
.status-pass { background: #22c55e; }
.status-fail { background: #ef4444; }
.detection-title { font-weight: 600; color: #1f2937; margin-bottom: 5px; }
.detection-description { color: #6b7280; font-size: 14px; }
.detection-score { color: #3b82f6; font-weight: 600; margin-top: 5px; font-size: 14px; }
.footer { text-align: center; color: #6b7280; font-size: 14px; margin-top: 40px;
          padding-top: 20px; border-top: 1px solid #e5e7eb; }
table { width: 100%; border-collapse: collapse; margin-top: 15px; }
th, td { padding: 12px; text-align: left; border-bottom: 1px solid #e5e7eb; }
th { background: #f9fafb; font-weight: 600; color: #374151; }
@media print { body { background: white; } .section, .summary, .header { box-shadow: none; } }
"""


def image_data_url(data: bytes, mime_type: Optional[str] = None) -> str:
    mime = mime_type or "image/jpeg"
    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"


def _esc(value: Any) -> str:
    return html.escape(str(value), quote=True)


def _format_date(iso: str) -> str:
    try:
        return datetime.fromisoformat(iso).strftime("%Y-%m-%d %H:%M:%S %Z").strip()
    except (TypeError, ValueError):
        return iso or ""


def _detection_item(details: Dict[str, Any], key: str, title: str, pass_rule, score_key, score_label) -> str:
    d = details.get(key)
    if not d:
        return ""
    field_name, pass_value = pass_rule
    status = "status-pass" if bool(d.get(field_name)) == pass_value else "status-fail"
    if score_key is not None:
        score = f'<div class="detection-score">{score_label}: {_esc(d.get(score_key, 0))}%</div>'
    elif d.get("flags"):
        score = f'<div class="detection-score">Flags: {_esc(", ".join(d["flags"]))}</div>'
    else:
        score = ""
    return (
        f'<div class="detection-item">'
        f'<div class="status-indicator {status}"></div>'
        f'<div class="detection-content">'
        f'<div class="detection-title">{title}</div>'
        f'<div class="detection-description">{_esc(d.get("description", ""))}</div>'
        f"{score}"
        f"</div></div>"
    )


def _heatmap_boxes(heatmap_data: Dict[str, Any]) -> str:
    boxes = []
    for r in (heatmap_data or {}).get("regions", []):
        boxes.append(
            f'<div class="heatmap-region" style="left: {r["x"] * 100:.2f}%; top: {r["y"] * 100:.2f}%; '
            f'width: {r["width"] * 100:.2f}%; height: {r["height"] * 100:.2f}%; '
            f'opacity: {r["intensity"] * 0.3:.3f};"></div>'
        )
    return "".join(boxes)


def generate_report(record: AnalysisRecord, image_url: str) -> str:
    """Render a stored analysis as a standalone HTML document."""
    badge_class, badge_text = BADGES.get(record.result_type, BADGES["ai_generated"])
    details = record.detection_details or {}
    items = "\n".join(_detection_item(details, *row) for row in DETECTION_ROWS)
    heatmap = _heatmap_boxes(record.heatmap_data)

    return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>TruePic AI - Forensic Analysis Report</title>
  <style>{STYLE}</style>
</head>
<body>
  <div class="header">
    <h1>TruePic AI</h1>
    <p>Forensic Image Analysis Report</p>
  </div>

  <div class="summary">
    <span class="result-badge {badge_class}">{badge_text}</span>
    <div class="metrics">
      <div class="metric">
        <div class="metric-label">Manipulation Score</div>
        <div class="metric-value">{round(record.manipulation_score)}%</div>
      </div>
      <div class="metric">
        <div class="metric-label">Trust Score</div>
        <div class="metric-value">{round(record.trust_score)}%</div>
      </div>
      <div class="metric">
        <div class="metric-label">Processing Time</div>
        <div class="metric-value">{int(record.processing_time_ms)}ms</div>
      </div>
    </div>
    <p>{_esc(record.explanation)}</p>
  </div>

  <div class="section">
    <h2>Analyzed Image</h2>
    <div class="image-container">
      <div class="image-frame">
        <img src="{_esc(image_url)}" alt="Analyzed Image" />
        {heatmap}
      </div>
    </div>
    <table>
      <tr><th>Property</th><th>Value</th></tr>
      <tr><td>File Name</td><td>{_esc(record.file_name)}</td></tr>
      <tr><td>Dimensions</td><td>{int(record.image_width)} &times; {int(record.image_height)} pixels</td></tr>
      <tr><td>File Size</td><td>{record.file_size / 1024:.2f} KB</td></tr>
      <tr><td>Analysis Date</td><td>{_esc(_format_date(record.created_at))}</td></tr>
    </table>
  </div>

  <div class="section">
    <h2>Detection Analysis</h2>
    {items}
  </div>

  <div class="section">
    <h2>Technical Summary</h2>
    <p>This analysis examined multiple aspects of the image:</p>
    <ul style="margin-left: 20px;">
      <li>Pixel-level discontinuity detection</li>
      <li>Lighting consistency verification</li>
      <li>GAN and diffusion model artifact identification</li>
      <li>Metadata authenticity validation</li>
      <li>Semantic composition analysis</li>
    </ul>
  </div>

  <div class="footer">
    <p>Report ID: {_esc(record.id)}</p>
    <p>Heuristic analysis only; scores are indicative, not proof of manipulation.</p>
  </div>
</body>
</html>
"""


def report_filename(record: AnalysisRecord) -> str:
    return f"TruePic-Report-{record.id[:8]}.html"


def save_report(report_html: str, out_path: Union[str, Path]) -> str:
    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(report_html, encoding="utf-8")
    return str(out_path)
