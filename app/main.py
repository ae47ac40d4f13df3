"""
Streamlit app (optional front-end) — image authenticity analyzer.

Run with:
    streamlit run app/main.py
"""

import sys
import time
from pathlib import Path

import streamlit as st

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from detectors import DecodeError, FileFacts  # noqa: E402
from pipeline import (  # noqa: E402
    AnalysisStore,
    FetchError,
    ImageAnalyzer,
    fetch_image,
    generate_report,
    image_data_url,
    load_settings,
    report_filename,
)
from scoring import render_overlay  # noqa: E402

LABELS = {"real": "Authentic", "edited": "Edited", "ai_generated": "AI generated"}

settings = load_settings()
analyzer = ImageAnalyzer(settings=settings)
store = AnalysisStore(settings.results_dir)


def upload_facts(upload, data: bytes) -> FileFacts:
    # Browser uploads carry no modification time; the upload moment stands in for it.
    return FileFacts(name=upload.name, size=len(data), mime_type=upload.type, last_modified=time.time() * 1000)


def show_result(data: bytes, facts: FileFacts, source: str) -> None:
    try:
        result = analyzer.analyze(data, facts)
    except (DecodeError, TimeoutError) as exc:
        st.error(f"Failed to analyze image: {exc}")
        return
    record = store.save(result, facts, image_url=source)

    st.image(render_overlay(data, result.heatmap), caption=facts.name)
    st.subheader(LABELS[result.result_type])
    c1, c2, c3 = st.columns(3)
    c1.metric("Manipulation score", f"{result.manipulation_score}%")
    c2.metric("Trust score", f"{result.trust_score}%")
    c3.metric("Processing time", f"{result.processing_time_ms} ms")
    st.write(result.explanation)

    with st.expander("Detection details"):
        st.json(result.to_dict()["detection_details"])
    with st.expander("Heatmap regions"):
        st.json(result.heatmap.to_dict())

    report = generate_report(record, image_data_url(data, facts.mime_type))
    st.download_button("Download report", report, file_name=report_filename(record), mime="text/html")


st.title("Image Authenticity Analyzer")
tab_upload, tab_url, tab_batch = st.tabs(["Upload", "URL", "Batch"])

with tab_upload:
    up = st.file_uploader("Image", type=["jpg", "jpeg", "png", "webp", "gif"])
    if up is not None:
        data = up.getvalue()
        show_result(data, upload_facts(up, data), up.name)

with tab_url:
    url = st.text_input("Image URL")
    if st.button("Analyze URL") and url.strip():
        try:
            data, facts = fetch_image(
                url.strip(),
                connect_timeout=settings.fetch_connect_timeout,
                read_timeout=settings.fetch_read_timeout,
                user_agent=settings.user_agent,
            )
        except (FetchError, TimeoutError) as exc:
            st.error(f"Failed to fetch image from URL: {exc}")
        else:
            show_result(data, facts, url.strip())

with tab_batch:
    files = st.file_uploader("Images", type=["jpg", "jpeg", "png", "webp", "gif"], accept_multiple_files=True)
    if files and st.button(f"Analyze {len(files)} images"):
        rows = []
        progress = st.progress(0.0)
        for i, f in enumerate(files, start=1):
            data = f.getvalue()
            facts = upload_facts(f, data)
            try:
                res = analyzer.analyze(data, facts)
            except (DecodeError, TimeoutError) as exc:
                rows.append({"file": f.name, "status": "failed", "error": str(exc)})
            else:
                store.save(res, facts, image_url=f.name)
                rows.append({
                    "file": f.name,
                    "status": "completed",
                    "result": LABELS[res.result_type],
                    "trust": res.trust_score,
                })
            progress.progress(i / len(files))
        st.table(rows)
