"""High-level API + CLI for the image authenticity analyzer."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Any

from pipeline import (
    AnalysisStore,
    BatchAnalyzer,
    ImageAnalyzer,
    facts_from_path,
    fetch_image,
    generate_report,
    image_data_url,
    load_settings,
    report_filename,
    save_report,
)
from pipeline.batch import summarize
from pipeline.config import CONFIG_PATH


class AuthenticityAPI:
    """High-level orchestration API usable from CLI or notebooks."""

    def __init__(self, config_path: Path = CONFIG_PATH):
        self.settings = load_settings(config_path)
        self.analyzer = ImageAnalyzer(settings=self.settings)
        self.store = AnalysisStore(self.settings.results_dir)

    def analyze_file(self, image_path: str | Path, save: bool = True) -> dict[str, Any]:
        image_path = Path(image_path)
        data = image_path.read_bytes()
        facts = facts_from_path(image_path)
        result = self.analyzer.analyze(data, facts)
        output = result.to_dict()
        if save:
            output["id"] = self.store.save(result, facts, image_url=str(image_path)).id
        return output

    def analyze_url(self, url: str, save: bool = True) -> dict[str, Any]:
        data, facts = fetch_image(
            url,
            connect_timeout=self.settings.fetch_connect_timeout,
            read_timeout=self.settings.fetch_read_timeout,
            user_agent=self.settings.user_agent,
        )
        result = self.analyzer.analyze(data, facts)
        output = result.to_dict()
        if save:
            output["id"] = self.store.save(result, facts, image_url=url).id
        return output

    def analyze_batch(self, sources: list[str], save: bool = True) -> dict[str, Any]:
        batch = BatchAnalyzer(self.analyzer, store=self.store if save else None)
        items = batch.run(sources)
        summary = summarize(items)
        if batch.batch_record is not None:
            summary["batch_id"] = batch.batch_record.id
            summary["status"] = batch.batch_record.status
        return summary

    def write_report(self, record_id: str, out_dir: str | Path | None = None) -> str:
        record = self.store.get(record_id)
        # Embed local images; remote ones are linked by URL
        src = record.image_url
        local = Path(src)
        if not src.startswith(("http://", "https://")) and local.exists():
            src = image_data_url(local.read_bytes(), facts_from_path(local).mime_type)
        html = generate_report(record, src)
        out_dir = Path(out_dir) if out_dir else self.settings.reports_dir
        return save_report(html, out_dir / report_filename(record))

    def list_analyses(self, result_type: str | None = None) -> list[dict[str, Any]]:
        return [
            {
                "id": r.id,
                "created_at": r.created_at,
                "file_name": r.file_name,
                "result_type": r.result_type,
                "manipulation_score": r.manipulation_score,
                "trust_score": r.trust_score,
            }
            for r in self.store.list(result_type=result_type)
        ]


# -------------------- CLI commands --------------------

def _dump(obj: Any) -> None:
    print(json.dumps(obj, indent=2, ensure_ascii=False))


def cmd_analyze(args: argparse.Namespace) -> None:
    api = AuthenticityAPI(args.config)
    _dump(api.analyze_file(args.image, save=not args.no_save))


def cmd_url(args: argparse.Namespace) -> None:
    api = AuthenticityAPI(args.config)
    _dump(api.analyze_url(args.url, save=not args.no_save))


def cmd_batch(args: argparse.Namespace) -> None:
    api = AuthenticityAPI(args.config)
    _dump(api.analyze_batch(args.sources, save=not args.no_save))


def cmd_report(args: argparse.Namespace) -> None:
    api = AuthenticityAPI(args.config)
    path = api.write_report(args.analysis_id, out_dir=args.out)
    print(f"[report] Written to {path}")


def cmd_list(args: argparse.Namespace) -> None:
    api = AuthenticityAPI(args.config)
    _dump(api.list_analyses(result_type=args.type))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Heuristic image authenticity analyzer")
    parser.add_argument("--config", type=Path, default=CONFIG_PATH, help="Path to analyzer.yaml")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("analyze", help="Analyze a local image file")
    p.add_argument("image", help="Path to JPEG/PNG/WebP/GIF image")
    p.add_argument("--no-save", action="store_true", help="Do not persist the result")

    p = sub.add_parser("url", help="Fetch and analyze an image URL")
    p.add_argument("url")
    p.add_argument("--no-save", action="store_true", help="Do not persist the result")

    p = sub.add_parser("batch", help="Analyze several files/URLs independently")
    p.add_argument("sources", nargs="+")
    p.add_argument("--no-save", action="store_true", help="Do not persist the results")

    p = sub.add_parser("report", help="Write the HTML report for a stored analysis")
    p.add_argument("analysis_id")
    p.add_argument("--out", default=None, help="Output directory")

    p = sub.add_parser("list", help="List stored analyses, newest first")
    p.add_argument("--type", choices=["real", "edited", "ai_generated"], default=None)

    return parser


def setup_logging(verbose: bool = False) -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[%(name)s] %(message)s"))
    root = logging.getLogger()
    if not root.handlers:
        root.addHandler(handler)
    root.setLevel(logging.DEBUG if verbose else logging.INFO)


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()
    setup_logging(args.verbose)

    commands = {
        "analyze": cmd_analyze,
        "url": cmd_url,
        "batch": cmd_batch,
        "report": cmd_report,
        "list": cmd_list,
    }
    commands[args.command](args)


if __name__ == "__main__":
    main()
