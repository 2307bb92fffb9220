from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from atsflow.analyzer import build_scanner
from atsflow.analyzer.export import EXPORT_FORMATS
from atsflow.normalize import document_from_parsed
from atsflow.parsing import parse_document
from atsflow.schemas.resume import ResumeDocument, ScanOptions


def _load_input(path: Path, industry: str | None) -> tuple[ResumeDocument | dict, ScanOptions]:
    if path.suffix.lower() == ".json":
        payload = json.loads(path.read_text(encoding="utf-8"))
        # Accept either a bare document or a saved {"document": ..., "options": ...} request body.
        document = payload.get("document", payload) if isinstance(payload, dict) else payload
        raw_options = payload.get("options") if isinstance(payload, dict) else None
        options = ScanOptions.model_validate(raw_options or {})
    else:
        parsed = parse_document(path)
        for warning in parsed.parsing_warnings:
            print(f"warning: {warning}", file=sys.stderr)
        document = document_from_parsed(parsed)
        options = ScanOptions(file_format=parsed.source_type)

    if industry:
        options = options.model_copy(update={"industry": industry.strip().lower()})
    return document, options


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Score a resume for ATS compatibility.")
    parser.add_argument("path", help="Resume as .json document or .txt/.pdf/.docx file")
    parser.add_argument(
        "--format", dest="fmt", default=None, choices=EXPORT_FORMATS, help="Report format (default: summary)"
    )
    parser.add_argument(
        "--quick", action="store_true", help="Run only the critical quick-scan checks; always prints JSON"
    )
    parser.add_argument("--industry", default=None, help="Industry keyword set (software, marketing, ...)")
    parser.add_argument("--target", type=int, default=None, help="Print the path to this target score")
    parser.add_argument("--out", default=None, help="Write output to this file instead of stdout")
    args = parser.parse_args(argv)
    if args.quick and args.fmt:
        parser.error("--format cannot be combined with --quick")
    fmt = args.fmt or "summary"

    scanner = build_scanner()
    try:
        document, options = _load_input(Path(args.path), args.industry)
        if args.quick:
            output = scanner.quick_scan(document, options).model_dump_json(indent=2)
        else:
            report = scanner.scan_or_raise(document, options)
            if args.target is not None:
                output = scanner.get_path_to_score(report, args.target).model_dump_json(indent=2)
            else:
                output = scanner.export_results(report, fmt)
    except (ValueError, FileNotFoundError, NotImplementedError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    if args.out:
        out_path = Path(args.out)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(output, encoding="utf-8")
        print(f"Wrote {fmt if not args.quick else 'quick scan'} output to {out_path}")
    else:
        print(output)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
