"""
Parse an AI inspection report file into estimate line items and print them as JSON.

Useful for checking how a saved report will be itemized before it reaches
the estimate review screen.

Usage:
  python scripts/parse_report.py report.txt
  python scripts/parse_report.py report.txt --out estimate.json --indent 4
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from models.estimate import calculate_total  # noqa: E402
from services.report_parser import parse_report_for_services  # noqa: E402
from utils.logging_config import configure_logging  # noqa: E402


def build_export(report_text: str) -> Dict[str, Any]:
    """Parse report text into the JSON shape used by the review screen."""
    services = parse_report_for_services(report_text)
    return {
        "services": [service.to_dict() for service in services],
        "total": calculate_total(services),
    }


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Parse an AI rug report into priced service line items")
    parser.add_argument("report", help="Path to a text file containing the report")
    parser.add_argument("--out", required=False, help="Write JSON here instead of stdout")
    parser.add_argument("--indent", type=int, default=2, help="JSON indent (default 2)")
    parser.add_argument("--log-level", default="WARNING", help="Log level (default WARNING)")
    args = parser.parse_args(argv)

    configure_logging(level=args.log_level)

    report_path = Path(args.report)
    if not report_path.is_file():
        print(f"Report not found: {report_path}", file=sys.stderr)
        return 2

    export = build_export(report_path.read_text(encoding="utf-8"))
    payload = json.dumps(export, indent=args.indent)

    if args.out:
        Path(args.out).write_text(payload + "\n", encoding="utf-8")
        print(f"Wrote {args.out}")
    else:
        print(payload)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
