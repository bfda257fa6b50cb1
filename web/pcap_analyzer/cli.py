"""
Batch analysis CLI.

    pcap-analyzer capture1.pcap capture2.pcap.gz -o results/

Writes one `<capture name>.json` per input into the output directory, or
prints the JSON to stdout for a single capture without -o (several captures
require -o). Inputs sharing a file name get numbered outputs
(`capture.pcap.json`, `capture.pcap.1.json`, ...). Exit status is 1 if any
capture failed to parse.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional, Set

from tqdm import tqdm

from .config import AnalyzerConfig
from .errors import AnalysisFailed
from .orchestration.runner import analyze_path


def _parse_args(argv: Optional[List[str]]) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Analyze pcap captures for flood and scan patterns.")
    ap.add_argument("captures", nargs="+", help="Capture files (.pcap, optionally gzip/zstd compressed).")
    ap.add_argument("--output", "-o", default=None, help="Directory for per-capture JSON results.")
    ap.add_argument(
        "--partial",
        action="store_true",
        help="Return the valid prefix of a truncated capture instead of failing.",
    )
    ap.add_argument("--log-level", default="WARNING", help="Logging level (default WARNING).")
    args = ap.parse_args(argv)
    if len(args.captures) > 1 and args.output is None:
        ap.error("--output is required when analyzing more than one capture")
    return args


def _output_name(name: str, used: Set[str]) -> str:
    """`<name>.json`, numbered when an earlier input had the same file name."""
    candidate = f"{name}.json"
    n = 0
    while candidate in used:
        n += 1
        candidate = f"{name}.{n}.json"
    used.add(candidate)
    return candidate


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.WARNING),
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    cfg = AnalyzerConfig(truncation_policy="partial" if args.partial else "fail")
    out_dir = Path(args.output) if args.output else None
    if out_dir is not None:
        os.makedirs(out_dir, exist_ok=True)

    failures = 0
    used_names: Set[str] = set()
    pbar = tqdm(total=len(args.captures), disable=out_dir is None)
    for capture in args.captures:
        name = Path(capture).name
        pbar.set_description(f"Analyzing: {name}")
        try:
            result = analyze_path(capture, cfg)
        except AnalysisFailed as e:
            failures += 1
            pbar.write(f"[WARN] {name}: {e}")
            pbar.update()
            continue
        except OSError as e:
            failures += 1
            pbar.write(f"[WARN] {name}: cannot read capture: {e}")
            pbar.update()
            continue

        doc = json.dumps(result.to_dict(), ensure_ascii=False, indent=2)
        if out_dir is None:
            pbar.write(doc)  # stdout; the bar itself draws on stderr
        else:
            (out_dir / _output_name(name, used_names)).write_text(doc, encoding="utf-8")
        pbar.update()
    pbar.close()

    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
