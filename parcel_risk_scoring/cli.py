"""CLI entry point for parcel-risk-scoring."""

import argparse
import csv
import io
import json
import logging
import sys
from pathlib import Path

from .config import load_default_profile, load_package_catalog, load_profile
from .models import RawScan, RiskScoreDisplay, ScanRecord
from .pipeline import process_many, process_scan
from .stats import summarize


def main(argv: list[str] | None = None) -> None:
    """Parcel Risk Scoring: decode shipping-label payloads and score them."""
    parser = argparse.ArgumentParser(
        prog="parcel-risk-scoring",
        description="Decode shipping-label barcode payloads and score them against rule tables.",
    )
    parser.add_argument("payload", nargs="?", default=None, help="Score a single raw barcode payload.")
    parser.add_argument("--file", dest="scans_file", default=None, help="Path to a file with one payload per line.")
    parser.add_argument("--config", dest="config_path", default=None, help="Path to a YAML scoring profile with rule tables.")
    parser.add_argument("--packages", dest="packages_path", default=None, help="Path to a YAML catalog of carrier package attributes.")
    parser.add_argument("--format", dest="output_format", choices=["json", "csv"], default="json", help="Output format (default: json).")
    parser.add_argument("--output", dest="output_path", default=None, help="Write results to file instead of stdout.")
    parser.add_argument("--stats", dest="show_stats", action="store_true", default=False, help="Print summary statistics to stderr.")
    parser.add_argument("--sort-by", dest="sort_by", choices=["score"], default=None, help="Sort output by risk score, highest first.")
    parser.add_argument("--min-score", type=int, default=None, help="Only output scans with score >= n.")
    parser.add_argument("--verbose", action="store_true", default=False, help="Include per-rule hits and faults in output.")
    parser.add_argument("--log-level", default="WARNING", choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Logging level (default: WARNING).")

    args = parser.parse_args(argv)

    if args.payload is None and args.scans_file is None:
        parser.print_help()
        sys.exit(1)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    _cmd_score(args)


def _cmd_score(args: argparse.Namespace) -> None:
    """Execute extraction and scoring."""
    for label, path in (("Config", args.config_path), ("Package catalog", args.packages_path)):
        if path and not Path(path).is_file():
            print(f"Error: {label} file not found: {path}", file=sys.stderr)
            sys.exit(2)

    profile = load_profile(args.config_path) if args.config_path else load_default_profile()
    catalog = load_package_catalog(args.packages_path) if args.packages_path else {}
    lookup = catalog.get

    if args.payload is not None:
        record = process_scan(RawScan(payload=args.payload, device_id="cli"), profile, lookup)
        _print_inline_result(record)
        return

    if not Path(args.scans_file).is_file():
        print(f"Error: File not found: {args.scans_file}", file=sys.stderr)
        sys.exit(2)

    with open(args.scans_file, encoding="utf-8") as f:
        scans = [RawScan(payload=line.rstrip("\n"), device_id="cli") for line in f if line.strip()]
    records = process_many(scans, profile, lookup)

    # Filter
    if args.min_score is not None:
        records = [r for r in records if r.total_score >= args.min_score]

    # Sort
    if args.sort_by == "score":
        records.sort(key=lambda r: r.total_score, reverse=True)

    if args.output_format == "json":
        output_text = _format_json(records, args.verbose)
    else:
        output_text = _format_csv(records, args.verbose)

    if args.output_path:
        with open(args.output_path, "w", encoding="utf-8") as f:
            f.write(output_text)
    else:
        print(output_text)

    if args.show_stats:
        _print_stats(summarize(records))


def _print_inline_result(record: ScanRecord) -> None:
    """Print a human-readable breakdown for a single payload."""
    print(f"Tracking: {record.tracking_number or '-'}  Status: {record.status.value}")
    print(f"ANI: {record.ani or '-'}  ADI: {record.adi or '-'}  RSI: {record.rsi or '-'}")
    if record.result is None:
        print("No recognizable fields in payload; rescan required.")
        return
    display = RiskScoreDisplay.from_result(record.result)
    print(f"Score: {display.score}  [{display.level.value}]  {display.message}")
    print()
    if record.result.hits:
        print("Triggered rules:")
        for hit in record.result.hits:
            sign = "+" if hit.points > 0 else ""
            print(f"  [{hit.index:3}] {sign}{hit.points:>4}  {hit.reason}")
    for fault in record.result.faults:
        print(f"  [{fault.index:3}] skipped {fault.pattern!r}: {fault.reason}")


def _base_record(r: ScanRecord) -> dict:
    return {
        "tracking_number": r.tracking_number,
        "ani": r.ani,
        "adi": r.adi,
        "rsi": r.rsi,
        "status": r.status.value,
        "score": r.total_score,
        "triggered_indices": r.triggered_indices,
    }


def _format_json(records: list[ScanRecord], verbose: bool) -> str:
    """Format records as JSON."""
    out = []
    for r in records:
        record = _base_record(r)
        if verbose:
            hits = r.result.hits if r.result else []
            faults = r.result.faults if r.result else []
            record["hits"] = [
                {"index": h.index, "points": h.points, "reason": h.reason} for h in hits
            ]
            record["faults"] = [
                {"index": f.index, "pattern": f.pattern, "reason": f.reason} for f in faults
            ]
        out.append(record)
    return json.dumps(out, indent=2)


def _format_csv(records: list[ScanRecord], verbose: bool) -> str:
    """Format records as CSV."""
    buf = io.StringIO()
    fieldnames = ["tracking_number", "ani", "adi", "rsi", "status", "score", "triggered_indices"]
    if verbose:
        fieldnames.append("hits")
    writer = csv.DictWriter(buf, fieldnames=fieldnames)
    writer.writeheader()
    for r in records:
        row = _base_record(r)
        row["triggered_indices"] = ";".join(r.triggered_indices)
        if verbose:
            hits = r.result.hits if r.result else []
            row["hits"] = json.dumps([{"index": h.index, "points": h.points} for h in hits])
        writer.writerow(row)
    return buf.getvalue()


def _print_stats(stats) -> None:
    """Print summary statistics to stderr."""
    print("\n=== Scan Summary ===", file=sys.stderr)
    print(f"Scans processed: {stats.total_scans:,}  (extraction misses: {stats.extraction_misses:,})", file=sys.stderr)
    print("", file=sys.stderr)
    print("Risk score:", file=sys.stderr)
    print(
        f"  Mean: {stats.mean_score}  |  Median: {stats.median_score}  "
        f"|  Min: {stats.min_score}  |  Max: {stats.max_score}",
        file=sys.stderr,
    )
    hist = stats.level_histogram
    print(
        f"  Levels:  green: {hist.get('green', 0)}  |  amber: {hist.get('amber', 0)}  "
        f"|  red: {hist.get('red', 0)}",
        file=sys.stderr,
    )
    counts = stats.index_counts
    print(
        "  Triggered:  " + "  |  ".join(f"{k}: {v}" for k, v in counts.items()),
        file=sys.stderr,
    )
