#!/usr/bin/env python3
"""Sample batch harness for manual end-to-end validation.

Runs a batch of criteria through the matcher and prints a summary table,
without pytest. Two modes:

1. Fixture mode (default): suggestions come from tests/fixtures/interest_suggestions.yaml
2. Real endpoint mode: calls the Graph API (requires META_ACCESS_TOKEN and network)

Usage:
    # Fixture mode (no network required)
    python scripts/run_sample_batch.py Nike Coca-Cola Zara --country BE

    # Real endpoint mode
    SAMPLE_BATCH_REAL_RUN=1 python scripts/run_sample_batch.py Nike --country FR
"""

import argparse
import os
import sys
from datetime import datetime
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

from targeting.adapters.meta import MetaInterestAdapter
from targeting.config.loader import load_config
from targeting.criteria import get_country_code
from targeting.logging.config import configure_logging
from targeting.matching.engine import InterestMatcher
from targeting.pipeline import BatchProcessor, ProgressBroadcaster, ProgressStatus
from tests.helpers.static_adapter import FIXTURE_PATH, StaticInterestAdapter


def print_header(title: str):
    """Print a formatted section header."""
    width = 80
    print("\n" + "=" * width)
    print(f" {title}")
    print("=" * width + "\n")


def print_summary_table(items):
    print_header("Batch Summary")

    label_width = max([len("Criterion")] + [len(item.original) for item in items])
    print(f"{'Criterion':<{label_width}}  {'Matches':>7}  {'Best match':<30}  {'Score':>5}  {'Audience':>12}")
    print("-" * (label_width + 64))

    for item in items:
        if item.error:
            print(f"{item.original:<{label_width}}  {'-':>7}  ERROR: {item.error[:60]}")
            continue
        best = item.best_match
        if best is None:
            print(f"{item.original:<{label_width}}  {0:>7}  {'(none)':<30}")
            continue
        audience = "unknown" if best.audience_size is None else f"{best.audience_size:,}"
        print(
            f"{item.original:<{label_width}}  {item.count:>7}  {best.name[:30]:<30}  "
            f"{best.similarity_score:>5.2f}  {audience:>12}"
        )

    failed = sum(1 for item in items if item.error)
    zero = sum(1 for item in items for m in item.matches if m.audience_size == 0)
    print(f"\nCriteria: {len(items)}   Failed: {failed}   Zero-audience matches: {zero}")


def print_progress(event):
    if event.status == ProgressStatus.PROCESSING:
        print(f"  [{event.current + 1}/{event.total}] {event.current_item}")
    elif event.status == ProgressStatus.ERROR:
        print(f"      ✗ {event.error}")


def main():
    """Main entry point for the sample batch harness."""
    parser = argparse.ArgumentParser(
        description="Run a sample batch for end-to-end validation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("criteria", nargs="+", help="Criteria to look up")
    parser.add_argument("--country", default="BE", help="Country code or name (default: BE)")
    parser.add_argument("--threshold", type=float, default=None, help="Minimum similarity score")
    parser.add_argument("--config", type=Path, default=None, help="Path to configuration file")
    parser.add_argument(
        "--fixtures",
        type=Path,
        default=FIXTURE_PATH,
        help="Suggestions fixture used in fixture mode",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (default: WARNING)",
    )
    args = parser.parse_args()

    load_dotenv()
    use_real_endpoints = os.environ.get("SAMPLE_BATCH_REAL_RUN", "0") == "1"

    print_header("Meta Targeting Assistant - Sample Batch Harness")

    if not use_real_endpoints:
        # The interest token is not used in fixture mode
        os.environ.setdefault("META_ACCESS_TOKEN", "fixture-mode")

    try:
        app_config, env_config = load_config(args.config)
        configure_logging(level=args.log_level, format_type=app_config.logging.format, environment="validation")

        country_code = get_country_code(args.country)
        threshold = args.threshold if args.threshold is not None else app_config.matching.similarity_threshold

        if use_real_endpoints:
            print("⚠️  REAL ENDPOINT MODE: requests go to the Graph API")
            adapter = MetaInterestAdapter.from_config(
                env_config.meta_access_token, app_config.meta, app_config.advanced
            )
        else:
            if not args.fixtures.exists():
                print(f"❌ Error: Fixture file not found: {args.fixtures}")
                return 1
            print(f"Fixture mode: {args.fixtures}")
            adapter = StaticInterestAdapter(args.fixtures)

        print(f"Country: {country_code}   Threshold: {threshold}")
        print(f"Started at: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}\n")

        broadcaster = ProgressBroadcaster()
        broadcaster.subscribe(print_progress)
        processor = BatchProcessor(InterestMatcher.from_config(app_config.matching))
        try:
            items = processor.run_batch(
                args.criteria, country_code, threshold, adapter.fetch_candidates, broadcaster
            )
        finally:
            adapter.close()

        print_summary_table(items)
        return 1 if any(item.error for item in items) else 0

    except Exception as e:
        print(f"\n❌ Fatal error: {e}")
        import traceback
        traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
