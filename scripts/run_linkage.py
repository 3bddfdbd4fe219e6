#!/usr/bin/env python3
"""Link app usage to beeps and write the enriched beep table.

Usage:
    # Defaults from configs/linkage.yaml, data under data/
    python scripts/run_linkage.py --output outputs/beeps_with_usage.csv

    # Two-hour window, weeks starting on Sunday, 4 workers
    python scripts/run_linkage.py --window 2h --week-start sunday --n-jobs 4

    # Custom input locations
    python scripts/run_linkage.py --beep-dir raw/ema --usage-dir raw/apps \\
        --categories raw/app_categories.csv
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from src.data.loader import DataLoader
from src.sense.pipeline import link_usage_to_beeps
from src.utils.config import DEFAULT_CONFIG_PATH, LinkageConfig
from src.utils.errors import LinkageError


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Attach per-category app usage in the window before each beep"
    )
    parser.add_argument(
        "--data-dir", type=str, default=None,
        help="Data directory (default: data/)"
    )
    parser.add_argument(
        "--beep-dir", type=str, default=None,
        help="Directory with daily_beeps.csv and sleep_beeps.csv (default: <data-dir>/beeps)"
    )
    parser.add_argument(
        "--usage-dir", type=str, default=None,
        help="Directory with per-participant usage logs (default: <data-dir>/usage)"
    )
    parser.add_argument(
        "--categories", type=str, default=None,
        help="App category CSV (default: <data-dir>/app_categories.csv)"
    )
    parser.add_argument(
        "--config", type=str, default=str(DEFAULT_CONFIG_PATH),
        help="YAML config file (default: configs/linkage.yaml)"
    )
    parser.add_argument(
        "--window", type=str, default=None,
        help="Lookback window, e.g. 60, 90min, 2h (overrides config)"
    )
    parser.add_argument(
        "--week-start", type=str, default=None,
        help="Weekday counted as day 1, name or ISO number (overrides config)"
    )
    parser.add_argument(
        "--n-jobs", type=int, default=None,
        help="Parallel workers over participants (overrides config)"
    )
    parser.add_argument(
        "--output", type=str, default=None,
        help="Output CSV (default: outputs/beeps_with_usage.csv)"
    )
    parser.add_argument(
        "--verbose", action="store_true",
        help="Enable verbose logging"
    )
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)

    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    log = logging.getLogger("run_linkage")

    output = Path(args.output) if args.output else PROJECT_ROOT / "outputs" / "beeps_with_usage.csv"

    try:
        # Config errors surface here, before any data is read
        config = LinkageConfig.from_yaml(
            Path(args.config),
            window=args.window,
            week_start=args.week_start,
            n_jobs=args.n_jobs,
        )
        log.info(f"Window: {config.window} | week start: {config.week_start} | n_jobs: {config.n_jobs}")

        loader = DataLoader(
            data_dir=Path(args.data_dir) if args.data_dir else PROJECT_ROOT / "data",
            beep_dir=Path(args.beep_dir) if args.beep_dir else None,
            usage_dir=Path(args.usage_dir) if args.usage_dir else None,
            categories_path=Path(args.categories) if args.categories else None,
        )
        beeps = loader.load_beeps()
        store = loader.load_usage()
        category_map = loader.load_category_map(unknown=config.unknown_category)

        result = link_usage_to_beeps(beeps, store, category_map, config, progress=True)
    except (LinkageError, FileNotFoundError) as exc:
        log.error(f"Linkage failed: {exc}")
        return 1

    output.parent.mkdir(parents=True, exist_ok=True)
    result.to_csv(output, index=False)
    print(f"\nWrote {len(result)} beeps x {len(result.columns)} columns to {output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
