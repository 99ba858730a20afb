#!/usr/bin/env python
"""
Seed pipeline - writes default cost variables and sample market data.

Usage:
    python scripts/seed_data.py [--keep-market-data] [--seed N]
"""
import argparse
import sys
from pathlib import Path

# Add src to path
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from freight_pricing.config.settings import get_settings
from freight_pricing.data.sample_data import generate_sample_market_data
from freight_pricing.services.cost_master_service import CostMasterService
from freight_pricing.services.market_data_service import MarketDataService


def main():
    parser = argparse.ArgumentParser(description="Seed the freight pricing data stores")
    parser.add_argument('--keep-market-data', action='store_true',
                        help="Append to existing market data instead of replacing it")
    parser.add_argument('--seed', type=int, default=None, help="Random seed for sample data")
    args = parser.parse_args()

    settings = get_settings()

    print("=" * 60)
    print("FREIGHT PRICING SEED")
    print("=" * 60)
    print(f"Data directory: {settings.data_dir}")
    print()

    print("[1/2] Seeding cost master defaults...")
    cost_master = CostMasterService(settings.cost_master_csv)
    seeded = cost_master.seed_defaults(overwrite=True)
    print(f"  ✓ {seeded} cost variables seeded")

    print("[2/2] Seeding sample market data...")
    market_data = MarketDataService(settings.market_data_csv, settings.policy)
    if not args.keep_market_data:
        market_data.clear()
    records = generate_sample_market_data(seed=args.seed)
    market_data.append(records)
    print(f"  ✓ {len(records)} market data records seeded")

    summary = market_data.analyze()
    print()
    print("Analysis:")
    print(f"  Routes: {summary.total_routes} "
          f"({summary.exact_routes} exact, {summary.fallback_routes} fallback)")
    print(f"  Avg confidence: {summary.avg_confidence:.0%}")
    print()
    print("Done.")


if __name__ == "__main__":
    main()
