#!/usr/bin/env python
"""
Price routes from a CSV file and print the tier breakdown for each.

Usage:
    python scripts/run_batch.py routes.csv [--save]
    python scripts/run_batch.py            # built-in demo routes

CSV columns: origin, destination[, vehicleType, freightType, adjustment]
(adjustment is a percentage, e.g. -5 for a 5% discount)
"""
import argparse
import sys
from pathlib import Path

# Add src to path
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from freight_pricing.data.csv_import import parse_pricing_requests_csv
from freight_pricing.engine import BatchRunner, PricingEngine, PricingRequest

DEMO_REQUESTS = [
    PricingRequest("Seoul/Gangnam", "Busan/Haeundae", "11t", "General"),
    PricingRequest("Seoul/Gangnam", "Busan/Haeundae", "11t", "Fragile"),
    PricingRequest("Seoul/Gangseo", "Daegu/Dalseo", "5t", "General"),
    PricingRequest("Seoul/Gangnam", "Busan/Haeundae", "25t", "General", manual_adjustment_rate=-0.05),
    PricingRequest("Gangwon/Wonju", "Jeonnam/Yeosu", "11t", "Refrigerated"),
    PricingRequest("Jeju/Jeju", "Seoul/Jongno", "11t", "General"),
]


def krw(n) -> str:
    return f"{n:,.0f} KRW"


def print_result(result):
    req, tier1, tier2, tier3, summary = (
        result.request, result.tier1, result.tier2, result.tier3, result.summary
    )

    print("═" * 60)
    print(f"Route: {req.origin} → {req.destination}")
    print(f"Vehicle: {req.vehicle_type} | Freight: {req.freight_type or 'General'}")
    print("─" * 60)

    print("\n[Tier 1] Cost-Based Pricing")
    print(f"  Distance: {tier1.distance_km} km ({tier1.distance_source})")
    print(f"  Fuel Cost:       {krw(tier1.fuel_cost)}")
    print(f"  Toll Cost:       {krw(tier1.toll_cost)}")
    print(f"  Fixed Cost:      {krw(tier1.fixed_cost)}")
    print(f"  Driver Profit:   {krw(tier1.driver_profit)}")
    print(f"  ► Tier 1 Base:   {krw(tier1.subtotal)}")

    print("\n[Tier 2] Market Overlay")
    if tier2.has_market_data:
        print(f"  Market Median:   {krw(tier2.market_median)}")
        print(f"  Adjustment:      ×{tier2.adjustment_factor}")
        print(f"  Sample Size:     {tier2.sample_size}")
        print(f"  Confidence:      {tier2.confidence_score:.0%}")
        print(f"  Fallback:        {'Yes (province-level)' if tier2.is_fallback else 'No (exact route)'}")
    else:
        print("  No market data available, using Tier 1 price")
    print(f"  ► Tier 2 Adjusted: {krw(tier2.adjusted_price)}")

    print("\n[Tier 3] Strategic Finalization")
    print(f"  Company Margin:  {tier3.company_margin_rate:.0%} → {krw(tier3.company_margin)}")
    if tier3.freight_risk_rate > 0:
        print(f"  Freight Risk:    {tier3.freight_risk_rate:.0%} → {krw(tier3.freight_risk_surcharge)}")
    if tier3.manual_adjustment_rate != 0:
        print(f"  Manual Adj:      {tier3.manual_adjustment_rate:.1%} → {krw(tier3.manual_adjustment)}")
    print(f"  Before rounding: {krw(tier3.subtotal_before_rounding)}")
    print(f"  ► FINAL PRICE:   {krw(tier3.final_price)}")

    print("\n[Summary]")
    print(f"  Overall Confidence: {summary.overall_confidence:.0%}")
    print(f"  Data Sources: {', '.join(summary.data_sources)}")
    if result.warnings:
        print("  Warnings:")
        for warning in result.warnings:
            print(f"    ⚠ {warning}")
    print()


def main():
    parser = argparse.ArgumentParser(description="Run batch freight pricing")
    parser.add_argument('csv_file', nargs='?', help="CSV of routes to price")
    parser.add_argument('--save', action='store_true', help="Upsert route standards for each result")
    args = parser.parse_args()

    if args.csv_file:
        parsed = parse_pricing_requests_csv(Path(args.csv_file).read_text(encoding='utf-8'))
        for error in parsed.errors:
            print(f"  SKIP: {error}")
        requests = parsed.data
    else:
        requests = DEMO_REQUESTS

    if not requests:
        print("No routes to price.")
        sys.exit(1)

    print(f"\n🚛 FPH Pricing: {len(requests)} route(s)\n")
    batch = BatchRunner(PricingEngine()).run_batch(requests, save=args.save)

    for result in batch.results:
        print_result(result)

    for error in batch.errors:
        print(f"❌ #{error.index} {error.route}: {error.message}")

    print(f"Priced {len(batch.results)}, failed {len(batch.errors)}")


if __name__ == "__main__":
    main()
