"""
Route Standard Service - persisted standard price per route key.
Upsert is last-write-wins on (origin, destination, vehicle_type).
"""
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from ..engine.models import PricingResult, RouteStandard, round_int
from .base import StoreError, read_rows, write_rows


class RouteStandardService:
    """Service for reading and upserting route standards."""

    CSV_COLUMNS = [
        'origin', 'destination', 'vehicle_type', 'base_price',
        'market_adjusted_price', 'final_price', 'confidence_score', 'updated_at',
    ]

    def __init__(self, csv_path: Path):
        self.csv_path = Path(csv_path)

    def list_standards(self) -> list[RouteStandard]:
        standards = []
        for row in read_rows(self.csv_path):
            if not row.get('origin'):
                continue
            try:
                standards.append(RouteStandard(
                    origin=row['origin'],
                    destination=row['destination'],
                    vehicle_type=row['vehicle_type'],
                    base_price=round_int(float(row['base_price'])),
                    market_adjusted_price=round_int(float(row['market_adjusted_price'])),
                    final_price=round_int(float(row['final_price'])),
                    confidence_score=float(row['confidence_score']),
                    updated_at=row.get('updated_at') or None,
                ))
            except (KeyError, TypeError, ValueError) as e:
                raise StoreError(f"Corrupt route standard row {row!r}: {e}") from e
        return standards

    def get(self, origin: str, destination: str, vehicle_type: str) -> Optional[RouteStandard]:
        key = (origin, destination, vehicle_type)
        for standard in self.list_standards():
            if standard.key == key:
                return standard
        return None

    def count(self) -> int:
        return len(self.list_standards())

    def upsert(self, standard: Union[RouteStandard, PricingResult]) -> RouteStandard:
        """Insert or replace the standard for its route key."""
        if isinstance(standard, PricingResult):
            standard = RouteStandard.from_result(standard)
        standard.updated_at = datetime.now().isoformat(timespec='seconds')

        standards = [s for s in self.list_standards() if s.key != standard.key]
        standards.append(standard)
        write_rows(self.csv_path, self.CSV_COLUMNS, [_to_csv_row(s) for s in standards])
        return standard


def _to_csv_row(standard: RouteStandard) -> dict:
    return {
        'origin': standard.origin,
        'destination': standard.destination,
        'vehicle_type': standard.vehicle_type,
        'base_price': standard.base_price,
        'market_adjusted_price': standard.market_adjusted_price,
        'final_price': standard.final_price,
        'confidence_score': standard.confidence_score,
        'updated_at': standard.updated_at or '',
    }
