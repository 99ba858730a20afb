"""
Market Data Service - append-only store of observed market prices.
Backed by market_data.csv, read and written through pandas.
"""
import logging
from pathlib import Path
from typing import Iterable, Optional

import pandas as pd

from ..config.settings import PricingPolicy
from ..data.csv_import import UploadResult, cap_errors, parse_market_data_csv
from ..engine.analysis import MarketDataAnalyzer, summarize_analysis
from ..engine.models import AnalysisSummary, MarketObservation
from .base import StoreError

logger = logging.getLogger(__name__)


class MarketDataService:
    """Service for storing and querying market price observations."""

    CSV_COLUMNS = ['date', 'origin', 'destination', 'vehicle_type', 'freight_type', 'unit_price']
    ROUTE_KEY = ['origin', 'destination', 'vehicle_type']

    def __init__(self, csv_path: Path, policy: Optional[PricingPolicy] = None):
        self.csv_path = Path(csv_path)
        self.analyzer = MarketDataAnalyzer(policy)

    def _load_frame(self) -> pd.DataFrame:
        if not self.csv_path.exists():
            return pd.DataFrame(columns=self.CSV_COLUMNS)
        try:
            df = pd.read_csv(self.csv_path, dtype=str, keep_default_na=False)
        except pd.errors.EmptyDataError:
            return pd.DataFrame(columns=self.CSV_COLUMNS)
        except (OSError, pd.errors.ParserError) as e:
            logger.error("Failed to read %s: %s", self.csv_path, e)
            raise StoreError(f"Failed to read {self.csv_path.name}: {e}") from e

        missing = [c for c in self.CSV_COLUMNS if c not in df.columns]
        if missing:
            raise StoreError(f"{self.csv_path.name} is missing columns: {', '.join(missing)}")

        df['unit_price'] = pd.to_numeric(df['unit_price'], errors='coerce')
        return df.dropna(subset=['unit_price'])

    def _write_frame(self, df: pd.DataFrame):
        try:
            self.csv_path.parent.mkdir(parents=True, exist_ok=True)
            df.to_csv(self.csv_path, index=False, columns=self.CSV_COLUMNS)
        except OSError as e:
            logger.error("Failed to write %s: %s", self.csv_path, e)
            raise StoreError(f"Failed to write {self.csv_path.name}: {e}") from e

    def list_observations(self, vehicle_type: Optional[str] = None) -> list[MarketObservation]:
        """All stored observations in insertion order, optionally for one vehicle type."""
        df = self._load_frame()
        if vehicle_type is not None:
            df = df[df['vehicle_type'] == vehicle_type]

        dates = pd.to_datetime(df['date'], errors='coerce')
        observations = []
        for row, parsed_date in zip(df.itertuples(index=False), dates):
            observations.append(MarketObservation(
                origin=row.origin,
                destination=row.destination,
                vehicle_type=row.vehicle_type,
                unit_price=float(row.unit_price),
                freight_type=row.freight_type,
                date=None if pd.isna(parsed_date) else parsed_date.date(),
            ))
        return observations

    def append(self, observations: Iterable[MarketObservation]) -> int:
        """Append observations; returns the number added."""
        new_rows = pd.DataFrame(
            [
                {
                    'date': o.date.isoformat() if o.date else '',
                    'origin': o.origin,
                    'destination': o.destination,
                    'vehicle_type': o.vehicle_type,
                    'freight_type': o.freight_type,
                    'unit_price': o.unit_price,
                }
                for o in observations
            ],
            columns=self.CSV_COLUMNS,
        )
        if new_rows.empty:
            return 0

        existing = self._load_frame()
        combined = new_rows if existing.empty else pd.concat([existing, new_rows], ignore_index=True)
        self._write_frame(combined)
        return len(new_rows)

    def clear(self) -> int:
        """Delete all observations; returns the number deleted."""
        deleted = self.count()
        self._write_frame(pd.DataFrame(columns=self.CSV_COLUMNS))
        logger.info("Cleared %d market observations", deleted)
        return deleted

    def count(self) -> int:
        return len(self._load_frame())

    def unique_routes(self) -> int:
        """Number of distinct (origin, destination, vehicle type) keys."""
        df = self._load_frame()
        if df.empty:
            return 0
        return len(df.drop_duplicates(subset=self.ROUTE_KEY))

    def analyze(self) -> AnalysisSummary:
        """Analysis summary over everything stored."""
        return summarize_analysis(self.analyzer.analyze(self.list_observations()))

    def get_stats(self) -> dict:
        """Store statistics for the data page."""
        df = self._load_frame()
        stats = {
            'total': len(df),
            'unique_routes': 0 if df.empty else len(df.drop_duplicates(subset=self.ROUTE_KEY)),
            'by_vehicle_type': {},
            'price_min': None,
            'price_median': None,
            'price_max': None,
        }
        if not df.empty:
            stats['by_vehicle_type'] = {
                str(k): int(v) for k, v in df.groupby('vehicle_type').size().items()
            }
            stats['price_min'] = float(df['unit_price'].min())
            stats['price_median'] = float(df['unit_price'].median())
            stats['price_max'] = float(df['unit_price'].max())
        return stats

    def import_csv(self, text: str) -> UploadResult:
        """Append observations from CSV text and re-analyze all stored data."""
        parsed = parse_market_data_csv(text)
        if parsed.errors and not parsed.data:
            return UploadResult(
                success=False,
                imported_count=0,
                error_count=len(parsed.errors),
                errors=cap_errors(parsed.errors, 0),
            )

        try:
            count = self.append(parsed.data)
            analysis = self.analyze()
        except StoreError as e:
            logger.warning("Market data import failed: %s", e)
            return UploadResult(
                success=False,
                imported_count=0,
                error_count=1,
                errors=[f"Database error: {e}"],
            )

        logger.info(
            "Imported %d market observations (%d row errors), %d routes analyzed",
            count, len(parsed.errors), analysis.total_routes,
        )
        return UploadResult(
            success=True,
            imported_count=count,
            error_count=len(parsed.errors),
            errors=cap_errors(parsed.errors, count),
            analysis=analysis,
        )
