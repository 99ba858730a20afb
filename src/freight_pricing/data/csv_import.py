"""
CSV import parsing for market data, cost master and batch requests.

Expected CSV formats:

    MarketData:
      date, origin, destination, vehicleType, freightType, unitPrice
      2024-01-15, Seoul/Gangnam, Busan/Haeundae, 11t, General, 850000

    CostMaster:
      category, item, value, unit, description
      Variable, fuel_price, 1650, KRW/L, Diesel fuel price per liter

    Batch requests:
      origin, destination, vehicleType, freightType, adjustment
      Seoul/Gangnam, Busan/Haeundae, 11t, Fragile, -5

Headers are matched after lowercasing and stripping everything outside
[a-z0-9], so "Vehicle Type", "vehicle_type" and "vehicleType" are the same
column. The first column that maps to a field wins.
"""
import csv
import logging
import math
import re
from dataclasses import dataclass, field
from typing import Optional

import pandas as pd

from ..engine.models import (
    COST_CATEGORIES,
    AnalysisSummary,
    CostVariable,
    MarketObservation,
    PricingRequest,
)
from .reference import VEHICLE_EFFICIENCY

logger = logging.getLogger(__name__)

EMPTY_CSV_ERROR = "CSV file is empty or has no data rows."

MAX_ERRORS_WHEN_EMPTY = 20
MAX_ERRORS_WHEN_PARTIAL = 10

MARKET_DATA_HEADERS = {
    'date': 'date',
    'origin': 'origin',
    'departure': 'origin',
    'destination': 'destination',
    'arrival': 'destination',
    'vehicletype': 'vehicle_type',
    'vehicle': 'vehicle_type',
    'tontype': 'vehicle_type',
    'freighttype': 'freight_type',
    'freight': 'freight_type',
    'cargotype': 'freight_type',
    'unitprice': 'unit_price',
    'price': 'unit_price',
    'amount': 'unit_price',
    'fare': 'unit_price',
}
MARKET_DATA_REQUIRED = ['date', 'origin', 'destination', 'vehicle_type', 'freight_type', 'unit_price']

COST_MASTER_HEADERS = {
    'category': 'category',
    'type': 'category',
    'item': 'item',
    'name': 'item',
    'key': 'item',
    'value': 'value',
    'amount': 'value',
    'unit': 'unit',
    'description': 'description',
    'desc': 'description',
    'note': 'description',
}
COST_MASTER_REQUIRED = ['category', 'item', 'value', 'unit', 'description']

REQUEST_HEADERS = {
    'origin': 'origin',
    'departure': 'origin',
    'from': 'origin',
    'destination': 'destination',
    'arrival': 'destination',
    'to': 'destination',
    'vehicletype': 'vehicle_type',
    'vehicle': 'vehicle_type',
    'ton': 'vehicle_type',
    'tontype': 'vehicle_type',
    'freighttype': 'freight_type',
    'freight': 'freight_type',
    'cargo': 'freight_type',
    'cargotype': 'freight_type',
    'adjustment': 'adjustment',
    'adj': 'adjustment',
    'manualadjustment': 'adjustment',
    'discount': 'adjustment',
}
REQUEST_REQUIRED = ['origin', 'destination']

DEFAULT_VEHICLE_TYPE = '11t'
DEFAULT_FREIGHT_TYPE = 'General'
FREIGHT_TYPES = ('General', 'Fragile', 'Refrigerated', 'Hazardous')


@dataclass
class ParseResult:
    """Parsed records plus row-level errors."""
    data: list = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    total_rows: int = 0


@dataclass
class UploadResult:
    """Outcome of a CSV import into a store."""
    success: bool
    imported_count: int
    error_count: int
    errors: list[str] = field(default_factory=list)
    analysis: Optional[AnalysisSummary] = None

    def to_dict(self) -> dict:
        data = {
            "success": self.success,
            "importedCount": self.imported_count,
            "errorCount": self.error_count,
            "errors": list(self.errors),
        }
        if self.analysis is not None:
            data["analysis"] = self.analysis.to_dict()
        return data


def cap_errors(errors: list[str], imported_count: int) -> list[str]:
    """Bound the reported error list: 20 when nothing imported, 10 otherwise."""
    limit = MAX_ERRORS_WHEN_EMPTY if imported_count == 0 else MAX_ERRORS_WHEN_PARTIAL
    return errors[:limit]


# ── Low-level helpers ───────────────────────────────────────────

def normalize_header(header: str) -> str:
    return re.sub(r'[^a-z0-9]', '', header.lower())


def _read_lines(text: str) -> list[list[str]]:
    """Split CSV text into trimmed fields, dropping blank lines."""
    lines = [line.strip() for line in text.splitlines()]
    lines = [line for line in lines if line]
    return [[f.strip() for f in fields] for fields in csv.reader(lines)]


def _map_headers(headers: list[str], mapping: dict, required: list[str]) -> tuple[dict, list[str]]:
    """Map column index → field name; return the map and the missing required fields."""
    column_map = {}
    found = set()
    for idx, header in enumerate(headers):
        target = mapping.get(normalize_header(header))
        if target and target not in found:
            column_map[idx] = target
            found.add(target)

    missing = [f for f in required if f not in found]
    return column_map, missing


def _extract(fields: list[str], column_map: dict) -> dict:
    return {name: fields[idx] if idx < len(fields) else '' for idx, name in column_map.items()}


def parse_number(value: str) -> Optional[float]:
    """Parse a number, ignoring thousands separators. None if not a finite number."""
    try:
        number = float(value.replace(',', ''))
    except (ValueError, AttributeError):
        return None
    if not math.isfinite(number):
        return None
    return number


def parse_date(value: str):
    """Parse a date string, None if unparseable."""
    if not value:
        return None
    parsed = pd.to_datetime(value, errors='coerce')
    if pd.isna(parsed):
        return None
    return parsed.date()


def _prepare(text: str, mapping: dict, required: list[str], missing_label: str = "Found headers"):
    """Shared header handling; returns (column_map, data_rows) or a failed ParseResult."""
    lines = _read_lines(text)
    if len(lines) < 2:
        return None, ParseResult(errors=[EMPTY_CSV_ERROR])

    header_row, data_rows = lines[0], lines[1:]
    column_map, missing = _map_headers(header_row, mapping, required)
    if missing:
        return None, ParseResult(errors=[
            f"Missing required columns: {', '.join(missing)}. "
            f"{missing_label}: {', '.join(header_row)}"
        ])
    return column_map, data_rows


# ── Parsers ─────────────────────────────────────────────────────

def parse_market_data_csv(text: str) -> ParseResult:
    """Parse market data rows into MarketObservation records."""
    column_map, data_rows = _prepare(text, MARKET_DATA_HEADERS, MARKET_DATA_REQUIRED)
    if column_map is None:
        return data_rows

    result = ParseResult(total_rows=len(data_rows))
    for idx, fields in enumerate(data_rows):
        row_num = idx + 2  # 1-based, counting the header
        row = _extract(fields, column_map)

        obs_date = parse_date(row['date'])
        if obs_date is None:
            result.errors.append(f'Row {row_num}: Invalid date "{row["date"]}"')
            continue
        if not row['origin'] or not row['destination']:
            result.errors.append(f"Row {row_num}: Missing origin or destination")
            continue
        if not row['vehicle_type']:
            result.errors.append(f"Row {row_num}: Missing vehicleType")
            continue
        unit_price = parse_number(row['unit_price'])
        if unit_price is None or unit_price <= 0:
            result.errors.append(f'Row {row_num}: Invalid unitPrice "{row["unit_price"]}"')
            continue

        result.data.append(MarketObservation(
            origin=row['origin'],
            destination=row['destination'],
            vehicle_type=row['vehicle_type'],
            unit_price=unit_price,
            freight_type=row['freight_type'],
            date=obs_date,
        ))

    logger.debug("Parsed %d market rows (%d errors)", len(result.data), len(result.errors))
    return result


def parse_cost_master_csv(text: str) -> ParseResult:
    """Parse cost master rows into CostVariable records."""
    column_map, data_rows = _prepare(text, COST_MASTER_HEADERS, COST_MASTER_REQUIRED)
    if column_map is None:
        return data_rows

    result = ParseResult(total_rows=len(data_rows))
    for idx, fields in enumerate(data_rows):
        row_num = idx + 2
        row = _extract(fields, column_map)

        if row['category'] not in COST_CATEGORIES:
            result.errors.append(
                f'Row {row_num}: Invalid category "{row["category"]}". '
                f'Must be one of: {", ".join(COST_CATEGORIES)}'
            )
            continue
        if not row['item']:
            result.errors.append(f"Row {row_num}: Missing item name")
            continue
        value = parse_number(row['value'])
        if value is None:
            result.errors.append(f"Row {row_num}: Invalid value")
            continue
        if not row['unit']:
            result.errors.append(f"Row {row_num}: Missing unit")
            continue

        result.data.append(CostVariable(
            category=row['category'],
            item=row['item'],
            value=value,
            unit=row['unit'],
            description=row['description'],
        ))

    return result


def parse_pricing_requests_csv(text: str) -> ParseResult:
    """
    Parse batch pricing requests.

    Unknown vehicle types fall back to 11t and unknown freight types to
    General. The adjustment column is a percentage (-5 → -0.05).
    """
    column_map, data_rows = _prepare(text, REQUEST_HEADERS, REQUEST_REQUIRED, missing_label="Found")
    if column_map is None:
        return data_rows

    result = ParseResult(total_rows=len(data_rows))
    for idx, fields in enumerate(data_rows):
        row_num = idx + 2
        row = _extract(fields, column_map)

        if not row['origin'] or not row['destination']:
            result.errors.append(f"Row {row_num}: Missing origin or destination")
            continue

        vehicle_type = row.get('vehicle_type') or DEFAULT_VEHICLE_TYPE
        if vehicle_type not in VEHICLE_EFFICIENCY:
            vehicle_type = DEFAULT_VEHICLE_TYPE

        freight_type = row.get('freight_type') or DEFAULT_FREIGHT_TYPE
        if freight_type not in FREIGHT_TYPES:
            freight_type = DEFAULT_FREIGHT_TYPE

        adjustment = parse_number(row.get('adjustment') or '0')
        if adjustment is None:
            result.errors.append(f'Row {row_num}: Invalid adjustment "{row["adjustment"]}"')
            continue

        result.data.append(PricingRequest(
            origin=row['origin'],
            destination=row['destination'],
            vehicle_type=vehicle_type,
            freight_type=freight_type,
            manual_adjustment_rate=adjustment / 100,
        ))

    return result
