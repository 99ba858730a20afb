"""
Cost Master Service - CRUD operations for business cost variables.
Handles reading/writing cost_master.csv and resolving CostVariables for the engine.
"""
import logging
from pathlib import Path
from typing import Optional

from ..data.csv_import import UploadResult, cap_errors, parse_cost_master_csv, parse_number
from ..data.reference import COST_DEFAULT_META, ReferenceTables, default_reference_tables
from ..engine.models import COST_CATEGORIES, CostVariable, CostVariables
from .base import StoreError, read_rows, write_rows

logger = logging.getLogger(__name__)


def _to_csv_row(variable: CostVariable) -> dict:
    return {
        'category': variable.category,
        'item': variable.item,
        'value': repr(float(variable.value)),
        'unit': variable.unit,
        'description': variable.description or '',
    }


def _from_csv_row(row: dict) -> CostVariable:
    value = parse_number(row.get('value') or '')
    if value is None:
        raise StoreError(f"Corrupt value for cost item '{row.get('item')}': {row.get('value')!r}")
    return CostVariable(
        category=row.get('category', ''),
        item=row.get('item', ''),
        value=value,
        unit=row.get('unit', ''),
        description=row.get('description') or '',
    )


class CostMasterService:
    """Service for managing cost master variables."""

    CSV_COLUMNS = ['category', 'item', 'value', 'unit', 'description']

    def __init__(self, csv_path: Path, reference: Optional[ReferenceTables] = None):
        self.csv_path = Path(csv_path)
        self.reference = reference or default_reference_tables()

    def list_variables(self) -> list[CostVariable]:
        """List all cost variables, ordered by category then item."""
        variables = [_from_csv_row(row) for row in read_rows(self.csv_path) if row.get('item')]
        return sorted(variables, key=lambda v: (v.category, v.item))

    def get_variable(self, item: str) -> Optional[CostVariable]:
        for variable in self._load():
            if variable.item == item:
                return variable
        return None

    def count(self) -> int:
        return len(self._load())

    def create_variable(self, variable: CostVariable) -> CostVariable:
        """Create a new cost variable."""
        _validate(variable)
        variables = self._load()
        if any(v.item == variable.item for v in variables):
            raise ValueError(f"Cost item '{variable.item}' already exists")

        variables.append(variable)
        self._write(variables)
        return variable

    def update_variable(self, item: str, updates: dict) -> CostVariable:
        """Update an existing cost variable."""
        variables = self._load()
        for i, variable in enumerate(variables):
            if variable.item == item:
                for key, value in updates.items():
                    if key != 'item' and hasattr(variable, key) and value is not None:
                        setattr(variable, key, value)
                _validate(variable)
                variables[i] = variable
                self._write(variables)
                return variable

        raise ValueError(f"Cost item '{item}' not found")

    def delete_variable(self, item: str) -> bool:
        """Delete a cost variable."""
        variables = self._load()
        remaining = [v for v in variables if v.item != item]
        if len(remaining) == len(variables):
            raise ValueError(f"Cost item '{item}' not found")

        self._write(remaining)
        return True

    def upsert_variables(self, incoming: list[CostVariable]) -> int:
        """Insert or replace variables by item; returns the number written."""
        variables = {v.item: v for v in self._load()}
        for variable in incoming:
            _validate(variable)
            variables[variable.item] = variable

        self._write(list(variables.values()))
        return len(incoming)

    def seed_defaults(self, overwrite: bool = False) -> int:
        """Write the compiled-in defaults; existing items are kept unless overwrite."""
        existing = {v.item for v in self._load()}
        defaults = []
        for item, value in self.reference.cost_defaults.items():
            if item in existing and not overwrite:
                continue
            category, unit, description = COST_DEFAULT_META[item]
            defaults.append(CostVariable(category, item, value, unit, description))

        if defaults:
            self.upsert_variables(defaults)
        logger.info("Seeded %d cost variables", len(defaults))
        return len(defaults)

    def get_cost_variables(self) -> CostVariables:
        """Resolve the engine's cost variables, defaults filling any gaps."""
        values = {v.item: v.value for v in self._load()}
        missing = [k for k in self.reference.cost_defaults if k not in values]
        if missing:
            logger.debug("Cost items missing from store, using defaults: %s", ", ".join(missing))
        return CostVariables.from_mapping(values, self.reference.cost_defaults)

    def import_csv(self, text: str) -> UploadResult:
        """Upsert cost variables from CSV text."""
        parsed = parse_cost_master_csv(text)
        if parsed.errors and not parsed.data:
            return UploadResult(
                success=False,
                imported_count=0,
                error_count=len(parsed.errors),
                errors=cap_errors(parsed.errors, 0),
            )

        try:
            count = self.upsert_variables(parsed.data)
        except (StoreError, ValueError) as e:
            logger.warning("Cost master import failed: %s", e)
            return UploadResult(
                success=False,
                imported_count=0,
                error_count=1,
                errors=[f"Database error: {e}"],
            )

        logger.info("Imported %d cost variables (%d row errors)", count, len(parsed.errors))
        return UploadResult(
            success=True,
            imported_count=count,
            error_count=len(parsed.errors),
            errors=cap_errors(parsed.errors, count),
        )

    def _load(self) -> list[CostVariable]:
        return [_from_csv_row(row) for row in read_rows(self.csv_path) if row.get('item')]

    def _write(self, variables: list[CostVariable]):
        write_rows(self.csv_path, self.CSV_COLUMNS, [_to_csv_row(v) for v in variables])


def _validate(variable: CostVariable):
    if variable.category not in COST_CATEGORIES:
        raise ValueError(
            f"Invalid category '{variable.category}'. Must be one of: {', '.join(COST_CATEGORIES)}"
        )
    if not variable.item:
        raise ValueError("Item is required")
    if not variable.unit:
        raise ValueError("Unit is required")
    if variable.item == 'fuel_efficiency' and not variable.value > 0:
        raise ValueError(f"fuel_efficiency must be positive, got {variable.value}")
