"""
Centralized settings, path configuration and pricing policy constants.
"""
import os
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional


DATA_DIR_ENV = "FREIGHT_PRICING_DATA_DIR"


def get_project_root() -> Path:
    """Get the project root directory (where pyproject.toml lives)."""
    current = Path(__file__).resolve()
    for parent in current.parents:
        if (parent / 'pyproject.toml').exists():
            return parent
    # Fallback to 4 levels up from this file
    return Path(__file__).resolve().parent.parent.parent.parent


@dataclass(frozen=True)
class PricingPolicy:
    """
    Business constants for confidence blending and rounding.

    The weights have no derivation beyond the business rules they encode.
    They are kept together here so they can be externalized later without
    touching the engine.
    """

    # Market analysis
    min_sample_size: int = 5
    iqr_multiplier: float = 1.5
    size_saturation: int = 30
    size_weight: float = 0.6
    consistency_weight: float = 0.4
    fallback_penalty: float = 0.7

    # Overall confidence
    distance_weight: float = 0.3
    market_weight: float = 0.7
    lookup_distance_confidence: float = 1.0
    estimated_distance_confidence: float = 0.6
    no_market_confidence: float = 0.3

    # Final price rounding (always up)
    rounding_unit: int = 1000


@dataclass
class Settings:
    """Application settings with sensible defaults."""

    # Project paths
    project_root: Path
    data_dir: Path

    # Store files
    cost_master_csv: Path
    market_data_csv: Path
    route_standard_csv: Path

    policy: PricingPolicy = field(default_factory=PricingPolicy)

    @classmethod
    def load(cls, project_root: Optional[Path] = None, data_dir: Optional[Path] = None) -> 'Settings':
        """Load settings from the project structure and environment."""
        root = project_root or get_project_root()

        env_dir = os.environ.get(DATA_DIR_ENV, "").strip()
        if data_dir is None:
            data_dir = Path(env_dir).expanduser().resolve() if env_dir else root / 'data'
        data_dir = Path(data_dir)

        return cls(
            project_root=root,
            data_dir=data_dir,
            cost_master_csv=data_dir / 'cost_master.csv',
            market_data_csv=data_dir / 'market_data.csv',
            route_standard_csv=data_dir / 'route_standard.csv',
        )


# Default settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings
