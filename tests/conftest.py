import os
import sys

import pytest

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from freight_pricing.config.settings import Settings
from freight_pricing.data.reference import COST_DEFAULTS
from freight_pricing.engine.models import CostVariables, MarketObservation


class StaticCosts:
    """Cost provider returning fixed variables and counting fetches."""

    def __init__(self, values=None):
        self.variables = CostVariables.from_mapping(values or {}, COST_DEFAULTS)
        self.calls = 0

    def get_cost_variables(self):
        self.calls += 1
        return self.variables


class StaticMarket:
    """Observation source over an in-memory list, counting fetches."""

    def __init__(self, observations=None):
        self.observations = list(observations or [])
        self.calls = 0

    def list_observations(self, vehicle_type=None):
        self.calls += 1
        if vehicle_type is None:
            return list(self.observations)
        return [o for o in self.observations if o.vehicle_type == vehicle_type]


def observations_for(origin, destination, vehicle_type, prices):
    return [MarketObservation(origin, destination, vehicle_type, float(p)) for p in prices]


@pytest.fixture(scope="function")
def settings(tmp_path):
    return Settings.load(project_root=tmp_path, data_dir=tmp_path / 'data')
