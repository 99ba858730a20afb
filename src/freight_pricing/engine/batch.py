"""
Batch Runner - prices many routes in one call.

Cost variables and market observations are fetched once per batch; each
request is then priced in isolation so one failure never aborts the rest.
If the shared fetch itself fails, every request is reported as failed.
"""
import logging
from typing import Optional, Sequence

from .models import BatchError, BatchResult, PricingRequest
from .pricing_engine import PricingEngine

logger = logging.getLogger(__name__)


class BatchRunner:
    """Runs a list of pricing requests through one engine."""

    def __init__(self, engine: Optional[PricingEngine] = None):
        self.engine = engine or PricingEngine()

    def run_batch(self, requests: Sequence[PricingRequest], save: bool = False) -> BatchResult:
        """
        Price every request, collecting per-request errors.

        Args:
            requests: Requests to price, in order
            save: Also upsert a RouteStandard for each success

        Returns:
            BatchResult with successes in input order and an error per failure
        """
        batch = BatchResult()
        if not requests:
            return batch

        try:
            costs = self.engine.load_cost_variables()
            observations = self.engine.load_observations()
        except Exception as e:
            logger.warning("Batch inputs could not be loaded: %s", e)
            message = str(e) or "Failed to load pricing inputs"
            batch.errors.extend(
                BatchError(index=index, route=_route_label(request), message=message)
                for index, request in enumerate(requests)
            )
            return batch

        for index, request in enumerate(requests):
            try:
                if not isinstance(request, PricingRequest):
                    raise ValueError(f"Malformed request: {type(request).__name__}")
                if save:
                    outcome = self.engine.calculate_and_save(request, costs=costs, observations=observations)
                    result = outcome.result
                    if not outcome.saved:
                        result.add_warning(outcome.error)
                else:
                    result = self.engine.calculate(request, costs=costs, observations=observations)
            except Exception as e:
                logger.warning("Batch request %d (%s) failed: %s", index, _route_label(request), e)
                batch.errors.append(BatchError(
                    index=index,
                    route=_route_label(request),
                    message=str(e) or "Calculation failed",
                ))
                continue

            batch.results.append(result)

        logger.info(
            "Batch complete: %d priced, %d failed", len(batch.results), len(batch.errors)
        )
        return batch


def _route_label(request) -> str:
    """Route label that never raises, for error reporting."""
    origin = getattr(request, 'origin', None) or '?'
    destination = getattr(request, 'destination', None) or '?'
    return f"{origin} → {destination}"


def run_batch(
    requests: Sequence[PricingRequest],
    engine: Optional[PricingEngine] = None,
    save: bool = False,
) -> BatchResult:
    """Convenience wrapper around BatchRunner.run_batch."""
    return BatchRunner(engine).run_batch(requests, save=save)
