"""
Synthetic ticket-purchasing request traced across a chain of service calls.

Each function stands in for a service: it opens a span on the context it is
given, sleeps to simulate work and passes its own context to the services it
calls. DatabaseArea fans out to RedisArea and ThirdPartyArea as siblings;
ThirdPartyArea calls PaymentArea.

Run with: python -m span_propagation.demo
"""

from typing import Optional
import logging
import random
import time

from .config import TracerConfig
from .context import PropagationContext, with_span
from .models import Span
from .tracer import Tracer

logger = logging.getLogger(__name__)

ROOT_OPERATION = "NewMainRequest"


def _simulate_work(seconds: float) -> None:
    if seconds > 0:
        time.sleep(seconds)


def database(tracer: Tracer, ctx: PropagationContext, work_scale: float = 1.0) -> None:
    """Simulate the database service."""
    with tracer.scoped_span("DatabaseArea", ctx, tags={"component": "database"}) as (span, db_ctx):
        span.set_tag("db.type", "sql")
        _simulate_work(2 * work_scale)

        # Both calls get the database context, so they are siblings.
        redis(tracer, db_ctx, work_scale)
        thirdparty(tracer, db_ctx, work_scale)


def redis(tracer: Tracer, ctx: PropagationContext, work_scale: float = 1.0) -> None:
    """Simulate a cache lookup."""
    with tracer.scoped_span("RedisArea", ctx, tags={"component": "redis"}) as (span, _):
        _simulate_work(0.5 * work_scale)
        span.set_tag("cache.hit", random.random() < 0.5)


def thirdparty(tracer: Tracer, ctx: PropagationContext, work_scale: float = 1.0) -> None:
    """Simulate a call to an external provider that charges the ticket."""
    with tracer.scoped_span("ThirdPartyArea", ctx, tags={"component": "thirdparty"}) as (span, tp_ctx):
        _simulate_work(1 * work_scale)
        payment_service(tracer, tp_ctx, work_scale)


def payment_service(tracer: Tracer, ctx: PropagationContext, work_scale: float = 1.0) -> None:
    """Simulate the payment service."""
    with tracer.scoped_span("PaymentArea", ctx, tags={"component": "payment"}) as (span, _):
        logger.info("Processing payment request...")
        request_id = ctx.baggage_item("request.id")
        if request_id is not None:
            span.set_tag("request.id", request_id)
        _simulate_work(random.randint(1, 3) * work_scale)
        span.set_tag("payment.status", "approved")


def run_request(tracer: Tracer, work_scale: float = 1.0, request_id: Optional[str] = None) -> Span:
    """
    Trace one ticket purchase from the root span down the service chain.

    Args:
        tracer: Tracer recording the spans
        work_scale: Multiplier for the simulated work; 0 disables sleeping
        request_id: Optional request identifier carried as baggage and tag

    Returns:
        The finished root span
    """
    root = tracer.start_span(ROOT_OPERATION)
    ctx = with_span(None, root)
    if request_id is not None:
        root.set_tag("request.id", request_id)
        ctx = ctx.with_baggage_item("request.id", request_id)

    try:
        database(tracer, ctx, work_scale)
    except Exception as e:
        root.mark_error(e)
        raise
    finally:
        root.finish()
    return root


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    config = TracerConfig.from_env()
    tracer = config.new_tracer()
    try:
        root = run_request(tracer, work_scale=config.work_scale)
        logger.info(f"Request completed in {root.duration_ms:.0f}ms (trace {root.trace_id})")
    finally:
        tracer.close()


if __name__ == "__main__":
    main()
