"""
Run the traced ticket-purchasing request and print the collected trace as JSON.

Spans are collected with an InMemoryReporter, assembled into a Trace and
dumped with pydantic. Configuration comes from TRACER_* environment
variables (or a .env file); --work-scale overrides the simulated work.
"""

import argparse
import json
import logging

from span_propagation import InMemoryReporter, Trace, TracerConfig
from span_propagation.demo import run_request

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def print_tree(trace: Trace, span_id: str, depth: int = 0):
    """Print a span and its descendants as an indented tree."""
    span = trace.get_span(span_id)
    print(f"{'  ' * depth}{span.name} ({span.duration_ms:.1f}ms) {span.span_id}")
    for child in trace.children_of(span_id):
        print_tree(trace, child.span_id, depth + 1)


def main():
    parser = argparse.ArgumentParser(
        description='Trace one ticket purchase and export it as JSON'
    )
    parser.add_argument(
        '--work-scale',
        type=float,
        default=None,
        help='Multiplier for simulated work (0 disables sleeping)'
    )
    parser.add_argument(
        '--request-id',
        default='ticket-0001',
        help='Request identifier carried as baggage'
    )
    parser.add_argument(
        '--output',
        help='Write the JSON to this file instead of stdout'
    )
    parser.add_argument(
        '--debug',
        action='store_true',
        help='Enable debug logging'
    )
    args = parser.parse_args()

    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    config = TracerConfig.from_env()
    work_scale = config.work_scale if args.work_scale is None else args.work_scale

    collector = InMemoryReporter()
    # Report synchronously so the trace is complete once the request returns
    config.queue_size = 0
    tracer = config.new_tracer(reporter=collector)
    try:
        root = run_request(tracer, work_scale=work_scale, request_id=args.request_id)
    finally:
        tracer.close()

    trace = collector.get_trace(root.trace_id)
    logger.info(f"Collected {trace.span_count} spans in trace {trace.trace_id}")
    print_tree(trace, root.span_id)

    payload = json.dumps(trace.model_dump(mode="json"), indent=2)
    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(payload)
        logger.info(f"Trace written to {args.output}")
    else:
        print(payload)


if __name__ == "__main__":
    main()
