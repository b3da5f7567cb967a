"""
Unit tests for reporters and samplers.
"""

import logging
import threading
import pytest

from span_propagation import Tracer
from span_propagation.reporters import (
    ConstSampler,
    InMemoryReporter,
    LoggingReporter,
    NullReporter,
    QueuedReporter,
    Reporter,
    format_span_context,
)


class BlockingReporter(Reporter):
    """Reporter that holds every delivery until released."""

    def __init__(self):
        self.release = threading.Event()
        self.started = threading.Event()
        self.spans = []
        self.closed = False

    def report(self, span):
        self.started.set()
        self.release.wait(5)
        self.spans.append(span)

    def close(self):
        self.closed = True


class FlakyReporter(InMemoryReporter):
    """In-memory reporter that fails on spans named 'boom'."""

    def report(self, span):
        if span.name == "boom":
            raise RuntimeError("export failed")
        super().report(span)


@pytest.fixture
def null_tracer():
    return Tracer("checkout", reporter=NullReporter())


class TestLoggingReporter:
    """Test cases for LoggingReporter."""

    def test_logs_finished_span(self, null_tracer, caplog):
        """Test that each span is logged with its identity and name."""
        reporter = LoggingReporter()
        root = null_tracer.start_span("NewMainRequest")
        child = null_tracer.start_span("DatabaseArea", child_of=root)
        child.finish()

        with caplog.at_level(logging.INFO):
            reporter.report(child)

        assert f"{child.trace_id}:{child.span_id}:{root.span_id}:1" in caplog.text
        assert "checkout.DatabaseArea" in caplog.text

    def test_logs_to_given_logger(self, null_tracer, caplog):
        """Test that span lines go to the logger passed in, at the configured level."""
        reporter = LoggingReporter(level=logging.DEBUG, logger=logging.getLogger("spans"))
        span = null_tracer.start_span("PaymentArea")
        span.finish()

        with caplog.at_level(logging.DEBUG, logger="spans"):
            reporter.report(span)

        records = [r for r in caplog.records if r.name == "spans"]
        assert [r.levelno for r in records] == [logging.DEBUG]
        assert "PaymentArea" in records[0].getMessage()

    def test_logs_leak_as_warning(self, null_tracer, caplog):
        """Test that leaked spans are logged at warning level."""
        reporter = LoggingReporter()
        span = null_tracer.start_span("RedisArea")

        with caplog.at_level(logging.WARNING):
            reporter.report_leak(span)

        assert any(r.levelno == logging.WARNING and "RedisArea" in r.getMessage() for r in caplog.records)

    def test_format_span_context_for_root(self, null_tracer):
        """Test that roots use 0 as parent and the sampled flag."""
        span = null_tracer.start_span("root")

        assert format_span_context(span) == f"{span.trace_id}:{span.span_id}:0:1"


class TestDefaultLeakReport:
    """Test cases for the Reporter base class leak hook."""

    def test_null_reporter_logs_leak(self, null_tracer, caplog):
        """Test that the default report_leak emits a warning."""
        span = null_tracer.start_span("orphan")

        with caplog.at_level(logging.WARNING):
            NullReporter().report_leak(span)

        assert "orphan" in caplog.text
        assert "never finished" in caplog.text


class TestInMemoryReporter:
    """Test cases for InMemoryReporter."""

    def test_get_trace(self):
        """Test assembling a trace from reported spans."""
        reporter = InMemoryReporter()
        tracer = Tracer("svc", reporter=reporter)
        root = tracer.start_span("root")
        tracer.start_span("child", child_of=root).finish()
        tracer.start_span("other-root").finish()
        root.finish()

        trace = reporter.get_trace(root.trace_id)

        assert trace.span_count == 2
        assert trace.root is root
        assert reporter.get_span_by_name("child").parent_span_id == root.span_id

    def test_missing_lookups_raise(self):
        """Test KeyError for unknown traces and names."""
        reporter = InMemoryReporter()

        with pytest.raises(KeyError):
            reporter.get_trace("0" * 32)
        with pytest.raises(KeyError):
            reporter.get_span_by_name("missing")

    def test_clear(self, null_tracer):
        """Test that clear drops spans and leaks."""
        reporter = InMemoryReporter()
        span = null_tracer.start_span("op")
        reporter.report(span)
        reporter.report_leak(span)

        reporter.clear()

        assert reporter.spans == []
        assert reporter.leaks == []


class TestQueuedReporter:
    """Test cases for QueuedReporter."""

    def test_delivers_to_delegate(self, null_tracer):
        """Test that queued spans reach the delegate after flush."""
        delegate = InMemoryReporter()
        reporter = QueuedReporter(delegate, queue_size=10)
        spans = [null_tracer.start_span(f"op-{i}") for i in range(5)]

        for span in spans:
            span.finish()
            reporter.report(span)

        assert reporter.flush(timeout=5) is True
        assert [s.name for s in delegate.spans] == [f"op-{i}" for i in range(5)]
        reporter.close()
        assert delegate.closed is True

    def test_report_does_not_wait_for_delivery(self, null_tracer):
        """Test that report returns while the delegate is still busy."""
        delegate = BlockingReporter()
        reporter = QueuedReporter(delegate, queue_size=10)
        span = null_tracer.start_span("slow")
        span.finish()

        reporter.report(span)
        assert delegate.started.wait(5) is True
        assert delegate.spans == []

        delegate.release.set()
        reporter.close()
        assert delegate.spans == [span]

    def test_drops_when_full(self, null_tracer):
        """Test that spans are dropped and counted when the queue is full."""
        delegate = BlockingReporter()
        reporter = QueuedReporter(delegate, queue_size=1)
        first = null_tracer.start_span("first")
        reporter.report(first)
        assert delegate.started.wait(5) is True

        reporter.report(null_tracer.start_span("queued"))
        reporter.report(null_tracer.start_span("dropped"))

        assert reporter.dropped_count == 1
        delegate.release.set()
        reporter.close()
        assert [s.name for s in delegate.spans] == ["first", "queued"]

    def test_delegate_failure_is_logged(self, null_tracer, caplog):
        """Test that delivery errors are logged and later spans still delivered."""
        delegate = FlakyReporter()
        reporter = QueuedReporter(delegate, queue_size=10)

        with caplog.at_level(logging.ERROR):
            reporter.report(null_tracer.start_span("boom"))
            reporter.report(null_tracer.start_span("fine"))
            reporter.close()

        assert [s.name for s in delegate.spans] == ["fine"]
        assert "export failed" in caplog.text

    def test_report_after_close_is_dropped(self, null_tracer):
        """Test that spans reported after close are counted as dropped."""
        delegate = InMemoryReporter()
        reporter = QueuedReporter(delegate, queue_size=10)
        reporter.close()

        reporter.report(null_tracer.start_span("late"))

        assert reporter.dropped_count == 1
        assert delegate.spans == []

    def test_flush_timeout_returns_false_without_extra_threads(self, null_tracer):
        """Test that a timed-out flush reports failure and leaves no waiter thread behind."""
        delegate = BlockingReporter()
        reporter = QueuedReporter(delegate, queue_size=10)
        reporter.report(null_tracer.start_span("slow"))
        assert delegate.started.wait(5) is True
        threads_before = len(threading.enumerate())

        results = [reporter.flush(timeout=0.01) for _ in range(5)]

        assert results == [False] * 5
        assert len(threading.enumerate()) <= threads_before
        delegate.release.set()
        assert reporter.flush(timeout=5) is True
        reporter.close()

    def test_flush_after_close_returns_immediately(self, null_tracer):
        """Test that flushing a closed reporter succeeds without waiting."""
        delegate = InMemoryReporter()
        reporter = QueuedReporter(delegate, queue_size=10)
        reporter.report(null_tracer.start_span("op"))
        reporter.close()
        threads_before = len(threading.enumerate())

        results = [reporter.flush(timeout=1) for _ in range(20)]

        assert results == [True] * 20
        assert len(threading.enumerate()) <= threads_before
        assert [s.name for s in delegate.spans] == ["op"]

    def test_concurrent_reports_and_close_lose_nothing(self, null_tracer):
        """Test that every span racing with close is either delivered or counted as dropped."""
        delegate = InMemoryReporter()
        reporter = QueuedReporter(delegate, queue_size=1000)
        batches = [[null_tracer.start_span(f"op-{n}-{i}") for i in range(50)] for n in range(8)]
        barrier = threading.Barrier(len(batches) + 1)

        def report_all(batch):
            barrier.wait()
            for span in batch:
                reporter.report(span)

        def close():
            barrier.wait()
            reporter.close()

        threads = [threading.Thread(target=report_all, args=(batch,)) for batch in batches]
        threads.append(threading.Thread(target=close))
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(delegate.spans) + reporter.dropped_count == 400
        assert delegate.closed is True

    def test_concurrent_drops_counted_exactly(self, null_tracer):
        """Test that drops from many threads against a full queue are all counted."""
        delegate = BlockingReporter()
        reporter = QueuedReporter(delegate, queue_size=5)
        reporter.report(null_tracer.start_span("first"))
        assert delegate.started.wait(5) is True
        spans = [null_tracer.start_span(f"op-{i}") for i in range(200)]

        def report_all(batch):
            for span in batch:
                reporter.report(span)

        threads = [threading.Thread(target=report_all, args=(spans[n::4],)) for n in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert reporter.dropped_count == 195
        delegate.release.set()
        reporter.close()
        assert len(delegate.spans) == 6

    def test_leaks_forwarded(self, null_tracer):
        """Test that leak reports go straight to the delegate."""
        delegate = InMemoryReporter()
        reporter = QueuedReporter(delegate, queue_size=10)
        span = null_tracer.start_span("open")

        reporter.report_leak(span)
        reporter.close()

        assert delegate.leaks == [span]

    def test_invalid_queue_size(self):
        """Test that a non-positive queue size is rejected."""
        with pytest.raises(ValueError):
            QueuedReporter(NullReporter(), queue_size=0)

    def test_tracer_with_queued_reporter(self):
        """Test that closing the tracer flushes queued spans."""
        delegate = InMemoryReporter()
        tracer = Tracer("svc", reporter=QueuedReporter(delegate))
        root = tracer.start_span("root")
        tracer.start_span("child", child_of=root).finish()
        root.finish()

        tracer.close()

        assert {s.name for s in delegate.spans} == {"root", "child"}
        assert delegate.closed is True


class TestConstSampler:
    """Test cases for ConstSampler."""

    @pytest.mark.parametrize("decision", [True, False])
    def test_fixed_decision(self, decision):
        """Test that the sampler always returns its decision."""
        sampler = ConstSampler(decision)

        assert sampler.is_sampled("0" * 32, "op") is decision
        assert sampler.is_sampled("f" * 32, "other") is decision
