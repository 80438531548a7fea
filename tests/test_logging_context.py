"""Tests for logging context propagation."""

import logging
import threading

from targeting.logging.config import ContextualFilter
from targeting.logging.context import (
    clear_log_context,
    get_log_context,
    log_context,
    pop_log_context,
    push_log_context,
)
from targeting.pipeline import run_batch


def test_empty_context():
    assert get_log_context() == {}


def test_push_and_pop():
    token = push_log_context(batch_id="3f2a", country_code="BE")
    assert get_log_context() == {"batch_id": "3f2a", "country_code": "BE"}

    pop_log_context(token)
    assert get_log_context() == {}


def test_nested_context():
    """Inner scopes layer over outer ones and unwind in order."""
    with log_context(batch_id="3f2a"):
        with log_context(criterion="Nike"):
            assert get_log_context() == {"batch_id": "3f2a", "criterion": "Nike"}
        assert get_log_context() == {"batch_id": "3f2a"}
    assert get_log_context() == {}


def test_inner_scope_overrides_field():
    with log_context(criterion="Nike"):
        with log_context(criterion="Zara"):
            assert get_log_context()["criterion"] == "Zara"
        assert get_log_context()["criterion"] == "Nike"


def test_context_restored_after_exception():
    try:
        with log_context(batch_id="3f2a"):
            raise RuntimeError("boom")
    except RuntimeError:
        pass

    assert get_log_context() == {}


def test_get_returns_copy():
    with log_context(batch_id="3f2a"):
        get_log_context()["batch_id"] = "changed"

        assert get_log_context()["batch_id"] == "3f2a"


def test_clear():
    push_log_context(batch_id="3f2a")
    clear_log_context()

    assert get_log_context() == {}


def test_threads_do_not_share_context():
    seen = {}

    def worker(name):
        with log_context(batch_id=name):
            barrier.wait()
            seen[name] = get_log_context()["batch_id"]

    barrier = threading.Barrier(2)
    threads = [threading.Thread(target=worker, args=(name,)) for name in ("a", "b")]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert seen == {"a": "a", "b": "b"}


def test_batch_fields_reach_lookup_logs():
    """Records logged during a lookup carry the batch and criterion fields."""
    captured = []
    context_filter = ContextualFilter(environment="test")

    def fetch(query, country_code):
        record = logging.LogRecord("test", logging.INFO, "test.py", 1, "lookup", (), None)
        context_filter.filter(record)
        captured.append(record)
        return []

    run_batch(["Nike"], "BE", 0.3, fetch, lambda event: None)

    record = captured[0]
    assert record.criterion == "Nike"
    assert record.country_code == "BE"
    assert record.batch_id
    assert get_log_context() == {}
