"""
Concurrency tests: single-flight guard and concurrent analyze calls.

Gates (threading.Event / Barrier) force the interleavings under test instead
of relying on timing.
"""

from __future__ import annotations

import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from backend_docscan.content_source.source import InMemoryContentSource
from backend_docscan.core.exceptions import ContentFetchError
from backend_docscan.core.single_flight import SingleFlight

WAIT_SEC = 5.0


def _wait_for(predicate, timeout: float = WAIT_SEC) -> None:
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError("condition not reached in time")
        time.sleep(0.005)


class GatedContentSource(InMemoryContentSource):
    """Blocks every fetch until release is set."""

    def __init__(self, documents) -> None:
        super().__init__(documents)
        self.release = threading.Event()

    def fetch(self, doc_id):
        doc = super().fetch(doc_id)
        assert self.release.wait(WAIT_SEC), "gate never released"
        return doc


class BarrierContentSource(InMemoryContentSource):
    """Holds fetch until `parties` callers are inside it."""

    def __init__(self, documents, parties: int) -> None:
        super().__init__(documents)
        self.barrier = threading.Barrier(parties, timeout=WAIT_SEC)

    def fetch(self, doc_id):
        doc = super().fetch(doc_id)
        self.barrier.wait()
        return doc


# -----------------------------------------------------------------------------
# SingleFlight
# -----------------------------------------------------------------------------


def test_single_flight_follower_shares_leader_result():
    flight: SingleFlight[str] = SingleFlight()
    release = threading.Event()
    runs = []

    def leader_fn():
        runs.append("leader")
        release.wait(WAIT_SEC)
        return "value"

    with ThreadPoolExecutor(max_workers=2) as pool:
        leader = pool.submit(flight.do, "k", leader_fn)
        _wait_for(lambda: flight.in_flight("k"))
        follower = pool.submit(flight.do, "k", lambda: runs.append("follower") or "other")
        _wait_for(lambda: flight.waiters("k") == 1)
        release.set()
        assert leader.result(WAIT_SEC) == ("value", False)
        assert follower.result(WAIT_SEC) == ("value", True)

    assert runs == ["leader"]
    assert not flight.in_flight("k")


def test_single_flight_follower_receives_leader_error():
    flight: SingleFlight[str] = SingleFlight()
    release = threading.Event()

    def failing():
        release.wait(WAIT_SEC)
        raise ContentFetchError("content source unreachable")

    with ThreadPoolExecutor(max_workers=2) as pool:
        leader = pool.submit(flight.do, "k", failing)
        _wait_for(lambda: flight.in_flight("k"))
        follower = pool.submit(flight.do, "k", lambda: "unused")
        _wait_for(lambda: flight.waiters("k") == 1)
        release.set()
        with pytest.raises(ContentFetchError):
            leader.result(WAIT_SEC)
        with pytest.raises(ContentFetchError):
            follower.result(WAIT_SEC)


def test_single_flight_releases_key_after_failure():
    flight: SingleFlight[int] = SingleFlight()

    def boom():
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        flight.do("k", boom)
    assert not flight.in_flight("k")
    assert flight.do("k", lambda: 7) == (7, False)


def test_single_flight_keys_are_independent():
    flight: SingleFlight[str] = SingleFlight()
    assert flight.do("a", lambda: "A") == ("A", False)
    assert flight.do("b", lambda: "B") == ("B", False)


# -----------------------------------------------------------------------------
# AnalysisService
# -----------------------------------------------------------------------------


@pytest.mark.parametrize("callers", [2, 8])
def test_concurrent_analyze_computes_once(memory_store, make_service, wordcloud_ok, callers):
    source = GatedContentSource({"doc-1": "alpha beta gamma\n\ndelta"})
    service = make_service(memory_store, source)

    with ThreadPoolExecutor(max_workers=callers) as pool:
        futures = [pool.submit(service.analyze, "doc-1") for _ in range(callers)]
        _wait_for(lambda: source.fetch_count == 1)
        source.release.set()
        results = [f.result(WAIT_SEC) for f in futures]

    assert len({r.id for r in results}) == 1
    assert source.fetch_count == 1
    assert wordcloud_ok.calls == 1
    assert memory_store.count_results() == 1


def test_concurrent_failure_reaches_every_caller_and_is_retryable(memory_store, make_service):
    source = GatedContentSource({})
    service = make_service(memory_store, source)

    with ThreadPoolExecutor(max_workers=4) as pool:
        futures = [pool.submit(service.analyze, "missing") for _ in range(4)]
        _wait_for(lambda: source.fetch_count >= 1)
        source.release.set()
        for f in futures:
            with pytest.raises(ContentFetchError):
                f.result(WAIT_SEC)

    source.add("missing", "now it exists")
    assert service.analyze("missing").words == 3
    assert memory_store.count_results() == 1


@pytest.mark.parametrize("store_fixture", ["memory_store", "sqlite_store"])
def test_two_services_sharing_store_converge_on_one_result(request, make_service, store_fixture):
    """Separate guards, same store: the loser of the insert re-reads the winner's result."""
    store = request.getfixturevalue(store_fixture)
    source = BarrierContentSource({"doc-1": "shared document text"}, parties=2)
    first = make_service(store, source)
    second = make_service(store, source)

    with ThreadPoolExecutor(max_workers=2) as pool:
        a = pool.submit(first.analyze, "doc-1")
        b = pool.submit(second.analyze, "doc-1")
        result_a, result_b = a.result(WAIT_SEC * 2), b.result(WAIT_SEC * 2)

    assert source.fetch_count == 2
    assert result_a.id == result_b.id
    assert result_a == result_b
    assert store.count_results() == 1
    assert store.get_by_doc_id("doc-1").id == result_a.id


def test_waiters_is_zero_outside_a_flight():
    flight: SingleFlight[int] = SingleFlight()
    assert flight.waiters("k") == 0
    assert flight.do("k", lambda: flight.waiters("k")) == (0, False)
    assert flight.waiters("k") == 0
