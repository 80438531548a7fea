"""End-to-end tests: batch run, stored results and zero-audience retries.

Uses the fixture-backed interest lookup so no HTTP is involved.
"""

from openpyxl import load_workbook

from targeting.domain.models import Project
from targeting.export import build_export_rows, write_universe_workbook
from targeting.main import _store_refreshed_audience, seed_retry_queue
from targeting.matching.engine import InterestMatcher
from targeting.persistence import ProjectRepository, get_session
from targeting.pipeline import BatchProcessor, ProgressBroadcaster, ProgressStatus
from targeting.scheduler import ZeroAudienceRetryQueue
from tests.helpers.static_adapter import StaticInterestAdapter

CRITERIA = ["Nike", "Coca-Cola", "Broken", "Zara", "Unmatched"]


def run(adapter, criteria=CRITERIA, matcher=None):
    events = []
    broadcaster = ProgressBroadcaster()
    broadcaster.subscribe(events.append)
    items = BatchProcessor(matcher).run_batch(criteria, "BE", 0.3, adapter.fetch_candidates, broadcaster)
    return items, events


def test_batch_over_fixture_suggestions():
    adapter = StaticInterestAdapter(fail_for={"Broken"})

    items, events = run(adapter)

    assert [item.original for item in items] == CRITERIA
    assert [m.name for m in items[0].matches] == ["Nike", "Nike, Inc."]
    assert [m.name for m in items[1].matches] == ["Coca-Cola", "Cola"]
    assert items[1].matches[1].audience_size is None
    assert "Invalid parameter" in items[2].error
    assert items[3].matches[0].audience_size == 0
    assert items[4].matches == []
    assert items[4].error is None

    statuses = [event.status for event in events]
    assert statuses.count(ProgressStatus.ERROR) == 1
    assert statuses.count(ProgressStatus.COMPLETED) == 4
    assert statuses[-1] == ProgressStatus.FINISHED
    assert events[-1].current == len(CRITERIA)


def test_deduplicating_matcher():
    adapter = StaticInterestAdapter()
    adapter.suggestions["Nike"].append({"id": "dup", "name": "NIKE", "audience_size": 900000000})

    items, _ = run(adapter, ["Nike"], InterestMatcher(deduplicate_names=True))

    assert [m.id for m in items[0].matches] == ["dup", "6003107902433"]


def test_zero_audience_matches_refreshed_in_store(temp_database):
    adapter = StaticInterestAdapter(fail_for={"Broken"})
    items, _ = run(adapter)

    with get_session() as session:
        repo = ProjectRepository(session)
        project_id = repo.create(Project(owner="alice", name="Belgian brands")).id
        repo.save_results(project_id, "alice", items, country="BE", categories=["clothing_brands"])

    retry_queue = ZeroAudienceRetryQueue(
        adapter.fetch_candidates, on_resolved=_store_refreshed_audience, max_attempts=2
    )
    assert seed_retry_queue(retry_queue) == 2

    # First cycle: the platform still reports 0 for both
    stats = retry_queue.process_pending()
    assert (stats.resolved, stats.requeued) == (0, 2)

    # Nike's audience appears; Zara stays at 0 and runs out of attempts
    adapter.set_audience("Nike", "6003397425735", 45000000)
    stats = retry_queue.process_pending()
    assert (stats.resolved, stats.exhausted, stats.pending) == (1, 1, 0)

    with get_session() as session:
        repo = ProjectRepository(session)
        project = repo.get(project_id, "alice")
        remaining = list(repo.iter_zero_audience_matches())

    nike_matches = {m["id"]: m for m in project.results[0]["matches"]}
    assert nike_matches["6003397425735"]["audience_size"] == 45000000
    assert [m.criterion for m in remaining] == ["Zara"]


def test_batch_results_submitted_directly():
    adapter = StaticInterestAdapter()
    items, _ = run(adapter, ["Nike", "Zara"])

    retry_queue = ZeroAudienceRetryQueue(adapter.fetch_candidates)

    assert retry_queue.submit_batch_results(items, "BE") == 2


def test_export_workbook_from_batch(tmp_path):
    items, _ = run(StaticInterestAdapter(fail_for={"Broken"}))

    path = write_universe_workbook(build_export_rows(items, "Clothing Brands"), tmp_path / "u.xlsx")

    rows = list(load_workbook(path).active.iter_rows(values_only=True))
    assert len(rows) == len(CRITERIA) + 1
    assert rows[1][0] == "Nike"
    assert rows[1][2] == "6003397425735"
    assert (rows[3][0], rows[3][1], rows[3][3]) == ("Broken", "Clothing Brands", 0)
