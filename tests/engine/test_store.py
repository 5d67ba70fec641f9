"""Tests for InMemoryCouncilStore and ActiveCouncilHandle."""

import threading

import pytest

from cryptocouncil.agents.roster import MEMBER_ROSTER
from cryptocouncil.engine.analyzer import StageAnalyzer
from cryptocouncil.engine.errors import (
    COUNCIL_NOT_FOUND,
    INVALID_TRANSITION,
    CouncilNotFoundError,
    DuplicateCouncilError,
    InvalidTransitionError,
)
from cryptocouncil.engine.scoring import RandomScoringStrategy
from cryptocouncil.engine.store import InMemoryCouncilStore
from cryptocouncil.primitives.models import (
    STAGE_NAMES,
    STATUS_ACTIVE,
    STATUS_COMPLETE,
    STATUS_ORDER,
    STATUS_PENDING,
    Council,
    Rating,
    Stage,
    StageResult,
)


def _council(council_id="c1", crypto="BTC"):
    return Council(
        id=council_id,
        crypto=crypto,
        members=list(MEMBER_ROSTER[:3]),
        stages=[Stage(name=n) for n in STAGE_NAMES],
    )


def _complete_kwargs():
    return dict(
        ratings=[Rating(member_name=m.name, score=5, comment="c") for m in MEMBER_ROSTER[:3]],
        rating_phase="quick",
        technical_score=1,
        fundamental_score=2,
        meme_potential=3,
        risk_level="medium",
        analysis="done",
    )


@pytest.fixture
def store():
    return InMemoryCouncilStore()


@pytest.fixture
def analyzer():
    return StageAnalyzer(RandomScoringStrategy(seed=11))


class TestCreateAndGet:
    def test_create_then_get_returns_snapshot(self, store):
        store.create(_council())
        snapshot = store.get("c1")
        assert snapshot.crypto == "BTC"
        snapshot.status = STATUS_COMPLETE
        # 修改快照不影响注册表 / mutating the snapshot leaves the registry alone
        assert store.get("c1").status == STATUS_PENDING

    def test_duplicate_id_rejected(self, store):
        store.create(_council())
        with pytest.raises(DuplicateCouncilError):
            store.create(_council())

    def test_get_missing_raises_not_found(self, store):
        with pytest.raises(CouncilNotFoundError) as exc_info:
            store.get("nope")
        assert exc_info.value.code == COUNCIL_NOT_FOUND

    def test_len_and_contains(self, store):
        store.create(_council("a"))
        store.create(_council("b"))
        assert len(store) == 2
        assert "a" in store
        assert "z" not in store


class TestConfirm:
    def test_confirm_succeeds_exactly_once(self, store):
        store.create(_council())
        assert store.confirm("c1") is True
        assert store.get("c1").status == STATUS_ACTIVE
        assert store.confirm("c1") is False
        assert store.get("c1").status == STATUS_ACTIVE

    def test_confirm_missing_returns_false(self, store):
        assert store.confirm("missing") is False

    def test_confirm_complete_returns_false(self, store):
        store.create(_council())
        store.confirm("c1")
        store.acquire("c1").complete_with_ratings(**_complete_kwargs())
        assert store.confirm("c1") is False
        assert store.get("c1").status == STATUS_COMPLETE

    def test_concurrent_confirm_only_one_wins(self, store):
        store.create(_council())
        results = []
        results_lock = threading.Lock()

        def worker():
            ok = store.confirm("c1")
            with results_lock:
                results.append(ok)

        threads = [threading.Thread(target=worker) for _ in range(20)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert results.count(True) == 1


class TestListByStatus:
    def test_insertion_order(self, store):
        for cid in ("x", "y", "z"):
            store.create(_council(cid))
        store.confirm("y")
        assert [c.id for c in store.list_by_status(STATUS_PENDING)] == ["x", "z"]
        assert [c.id for c in store.list_by_status(STATUS_ACTIVE)] == ["y"]
        assert store.list_by_status(STATUS_COMPLETE) == []


class TestAcquire:
    def test_acquire_pending_rejected(self, store):
        store.create(_council())
        with pytest.raises(InvalidTransitionError) as exc_info:
            store.acquire("c1")
        assert exc_info.value.code == INVALID_TRANSITION

    def test_acquire_missing_rejected(self, store):
        with pytest.raises(CouncilNotFoundError):
            store.acquire("c1")

    def test_acquire_complete_rejected(self, store):
        store.create(_council())
        store.confirm("c1")
        store.acquire("c1").complete_with_ratings(**_complete_kwargs())
        with pytest.raises(InvalidTransitionError):
            store.acquire("c1")

    def test_stale_handle_cannot_write(self, store):
        store.create(_council())
        store.confirm("c1")
        first = store.acquire("c1")
        second = store.acquire("c1")
        first.complete_with_ratings(**_complete_kwargs())
        with pytest.raises(InvalidTransitionError):
            second.complete_with_ratings(**dict(_complete_kwargs(), analysis="again"))
        assert store.get("c1").analysis == "done"


class TestStageAdvancement:
    def test_five_advances_complete_the_council(self, store, analyzer):
        store.create(_council())
        store.confirm("c1")
        handle = store.acquire("c1")
        summaries = []
        seen = []
        for _ in range(5):
            seen.append(store.get("c1").status)
            stage, summary = handle.advance_stage(analyzer.analyze_stage)
            assert stage.completed
            summaries.append(summary)

        council = store.get("c1")
        assert council.status == STATUS_COMPLETE
        assert council.current_stage == 5
        assert all(s.completed for s in council.stages)
        assert summaries[:4] == [None] * 4
        final = summaries[4]
        assert final.average_score == pytest.approx(
            sum(s.score for s in council.stages) / 5
        )
        seen.append(council.status)
        orders = [STATUS_ORDER[s] for s in seen]
        assert orders == sorted(orders)

    def test_advance_after_complete_rejected(self, store, analyzer):
        store.create(_council())
        store.confirm("c1")
        handle = store.acquire("c1")
        for _ in range(5):
            handle.advance_stage(analyzer.analyze_stage)
        with pytest.raises(InvalidTransitionError):
            handle.advance_stage(analyzer.analyze_stage)

    def test_pointer_moves_one_stage_at_a_time(self, store, analyzer):
        store.create(_council())
        store.confirm("c1")
        handle = store.acquire("c1")
        stage, _ = handle.advance_stage(analyzer.analyze_stage)
        council = store.get("c1")
        assert stage.name == STAGE_NAMES[0]
        assert council.current_stage == 1
        assert council.stages[0].completed
        assert not council.stages[1].completed

    def test_batch_write_keeps_pointer(self, store, analyzer):
        store.create(_council())
        store.confirm("c1")
        store.acquire("c1").write_stage_results(analyzer.analyze_all())
        council = store.get("c1")
        assert council.current_stage == 0
        assert council.status == STATUS_ACTIVE
        assert all(s.score > 0 for s in council.stages)

    def test_unknown_stage_result_written_as_zero(self, store):
        store.create(_council())
        store.confirm("c1")
        stage, _ = store.acquire("c1").advance_stage(
            lambda name: StageResult(score=0, analysis="Analysis unavailable")
        )
        assert stage.score == 0
        assert stage.analysis == "Analysis unavailable"


class TestEviction:
    def test_expired_councils_evicted(self):
        now = [100.0]
        store = InMemoryCouncilStore(ttl_seconds=60, clock=lambda: now[0])
        store.create(_council("old"))
        now[0] = 150.0
        store.create(_council("new"))
        now[0] = 170.0
        assert store.evict_expired() == ["old"]
        assert "old" not in store
        assert "new" in store

    def test_create_evicts_lazily(self):
        now = [0.0]
        store = InMemoryCouncilStore(ttl_seconds=10, clock=lambda: now[0])
        store.create(_council("a"))
        now[0] = 11.0
        store.create(_council("b"))
        assert len(store) == 1

    def test_no_ttl_never_evicts(self, store):
        store.create(_council())
        assert store.evict_expired(now=1e12) == []
        assert len(store) == 1
