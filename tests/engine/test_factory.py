"""Tests for CouncilFactory."""

import re

import pytest

from cryptocouncil.agents.roster import MEMBER_ROSTER
from cryptocouncil.engine.factory import CouncilFactory, generate_council_id
from cryptocouncil.engine.scoring import RandomScoringStrategy
from cryptocouncil.engine.store import InMemoryCouncilStore
from cryptocouncil.primitives.models import (
    STAGE_NAMES,
    STATUS_PENDING,
    MarketSnapshot,
)

ROSTER_NAMES = {m.name for m in MEMBER_ROSTER}


@pytest.fixture
def store():
    return InMemoryCouncilStore()


@pytest.fixture
def factory(store):
    return CouncilFactory(store=store, strategy=RandomScoringStrategy(seed=5))


class TestCreateCouncil:
    def test_three_distinct_members_from_roster(self, factory):
        for _ in range(50):
            council = factory.create_council("BTC")
            names = council.member_names
            assert len(names) == 3
            assert len(set(names)) == 3
            assert set(names) <= ROSTER_NAMES

    def test_initial_state(self, factory):
        council = factory.create_council("eth")
        assert council.crypto == "ETH"
        assert council.status == STATUS_PENDING
        assert council.current_stage == 0
        assert [s.name for s in council.stages] == list(STAGE_NAMES)
        assert all(not s.completed and s.score == 0 for s in council.stages)
        assert council.ratings == {}
        assert council.analysis == ""

    def test_registered_in_store(self, factory, store):
        council = factory.create_council("SOL")
        assert store.get(council.id).crypto == "SOL"

    def test_token_data_stored_verbatim(self, factory, store):
        snap = MarketSnapshot(
            price=0.1, volume_24h=1.0, market_cap=2.0,
            price_change_24h=-0.5, holders=3, liquidity_usd=4.0,
        )
        council = factory.create_council("DOGE", token_data=snap)
        assert store.get(council.id).token_data == snap

    def test_ids_unique(self, factory):
        ids = {factory.create_council("BTC").id for _ in range(200)}
        assert len(ids) == 200

    def test_analyze_on_create_fills_stages_without_moving_pointer(self, store):
        factory = CouncilFactory(
            store=store, strategy=RandomScoringStrategy(seed=9), analyze_on_create=True,
        )
        council = factory.create_council("SHIB")
        assert council.current_stage == 0
        assert council.status == STATUS_PENDING
        assert all(s.completed and s.score > 0 for s in council.stages)

    def test_roster_smaller_than_council_rejected(self, store):
        with pytest.raises(ValueError):
            CouncilFactory(store=store, roster=MEMBER_ROSTER[:2])

    def test_duplicate_roster_names_do_not_count(self, store):
        roster = [MEMBER_ROSTER[0], MEMBER_ROSTER[0], MEMBER_ROSTER[1]]
        with pytest.raises(ValueError):
            CouncilFactory(store=store, roster=roster)

    def test_exactly_three_members_with_custom_roster(self, store):
        factory = CouncilFactory(store=store, roster=MEMBER_ROSTER[:3])
        council = factory.create_council("BTC")
        assert sorted(council.member_names) == sorted(m.name for m in MEMBER_ROSTER[:3])


class TestCouncilId:
    def test_id_format(self):
        council_id = generate_council_id()
        assert re.fullmatch(r"[a-z0-9]{8}", council_id)
