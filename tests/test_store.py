"""SessionStore tests — session map and per-respondent turn locks."""

import asyncio

import pytest


class TestSessions:

    def test_create_and_get(self, store, scenario_form):
        session = store.create("r1", scenario_form)
        assert store.get("r1") is session
        assert "r1" in store
        assert len(store) == 1

    def test_create_replaces_existing(self, store, scenario_form, full_form):
        store.create("r1", scenario_form)
        replacement = store.create("r1", full_form)
        assert store.get("r1") is replacement
        assert replacement.form_id == "full"
        assert len(store) == 1

    def test_discard(self, store, scenario_form):
        session = store.create("r1", scenario_form)
        assert store.discard("r1") is session
        assert store.get("r1") is None
        assert store.discard("r1") is None, "Discarding twice is harmless"


class TestTurns:
    """turn() serialises one respondent and leaves others concurrent."""

    @pytest.mark.asyncio
    async def test_same_respondent_is_serialised_in_order(self, store):
        log = []

        async def handler(name):
            async with store.turn("r1"):
                log.append(f"{name}:start")
                await asyncio.sleep(0.01)
                log.append(f"{name}:end")

        await asyncio.gather(handler("a"), handler("b"), handler("c"))
        assert log == ["a:start", "a:end", "b:start", "b:end", "c:start", "c:end"]

    @pytest.mark.asyncio
    async def test_different_respondents_overlap(self, store):
        log = []

        async def handler(respondent_id):
            async with store.turn(respondent_id):
                log.append(f"{respondent_id}:start")
                await asyncio.sleep(0.01)
                log.append(f"{respondent_id}:end")

        await asyncio.gather(handler("r1"), handler("r2"))
        assert log[:2] == ["r1:start", "r2:start"], "Second respondent must not wait"

    @pytest.mark.asyncio
    async def test_idle_locks_are_dropped(self, store):
        async with store.turn("r1"):
            assert "r1" in store._locks
        assert store._locks == {}
        assert store._waiters == {}

    @pytest.mark.asyncio
    async def test_lock_released_on_error(self, store):
        with pytest.raises(RuntimeError):
            async with store.turn("r1"):
                raise RuntimeError("handler failed")

        async with store.turn("r1"):
            pass
        assert store._locks == {}
