from __future__ import annotations

import asyncio
import random
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from src.application.errors import AppError, ConflictError, NotFound
from src.application.services.stay_ledger import StayLedger

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


async def test_open_then_close_keeps_history_in_order(memory_uow):
    stays = memory_uow.stays
    ledger = StayLedger(stays)
    lot_id, z1, z2 = uuid4(), uuid4(), uuid4()

    first = await ledger.open_stay(lot_id, z1, T0)
    closed = await ledger.close_stay(lot_id, T0 + timedelta(days=3), expected_stay_id=first.id)
    second = await ledger.open_stay(lot_id, z2, T0 + timedelta(days=3))

    assert closed.exit_time == T0 + timedelta(days=3)
    assert (await ledger.current_stay(lot_id)).id == second.id
    assert [s.id for s in await ledger.history(lot_id)] == [first.id, second.id]


async def test_second_open_stay_is_rejected(memory_uow):
    ledger = StayLedger(memory_uow.stays)
    lot_id = uuid4()
    await ledger.open_stay(lot_id, uuid4(), T0)
    with pytest.raises(ConflictError):
        await ledger.open_stay(lot_id, uuid4(), T0)


async def test_close_without_open_stay_is_not_found(memory_uow):
    ledger = StayLedger(memory_uow.stays)
    with pytest.raises(NotFound):
        await ledger.close_stay(uuid4(), T0)


async def test_close_with_stale_expected_stay_conflicts(memory_uow):
    ledger = StayLedger(memory_uow.stays)
    lot_id = uuid4()
    await ledger.open_stay(lot_id, uuid4(), T0)
    with pytest.raises(ConflictError):
        await ledger.close_stay(lot_id, T0, expected_stay_id=uuid4())


@pytest.mark.parametrize("seed", [1, 7, 42, 2024, 31337])
async def test_at_most_one_open_stay_under_random_interleavings(seed, memory_uow):
    rng = random.Random(seed)
    stays = memory_uow.stays
    ledger = StayLedger(stays)
    lots = [uuid4() for _ in range(3)]
    zones = [uuid4() for _ in range(4)]

    async def move(lot_id, step):
        # Each request tries to close the current stay and open a new one
        when = T0 + timedelta(hours=step)
        current = await ledger.current_stay(lot_id)
        if current is not None:
            await ledger.close_stay(lot_id, when, expected_stay_id=current.id)
        await ledger.open_stay(lot_id, rng.choice(zones), when)

    for round_no in range(20):
        batch = [move(rng.choice(lots), round_no * 10 + i) for i in range(rng.randint(2, 6))]
        rng.shuffle(batch)
        results = await asyncio.gather(*batch, return_exceptions=True)
        for result in results:
            if isinstance(result, Exception):
                assert isinstance(result, AppError)
        assert all(count <= 1 for count in stays.open_counts().values())

    for lot_id in lots:
        history = await ledger.history(lot_id)
        assert sum(1 for s in history if s.exit_time is None) <= 1
