import pytest
import time_machine
from datetime import datetime, timezone
from unittest.mock import ANY
from app.services import category_service
from app.domain.categories.schemas import CategoryCreateDTO, CategoryUpdateDTO
from app.domain.tokens.models import TokenStatus
from app.domain.exceptions import InvariantViolation, IllegalStateTransition, ConcurrentModificationConflict, \
    ConsistencyFault, NotFound
from tests.helper import make_event, make_category, db_session, dt


def _update(max_tickets: int = 10, price_cents: int = 5000, restricted: bool = False) -> CategoryUpdateDTO:
    return CategoryUpdateDTO(
        name="Regular",
        inception=dt(1),
        expiration=dt(20),
        max_tickets=max_tickets,
        price_cents=price_cents,
        token_generation_requested=restricted
    )


@pytest.fixture
def env(mocker):
    """Patches every collaborator of update_category; returns them by name."""
    event = make_event(available_seats=100)
    category = make_category(id=10, max_tickets=10, price_cents=5000)
    m = {
        "event": event,
        "category": category,
        "db": db_session(mocker),
        "lock_event": mocker.patch(
            "app.services.category_service.lock_event", new=mocker.AsyncMock(return_value=event)
        ),
        "lock_category": mocker.patch(
            "app.services.category_service.lock_active_category", new=mocker.AsyncMock(return_value=category)
        ),
        "allocated": mocker.patch(
            "app.services.category_service.crud.allocated_seats", new=mocker.AsyncMock(return_value=50)
        ),
        "sold": mocker.patch(
            "app.services.category_service.tickets_crud.count_sold_tickets", new=mocker.AsyncMock(return_value=0)
        ),
        "materialize": mocker.patch(
            "app.services.category_service.ticket_pool_service.materialize_tickets", new=mocker.AsyncMock()
        ),
        "invalidate": mocker.patch(
            "app.services.category_service.ticket_pool_service.invalidate_unsold", new=mocker.AsyncMock()
        ),
        "reprice": mocker.patch(
            "app.services.category_service.ticket_pool_service.reprice_unsold", new=mocker.AsyncMock()
        ),
        "generate": mocker.patch(
            "app.services.category_service.token_service.generate_tokens", new=mocker.AsyncMock()
        ),
        "cancel_all": mocker.patch(
            "app.services.category_service.token_service.cancel_all_tokens", new=mocker.AsyncMock(return_value=10)
        ),
        "lock_tokens": mocker.patch(
            "app.services.category_service.token_service.lock_tokens_for_reduction", new=mocker.AsyncMock()
        ),
        "cancel_tokens": mocker.patch(
            "app.services.category_service.token_service.cancel_tokens", new=mocker.AsyncMock()
        ),
    }
    return m


@time_machine.travel(datetime(2026, 5, 1, 12, tzinfo=timezone.utc), tick=False)
@pytest.mark.asyncio
async def test_update_category_grow_materializes_new_tickets(env):
    db, category = env["db"], env["category"]

    result = await category_service.update_category(db, env["event"], 10, _update(max_tickets=15))

    assert result is category
    assert category.max_tickets == 15
    env["materialize"].assert_awaited_once_with(
        db, category, 5, datetime(2026, 5, 1, 12, tzinfo=timezone.utc), 5000, 5000
    )
    env["invalidate"].assert_not_awaited()
    env["reprice"].assert_not_awaited()
    env["generate"].assert_not_awaited()


@pytest.mark.asyncio
async def test_update_category_grow_restricted_generates_tokens(env):
    env["category"].access_restricted = True

    await category_service.update_category(env["db"], env["event"], 10, _update(max_tickets=15, restricted=True))

    env["generate"].assert_awaited_once_with(env["db"], env["category"], 5)


@pytest.mark.asyncio
async def test_update_category_shrink_invalidates_free_tickets(env):
    db = env["db"]

    await category_service.update_category(db, env["event"], 10, _update(max_tickets=7))

    env["invalidate"].assert_awaited_once_with(db, 1, 10, 3)
    env["materialize"].assert_not_awaited()
    env["lock_tokens"].assert_not_awaited()


@pytest.mark.asyncio
async def test_update_category_shrink_restricted_cancels_leased_tokens(env):
    env["category"].access_restricted = True
    env["lock_tokens"].return_value = [1, 2, 3]
    db = env["db"]

    await category_service.update_category(db, env["event"], 10, _update(max_tickets=7, restricted=True))

    env["lock_tokens"].assert_awaited_once_with(db, 10, 3)
    env["cancel_tokens"].assert_awaited_once_with(db, [1, 2, 3])


@pytest.mark.asyncio
async def test_update_category_shrink_with_sold_tickets_aborts(env):
    env["invalidate"].side_effect = ConcurrentModificationConflict("Cannot update the category: tickets already sold")

    with pytest.raises(ConcurrentModificationConflict):
        await category_service.update_category(env["db"], env["event"], 10, _update(max_tickets=7))

    env["reprice"].assert_not_awaited()
    env["lock_tokens"].assert_not_awaited()


@pytest.mark.asyncio
async def test_update_category_token_shortfall_raises_conflict(env):
    env["category"].access_restricted = True
    env["lock_tokens"].return_value = [1]

    with pytest.raises(ConcurrentModificationConflict) as e:
        await category_service.update_category(env["db"], env["event"], 10, _update(max_tickets=7, restricted=True))

    assert e.value.ctx == {"category_id": 10, "requested": 3, "available": 1}
    env["cancel_tokens"].assert_not_awaited()


@pytest.mark.asyncio
async def test_update_category_exceeding_event_seats_changes_nothing(env):
    env["allocated"].return_value = 95

    with pytest.raises(InvariantViolation) as e:
        await category_service.update_category(env["db"], env["event"], 10, _update(max_tickets=20))

    assert e.value.ctx["requested_change"] == 10
    assert env["category"].max_tickets == 10
    env["materialize"].assert_not_awaited()
    env["db"].flush.assert_not_awaited()


@pytest.mark.asyncio
async def test_update_category_window_after_event_end_is_rejected(env):
    schema = _update()
    schema.expiration = dt(25)

    with pytest.raises(InvariantViolation):
        await category_service.update_category(env["db"], env["event"], 10, schema)

    env["db"].flush.assert_not_awaited()


@pytest.mark.asyncio
async def test_update_category_price_change_reprices_full_capacity(env):
    db = env["db"]

    await category_service.update_category(db, env["event"], 10, _update(price_cents=4000))

    assert env["category"].price_cents == 4000
    env["reprice"].assert_awaited_once_with(db, 1, 10, 10, 4000)


@pytest.mark.asyncio
async def test_update_category_toggle_on_generates_tokens_for_full_capacity(env):
    db = env["db"]

    await category_service.update_category(db, env["event"], 10, _update(max_tickets=12, restricted=True))

    env["generate"].assert_awaited_once_with(db, env["category"], 12)


@pytest.mark.asyncio
async def test_update_category_toggle_with_sold_tickets_is_illegal(env):
    env["sold"].return_value = 1

    with pytest.raises(IllegalStateTransition) as e:
        await category_service.update_category(env["db"], env["event"], 10, _update(restricted=True))

    assert e.value.ctx == {"category_id": 10, "sold_tickets": 1}
    assert env["category"].access_restricted is False
    env["generate"].assert_not_awaited()


@pytest.mark.asyncio
async def test_update_category_toggle_off_cancels_all_tokens(env):
    env["category"].access_restricted = True

    await category_service.update_category(env["db"], env["event"], 10, _update(restricted=False))

    env["cancel_all"].assert_awaited_once_with(env["db"], 10)
    assert env["category"].access_restricted is False


@pytest.mark.asyncio
async def test_update_category_toggle_off_count_mismatch_is_consistency_fault(env):
    env["category"].access_restricted = True
    env["cancel_all"].return_value = 8

    with pytest.raises(ConsistencyFault) as e:
        await category_service.update_category(env["db"], env["event"], 10, _update(restricted=False))

    assert e.value.ctx == {"category_id": 10, "expected": 10, "cancelled": 8}


@pytest.mark.asyncio
async def test_update_category_missing_category_raises_not_found(env):
    env["lock_category"].side_effect = NotFound("Ticket category not found")

    with pytest.raises(NotFound):
        await category_service.update_category(env["db"], env["event"], 99, _update())

    env["allocated"].assert_not_awaited()


@pytest.mark.asyncio
async def test_insert_category_materializes_tickets_and_tokens(mocker):
    event = make_event(available_seats=100)
    db = db_session(mocker)
    mocker.patch("app.services.category_service.lock_event", new=mocker.AsyncMock(return_value=event))
    mocker.patch("app.services.category_service.crud.allocated_seats", new=mocker.AsyncMock(return_value=60))
    category = make_category(id=21, max_tickets=40, price_cents=2000, access_restricted=True)
    create = mocker.patch(
        "app.services.category_service.crud.create_category", new=mocker.AsyncMock(return_value=category)
    )
    generate = mocker.patch("app.services.category_service.token_service.generate_tokens", new=mocker.AsyncMock())
    materialize = mocker.patch(
        "app.services.category_service.ticket_pool_service.materialize_tickets", new=mocker.AsyncMock()
    )
    schema = CategoryCreateDTO(
        name="Members", inception=dt(1), expiration=dt(20), max_tickets=40, price_cents=2000,
        token_generation_requested=True
    )

    result = await category_service.insert_category(db, event, schema)

    assert result is category
    assert create.await_args.args[1]["access_restricted"] is True
    generate.assert_awaited_once_with(db, category, 40)
    materialize.assert_awaited_once_with(db, category, 40, ANY, 2000, 2000)


@pytest.mark.asyncio
async def test_insert_category_over_capacity_is_rejected(mocker):
    event = make_event(available_seats=100)
    mocker.patch("app.services.category_service.lock_event", new=mocker.AsyncMock(return_value=event))
    mocker.patch("app.services.category_service.crud.allocated_seats", new=mocker.AsyncMock(return_value=90))
    create = mocker.patch("app.services.category_service.crud.create_category", new=mocker.AsyncMock())
    schema = CategoryCreateDTO(name="Extra", inception=dt(1), expiration=dt(20), max_tickets=11, price_cents=0)

    with pytest.raises(InvariantViolation):
        await category_service.insert_category(db_session(mocker), event, schema)

    create.assert_not_awaited()


@pytest.mark.asyncio
async def test_load_category_inventory_reports_counts(mocker):
    category = make_category(id=10, max_tickets=10)
    category.created_at = dt(1)
    mocker.patch("app.services.category_service.crud.get_category", new=mocker.AsyncMock(return_value=category))
    mocker.patch(
        "app.services.category_service.tickets_crud.count_sold_tickets", new=mocker.AsyncMock(return_value=3)
    )
    mocker.patch(
        "app.services.category_service.tickets_crud.count_free_tickets", new=mocker.AsyncMock(return_value=7)
    )
    mocker.patch(
        "app.services.category_service.tokens_crud.count_tokens_by_status",
        new=mocker.AsyncMock(return_value={TokenStatus.WAITING: 5, TokenStatus.CANCELLED: 2})
    )

    inventory = await category_service.load_category_inventory(mocker.Mock(), 1, 10)

    assert inventory.sold_tickets == 3
    assert inventory.not_sold_tickets == 7
    assert inventory.free_tickets == 7
    assert inventory.waiting_tokens == 5
    assert inventory.locked_tokens == 0


@pytest.mark.asyncio
async def test_get_category_not_found(mocker):
    mocker.patch("app.services.category_service.crud.get_category", new=mocker.AsyncMock(return_value=None))

    with pytest.raises(NotFound) as e:
        await category_service.get_category(mocker.Mock(), 1, 10)

    assert e.value.ctx == {"event_id": 1, "category_id": 10}
