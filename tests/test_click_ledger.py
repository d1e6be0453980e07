import logging
from datetime import datetime, timezone

import pytest

from app.features.clicks.models.click import ClickStatus
from app.features.clicks.services.click_ledger import ClickLedger
from app.platform.exceptions import UnsupportedPlatform


@pytest.mark.asyncio
async def test_record_click_persists_pending_click(db_session, user):
    ledger = ClickLedger(db_session)

    click_id = await ledger.record_click(
        product_id="p1",
        platform="Amazon",
        user_id=user.id,
        ip="203.0.113.7",
        user_agent="pytest-agent",
        metadata={"campaign": "spring"},
    )

    assert click_id.startswith("clk_")
    assert len(click_id) == len("clk_") + 24

    click = await ledger.lookup_click(click_id)
    assert click is not None
    assert click.status == ClickStatus.PENDING
    assert click.platform == "amazon"
    assert click.user_id == user.id
    assert click.client_ip == "203.0.113.7"
    assert click.meta == {"campaign": "spring"}
    assert click.order_id is None
    assert click.converted_at is None


@pytest.mark.asyncio
async def test_anonymous_clicks_get_unique_ids(db_session):
    ledger = ClickLedger(db_session)
    ids = {await ledger.record_click("p1", "ebay") for _ in range(20)}
    assert len(ids) == 20


@pytest.mark.asyncio
async def test_record_click_rejects_unknown_platform(db_session):
    with pytest.raises(UnsupportedPlatform):
        await ClickLedger(db_session).record_click("p1", "myspace")


@pytest.mark.asyncio
async def test_lookup_unknown_click(db_session):
    assert await ClickLedger(db_session).lookup_click("clk_missing") is None


@pytest.mark.asyncio
async def test_mark_converted_is_idempotent(db_session):
    ledger = ClickLedger(db_session)
    click_id = await ledger.record_click("p1", "amazon")
    first_time = datetime(2026, 1, 1, tzinfo=timezone.utc)

    await ledger.mark_converted(click_id, "ORD1", first_time)
    await ledger.mark_converted(click_id, "ORD1", datetime(2026, 2, 1, tzinfo=timezone.utc))
    await db_session.commit()

    click = await ledger.lookup_click(click_id)
    assert click.status == ClickStatus.CONVERTED
    assert click.order_id == "ORD1"
    assert click.converted_at.replace(tzinfo=timezone.utc) == first_time


@pytest.mark.asyncio
async def test_mark_converted_conflict_keeps_first_order(db_session, caplog):
    ledger = ClickLedger(db_session)
    click_id = await ledger.record_click("p1", "amazon")
    await ledger.mark_converted(click_id, "ORD1")
    await db_session.commit()

    with caplog.at_level(logging.WARNING):
        click = await ledger.mark_converted(click_id, "ORD2")

    assert click.order_id == "ORD1"
    assert "already converted" in caplog.text


@pytest.mark.asyncio
async def test_mark_converted_unknown_click_returns_none(db_session):
    assert await ClickLedger(db_session).mark_converted("clk_nope", "ORD1") is None
