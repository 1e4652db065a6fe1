from datetime import date, datetime, timezone
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from budgettracker.domain.statements import parse_csv
from budgettracker.integration.supabase import RECURRING_TABLE, TRANSACTIONS_TABLE, SupabaseStore
from budgettracker.models import Frequency, RecurringTemplate, TransactionRecord, TransactionTemplate


def _response(payload: Any) -> MagicMock:
    response = MagicMock()
    response.raise_for_status.return_value = None
    response.json.return_value = payload
    return response


def _mock_client(*responses: MagicMock) -> AsyncMock:
    client = AsyncMock()
    client.is_closed = False
    client.request = AsyncMock(side_effect=list(responses))
    return client


def _store(client: AsyncMock) -> SupabaseStore:
    return SupabaseStore(base_url="https://db.test/", api_key="anon-key", client=client)


@pytest.mark.anyio
async def test_load_transactions_maps_rows() -> None:
    rows = [
        {"id": 7, "date": "2024-01-15", "description": "Coffee", "amount": "-4.5", "category": "Dining", "user_id": 3},
        {"id": 8, "date": "garbage", "description": "Broken", "amount": -1, "category": "Other", "user_id": None},
    ]
    client = _mock_client(_response(rows))

    records = await _store(client).load_transactions()

    assert len(records) == 1
    assert records[0].id == "7"
    assert records[0].date == datetime(2024, 1, 15, tzinfo=timezone.utc)
    assert records[0].amount == -4.5
    assert records[0].user_id == "3"

    method, url = client.request.call_args.args
    kwargs = client.request.call_args.kwargs
    assert method == "GET"
    assert url == f"https://db.test/rest/v1/{TRANSACTIONS_TABLE}"
    assert kwargs["params"] == {"select": "*", "order": "date.desc"}
    assert kwargs["headers"]["apikey"] == "anon-key"
    assert kwargs["headers"]["Authorization"] == "Bearer anon-key"


@pytest.mark.anyio
async def test_save_transactions_posts_rows_without_ids() -> None:
    record = TransactionRecord(
        id="csv-1-abc",
        date=datetime(2024, 2, 1, tzinfo=timezone.utc),
        description="Rent",
        amount=-1200.0,
        category="Bills",
        user_id="u-1",
    )
    stored_row = {"id": 99, "date": "2024-02-01", "description": "Rent", "amount": -1200, "category": "Bills", "user_id": "u-1"}
    client = _mock_client(_response([stored_row]))

    saved = await _store(client).save_transactions([record])

    assert [r.id for r in saved] == ["99"]
    kwargs = client.request.call_args.kwargs
    assert kwargs["json"] == [
        {
            "date": "2024-02-01",
            "description": "Rent",
            "amount": -1200.0,
            "category": "Bills",
            "user_name": None,
            "user_id": "u-1",
        }
    ]
    assert kwargs["headers"]["Prefer"] == "return=representation"


@pytest.mark.anyio
async def test_user_tag_survives_save_and_load() -> None:
    parsed = parse_csv("Date,Description,Amount\n2024-01-15,Coffee Shop,-5.50", "Alex")
    client = _mock_client()
    # The table echoes the inserted rows back with generated ids.
    client.request.side_effect = lambda *args, **kwargs: _response(
        [{"id": index, **row} for index, row in enumerate(kwargs["json"], start=1)]
    )

    saved = await _store(client).save_transactions(parsed)

    posted = client.request.call_args.kwargs["json"][0]
    assert posted["user_name"] == "Alex"
    assert saved[0].user_name == "Alex"
    assert saved[0].description == "Coffee Shop"


@pytest.mark.anyio
async def test_save_nothing_skips_request() -> None:
    client = _mock_client()
    store = _store(client)

    assert await store.save_transactions([]) == []
    await store.save_templates([])

    client.request.assert_not_called()


@pytest.mark.anyio
async def test_templates_round_trip_through_rows() -> None:
    template = RecurringTemplate(
        id="gym",
        template=TransactionTemplate(
            description="Gym", amount=-40.0, category="Healthcare", user_name="Sam", user_id="u-1"
        ),
        frequency=Frequency.QUARTERLY,
        start_date=date(2024, 1, 31),
        last_processed=date(2024, 4, 30),
        next_due_date=date(2024, 7, 30),
    )
    client = _mock_client(_response(None), _response(None))
    store = _store(client)

    await store.save_templates([template])
    posted = client.request.call_args.kwargs
    assert client.request.call_args.args[1] == f"https://db.test/rest/v1/{RECURRING_TABLE}"
    assert posted["headers"]["Prefer"] == "resolution=merge-duplicates,return=minimal"
    row = posted["json"][0]
    assert row["frequency"] == "quarterly"
    assert row["start_date"] == "2024-01-31"
    assert row["end_date"] is None
    assert row["user_name"] == "Sam"

    client.request.side_effect = [_response([row])]
    loaded = await store.load_templates()

    assert loaded == [template]


@pytest.mark.anyio
async def test_http_errors_propagate() -> None:
    request = httpx.Request("GET", "https://db.test/rest/v1/transactions")
    failing = MagicMock()
    failing.raise_for_status.side_effect = httpx.HTTPStatusError(
        "boom", request=request, response=httpx.Response(503, request=request)
    )
    client = _mock_client(failing)

    with pytest.raises(httpx.HTTPStatusError):
        await _store(client).load_transactions()


@pytest.mark.anyio
async def test_client_created_lazily_and_closed() -> None:
    store = SupabaseStore(base_url="https://db.test", api_key="anon-key")

    with patch("httpx.AsyncClient") as mock_client_cls:
        mock_client = _mock_client(_response([]))
        mock_client_cls.return_value = mock_client

        assert await store.load_templates() == []
        await store.aclose()

    mock_client_cls.assert_called_once()
    mock_client.aclose.assert_awaited_once()
