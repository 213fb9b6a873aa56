import asyncio
import json
import logging

import httpx
import pytest

from pubcid.adapters.sharedid_client import SHAREDID_OPT_OUT_VALUE, SHAREDID_URL, SharedIdClient
from pubcid.exceptions import SyncResponseError, SyncTransportError
from pubcid.models import IdentifierRecord

from conftest import FakeRemote


def run_sync(client: SharedIdClient, record: IdentifierRecord) -> list[IdentifierRecord]:
    completed: list[IdentifierRecord] = []
    asyncio.run(client.sync(record, completed.append))
    return completed


def test_shared_id_is_stored_as_third(remote, sync_client):
    record = IdentifierRecord(id="local-id")

    completed = run_sync(sync_client, record)

    assert record.third == "abc123"
    assert completed == [record]
    assert completed[0] is record
    assert remote.requests[0].method == "GET"
    assert str(remote.requests[0].url) == SHAREDID_URL


def test_opt_out_value_is_discarded_but_completion_fires():
    remote = FakeRemote(body=json.dumps({"sharedId": SHAREDID_OPT_OUT_VALUE}))
    record = IdentifierRecord(id="local-id")

    completed = run_sync(SharedIdClient(client=remote.client()), record)

    assert record.third is None
    assert len(completed) == 1
    assert completed[0].third is None


def test_opt_out_value_is_not_logged_as_generated(caplog):
    remote = FakeRemote(body=json.dumps({"sharedId": SHAREDID_OPT_OUT_VALUE}))

    with caplog.at_level(logging.INFO, logger="pubcid.adapters.sharedid_client"):
        run_sync(SharedIdClient(client=remote.client()), IdentifierRecord(id="local-id"))

    assert "Generated SharedId" not in caplog.text
    assert SHAREDID_OPT_OUT_VALUE not in caplog.text


def test_accepted_shared_id_is_logged(caplog, sync_client):
    with caplog.at_level(logging.INFO, logger="pubcid.adapters.sharedid_client"):
        run_sync(sync_client, IdentifierRecord(id="local-id"))

    assert "Generated SharedId: abc123" in caplog.text


def test_malformed_body_logs_and_skips_completion(caplog):
    remote = FakeRemote(body="not json {")
    record = IdentifierRecord(id="local-id")

    with caplog.at_level(logging.ERROR, logger="pubcid.adapters.sharedid_client"):
        completed = run_sync(SharedIdClient(client=remote.client()), record)

    assert completed == []
    assert record.third is None
    assert "SharedId" in caplog.text


@pytest.mark.parametrize("body", ["", json.dumps({"other": "x"}), json.dumps(["abc"])])
def test_body_without_shared_id_leaves_record_untouched(body):
    remote = FakeRemote(body=body)
    record = IdentifierRecord(id="local-id")

    completed = run_sync(SharedIdClient(client=remote.client()), record)

    assert completed == []
    assert record.third is None


def test_transport_failure_is_logged_only(caplog):
    remote = FakeRemote(error=httpx.ConnectError("connection refused"))
    record = IdentifierRecord(id="local-id")

    with caplog.at_level(logging.INFO, logger="pubcid.adapters.sharedid_client"):
        completed = run_sync(SharedIdClient(client=remote.client()), record)

    assert completed == []
    assert record.third is None
    assert "failed to get id" in caplog.text


def test_error_status_is_a_transport_failure():
    remote = FakeRemote(status=503)
    record = IdentifierRecord(id="local-id")

    completed = run_sync(SharedIdClient(client=remote.client()), record)

    assert completed == []
    assert record.third is None


def test_fetch_raises_typed_errors():
    malformed = SharedIdClient(client=FakeRemote(body="{").client())
    down = SharedIdClient(client=FakeRemote(error=httpx.ReadTimeout("slow")).client())

    with pytest.raises(SyncResponseError):
        asyncio.run(malformed.fetch_shared_id())
    with pytest.raises(SyncTransportError):
        asyncio.run(down.fetch_shared_id())


def test_async_completion_is_awaited(sync_client):
    seen = []

    async def on_complete(record):
        await asyncio.sleep(0)
        seen.append(record.third)

    asyncio.run(sync_client.sync(IdentifierRecord(id="x"), on_complete))

    assert seen == ["abc123"]


def test_browser_cookies_are_forwarded(remote):
    client = SharedIdClient(client=remote.client()).with_cookies({"sharedid": "prev"})

    asyncio.run(client.sync(IdentifierRecord(id="x")))

    assert remote.requests[0].headers["cookie"] == "sharedid=prev"


def test_every_sync_call_issues_its_own_request(remote, sync_client):
    record = IdentifierRecord(id="x")

    async def fire_twice():
        await asyncio.gather(sync_client.sync(record), sync_client.sync(record))

    asyncio.run(fire_twice())

    assert len(remote.requests) == 2
