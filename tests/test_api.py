import json
from urllib.parse import quote, unquote

import pytest
from fastapi.testclient import TestClient

from pubcid.adapters.sharedid_client import SHAREDID_OPT_OUT_VALUE, SHAREDID_URL, SharedIdClient
from pubcid.config import PubCidSettings, get_settings
from pubcid.dependencies import get_http_client, get_sync_client
from pubcid.exceptions import CookieStorageError
from pubcid.main import create_app

from conftest import FakeRemote

PIXEL = "https://x.test/px"


def make_client(remote: FakeRemote, **settings) -> TestClient:
    app = create_app()
    http_client = remote.client()
    app.dependency_overrides[get_settings] = lambda: PubCidSettings(**settings)
    app.dependency_overrides[get_http_client] = lambda: http_client
    app.dependency_overrides[get_sync_client] = lambda: SharedIdClient(client=http_client)
    return TestClient(app)


def stored_cookie(record: dict) -> str:
    return "_pubcid=" + quote(json.dumps(record), safe="")


def test_first_visit_issues_identifier_and_syncs(remote):
    client = make_client(remote)

    response = client.get("/api/v1/pubcid")

    assert response.status_code == 200
    body = response.json()["pubcid"]
    assert len(body["id"]) == 36
    assert body["third"] == "abc123"
    assert json.loads(unquote(response.cookies["_pubcid"])) == body
    assert response.cookies["sharedid"] == "abc123"
    assert remote.urls() == [SHAREDID_URL]


def test_first_visit_with_pixel_notifies(remote):
    client = make_client(remote, pubcid_pixel_url=PIXEL)

    body = client.get("/api/v1/pubcid").json()["pubcid"]

    assert f"{PIXEL}?id=pubcid%3A{body['id']}" in remote.urls()


def test_opted_out_visitor_keeps_local_id_only():
    remote = FakeRemote(body=json.dumps({"sharedId": SHAREDID_OPT_OUT_VALUE}))
    client = make_client(remote)

    response = client.get("/api/v1/pubcid")

    body = response.json()["pubcid"]
    assert "third" not in body
    assert "sharedid" not in response.cookies


def test_stored_identifier_is_returned_without_extend(remote):
    client = make_client(remote)

    response = client.get(
        "/api/v1/pubcid", headers={"Cookie": stored_cookie({"id": "stored-id"})}
    )

    assert response.json() == {"pubcid": {"id": "stored-id"}}
    assert remote.requests == []
    assert "_pubcid" not in response.cookies


def test_extend_enriches_stored_identifier(remote):
    client = make_client(remote, pubcid_extend=True)

    response = client.get(
        "/api/v1/pubcid", headers={"Cookie": stored_cookie({"id": "stored-id"})}
    )

    assert response.json() == {"pubcid": {"id": "stored-id", "third": "abc123"}}
    assert response.cookies["sharedid"] == "abc123"


def test_extend_skips_sync_when_already_enriched(remote):
    client = make_client(remote, pubcid_extend=True, pubcid_pixel_url=PIXEL)

    response = client.get(
        "/api/v1/pubcid",
        headers={"Cookie": stored_cookie({"id": "stored-id", "third": "t"})},
    )

    assert response.json() == {"pubcid": {"id": "stored-id", "third": "t"}}
    assert remote.urls() == [f"{PIXEL}?id=pubcid%3Astored-id"]


def test_no_device_access_persists_nothing(remote):
    client = make_client(remote, device_access=False)

    response = client.get("/api/v1/pubcid")

    assert response.json() == {"pubcid": {"third": "abc123"}}
    assert "set-cookie" not in response.headers
    assert remote.urls() == [SHAREDID_URL]


def test_no_device_access_and_opt_out_returns_nothing():
    remote = FakeRemote(body=json.dumps({"sharedId": SHAREDID_OPT_OUT_VALUE}))
    client = make_client(remote, device_access=False)

    response = client.get("/api/v1/pubcid")

    assert response.json() == {"pubcid": None}
    assert "set-cookie" not in response.headers


def test_sync_outage_still_issues_local_id():
    remote = FakeRemote(status=500)
    client = make_client(remote)

    response = client.get("/api/v1/pubcid")

    assert response.status_code == 200
    body = response.json()["pubcid"]
    assert "third" not in body
    assert "_pubcid" in response.cookies


def test_health(remote):
    body = make_client(remote).get("/api/v1/health").json()

    assert body["status"] == "healthy"
    assert body["sharedid_url"] == SHAREDID_URL


def test_root_lists_endpoints(remote):
    body = make_client(remote).get("/").json()

    assert body["module"] == "pubCommonId"
    assert body["api"]["v1"]["pubcid"] == "/api/v1/pubcid"


def test_domain_errors_map_to_http_status():
    app = create_app()

    @app.get("/broken")
    async def broken():
        raise CookieStorageError("_pubcid", "bad json")

    response = TestClient(app).get("/broken")

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "PUBCID_COOKIE_ERROR"


def test_production_requires_https_sharedid():
    with pytest.raises(ValueError):
        PubCidSettings(app_env="production", sharedid_url="http://id.sharedid.org/id")


def test_submodule_config_from_settings():
    config = PubCidSettings(pubcid_extend=True, pubcid_pixel_url=PIXEL).submodule_config()

    assert config.create is True
    assert config.extend is True
    assert config.pixel_url == PIXEL
