import os
import sys
from unittest.mock import MagicMock

from fastapi.testclient import TestClient

# Add the project root to the Python path
sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), '..'))

from config import API_ROUTE, ProxyConfig
from proxy_app import create_app
from proxy_service import RecordProxy


class FakeAirtable:
    """Stands in for AirtableRepository, assigning record ids like Airtable does."""

    def __init__(self):
        self.records = []
        self.counter = 0

    def list_records(self):
        return 200, {"records": [dict(r) for r in self.records]}

    def create_record(self, external_id, title):
        self.counter += 1
        record = {
            "id": f"rec{self.counter:03d}",
            "createdTime": "2026-10-19T00:00:00.000Z",
            "fields": {"id": external_id, "title": title},
        }
        self.records.append(record)
        return 200, {"records": [record]}

    def delete_records(self, record_ids):
        self.records = [r for r in self.records if r["id"] not in record_ids]
        return 200, {"records": [{"id": record_id, "deleted": True} for record_id in record_ids]}


def build_client(airtable_repo, proxy_config=None):
    proxy_config = proxy_config or ProxyConfig(api_key="key123", base_id="appBase", table_name="Anime")
    return TestClient(create_app(RecordProxy(airtable_repo, proxy_config)))


def test_create_list_delete_cycle():
    client = build_client(FakeAirtable())

    created = client.post(API_ROUTE, json={"id": "12345", "title": "Frieren"})
    assert created.status_code == 200
    record_id = created.json()["records"][0]["id"]
    assert record_id == "rec001"

    listed = client.get(API_ROUTE).json()["records"]
    assert {"id": "12345", "title": "Frieren"} in [r["fields"] for r in listed]
    assert record_id in [r["id"] for r in listed]

    deleted = client.request("DELETE", API_ROUTE, json={"recordIds": [record_id]})
    assert deleted.status_code == 200

    listed = client.get(API_ROUTE).json()["records"]
    assert record_id not in [r["id"] for r in listed]


def test_invalid_create_does_not_create_anything():
    airtable = FakeAirtable()
    client = build_client(airtable)

    response = client.post(API_ROUTE, json={"id": "12345"})

    assert response.status_code == 400
    assert response.json() == {"error": "Missing id or title for POST request."}
    assert airtable.records == []


def test_empty_delete_does_not_delete_anything():
    airtable = FakeAirtable()
    airtable.create_record("1", "Mushishi")
    client = build_client(airtable)

    response = client.request("DELETE", API_ROUTE, json={"recordIds": []})
    assert response.status_code == 400
    response = client.request("DELETE", API_ROUTE)
    assert response.status_code == 400
    assert len(airtable.records) == 1


def test_malformed_json_body_is_400():
    client = build_client(FakeAirtable())

    response = client.post(API_ROUTE, content=b"{not json", headers={"Content-Type": "application/json"})

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid JSON format in request body."}


def test_preflight_has_cors_headers_and_no_body():
    client = build_client(FakeAirtable())

    response = client.options(API_ROUTE)

    assert response.status_code == 200
    assert response.content == b""
    assert response.headers["access-control-allow-origin"] == "*"
    assert response.headers["access-control-allow-methods"] == "GET, POST, DELETE, OPTIONS"


def test_other_methods_get_error_body():
    client = build_client(FakeAirtable())

    response = client.put(API_ROUTE, json={"id": "1", "title": "x"})

    assert response.status_code == 405
    assert response.json() == {"error": "Method Not Allowed"}


def test_missing_config_never_reaches_airtable():
    airtable_repo = MagicMock()
    client = build_client(airtable_repo, ProxyConfig(api_key="key", base_id=None, table_name="Anime"))

    response = client.get(API_ROUTE)

    assert response.status_code == 500
    assert response.json() == {"error": "Airtable configuration missing on server."}
    airtable_repo.list_records.assert_not_called()


def test_missing_config_wins_over_malformed_body():
    airtable_repo = MagicMock()
    client = build_client(airtable_repo, ProxyConfig(api_key=None, base_id=None, table_name=None))

    response = client.post(API_ROUTE, content=b"{not json", headers={"Content-Type": "application/json"})

    assert response.status_code == 500
    assert response.json() == {"error": "Airtable configuration missing on server."}
    assert "access-control-allow-origin" not in response.headers
    airtable_repo.create_record.assert_not_called()
