import logging  # Import the logging module
from typing import Any, List, Tuple

import requests

from config import ProxyConfig
from domain.errors import UpstreamError


class AirtableRepository:
    """
    Repository for interacting with one Airtable table.
    This class is a thin wrapper around the requests library: every method
    makes exactly one call and hands back (status_code, parsed body) untouched.
    Raises UpstreamError when Airtable cannot be reached or the body is not JSON.
    """
    def __init__(self, proxy_config: ProxyConfig):
        self.config = proxy_config

    def _headers(self, json_body=False):
        headers = {"Authorization": f"Bearer {self.config.api_key}"}
        if json_body:
            headers["Content-Type"] = "application/json"
        return headers

    def _send(self, method, params=None, payload=None) -> Tuple[int, Any]:
        try:
            resp = requests.request(
                method,
                self.config.table_url,
                headers=self._headers(json_body=payload is not None),
                params=params,
                json=payload,
                timeout=self.config.timeout,
            )
        except requests.exceptions.RequestException as e:
            logging.error(f"Network error communicating with Airtable ({method}): {e}")
            raise UpstreamError(f"Network error communicating with Airtable: {e}")

        try:
            data = resp.json()
        except ValueError as e:
            logging.error(f"Airtable returned a non-JSON body ({method}, status {resp.status_code}): {e}")
            raise UpstreamError(f"Airtable returned a non-JSON body: {e}")
        return resp.status_code, data

    def list_records(self) -> Tuple[int, Any]:
        """Fetches the table as Airtable returns it. No paging or filtering."""
        return self._send("GET")

    def create_record(self, external_id, title) -> Tuple[int, Any]:
        payload = {
            "records": [{"fields": {"id": external_id, "title": title}}],
            "typecast": True,
        }
        return self._send("POST", payload=payload)

    def delete_records(self, record_ids: List[str]) -> Tuple[int, Any]:
        """
        Deletes several records in one call.
        Airtable takes the ids as repeated records[] query parameters.
        """
        params = [("records[]", record_id) for record_id in record_ids]
        return self._send("DELETE", params=params)
