import logging  # Import the logging module
from typing import Any, Dict, List

import requests

import config
from domain.errors import ProxyRequestError


class ProxyRepository:
    """
    Repository the client uses to talk to the record proxy.
    This class is a thin wrapper around the requests library.
    Raises ProxyRequestError on network failures, non-2xx answers and
    bodies that are not JSON.
    """
    def __init__(self, endpoint=None, timeout=None):
        self.endpoint = endpoint or config.API_ENDPOINT
        self.timeout = timeout if timeout is not None else config.REQUEST_TIMEOUT

    def _request(self, method, payload=None):
        try:
            resp = requests.request(method, self.endpoint, json=payload, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logging.error(f"Network error calling the record proxy ({method}): {e}")
            raise ProxyRequestError(f"Network error calling the record proxy: {e}")

        if not resp.ok:
            raise ProxyRequestError(f"{method} failed with status: {resp.status_code}", resp.status_code)

        try:
            return resp.json()
        except ValueError as e:
            raise ProxyRequestError(f"{method} returned a non-JSON body: {e}", resp.status_code)

    def fetch_records(self) -> List[Dict[str, Any]]:
        """Returns the raw Airtable records behind the proxy."""
        data = self._request("GET")
        if not isinstance(data, dict) or not isinstance(data.get("records"), list):
            raise ProxyRequestError("GET returned a body without a records list")
        return data["records"]

    def create_entry(self, external_id, title):
        # Only the bare fields; the proxy adds the Airtable envelope and auth.
        return self._request("POST", {"id": external_id, "title": title})

    def delete_entries(self, record_ids: List[str]):
        return self._request("DELETE", {"recordIds": list(record_ids)})
