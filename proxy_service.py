import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from config import ProxyConfig
from domain.errors import (
    BookmarkError,
    ConfigurationError,
    MethodNotAllowed,
    UpstreamError,
    ValidationError,
)
from repositories.airtable_repository import AirtableRepository

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


@dataclass
class ProxyResponse:
    status_code: int
    body: Optional[Any] = None
    headers: Dict[str, str] = field(default_factory=dict)


class RecordProxy:
    """
    Stateless translation of GET/POST/DELETE/OPTIONS into Airtable calls.
    Keeps the Airtable credentials on the server; the caller only ever sees
    Airtable's own response body and status, or an {"error": ...} body.
    """
    def __init__(self, airtable_repo: AirtableRepository, proxy_config: ProxyConfig):
        self.airtable_repo = airtable_repo
        self.config = proxy_config

    def check_config(self):
        missing = self.config.missing_fields()
        if missing:
            logging.error(f"Airtable environment variables are NOT set: {', '.join(missing)}")
            raise ConfigurationError("Airtable configuration missing on server.")

    def list(self) -> ProxyResponse:
        status, data = self.airtable_repo.list_records()
        return ProxyResponse(status, data)

    def create(self, external_id, title) -> ProxyResponse:
        if not external_id or not title:
            raise ValidationError("Missing id or title for POST request.")
        status, data = self.airtable_repo.create_record(external_id, title)
        logging.info(f"Created record for '{title}' (upstream status {status}).")
        return ProxyResponse(status, data)

    def delete(self, record_ids) -> ProxyResponse:
        if not record_ids or not isinstance(record_ids, list):
            raise ValidationError("No record IDs provided")
        status, data = self.airtable_repo.delete_records(record_ids)
        logging.info(f"Deleted {len(record_ids)} record(s) (upstream status {status}).")
        return ProxyResponse(status, data)

    def preflight(self) -> ProxyResponse:
        return ProxyResponse(200)

    def handle(self, method: str, body: Optional[Dict[str, Any]] = None) -> ProxyResponse:
        """
        Single entry point: dispatches on the HTTP method and turns every
        BookmarkError into an {"error": ...} response with its status code.
        """
        try:
            self.check_config()
        except ConfigurationError as e:
            return ProxyResponse(e.status_code, {"error": str(e)})

        if not isinstance(body, dict):
            body = {}
        method = method.upper()

        try:
            if method == "OPTIONS":
                response = self.preflight()
            elif method == "GET":
                response = self.list()
            elif method == "POST":
                response = self.create(body.get("id"), body.get("title"))
            elif method == "DELETE":
                response = self.delete(body.get("recordIds"))
            else:
                raise MethodNotAllowed("Method Not Allowed")
        except UpstreamError as e:
            logging.error(f"Record proxy error: {e}")
            response = ProxyResponse(e.status_code, {"error": "Internal Server Error"})
        except BookmarkError as e:
            response = ProxyResponse(e.status_code, {"error": str(e)})

        response.headers.update(CORS_HEADERS)
        return response
