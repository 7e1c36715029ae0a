from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

import config


@dataclass
class Entry:
    """
    A bookmarked title.
    external_id points at the viewing site, record_id is assigned by Airtable
    and stays None until the entry has been read back from the table.
    """
    external_id: Union[str, int]
    title: str
    record_id: Optional[str] = None

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Entry":
        """Maps an Airtable record ({"id": ..., "fields": {...}}) to an Entry."""
        fields = record.get("fields") or {}
        return cls(
            external_id=fields.get("id"),
            title=fields.get("title") or "",
            record_id=record.get("id"),
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Entry":
        return cls(
            external_id=data.get("id"),
            title=data.get("title") or "",
            record_id=data.get("recordId"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.external_id, "title": self.title, "recordId": self.record_id}

    @property
    def url(self) -> str:
        return config.ANIME_URL_TEMPLATE.format(id=self.external_id)


@dataclass(frozen=True)
class EntryLink:
    """One rendered row: the title shown and the link it opens."""
    title: str
    url: str
    record_id: Optional[str] = None


@dataclass
class OperationResult:
    """
    Outcome of a client flow. Failures are carried in `error` instead of
    being raised so the caller can decide how to report them.
    """
    ok: bool
    error: Optional[Exception] = None
    message: Optional[str] = None
    changed: bool = False
    cancelled: bool = False


@dataclass
class CachedAsset:
    """A static asset response as stored in an offline cache."""
    path: str
    status_code: int
    content_type: str
    content: bytes
