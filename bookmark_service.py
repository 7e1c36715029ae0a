import logging
import time
import unicodedata
import webbrowser
from dataclasses import dataclass
from typing import Callable, List, Optional

import config
from domain.entry_cache import EntryCache
from domain.errors import ProxyRequestError, ValidationError
from domain.models import Entry, EntryLink, OperationResult
from repositories.proxy_repository import ProxyRepository


def title_sort_key(title: str):
    """
    Locale-aware ordering key: case and accents only break ties, so
    "apple" < "banana" < "Banana" and "Élan" sits next to "Elan".
    """
    decomposed = unicodedata.normalize("NFKD", title)
    base = "".join(c for c in decomposed if not unicodedata.combining(c))
    return base.casefold(), title.casefold(), title.swapcase()


@dataclass
class EntryForm:
    """Text the user has typed for a new entry."""
    external_id: str = ""
    title: str = ""

    def clear(self):
        self.external_id = ""
        self.title = ""


@dataclass
class Notification:
    message: str
    expires_at: float


class BookmarkService:
    """
    The client side of the bookmark list.
    Keeps the in-memory entry list in step with the proxy, persists it through
    an EntryCache and mediates every mutation. Flows never raise: they return
    an OperationResult and leave the last-known-good list alone on failure.
    """
    def __init__(self, proxy_repo: ProxyRepository, entry_cache: EntryCache, clock: Callable[[], float] = time.monotonic):
        self.proxy_repo = proxy_repo
        self.entry_cache = entry_cache
        self.clock = clock
        self.entries: List[Entry] = []
        self.form = EntryForm()
        self.checklist_open = False
        self.notification: Optional[Notification] = None

    # --- Loading and syncing ---

    def load_cached(self) -> List[EntryLink]:
        cached = self.entry_cache.load()
        if cached:
            self.entries = cached
            logging.info(f"Loaded {len(cached)} entries from the local cache.")
        return self.render()

    def start(self) -> OperationResult:
        """Cache-first startup: show what is stored, then refresh from the proxy."""
        self.load_cached()
        return self.refresh()

    def refresh(self, force: bool = False) -> OperationResult:
        try:
            records = self.proxy_repo.fetch_records()
            new_entries = [Entry.from_record(record) for record in records]
        except (ProxyRequestError, AttributeError, TypeError) as e:
            logging.error(f"Error fetching anime data: {e}")
            return OperationResult(ok=False, error=e)

        if new_entries == self.entries and not force:
            return OperationResult(ok=True, changed=False)

        self.entries = new_entries
        try:
            self.entry_cache.save(self.entries)
        except OSError as e:
            logging.warning(f"Could not persist the entry cache: {e}")
        logging.info(f"Entry list updated ({len(self.entries)} entries).")
        return OperationResult(ok=True, changed=True)

    # --- Rendering ---

    def render(self) -> List[EntryLink]:
        ordered = sorted(self.entries, key=lambda e: title_sort_key(e.title))
        return [EntryLink(title=e.title, url=e.url, record_id=e.record_id) for e in ordered]

    @staticmethod
    def open_entry(link: EntryLink, opener: Callable[[str], object] = webbrowser.open_new_tab):
        opener(link.url)

    # --- Create flow ---

    def add_entry(self, external_id, title) -> OperationResult:
        external_id = str(external_id or "").strip()
        title = str(title or "").strip()
        if not external_id or not title:
            return OperationResult(ok=False, error=ValidationError("Both id and title are required."))

        try:
            self.proxy_repo.create_entry(external_id, title)
        except ProxyRequestError as e:
            logging.error(f"Error adding anime: {e}")
            return OperationResult(ok=False, error=e)

        self.refresh(force=True)
        message = f"{title} added to the list!"
        self.notification = Notification(message, self.clock() + config.NOTIFICATION_SECONDS)
        return OperationResult(ok=True, message=message, changed=True)

    def submit_form(self) -> OperationResult:
        result = self.add_entry(self.form.external_id, self.form.title)
        if result.ok:
            self.form.clear()
        return result

    def active_notification(self) -> Optional[str]:
        """The confirmation message, or None once it has dismissed itself."""
        if self.notification and self.clock() >= self.notification.expires_at:
            self.notification = None
        return self.notification.message if self.notification else None

    # --- Delete flow ---

    def open_delete_checklist(self) -> List[EntryLink]:
        self.checklist_open = True
        return [EntryLink(title=e.title, url=e.url, record_id=e.record_id) for e in self.entries]

    def close_delete_checklist(self):
        self.checklist_open = False

    def delete_prompt(self, record_ids: List[str]) -> str:
        titles = {e.record_id: e.title for e in self.entries}
        names = "\n".join(f"- {titles.get(record_id, record_id)}" for record_id in record_ids)
        return f"Do you want to delete the Anime:\n{names}"

    def delete_entries(self, record_ids: List[str], confirm: Callable[[str], bool]) -> OperationResult:
        """
        Deletes the selected records once `confirm` has acknowledged a prompt
        naming them. The local list only changes after the proxy succeeds.
        """
        record_ids = [r for r in record_ids if r]
        if not record_ids:
            return OperationResult(ok=False, error=ValidationError("No entries selected."))
        if not confirm(self.delete_prompt(record_ids)):
            return OperationResult(ok=False, cancelled=True)

        try:
            self.proxy_repo.delete_entries(record_ids)
        except ProxyRequestError as e:
            logging.error(f"Error deleting anime: {e}")
            return OperationResult(ok=False, error=e)

        self.refresh(force=True)
        self.checklist_open = False
        return OperationResult(ok=True, message=f"Deleted {len(record_ids)} entries.", changed=True)
