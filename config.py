import os
from dataclasses import dataclass
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()

# Secrets (loaded from .env file)
AIRTABLE_API_KEY = os.getenv("AIRTABLE_API_KEY")
AIRTABLE_BASE_ID = os.getenv("AIRTABLE_BASE_ID")
AIRTABLE_TABLE_NAME = os.getenv("AIRTABLE_TABLE_NAME")

AIRTABLE_API_URL = os.getenv("AIRTABLE_API_URL", "https://api.airtable.com/v0")

# Proxy server
API_ROUTE = "/api/anime"
PROXY_HOST = os.getenv("PROXY_HOST", "127.0.0.1")
PROXY_PORT = int(os.getenv("PROXY_PORT", "8000"))

# Client side: where the proxy lives
API_ENDPOINT = os.getenv("API_ENDPOINT", f"http://localhost:{PROXY_PORT}{API_ROUTE}")

# Seconds; leave unset to use the network stack defaults
REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT")) if os.getenv("REQUEST_TIMEOUT") else None

ANIME_URL_TEMPLATE = os.getenv("ANIME_URL_TEMPLATE", "https://animepahe.si/a/{id}")
LOCAL_CACHE_PATH = os.getenv("LOCAL_CACHE_PATH", os.path.join(os.path.expanduser("~"), ".anime_bookmark", "animeData.json"))
NOTIFICATION_SECONDS = 7

# Offline asset cache. Change cache version to force update
CACHE_NAME = "anime-bookmark-cache-v1"
ASSET_BASE_URL = os.getenv("ASSET_BASE_URL", "https://anime-bookmark-v2.vercel.app")
ASSET_CACHE_DIR = os.getenv("ASSET_CACHE_DIR", os.path.join(os.path.expanduser("~"), ".anime_bookmark", "caches"))
ASSETS_TO_CACHE = [
    "/anime_bookmark_v2/",
    "/anime_bookmark_v2/index.html",
    "/anime_bookmark_v2/styles2.css",
    "/anime_bookmark_v2/script.js",
    "/anime_bookmark_v2/checkbox.css",
    "/anime_bookmark_v2/abm192.png",
    "/anime_bookmark_v2/abm512.png",
    "/anime_bookmark_v2/manifest.json",
]


@dataclass(frozen=True)
class ProxyConfig:
    """
    Everything the record proxy needs to reach the Airtable table.
    Built once at startup and handed to the proxy; values may be missing,
    in which case the proxy refuses every request.
    """
    api_key: Optional[str]
    base_id: Optional[str]
    table_name: Optional[str]
    api_url: str = "https://api.airtable.com/v0"
    timeout: Optional[float] = None

    def missing_fields(self) -> List[str]:
        required = {
            "AIRTABLE_API_KEY": self.api_key,
            "AIRTABLE_BASE_ID": self.base_id,
            "AIRTABLE_TABLE_NAME": self.table_name,
        }
        return [name for name, value in required.items() if not value]

    @property
    def is_complete(self) -> bool:
        return not self.missing_fields()

    @property
    def table_url(self) -> str:
        return f"{self.api_url.rstrip('/')}/{self.base_id}/{self.table_name}"


def load_proxy_config() -> ProxyConfig:
    return ProxyConfig(
        api_key=AIRTABLE_API_KEY,
        base_id=AIRTABLE_BASE_ID,
        table_name=AIRTABLE_TABLE_NAME,
        api_url=AIRTABLE_API_URL,
        timeout=REQUEST_TIMEOUT,
    )
