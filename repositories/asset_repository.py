import logging  # Import the logging module

import requests

import config
from domain.errors import AssetFetchError
from domain.models import CachedAsset


class HttpAssetFetcher:
    """
    Network side of the offline cache: fetches one static asset.
    Raises AssetFetchError on network failures and non-2xx answers.
    """
    def __init__(self, base_url=None, timeout=None):
        self.base_url = (base_url or config.ASSET_BASE_URL).rstrip('/')
        self.timeout = timeout if timeout is not None else config.REQUEST_TIMEOUT

    def __call__(self, path: str) -> CachedAsset:
        url = f"{self.base_url}{path}"
        try:
            resp = requests.get(url, timeout=self.timeout)
            resp.raise_for_status()
        except requests.exceptions.RequestException as e:
            logging.error(f"Error fetching asset {url}: {e}")
            raise AssetFetchError(f"Error fetching asset {path}: {e}")
        return CachedAsset(
            path=path,
            status_code=resp.status_code,
            content_type=resp.headers.get("Content-Type", "application/octet-stream"),
            content=resp.content,
        )
