import json
import logging
import threading
import time
from pathlib import Path
from typing import Any

import requests

from ..config import Config

logger = logging.getLogger(__name__)

API_URL = "https://api.contentful.com"
UPLOAD_URL = "https://upload.contentful.com"
CONTENT_TYPE_HEADER = "application/vnd.contentful.management.v1+json"


class StoreError(Exception):
    """A Content Management API request returned a non-success status."""

    def __init__(self, method: str, url: str, status_code: int, body: Any):
        self.method = method
        self.url = url
        self.status_code = status_code
        self.body = body
        message = body.get("message") if isinstance(body, dict) else body
        super().__init__(
            f"{method} {url} failed with HTTP {status_code}: {message}"
        )


# Exceptions a store call may raise. requests exceptions derive from OSError.
REMOTE_FAILURES = (StoreError, OSError, TimeoutError)


class ContentfulClient:
    """Blocking Content Management API client for one space environment."""

    def __init__(
        self,
        config: Config,
        api_url: str = API_URL,
        upload_url: str = UPLOAD_URL,
        processing_timeout: float = 30.0,
        poll_interval: float = 0.5,
    ):
        self.config = config
        self.api_url = api_url.rstrip("/")
        self.upload_url = upload_url.rstrip("/")
        self.processing_timeout = processing_timeout
        self.poll_interval = poll_interval
        self._thread_local = threading.local()

    @property
    def session(self) -> requests.Session:
        """Return the current thread's session."""
        return self._get_session()

    @property
    def environment_path(self) -> str:
        return (
            f"/spaces/{self.config.space_id}"
            f"/environments/{self.config.environment_id}"
        )

    def _get_session(self) -> requests.Session:
        """Get or create a thread-local requests.Session."""
        if not hasattr(self._thread_local, "session"):
            self._thread_local.session = self._create_session()
        return self._thread_local.session

    def _create_session(self) -> requests.Session:
        session = requests.Session()
        session.headers.update(
            {
                "Authorization": f"Bearer {self.config.access_token}",
                "Content-Type": CONTENT_TYPE_HEADER,
            }
        )
        return session

    def _request(
        self,
        method: str,
        path: str,
        *,
        base_url: str | None = None,
        params: dict[str, Any] | None = None,
        payload: Any = None,
        data: bytes | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """
        Make a request to the Content Management API and decode the JSON body.
        """
        url = f"{base_url or self.api_url}{path}"
        session = self._get_session()
        if data is None and payload is not None:
            data = json.dumps(payload).encode("utf-8")

        logger.debug("%s %s params=%s", method, url, params)
        response = session.request(
            method,
            url,
            params=params,
            data=data,
            headers=headers,
            timeout=(10, 60),
        )

        if not response.ok:
            try:
                body = response.json()
            except ValueError:
                body = response.text
            raise StoreError(method, url, response.status_code, body)

        if not response.content:
            return {}
        return response.json()

    def validate_connection(self) -> str:
        """
        Fetch the environment record and return its name.
        """
        result = self._request("GET", self.environment_path)
        return str(result.get("name", self.config.environment_id))

    # ------------------------------------------------------------------
    # Content types and listings
    # ------------------------------------------------------------------

    def get_content_types(self) -> list[dict[str, Any]]:
        """
        List every content type in the environment.
        """
        result = self._request(
            "GET",
            f"{self.environment_path}/content_types",
            params={"limit": 1000},
        )
        return result.get("items", [])

    def get_entries(
        self, skip: int, limit: int, order: str = "sys.createdAt"
    ) -> dict[str, Any]:
        """
        Get one page of entries.

        Returns:
            Collection dict with keys: items, total, skip, limit
        """
        return self._request(
            "GET",
            f"{self.environment_path}/entries",
            params={"skip": skip, "limit": limit, "order": order},
        )

    def get_assets(
        self, skip: int, limit: int, order: str = "sys.createdAt"
    ) -> dict[str, Any]:
        """
        Get one page of assets.
        """
        return self._request(
            "GET",
            f"{self.environment_path}/assets",
            params={"skip": skip, "limit": limit, "order": order},
        )

    # ------------------------------------------------------------------
    # Entries
    # ------------------------------------------------------------------

    def create_entry(
        self, content_type: str, fields: dict[str, Any]
    ) -> dict[str, Any]:
        """
        Create a new draft entry of the given content type.

        Raises:
            StoreError: If validation fails or the content type is unknown
        """
        return self._request(
            "POST",
            f"{self.environment_path}/entries",
            payload={"fields": fields},
            headers={"X-Contentful-Content-Type": content_type},
        )

    def update_entry(
        self, entry_id: str, version: int, fields: dict[str, Any]
    ) -> dict[str, Any]:
        """
        Replace the field map of an entry with optimistic locking.

        Raises:
            StoreError: On version conflict (HTTP 409) or validation failure
        """
        return self._request(
            "PUT",
            f"{self.environment_path}/entries/{entry_id}",
            payload={"fields": fields},
            headers={"X-Contentful-Version": str(version)},
        )

    def publish_entry(self, entry_id: str, version: int) -> dict[str, Any]:
        return self._request(
            "PUT",
            f"{self.environment_path}/entries/{entry_id}/published",
            headers={"X-Contentful-Version": str(version)},
        )

    def unpublish_entry(self, entry_id: str) -> dict[str, Any]:
        return self._request(
            "DELETE",
            f"{self.environment_path}/entries/{entry_id}/published",
        )

    def delete_entry(self, entry_id: str) -> None:
        self._request(
            "DELETE", f"{self.environment_path}/entries/{entry_id}"
        )

    # ------------------------------------------------------------------
    # Assets
    # ------------------------------------------------------------------

    def upload_file(self, path: Path) -> str:
        """
        Upload raw file bytes and return the upload id.
        """
        result = self._request(
            "POST",
            f"/spaces/{self.config.space_id}/uploads",
            base_url=self.upload_url,
            data=path.read_bytes(),
            headers={"Content-Type": "application/octet-stream"},
        )
        return result["sys"]["id"]

    def create_asset_from_file(
        self, path: Path, title: str, mime_type: str, locale: str
    ) -> dict[str, Any]:
        """
        Upload a local file and create an asset referencing the upload.

        Args:
            path: File to upload
            title: Asset title
            mime_type: MIME type recorded on the asset file
            locale: Locale tag for the title and file fields

        Returns:
            The unprocessed asset
        """
        upload_id = self.upload_file(path)
        fields = {
            "title": {locale: title},
            "file": {
                locale: {
                    "contentType": mime_type,
                    "fileName": path.name,
                    "uploadFrom": {
                        "sys": {
                            "type": "Link",
                            "linkType": "Upload",
                            "id": upload_id,
                        }
                    },
                }
            },
        }
        return self._request(
            "POST",
            f"{self.environment_path}/assets",
            payload={"fields": fields},
        )

    def get_asset(self, asset_id: str) -> dict[str, Any]:
        return self._request(
            "GET", f"{self.environment_path}/assets/{asset_id}"
        )

    def process_asset(
        self, asset_id: str, version: int, locale: str
    ) -> dict[str, Any]:
        """
        Trigger file processing for *locale* and wait until it finishes.

        Processing is asynchronous on the server side: the asset is polled
        until the file carries a ``url``.

        Raises:
            StoreError: If processing is rejected
            TimeoutError: If the file is not processed within the timeout
        """
        self._request(
            "PUT",
            f"{self.environment_path}/assets/{asset_id}/files/{locale}/process",
            headers={"X-Contentful-Version": str(version)},
        )

        deadline = time.monotonic() + self.processing_timeout
        while True:
            asset = self.get_asset(asset_id)
            file_field = asset.get("fields", {}).get("file", {}).get(locale, {})
            if file_field.get("url"):
                return asset
            if time.monotonic() >= deadline:
                raise TimeoutError(
                    f"Asset {asset_id} was not processed within "
                    f"{self.processing_timeout:.0f}s"
                )
            time.sleep(self.poll_interval)

    def publish_asset(self, asset_id: str, version: int) -> dict[str, Any]:
        return self._request(
            "PUT",
            f"{self.environment_path}/assets/{asset_id}/published",
            headers={"X-Contentful-Version": str(version)},
        )
