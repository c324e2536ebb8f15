"""
Remote resource client for the CMS REST API.
Wraps list/get/create/update/delete of one collection and collapses every
failure (transport, HTTP status, bad JSON, unexpected shape) into RequestFailed.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Generic, List, Optional, Sequence, Tuple, Type, TypeVar
import json
import logging

import httpx
from pydantic import ValidationError

from app.schemas import ApiRecord, PhotoEvent, PressRelease, SliderItem, SliderReorderRequest, Video

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=ApiRecord)

# (field name, (filename, content, content type)) as accepted by httpx
FileField = Tuple[str, Tuple[str, bytes, str]]


class RequestFailed(Exception):
    """A CMS API call did not produce a usable response."""

    def __init__(self, action: str, reason: str, status_code: Optional[int] = None):
        self.action = action
        self.reason = reason
        self.status_code = status_code
        super().__init__(f"{action} failed: {reason}")


def encode_form_value(value: Any) -> str:
    """Encode a draft value as a multipart text field."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple, dict)):
        return json.dumps(value)
    return str(value)


@dataclass
class Payload:
    """
    Request body for create/update calls.
    Sent as JSON unless file attachments are present, then as multipart form-data.
    `repeated` holds multipart fields sent once per value (e.g. captions).
    """
    data: Dict[str, Any] = field(default_factory=dict)
    files: List[FileField] = field(default_factory=list)
    repeated: Dict[str, List[str]] = field(default_factory=dict)

    @property
    def is_multipart(self) -> bool:
        return bool(self.files)

    def request_kwargs(self) -> Dict[str, Any]:
        if not self.is_multipart:
            body = dict(self.data)
            body.update(self.repeated)
            return {"json": body}

        form: Dict[str, Any] = {
            key: encode_form_value(value)
            for key, value in self.data.items()
            if value is not None
        }
        for key, values in self.repeated.items():
            form[key] = [encode_form_value(v) for v in values]
        return {"data": form, "files": self.files}


class RemoteResourceClient(Generic[RecordT]):
    """
    Client for one CMS collection (e.g. /press).

    Args:
        http: Shared AsyncClient, already bound to the API base URL
        path: Collection path relative to the base URL
        model: Record schema used to parse responses
        envelope: Key wrapping single-record responses, if the API uses one
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        path: str,
        model: Type[RecordT],
        envelope: Optional[str] = None,
    ):
        self.http = http
        self.path = "/" + path.strip("/")
        self.model = model
        self.envelope = envelope

    def _item_url(self, record_id: str) -> str:
        return f"{self.path}/{record_id}"

    async def _request(self, action: str, method: str, url: str, **kwargs) -> Any:
        try:
            response = await self.http.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"{action}: {method} {url} transport error: {str(e)}")
            raise RequestFailed(action, f"transport error: {type(e).__name__}") from e

        if not response.is_success:
            logger.error(f"{action}: {method} {url} returned HTTP {response.status_code}")
            raise RequestFailed(action, f"HTTP {response.status_code}", response.status_code)

        logger.debug(f"{action}: {method} {url} -> {response.status_code}")

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            logger.error(f"{action}: {method} {url} returned a non-JSON body")
            raise RequestFailed(action, "response is not valid JSON") from e

    def _parse(self, action: str, data: Any) -> RecordT:
        if self.envelope and isinstance(data, dict) and self.envelope in data:
            data = data[self.envelope]
        try:
            return self.model.model_validate(data)
        except ValidationError as e:
            logger.error(f"{action}: unexpected {self.model.__name__} shape: {e.errors()}")
            raise RequestFailed(action, f"unexpected response ({e.error_count()} invalid fields)") from e

    async def list(self) -> List[RecordT]:
        action = f"list {self.path}"
        data = await self._request(action, "GET", self.path)
        if not isinstance(data, list):
            raise RequestFailed(action, "expected a JSON array")
        return [self._parse(action, item) for item in data]

    async def get(self, record_id: str) -> RecordT:
        action = f"get {self.path}/{record_id}"
        data = await self._request(action, "GET", self._item_url(record_id))
        return self._parse(action, data)

    async def create(self, payload: Payload) -> RecordT:
        action = f"create {self.path}"
        data = await self._request(action, "POST", self.path, **payload.request_kwargs())
        return self._parse(action, data)

    async def update(self, record_id: str, payload: Payload) -> Optional[RecordT]:
        """
        Replace some or all fields of a record.
        Returns the updated record, or None when the API answers without a body.
        """
        action = f"update {self.path}/{record_id}"
        data = await self._request(action, "PUT", self._item_url(record_id), **payload.request_kwargs())
        if data is None:
            return None
        return self._parse(action, data)

    async def remove(self, record_id: str) -> None:
        await self._request(f"delete {self.path}/{record_id}", "DELETE", self._item_url(record_id))

    async def reorder(self, ids: Sequence[str]) -> None:
        """Persist a full display order in one call (PUT {path}/reorder)."""
        body = SliderReorderRequest(ids=list(ids))
        await self._request(f"reorder {self.path}", "PUT", f"{self.path}/reorder", json=body.model_dump())

    async def fetch_asset(self, url: str) -> Tuple[bytes, str]:
        """
        Download a server-generated asset (e.g. a QR code image) by absolute URL.

        Returns:
            Tuple[bytes, str]: Asset content and its content type
        """
        action = f"download {url}"
        try:
            response = await self.http.get(url, headers={"Accept": "*/*"}, follow_redirects=True)
        except httpx.HTTPError as e:
            logger.error(f"{action}: transport error: {str(e)}")
            raise RequestFailed(action, f"transport error: {type(e).__name__}") from e
        if not response.is_success:
            raise RequestFailed(action, f"HTTP {response.status_code}", response.status_code)
        content_type = response.headers.get("content-type", "application/octet-stream")
        return response.content, content_type.split(";")[0].strip()


def photo_events_client(http: httpx.AsyncClient) -> RemoteResourceClient[PhotoEvent]:
    return RemoteResourceClient(http, "/photos", PhotoEvent)


def press_releases_client(http: httpx.AsyncClient) -> RemoteResourceClient[PressRelease]:
    return RemoteResourceClient(http, "/press", PressRelease)


def sliders_client(http: httpx.AsyncClient) -> RemoteResourceClient[SliderItem]:
    # Slider create/update answer {"slider": {...}}
    return RemoteResourceClient(http, "/sliders", SliderItem, envelope="slider")


def videos_client(http: httpx.AsyncClient) -> RemoteResourceClient[Video]:
    return RemoteResourceClient(http, "/videos", Video)
