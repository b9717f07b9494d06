import logging
from typing import Any, Dict, List, Optional

import httpx

from app.core.config import settings
from app.workflow.errors import (
    Forbidden,
    NotFound,
    ServerUnavailable,
    TransportError,
    Unauthorized,
    UnknownTransportError,
)
from app.workflow.records import DocumentRecord, FileUpload
from app.workflow.session import SessionContext
from app.workflow.status import DocumentStatus
from app.workflow.store import RecordStore

logger = logging.getLogger(__name__)

_UNAVAILABLE_STATUSES = {500, 502, 503, 504}


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if body.get("detail"):
            return str(body["detail"])
    return response.reason_phrase


# Turns a non-2xx response into the matching TransportError
def raise_for_transport(response: httpx.Response) -> None:
    if response.is_success:
        return
    message = _error_message(response)
    code = response.status_code
    if code == 401:
        raise Unauthorized(message, status_code=code)
    # Authenticated but not allowed; a new token will not change that
    if code == 403:
        raise Forbidden(message, status_code=code)
    if code == 404:
        raise NotFound(message, status_code=code)
    if code in _UNAVAILABLE_STATUSES:
        raise ServerUnavailable(message, status_code=code)
    raise UnknownTransportError(message, status_code=code)


class HttpRecordStore(RecordStore):
    """Record store backed by the portal REST API.

    Bearer auth comes from the SessionContext; an expired session fails fast
    with Unauthorized before any request is sent.
    """

    def __init__(
        self,
        session: SessionContext,
        base_url: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
    ):
        self.session = session
        self.base_url = (base_url or settings.PORTAL_API_URL).rstrip("/")
        self._client = client or httpx.AsyncClient(base_url=self.base_url, timeout=timeout)
        self._owns_client = client is None

    async def aclose(self):
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.aclose()

    def _headers(self) -> Dict[str, str]:
        if self.session.is_expired():
            raise Unauthorized("Session expired, please log in again")
        headers = {"Accept": "application/json"}
        if self.session.token:
            headers["Authorization"] = f"Bearer {self.session.token}"
        return headers

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        headers = self._headers()
        try:
            response = await self._client.request(method, path, headers=headers, **kwargs)
        except httpx.TimeoutException as e:
            logger.warning(f"{method} {path} timed out: {e}")
            raise ServerUnavailable(f"Request timed out: {e}") from e
        except httpx.TransportError as e:
            logger.warning(f"{method} {path} failed to connect: {e}")
            raise ServerUnavailable(f"Portal API unreachable: {e}") from e

        try:
            raise_for_transport(response)
        except TransportError as e:
            logger.warning(f"{method} {path} -> {response.status_code} ({e.code}): {e.message}")
            raise

        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    async def fetch_records(self, student_id: str) -> List[DocumentRecord]:
        try:
            data = await self._request("GET", f"/api/students/{student_id}/documents")
        except NotFound:
            # nothing stored yet, every document is pending
            return []
        return [DocumentRecord.model_validate(item) for item in data or []]

    async def get_record(self, record_id: str) -> DocumentRecord:
        data = await self._request("GET", f"/api/documents/{record_id}")
        return DocumentRecord.model_validate(data)

    async def upsert_upload(self, student_id: str, document_type: str, upload: FileUpload) -> DocumentRecord:
        data = await self._request(
            "POST",
            f"/api/students/{student_id}/documents",
            data={"documentType": document_type},
            files={"file": (upload.filename, upload.content, upload.content_type or "application/octet-stream")},
        )
        return DocumentRecord.model_validate(data)

    async def update_status(self, record_id, status, remarks=None, reviewed_by=None, reviewed_at=None) -> DocumentRecord:
        status = DocumentStatus(status)
        if status == DocumentStatus.reviewing:
            data = await self._request("POST", f"/api/admin/documents/{record_id}/begin-review")
        elif status in (DocumentStatus.approved, DocumentStatus.rejected):
            data = await self._request(
                "POST",
                f"/api/admin/documents/{record_id}/review",
                json={"status": status.value, "remarks": remarks or ""},
            )
        else:
            raise ValueError(f"Status {status.value} cannot be set through a review")
        return DocumentRecord.model_validate(data)

    async def delete_student_records(self, student_id: str) -> int:
        data = await self._request("DELETE", f"/api/admin/students/{student_id}")
        return int((data or {}).get("deletedDocuments", 0))
