"""
Photo event console routes.
List/search, create with image uploads, delete, edit lookup and QR code download.
"""
from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Request, Response, UploadFile, status
from typing import List
import logging
import re
from urllib.parse import quote

import httpx

from app.api_client import get_http_client
from app.controllers.form_controller import DraftIncomplete, PhotoEventForm
from app.controllers.list_controller import ListController
from app.routes.common import draft_rejected, media_rejected, not_found, raise_for_failure, require_confirmation
from app.schemas import DeleteResponse, EditTarget, ListPage, PhotoEvent, RecordResponse
from app.services.media import MediaRejected, get_media_uploader
from app.services.resource_client import RemoteResourceClient, RequestFailed, photo_events_client
from app.utils.auth import verify_cms_token
from app.utils.rate_limit import RATE_LIMITS, limiter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/events", tags=["Events"], dependencies=[Depends(verify_cms_token)])

EDIT_ROUTE = "/users/engagement/edit/{id}"


def get_events_client(http: httpx.AsyncClient = Depends(get_http_client)) -> RemoteResourceClient[PhotoEvent]:
    return photo_events_client(http)


def get_events_list(client: RemoteResourceClient[PhotoEvent] = Depends(get_events_client)) -> ListController[PhotoEvent]:
    return ListController(
        client,
        noun="event",
        plural="events",
        search_fields=("title", "event_type"),
        edit_route=EDIT_ROUTE,
    )


def qr_code_filename(title: str) -> str:
    """Download name for an event's QR code: spaces become underscores."""
    stem = re.sub(r"\s+", "_", title.strip()).replace('"', "")
    return f"{stem or 'event'}-QR.png"


def attachment_disposition(filename: str) -> str:
    """
    Content-Disposition for a download.
    Header values must be latin-1, so non-ASCII names go in filename* (RFC 6266).
    """
    fallback = filename.encode("ascii", "ignore").decode("ascii") or "download"
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename, safe='')}"


@router.get("", response_model=ListPage[PhotoEvent])
async def list_events(
    q: str = Query("", description="Case-insensitive match on title or event type"),
    controller: ListController[PhotoEvent] = Depends(get_events_list),
):
    """
    List photo events, optionally filtered by a search query.

    Raises:
        HTTPException: 502 if the CMS API cannot be read
    """
    if not await controller.load():
        raise_for_failure(controller)
    items = controller.search(q)
    return ListPage(items=items, total_count=len(controller.items), search_query=controller.search_query)


@router.post("", response_model=RecordResponse[PhotoEvent], status_code=status.HTTP_201_CREATED)
@limiter.limit(RATE_LIMITS["upload"])
async def create_event(
    request: Request,
    title: str = Form(...),
    event_type: str = Form(..., alias="eventType"),
    date: str = Form(...),
    images: List[UploadFile] = File(...),
    captions: List[str] = Form([]),
    client: RemoteResourceClient[PhotoEvent] = Depends(get_events_client),
    uploader=Depends(get_media_uploader),
):
    """
    Create a photo event from a multipart form.
    Images are paired with captions by position.

    Raises:
        HTTPException: 400 if the form is incomplete or a file is not an image,
            502 if any upload or the create call fails (nothing is created)
    """
    with PhotoEventForm(client, uploader) as form:
        form.update_fields(title=title, eventType=event_type, date=date)
        try:
            for index, upload in enumerate(images):
                content = await upload.read()
                caption = captions[index] if index < len(captions) else ""
                form.add_image(upload.filename, content, upload.content_type, caption=caption)
        except MediaRejected as e:
            raise media_rejected(e)

        try:
            event = await form.submit()
        except DraftIncomplete as e:
            raise draft_rejected(e)

        if event is None:
            raise_for_failure(form)
        return RecordResponse(item=event, notification=form.last_notification)


@router.get("/{event_id}/edit", response_model=EditTarget[PhotoEvent])
async def edit_event(
    event_id: str,
    controller: ListController[PhotoEvent] = Depends(get_events_list),
):
    """Resolve the edit page for an event and return the record to prefill it."""
    try:
        event = await controller.client.get(event_id)
    except RequestFailed as e:
        if e.status_code == status.HTTP_404_NOT_FOUND:
            raise not_found("event", event_id)
        controller.notify_error("Failed to load event", e)
        raise_for_failure(controller)
    return EditTarget(item=event, edit_path=controller.edit_path(event_id))


@router.get("/{event_id}/qr-code")
async def download_qr_code(
    event_id: str,
    client: RemoteResourceClient[PhotoEvent] = Depends(get_events_client),
):
    """
    Download the server-generated QR code of an event as a PNG attachment.

    Raises:
        HTTPException: 404 if the event has no QR code, 502 if it cannot be fetched
    """
    try:
        event = await client.get(event_id)
        if not event.qr_code:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"error": "QR code not available", "detail": f"Event {event_id} has no QR code"},
            )
        content, content_type = await client.fetch_asset(event.qr_code)
    except RequestFailed as e:
        logger.error(f"QR code download failed for event {event_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={"error": "Failed to download QR Code", "detail": str(e)},
        )

    filename = qr_code_filename(event.title)
    logger.info(f"Serving QR code for event {event_id} as {filename}")
    return Response(
        content=content,
        media_type=content_type if content_type.startswith("image/") else "image/png",
        headers={"Content-Disposition": attachment_disposition(filename)},
    )


@router.delete("/{event_id}", response_model=DeleteResponse)
async def delete_event(
    event_id: str,
    confirm: bool = Query(False, description="Must be true; answers the delete prompt"),
    controller: ListController[PhotoEvent] = Depends(get_events_list),
):
    """Delete a photo event after explicit confirmation."""
    require_confirmation(confirm, controller.delete_prompt)
    if not await controller.delete(event_id, confirm=lambda prompt: confirm):
        raise_for_failure(controller)
    notification = controller.last_notification
    return DeleteResponse(message=notification.description, id=event_id, notification=notification)
