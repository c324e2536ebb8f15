"""
Press release console routes.
"""
from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from typing import List, Optional
import logging

import httpx

from app.api_client import get_http_client
from app.controllers.form_controller import DraftIncomplete, PressReleaseForm
from app.controllers.list_controller import ListController
from app.routes.common import (
    draft_rejected,
    media_rejected,
    not_found,
    parse_tags,
    raise_for_failure,
    require_confirmation,
)
from app.schemas import (
    ActiveStateResponse,
    ActiveToggleRequest,
    DeleteResponse,
    EditTarget,
    ListPage,
    PressRelease,
    RecordResponse,
)
from app.services.media import MediaRejected
from app.services.resource_client import RemoteResourceClient, RequestFailed, press_releases_client
from app.utils.auth import verify_cms_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/press", tags=["Press releases"], dependencies=[Depends(verify_cms_token)])


def get_press_client(http: httpx.AsyncClient = Depends(get_http_client)) -> RemoteResourceClient[PressRelease]:
    return press_releases_client(http)


def get_press_list(client: RemoteResourceClient[PressRelease] = Depends(get_press_client)) -> ListController[PressRelease]:
    return ListController(
        client,
        noun="press release",
        plural="press releases",
        search_fields=("title", "author"),
        edit_route="/users/press-release/edit/{id}",
    )


async def _submit_press_form(
    form: PressReleaseForm,
    title: str,
    date: str,
    content: str,
    source: str,
    author: str,
    tags: List[str],
    link: str,
    is_active: bool,
    thumbnail: Optional[UploadFile],
) -> RecordResponse[PressRelease]:
    form.update_fields(title=title, date=date, content=content, source=source, author=author, link=link, isActive=is_active)
    for tag in parse_tags(tags):
        form.add_tag(tag)

    if thumbnail is not None and thumbnail.filename:
        try:
            form.set_thumbnail(thumbnail.filename, await thumbnail.read(), thumbnail.content_type)
        except MediaRejected as e:
            raise media_rejected(e)

    try:
        record = await form.submit()
    except DraftIncomplete as e:
        raise draft_rejected(e)

    if record is None:
        raise_for_failure(form)
    logger.info(f"Saved press release {record.id} with {len(record.tags)} tags")
    return RecordResponse(item=record, notification=form.last_notification)


@router.get("", response_model=ListPage[PressRelease])
async def list_press_releases(
    q: str = Query("", description="Case-insensitive match on title or author"),
    controller: ListController[PressRelease] = Depends(get_press_list),
):
    """List press releases, optionally filtered by a search query."""
    if not await controller.load():
        raise_for_failure(controller)
    items = controller.search(q)
    return ListPage(items=items, total_count=len(controller.items), search_query=controller.search_query)


@router.post("", response_model=RecordResponse[PressRelease], status_code=status.HTTP_201_CREATED)
async def create_press_release(
    title: str = Form(...),
    date: str = Form(...),
    content: str = Form(""),
    source: str = Form(...),
    author: str = Form(...),
    tags: List[str] = Form([]),
    link: str = Form(""),
    is_active: bool = Form(True, alias="isActive"),
    thumbnail: Optional[UploadFile] = File(None),
    client: RemoteResourceClient[PressRelease] = Depends(get_press_client),
):
    """
    Create a press release.
    Tags may be repeated form fields or one JSON-encoded array; their order is kept.
    """
    with PressReleaseForm(client) as form:
        return await _submit_press_form(form, title, date, content, source, author, tags, link, is_active, thumbnail)


@router.get("/{press_id}", response_model=EditTarget[PressRelease])
async def get_press_release(
    press_id: str,
    controller: ListController[PressRelease] = Depends(get_press_list),
):
    """Fetch one press release for the edit form."""
    try:
        record = await controller.client.get(press_id)
    except RequestFailed as e:
        if e.status_code == status.HTTP_404_NOT_FOUND:
            raise not_found("press release", press_id)
        controller.notify_error("Failed to load press release", e)
        raise_for_failure(controller)
    return EditTarget(item=record, edit_path=controller.edit_path(press_id))


@router.put("/{press_id}", response_model=RecordResponse[PressRelease])
async def update_press_release(
    press_id: str,
    title: str = Form(...),
    date: str = Form(...),
    content: str = Form(""),
    source: str = Form(...),
    author: str = Form(...),
    tags: List[str] = Form([]),
    link: str = Form(""),
    is_active: bool = Form(True, alias="isActive"),
    thumbnail: Optional[UploadFile] = File(None),
    client: RemoteResourceClient[PressRelease] = Depends(get_press_client),
):
    """Replace a press release; a new thumbnail is optional."""
    with PressReleaseForm(client, record_id=press_id) as form:
        return await _submit_press_form(form, title, date, content, source, author, tags, link, is_active, thumbnail)


@router.patch("/{press_id}/active", response_model=ActiveStateResponse)
async def toggle_press_release(
    press_id: str,
    body: ActiveToggleRequest,
    controller: ListController[PressRelease] = Depends(get_press_list),
):
    """Publish or hide a press release."""
    if not await controller.toggle_active(press_id, body.is_active):
        raise_for_failure(controller)
    return ActiveStateResponse(id=press_id, is_active=body.is_active, notification=controller.last_notification)


@router.delete("/{press_id}", response_model=DeleteResponse)
async def delete_press_release(
    press_id: str,
    confirm: bool = Query(False, description="Must be true; answers the delete prompt"),
    controller: ListController[PressRelease] = Depends(get_press_list),
):
    """Delete a press release after explicit confirmation."""
    require_confirmation(confirm, controller.delete_prompt)
    if not await controller.delete(press_id, confirm=lambda prompt: confirm):
        raise_for_failure(controller)
    notification = controller.last_notification
    return DeleteResponse(message=notification.description, id=press_id, notification=notification)
