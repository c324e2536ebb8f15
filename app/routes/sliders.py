"""
Homepage slider console routes.
Sliders are always listed by their `order` value; moves swap neighbours.
"""
from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from typing import Optional
import logging

import httpx

from app.api_client import get_http_client
from app.config import settings
from app.controllers.form_controller import DraftIncomplete, SliderForm, next_slider_order
from app.controllers.list_controller import ListController
from app.controllers.reorder_controller import ReorderController
from app.routes.common import (
    draft_rejected,
    media_rejected,
    not_found,
    raise_for_failure,
    require_confirmation,
)
from app.schemas import (
    ActiveStateResponse,
    ActiveToggleRequest,
    DeleteResponse,
    EditTarget,
    ListPage,
    RecordResponse,
    SliderDraftResponse,
    SliderItem,
    SliderMoveRequest,
    SliderMoveResponse,
)
from app.services.media import MediaRejected
from app.services.resource_client import RemoteResourceClient, RequestFailed, sliders_client
from app.utils.auth import verify_cms_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sliders", tags=["Sliders"], dependencies=[Depends(verify_cms_token)])


def get_sliders_client(http: httpx.AsyncClient = Depends(get_http_client)) -> RemoteResourceClient[SliderItem]:
    return sliders_client(http)


def get_sliders_list(client: RemoteResourceClient[SliderItem] = Depends(get_sliders_client)) -> ListController[SliderItem]:
    return ListController(
        client,
        noun="slider",
        plural="sliders",
        search_fields=("title", "subtitle"),
        edit_route="/users/sliders/edit/{id}",
        sort_key=lambda slider: slider.order,
    )


async def _submit_slider_form(form: SliderForm, image: Optional[UploadFile]) -> RecordResponse[SliderItem]:
    if image is not None and image.filename:
        try:
            form.set_image(image.filename, await image.read(), image.content_type)
        except MediaRejected as e:
            raise media_rejected(e)

    try:
        slider = await form.submit()
    except DraftIncomplete as e:
        raise draft_rejected(e)

    if slider is None:
        raise_for_failure(form)
    logger.info(f"Saved slider {slider.id} (order {slider.order})")
    return RecordResponse(item=slider, notification=form.last_notification)


async def _load_slider(controller: ListController[SliderItem], slider_id: str) -> SliderItem:
    try:
        return await controller.client.get(slider_id)
    except RequestFailed as e:
        if e.status_code == status.HTTP_404_NOT_FOUND:
            raise not_found("slider", slider_id)
        controller.notify_error("Failed to load slider", e)
        raise_for_failure(controller)


@router.get("", response_model=ListPage[SliderItem])
async def list_sliders(
    q: str = Query("", description="Case-insensitive match on title or subtitle"),
    controller: ListController[SliderItem] = Depends(get_sliders_list),
):
    """List sliders in display order."""
    if not await controller.load():
        raise_for_failure(controller)
    items = controller.search(q)
    return ListPage(items=items, total_count=len(controller.items), search_query=controller.search_query)


@router.get("/new", response_model=SliderDraftResponse)
async def new_slider_draft(controller: ListController[SliderItem] = Depends(get_sliders_list)):
    """Blank slider draft; its order follows the current last slider."""
    if not await controller.load():
        raise_for_failure(controller)
    with SliderForm.for_new(controller.client, controller.items) as form:
        return SliderDraftResponse(draft=dict(form.draft.fields))


@router.post("", response_model=RecordResponse[SliderItem], status_code=status.HTTP_201_CREATED)
async def create_slider(
    title: str = Form(...),
    subtitle: str = Form(""),
    order: Optional[int] = Form(None),
    is_active: bool = Form(True, alias="isActive"),
    link: str = Form(""),
    image: Optional[UploadFile] = File(None),
    controller: ListController[SliderItem] = Depends(get_sliders_list),
):
    """
    Add a slider.
    Without an explicit order the slider goes after the current last one.
    """
    if order is None:
        if not await controller.load():
            raise_for_failure(controller)
        order = next_slider_order(controller.items)

    with SliderForm(controller.client, order=order) as form:
        form.update_fields(title=title, subtitle=subtitle, isActive=is_active, link=link)
        return await _submit_slider_form(form, image)


@router.get("/{slider_id}", response_model=EditTarget[SliderItem])
async def get_slider(
    slider_id: str,
    controller: ListController[SliderItem] = Depends(get_sliders_list),
):
    """Fetch one slider for the edit dialog."""
    slider = await _load_slider(controller, slider_id)
    return EditTarget(item=slider, edit_path=controller.edit_path(slider_id))


@router.put("/{slider_id}", response_model=RecordResponse[SliderItem])
async def update_slider(
    slider_id: str,
    title: Optional[str] = Form(None),
    subtitle: Optional[str] = Form(None),
    order: Optional[int] = Form(None),
    is_active: Optional[bool] = Form(None, alias="isActive"),
    link: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    controller: ListController[SliderItem] = Depends(get_sliders_list),
):
    """
    Update a slider.
    The stored slider prefills the form; only the fields sent are changed and
    the image is only replaced when a new one is sent.
    """
    slider = await _load_slider(controller, slider_id)
    changes = {"title": title, "subtitle": subtitle, "order": order, "isActive": is_active, "link": link}
    with SliderForm.for_existing(controller.client, slider) as form:
        form.update_fields(**{name: value for name, value in changes.items() if value is not None})
        return await _submit_slider_form(form, image)


@router.patch("/{slider_id}/active", response_model=ActiveStateResponse)
async def toggle_slider(
    slider_id: str,
    body: ActiveToggleRequest,
    controller: ListController[SliderItem] = Depends(get_sliders_list),
):
    """Show or hide a slider on the homepage."""
    if not await controller.toggle_active(slider_id, body.is_active):
        raise_for_failure(controller)
    return ActiveStateResponse(id=slider_id, is_active=body.is_active, notification=controller.last_notification)


@router.post("/{slider_id}/move", response_model=SliderMoveResponse)
async def move_slider(
    slider_id: str,
    body: SliderMoveRequest,
    controller: ListController[SliderItem] = Depends(get_sliders_list),
):
    """
    Move a slider one place up or down.
    Moving past either end is a no-op and reports moved=false.

    Raises:
        HTTPException: 404 if the slider is unknown, 502 if the new order cannot be saved
    """
    if not await controller.load():
        raise_for_failure(controller)

    reorder = ReorderController(controller.client, controller.items, mode=settings.SLIDER_REORDER_MODE)
    try:
        moved = await reorder.move(slider_id, body.direction)
    except KeyError:
        raise not_found("slider", slider_id)

    if not moved:
        if reorder.failed:
            raise_for_failure(reorder)
        logger.info(f"Slider {slider_id} is already at the edge, not moved {body.direction.value}")
    return SliderMoveResponse(moved=moved, items=reorder.items, notification=reorder.last_notification)


@router.delete("/{slider_id}", response_model=DeleteResponse)
async def delete_slider(
    slider_id: str,
    confirm: bool = Query(False, description="Must be true; answers the delete prompt"),
    controller: ListController[SliderItem] = Depends(get_sliders_list),
):
    """Delete a slider after explicit confirmation."""
    require_confirmation(confirm, controller.delete_prompt)
    if not await controller.delete(slider_id, confirm=lambda prompt: confirm):
        raise_for_failure(controller)
    notification = controller.last_notification
    return DeleteResponse(message=notification.description, id=slider_id, notification=notification)
