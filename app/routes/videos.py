"""
Video catalog console routes.
Videos reference external thumbnail and video URLs; nothing is uploaded.
"""
from fastapi import APIRouter, Depends, Query, status
import logging

import httpx

from app.api_client import get_http_client
from app.controllers.form_controller import DraftIncomplete, VideoForm
from app.controllers.list_controller import ListController
from app.routes.common import draft_rejected, raise_for_failure
from app.schemas import ListPage, RecordResponse, Video, VideoCreate
from app.services.resource_client import RemoteResourceClient, videos_client
from app.utils.auth import verify_cms_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/videos", tags=["Videos"], dependencies=[Depends(verify_cms_token)])


def get_videos_client(http: httpx.AsyncClient = Depends(get_http_client)) -> RemoteResourceClient[Video]:
    return videos_client(http)


@router.get("", response_model=ListPage[Video])
async def list_videos(
    q: str = Query("", description="Case-insensitive match on title or category"),
    client: RemoteResourceClient[Video] = Depends(get_videos_client),
):
    """List the video library."""
    controller = ListController(
        client,
        noun="video",
        plural="videos",
        search_fields=("title", "category"),
        edit_route="/users/videos/edit/{id}",
    )
    if not await controller.load():
        raise_for_failure(controller)
    items = controller.search(q)
    return ListPage(items=items, total_count=len(controller.items), search_query=controller.search_query)


@router.post("", response_model=RecordResponse[Video], status_code=status.HTTP_201_CREATED)
async def create_video(
    video: VideoCreate,
    client: RemoteResourceClient[Video] = Depends(get_videos_client),
):
    """Add a video to the library."""
    with VideoForm(client) as form:
        form.update_fields(**video.model_dump(by_alias=True, mode="json"))
        try:
            record = await form.submit()
        except DraftIncomplete as e:
            raise draft_rejected(e)

        if record is None:
            raise_for_failure(form)
        logger.info(f"Added video {record.id} ({record.category})")
        return RecordResponse(item=record, notification=form.last_notification)
