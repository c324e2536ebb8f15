"""
Helpers shared by the console routes: turning controller outcomes into HTTP errors.
"""
from typing import List
import json

from fastapi import HTTPException, status

from app.controllers.base import ConsoleController
from app.controllers.form_controller import DraftIncomplete
from app.services.media import MediaRejected


def raise_for_failure(controller: ConsoleController, status_code: int = status.HTTP_502_BAD_GATEWAY):
    """
    Raise the controller's last error notification as an HTTPException.
    Upstream CMS failures map to 502 Bad Gateway.
    """
    notification = controller.last_notification
    raise HTTPException(
        status_code=status_code,
        detail={
            "error": notification.description if notification else "Request failed",
            "detail": controller.last_error,
            "notification": notification.model_dump() if notification else None,
        },
    )


def require_confirmation(confirm: bool, prompt: str):
    """Deletes must be confirmed explicitly (?confirm=true)."""
    if not confirm:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "Confirmation required", "detail": prompt},
        )


def draft_rejected(error: DraftIncomplete) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={"error": "Incomplete form", "detail": error.errors},
    )


def media_rejected(error: MediaRejected) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={"error": "Invalid file", "detail": str(error)},
    )


def not_found(noun: str, record_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail={"error": f"{noun.capitalize()} not found", "detail": f"{noun.capitalize()} ID {record_id} does not exist"},
    )


def parse_tags(values: List[str]) -> List[str]:
    """
    Normalise tags sent as repeated form fields or as one JSON-encoded array.
    Order is kept, duplicates and blanks dropped.
    """
    tags: List[str] = []
    for value in values:
        candidates = [value]
        if value.startswith("["):
            try:
                decoded = json.loads(value)
            except ValueError:
                decoded = None
            if isinstance(decoded, list):
                candidates = [str(v) for v in decoded]
        for tag in candidates:
            tag = tag.strip()
            if tag and tag not in tags:
                tags.append(tag)
    return tags
