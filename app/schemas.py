"""
Pydantic schemas for CMS records, console drafts and console responses.
Record schemas mirror what the remote CMS API returns; *Create schemas validate
drafts before they are submitted.
"""
import datetime as dt
import json
from enum import Enum
from typing import Any, Dict, Generic, List, Literal, Optional, TypeVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class EventType(str, Enum):
    WEDDING = "Wedding"
    CORPORATE = "Corporate"
    BIRTHDAY = "Birthday"
    ANNIVERSARY = "Anniversary"
    OTHER = "Other"


class VideoCategory(str, Enum):
    EDUCATION = "education"
    ENTERTAINMENT = "entertainment"
    NEWS = "news"
    SPORTS = "sports"
    TECHNOLOGY = "technology"


class MoveDirection(str, Enum):
    UP = "up"
    DOWN = "down"


class ApiRecord(BaseModel):
    """
    Base for records returned by the CMS API.
    The API keys records by Mongo-style `_id`; some collections use `id`.
    """
    id: str = Field(validation_alias=AliasChoices("_id", "id"), serialization_alias="id")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v):
        return str(v) if v is not None else v


class EventImage(BaseModel):
    url: str
    caption: Optional[str] = None
    id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("_id", "id"),
        serialization_alias="id",
    )

    model_config = ConfigDict(populate_by_name=True)


class PhotoEvent(ApiRecord):
    """
    Photo-gallery event.
    qr_code and permalink are generated by the server on create and read-only here.
    """
    title: str
    date: str
    event_type: str = Field(alias="eventType")
    images: List[EventImage] = []
    qr_code: Optional[str] = None
    permalink: Optional[str] = None
    created_at: Optional[str] = Field(default=None, alias="createdAt")
    updated_at: Optional[str] = Field(default=None, alias="updatedAt")


class PressRelease(ApiRecord):
    title: str
    date: str
    content: str = ""
    source: str = ""
    author: str = ""
    tags: List[str] = []
    link: Optional[str] = None
    thumbnail_url: Optional[str] = Field(default=None, alias="thumbnailUrl")
    is_active: bool = Field(default=True, alias="isActive")

    @field_validator("tags", mode="before")
    @classmethod
    def decode_tags(cls, v):
        # Some deployments store the multipart JSON string as-is
        if isinstance(v, str):
            try:
                return json.loads(v) if v else []
            except ValueError:
                return [v]
        return v


class SliderItem(ApiRecord):
    title: str
    subtitle: str = ""
    order: int
    is_active: bool = Field(default=True, alias="isActive")
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    link: Optional[str] = None


class Video(ApiRecord):
    title: str
    thumbnail: str
    video_link: str = Field(alias="videoLink")
    publish_date: str = Field(alias="publishDate")
    category: str


class DraftModel(BaseModel):
    """Base for draft validation: presence checks and enum values only."""
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)


class EventImageDraft(DraftModel):
    url: str
    caption: str = ""


class PhotoEventCreate(DraftModel):
    title: str = Field(min_length=1)
    event_type: EventType = Field(alias="eventType")
    date: dt.date
    images: List[EventImageDraft] = []


class PressReleaseCreate(DraftModel):
    title: str = Field(min_length=1)
    date: dt.date
    content: str = ""
    source: str = Field(min_length=1)
    author: str = Field(min_length=1)
    tags: List[str] = []
    link: str = ""
    is_active: bool = Field(default=True, alias="isActive")


class SliderCreate(DraftModel):
    title: str = Field(min_length=1)
    subtitle: str = ""
    order: int = Field(ge=1)
    is_active: bool = Field(default=True, alias="isActive")
    link: str = ""


class VideoCreate(DraftModel):
    title: str = Field(min_length=1)
    thumbnail: str = Field(min_length=1)
    video_link: str = Field(min_length=1, alias="videoLink")
    publish_date: dt.date = Field(alias="publishDate")
    category: VideoCategory


class Notification(BaseModel):
    """
    User-facing outcome of a console action.
    variant "destructive" marks failures, matching the console's toast styles.
    """
    title: str
    description: str
    variant: Literal["default", "destructive"] = "default"


RecordT = TypeVar("RecordT", bound=ApiRecord)


class ListPage(BaseModel, Generic[RecordT]):
    """Filtered list of records for a console list screen."""
    items: List[RecordT]
    total_count: int
    search_query: str = ""


class RecordResponse(BaseModel, Generic[RecordT]):
    item: RecordT
    notification: Optional[Notification] = None


class EditTarget(BaseModel, Generic[RecordT]):
    item: RecordT
    edit_path: str


class ActiveToggleRequest(BaseModel):
    is_active: bool = Field(alias="isActive")

    model_config = ConfigDict(populate_by_name=True)


class ActiveStateResponse(BaseModel):
    id: str
    is_active: bool = Field(alias="isActive")
    notification: Optional[Notification] = None

    model_config = ConfigDict(populate_by_name=True)


class SliderMoveRequest(BaseModel):
    direction: MoveDirection


class SliderMoveResponse(BaseModel):
    moved: bool
    items: List[SliderItem]
    notification: Optional[Notification] = None


class SliderReorderRequest(BaseModel):
    """
    Body of the batch reorder call.
    Contains slider IDs in the desired display order.
    """
    ids: List[str]

    @field_validator("ids")
    @classmethod
    def validate_unique_ids(cls, v):
        if len(v) != len(set(v)):
            raise ValueError("Duplicate slider IDs are not allowed")
        return v


class SliderDraftResponse(BaseModel):
    draft: Dict[str, Any]


class DeleteResponse(BaseModel):
    message: str
    id: str
    notification: Optional[Notification] = None


class LoginRequest(BaseModel):
    password: str


class TokenResponse(BaseModel):
    message: str
    access_token: str
    token_type: str = "bearer"
    expires_in: int
