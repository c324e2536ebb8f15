"""
Form controllers: the draft behind each console create/edit form.

A draft holds field values and pending file attachments. Submitting validates
the draft, assembles a JSON or multipart payload and creates (or updates) the
record. Success resets the draft; failure keeps it for resubmission.
"""
from typing import Any, Dict, Generic, Iterable, List, Optional, Sequence, Tuple, Type, TypeVar
from dataclasses import dataclass
import asyncio
import copy
import logging

from pydantic import BaseModel, ValidationError

from app.controllers.base import ConsoleController
from app.schemas import (
    ApiRecord,
    PhotoEvent,
    PhotoEventCreate,
    PressRelease,
    PressReleaseCreate,
    SliderCreate,
    SliderItem,
    Video,
    VideoCreate,
)
from app.services.media import Attachment, UploadedMedia, check_image
from app.services.resource_client import Payload, RemoteResourceClient, RequestFailed

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=ApiRecord)


class DraftIncomplete(ValueError):
    """The draft is missing required fields or holds invalid values."""

    def __init__(self, errors: List[Dict[str, Any]]):
        self.errors = errors
        fields = ", ".join(".".join(str(p) for p in e.get("loc", ())) or "draft" for e in errors)
        super().__init__(f"Draft is incomplete: {fields}")


class Draft:
    """Field values plus attachments, resettable to its initial values."""

    def __init__(self, initial: Dict[str, Any]):
        self._initial = copy.deepcopy(initial)
        self.fields: Dict[str, Any] = copy.deepcopy(initial)
        self.attachments: Dict[str, Attachment] = {}

    def set(self, name: str, value: Any):
        self.fields[name] = value

    def attach(self, name: str, attachment: Attachment):
        """Attach a file, releasing any file it replaces."""
        previous = self.attachments.pop(name, None)
        if previous is not None:
            previous.release()
        self.attachments[name] = attachment

    def detach(self, name: str):
        previous = self.attachments.pop(name, None)
        if previous is not None:
            previous.release()

    def release(self):
        for attachment in self.attachments.values():
            attachment.release()
        self.attachments = {}

    def reset(self):
        self.release()
        self.fields = copy.deepcopy(self._initial)

    @property
    def is_pristine(self) -> bool:
        return not self.attachments and self.fields == self._initial


class FormController(ConsoleController, Generic[RecordT]):
    """
    State of a create/edit form.

    Args:
        client: Resource client for the collection
        create_model: Schema the draft must satisfy before submission
        initial: Initial (empty) field values of the draft
        created_message: Success notification after a create
        updated_message: Success notification after an update
        failure_message: Error notification when submission fails
        record_id: ID of the record being edited; None for a new record
    """

    def __init__(
        self,
        client: RemoteResourceClient[RecordT],
        *,
        create_model: Type[BaseModel],
        initial: Dict[str, Any],
        created_message: str,
        failure_message: str,
        updated_message: Optional[str] = None,
        record_id: Optional[str] = None,
    ):
        super().__init__()
        self.client = client
        self.create_model = create_model
        self.draft = Draft(initial)
        self.created_message = created_message
        self.updated_message = updated_message or created_message
        self.failure_message = failure_message
        self.record_id = record_id
        self.is_submitting = False

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def set_field(self, name: str, value: Any):
        self.draft.set(name, value)

    def update_fields(self, **values: Any):
        for name, value in values.items():
            self.draft.set(name, value)

    def attach(self, name: str, filename: str, content: bytes, content_type: str) -> Attachment:
        attachment = Attachment(filename, content, content_type)
        self.draft.attach(name, attachment)
        return attachment

    def validate(self) -> BaseModel:
        try:
            return self.create_model.model_validate(self.draft.fields)
        except ValidationError as e:
            raise DraftIncomplete(e.errors(include_url=False, include_context=False)) from e

    async def build_payload(self, values: BaseModel) -> Payload:
        data = values.model_dump(by_alias=True, mode="json")
        files = [attachment.as_file(name) for name, attachment in self.draft.attachments.items()]
        return Payload(data=data, files=files)

    async def on_submit_failed(self):
        """Hook for undoing side effects of a failed submission."""

    async def submit(self) -> Optional[RecordT]:
        """
        Submit the draft.

        Returns:
            The created/updated record, or None if the request failed

        Raises:
            DraftIncomplete: If required fields are missing (nothing is sent)
        """
        values = self.validate()

        self.is_submitting = True
        try:
            payload = await self.build_payload(values)
            if self.record_id:
                record = await self.client.update(self.record_id, payload)
                if record is None:
                    record = await self.client.get(self.record_id)
            else:
                record = await self.client.create(payload)
        except RequestFailed as e:
            await self.on_submit_failed()
            self.notify_error(self.failure_message, e)
            return None
        finally:
            self.is_submitting = False

        self.notify_success(self.updated_message if self.record_id else self.created_message)
        self.reset()
        return record

    def reset(self):
        self.draft.reset()

    def close(self):
        self.draft.release()


class PressReleaseForm(FormController[PressRelease]):
    """Press release form: rich-text content, a growable tag set and a thumbnail."""

    def __init__(self, client: RemoteResourceClient[PressRelease], record_id: Optional[str] = None):
        super().__init__(
            client,
            create_model=PressReleaseCreate,
            initial={
                "title": "",
                "date": "",
                "content": "",
                "source": "",
                "author": "",
                "tags": [],
                "link": "",
                "isActive": True,
            },
            created_message="Press release created successfully",
            updated_message="Press release updated successfully",
            failure_message="Failed to save press release",
            record_id=record_id,
        )

    def add_tag(self, tag: str) -> bool:
        tag = tag.strip()
        tags = self.draft.fields["tags"]
        if not tag or tag in tags:
            return False
        self.draft.set("tags", tags + [tag])
        return True

    def remove_tag(self, tag: str):
        self.draft.set("tags", [t for t in self.draft.fields["tags"] if t != tag])

    def set_thumbnail(self, filename: str, content: bytes, content_type: str) -> Attachment:
        check_image(filename, content_type, len(content))
        return self.attach("thumbnail", filename, content, content_type)


def next_slider_order(sliders: Iterable[SliderItem]) -> int:
    orders = [slider.order for slider in sliders]
    return max(orders) + 1 if orders else 1


class SliderForm(FormController[SliderItem]):
    """Slider add/edit dialog."""

    def __init__(
        self,
        client: RemoteResourceClient[SliderItem],
        order: int = 1,
        record_id: Optional[str] = None,
        initial: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            client,
            create_model=SliderCreate,
            initial=initial or {
                "title": "",
                "subtitle": "",
                "order": order,
                "isActive": True,
                "link": "",
            },
            created_message="Slider added successfully",
            updated_message="Slider updated successfully",
            failure_message="Failed to save slider",
            record_id=record_id,
        )

    @classmethod
    def for_new(cls, client: RemoteResourceClient[SliderItem], existing: Sequence[SliderItem]) -> "SliderForm":
        return cls(client, order=next_slider_order(existing))

    @classmethod
    def for_existing(cls, client: RemoteResourceClient[SliderItem], slider: SliderItem) -> "SliderForm":
        return cls(
            client,
            record_id=slider.id,
            initial={
                "title": slider.title,
                "subtitle": slider.subtitle,
                "order": slider.order,
                "isActive": slider.is_active,
                "link": slider.link or "",
            },
        )

    def set_image(self, filename: str, content: bytes, content_type: str) -> Attachment:
        check_image(filename, content_type, len(content))
        return self.attach("image", filename, content, content_type)


class VideoForm(FormController[Video]):
    """Video form: URLs only, no uploads."""

    def __init__(self, client: RemoteResourceClient[Video]):
        super().__init__(
            client,
            create_model=VideoCreate,
            initial={
                "title": "",
                "thumbnail": "",
                "videoLink": "",
                "publishDate": "",
                "category": "",
            },
            created_message="Video added successfully",
            failure_message="Failed to add video",
        )


@dataclass
class PendingImage:
    attachment: Attachment
    caption: str = ""


class PhotoEventForm(FormController[PhotoEvent]):
    """
    Photo event form with an ordered list of captioned images.

    With an uploader, every image is uploaded first and the event is created
    from the resulting URLs; the uploads are all-or-nothing. Without one, the
    images go inside the create request as repeated multipart fields.
    """

    def __init__(self, client: RemoteResourceClient[PhotoEvent], uploader=None):
        super().__init__(
            client,
            create_model=PhotoEventCreate,
            initial={"title": "", "eventType": "", "date": ""},
            created_message="Photo event created successfully",
            failure_message="Failed to create photo event",
        )
        self.uploader = uploader
        self.images: List[PendingImage] = []
        self._uploaded: List[UploadedMedia] = []

    def add_image(self, filename: str, content: bytes, content_type: str, caption: str = "") -> PendingImage:
        check_image(filename, content_type, len(content))
        image = PendingImage(Attachment(filename, content, content_type), caption)
        self.images.append(image)
        return image

    def add_images(self, files: Iterable[Tuple[str, bytes, str]]) -> List[PendingImage]:
        return [self.add_image(filename, content, content_type) for filename, content, content_type in files]

    def remove_image(self, index: int):
        image = self.images.pop(index)
        image.attachment.release()

    def set_caption(self, index: int, caption: str):
        self.images[index].caption = caption

    def validate(self) -> BaseModel:
        values = super().validate()
        if not self.images:
            raise DraftIncomplete([{"loc": ("images",), "msg": "At least one image is required", "type": "missing"}])
        return values

    async def build_payload(self, values: BaseModel) -> Payload:
        data = values.model_dump(by_alias=True, mode="json", exclude={"images"})

        if self.uploader is None:
            return Payload(
                data=data,
                files=[image.attachment.as_file("images") for image in self.images],
                repeated={"captions": [image.caption for image in self.images]},
            )

        uploaded = await self._upload_all()
        data["images"] = [
            {"url": media.url, "caption": image.caption}
            for media, image in zip(uploaded, self.images)
        ]
        return Payload(data=data)

    async def _upload_all(self) -> List[UploadedMedia]:
        results = await asyncio.gather(
            *(self.uploader.upload(image.attachment) for image in self.images),
            return_exceptions=True,
        )
        uploaded = [r for r in results if isinstance(r, UploadedMedia)]
        failures = [r for r in results if not isinstance(r, UploadedMedia)]
        self._uploaded = uploaded

        if failures:
            for error in failures:
                logger.error(f"Image upload failed: {str(error)}")
            raise RequestFailed(
                "upload event images",
                f"{len(failures)} of {len(results)} uploads failed",
            )

        logger.info(f"Uploaded {len(uploaded)} event image(s)")
        return uploaded

    async def on_submit_failed(self):
        uploaded, self._uploaded = self._uploaded, []
        if not uploaded or self.uploader is None:
            return
        results = await asyncio.gather(
            *(self.uploader.discard(media) for media in uploaded),
            return_exceptions=True,
        )
        for media, result in zip(uploaded, results):
            if isinstance(result, Exception):
                logger.error(f"Failed to discard uploaded image {media.url}: {str(result)}")

    def reset(self):
        super().reset()
        for image in self.images:
            image.attachment.release()
        self.images = []
        self._uploaded = []

    def close(self):
        super().close()
        for image in self.images:
            image.attachment.release()
