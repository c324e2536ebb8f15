"""
List controller: the state behind a console list screen.
Loads a collection once, filters it client-side and applies deletes and
active-flag toggles to the local copy without re-fetching.
"""
from typing import Any, Callable, Generic, Iterable, List, Optional, Sequence, TypeVar
import logging

from app.controllers.base import ConsoleController
from app.schemas import ApiRecord
from app.services.resource_client import Payload, RemoteResourceClient, RequestFailed

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=ApiRecord)


def matches_query(record: Any, query: str, fields: Sequence[str]) -> bool:
    """Case-insensitive substring match of query against any of the given fields."""
    needle = query.lower()
    for name in fields:
        value = getattr(record, name, None)
        if value is not None and needle in str(value).lower():
            return True
    return False


def filter_records(records: Iterable[RecordT], query: str, fields: Sequence[str]) -> List[RecordT]:
    if not query:
        return list(records)
    return [record for record in records if matches_query(record, query, fields)]


class ListController(ConsoleController, Generic[RecordT]):
    """
    State of a list screen.

    Args:
        client: Resource client for the collection
        noun: Singular name used in prompts and notifications ("press release")
        plural: Plural name used in load notifications ("press releases")
        search_fields: Record attributes the search box matches against
        edit_route: Edit page path with an {id} placeholder
        sort_key: Optional key applied after every load
    """

    def __init__(
        self,
        client: RemoteResourceClient[RecordT],
        *,
        noun: str,
        plural: str,
        search_fields: Sequence[str],
        edit_route: str,
        sort_key: Optional[Callable[[RecordT], Any]] = None,
    ):
        super().__init__()
        self.client = client
        self.noun = noun
        self.plural = plural
        self.search_fields = tuple(search_fields)
        self.edit_route = edit_route
        self.sort_key = sort_key

        self.items: List[RecordT] = []
        self.is_loading = False
        self.search_query = ""

    async def load(self) -> bool:
        """
        Fetch the full collection.

        Returns:
            bool: True on success; on failure items are left empty and an
            error notification is recorded
        """
        self.is_loading = True
        try:
            items = await self.client.list()
        except RequestFailed as e:
            self.items = []
            self.notify_error(f"Failed to load {self.plural}", e)
            return False
        finally:
            self.is_loading = False

        if self.sort_key is not None:
            items = sorted(items, key=self.sort_key)
        self.items = list(items)
        logger.info(f"Loaded {len(self.items)} {self.plural}")
        return True

    def search(self, query: Optional[str]) -> List[RecordT]:
        self.search_query = query or ""
        return self.filtered

    @property
    def filtered(self) -> List[RecordT]:
        return filter_records(self.items, self.search_query, self.search_fields)

    def find(self, record_id: str) -> Optional[RecordT]:
        return next((item for item in self.items if item.id == record_id), None)

    @property
    def delete_prompt(self) -> str:
        return f"Are you sure you want to delete this {self.noun}?"

    async def delete(self, record_id: str, confirm: Callable[[str], bool]) -> bool:
        """
        Delete one record after confirmation.

        Args:
            record_id: ID of the record to delete
            confirm: Blocking prompt; receives the question, returns the answer

        Returns:
            bool: True if the record was deleted
        """
        if not confirm(self.delete_prompt):
            logger.debug(f"Delete of {self.noun} {record_id} cancelled")
            return False

        try:
            await self.client.remove(record_id)
        except RequestFailed as e:
            self.notify_error(f"Failed to delete {self.noun}", e)
            return False

        self.items = [item for item in self.items if item.id != record_id]
        self.notify_success(f"{self.noun.capitalize()} deleted successfully")
        return True

    async def toggle_active(self, record_id: str, is_active: bool) -> bool:
        """Persist the isActive flag of one record and mirror it locally."""
        try:
            updated = await self.client.update(record_id, Payload(data={"isActive": is_active}))
        except RequestFailed as e:
            self.notify_error(f"Failed to update {self.noun} status", e)
            return False

        replaced = []
        for item in self.items:
            if item.id == record_id:
                item = updated if updated is not None else item.model_copy(update={"is_active": is_active})
            replaced.append(item)
        self.items = replaced

        state = "activated" if is_active else "deactivated"
        self.notify_success(f"{self.noun.capitalize()} {state} successfully")
        return True

    def edit_path(self, record_id: str) -> str:
        return self.edit_route.format(id=record_id)
