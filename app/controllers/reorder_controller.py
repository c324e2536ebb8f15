"""
Reorder controller for homepage sliders.
Moves one slider up or down by swapping its order value with its neighbour's.
"""
from typing import List, Sequence
import logging

from app.controllers.base import ConsoleController
from app.schemas import MoveDirection, SliderItem
from app.services.resource_client import Payload, RemoteResourceClient, RequestFailed

logger = logging.getLogger(__name__)


class ReorderController(ConsoleController):
    """
    Keeps sliders sorted by `order` and persists single-step moves.

    Args:
        client: Slider resource client
        items: Current sliders (any order)
        mode: "pairwise" writes both swapped sliders, reverting the first write
            if the second fails; "batch" sends the full order in one request
    """

    def __init__(
        self,
        client: RemoteResourceClient[SliderItem],
        items: Sequence[SliderItem],
        mode: str = "pairwise",
    ):
        super().__init__()
        if mode not in ("pairwise", "batch"):
            raise ValueError(f"Unknown reorder mode: {mode}")
        self.client = client
        self.mode = mode
        self.items: List[SliderItem] = sorted(items, key=lambda s: s.order)

    def index_of(self, slider_id: str) -> int:
        for index, slider in enumerate(self.items):
            if slider.id == slider_id:
                return index
        raise KeyError(slider_id)

    async def move(self, slider_id: str, direction: MoveDirection) -> bool:
        """
        Move a slider one step.

        Returns:
            bool: True if the order changed; False when the slider is already at
            the edge (nothing is sent) or the update failed

        Raises:
            KeyError: If the slider is not in the list
        """
        direction = MoveDirection(direction)
        index = self.index_of(slider_id)
        neighbour_index = index - 1 if direction == MoveDirection.UP else index + 1
        if not 0 <= neighbour_index < len(self.items):
            logger.debug(f"Slider {slider_id} is already at the {direction.value} edge")
            return False

        target = self.items[index]
        neighbour = self.items[neighbour_index]

        try:
            if self.mode == "batch":
                ids = [slider.id for slider in self.items]
                ids[index], ids[neighbour_index] = ids[neighbour_index], ids[index]
                await self.client.reorder(ids)
            else:
                await self._swap_pairwise(target, neighbour)
        except RequestFailed as e:
            self.notify_error("Failed to update slider order", e)
            return False

        self.items[index] = target.model_copy(update={"order": neighbour.order})
        self.items[neighbour_index] = neighbour.model_copy(update={"order": target.order})
        self.items.sort(key=lambda s: s.order)

        self.notify_success("Slider order updated successfully")
        return True

    async def _swap_pairwise(self, target: SliderItem, neighbour: SliderItem):
        await self.client.update(target.id, Payload(data={"order": neighbour.order}))
        try:
            await self.client.update(neighbour.id, Payload(data={"order": target.order}))
        except RequestFailed:
            # Put the first slider back so no two sliders share an order
            try:
                await self.client.update(target.id, Payload(data={"order": target.order}))
            except RequestFailed as e:
                logger.error(
                    f"Could not restore order {target.order} of slider {target.id}; "
                    f"sliders {target.id} and {neighbour.id} now share order {neighbour.order}: {str(e)}"
                )
            raise
