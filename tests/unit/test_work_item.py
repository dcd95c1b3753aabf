"""
Unit tests for WorkItem state machine
"""
import pytest

from core.constants import ItemStatus
from core.exceptions import InvalidTransitionError
from core.scheduling.work_item import ALLOWED_TRANSITIONS, WorkItem
from core.test_utils import make_flat_image


@pytest.fixture
def item():
    return WorkItem(source_image=make_flat_image(50, width=20), name="page_01.png")


class TestWorkItem:

    def test_defaults(self, item):
        assert item.status is ItemStatus.PENDING
        assert item.result is None
        assert item.error is None
        assert item.generation == 0
        assert len(item.id) == 9

    def test_ids_are_unique(self):
        image = make_flat_image(10, width=10)
        ids = {WorkItem(source_image=image).id for _ in range(200)}
        assert len(ids) == 200

    def test_happy_path(self, item):
        result = make_flat_image(50, width=20, color=(1, 2, 3))
        item.transition(ItemStatus.PROCESSING)
        item.transition(ItemStatus.COMPLETED, result=result)

        assert item.status is ItemStatus.COMPLETED
        assert item.result is result
        assert item.generation == 1

    def test_error_path(self, item):
        item.transition(ItemStatus.PROCESSING)
        item.transition(ItemStatus.ERROR, error="quota exceeded")
        assert item.status is ItemStatus.ERROR
        assert item.error == "quota exceeded"

    def test_regenerate_clears_outcome(self, item):
        item.transition(ItemStatus.PROCESSING)
        item.transition(ItemStatus.COMPLETED, result=item.source_image)
        item.synthetic = True

        item.transition(ItemStatus.PENDING)

        assert item.status is ItemStatus.PENDING
        assert item.result is None
        assert item.error is None
        assert item.synthetic is False
        assert item.generation == 2

    @pytest.mark.parametrize("start,target", [
        (ItemStatus.PENDING, ItemStatus.COMPLETED),
        (ItemStatus.PENDING, ItemStatus.ERROR),
        (ItemStatus.PENDING, ItemStatus.PENDING),
        (ItemStatus.PROCESSING, ItemStatus.PENDING),
        (ItemStatus.PROCESSING, ItemStatus.PROCESSING),
        (ItemStatus.COMPLETED, ItemStatus.ERROR),
        (ItemStatus.ERROR, ItemStatus.COMPLETED),
    ])
    def test_invalid_transitions_rejected(self, item, start, target):
        item.status = start
        with pytest.raises(InvalidTransitionError) as exc:
            item.transition(target)
        assert exc.value.current == start.value
        assert exc.value.target == target.value
        assert item.status is start

    def test_table_covers_every_status(self):
        assert set(ALLOWED_TRANSITIONS) == set(ItemStatus)
        assert not any(status in targets for status, targets in ALLOWED_TRANSITIONS.items())

    def test_to_dict(self, item):
        data = item.to_dict()
        assert data["status"] == "pending"
        assert data["has_result"] is False
        assert data["width"] == 20
        assert data["height"] == 50
