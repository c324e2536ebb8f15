import pytest

from app.controllers.list_controller import ListController, filter_records
from app.schemas import PhotoEvent, SliderItem
from app.services.resource_client import photo_events_client, press_releases_client, sliders_client

EVENTS = [
    {"_id": "e1", "title": "Smith Wedding", "eventType": "Wedding", "date": "2024-06-01"},
    {"_id": "e2", "title": "Acme Offsite", "eventType": "Corporate", "date": "2024-07-10"},
    {"_id": "e3", "title": "Ana turns 30", "eventType": "Birthday", "date": "2024-08-15"},
]


def events_controller(http):
    return ListController(
        photo_events_client(http),
        noun="event",
        plural="events",
        search_fields=("title", "event_type"),
        edit_route="/users/engagement/edit/{id}",
    )


def press_controller(http):
    return ListController(
        press_releases_client(http),
        noun="press release",
        plural="press releases",
        search_fields=("title", "author"),
        edit_route="/users/press-release/edit/{id}",
    )


def test_filter_records_matches_any_field_case_insensitively():
    records = [PhotoEvent.model_validate(e) for e in EVENTS]

    assert [r.id for r in filter_records(records, "WEDD", ("title", "event_type"))] == ["e1"]
    assert [r.id for r in filter_records(records, "corporate", ("title", "event_type"))] == ["e2"]
    assert filter_records(records, "", ("title",)) == records
    assert filter_records(records, "zzz", ("title", "event_type")) == []


async def test_load_and_search(http, cms_api):
    cms_api.seed("photos", *EVENTS)
    controller = events_controller(http)

    assert await controller.load()
    assert not controller.is_loading
    assert len(controller.items) == 3

    assert [e.id for e in controller.search("birthday")] == ["e3"]
    assert controller.search_query == "birthday"
    assert len(controller.search(None)) == 3


async def test_load_failure_empties_list_and_notifies(http, cms_api):
    cms_api.fail("GET", "/photos")
    controller = events_controller(http)
    controller.items = [PhotoEvent.model_validate(EVENTS[0])]

    assert not await controller.load()
    assert controller.items == []
    assert controller.failed
    assert controller.last_notification.description == "Failed to load events"
    assert controller.last_notification.variant == "destructive"


async def test_load_applies_sort_key(http, cms_api):
    cms_api.seed(
        "sliders",
        {"_id": "b", "title": "B", "order": 2},
        {"_id": "a", "title": "A", "order": 1},
    )
    controller = ListController(
        sliders_client(http),
        noun="slider",
        plural="sliders",
        search_fields=("title",),
        edit_route="/users/sliders/edit/{id}",
        sort_key=lambda s: s.order,
    )
    await controller.load()
    assert [s.id for s in controller.items] == ["a", "b"]
    assert all(isinstance(s, SliderItem) for s in controller.items)


async def test_delete_confirmed_removes_locally_without_refetch(http, cms_api):
    cms_api.seed("photos", *EVENTS)
    controller = events_controller(http)
    await controller.load()
    prompts = []

    def confirm(prompt):
        prompts.append(prompt)
        return True

    assert await controller.delete("e2", confirm)

    assert prompts == ["Are you sure you want to delete this event?"]
    assert [e.id for e in controller.items] == ["e1", "e3"]
    assert len(cms_api.calls("DELETE", "/photos/e2")) == 1
    assert len(cms_api.calls("GET", "/photos")) == 1
    assert controller.last_notification.description == "Event deleted successfully"


async def test_delete_declined_sends_nothing(http, cms_api):
    cms_api.seed("photos", *EVENTS)
    controller = events_controller(http)
    await controller.load()

    assert not await controller.delete("e1", lambda prompt: False)
    assert cms_api.calls("DELETE") == []
    assert len(controller.items) == 3
    assert controller.notifications == []


async def test_delete_failure_keeps_item(http, cms_api):
    cms_api.seed("photos", *EVENTS)
    cms_api.fail("DELETE", "/photos/e1")
    controller = events_controller(http)
    await controller.load()

    assert not await controller.delete("e1", lambda prompt: True)
    assert len(controller.items) == 3
    assert controller.last_notification.description == "Failed to delete event"
    assert "HTTP 500" in controller.last_error


@pytest.mark.parametrize("is_active, message", [
    (False, "Press release deactivated successfully"),
    (True, "Press release activated successfully"),
])
async def test_toggle_active(http, cms_api, is_active, message):
    cms_api.seed("press", {
        "_id": "p1", "title": "Launch", "date": "2024-05-01", "source": "Wire", "author": "Jo",
        "isActive": not is_active,
    })
    controller = press_controller(http)
    await controller.load()

    assert await controller.toggle_active("p1", is_active)

    assert cms_api.calls("PUT", "/press/p1")[0].json == {"isActive": is_active}
    assert controller.find("p1").is_active is is_active
    assert controller.last_notification.description == message


async def test_toggle_active_failure(http, cms_api):
    cms_api.seed("press", {"_id": "p1", "title": "Launch", "date": "2024-05-01", "isActive": True})
    cms_api.fail("PUT", "/press/p1", 502)
    controller = press_controller(http)
    await controller.load()

    assert not await controller.toggle_active("p1", False)
    assert controller.find("p1").is_active is True
    assert controller.last_notification.description == "Failed to update press release status"


def test_edit_path():
    controller = ListController(
        None,
        noun="press release",
        plural="press releases",
        search_fields=("title",),
        edit_route="/users/press-release/edit/{id}",
    )
    assert controller.edit_path("abc") == "/users/press-release/edit/abc"
    assert controller.find("abc") is None
