import pytest

from app.config import settings

SLIDERS = [
    {"_id": "s2", "title": "Summer sale", "subtitle": "Up to 50% off", "order": 2, "isActive": True},
    {"_id": "s1", "title": "Welcome", "subtitle": "New season", "order": 1, "isActive": True},
    {"_id": "s3", "title": "Gift cards", "subtitle": "", "order": 3, "isActive": False},
]


@pytest.fixture
def seeded(cms_api):
    cms_api.seed("sliders", *SLIDERS)
    return cms_api


def test_list_is_sorted_by_order(console, seeded):
    body = console.get("/console/sliders").json()
    assert [s["id"] for s in body["items"]] == ["s1", "s2", "s3"]
    assert [s["id"] for s in console.get("/console/sliders", params={"q": "season"}).json()["items"]] == ["s1"]


def test_new_draft_takes_next_order(console, seeded):
    body = console.get("/console/sliders/new").json()
    assert body["draft"]["order"] == 4
    assert body["draft"]["title"] == ""


def test_create_without_order_appends(console, seeded):
    response = console.post(
        "/console/sliders",
        data={"title": "Spring", "subtitle": "Fresh"},
        files={"image": ("spring.jpg", b"\xff\xd8jpeg", "image/jpeg")},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["item"]["order"] == 4
    assert body["item"]["imageUrl"] == "https://media.test/sliders/spring.jpg"
    assert body["notification"]["description"] == "Slider added successfully"


def test_create_first_slider_gets_order_one(console, cms_api):
    response = console.post("/console/sliders", data={"title": "Only"})
    assert response.status_code == 201
    assert response.json()["item"]["order"] == 1
    assert cms_api.calls("POST", "/sliders")[0].json["order"] == 1


def test_create_with_explicit_order_skips_listing(console, cms_api):
    response = console.post("/console/sliders", data={"title": "Pinned", "order": "7"})
    assert response.status_code == 201
    assert cms_api.calls("GET") == []


def test_create_failure(console, cms_api):
    cms_api.fail("POST", "/sliders", 500)
    response = console.post("/console/sliders", data={"title": "Spring", "order": "1"})
    assert response.status_code == 502
    assert response.json()["error"] == "Failed to save slider"


def test_get_and_update(console, seeded):
    body = console.get("/console/sliders/s2").json()
    assert body["edit_path"] == "/users/sliders/edit/s2"

    response = console.put(
        "/console/sliders/s2",
        data={"title": "Summer sale", "subtitle": "Up to 70% off", "order": "2", "isActive": "false"},
    )

    assert response.status_code == 200
    assert response.json()["item"]["subtitle"] == "Up to 70% off"
    assert response.json()["item"]["isActive"] is False
    assert response.json()["notification"]["description"] == "Slider updated successfully"


def test_update_keeps_fields_not_sent(console, seeded):
    response = console.put("/console/sliders/s3", data={"subtitle": "Give the perfect gift"})

    assert response.status_code == 200
    sent = seeded.calls("PUT", "/sliders/s3")[0].json
    assert sent == {"title": "Gift cards", "subtitle": "Give the perfect gift", "order": 3, "isActive": False, "link": ""}
    assert response.json()["item"]["isActive"] is False


def test_update_unknown(console, seeded):
    response = console.put("/console/sliders/nope", data={"title": "Ghost"})
    assert response.status_code == 404
    assert seeded.calls("PUT") == []


def test_get_unknown(console, seeded):
    assert console.get("/console/sliders/nope").status_code == 404


def test_toggle_active(console, seeded):
    response = console.patch("/console/sliders/s3/active", json={"isActive": True})
    assert response.status_code == 200
    assert response.json()["notification"]["description"] == "Slider activated successfully"
    assert seeded.record("sliders", "s3")["isActive"] is True


def test_move_up(console, seeded):
    response = console.post("/console/sliders/s2/move", json={"direction": "up"})

    assert response.status_code == 200
    body = response.json()
    assert body["moved"] is True
    assert [s["id"] for s in body["items"]] == ["s2", "s1", "s3"]
    assert [s["order"] for s in body["items"]] == [1, 2, 3]
    assert body["notification"]["description"] == "Slider order updated successfully"


def test_move_past_top_is_noop(console, seeded):
    response = console.post("/console/sliders/s1/move", json={"direction": "up"})

    assert response.status_code == 200
    assert response.json()["moved"] is False
    assert response.json()["notification"] is None
    assert seeded.calls("PUT") == []


def test_move_unknown_slider(console, seeded):
    response = console.post("/console/sliders/nope/move", json={"direction": "down"})
    assert response.status_code == 404


def test_move_rejects_bad_direction(console, seeded):
    response = console.post("/console/sliders/s1/move", json={"direction": "sideways"})
    assert response.status_code == 400
    assert response.json()["error"] == "Validation error"


def test_move_failure_reverts(console, seeded):
    seeded.fail("PUT", "/sliders/s1", 500)

    response = console.post("/console/sliders/s2/move", json={"direction": "up"})

    assert response.status_code == 502
    assert response.json()["error"] == "Failed to update slider order"
    assert seeded.record("sliders", "s2")["order"] == 2


def test_move_in_batch_mode(console, seeded, monkeypatch):
    monkeypatch.setattr(settings, "SLIDER_REORDER_MODE", "batch")

    response = console.post("/console/sliders/s3/move", json={"direction": "up"})

    assert response.status_code == 200
    assert seeded.calls("PUT", "/sliders/reorder")[0].json == {"ids": ["s1", "s3", "s2"]}
    assert [s["id"] for s in response.json()["items"]] == ["s1", "s3", "s2"]


def test_delete(console, seeded):
    response = console.delete("/console/sliders/s3", params={"confirm": "true"})
    assert response.status_code == 200
    assert response.json()["message"] == "Slider deleted successfully"
    assert "s3" not in seeded.collections["sliders"]
