import httpx
import pytest

from app.api_client import create_http_client
from app.schemas import PressRelease
from app.services.resource_client import (
    Payload,
    RequestFailed,
    encode_form_value,
    photo_events_client,
    press_releases_client,
    sliders_client,
    videos_client,
)
from tests.fake_cms import BASE_URL, PNG_BYTES

PRESS = {
    "_id": "p1",
    "title": "Launch day",
    "date": "2024-05-01",
    "content": "<p>Hello</p>",
    "source": "Wire",
    "author": "Jo",
    "tags": ["launch"],
    "isActive": True,
}


def test_encode_form_value():
    assert encode_form_value(True) == "true"
    assert encode_form_value(False) == "false"
    assert encode_form_value(["launch", "product"]) == '["launch", "product"]'
    assert encode_form_value(3) == "3"


def test_payload_without_files_is_json():
    payload = Payload(data={"title": "T", "isActive": False})
    assert not payload.is_multipart
    assert payload.request_kwargs() == {"json": {"title": "T", "isActive": False}}


def test_payload_with_files_is_multipart():
    payload = Payload(
        data={"tags": ["a", "b"], "isActive": True, "link": None},
        files=[("thumbnail", ("t.png", b"x", "image/png"))],
        repeated={"captions": ["one", "two"]},
    )
    kwargs = payload.request_kwargs()
    assert kwargs["data"] == {"tags": '["a", "b"]', "isActive": "true", "captions": ["one", "two"]}
    assert kwargs["files"] == [("thumbnail", ("t.png", b"x", "image/png"))]


async def test_list_parses_records(http, cms_api):
    cms_api.seed("press", PRESS)
    records = await press_releases_client(http).list()
    assert [r.id for r in records] == ["p1"]
    assert records[0].is_active is True
    assert cms_api.calls("GET", "/press")


async def test_get_accepts_plain_id_key(http, cms_api):
    cms_api.seed("videos", {
        "_id": "v1",
        "title": "Intro",
        "thumbnail": "https://img.test/v1.jpg",
        "videoLink": "https://video.test/v1",
        "publishDate": "2024-01-02",
        "category": "news",
    })
    video = await videos_client(http).get("v1")
    assert video.id == "v1"
    assert video.video_link == "https://video.test/v1"


async def test_create_sends_json_and_returns_record(http, cms_api):
    body = {k: v for k, v in PRESS.items() if k != "_id"}
    record = await press_releases_client(http).create(Payload(data=body))

    assert isinstance(record, PressRelease)
    assert record.title == "Launch day"
    assert cms_api.calls("POST", "/press")[0].json == body


async def test_slider_envelope_is_unwrapped(http, cms_api):
    cms_api.seed("sliders", {"_id": "s1", "title": "Hero", "order": 1})
    slider = await sliders_client(http).update("s1", Payload(data={"order": 4}))
    assert slider.id == "s1"
    assert slider.order == 4


async def test_update_without_body_returns_none(http, cms_api):
    cms_api.seed("sliders", {"_id": "s1", "title": "Hero", "order": 1})
    cms_api.empty_updates = True
    assert await sliders_client(http).update("s1", Payload(data={"order": 2})) is None
    assert cms_api.record("sliders", "s1")["order"] == 2


async def test_remove_issues_one_delete(http, cms_api):
    cms_api.seed("press", PRESS)
    await press_releases_client(http).remove("p1")
    assert len(cms_api.calls("DELETE", "/press/p1")) == 1
    assert "p1" not in cms_api.collections["press"]


async def test_http_error_becomes_request_failed(http, cms_api):
    cms_api.fail("GET", "/press", 503)
    with pytest.raises(RequestFailed) as excinfo:
        await press_releases_client(http).list()
    assert excinfo.value.status_code == 503
    assert "HTTP 503" in str(excinfo.value)


async def test_not_found_keeps_status(http):
    with pytest.raises(RequestFailed) as excinfo:
        await press_releases_client(http).get("missing")
    assert excinfo.value.status_code == 404


async def test_non_json_body_becomes_request_failed(http, cms_api):
    cms_api.malformed.add(("GET", "/press"))
    with pytest.raises(RequestFailed, match="not valid JSON"):
        await press_releases_client(http).list()


async def test_unexpected_shape_becomes_request_failed(http, cms_api):
    cms_api.seed("press", {"_id": "p2", "date": "2024-05-01"})
    with pytest.raises(RequestFailed, match="unexpected response"):
        await press_releases_client(http).list()


async def test_transport_error_becomes_request_failed():
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    async with create_http_client(base_url=BASE_URL, transport=httpx.MockTransport(refuse)) as http:
        with pytest.raises(RequestFailed, match="transport error: ConnectError"):
            await videos_client(http).list()


async def test_reorder_sends_ids(http, cms_api):
    cms_api.seed(
        "sliders",
        {"_id": "a", "title": "A", "order": 1},
        {"_id": "b", "title": "B", "order": 2},
    )
    await sliders_client(http).reorder(["b", "a"])
    assert cms_api.calls("PUT", "/sliders/reorder")[0].json == {"ids": ["b", "a"]}
    assert cms_api.record("sliders", "b")["order"] == 1


async def test_fetch_asset_by_absolute_url(http, cms_api):
    cms_api.assets["/events/e1.png"] = (PNG_BYTES, "image/png")
    content, content_type = await photo_events_client(http).fetch_asset("https://qr.test/events/e1.png")
    assert content == PNG_BYTES
    assert content_type == "image/png"


async def test_fetch_asset_follows_redirects(http, cms_api):
    cms_api.assets["/events/e1.png"] = (PNG_BYTES, "image/png")
    cms_api.redirects["/legacy/e1.png"] = "https://qr.test/events/e1.png"

    content, content_type = await photo_events_client(http).fetch_asset("http://qr.test/legacy/e1.png")

    assert content == PNG_BYTES
    assert content_type == "image/png"


async def test_fetch_missing_asset_fails(http):
    with pytest.raises(RequestFailed):
        await photo_events_client(http).fetch_asset("https://qr.test/events/none.png")
