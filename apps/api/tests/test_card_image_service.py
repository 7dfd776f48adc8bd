"""Tests for connect card image cleanup."""

from botocore.exceptions import ClientError

from app.core.org_context import AgencyContext, PlatformContext, storage_prefix
from app.services import card_image_service
from app.services.card_image_service import delete_card_images, is_owned_key


CONTEXT = AgencyContext(slug="grace")


def _key(name: str, context=CONTEXT) -> str:
    return f"{storage_prefix(context)}/{name}"


class _FakeS3:
    def __init__(self, errors: list[str] | None = None, fail: bool = False):
        self.calls: list[list[str]] = []
        self.errors = errors or []
        self.fail = fail

    def delete_objects(self, Bucket, Delete):  # noqa: N803
        keys = [obj["Key"] for obj in Delete["Objects"]]
        self.calls.append(keys)
        if self.fail:
            raise ClientError({"Error": {"Code": "500", "Message": "boom"}}, "DeleteObjects")
        return {
            "Deleted": [{"Key": k} for k in keys if k not in self.errors],
            "Errors": [{"Key": k, "Code": "AccessDenied"} for k in keys if k in self.errors],
        }


def test_image_keys_are_prefixed_per_church():
    key = _key("2025/card.jpg")

    assert key == "organizations/grace/connect-cards/2025/card.jpg"
    assert is_owned_key(CONTEXT, key)
    assert not is_owned_key(AgencyContext(slug="grace-2"), key)
    assert _key("card.jpg", PlatformContext()) == "platform/connect-cards/card.jpg"


def test_delete_skips_foreign_keys():
    s3 = _FakeS3()
    owned = _key("a.jpg")
    foreign = "organizations/other/connect-cards/b.jpg"

    report = delete_card_images([owned, foreign, None], CONTEXT, client=s3)

    assert s3.calls == [[owned]]
    assert report.deleted == 1
    assert report.errors == 1
    assert report.error_keys == [foreign]


def test_delete_reports_per_key_errors():
    failing = _key("b.jpg")
    s3 = _FakeS3(errors=[failing])

    report = delete_card_images([_key("a.jpg"), failing], CONTEXT, client=s3)

    assert report.as_dict() == {"deleted": 1, "errors": 1, "error_keys": [failing]}


def test_delete_storage_failure_is_reported_not_raised():
    keys = [_key(f"{i}.jpg") for i in range(3)]

    report = delete_card_images(keys, CONTEXT, client=_FakeS3(fail=True))

    assert report.deleted == 0
    assert report.errors == 3


def test_delete_chunks_large_batches(monkeypatch):
    monkeypatch.setattr(card_image_service, "DELETE_BATCH_SIZE", 2)
    s3 = _FakeS3()
    keys = [_key(f"{i}.jpg") for i in range(5)]

    report = delete_card_images(keys, CONTEXT, client=s3)

    assert [len(call) for call in s3.calls] == [2, 2, 1]
    assert report.deleted == 5


def test_nothing_to_delete_does_not_create_client(monkeypatch):
    def _no_client():
        raise AssertionError("client should not be created")

    monkeypatch.setattr(card_image_service, "get_s3_client", _no_client)

    report = delete_card_images([None, ""], CONTEXT)

    assert report.deleted == 0
    assert report.errors == 0
