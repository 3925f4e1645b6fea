"""Tests for Grub domain models."""

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from grumble.domain.errors import GrubDecodeError
from grumble.domain.grubs import Grub, GrubDraft, priority_tag
from tests.conftest import make_grub


def test_from_payload_reads_wire_keys() -> None:
    grub = Grub.from_payload(
        {
            "food": "Pad Thai",
            "price": 11.5,
            "restaurant": "Thai Town",
            "tags": {"food": 1, "thai": 3},
            "date": "2024-05-01T18:04:00+00:00",
            "img": "images/pad.jpg",
        },
        fid="pad9xk218_4_0",
    )

    assert grub.fid == "pad9xk218_4_0"
    assert grub.name == "Pad Thai"
    assert grub.price == 11.5
    assert grub.address is None
    assert grub.priority_tag == "thai"
    assert grub.image_ref == "images/pad.jpg"


def test_from_payload_reports_missing_fields() -> None:
    with pytest.raises(GrubDecodeError) as excinfo:
        Grub.from_payload({"tags": {"food": 1}}, fid="abc")

    assert set(excinfo.value.missing_fields) == {"food", "date"}


def test_from_payload_rejects_non_mapping() -> None:
    with pytest.raises(GrubDecodeError):
        Grub.from_payload(["not", "a", "dict"], fid="abc")


def test_from_payload_rejects_blank_name() -> None:
    with pytest.raises(GrubDecodeError):
        Grub.from_payload({"food": "   ", "date": "2024-05-01T00:00:00Z"}, fid="abc")


def test_tags_always_include_default() -> None:
    grub = make_grub(tags={})
    tagged = make_grub(tags={"spicy": 2})

    assert grub.tags == {"food": 1.0}
    assert tagged.tags == {"spicy": 2.0, "food": 1.0}


def test_naive_created_at_is_treated_as_utc() -> None:
    grub = make_grub(created_at=datetime(2024, 5, 1, 9, 0, 0))

    assert grub.created_at.tzinfo is not None
    assert grub.created_at == datetime(2024, 5, 1, 9, 0, 0, tzinfo=UTC)


def test_to_payload_uses_aliases_and_omits_empty_fields() -> None:
    grub = make_grub(restaurant="  ", tags={"food": 1, "mexican": 2})

    payload = grub.to_payload()

    assert payload["food"] == "Taco"
    assert payload["fid"] == "tac1a2b12_30_5"
    assert payload["priorityTag"] == "mexican"
    assert payload["date"].startswith("2024-05-01T12:30:05")
    assert "restaurant" not in payload
    assert "price" not in payload
    assert Grub.from_payload(payload) == grub


def test_priority_tag_prefers_heaviest_non_default() -> None:
    assert priority_tag({"food": 5}) == "food"
    assert priority_tag({"food": 1, "sweet": 2, "cold": 4}) == "cold"
    assert priority_tag({"food": 1, "sweet": 2, "cold": 2}) == "sweet"
    assert priority_tag({"food": 1, "odd": 0}) == "food"


def test_draft_requires_name() -> None:
    with pytest.raises(ValidationError):
        GrubDraft(name=" ")

    draft = GrubDraft(name=" Ramen ", address="")
    assert draft.name == "Ramen"
    assert draft.address is None
    assert draft.tags == {"food": 1.0}
