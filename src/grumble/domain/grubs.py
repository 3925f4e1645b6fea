"""Domain models for Grub entries."""

from datetime import UTC, datetime

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    computed_field,
    field_validator,
)

from grumble.domain.errors import GrubDecodeError

DEFAULT_TAG = "food"


def _default_tags() -> dict[str, float]:
    return {DEFAULT_TAG: 1.0}


def _require_text(value: str) -> str:
    cleaned = value.strip()
    if not cleaned:
        raise ValueError("must not be empty")
    return cleaned


def _blank_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    cleaned = value.strip()
    return cleaned or None


def _with_default_tag(tags: dict[str, float]) -> dict[str, float]:
    resolved = dict(tags)
    resolved.setdefault(DEFAULT_TAG, 1.0)
    return resolved


def priority_tag(tags: dict[str, float]) -> str:
    """Return the highest-weighted non-default tag, or the default tag."""
    best_tag, best_weight = DEFAULT_TAG, 0.0
    for tag, weight in tags.items():
        if tag != DEFAULT_TAG and weight > best_weight:
            best_tag, best_weight = tag, weight
    return best_tag


class Grub(BaseModel):
    """A single food or restaurant entry.

    Field aliases are the keys used by the local mirror file and the remote
    store, so ``to_payload`` and ``from_payload`` round-trip through either.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    fid: str = Field(min_length=1)
    name: str = Field(alias="food")
    price: float | None = None
    restaurant: str | None = None
    address: str | None = None
    tags: dict[str, float] = Field(default_factory=_default_tags)
    created_at: datetime = Field(alias="date")
    image_ref: str | None = Field(default=None, alias="img")

    @field_validator("name")
    @classmethod
    def _validate_name(cls, value: str) -> str:
        return _require_text(value)

    @field_validator("restaurant", "address", "image_ref")
    @classmethod
    def _validate_optional_text(cls, value: str | None) -> str | None:
        return _blank_to_none(value)

    @field_validator("tags")
    @classmethod
    def _validate_tags(cls, value: dict[str, float]) -> dict[str, float]:
        return _with_default_tag(value)

    @field_validator("created_at")
    @classmethod
    def _validate_created_at(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value

    @computed_field(alias="priorityTag")  # type: ignore[prop-decorator]
    @property
    def priority_tag(self) -> str:
        """Tag used to group the entry for display."""
        return priority_tag(self.tags)

    @classmethod
    def from_payload(cls, payload: object, fid: str | None = None) -> "Grub":
        """Decode a stored payload, using ``fid`` when the payload lacks one."""
        if not isinstance(payload, dict):
            raise GrubDecodeError(
                f"Grub payload must be a mapping, got {type(payload).__name__}"
            )
        data = dict(payload)
        if fid is not None:
            data.setdefault("fid", fid)
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            missing = tuple(
                ".".join(str(part) for part in error["loc"])
                for error in exc.errors()
                if error["type"] == "missing"
            )
            if missing:
                message = f"Grub payload is missing {', '.join(missing)}"
            else:
                message = f"Invalid grub payload: {exc.error_count()} error(s)"
            raise GrubDecodeError(message, missing_fields=missing) from exc

    def to_payload(self) -> dict[str, object]:
        """Serialize to the wire shape shared by the mirror and remote store."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class GrubDraft(BaseModel):
    """User-entered fields for creating or editing a Grub."""

    name: str
    price: str | float | None = None
    restaurant: str | None = None
    address: str | None = None
    tags: dict[str, float] = Field(default_factory=_default_tags)
    image_ref: str | None = None

    @field_validator("name")
    @classmethod
    def _validate_name(cls, value: str) -> str:
        return _require_text(value)

    @field_validator("restaurant", "address", "image_ref")
    @classmethod
    def _validate_optional_text(cls, value: str | None) -> str | None:
        return _blank_to_none(value)

    @field_validator("tags")
    @classmethod
    def _validate_tags(cls, value: dict[str, float]) -> dict[str, float]:
        return _with_default_tag(value)
