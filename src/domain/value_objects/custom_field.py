from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any


class CustomFieldType(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    SELECT = "select"


class CustomFieldError(ValueError):
    def __init__(self, key: str, message: str) -> None:
        super().__init__(f"{key}: {message}")
        self.key = key
        self.message = message


@dataclass(slots=True, frozen=True)
class CustomFieldDefinition:
    key: str
    label: str
    type: CustomFieldType = CustomFieldType.TEXT
    required: bool = False
    options: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> CustomFieldDefinition:
        return cls(
            key=str(raw["key"]),
            label=str(raw.get("label") or raw["key"]),
            type=CustomFieldType(raw.get("type", CustomFieldType.TEXT.value)),
            required=bool(raw.get("required", False)),
            options=tuple(str(o) for o in raw.get("options") or ()),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "key": self.key,
            "label": self.label,
            "type": self.type.value,
            "required": self.required,
        }
        if self.options:
            data["options"] = list(self.options)
        return data

    def coerce(self, value: Any) -> str | float:
        """Normalize a raw value into its stored representation.

        Numbers are stored as floats and dates as ISO strings so the map stays
        JSON serializable.
        """
        if self.type is CustomFieldType.NUMBER:
            if isinstance(value, bool):
                raise CustomFieldError(self.key, "expected a number")
            try:
                return float(value)
            except (TypeError, ValueError) as exc:
                raise CustomFieldError(self.key, "expected a number") from exc
        if self.type is CustomFieldType.DATE:
            if isinstance(value, datetime):
                return value.date().isoformat()
            if isinstance(value, date):
                return value.isoformat()
            try:
                return date.fromisoformat(str(value)[:10]).isoformat()
            except ValueError as exc:
                raise CustomFieldError(self.key, "expected an ISO date") from exc
        if self.type is CustomFieldType.SELECT:
            text = str(value)
            if text not in self.options:
                raise CustomFieldError(self.key, f"'{text}' is not one of {list(self.options)}")
            return text
        if not isinstance(value, (str, int, float)):
            raise CustomFieldError(self.key, "expected text")
        return str(value)


def validate_custom_data(
    definitions: list[CustomFieldDefinition], data: dict[str, Any] | None
) -> dict[str, str | float]:
    """Validate a lot's custom data map against template definitions."""
    data = data or {}
    by_key = {d.key: d for d in definitions}
    unknown = sorted(set(data) - set(by_key))
    if unknown:
        raise CustomFieldError(unknown[0], "field is not defined in the lot template")
    cleaned: dict[str, str | float] = {}
    for definition in definitions:
        value = data.get(definition.key)
        if value is None or value == "":
            if definition.required:
                raise CustomFieldError(definition.key, "field is required")
            continue
        cleaned[definition.key] = definition.coerce(value)
    return cleaned
