from datetime import time
from typing import ClassVar
from pydantic import BaseModel, ConfigDict, model_validator
from pydantic.alias_generators import to_camel

PHONE_PATTERN = r"^\+?[0-9]{7,15}$"
ACADEMIC_YEAR_PATTERN = r"^[0-9]{4}-[0-9]{4}$"
HHMM_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class CamelModel(BaseModel):
    """camelCase on the wire, snake_case in Python; accepts either on input."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        use_enum_values=True,
    )


class PartialUpdate(CamelModel):
    """Update payloads: every field optional, but at least one must be sent.

    An explicit ``null`` clears a column only when the field is listed in
    ``CLEARABLE``; for other fields it is ignored.
    """
    CLEARABLE: ClassVar[frozenset] = frozenset()

    @model_validator(mode="after")
    def require_one_field(self):
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided")
        return self

    def changes(self) -> dict:
        return {
            key: value
            for key, value in self.model_dump(exclude_unset=True).items()
            if value is not None or key in self.CLEARABLE
        }


def format_hhmm(value: time | None) -> str | None:
    return value.strftime("%H:%M") if value else None


def parse_hhmm(value: str | None) -> time | None:
    if not value:
        return None
    hours, minutes = value.split(":")
    return time(int(hours), int(minutes))


def strip_time(data, *fields):
    """Reduce ISO timestamps to their date part for date-only fields.

    "2025-06-10T00:00:00.000Z" names the calendar day 2025-06-10.
    """
    if not isinstance(data, dict):
        return data
    for field in fields:
        for key in (field, to_camel(field)):
            value = data.get(key)
            if isinstance(value, str) and "T" in value:
                data[key] = value.split("T", 1)[0]
    return data
