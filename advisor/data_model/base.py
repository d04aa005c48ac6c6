from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List

from ..formatting import parse_number


@dataclass
class FieldDefinition:
    """Lightweight input descriptor used by the dashboard forms and /api/schema."""

    field: str
    label: str
    kind: str = "number"  # text | number | currency | percentage | select | checkbox
    default: Any = 0.0
    options: List[str] | None = None
    min_value: float | None = None
    step: float | None = None
    format: str | None = None
    help: str | None = None

    def to_payload(self) -> dict[str, Any]:
        return {
            "field": self.field,
            "label": self.label,
            "kind": self.kind,
            "default": self.default,
            "options": self.options or [],
            "min": self.min_value,
            "step": self.step,
            "format": self.format,
            "help": self.help,
        }


@dataclass
class CalculatorSchema:
    """Container for a calculator's input fields plus their defaults."""

    name: str
    title: str
    fields: List[FieldDefinition] = field(default_factory=list)

    def default_inputs(self) -> dict[str, Any]:
        return {f.field: f.default for f in self.fields}

    def to_payload(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "title": self.title,
            "fields": [f.to_payload() for f in self.fields],
            "defaults": self.default_inputs(),
        }


def payload_value(payload: dict, *keys: str, default=None):
    """First non-empty value among `keys`; later keys are legacy aliases."""
    for key in keys:
        if key in payload and payload[key] is not None and payload[key] != "":
            return payload[key]
    return default


def payload_float(payload: dict, *keys: str, default: float = 0.0) -> float:
    return parse_number(payload_value(payload, *keys), default)


def payload_optional_float(payload: dict, *keys: str) -> float | None:
    value = payload_value(payload, *keys)
    if value is None:
        return None
    parsed = parse_number(value, float("nan"))
    return None if parsed != parsed else parsed


def payload_int(payload: dict, *keys: str, default: int = 0) -> int:
    return int(parse_number(payload_value(payload, *keys), float(default)))


def payload_bool(payload: dict, *keys: str, default: bool = False) -> bool:
    value = payload_value(payload, *keys)
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


def payload_ids(payload: dict, plural: str, singular: str) -> list[str]:
    """Accept both `client_ids: [...]` and the legacy single `client_id`."""
    values = payload.get(plural)
    if isinstance(values, (list, tuple)):
        return [str(v) for v in values if v not in (None, "")]
    if values not in (None, ""):
        return [str(values)]
    single = payload.get(singular)
    return [str(single)] if single not in (None, "") else []
