"""Schema validation for merchant requests, backed by the JSON Schemas in ``gateway_server/schemas``."""

from __future__ import annotations

import json
from datetime import date
from functools import lru_cache
from pathlib import Path
from typing import Any

from jsonschema import Draft202012Validator, ValidationError
from jsonschema.exceptions import best_match

SCHEMA_DIR = Path(__file__).resolve().parent.parent / "schemas"


class RequestValidationError(ValueError):
    """Raised when a merchant request fails schema or cross-field validation."""

    def __init__(self, message: str, path: str = "") -> None:
        super().__init__(message)
        self.message = message
        self.path = path

    def as_detail(self) -> dict[str, str]:
        detail = {"message": self.message}
        if self.path:
            detail["field"] = self.path
        return detail


class SchemaRegistry:
    def __init__(self, schema_dir: Path = SCHEMA_DIR) -> None:
        self._schema_dir = schema_dir
        self._validators: dict[str, Draft202012Validator] = {}
        self._load()

    def _load(self) -> None:
        for schema_path in sorted(self._schema_dir.glob("*.json")):
            data = json.loads(schema_path.read_text())
            Draft202012Validator.check_schema(data)
            self._validators[schema_path.stem] = Draft202012Validator(
                data,
                format_checker=Draft202012Validator.FORMAT_CHECKER,
            )

    @property
    def names(self) -> list[str]:
        return sorted(self._validators)

    def validate(self, schema_name: str, payload: Any) -> None:
        try:
            validator = self._validators[schema_name]
        except KeyError as exc:
            raise ValueError(f"unknown schema {schema_name}") from exc
        error = _first_error(validator, payload)
        if error is not None:
            field = ".".join(str(part) for part in error.absolute_path)
            raise RequestValidationError(error.message, field)


def _first_error(validator: Draft202012Validator, payload: Any) -> ValidationError | None:
    return best_match(validator.iter_errors(payload))


def check_date_range(from_date: str | None, to_date: str | None) -> None:
    """``toDate`` may not precede ``fromDate``; both are ISO dates already checked by schema."""
    if not from_date or not to_date:
        return
    if date.fromisoformat(to_date) < date.fromisoformat(from_date):
        raise RequestValidationError("toDate must be a date after or equal to fromDate", "toDate")


@lru_cache(maxsize=1)
def get_schema_registry() -> SchemaRegistry:
    return SchemaRegistry(SCHEMA_DIR)
