"""Checks every request schema is a valid Draft 2020-12 schema."""

from pathlib import Path
import json
import sys
from jsonschema import Draft202012Validator
from jsonschema.exceptions import SchemaError


SCHEMA_DIR = Path(__file__).resolve().parent.parent / "gateway_server" / "schemas"


def validate() -> list[str]:
    failures = []
    for schema in sorted(SCHEMA_DIR.glob("*.json")):
        data = json.loads(schema.read_text())
        try:
            Draft202012Validator.check_schema(data)
        except SchemaError as exc:
            failures.append(f"{schema.name}: {exc.message}")
    return failures


if __name__ == "__main__":
    problems = validate()
    for problem in problems:
        print(problem)
    sys.exit(1 if problems else 0)
