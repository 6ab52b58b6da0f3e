"""Structural JSON Schema checks for raw case file payloads."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from jsonschema import FormatChecker
from jsonschema import exceptions as jsex
from jsonschema.validators import validator_for

from mtbintake.models import CaseFile

DEFAULT_SCHEMA_PATH = Path(__file__).resolve().parent / "schemas" / "case_file.schema.json"


class CaseFileFormatError(ValueError):
    """Raised when a payload does not have the shape of a case file."""

    def __init__(self, source: str, errors: list[str]) -> None:
        super().__init__(f"{source} is not a valid case file: " + "; ".join(errors))
        self.source = source
        self.errors = errors


def _error_to_text(err: jsex.ValidationError) -> str:
    return f"{err.message} (path=/{'/'.join(str(part) for part in err.path)})"


class CaseFileSchema:
    """Compiled case file schema; reports every error, not just the first."""

    def __init__(self, schema_path: str | Path = DEFAULT_SCHEMA_PATH) -> None:
        schema = json.loads(Path(schema_path).read_text())
        validator_cls = validator_for(schema)
        validator_cls.check_schema(schema)
        self._validator = validator_cls(schema, format_checker=FormatChecker())

    def errors(self, payload: Any) -> list[str]:
        found = sorted(
            self._validator.iter_errors(payload),
            key=lambda err: [str(part) for part in err.path],
        )
        return [_error_to_text(err) for err in found]

    def parse(self, payload: Any, *, source: str = "payload") -> CaseFile:
        errors = self.errors(payload)
        if errors:
            raise CaseFileFormatError(source, errors)
        return CaseFile.from_dict(payload)

    def load(self, path: str | Path) -> CaseFile:
        file_path = Path(path)
        try:
            payload = json.loads(file_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise CaseFileFormatError(
                str(file_path),
                [f"JSON parse error: {exc.msg} (line {exc.lineno}, col {exc.colno})"],
            ) from exc
        return self.parse(payload, source=str(file_path))
