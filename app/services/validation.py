"""Validation helpers for legacy export documents."""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Tuple

import jsonschema


class ValidationService:
    """Validate payloads against the LegacyExport schema."""

    def __init__(self) -> None:
        schema_path = Path(__file__).parent.parent / "schemas" / "legacy_export.schema.json"
        with schema_path.open("r", encoding="utf-8") as handle:
            self.schema = json.load(handle)

        jsonschema.validators.Draft202012Validator.check_schema(self.schema)
        self._validator = jsonschema.validators.Draft202012Validator(self.schema)

    def validate(self, payload: Dict[str, Any]) -> Tuple[bool, List[Dict[str, str]]]:
        """Collect every schema violation plus unparseable budget dates."""
        errors: List[Dict[str, str]] = []

        for error in sorted(self._validator.iter_errors(payload), key=lambda e: "/".join(map(str, e.absolute_path))):
            path = "/" + "/".join(str(part) for part in error.absolute_path)
            errors.append({"path": path or "/", "message": error.message})

        if not errors:
            for index, budget in enumerate(payload.get("budgets", [])):
                try:
                    datetime.fromisoformat(budget["dateCreated"].replace("Z", "+00:00"))
                except ValueError:
                    errors.append(
                        {
                            "path": f"/budgets/{index}/dateCreated",
                            "message": f"{budget['dateCreated']!r} is not an ISO 8601 timestamp",
                        }
                    )

        return not errors, errors
