from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any, Dict

from jsonschema import Draft7Validator

from ..models.exceptions import ResultValidationException

ANALYSIS_RESULT_CONTRACT = "analysis_result.json"

_GUARDRAILS_DIR = Path(__file__).resolve().parent.parent / "guardrails"
_SCHEMA_CACHE: Dict[str, Draft7Validator] = {}


def _load_schema(name: str) -> Draft7Validator:
    if name in _SCHEMA_CACHE:
        return _SCHEMA_CACHE[name]

    with open(_GUARDRAILS_DIR / name, "r", encoding="utf-8") as f:
        schema = json.load(f)
    Draft7Validator.check_schema(schema)
    validator = Draft7Validator(schema)
    _SCHEMA_CACHE[name] = validator
    return validator


def load_contract(name: str) -> Dict[str, Any]:
    """Return a copy of the contract schema, without the ``$schema``/``title`` keys.

    This is the form sent to the model as an output-format constraint.
    """
    schema = copy.deepcopy(_load_schema(name).schema)
    schema.pop("$schema", None)
    schema.pop("title", None)
    return schema


def validate_contract(name: str, payload: Any) -> None:
    validator = _load_schema(name)
    errors = sorted(validator.iter_errors(payload), key=lambda e: [str(p) for p in e.path])
    if errors:
        msgs = [f"{list(e.path)}: {e.message}" for e in errors]
        raise ResultValidationException(name, msgs)
