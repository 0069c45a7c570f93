import json
from functools import lru_cache
from pathlib import Path
from typing import Any

from jsonschema import Draft202012Validator

from skill_linker.errors import InvalidConfigSchemaError

SCHEMAS_DIR = Path(__file__).resolve().parent / "schemas"


def _schema_error_message(error: Any) -> str:
    path = ".".join([str(part) for part in error.path])
    return f"{error.message} at {path}" if path else str(error.message)


@lru_cache(maxsize=None)
def validator_for(schema_name: str) -> Draft202012Validator:
    schema_path = SCHEMAS_DIR / f"{schema_name}.schema.json"
    return Draft202012Validator(json.loads(schema_path.read_text(encoding="utf-8")))


def validate_payload(payload: Any, source: Path, schema_name: str) -> None:
    error = next(iter(validator_for(schema_name).iter_errors(payload)), None)
    if error is not None:
        raise InvalidConfigSchemaError(source, _schema_error_message(error))
