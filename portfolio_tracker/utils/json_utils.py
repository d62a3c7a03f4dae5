import json
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any


def json_serializer(obj: Any):
    """`default=` hook for json.dumps covering what the ORM and schemas return."""
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, Decimal):
        return float(obj)
    if isinstance(obj, Enum):
        return obj.value
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def to_json(data: Any) -> str:
    return json.dumps(data, default=json_serializer)


def from_json(raw):
    return json.loads(raw) if raw else None
