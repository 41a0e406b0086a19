"""JSON serialization for event payloads and audit records.

Lifecycle events carry UUIDs, aware datetimes and enum values; the standard
encoder rejects all three.
"""

import json
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel


class ExtendedJSONEncoder(json.JSONEncoder):
    """JSON encoder for the types found in entity snapshots.

    Supports:
    - UUID -> string
    - datetime/date -> ISO format string
    - Decimal -> float
    - Enum -> value
    - set/frozenset -> sorted list
    - Pydantic models -> dict
    """

    def default(self, obj: Any) -> Any:
        if isinstance(obj, UUID):
            return str(obj)
        if isinstance(obj, datetime | date):
            return obj.isoformat()
        if isinstance(obj, Decimal):
            return float(obj)
        if isinstance(obj, Enum):
            return obj.value
        if isinstance(obj, set | frozenset):
            return sorted(obj, key=str)
        if isinstance(obj, BaseModel):
            return obj.model_dump(mode="json")
        return super().default(obj)


def dumps(obj: Any, **kwargs: Any) -> str:
    """Serialize ``obj`` to a JSON string with extended type support.

    Example:
        >>> dumps({"id": UUID(int=1), "at": datetime(2024, 1, 15)})
        '{"id": "00000000-0000-0000-0000-000000000001", "at": "2024-01-15T00:00:00"}'
    """
    return json.dumps(obj, cls=ExtendedJSONEncoder, **kwargs)


def loads(s: str | bytes, **kwargs: Any) -> Any:
    return json.loads(s, **kwargs)
