"""Conversion of Python values to database-ready values and SQL literals."""

import datetime
import enum
import json
from typing import Any

from pydantic import BaseModel

DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"
DATE_FORMAT = "%Y-%m-%d"


def serialize_value(value: Any,
                    datetime_format: str = DATETIME_FORMAT,
                    date_format: str = DATE_FORMAT) -> Any:
    """Convert a Python value to something every DB-API driver can bind.

    Date/time values become canonical text, enums their value, pydantic models
    and containers JSON text. Other values are returned unchanged.
    """
    # datetime is a subclass of date: check it first
    if isinstance(value, datetime.datetime):
        return value.strftime(datetime_format)
    if isinstance(value, datetime.date):
        return value.strftime(date_format)
    if isinstance(value, datetime.time):
        return value.isoformat()
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, BaseModel):
        return json.dumps(value.model_dump(mode="json"), ensure_ascii=False)
    if isinstance(value, (dict, list, tuple, set)):
        if isinstance(value, set):
            value = sorted(value)
        return json.dumps(value, ensure_ascii=False)
    return value


def quote_literal(value: Any) -> str:
    """Render a value as a quoted SQL literal (``NULL`` for None)."""
    if value is None:
        return "NULL"
    value = serialize_value(value)
    if isinstance(value, bool):
        value = int(value)
    return "'" + str(value).replace("'", "''") + "'"
