"""Mapper-wide settings."""

from pydantic import BaseModel

from .utils.serialize import DATE_FORMAT, DATETIME_FORMAT


class MapperConfig(BaseModel):
    """Settings shared by every repository of a mapper."""

    model_config = {"frozen": True}

    datetime_format: str = DATETIME_FORMAT
    """strftime format for datetime values written to the database."""
    date_format: str = DATE_FORMAT
    """strftime format for date values written to the database."""
    cache_namespace: str = "MapperResult"
    """Namespace of the default in-memory result cache."""
    join_kind: str = "LEFT JOIN"
    """JOIN used when an association is eager loaded with ``with_()``."""
