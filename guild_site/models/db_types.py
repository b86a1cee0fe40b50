"""
Database type compatibility layer
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlalchemy import JSON
from sqlalchemy.dialects.postgresql import JSONB as PostgresJSONB

# Use JSONB on PostgreSQL, plain JSON on MySQL and SQLite
JSONB = JSON().with_variant(PostgresJSONB(), "postgresql")


class CamelModel(BaseModel):
    """Response schema base: snake_case in Python, camelCase on the wire"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )
