"""
Pydantic Schemas for Object Catalog Records.
"""

from typing import Optional, Union
from pydantic import BaseModel, Field, field_validator

from .types import ObjectKind, ObjectType, MonitoredObject


class ObjectRecord(BaseModel):
    """Raw catalog record for an item or discovery rule."""
    object_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    object_type: ObjectType
    kind: ObjectKind = ObjectKind.ITEM
    master_id: Optional[str] = None
    host: Optional[str] = None

    @field_validator("object_id", "master_id", mode="before")
    @classmethod
    def coerce_id(cls, value):
        # Server ids are numeric in API payloads
        if isinstance(value, int):
            return str(value)
        return value

    @field_validator("object_type", mode="before")
    @classmethod
    def parse_type(cls, value: Union[str, int, ObjectType]):
        if isinstance(value, ObjectType):
            return value
        if isinstance(value, int):
            return ObjectType.from_code(value)
        text = str(value).strip()
        # API payloads carry the code as a string
        if text.isdigit():
            return ObjectType.from_code(int(text))
        return text.upper()

    @field_validator("kind", mode="before")
    @classmethod
    def parse_kind(cls, value):
        if isinstance(value, str):
            return value.strip().upper()
        return value

    def to_object(self) -> MonitoredObject:
        return MonitoredObject(
            object_id=self.object_id,
            name=self.name,
            object_type=self.object_type,
            kind=self.kind,
            master_id=self.master_id,
            host=self.host,
        )
