from datetime import datetime, timezone
from typing import Optional

from bson import ObjectId
from bson.errors import InvalidId
from pydantic import BaseModel


def to_object_id(value) -> Optional[ObjectId]:
    """Return an ObjectId for ``value``, or None when it is not a well-formed id."""
    if value is None:
        return None
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MongoModel(BaseModel):
    id: Optional[str] = None  # _id as str for JSON

    @classmethod
    def from_mongo(cls, document: Optional[dict]):
        if document is None:
            return None
        data = dict(document)
        data["id"] = str(data.pop("_id"))
        return cls(**data)
