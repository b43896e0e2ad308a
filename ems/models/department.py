from datetime import datetime
from typing import Optional

from ems.models.base import MongoModel


class Department(MongoModel):
    name: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
