from datetime import datetime
from typing import Optional

from ems.core.permissions import Role
from ems.models.base import MongoModel


class Credential(MongoModel):
    """Login identity stored in the ``users`` collection."""

    email: str
    password_hash: str
    role: Role = Role.EMPLOYEE
    created_at: Optional[datetime] = None
