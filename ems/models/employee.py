from datetime import date, datetime
from typing import Optional

from ems.core.permissions import Role
from ems.models.base import MongoModel


class Employee(MongoModel):
    """HR profile stored in the ``employees`` collection.

    ``role`` is informational only. ``department_id`` and ``user_id`` are
    string references to ``departments`` and ``users``; neither is owned,
    so either may dangle after the referenced document is deleted.
    """

    name: str
    email: str
    role: Role
    department_id: str
    joining_date: date
    user_id: Optional[str] = None
    department_name: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
