import logging
import re
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from pymongo.errors import DuplicateKeyError

from ems.core.exceptions import DuplicateEmail, NotFoundError, ValidationError
from ems.core.permissions import Role
from ems.core.security import require_manager, verify_token
from ems.db.mongodb import get_db
from ems.models.base import to_object_id, utcnow
from ems.models.employee import Employee
from ems.models.user import Credential
from ems.schemas.employee import EmployeeIn, EmployeeOut
from ems.schemas.user import UserOut

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/employees", tags=["employees"])


# ──────────────────────────────────────
# UTILS
# ──────────────────────────────────────
def clean_search_term(term: str) -> str:
    return re.escape(term.strip())


async def attach_department_names(db, documents: List[dict]) -> List[Employee]:
    oids = {to_object_id(d.get("department_id")) for d in documents}
    oids.discard(None)
    names = {}
    if oids:
        departments = await db.departments.find({"_id": {"$in": list(oids)}}).to_list(length=None)
        names = {str(d["_id"]): d["name"] for d in departments}

    employees = []
    for document in documents:
        document["department_name"] = names.get(document.get("department_id"))
        employees.append(Employee.from_mongo(document))
    return employees


async def get_employee_or_404(db, employee_id: str) -> dict:
    oid = to_object_id(employee_id)
    document = await db.employees.find_one({"_id": oid}) if oid else None
    if not document:
        raise NotFoundError("Employee not found.")
    return document


async def validate_references(db, data: EmployeeIn):
    department_oid = to_object_id(data.department_id)
    if department_oid is None or not await db.departments.find_one({"_id": department_oid}):
        raise ValidationError("Validation failed.", errors=["department_id: Department not found."])

    # Linking the same account to two employees is not rejected here;
    # /unlinked-users only offers accounts that are still free.
    if data.user_id is not None:
        user_oid = to_object_id(data.user_id)
        if user_oid is None or not await db.users.find_one({"_id": user_oid}):
            raise ValidationError("Validation failed.", errors=["user_id: User not found."])


async def ensure_email_available(db, email: str, exclude_id=None):
    query = {"email": email}
    if exclude_id is not None:
        query["_id"] = {"$ne": exclude_id}
    if await db.employees.find_one(query):
        raise DuplicateEmail("Employee email already exists.")


def to_document(data: EmployeeIn) -> dict:
    return {
        "name": data.name,
        "email": data.email,
        "role": data.role.value,
        "department_id": data.department_id,
        "joining_date": data.joining_date.isoformat(),
        "user_id": data.user_id,
    }


# ──────────────────────────────────────
# LIST + SEARCH (GET /employees)
# ──────────────────────────────────────
@router.get("", response_model=List[EmployeeOut])
async def list_employees(
    search: Optional[str] = Query(None, description="Case-insensitive match on name or email"),
    department_id: Optional[str] = Query(None, description="Exact department id"),
    current_user: dict = Depends(verify_token),
):
    db = await get_db()
    query = {}

    if search and search.strip():
        regex = {"$regex": clean_search_term(search), "$options": "i"}
        query["$or"] = [{"name": regex}, {"email": regex}]

    if department_id:
        if to_object_id(department_id) is None:
            raise ValidationError("Validation failed.", errors=["department_id: Invalid id."])
        query["department_id"] = department_id

    documents = await db.employees.find(query, sort=[("name", 1)]).to_list(length=None)
    return await attach_department_names(db, documents)


# ──────────────────────────────────────
# ACCOUNTS AVAILABLE FOR LINKING (GET /employees/unlinked-users)
# ──────────────────────────────────────
@router.get("/unlinked-users", response_model=List[UserOut])
async def list_unlinked_users(current_user: dict = Depends(require_manager)):
    db = await get_db()
    linked = await db.employees.distinct("user_id")
    linked_oids = [oid for oid in (to_object_id(u) for u in linked if u) if oid is not None]

    documents = await db.users.find(
        {"role": Role.EMPLOYEE.value, "_id": {"$nin": linked_oids}},
        sort=[("email", 1)],
    ).to_list(length=None)
    return [Credential.from_mongo(d) for d in documents]


@router.get("/{employee_id}", response_model=EmployeeOut)
async def get_employee(employee_id: str, current_user: dict = Depends(verify_token)):
    db = await get_db()
    document = await get_employee_or_404(db, employee_id)
    return (await attach_department_names(db, [document]))[0]


# ──────────────────────────────────────
# CREATE (POST /employees)
# ──────────────────────────────────────
@router.post("", response_model=EmployeeOut, status_code=status.HTTP_201_CREATED)
async def create_employee(data: EmployeeIn, current_user: dict = Depends(require_manager)):
    db = await get_db()
    await validate_references(db, data)
    await ensure_email_available(db, data.email)

    now = utcnow()
    document = {**to_document(data), "created_at": now, "updated_at": now}
    try:
        result = await db.employees.insert_one(document)
    except DuplicateKeyError as exc:
        raise DuplicateEmail("Employee email already exists.") from exc
    document["_id"] = result.inserted_id

    logger.info("Employee %s created by %s", result.inserted_id, current_user["id"])
    return (await attach_department_names(db, [document]))[0]


# ──────────────────────────────────────
# UPDATE (PUT /employees/{id})
# ──────────────────────────────────────
@router.put("/{employee_id}", response_model=EmployeeOut)
async def update_employee(employee_id: str, data: EmployeeIn,
                          current_user: dict = Depends(require_manager)):
    db = await get_db()
    existing = await get_employee_or_404(db, employee_id)
    await validate_references(db, data)
    await ensure_email_available(db, data.email, exclude_id=existing["_id"])

    try:
        await db.employees.update_one(
            {"_id": existing["_id"]},
            {"$set": {**to_document(data), "updated_at": utcnow()}},
        )
    except DuplicateKeyError as exc:
        raise DuplicateEmail("Employee email already exists.") from exc

    logger.info("Employee %s updated by %s", existing["_id"], current_user["id"])
    document = await get_employee_or_404(db, employee_id)
    return (await attach_department_names(db, [document]))[0]


# ──────────────────────────────────────
# DELETE (DELETE /employees/{id})
# The linked account, if any, is kept.
# ──────────────────────────────────────
@router.delete("/{employee_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_employee(employee_id: str, current_user: dict = Depends(require_manager)):
    db = await get_db()
    existing = await get_employee_or_404(db, employee_id)
    await db.employees.delete_one({"_id": existing["_id"]})

    logger.info("Employee %s deleted by %s", existing["_id"], current_user["id"])
    return Response(status_code=status.HTTP_204_NO_CONTENT)
