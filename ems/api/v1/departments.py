import logging
from typing import List

from fastapi import APIRouter, Depends, Response, status
from pymongo.errors import DuplicateKeyError

from ems.core.exceptions import DuplicateName, NotFoundError
from ems.core.security import require_manager, verify_token
from ems.db.mongodb import get_db
from ems.models.base import to_object_id, utcnow
from ems.models.department import Department
from ems.schemas.department import DepartmentIn, DepartmentOut

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/departments", tags=["departments"])


# ──────────────────────────────────────
# UTILS
# ──────────────────────────────────────
async def get_department_or_404(db, department_id: str) -> Department:
    oid = to_object_id(department_id)
    document = await db.departments.find_one({"_id": oid}) if oid else None
    if not document:
        raise NotFoundError("Department not found.")
    return Department.from_mongo(document)


async def ensure_name_available(db, name: str, exclude_id=None):
    query = {"name": name}
    if exclude_id is not None:
        query["_id"] = {"$ne": exclude_id}
    if await db.departments.find_one(query):
        raise DuplicateName()


# ──────────────────────────────────────
# LIST (GET /departments), sorted by name
# ──────────────────────────────────────
@router.get("", response_model=List[DepartmentOut])
async def list_departments(current_user: dict = Depends(verify_token)):
    db = await get_db()
    documents = await db.departments.find({}, sort=[("name", 1)]).to_list(length=None)
    return [Department.from_mongo(d) for d in documents]


@router.get("/{department_id}", response_model=DepartmentOut)
async def get_department(department_id: str, current_user: dict = Depends(verify_token)):
    db = await get_db()
    return await get_department_or_404(db, department_id)


# ──────────────────────────────────────
# CREATE (POST /departments)
# ──────────────────────────────────────
@router.post("", response_model=DepartmentOut, status_code=status.HTTP_201_CREATED)
async def create_department(data: DepartmentIn, current_user: dict = Depends(require_manager)):
    db = await get_db()
    await ensure_name_available(db, data.name)

    now = utcnow()
    document = {"name": data.name, "created_at": now, "updated_at": now}
    try:
        result = await db.departments.insert_one(document)
    except DuplicateKeyError as exc:
        raise DuplicateName() from exc
    document["_id"] = result.inserted_id

    logger.info("Department %r created by %s", data.name, current_user["id"])
    return Department.from_mongo(document)


# ──────────────────────────────────────
# UPDATE (PUT /departments/{id})
# ──────────────────────────────────────
@router.put("/{department_id}", response_model=DepartmentOut)
async def update_department(department_id: str, data: DepartmentIn,
                            current_user: dict = Depends(require_manager)):
    db = await get_db()
    department = await get_department_or_404(db, department_id)
    oid = to_object_id(department.id)
    await ensure_name_available(db, data.name, exclude_id=oid)

    try:
        await db.departments.update_one(
            {"_id": oid},
            {"$set": {"name": data.name, "updated_at": utcnow()}},
        )
    except DuplicateKeyError as exc:
        raise DuplicateName() from exc

    logger.info("Department %s renamed to %r by %s", department.id, data.name, current_user["id"])
    return await get_department_or_404(db, department.id)


# ──────────────────────────────────────
# DELETE (DELETE /departments/{id})
# Employees referencing the department are left as they are: their
# department_id dangles and they list with department_name null.
# ──────────────────────────────────────
@router.delete("/{department_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_department(department_id: str, current_user: dict = Depends(require_manager)):
    db = await get_db()
    department = await get_department_or_404(db, department_id)
    await db.departments.delete_one({"_id": to_object_id(department.id)})

    logger.info("Department %s (%r) deleted by %s", department.id, department.name, current_user["id"])
    return Response(status_code=status.HTTP_204_NO_CONTENT)
