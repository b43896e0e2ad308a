import logging

from fastapi import APIRouter, Depends, status
from pymongo.errors import DuplicateKeyError

from ems.core.exceptions import DuplicateEmail, InvalidCredentials
from ems.core.permissions import Role
from ems.core.security import (
    create_access_token,
    get_password_hash,
    require_admin,
    verify_password,
    verify_token,
)
from ems.db.mongodb import get_db
from ems.models.base import utcnow
from ems.models.user import Credential
from ems.schemas.user import (
    AuthResponse,
    CreateUserRequest,
    CreateUserResponse,
    CurrentUser,
    LoginRequest,
    SignupRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


async def ensure_email_available(db, email: str):
    if await db.users.find_one({"email": email}):
        raise DuplicateEmail()


async def insert_credential(db, email: str, password: str, role: str) -> Credential:
    await ensure_email_available(db, email)
    document = {
        "email": email,
        "password_hash": get_password_hash(password),
        "role": role,
        "created_at": utcnow(),
    }
    try:
        result = await db.users.insert_one(document)
    except DuplicateKeyError as exc:
        raise DuplicateEmail() from exc
    document["_id"] = result.inserted_id
    return Credential.from_mongo(document)


def issue_token(user: Credential) -> str:
    return create_access_token(user.id, user.role.value, email=user.email)


# ──────────────────────────────────────
# SIGNUP (POST /auth/signup), always role "employee"
# ──────────────────────────────────────
@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def signup(data: SignupRequest):
    db = await get_db()
    user = await insert_credential(db, data.email, data.password, Role.EMPLOYEE.value)
    logger.info("New account registered: %s", user.email)
    return {"token": issue_token(user), "user": user}


# ──────────────────────────────────────
# LOGIN (POST /auth/login)
# ──────────────────────────────────────
@router.post("/login", response_model=AuthResponse)
async def login(data: LoginRequest):
    db = await get_db()
    user = Credential.from_mongo(await db.users.find_one({"email": data.email}))
    if not user or not verify_password(data.password, user.password_hash):
        logger.info("Failed login attempt for %s", data.email)
        raise InvalidCredentials()
    return {"token": issue_token(user), "user": user}


# ──────────────────────────────────────
# CREATE HR / ADMIN ACCOUNT (POST /auth/create-user), admin only
# ──────────────────────────────────────
@router.post("/create-user", response_model=CreateUserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(data: CreateUserRequest, current_user: dict = Depends(require_admin)):
    db = await get_db()
    user = await insert_credential(db, data.email, data.password, data.role)
    logger.info("%s account %s created by %s", user.role.value, user.email, current_user["id"])
    return {"user": user}


@router.get("/me", response_model=CurrentUser)
async def read_users_me(current_user: dict = Depends(verify_token)):
    return current_user
