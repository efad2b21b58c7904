"""
User endpoints - CRUD, lookups, existence checks and search (RESTful API).
Challenge: Clear status codes; the password never appears in a response.
Design: Thin controller; service raises domain errors, app/api/errors.py maps them.
"""

import logging
from datetime import datetime

from fastapi import APIRouter, Query, status

from app.core.dependencies import UserServiceDep
from app.db.repositories.user_repository import UserCriteria
from app.schemas.user import ErrorResponse, UserCreate, UserResponse, UserUpdate

logger = logging.getLogger(__name__)

router = APIRouter()

NOT_FOUND = {status.HTTP_404_NOT_FOUND: {"model": ErrorResponse}}
CONFLICT = {status.HTTP_409_CONFLICT: {"model": ErrorResponse}}
BAD_REQUEST = {status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse}}


@router.post(
    "",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    responses={**BAD_REQUEST, **CONFLICT},
)
@router.post(
    "/",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    include_in_schema=False,
)
async def create_user(svc: UserServiceDep, data: UserCreate):
    """Create a user. Username and email must be unique."""
    # Never log the password
    logger.info("Creating user username=%s email=%s", data.username, data.email)
    user = await svc.create_user(data.to_model())
    return UserResponse.from_model(user)


@router.get("", response_model=list[UserResponse])
@router.get("/", response_model=list[UserResponse], include_in_schema=False)
async def list_users(svc: UserServiceDep):
    users = await svc.get_all_users()
    logger.info("Listed %d users", len(users))
    return [UserResponse.from_model(u) for u in users]


# Fixed paths are declared before /{user_id} so they are not parsed as ids


@router.get("/count", response_model=int)
async def count_users(svc: UserServiceDep):
    return await svc.get_total_user_count()


@router.get("/search", response_model=list[UserResponse], responses=BAD_REQUEST)
async def search_users(
    svc: UserServiceDep,
    first_name: str | None = Query(None, alias="firstName", min_length=1),
    last_name: str | None = Query(None, alias="lastName", min_length=1),
    username_contains: str | None = Query(None, alias="usernameContains", min_length=1),
    email_domain: str | None = Query(None, alias="emailDomain", min_length=1),
    created_from: datetime | None = Query(None, alias="createdFrom"),
    created_to: datetime | None = Query(None, alias="createdTo"),
):
    """Filter users. Names match case-insensitively; creation bounds are inclusive."""
    criteria = UserCriteria(
        first_name=first_name,
        last_name=last_name,
        username_contains=username_contains,
        email_domain=email_domain,
        created_from=created_from,
        created_to=created_to,
    )
    users = await svc.search_users(criteria)
    return [UserResponse.from_model(u) for u in users]


@router.get("/email/{email}", response_model=UserResponse, responses=NOT_FOUND)
async def get_user_by_email(svc: UserServiceDep, email: str):
    return UserResponse.from_model(await svc.get_user_by_email(email))


@router.get("/username/{username}", response_model=UserResponse, responses=NOT_FOUND)
async def get_user_by_username(svc: UserServiceDep, username: str):
    return UserResponse.from_model(await svc.get_user_by_username(username))


@router.get("/exists/email/{email}", response_model=bool)
async def user_exists_by_email(svc: UserServiceDep, email: str):
    exists = await svc.user_exists_by_email(email)
    logger.debug("User exists by email %s = %s", email, exists)
    return exists


@router.get("/exists/username/{username}", response_model=bool)
async def user_exists_by_username(svc: UserServiceDep, username: str):
    exists = await svc.user_exists_by_username(username)
    logger.debug("User exists by username %s = %s", username, exists)
    return exists


@router.get("/{user_id}", response_model=UserResponse, responses=NOT_FOUND)
async def get_user(svc: UserServiceDep, user_id: int):
    return UserResponse.from_model(await svc.get_user(user_id))


@router.put(
    "/{user_id}",
    response_model=UserResponse,
    responses={**BAD_REQUEST, **NOT_FOUND, **CONFLICT},
)
async def update_user(svc: UserServiceDep, user_id: int, data: UserUpdate):
    """Replace name, email and username. Password changes are not accepted here."""
    logger.info("Updating user id=%s username=%s email=%s", user_id, data.username, data.email)
    user = await svc.update_user(user_id, data.to_model())
    return UserResponse.from_model(user)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT, responses=NOT_FOUND)
async def delete_user(svc: UserServiceDep, user_id: int):
    logger.info("Deleting user id=%s", user_id)
    await svc.delete_user(user_id)
