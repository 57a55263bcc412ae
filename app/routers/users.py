from fastapi import APIRouter, Depends, HTTPException, Query, status

from app import models, schemas
from app.auth.dependencies import get_current_user
from app.db import settings
from app.domain.catalog.errors import CatalogError
from app.routers.common import check_paging, dump, dump_list, get_accounts, http_error
from app.security import create_access_token
from app.services.accounts import AccountsService

router = APIRouter(prefix="/api", tags=["users"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(payload: schemas.RegisterPayload, accounts: AccountsService = Depends(get_accounts)):
    try:
        user = accounts.register_user(payload)
    except CatalogError as exc:
        raise http_error(exc) from exc
    return {"error": False, "message": "User created !", "user": dump(schemas.UserOut, user)}


@router.post("/login")
def login(payload: schemas.LoginPayload, accounts: AccountsService = Depends(get_accounts)):
    user = accounts.authenticate(payload.username, payload.password)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Wrong Username or Password !")
    token = create_access_token({"sub": user.id, "email": user.email})
    return {
        "error": False,
        "message": "Login success !",
        "user": dump(schemas.UserOut, user),
        "token": token,
        "expires_in_seconds": settings.access_token_expire_minutes * 60,
    }


@router.get("/users")
def list_users(
    page: int | None = Query(default=None),
    limit: int | None = Query(default=None),
    _user: models.User = Depends(get_current_user),
    accounts: AccountsService = Depends(get_accounts),
):
    page, limit = check_paging(page, limit)
    result = accounts.list_users(page, limit)
    return {
        "error": False,
        "message": "Success get all users",
        "users": dump_list(schemas.UserDetailOut, result.items),
        "pagination": result.pagination(),
    }


@router.get("/user/{user_id}")
def get_user(
    user_id: str,
    _user: models.User = Depends(get_current_user),
    accounts: AccountsService = Depends(get_accounts),
):
    user = accounts.get_user(user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found !")
    return {"error": False, "message": "Successfully get user by id !", "user": dump(schemas.UserDetailOut, user)}


@router.put("/user/update")
def update_current_user(
    payload: schemas.UserUpdate,
    user: models.User = Depends(get_current_user),
    accounts: AccountsService = Depends(get_accounts),
):
    try:
        updated = accounts.update_user(user.id, payload)
    except CatalogError as exc:
        raise http_error(exc) from exc
    return {"error": False, "message": "User updated !", "user": dump(schemas.UserDetailOut, updated)}
