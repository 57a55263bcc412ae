from fastapi import APIRouter, Depends, HTTPException, Query, status

from app import models, schemas
from app.auth.dependencies import get_current_user
from app.domain.catalog.errors import CatalogError
from app.routers.common import check_paging, dump, dump_list, get_accounts, http_error
from app.services.accounts import AccountsService

router = APIRouter(prefix="/api", tags=["merchants"])


def _ensure_merchant_owner(merchant_id: str, user: models.User, accounts: AccountsService, action: str) -> None:
    if accounts.get_merchant(merchant_id) is None:
        raise HTTPException(status_code=404, detail="Merchant not found !")
    if not accounts.merchant_owned_by_user(merchant_id, user.id):
        raise HTTPException(status_code=403, detail=f"Can't {action} merchant that not owned by this user !")


@router.get("/merchants")
def list_merchants(
    page: int | None = Query(default=None),
    limit: int | None = Query(default=None),
    _user: models.User = Depends(get_current_user),
    accounts: AccountsService = Depends(get_accounts),
):
    page, limit = check_paging(page, limit)
    result = accounts.list_merchants(page, limit)
    return {
        "error": False,
        "message": "Successfully get all merchants !",
        "merchants": dump_list(schemas.MerchantOut, result.items),
        "pagination": result.pagination(),
    }


@router.get("/merchant/{merchant_id}")
def get_merchant(
    merchant_id: str,
    _user: models.User = Depends(get_current_user),
    accounts: AccountsService = Depends(get_accounts),
):
    merchant = accounts.get_merchant(merchant_id)
    if merchant is None:
        raise HTTPException(status_code=404, detail="Merchant not found !")
    return {
        "error": False,
        "message": "Successfully get spesific merchant!",
        "merchant": dump(schemas.MerchantOut, merchant),
    }


@router.post("/merchant", status_code=status.HTTP_201_CREATED)
def create_merchant(
    payload: schemas.MerchantCreate,
    user: models.User = Depends(get_current_user),
    accounts: AccountsService = Depends(get_accounts),
):
    try:
        merchant = accounts.create_merchant(user.id, payload)
    except CatalogError as exc:
        raise http_error(exc) from exc
    return {
        "error": False,
        "message": "Successfully create merchant !",
        "merchant": dump(schemas.MerchantOut, merchant),
    }


@router.put("/merchant/{merchant_id}")
def update_merchant(
    merchant_id: str,
    payload: schemas.MerchantUpdate,
    user: models.User = Depends(get_current_user),
    accounts: AccountsService = Depends(get_accounts),
):
    _ensure_merchant_owner(merchant_id, user, accounts, "update")
    try:
        merchant = accounts.update_merchant(merchant_id, payload)
    except CatalogError as exc:
        raise http_error(exc) from exc
    return {
        "error": False,
        "message": "Successfully update merchant !",
        "merchant": dump(schemas.MerchantOut, merchant),
    }


@router.delete("/merchant/{merchant_id}")
def delete_merchant(
    merchant_id: str,
    user: models.User = Depends(get_current_user),
    accounts: AccountsService = Depends(get_accounts),
):
    _ensure_merchant_owner(merchant_id, user, accounts, "delete")
    try:
        accounts.delete_merchant(merchant_id)
    except CatalogError as exc:
        raise http_error(exc) from exc
    return {"error": False, "message": "Merchant successfully deleted !", "merchant_id": merchant_id}
