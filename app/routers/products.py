from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status

from app import models, schemas
from app.auth.dependencies import get_current_user
from app.domain.catalog.errors import CatalogError
from app.routers.common import (
    check_paging,
    dump,
    dump_list,
    get_accounts,
    get_catalog_engine,
    get_catalog_queries,
    http_error,
)
from app.services.accounts import AccountsService
from app.services.catalog_engine import (
    CANNOT_DELETE_LAST_VARIANT,
    DEFAULT_PRODUCT_AVATAR,
    CatalogEngine,
)
from app.services.catalog_queries import CatalogQueries
from app.storage import MAX_IMAGE_BYTES, LocalStorage, get_storage, save_product_avatar

router = APIRouter(prefix="/api", tags=["products"])


def _ensure_product_owner(
    product_id: str,
    user: models.User,
    accounts: AccountsService,
    queries: CatalogQueries,
    action: str,
) -> models.Product:
    product = queries.get_product(product_id)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    if not accounts.product_owned_by_user(product_id, user.id):
        raise HTTPException(status_code=403, detail=f"Can't {action} product that not owned by this user !")
    return product


@router.post("/product", status_code=status.HTTP_201_CREATED)
def create_product(
    payload: schemas.ProductCreate,
    user: models.User = Depends(get_current_user),
    engine: CatalogEngine = Depends(get_catalog_engine),
    accounts: AccountsService = Depends(get_accounts),
):
    if not payload.merchant_id:
        raise HTTPException(status_code=422, detail="Merchant ID is required!")
    if not accounts.merchant_owned_by_user(payload.merchant_id, user.id):
        raise HTTPException(status_code=403, detail="Can't create product for merchant that not owned by this user !")

    fields = payload.model_dump(exclude_unset=True, exclude={"variants", "has_variant"})
    variants = [item.model_dump(exclude_unset=True) for item in payload.variants or []]
    try:
        product = engine.create(fields, variants)
    except CatalogError as exc:
        raise http_error(exc) from exc
    return {
        "error": False,
        "message": "Product created successfully",
        "product": dump(schemas.ProductOut, product),
    }


@router.get("/products")
def list_products(
    page: int | None = Query(default=None),
    limit: int | None = Query(default=None),
    _user: models.User = Depends(get_current_user),
    queries: CatalogQueries = Depends(get_catalog_queries),
):
    page, limit = check_paging(page, limit)
    result = queries.list_products(page, limit)
    return {
        "error": False,
        "message": "Successfully get all products",
        "products": dump_list(schemas.ProductOut, result.items),
        "pagination": result.pagination(),
    }


@router.get("/products/category/{category_id}")
def list_products_by_category(
    category_id: str,
    page: int | None = Query(default=None),
    limit: int | None = Query(default=None),
    _user: models.User = Depends(get_current_user),
    queries: CatalogQueries = Depends(get_catalog_queries),
):
    page, limit = check_paging(page, limit)
    result = queries.list_products_by_category(category_id, page, limit)
    if result is None:
        raise HTTPException(status_code=404, detail="Category not found")
    return {
        "error": False,
        "message": "Products retrieved successfully",
        "data": {
            "category": dump(schemas.CategoryOut, result["category"]),
            "products": dump_list(schemas.ProductOut, result["products"]),
            "pagination": result["pagination"],
        },
    }


@router.get("/products/search")
def search_products(
    q: str | None = Query(default=None),
    page: int | None = Query(default=None),
    limit: int | None = Query(default=None),
    _user: models.User = Depends(get_current_user),
    queries: CatalogQueries = Depends(get_catalog_queries),
):
    if not q or not q.strip():
        raise HTTPException(status_code=400, detail="Search term (q) is required")
    page, limit = check_paging(page, limit)
    result = queries.search_products_by_name(q, page, limit)
    return {
        "error": False,
        "message": "Search completed successfully",
        "data": {
            "searchTerm": q,
            "products": dump_list(schemas.ProductOut, result.items),
            "pagination": result.pagination(),
        },
    }


@router.get("/product/{product_id}")
def get_product(
    product_id: str,
    _user: models.User = Depends(get_current_user),
    queries: CatalogQueries = Depends(get_catalog_queries),
):
    product = queries.get_product(product_id)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return {
        "error": False,
        "message": "Successfully get product by id",
        "product": dump(schemas.ProductOut, product),
    }


@router.put("/product/{product_id}")
def update_product(
    product_id: str,
    payload: schemas.ProductUpdate,
    user: models.User = Depends(get_current_user),
    engine: CatalogEngine = Depends(get_catalog_engine),
    queries: CatalogQueries = Depends(get_catalog_queries),
    accounts: AccountsService = Depends(get_accounts),
):
    _ensure_product_owner(product_id, user, accounts, queries, "update")
    fields = payload.model_dump(exclude_unset=True, exclude={"variants", "has_variant"})
    batch = payload.variants.model_dump(exclude_unset=True) if payload.variants is not None else None
    try:
        product = engine.update(product_id, fields, batch)
    except CatalogError as exc:
        raise http_error(exc) from exc
    return {
        "error": False,
        "message": "Product updated successfully",
        "product": dump(schemas.ProductOut, product),
    }


@router.delete("/product/{product_id}")
def delete_product(
    product_id: str,
    user: models.User = Depends(get_current_user),
    engine: CatalogEngine = Depends(get_catalog_engine),
    queries: CatalogQueries = Depends(get_catalog_queries),
    accounts: AccountsService = Depends(get_accounts),
):
    _ensure_product_owner(product_id, user, accounts, queries, "delete")
    try:
        engine.delete_product(product_id)
    except CatalogError as exc:
        raise http_error(exc) from exc
    return {"error": False, "message": "Successfully delete product", "product_id": product_id}


@router.get("/product/{product_id}/variants")
def list_product_variants(
    product_id: str,
    _user: models.User = Depends(get_current_user),
    queries: CatalogQueries = Depends(get_catalog_queries),
):
    result = queries.list_product_variants(product_id)
    if result is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return {
        "error": False,
        "message": "Product variants retrieved successfully",
        "data": {**result, "variants": dump_list(schemas.VariantOut, result["variants"])},
    }


@router.post("/product/{product_id}/variant", status_code=status.HTTP_201_CREATED)
def add_product_variant(
    product_id: str,
    payload: schemas.VariantIn,
    user: models.User = Depends(get_current_user),
    engine: CatalogEngine = Depends(get_catalog_engine),
    queries: CatalogQueries = Depends(get_catalog_queries),
    accounts: AccountsService = Depends(get_accounts),
):
    _ensure_product_owner(product_id, user, accounts, queries, "add variant to")
    try:
        added = engine.add_variant(product_id, payload)
    except CatalogError as exc:
        raise http_error(exc) from exc
    if added is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return {
        "error": False,
        "message": "Variant added successfully",
        "variant": dump(schemas.VariantOut, added.variant),
        "variant_count": added.variant_count,
        "product_has_variant": added.product_has_variant,
    }


@router.put("/product/{product_id}/variant/{variant_id}")
def update_product_variant(
    product_id: str,
    variant_id: str,
    payload: schemas.VariantUpdate,
    user: models.User = Depends(get_current_user),
    engine: CatalogEngine = Depends(get_catalog_engine),
    queries: CatalogQueries = Depends(get_catalog_queries),
    accounts: AccountsService = Depends(get_accounts),
):
    _ensure_product_owner(product_id, user, accounts, queries, "update variant of")
    try:
        variant = engine.update_variant(variant_id, payload, product_id=product_id)
    except CatalogError as exc:
        raise http_error(exc) from exc
    if variant is None:
        raise HTTPException(status_code=404, detail="Variant not found or doesn't belong to this product")
    return {
        "error": False,
        "message": "Variant updated successfully",
        "variant": dump(schemas.VariantOut, variant),
    }


@router.delete("/product/{product_id}/variant/{variant_id}")
def delete_product_variant(
    product_id: str,
    variant_id: str,
    user: models.User = Depends(get_current_user),
    engine: CatalogEngine = Depends(get_catalog_engine),
    queries: CatalogQueries = Depends(get_catalog_queries),
    accounts: AccountsService = Depends(get_accounts),
):
    _ensure_product_owner(product_id, user, accounts, queries, "delete variant of")
    try:
        result = engine.delete_variant(product_id, variant_id)
    except CatalogError as exc:
        raise http_error(exc) from exc
    if not result.success:
        status_code = 422 if result.reason == CANNOT_DELETE_LAST_VARIANT else 404
        raise HTTPException(status_code=status_code, detail=result.message)
    return {
        "error": False,
        "message": "Variant deleted successfully",
        "data": {
            "deleted_variant_id": result.deleted_variant_id,
            "remaining_variant_count": result.remaining_variant_count,
            "product_has_variant": result.product_has_variant,
        },
    }


@router.post("/product/{product_id}/avatar")
def upload_product_avatar(
    product_id: str,
    file: UploadFile = File(...),
    user: models.User = Depends(get_current_user),
    engine: CatalogEngine = Depends(get_catalog_engine),
    queries: CatalogQueries = Depends(get_catalog_queries),
    accounts: AccountsService = Depends(get_accounts),
    storage: LocalStorage = Depends(get_storage),
):
    product = _ensure_product_owner(product_id, user, accounts, queries, "update")
    contents = file.file.read(MAX_IMAGE_BYTES + 1)
    try:
        url = save_product_avatar(storage, product_id, file.filename, file.content_type, contents)
    except CatalogError as exc:
        raise http_error(exc) from exc
    try:
        updated = engine.update(product_id, {"avatar": url})
    except CatalogError as exc:
        storage.delete_by_url(url)
        raise http_error(exc) from exc
    if product.avatar and product.avatar != DEFAULT_PRODUCT_AVATAR:
        storage.delete_by_url(product.avatar)
    return {
        "error": False,
        "message": "Product avatar updated",
        "product": dump(schemas.ProductOut, updated),
    }
