from fastapi import APIRouter, Depends, HTTPException, status

from app import models, schemas
from app.auth.dependencies import get_current_user
from app.domain.catalog.errors import CatalogError
from app.routers.common import dump, dump_list, get_master_data, http_error
from app.services.master_data import MasterDataService

router = APIRouter(prefix="/api/master-data", tags=["master-data"])


# Categories


@router.get("/categories")
def list_categories(
    _user: models.User = Depends(get_current_user),
    service: MasterDataService = Depends(get_master_data),
):
    return {
        "error": False,
        "message": "Successfully get all categories",
        "categories": dump_list(schemas.CategoryOut, service.list_categories()),
    }


@router.post("/category", status_code=status.HTTP_201_CREATED)
def create_category(
    payload: schemas.CategoryCreate,
    _user: models.User = Depends(get_current_user),
    service: MasterDataService = Depends(get_master_data),
):
    try:
        category = service.create_category(payload)
    except CatalogError as exc:
        raise http_error(exc) from exc
    return {"error": False, "message": "Category created", "category": dump(schemas.CategoryOut, category)}


@router.get("/category/{category_id}")
def get_category(
    category_id: str,
    _user: models.User = Depends(get_current_user),
    service: MasterDataService = Depends(get_master_data),
):
    category = service.get_category(category_id)
    if category is None:
        raise HTTPException(status_code=404, detail="Category not found")
    return {"error": False, "message": "Successfully get category", "category": dump(schemas.CategoryOut, category)}


@router.put("/category/{category_id}")
def update_category(
    category_id: str,
    payload: schemas.CategoryUpdate,
    _user: models.User = Depends(get_current_user),
    service: MasterDataService = Depends(get_master_data),
):
    try:
        category = service.update_category(category_id, payload)
    except CatalogError as exc:
        raise http_error(exc) from exc
    return {"error": False, "message": "Category updated", "category": dump(schemas.CategoryOut, category)}


@router.delete("/category/{category_id}")
def delete_category(
    category_id: str,
    _user: models.User = Depends(get_current_user),
    service: MasterDataService = Depends(get_master_data),
):
    try:
        service.delete_category(category_id)
    except CatalogError as exc:
        raise http_error(exc) from exc
    return {"error": False, "message": "Category deleted", "category_id": category_id}


# Colours


@router.get("/colours")
def list_colours(
    _user: models.User = Depends(get_current_user),
    service: MasterDataService = Depends(get_master_data),
):
    return {
        "error": False,
        "message": "Successfully get all colours",
        "colours": dump_list(schemas.ColourOut, service.list_colours()),
    }


@router.post("/colour", status_code=status.HTTP_201_CREATED)
def create_colour(
    payload: schemas.ColourCreate,
    _user: models.User = Depends(get_current_user),
    service: MasterDataService = Depends(get_master_data),
):
    try:
        colour = service.create_colour(payload)
    except CatalogError as exc:
        raise http_error(exc) from exc
    return {"error": False, "message": "Colour created", "colour": dump(schemas.ColourOut, colour)}


@router.get("/colour/{colour_id}")
def get_colour(
    colour_id: str,
    _user: models.User = Depends(get_current_user),
    service: MasterDataService = Depends(get_master_data),
):
    colour = service.get_colour(colour_id)
    if colour is None:
        raise HTTPException(status_code=404, detail="Colour not found")
    return {"error": False, "message": "Successfully get colour", "colour": dump(schemas.ColourOut, colour)}


@router.put("/colour/{colour_id}")
def update_colour(
    colour_id: str,
    payload: schemas.ColourUpdate,
    _user: models.User = Depends(get_current_user),
    service: MasterDataService = Depends(get_master_data),
):
    try:
        colour = service.update_colour(colour_id, payload)
    except CatalogError as exc:
        raise http_error(exc) from exc
    return {"error": False, "message": "Colour updated", "colour": dump(schemas.ColourOut, colour)}


@router.delete("/colour/{colour_id}")
def delete_colour(
    colour_id: str,
    _user: models.User = Depends(get_current_user),
    service: MasterDataService = Depends(get_master_data),
):
    try:
        service.delete_colour(colour_id)
    except CatalogError as exc:
        raise http_error(exc) from exc
    return {"error": False, "message": "Colour deleted", "colour_id": colour_id}


# Sizes


@router.get("/sizes")
def list_sizes(
    _user: models.User = Depends(get_current_user),
    service: MasterDataService = Depends(get_master_data),
):
    return {
        "error": False,
        "message": "Successfully get all sizes",
        "sizes": dump_list(schemas.SizeOut, service.list_sizes()),
    }


@router.post("/size", status_code=status.HTTP_201_CREATED)
def create_size(
    payload: schemas.SizeCreate,
    _user: models.User = Depends(get_current_user),
    service: MasterDataService = Depends(get_master_data),
):
    try:
        size = service.create_size(payload)
    except CatalogError as exc:
        raise http_error(exc) from exc
    return {"error": False, "message": "Size created", "size": dump(schemas.SizeOut, size)}


@router.get("/size/{size_id}")
def get_size(
    size_id: str,
    _user: models.User = Depends(get_current_user),
    service: MasterDataService = Depends(get_master_data),
):
    size = service.get_size(size_id)
    if size is None:
        raise HTTPException(status_code=404, detail="Size not found")
    return {"error": False, "message": "Successfully get size", "size": dump(schemas.SizeOut, size)}


@router.put("/size/{size_id}")
def update_size(
    size_id: str,
    payload: schemas.SizeUpdate,
    _user: models.User = Depends(get_current_user),
    service: MasterDataService = Depends(get_master_data),
):
    try:
        size = service.update_size(size_id, payload)
    except CatalogError as exc:
        raise http_error(exc) from exc
    return {"error": False, "message": "Size updated", "size": dump(schemas.SizeOut, size)}


@router.delete("/size/{size_id}")
def delete_size(
    size_id: str,
    _user: models.User = Depends(get_current_user),
    service: MasterDataService = Depends(get_master_data),
):
    try:
        service.delete_size(size_id)
    except CatalogError as exc:
        raise http_error(exc) from exc
    return {"error": False, "message": "Size deleted", "size_id": size_id}
