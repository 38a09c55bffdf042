from fastapi import APIRouter, Depends, HTTPException, Query
from pymongo.errors import DuplicateKeyError

from talenthr.models.marketplace import Category
from talenthr.models.users import User
from talenthr.routers.auth import get_current_user
from talenthr.schemas.marketplace import CategoryCreate
from talenthr.utils.serialize import document_to_dict, documents_to_list

router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("")
async def list_categories(include_inactive: bool = Query(False)):
    query = {} if include_inactive else {"is_active": True}
    categories = await Category.find(query).sort(+Category.name).to_list()
    roots = [c for c in categories if c.parent_category is None]
    children = [c for c in categories if c.parent_category is not None]
    return {
        "success": True,
        "categories": documents_to_list(roots),
        "sub_categories": documents_to_list(children),
        "all": documents_to_list(categories),
    }


@router.post("", status_code=201)
async def create_category(payload: CategoryCreate, current_user: User = Depends(get_current_user)):
    if await Category.find_one(Category.slug == payload.slug):
        raise HTTPException(status_code=409, detail="Category with this slug already exists")
    if payload.parent_category and not await Category.get(payload.parent_category):
        raise HTTPException(status_code=400, detail="Invalid parent category")

    category = Category(**payload.model_dump())
    try:
        await category.insert()
    except DuplicateKeyError:
        raise HTTPException(status_code=409, detail="Category with this slug already exists")
    return {"success": True, "message": "Category created successfully", "category": document_to_dict(category)}
