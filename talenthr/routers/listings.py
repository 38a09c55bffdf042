import re
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pymongo import ReturnDocument

from talenthr.core.errors import get_or_404, require_object_id
from talenthr.models.marketplace import Listing, ListingLocation
from talenthr.models.users import User
from talenthr.routers.auth import get_current_user
from talenthr.schemas.marketplace import ListingCreate, ListingUpdate
from talenthr.services import employee_service
from talenthr.utils.serialize import document_to_dict, paginate

router = APIRouter(prefix="/listings", tags=["listings"])

SORTS = {
    "newest": [("created_at", -1)],
    "oldest": [("created_at", 1)],
    "price-low": [("price", 1)],
    "price-high": [("price", -1)],
}


def _listing_out(listing: Listing, owners=None) -> dict:
    data = document_to_dict(listing)
    owner = (owners or {}).get(listing.user_id)
    data["seller"] = {"id": str(owner.id), "name": owner.name, "email": owner.email} if owner else None
    return data


async def _page(query: dict, sort_by: str, page: int, limit: int) -> dict:
    total = await Listing.find(query).count()
    listings = await Listing.find(query).sort(SORTS.get(sort_by, SORTS["newest"])).skip(
        (page - 1) * limit
    ).limit(limit).to_list()
    owners = await employee_service.users_by_ids(item.user_id for item in listings)
    return {
        "success": True,
        "listings": [_listing_out(item, owners) for item in listings],
        "pagination": paginate(total, page, limit),
    }


def _ci_exact(value: str) -> dict:
    return {"$regex": f"^{re.escape(value.strip())}$", "$options": "i"}


@router.get("")
async def list_listings(
    type: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    min_price: Optional[float] = Query(None, ge=0),
    max_price: Optional[float] = Query(None, ge=0),
    city: Optional[str] = Query(None),
    state: Optional[str] = Query(None),
    status: str = Query("active"),
    search: Optional[str] = Query(None),
    sort_by: str = Query("newest"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
):
    query = {"status": status}
    if type:
        query["type"] = type
    if category:
        query["category"] = category
    price = {}
    if min_price is not None:
        price["$gte"] = min_price
    if max_price is not None:
        price["$lte"] = max_price
    if price:
        query["price"] = price
    if city:
        query["location.city"] = _ci_exact(city)
    if state:
        query["location.state"] = _ci_exact(state)
    if search:
        pattern = {"$regex": re.escape(search), "$options": "i"}
        query["$or"] = [{"title": pattern}, {"description": pattern}]
    return await _page(query, sort_by, page, limit)


@router.post("", status_code=201)
async def create_listing(payload: ListingCreate, current_user: User = Depends(get_current_user)):
    listing = Listing(
        user_id=current_user.id,
        **payload.model_dump(exclude={"location"}),
        location=ListingLocation(**payload.location.model_dump()),
    )
    await listing.insert()
    return {
        "success": True,
        "message": "Listing created successfully",
        "listing": _listing_out(listing, {current_user.id: current_user}),
    }


@router.get("/user/{user_id}")
async def list_user_listings(
    user_id: str,
    status: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
):
    query = {"user_id": require_object_id(user_id, "user_id")}
    if status:
        query["status"] = status
    return await _page(query, "newest", page, limit)


@router.get("/{listing_id}")
async def get_listing(listing_id: str):
    listing = await get_or_404(Listing, listing_id, "Listing not found")
    doc = await Listing.get_motor_collection().find_one_and_update(
        {"_id": listing.id}, {"$inc": {"views": 1}}, return_document=ReturnDocument.AFTER
    )
    listing.views = doc["views"] if doc else listing.views + 1
    owners = await employee_service.users_by_ids([listing.user_id])
    return {"success": True, "listing": _listing_out(listing, owners)}


async def _owned_listing(listing_id: str, user: User) -> Listing:
    listing = await get_or_404(Listing, listing_id, "Listing not found")
    if listing.user_id != user.id:
        raise HTTPException(status_code=403, detail="You can only modify your own listings")
    return listing


@router.patch("/{listing_id}")
async def update_listing(listing_id: str, payload: ListingUpdate, current_user: User = Depends(get_current_user)):
    listing = await _owned_listing(listing_id, current_user)
    for field in payload.model_dump(exclude_unset=True):
        value = getattr(payload, field)
        if value is None:
            continue
        if field == "location":
            value = ListingLocation(**value.model_dump())
        setattr(listing, field, value)
    await listing.save()
    return {
        "success": True,
        "message": "Listing updated successfully",
        "listing": _listing_out(listing, {current_user.id: current_user}),
    }


@router.delete("/{listing_id}")
async def delete_listing(listing_id: str, current_user: User = Depends(get_current_user)):
    listing = await _owned_listing(listing_id, current_user)
    await listing.delete()
    return {"success": True, "message": "Listing deleted successfully"}
