from __future__ import annotations

from talenthr.core.config import settings
from talenthr.models.marketplace import Category, Feedback, Listing, ProfileLocation, UserProfile

API = settings.API_V1_STR

LOCATION = {"city": "Austin", "state": "TX", "zip_code": "73301"}


async def _listing(client, user, headers, **overrides):
    body = {
        "type": "item",
        "title": "Standing desk",
        "description": "Barely used, electric",
        "price": 250,
        "category": "furniture",
        "location": LOCATION,
        **overrides,
    }
    resp = await client.post(f"{API}/listings", headers=headers(user), json=body)
    assert resp.status_code == 201, resp.text
    return resp.json()["listing"]


async def test_create_listing_requires_login(client):
    resp = await client.post(
        f"{API}/listings",
        json={"type": "item", "title": "Desk", "description": "Desk", "price": 1, "category": "x", "location": LOCATION},
    )
    assert resp.status_code == 401


async def test_create_listing(client, employee, headers):
    listing = await _listing(client, employee, headers)
    assert listing["user_id"] == str(employee.id)
    assert listing["status"] == "active"
    assert listing["views"] == 0
    assert listing["seller"]["name"] == "Emma Employee"
    assert listing["location"]["city"] == "Austin"


async def test_listing_validation(client, employee, headers):
    negative = await client.post(
        f"{API}/listings",
        headers=headers(employee),
        json={"type": "item", "title": "Desk", "description": "Desk", "price": -5, "category": "x", "location": LOCATION},
    )
    assert negative.status_code == 400

    blank = await client.post(
        f"{API}/listings",
        headers=headers(employee),
        json={"type": "item", "title": "   ", "description": "Desk", "price": 5, "category": "x", "location": LOCATION},
    )
    assert blank.status_code == 400

    too_many_images = await client.post(
        f"{API}/listings",
        headers=headers(employee),
        json={
            "type": "item", "title": "Desk", "description": "Desk", "price": 5, "category": "x",
            "location": LOCATION, "images": [f"https://img/{n}.png" for n in range(11)],
        },
    )
    assert too_many_images.status_code == 400


async def test_public_browse_with_filters(client, employee, outsider, headers):
    await _listing(client, employee, headers, title="Desk lamp", price=20, category="lighting")
    await _listing(client, employee, headers, title="Oak table", price=400)
    await _listing(client, outsider, headers, type="service", title="Dog walking", description="Daily walks",
                   price=15, category="pets", location={"city": "Dallas", "state": "TX", "zip_code": "75001"})
    await _listing(client, outsider, headers, title="Old bike", price=90, status="sold")

    everything = await client.get(f"{API}/listings", params={"sort_by": "price-low"})
    assert [item["title"] for item in everything.json()["listings"]] == ["Dog walking", "Desk lamp", "Oak table"]
    assert everything.json()["pagination"] == {"total": 3, "page": 1, "limit": 20, "total_pages": 1}

    services = await client.get(f"{API}/listings", params={"type": "service"})
    assert [item["title"] for item in services.json()["listings"]] == ["Dog walking"]

    price_band = await client.get(f"{API}/listings", params={"min_price": 18, "max_price": 300})
    assert [item["title"] for item in price_band.json()["listings"]] == ["Desk lamp"]

    by_city = await client.get(f"{API}/listings", params={"city": "austin", "sort_by": "price-high"})
    assert [item["title"] for item in by_city.json()["listings"]] == ["Oak table", "Desk lamp"]

    search = await client.get(f"{API}/listings", params={"search": "LAMP"})
    assert [item["title"] for item in search.json()["listings"]] == ["Desk lamp"]

    sold = await client.get(f"{API}/listings", params={"status": "sold"})
    assert [item["title"] for item in sold.json()["listings"]] == ["Old bike"]


async def test_pagination(client, employee, headers):
    for n in range(5):
        await _listing(client, employee, headers, title=f"Chair {n}", price=10 + n)

    second = await client.get(f"{API}/listings", params={"page": 2, "limit": 2, "sort_by": "price-low"})
    body = second.json()
    assert [item["title"] for item in body["listings"]] == ["Chair 2", "Chair 3"]
    assert body["pagination"] == {"total": 5, "page": 2, "limit": 2, "total_pages": 3}

    assert (await client.get(f"{API}/listings", params={"limit": 101})).status_code == 400


async def test_user_listings_include_every_status(client, employee, outsider, headers):
    await _listing(client, employee, headers, title="Desk", price=1)
    await _listing(client, employee, headers, title="Drafted", price=2, status="draft")
    await _listing(client, outsider, headers, title="Not mine", price=3)

    resp = await client.get(f"{API}/listings/user/{employee.id}")
    assert resp.json()["pagination"]["total"] == 2
    drafts = await client.get(f"{API}/listings/user/{employee.id}", params={"status": "draft"})
    assert [item["title"] for item in drafts.json()["listings"]] == ["Drafted"]


async def test_get_listing_counts_views(client, employee, headers):
    listing = await _listing(client, employee, headers)
    await client.get(f"{API}/listings/{listing['id']}")
    second = await client.get(f"{API}/listings/{listing['id']}")
    assert second.json()["listing"]["views"] == 2
    assert second.json()["listing"]["seller"]["email"] == employee.email

    assert (await client.get(f"{API}/listings/{'0' * 24}")).status_code == 404


async def test_only_owner_updates_or_deletes(client, employee, outsider, headers):
    listing = await _listing(client, employee, headers)

    stranger = await client.patch(f"{API}/listings/{listing['id']}", headers=headers(outsider), json={"price": 1})
    assert stranger.status_code == 403
    assert (await client.delete(f"{API}/listings/{listing['id']}", headers=headers(outsider))).status_code == 403

    updated = await client.patch(
        f"{API}/listings/{listing['id']}",
        headers=headers(employee),
        json={"price": 199, "status": "sold", "location": {"city": "Houston", "state": "TX", "zip_code": "77001"}},
    )
    assert updated.status_code == 200
    stored = await Listing.get(listing["id"])
    assert stored.price == 199
    assert stored.status == "sold"
    assert stored.location.city == "Houston"
    assert stored.title == "Standing desk"

    deleted = await client.delete(f"{API}/listings/{listing['id']}", headers=headers(employee))
    assert deleted.status_code == 200
    assert await Listing.get(listing["id"]) is None


async def test_categories(client, employee, headers):
    root = await client.post(f"{API}/categories", headers=headers(employee), json={"name": "Furniture", "slug": "Furniture"})
    assert root.status_code == 201
    root_id = root.json()["category"]["id"]
    assert root.json()["category"]["slug"] == "furniture"

    child = await client.post(
        f"{API}/categories",
        headers=headers(employee),
        json={"name": "Desks", "slug": "desks", "parent_category": root_id},
    )
    assert child.status_code == 201

    dupe = await client.post(f"{API}/categories", headers=headers(employee), json={"name": "Furn", "slug": "furniture"})
    assert dupe.status_code == 409

    orphan = await client.post(
        f"{API}/categories", headers=headers(employee), json={"name": "Lost", "slug": "lost", "parent_category": "0" * 24}
    )
    assert orphan.status_code == 400

    hidden = await Category(name="Archived", slug="archived", is_active=False).insert()
    listing = await client.get(f"{API}/categories")
    body = listing.json()
    assert [c["slug"] for c in body["categories"]] == ["furniture"]
    assert [c["slug"] for c in body["sub_categories"]] == ["desks"]
    assert {c["slug"] for c in body["all"]} == {"furniture", "desks"}

    with_inactive = await client.get(f"{API}/categories", params={"include_inactive": True})
    assert str(hidden.id) in {c["id"] for c in with_inactive.json()["all"]}


async def test_anonymous_feedback(client):
    resp = await client.post(
        f"{API}/feedback", json={"type": "bug", "message": "The export button does nothing", "rating": 2}
    )
    assert resp.status_code == 201
    assert resp.json()["message"] == "Thank you for your feedback!"
    stored = await Feedback.get(resp.json()["feedback_id"])
    assert stored.name == "Anonymous"
    assert stored.user_id is None
    assert stored.status == "pending"


async def test_feedback_from_logged_in_user(client, employee, headers):
    resp = await client.post(
        f"{API}/feedback", headers=headers(employee), json={"message": "Love the new leave calendar"}
    )
    stored = await Feedback.get(resp.json()["feedback_id"])
    assert stored.user_id == employee.id
    assert stored.name == "Emma Employee"
    assert stored.email == employee.email
    assert stored.type == "general"


async def test_feedback_validation(client):
    short = await client.post(f"{API}/feedback", json={"message": "meh"})
    assert short.status_code == 400
    bad_rating = await client.post(f"{API}/feedback", json={"message": "Long enough message", "rating": 9})
    assert bad_rating.status_code == 400


async def test_public_profile_hides_phone(client, employee):
    await UserProfile(
        user_id=employee.id,
        display_name="Emma's Garage",
        bio="Furniture and tools",
        location=ProfileLocation(city="Austin", state="TX"),
        phone="+1 555 0100",
        rating=4.5,
        total_reviews=12,
    ).insert()

    resp = await client.get(f"{API}/profile/{employee.id}")
    assert resp.status_code == 200, resp.text
    profile = resp.json()["profile"]
    assert profile["display_name"] == "Emma's Garage"
    assert profile["location"] == {"city": "Austin", "state": "TX"}
    assert profile["rating"] == 4.5
    assert "phone" not in profile


async def test_public_profile_missing(client, admin):
    assert (await client.get(f"{API}/profile/{admin.id}")).status_code == 404
    assert (await client.get(f"{API}/profile/not-an-id")).status_code == 404
