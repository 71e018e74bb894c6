"""Service categories: taxonomy for the services directory."""

import uuid
from collections import Counter

from trail_directory import supabase_client as db
from trail_directory.errors import ConflictError, NotFoundError
from trail_directory.services.slugs import is_available, slugify, unique_slug

TABLE = "service_categories"


def get_category_or_404(category_id: str) -> dict:
    category = db.select_one(TABLE, match={"id": category_id})
    if not category:
        raise NotFoundError("Service category not found")
    return category


def list_categories() -> list[dict]:
    return db.select(TABLE, order="name")


def list_with_counts() -> list[dict]:
    """Categories with the number of published services in each."""
    services = db.select("services", columns="id,category_id", match={"status": "PUBLISHED"})
    counts = Counter(s.get("category_id") for s in services)
    return [{**c, "service_count": counts.get(c["id"], 0)} for c in list_categories()]


def get_category_by_slug(slug: str) -> dict:
    category = db.select_one(TABLE, match={"slug": slug})
    if not category:
        raise NotFoundError("Service category not found")
    return category


def create_category(data: dict) -> dict:
    if db.select_one(TABLE, columns="id", match={"name": data["name"]}):
        raise ConflictError("A category with this name already exists")
    slug = slugify(data.pop("slug")) if data.get("slug") else unique_slug(TABLE, data["name"])
    if not is_available(TABLE, slug):
        raise ConflictError(f"Slug '{slug}' is already in use")
    return db.insert(TABLE, {**data, "id": str(uuid.uuid4()), "slug": slug})


def update_category(category_id: str, data: dict) -> dict:
    category = get_category_or_404(category_id)
    if data.get("slug"):
        data["slug"] = slugify(data["slug"])
        if not is_available(TABLE, data["slug"], exclude_id=category_id):
            raise ConflictError(f"Slug '{data['slug']}' is already in use")
    if not data:
        return category
    return db.update(TABLE, data, {"id": category_id})


def delete_category(category_id: str) -> dict:
    get_category_or_404(category_id)
    in_use = db.count("services", {"category_id": category_id})
    if in_use:
        raise ConflictError(f"Cannot delete category used by {in_use} services")
    db.delete(TABLE, {"id": category_id})
    return {"deleted": True}
