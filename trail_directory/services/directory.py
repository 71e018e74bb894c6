"""Directory services: lodging, shops, physios and other runner services."""

import logging
import uuid

from trail_directory import supabase_client as db
from trail_directory.errors import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from trail_directory.security import ensure_owner_or_admin, is_admin
from trail_directory.services import geo
from trail_directory.services.slugs import is_available, slugify, unique_slug

logger = logging.getLogger(__name__)

TABLE = "services"


def get_service_or_404(service_id: str) -> dict:
    service = db.select_one(TABLE, match={"id": service_id})
    if not service:
        raise NotFoundError("Service not found")
    return service


def _with_categories(rows: list[dict]) -> list[dict]:
    categories = {c["id"]: c for c in db.select_in("service_categories", "id",
                                                   [r.get("category_id") for r in rows])}
    return [{**r, "category": categories.get(r.get("category_id"))} for r in rows]


def _check_category(category_id: str | None) -> None:
    if category_id and not db.select_one("service_categories", columns="id", match={"id": category_id}):
        raise BadRequestError("Service category not found")


def list_services(page: int = 1, limit: int = 20, search: str | None = None,
                  country: str | None = None, city: str | None = None,
                  category_id: str | None = None, featured: bool | None = None,
                  status: str = "PUBLISHED") -> dict:
    match = {"status": status}
    filters = []
    if country:
        filters.append(("ilike", "country", db.like_literal(country)))
    if city:
        filters.append(("ilike", "city", db.like_literal(city)))
    if category_id:
        match["category_id"] = category_id
    if featured is not None:
        match["featured"] = featured
    expr = db.search_expr(search, ("name", "description", "city")) if search else None
    result = db.paginate(TABLE, page, limit, match=match, filters=filters, search=expr,
                         order=[("featured", True), ("name", False)])
    result["results"] = _with_categories(result["results"])
    return result


def my_services(user: dict) -> list[dict]:
    return _with_categories(db.select(TABLE, match={"user_id": user["id"]},
                                      order="created_at", order_desc=True))


def nearby_services(lat: float, lon: float, radius_km: float = 50, limit: int = 20) -> list[dict]:
    rows = db.select(TABLE, match={"status": "PUBLISHED"},
                     filters=geo.box_filters(lat, lon, radius_km))
    return _with_categories(geo.within_radius(rows, lat, lon, radius_km, limit))


def _detail(service: dict, viewer: dict | None) -> dict:
    owns = viewer is not None and (is_admin(viewer) or service.get("user_id") == viewer.get("id"))
    if service.get("status") != "PUBLISHED" and not owns:
        raise NotFoundError("Service not found")
    views = (service.get("view_count") or 0) + 1
    db.update(TABLE, {"view_count": views}, {"id": service["id"]})
    return _with_categories([{**service, "view_count": views}])[0]


def get_service(service_id: str, viewer: dict | None = None) -> dict:
    return _detail(get_service_or_404(service_id), viewer)


def get_service_by_slug(slug: str, viewer: dict | None = None) -> dict:
    service = db.select_one(TABLE, match={"slug": slug})
    if not service:
        raise NotFoundError("Service not found")
    return _detail(service, viewer)


def create_service(user: dict, data: dict) -> dict:
    _check_category(data.get("category_id"))
    if (data.get("latitude") is None) != (data.get("longitude") is None):
        raise BadRequestError("latitude and longitude must be provided together")
    if data.get("slug"):
        slug = slugify(data.pop("slug"))
        if not is_available(TABLE, slug):
            raise ConflictError(f"Slug '{slug}' is already in use")
    else:
        slug = unique_slug(TABLE, data["name"])
    service = db.insert(TABLE, {
        **data,
        "id": str(uuid.uuid4()),
        "slug": slug,
        "status": "PUBLISHED" if is_admin(user) else "DRAFT",
        "featured": False,
        "view_count": 0,
        "user_id": user["id"],
    })
    logger.info("Service created: %s (%s)", service["name"], service["id"])
    return service


def update_service(service_id: str, user: dict, data: dict) -> dict:
    service = get_service_or_404(service_id)
    ensure_owner_or_admin(user, service.get("user_id"), "update this service")
    if "category_id" in data:
        _check_category(data["category_id"])
    if data.get("status") == "PUBLISHED" and not is_admin(user) and service.get("status") != "PUBLISHED":
        raise ForbiddenError("Only admins can publish services")
    if data.get("slug"):
        data["slug"] = slugify(data["slug"])
        if not is_available(TABLE, data["slug"], exclude_id=service_id):
            raise ConflictError(f"Slug '{data['slug']}' is already in use")
    if not data:
        return service
    return db.update(TABLE, data, {"id": service_id})


def toggle_featured(service_id: str) -> dict:
    service = get_service_or_404(service_id)
    return db.update(TABLE, {"featured": not service.get("featured")}, {"id": service_id})


def delete_service(service_id: str, user: dict) -> dict:
    service = get_service_or_404(service_id)
    ensure_owner_or_admin(user, service.get("user_id"), "delete this service")
    db.delete(TABLE, {"id": service_id})
    logger.warning("Service deleted: %s by %s", service_id, user["id"])
    return {"deleted": True}
