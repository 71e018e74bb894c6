"""Landing pages: admin-authored content with per-language translations."""

import logging
import uuid

from trail_directory import supabase_client as db
from trail_directory.constants import DEFAULT_LANGUAGE
from trail_directory.errors import BadRequestError, ConflictError, NotFoundError
from trail_directory.services.slugs import is_available, slugify, unique_slug

logger = logging.getLogger(__name__)

TABLE = "landings"
TRANSLATIONS = "landing_translations"
TRANSLATED_FIELDS = ("title", "content", "meta_title", "meta_description")


def get_landing_or_404(landing_id: str) -> dict:
    landing = db.select_one(TABLE, match={"id": landing_id})
    if not landing:
        raise NotFoundError("Landing not found")
    return landing


def list_landings(page: int = 1, limit: int = 20, search: str | None = None,
                  language: str | None = None) -> dict:
    match = {"language": language} if language else None
    expr = db.search_expr(search, ("title", "slug")) if search else None
    return db.paginate(TABLE, page, limit, match=match, search=expr)


def get_landing(landing_id: str) -> dict:
    landing = get_landing_or_404(landing_id)
    translations = db.select(TRANSLATIONS, match={"landing_id": landing_id}, order="language")
    return {**landing, "translations": translations}


def get_by_slug(slug: str, language: str | None = None) -> dict:
    """Public view; overlays the translation for *language* when one exists."""
    landing = db.select_one(TABLE, match={"slug": slug})
    if not landing:
        raise NotFoundError("Landing not found")
    result = {**landing, "translated_to": None}
    if language and language != landing.get("language"):
        translation = db.select_one(TRANSLATIONS, match={"landing_id": landing["id"], "language": language})
        if translation:
            for field in TRANSLATED_FIELDS:
                if translation.get(field):
                    result[field] = translation[field]
            result["translated_to"] = language
    return result


def create_landing(user: dict, data: dict) -> dict:
    if data.get("slug"):
        slug = slugify(data.pop("slug"))
        if not is_available(TABLE, slug):
            raise ConflictError(f"Slug '{slug}' is already in use")
    else:
        slug = unique_slug(TABLE, data["title"])
    landing = db.insert(TABLE, {
        "language": DEFAULT_LANGUAGE,
        **data,
        "id": str(uuid.uuid4()),
        "slug": slug,
        "created_by_id": user["id"],
    })
    logger.info("Landing created: %s (%s)", slug, landing["id"])
    return landing


def update_landing(landing_id: str, data: dict) -> dict:
    landing = get_landing_or_404(landing_id)
    if data.get("slug"):
        data["slug"] = slugify(data["slug"])
        if not is_available(TABLE, data["slug"], exclude_id=landing_id):
            raise ConflictError(f"Slug '{data['slug']}' is already in use")
    if not data:
        return landing
    return db.update(TABLE, data, {"id": landing_id})


def upsert_translation(landing_id: str, language: str, data: dict) -> dict:
    landing = get_landing_or_404(landing_id)
    if language == landing.get("language"):
        raise BadRequestError("Translation language matches the landing's own language")
    existing = db.select_one(TRANSLATIONS, match={"landing_id": landing_id, "language": language})
    if existing:
        return db.update(TRANSLATIONS, data, {"id": existing["id"]})
    return db.insert(TRANSLATIONS, {
        **data,
        "id": str(uuid.uuid4()),
        "landing_id": landing_id,
        "language": language,
    })


def delete_landing(landing_id: str) -> dict:
    get_landing_or_404(landing_id)
    db.delete(TRANSLATIONS, {"landing_id": landing_id})
    db.delete(TABLE, {"id": landing_id})
    logger.warning("Landing deleted: %s", landing_id)
    return {"deleted": True}
