"""URL slug generation with per-table uniqueness."""

import re
import unicodedata

from trail_directory import supabase_client as db


def slugify(text: str) -> str:
    """'Ultra Trail du Mont-Blanc 2025' -> 'ultra-trail-du-mont-blanc-2025'."""
    text = unicodedata.normalize("NFKD", str(text or ""))
    text = "".join(c for c in text if not unicodedata.combining(c))
    text = text.lower().strip()
    text = re.sub(r"\s+", "-", text)
    text = re.sub(r"[^\w-]+", "", text).replace("_", "-")
    text = re.sub(r"-{2,}", "-", text).strip("-")
    return text or "item"


def is_available(table: str, slug: str, exclude_id: str | None = None) -> bool:
    row = db.select_one(table, columns="id", match={"slug": slug})
    return row is None or (exclude_id is not None and row["id"] == exclude_id)


def unique_slug(table: str, base: str, exclude_id: str | None = None) -> str:
    """Return *base* or the first free 'base-N' in *table*."""
    base = slugify(base)
    slug = base
    n = 1
    while not is_available(table, slug, exclude_id):
        slug = f"{base}-{n}"
        n += 1
    return slug
