"""Home page configuration: hero plus an ordered list of typed content blocks."""

import logging
import uuid
from typing import Literal, Optional

from pydantic import BaseModel, Field, ValidationError

from trail_directory import supabase_client as db
from trail_directory.errors import BadRequestError, NotFoundError
from trail_directory.services.events import published_event_ids

logger = logging.getLogger(__name__)

CONFIGS = "home_configurations"
BLOCKS = "home_blocks"

CONTENT_BLOCKS = ("EVENTS", "COMPETITIONS", "EDITIONS", "SERVICES", "POSTS")
BLOCK_TYPES = CONTENT_BLOCKS + ("TEXT", "LINKS", "MAP")

DEFAULT_HERO = {
    "hero_title": "Bienvenido a WWTRAIL",
    "hero_subtitle": "La plataforma para trail runners",
    "hero_image": None,
    "hero_images": [],
}

HERO_FIELDS = ("hero_image", "hero_images", "hero_title", "hero_subtitle")


# ---------------------------------------------------------------------------
# Block config schemas
# ---------------------------------------------------------------------------

class ContentBlockConfig(BaseModel):
    limit: int = Field(6, ge=1, le=50)
    view_type: Literal["LIST", "CARDS"] = "CARDS"
    featured_only: bool = False
    title: Optional[str] = Field(None, max_length=200)
    subtitle: Optional[str] = Field(None, max_length=500)


class TextBlockConfig(BaseModel):
    content: str = Field(..., min_length=1, max_length=5000)
    size: Literal["SM", "MD", "LG", "XL"] = "MD"
    variant: Literal["PARAGRAPH", "HEADING"] = "PARAGRAPH"


class LinkItem(BaseModel):
    url: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1, max_length=200)
    image_url: Optional[str] = None


class LinksBlockConfig(BaseModel):
    items: list[LinkItem] = Field(..., min_length=1, max_length=12)


class MapBlockConfig(BaseModel):
    height: int = Field(400, ge=200, le=800)
    map_mode: Literal["street", "satellite", "terrain"] = "terrain"
    show_events: bool = True
    show_competitions: bool = True
    show_services: bool = True


def validate_block_config(block_type: str, config: dict | None) -> dict:
    """Validate and fill defaults for a block's config by its type."""
    if block_type in CONTENT_BLOCKS:
        schema = ContentBlockConfig
    elif block_type == "TEXT":
        schema = TextBlockConfig
    elif block_type == "LINKS":
        schema = LinksBlockConfig
    elif block_type == "MAP":
        schema = MapBlockConfig
    else:
        raise BadRequestError(f"Unknown block type: {block_type}")
    try:
        return schema.model_validate(config or {}).model_dump()
    except ValidationError as e:
        errors = "; ".join(f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors())
        raise BadRequestError(f"Invalid {block_type} block config: {errors}")


# ---------------------------------------------------------------------------
# Configurations
# ---------------------------------------------------------------------------

def _blocks(config_id: str) -> list[dict]:
    return db.select(BLOCKS, match={"configuration_id": config_id},
                     order=[("order", False), ("created_at", False)])


def _with_blocks(config: dict) -> dict:
    return {**config, "blocks": _blocks(config["id"])}


def _deactivate_others(config_id: str) -> None:
    db.update_many(CONFIGS, {"is_active": False}, filters=[("neq", "id", config_id), ("eq", "is_active", True)])


def get_configuration_or_404(config_id: str) -> dict:
    config = db.select_one(CONFIGS, match={"id": config_id})
    if not config:
        raise NotFoundError("Home configuration not found")
    return config


def get_active() -> dict:
    """The active configuration; a default one is created on first use."""
    config = db.select_one(CONFIGS, match={"is_active": True})
    if not config:
        config = db.insert(CONFIGS, {**DEFAULT_HERO, "id": str(uuid.uuid4()), "is_active": True})
        logger.info("Created default home configuration %s", config["id"])
    return _with_blocks(config)


def list_configurations() -> list[dict]:
    return [_with_blocks(c) for c in db.select(CONFIGS, order="created_at", order_desc=True)]


def get_configuration(config_id: str) -> dict:
    return _with_blocks(get_configuration_or_404(config_id))


def _check_blocks(blocks: list[dict], stored: dict | None = None) -> None:
    """Validate every block up front so a bad one leaves nothing half-written."""
    stored = stored or {}
    for block in blocks:
        current = stored.get(block.get("id"), {})
        if current and "type" not in block and "config" not in block:
            continue
        block_type = block.get("type") or current.get("type")
        if not block_type:
            raise BadRequestError("Block type is required")
        validate_block_config(block_type, block.get("config", current.get("config")))


def create_configuration(data: dict) -> dict:
    blocks = data.pop("blocks", None) or []
    _check_blocks(blocks)
    config = db.insert(CONFIGS, {
        **DEFAULT_HERO,
        "is_active": False,
        **data,
        "id": str(uuid.uuid4()),
    })
    if config.get("is_active"):
        _deactivate_others(config["id"])
    for i, block in enumerate(blocks):
        create_block(config["id"], {"order": i, **block})
    return get_configuration(config["id"])


def update_configuration(config_id: str, data: dict) -> dict:
    get_configuration_or_404(config_id)
    if data:
        db.update(CONFIGS, data, {"id": config_id})
    if data.get("is_active"):
        _deactivate_others(config_id)
    return get_configuration(config_id)


def delete_configuration(config_id: str) -> dict:
    get_configuration_or_404(config_id)
    db.delete(BLOCKS, {"configuration_id": config_id})
    db.delete(CONFIGS, {"id": config_id})
    return {"deleted": True}


def update_full(config_id: str, hero: dict, blocks: list[dict]) -> dict:
    """Replace the hero and block list: update blocks with ids, create the rest, drop the missing."""
    get_configuration_or_404(config_id)
    stored = {b["id"]: b for b in _blocks(config_id)}
    existing = set(stored)
    unknown = [b["id"] for b in blocks if b.get("id") and b["id"] not in existing]
    if unknown:
        raise BadRequestError(f"Blocks do not belong to this configuration: {', '.join(unknown)}")
    _check_blocks(blocks, stored)

    if hero:
        db.update(CONFIGS, hero, {"id": config_id})
    keep = set()
    for i, block in enumerate(blocks):
        block = {"order": i, **block}
        if block.get("id"):
            keep.add(block["id"])
            update_block(block.pop("id"), block)
        else:
            create_block(config_id, block)
    stale = list(existing - keep)
    if stale:
        db.delete(BLOCKS, filters=[("in", "id", stale)])
    if hero.get("is_active"):
        _deactivate_others(config_id)
    return get_configuration(config_id)


# ---------------------------------------------------------------------------
# Blocks
# ---------------------------------------------------------------------------

def get_block_or_404(block_id: str) -> dict:
    block = db.select_one(BLOCKS, match={"id": block_id})
    if not block:
        raise NotFoundError("Home block not found")
    return block


def create_block(config_id: str, data: dict) -> dict:
    get_configuration_or_404(config_id)
    block_type = data["type"]
    order = data.get("order")
    if order is None:
        order = db.count(BLOCKS, {"configuration_id": config_id})
    return db.insert(BLOCKS, {
        "id": str(uuid.uuid4()),
        "configuration_id": config_id,
        "type": block_type,
        "order": order,
        "visible": data.get("visible", True),
        "config": validate_block_config(block_type, data.get("config")),
    })


def update_block(block_id: str, data: dict) -> dict:
    block = get_block_or_404(block_id)
    values = {k: v for k, v in data.items() if k in ("type", "order", "visible", "config")}
    if "type" in values or "config" in values:
        values["config"] = validate_block_config(values.get("type", block["type"]),
                                                 values.get("config", block.get("config")))
    if not values:
        return block
    return db.update(BLOCKS, values, {"id": block_id})


def delete_block(block_id: str) -> dict:
    get_block_or_404(block_id)
    db.delete(BLOCKS, {"id": block_id})
    return {"deleted": True}


def toggle_block(block_id: str) -> dict:
    block = get_block_or_404(block_id)
    return db.update(BLOCKS, {"visible": not block.get("visible", True)}, {"id": block_id})


def reorder(config_id: str, block_orders: list[dict]) -> dict:
    get_configuration_or_404(config_id)
    own = {b["id"] for b in _blocks(config_id)}
    foreign = [item["id"] for item in block_orders if item["id"] not in own]
    if foreign:
        raise BadRequestError(f"Blocks do not belong to this configuration: {', '.join(foreign)}")
    for item in block_orders:
        db.update(BLOCKS, {"order": item["order"]}, {"id": item["id"]})
    return get_configuration(config_id)


# ---------------------------------------------------------------------------
# Feed rendering
# ---------------------------------------------------------------------------

def _content_items(block_type: str, cfg: dict) -> list[dict]:
    limit = cfg["limit"]
    featured = {"featured": True} if cfg["featured_only"] else {}
    if block_type == "EVENTS":
        return db.select("events", match={"status": "PUBLISHED", **featured},
                         order=[("view_count", True)], limit=limit)
    if block_type == "COMPETITIONS":
        return db.select("competitions", match={"status": "PUBLISHED", "is_active": True, **featured},
                         filters=[("in", "event_id", published_event_ids())],
                         order=[("name", False)], limit=limit)
    if block_type == "EDITIONS":
        visible = db.select("competitions", columns="id",
                            match={"status": "PUBLISHED"},
                            filters=[("in", "event_id", published_event_ids())])
        return db.select("editions", match={"status": "UPCOMING", "is_active": True, **featured},
                         filters=[("in", "competition_id", [c["id"] for c in visible])],
                         order=[("start_date", False)], limit=limit)
    if block_type == "SERVICES":
        return db.select("services", match={"status": "PUBLISHED", **featured},
                         order=[("name", False)], limit=limit)
    return []


def _map_points(cfg: dict) -> list[dict]:
    points = []
    located = [("gte", "latitude", -90), ("gte", "longitude", -180)]
    events = db.select("events", columns="id,name,slug,latitude,longitude",
                       match={"status": "PUBLISHED"}, filters=located)
    if cfg["show_events"]:
        points += [{"kind": "event", **e} for e in events]
    if cfg["show_competitions"]:
        by_event = {e["id"]: e for e in events}
        comps = db.select_in("competitions", "event_id", list(by_event), columns="id,name,slug,event_id")
        points += [
            {"kind": "competition", "id": c["id"], "name": c["name"], "slug": c["slug"],
             "latitude": by_event[c["event_id"]]["latitude"],
             "longitude": by_event[c["event_id"]]["longitude"]}
            for c in comps
        ]
    if cfg["show_services"]:
        services = db.select("services", columns="id,name,slug,latitude,longitude",
                             match={"status": "PUBLISHED"}, filters=located)
        points += [{"kind": "service", **s} for s in services]
    return points


def render_feed() -> dict:
    """Active configuration with visible blocks resolved to their content."""
    config = get_active()
    rendered = []
    for block in config["blocks"]:
        if not block.get("visible", True):
            continue
        cfg = validate_block_config(block["type"], block.get("config"))
        item = {"id": block["id"], "type": block["type"], "order": block["order"], "config": cfg}
        if block["type"] in CONTENT_BLOCKS:
            item["items"] = _content_items(block["type"], cfg)
        elif block["type"] == "MAP":
            item["points"] = _map_points(cfg)
        rendered.append(item)
    return {
        "id": config["id"],
        "hero": {k: config.get(k) for k in HERO_FIELDS},
        "blocks": rendered,
    }
