"""Home page API: public config and rendered feed, admin block editing."""

from typing import Literal, Optional
from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from trail_directory.constants import ADMIN
from trail_directory.routers.payloads import update_fields
from trail_directory.security import require_roles
from trail_directory.services import home_config

router = APIRouter(prefix="/api/v2/home", tags=["Home"])

admin_only = require_roles(ADMIN)

BlockType = Literal["EVENTS", "COMPETITIONS", "EDITIONS", "SERVICES", "POSTS", "TEXT", "LINKS", "MAP"]


class HeroFields(BaseModel):
    hero_image: Optional[str] = Field(None, max_length=500)
    hero_images: Optional[list[str]] = None
    hero_title: Optional[str] = Field(None, max_length=200)
    hero_subtitle: Optional[str] = Field(None, max_length=500)
    is_active: Optional[bool] = None


class BlockCreate(BaseModel):
    type: BlockType
    order: Optional[int] = Field(None, ge=0)
    visible: bool = True
    config: dict = Field(default_factory=dict)


class BlockInput(BlockCreate):
    id: Optional[UUID] = None


class BlockUpdate(BaseModel):
    type: Optional[BlockType] = None
    order: Optional[int] = Field(None, ge=0)
    visible: Optional[bool] = None
    config: Optional[dict] = None


class ConfigurationCreate(HeroFields):
    blocks: list[BlockCreate] = Field(default_factory=list)


class ConfigurationFull(HeroFields):
    blocks: list[BlockInput]


class BlockOrder(BaseModel):
    id: UUID
    order: int = Field(..., ge=0)


class ReorderRequest(BaseModel):
    block_orders: list[BlockOrder] = Field(..., min_length=1)


# ---------------------------------------------------------------------------
# Public
# ---------------------------------------------------------------------------

@router.get("/config")
async def active_config():
    return home_config.get_active()


@router.get("/feed")
async def feed():
    return home_config.render_feed()


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------

@router.get("/configurations")
async def list_configurations(admin: dict = Depends(admin_only)):
    return home_config.list_configurations()


@router.post("/configurations", status_code=201)
async def create_configuration(body: ConfigurationCreate, admin: dict = Depends(admin_only)):
    data = body.model_dump(exclude_none=True)
    data["blocks"] = [b.model_dump(exclude_none=True) for b in body.blocks]
    return home_config.create_configuration(data)


@router.get("/configurations/{config_id}")
async def get_configuration(config_id: UUID, admin: dict = Depends(admin_only)):
    return home_config.get_configuration(str(config_id))


@router.put("/configurations/{config_id}")
@router.patch("/configurations/{config_id}")
async def update_configuration(config_id: UUID, body: HeroFields, admin: dict = Depends(admin_only)):
    return home_config.update_configuration(str(config_id), update_fields(body, "is_active"))


@router.delete("/configurations/{config_id}")
async def delete_configuration(config_id: UUID, admin: dict = Depends(admin_only)):
    return home_config.delete_configuration(str(config_id))


@router.put("/configurations/{config_id}/full")
async def update_full(config_id: UUID, body: ConfigurationFull, admin: dict = Depends(admin_only)):
    hero = update_fields(body, "is_active")
    hero.pop("blocks")
    blocks = [b.model_dump(mode="json", exclude_none=True) for b in body.blocks]
    return home_config.update_full(str(config_id), hero, blocks)


@router.post("/configurations/{config_id}/reorder")
async def reorder_blocks(config_id: UUID, body: ReorderRequest, admin: dict = Depends(admin_only)):
    return home_config.reorder(str(config_id), [o.model_dump(mode="json") for o in body.block_orders])


@router.post("/configurations/{config_id}/blocks", status_code=201)
async def create_block(config_id: UUID, body: BlockCreate, admin: dict = Depends(admin_only)):
    return home_config.create_block(str(config_id), body.model_dump(exclude_none=True))


@router.patch("/blocks/{block_id}")
async def update_block(block_id: UUID, body: BlockUpdate, admin: dict = Depends(admin_only)):
    data = update_fields(body, "type", "order", "visible", "config")
    return home_config.update_block(str(block_id), data)


@router.delete("/blocks/{block_id}")
async def delete_block(block_id: UUID, admin: dict = Depends(admin_only)):
    return home_config.delete_block(str(block_id))


@router.post("/blocks/{block_id}/toggle")
async def toggle_block(block_id: UUID, admin: dict = Depends(admin_only)):
    return home_config.toggle_block(str(block_id))
