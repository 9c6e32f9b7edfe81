"""HTTP surface: thin aiohttp handlers around the inventory pipeline."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from aiohttp import web

from roblox_inventory.inventory.pipeline import InventoryPipeline
from roblox_inventory.inventory.shaper import (
    InventoryQuery,
    error_response,
    shape,
    shape_sellable,
)

logger = logging.getLogger(__name__)

PIPELINE_KEY = web.AppKey("pipeline", InventoryPipeline)

routes = web.RouteTableDef()


@routes.get(r"/inventory/{user_id:\d+}")
async def inventory(request: web.Request) -> web.Response:
    """Aggregate summary with filter, sort and paging."""
    user_id = int(request.match_info["user_id"])
    query = InventoryQuery.from_params(request.query)
    logger.info(
        f"Processing request for user {user_id} with filter: {query.item_filter.value}"
    )
    try:
        report = await request.app[PIPELINE_KEY].get_inventory(user_id)
        return web.json_response(shape(report, query))
    except Exception as e:
        logger.exception(f"Inventory request failed for user {user_id}")
        return web.json_response(error_response(str(e)), status=500)


@routes.get(r"/sellable/{user_id:\d+}")
async def sellable(request: web.Request) -> web.Response:
    """Sellable items only, simplified shape."""
    user_id = int(request.match_info["user_id"])
    query = InventoryQuery.from_params(request.query)
    try:
        report = await request.app[PIPELINE_KEY].get_inventory(user_id)
        return web.json_response(shape_sellable(report, query))
    except Exception as e:
        logger.exception(f"Sellable request failed for user {user_id}")
        return web.json_response(error_response(str(e)), status=500)


@routes.get("/health")
async def health(request: web.Request) -> web.Response:
    return web.json_response(
        {"status": "OK", "timestamp": datetime.now(timezone.utc).isoformat()}
    )


async def _close_pipeline(app: web.Application) -> None:
    await app[PIPELINE_KEY].close()


def create_app(pipeline: Optional[InventoryPipeline] = None) -> web.Application:
    """Build the application around ``pipeline`` (a default one if None)."""
    app = web.Application()
    app[PIPELINE_KEY] = pipeline or InventoryPipeline()
    app.add_routes(routes)
    app.on_cleanup.append(_close_pipeline)
    return app
