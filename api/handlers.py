"""HTTP handlers for registering and listing hotel price watches."""
from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable

from aiohttp import web

from config import settings
from models import Watch
from services.errors import ExtractionError, StoreError
from services.extractor import Extractor
from services.storage import WatchRepository

logger = logging.getLogger(__name__)

REPOSITORY_KEY = web.AppKey("repository", WatchRepository)
EXTRACTOR_KEY = web.AppKey("extractor", Extractor)
CORS_ORIGIN_KEY = web.AppKey("cors_origin", str)

LOOKUP_FAILED_NAME = "Failed to fetch hotel info"

routes = web.RouteTableDef()

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


def _parse_target_price(raw: str) -> int:
    value = (raw or "").strip()
    if not value:
        return 0
    try:
        price = int(value)
    except ValueError as exc:
        raise ValueError("Invalid target price") from exc
    if price < 0:
        raise ValueError("Target price cannot be negative")
    return price


def _serialize_watch(watch: Watch) -> dict[str, Any]:
    return {
        "id": watch.id,
        "hotelUrl": watch.url,
        "targetPrice": watch.target_price,
        "status": "active" if watch.active else "inactive",
        "createdAt": watch.created_at.isoformat() if watch.created_at else None,
    }


def _error(status: int, message: str) -> web.Response:
    return web.json_response({"success": False, "error": message}, status=status)


@web.middleware
async def cors_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    if request.method == "OPTIONS":
        response: web.StreamResponse = web.Response(status=200)
    else:
        response = await handler(request)
    response.headers["Access-Control-Allow-Origin"] = request.app[CORS_ORIGIN_KEY]
    response.headers["Access-Control-Allow-Methods"] = "GET, POST, OPTIONS"
    response.headers["Access-Control-Allow-Headers"] = "Content-Type"
    return response


@routes.post("/api/alerts")
async def create_alert(request: web.Request) -> web.Response:
    """Register a watch for the submitted email, hotel URL and target price."""
    repository = request.app[REPOSITORY_KEY]
    form = await request.post()

    try:
        target_price = _parse_target_price(str(form.get("targetPrice", "")))
        watch = repository.register_watch(
            str(form.get("email", "")),
            str(form.get("hotelUrl", "")),
            target_price,
        )
    except ValueError as exc:
        return _error(400, str(exc))
    except StoreError:
        logger.exception("Failed to register watch")
        return _error(500, "Failed to create alert")

    return web.json_response(
        {"success": True, "alert": _serialize_watch(watch)},
        status=201,
    )


@routes.get("/api/alerts")
async def list_alerts(request: web.Request) -> web.Response:
    """List active watches together with a live price lookup for each."""
    repository = request.app[REPOSITORY_KEY]
    extractor = request.app[EXTRACTOR_KEY]

    try:
        watches = repository.list_active_watches()
    except StoreError as exc:
        logger.exception("Failed to list watches")
        return _error(500, f"Failed to load alerts: {exc}")

    alerts = []
    for watch in watches:
        current_price = 0
        hotel_name = LOOKUP_FAILED_NAME
        try:
            quote = await extractor.extract(watch.url)
        except ExtractionError as exc:
            logger.warning("Price lookup failed for %s: %s", watch.url, exc)
        else:
            current_price = quote.price
            hotel_name = quote.name

        alerts.append(
            {
                **_serialize_watch(watch),
                "hotel": hotel_name,
                "currentPrice": current_price,
            }
        )

    return web.json_response({"success": True, "alerts": alerts})


def create_app(
    repository: WatchRepository,
    extractor: Extractor,
    cors_origin: str | None = None,
) -> web.Application:
    """Build the HTTP application around an explicitly passed store."""
    app = web.Application(middlewares=[cors_middleware])
    app[REPOSITORY_KEY] = repository
    app[EXTRACTOR_KEY] = extractor
    app[CORS_ORIGIN_KEY] = cors_origin or settings.CORS_ALLOW_ORIGIN
    app.add_routes(routes)
    return app


__all__ = ["create_app", "routes"]
