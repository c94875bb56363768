"""HTTP layer: aiohttp.web routes for reading and refreshing the news digest."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, AsyncIterator, Dict, Optional, Set, Tuple

from aiohttp import web

from newsdigest.config import api_keys, missing_keys
from newsdigest.digest.generator import DigestGenerator
from newsdigest.pipeline.scheduler import DigestScheduler

logger = logging.getLogger(__name__)

CONFIG_KEY = web.AppKey("config", dict)
GENERATOR_KEY = web.AppKey("generator", DigestGenerator)
SCHEDULER_KEY = web.AppKey("scheduler", DigestScheduler)
TASKS_KEY = web.AppKey("tasks", set)

EMPTY_MESSAGE = (
    "Aucun rapport de veille disponible. Un administrateur doit déclencher la génération."
)
ALREADY_GENERATING = "Un rapport est déjà en cours de génération. Veuillez patienter."
STARTED_MESSAGE = "Génération du rapport de veille lancée..."

routes = web.RouteTableDef()


@routes.get("/api/news-digest")
async def get_news_digest(request: web.Request) -> web.Response:
    """Return the cached digest, or an ``empty`` placeholder before the first run."""
    digest = request.app[GENERATOR_KEY].get_cached_digest()
    if digest is None:
        return web.json_response({
            "generatedAt": None,
            "topics": [],
            "status": "empty",
            "message": EMPTY_MESSAGE,
        })
    return web.json_response(digest.to_dict())


@routes.post("/api/news-digest/refresh")
async def refresh_news_digest(request: web.Request) -> web.Response:
    """Start a generation pass in the background and respond immediately."""
    app = request.app
    generator = app[GENERATOR_KEY]
    if generator.is_digest_generating():
        return web.json_response({"error": ALREADY_GENERATING}, status=409)

    config = app[CONFIG_KEY]
    missing = missing_keys(config)
    if missing:
        logger.error("Refresh refused, missing API keys: %s", ", ".join(missing))
        return web.json_response(
            {"error": f"Clés API manquantes. Vérifiez {', '.join(missing)} dans la configuration."},
            status=500,
        )

    if not generator.try_start():
        return web.json_response({"error": ALREADY_GENERATING}, status=409)
    _spawn(app, _run_refresh(generator, api_keys(config)))
    return web.json_response({"message": STARTED_MESSAGE}, status=202)


@routes.get("/api/health")
async def health(request: web.Request) -> web.Response:
    return web.json_response({
        "status": "ok",
        "generating": request.app[GENERATOR_KEY].is_digest_generating(),
    })


async def _run_refresh(generator: DigestGenerator, keys: Tuple[str, str, str]) -> None:
    digest = await generator.generate_digest(*keys, reserved=True)
    logger.info("Digest refresh completed with status %s", digest.status.value)


def _spawn(app: web.Application, coro: Any) -> asyncio.Task:
    """Run ``coro`` as a tracked background task; failures are logged."""
    task = asyncio.create_task(coro)
    tasks: Set[asyncio.Task] = app[TASKS_KEY]
    tasks.add(task)

    def _done(t: asyncio.Task) -> None:
        tasks.discard(t)
        if not t.cancelled() and t.exception() is not None:
            logger.error("Digest refresh failed: %s", t.exception())

    task.add_done_callback(_done)
    return task


@web.middleware
async def error_middleware(request: web.Request, handler: Any) -> web.StreamResponse:
    try:
        return await handler(request)
    except web.HTTPException:
        raise
    except Exception:
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return web.json_response({"error": "Internal server error"}, status=500)


async def _background(app: web.Application) -> AsyncIterator[None]:
    """Start the scheduler on startup; stop it and cancel pending refreshes on cleanup."""
    scheduler = app[SCHEDULER_KEY]
    missing = missing_keys(app[CONFIG_KEY])
    if scheduler.enabled and missing:
        logger.warning("Digest scheduler disabled, missing API keys: %s", ", ".join(missing))
    else:
        scheduler.start()
    yield
    await scheduler.stop()
    pending = list(app[TASKS_KEY])
    for task in pending:
        task.cancel()
    if pending:
        await asyncio.gather(*pending, return_exceptions=True)


def create_app(
    config: Dict[str, Any],
    generator: Optional[DigestGenerator] = None,
    scheduler: Optional[DigestScheduler] = None,
) -> web.Application:
    """Build the web application around a single DigestGenerator (and its state)."""
    if generator is None:
        generator = DigestGenerator(config)
    if scheduler is None:
        digest_cfg = config.get("digest", {})
        scheduler = DigestScheduler(
            generator,
            api_keys(config),
            interval_hours=float(digest_cfg.get("refresh_interval_hours") or 0),
            run_on_start=bool(digest_cfg.get("refresh_on_startup", False)),
        )

    app = web.Application(middlewares=[error_middleware])
    app[CONFIG_KEY] = config
    app[GENERATOR_KEY] = generator
    app[SCHEDULER_KEY] = scheduler
    app[TASKS_KEY] = set()
    app.add_routes(routes)
    app.cleanup_ctx.append(_background)
    return app
