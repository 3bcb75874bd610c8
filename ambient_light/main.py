from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .core.config import settings
from .core.log import configure_logging
from .core.accessories import load_accessory_configs

from .api.routes import router as api_router
import ambient_light.api.routes as routes_module

from .drivers.http_fetch import HttpFetcher
from .services.accessory import AmbientLightAccessory
from .services.notifications import NotificationRegistry
from .storage.sqlite_repo import SQLiteRepository


logger = logging.getLogger(__name__)


# --- Singletons ---
fetcher = HttpFetcher()
notifications = NotificationRegistry()
repo = SQLiteRepository(settings.sqlite_path)
accessories: dict[str, AmbientLightAccessory] = {}


def build_accessories() -> dict[str, AmbientLightAccessory]:
    out: dict[str, AmbientLightAccessory] = {}
    for cfg in load_accessory_configs(settings.accessories_path):
        if cfg.name in out:
            logger.warning("Duplicate accessory name '%s', ignoring later definition", cfg.name)
            continue
        out[cfg.name] = AmbientLightAccessory(
            cfg,
            fetcher=fetcher,
            notifications=notifications,
            repo=repo if settings.record_history else None,
        )
    return out


def get_accessories() -> dict[str, AmbientLightAccessory]:
    return accessories


def get_notifications() -> NotificationRegistry:
    return notifications


def get_repo() -> SQLiteRepository:
    return repo


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    logger.info("Starting %s", settings.app_name)

    await repo.init()

    accessories.clear()
    accessories.update(build_accessories())
    for acc in accessories.values():
        await acc.start()
    logger.info(
        "%d accessory(ies) configured, %d active",
        len(accessories), sum(1 for a in accessories.values() if not a.inert),
    )

    try:
        yield
    finally:
        for acc in accessories.values():
            await acc.stop()
        logger.info("Shutdown complete")


app = FastAPI(title=settings.app_name, lifespan=lifespan)

# Make the dependency functions in routes resolve to the real ones
app.dependency_overrides[routes_module.get_accessories] = get_accessories
app.dependency_overrides[routes_module.get_notifications] = get_notifications
app.dependency_overrides[routes_module.get_repo] = get_repo

app.include_router(api_router, prefix="/api")
