import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from scenegrid.config import settings
from scenegrid.db.bootstrap import init_db
from scenegrid.logging_config import configure_logging
from scenegrid.modules.engine.router import get_scene_engine
from scenegrid.modules.engine.router import router as engine_router
from scenegrid.modules.persistence.errors import PersistenceUnavailable

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(_app: FastAPI):
    configure_logging(settings.app_name, settings.env, settings.log_level)
    init_db()
    if settings.seed_scenes_on_startup:
        try:
            get_scene_engine().seed_catalog()
        except PersistenceUnavailable as exc:
            logger.warning("scene_catalog_seed_skipped", extra={"error": str(exc)})
    yield


def create_app() -> FastAPI:
    application = FastAPI(title="Scene Grid Engine", lifespan=_lifespan)

    @application.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    application.include_router(engine_router)
    return application


app = create_app()
