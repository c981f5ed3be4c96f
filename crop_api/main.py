import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError

from crop_api.context import AppContext
from crop_api.core.config import Settings, load_settings
from crop_api.core.errors import register_exception_handlers
from crop_api.core.logging_config import configure_logging
from crop_api.database import create_schema, is_database_reachable
from crop_api.routes import auth_routes, image_routes, user_routes, zone_routes

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or load_settings()
    settings.validate()
    configure_logging(settings.log_level)

    context = AppContext.from_settings(settings)

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        try:
            create_schema(context.engine)
        except SQLAlchemyError:
            logger.exception('Database initialization failed. Check DATABASE_URL.')
        yield
        context.engine.dispose()

    app = FastAPI(title='Crop Intelligence API', lifespan=lifespan)
    app.state.context = context

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=['*'],
        allow_headers=['*'],
        expose_headers=['x-auth-token'],
    )

    register_exception_handlers(app, settings)

    @app.get(f'{settings.api_prefix}/health')
    def health(request: Request):
        engine = request.app.state.context.engine
        return {
            'status': 'ok',
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'database': 'connected' if is_database_reachable(engine) else 'disconnected',
        }

    app.include_router(auth_routes.router, prefix=f'{settings.api_prefix}/auth')
    app.include_router(user_routes.router, prefix=f'{settings.api_prefix}/users')
    app.include_router(zone_routes.router, prefix=f'{settings.api_prefix}/zones')
    app.include_router(image_routes.router, prefix=f'{settings.api_prefix}/images')

    upload_dir = Path(settings.upload_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)
    app.mount('/uploads', StaticFiles(directory=upload_dir), name='uploads')

    logger.info('Crop Intelligence API configured (env=%s, prefix=%s)', settings.app_env, settings.api_prefix or '/')
    return app
