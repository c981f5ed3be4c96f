from dataclasses import dataclass

from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from crop_api.auth.tokens import TokenService
from crop_api.core.config import Settings
from crop_api.database import build_engine, build_session_factory


@dataclass
class AppContext:
    """Everything a request needs that outlives the request itself.

    One instance is built per application by `crop_api.main.create_app` and
    kept on `app.state.context`; nothing here is module-global, so tests can
    run several isolated applications side by side.
    """

    settings: Settings
    engine: Engine
    session_factory: sessionmaker
    tokens: TokenService

    @classmethod
    def from_settings(cls, settings: Settings) -> "AppContext":
        engine = build_engine(settings.database_url, echo=settings.sql_echo)
        return cls(
            settings=settings,
            engine=engine,
            session_factory=build_session_factory(engine),
            tokens=TokenService(
                secret_key=settings.jwt_secret_key,
                algorithm=settings.jwt_algorithm,
                default_ttl_minutes=settings.jwt_expires_minutes,
            ),
        )
