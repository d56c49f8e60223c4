"""Process-wide state (settings, pool, hasher) bundled into one object built at startup."""
from dataclasses import dataclass

from passlib.context import CryptContext
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from learnhub.core.config import Settings
from learnhub.core.security import build_password_context
from learnhub.db.session import build_engine, build_session_factory


@dataclass
class AppContext:
    settings: Settings
    engine: Engine
    session_factory: sessionmaker
    pwd_context: CryptContext

    def dispose(self) -> None:
        self.engine.dispose()


def build_context(settings: Settings) -> AppContext:
    engine = build_engine(settings)
    return AppContext(
        settings=settings,
        engine=engine,
        session_factory=build_session_factory(engine),
        pwd_context=build_password_context(settings.bcrypt_rounds),
    )
