from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from mac_schedule.db.base import Base
from mac_schedule.utils.config import get_settings

settings = get_settings()

engine = create_engine(settings.database_url, echo=settings.database_echo)

session_factory = sessionmaker(engine, expire_on_commit=False, class_=Session)


def init_db() -> None:
    from mac_schedule import models  # noqa: F401

    Base.metadata.create_all(engine)
