from sqlmodel import SQLModel, create_engine, Session
from app.config import settings


engine = create_engine(
    settings.database_url,
    echo=False,
    pool_pre_ping=True,      # checks dead connections
    pool_recycle=1800,       # refresh every 30 min
    connect_args={
        # bound every statement so a stuck checkout fails instead of hanging
        "options": f"-c statement_timeout={settings.DB_STATEMENT_TIMEOUT_MS}"
    },
)


def create_db_and_tables():
    from app.models import (  # noqa: F401
        user, store, product, coupon, address, cart, order, order_item, order_event
    )
    SQLModel.metadata.create_all(engine)


def get_session():
    with Session(engine) as session:
        yield session
