# catalog_auth/adapters/outbound/persistence/models/base_model.py

from datetime import datetime, timezone
from sqlalchemy.orm import declarative_base

# Parent class of every ORM model (metadata used by create_all and alembic)
Base = declarative_base()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
