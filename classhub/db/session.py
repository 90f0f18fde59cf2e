from sqlalchemy import BigInteger, Integer, create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool
from classhub.core.config import settings


SQLALCHEMY_DATABASE_URL = settings.DATABASE_URL

engine_kwargs = {"pool_pre_ping": True, "echo": settings.DB_ECHO}
if SQLALCHEMY_DATABASE_URL.startswith("sqlite"):
    engine_kwargs["connect_args"] = {"check_same_thread": False}
    # in-memory databases must share one connection across threads
    if SQLALCHEMY_DATABASE_URL in ("sqlite://", "sqlite:///:memory:"):
        engine_kwargs["poolclass"] = StaticPool

engine = create_engine(SQLALCHEMY_DATABASE_URL, **engine_kwargs)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

# 64-bit ids everywhere; SQLite only autoincrements INTEGER primary keys
BigId = BigInteger().with_variant(Integer, "sqlite")

# Import all models to ensure they're registered with Base
from classhub.models.users import *
from classhub.models.school import *
from classhub.models.teachers import *
from classhub.models.students import *
from classhub.models.attendance import *
from classhub.models.assessments import *
from classhub.models.notifications import *
from classhub.models.timetables import *


def create_tables():
    """Create all tables that don't exist yet"""
    Base.metadata.create_all(bind=engine)


def drop_tables():
    Base.metadata.drop_all(bind=engine)


# Dependency to get DB session
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
