from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker, declarative_base
from src.config import settings


def get_database_url() -> str:
    return settings.DATABASE_URL or str(settings.SQLALCHEMY_DATABASE_URI)


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        return {}
    return {"pool_size": settings.DATABASE_POOL_SIZE, "max_overflow": 0, "pool_pre_ping": True}


engine = create_async_engine(get_database_url(), echo=False, **_engine_options(get_database_url()))
AsyncSessionLocal = sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)

Base = declarative_base()

# Dependency
async def get_db():
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


def import_models() -> None:
    """Register every mapped table on ``Base.metadata``."""
    from src.auth import models as auth_models  # noqa: F401
    from src.claims import models as claim_models  # noqa: F401


async def init_db(bind=None) -> None:
    """Create missing tables. Alembic owns schema changes; this covers fresh databases."""
    import_models()
    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
