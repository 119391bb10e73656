"""
CooperLoc - Database Session
"""
import logging
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base

from cooperloc.core.config import settings

logger = logging.getLogger(__name__)

# Engine assíncrono
engine = create_async_engine(
    settings.db_url,
    echo=settings.DEBUG,
    pool_pre_ping=True,
)

# Session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False
)

# Base para models
Base = declarative_base()


async def get_db() -> AsyncSession:
    """Dependency para injetar sessão do banco"""
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def init_db():
    """Inicializa banco de dados (cria tabelas)"""
    # Registra os models no metadata antes do create_all
    import cooperloc.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info("Tabelas verificadas em %s", engine.url.render_as_string(hide_password=True))
