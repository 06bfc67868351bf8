"""
Accès Postgres transactionnel (SQLAlchemy asyncio).
- L'engine n'existe que si DATABASE_URL est défini: son absence sélectionne
  la stratégie de réconciliation « best effort » (Supabase).
- Les sessions sont créées par async_sessionmaker (expire_on_commit=False).
"""
import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from storefront.config import DATABASE_URL, DB_POOL_SIZE, DB_ECHO

logger = logging.getLogger(__name__)

_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker[AsyncSession]] = None

# module storefront.infra.database
def get_engine() -> Optional[AsyncEngine]:
    """
    Retourne l'engine partagé, ou None si aucun datastore transactionnel n'est configuré
    (ou si sa création échoue: driver absent, DSN invalide).
    """
    global _engine
    if _engine is not None:
        return _engine
    if not DATABASE_URL:
        return None
    try:
        _engine = create_async_engine(
            DATABASE_URL,
            echo=DB_ECHO,
            pool_pre_ping=True,
            pool_size=DB_POOL_SIZE,
        )
    except Exception:
        logger.exception("infra.database.get_engine failed")
        return None
    return _engine

def get_session_factory() -> Optional[async_sessionmaker[AsyncSession]]:
    global _session_factory
    if _session_factory is None:
        engine = get_engine()
        if engine is None:
            return None
        _session_factory = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    return _session_factory

def use_engine(engine: Optional[AsyncEngine]) -> None:
    """
    Remplace l'engine partagé (tests, bootstrap local). None réinitialise.
    """
    global _engine, _session_factory
    _engine = engine
    _session_factory = None

async def init_models(engine: AsyncEngine) -> None:
    """Crée les tables déclarées (tests et démarrage local)."""
    from storefront.models.tables import Base
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

async def dispose_engine() -> None:
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None
