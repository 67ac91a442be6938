from sqlmodel import SQLModel
from sqlalchemy import text
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession
from repokit.logging.logger import get_logger
from .base import BaseDatabaseDriver

logger = get_logger("sql_driver")

class SQLDriver(BaseDatabaseDriver):
    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.engine = create_async_engine(url, echo=echo, future=True)
        self.session_factory = sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False
        )

    async def connect(self):
        """Check connectivity (the engine manages its own pool)."""
        async with self.engine.begin() as conn:
            await conn.execute(text("SELECT 1"))

    async def disconnect(self):
        """Dispose the engine and its pool."""
        await self.engine.dispose()

    async def create_all(self):
        """Create tables for every registered SQLModel (no migrations are managed here)."""
        async with self.engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)
        logger.info(f"Created tables: {', '.join(sorted(SQLModel.metadata.tables))}")

    async def get_session(self):
        async with self.session_factory() as session:
            yield session
