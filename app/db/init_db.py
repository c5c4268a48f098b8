import asyncio
import logging
from app.core.config import settings
from app.core.database import engine
from app.models import Base

logger = logging.getLogger(__name__)

async def create_tables():
    """Create all database tables"""
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        logger.info("✅ Database tables created successfully")

    except Exception as e:
        logger.error(f"❌ Error creating tables: {str(e)}")
        raise

async def init_db():
    """Initialize the database for local development; production uses Alembic"""
    if settings.ENVIRONMENT.lower() == "production":
        logger.info("🗄️  Production environment, skipping create_all (run alembic upgrade head)")
        return

    logger.info(f"🗄️  Initializing database for {settings.ENVIRONMENT} environment...")
    await create_tables()
    logger.info("✅ Database initialized successfully")

if __name__ == "__main__":
    asyncio.run(init_db())
