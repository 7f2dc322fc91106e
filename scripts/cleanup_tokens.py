"""
One-shot cleanup of expired refresh and blacklisted tokens
"""
import asyncio
import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from loguru import logger

from app.db.database import AsyncSessionLocal
from app.db.crud.token import cleanup_expired_tokens


async def run_cleanup():
    logger.info("Starting token cleanup...")
    async with AsyncSessionLocal() as db:
        stats = await cleanup_expired_tokens(db)
        logger.info(f"Token cleanup completed: {stats}")
        return stats


if __name__ == "__main__":
    asyncio.run(run_cleanup())
