"""
Bootstrap an ADMIN account for the TaskNest API
"""
import asyncio
import sys
from pathlib import Path
import getpass

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from loguru import logger

from app.db.database import AsyncSessionLocal, init_db
from app.db.models import UserRole
from app.services.users import register_user
from app.utils.validators import PasswordValidator, UsernameValidator


async def create_admin_user():
    """Prompt for credentials and create an ADMIN user"""
    logger.info("Creating admin user for TaskNest API...")

    username = input("Enter admin username: ").strip()
    is_valid, message = UsernameValidator.validate(username)
    if not is_valid:
        logger.error(message)
        return

    email = input("Enter admin email: ").strip()
    if not email:
        logger.error("Email is required")
        return

    password = getpass.getpass("Enter admin password: ")
    is_valid, message = PasswordValidator.validate_complexity(password)
    if not is_valid:
        logger.error(message)
        return

    if password != getpass.getpass("Confirm password: "):
        logger.error("Passwords don't match")
        return

    await init_db()
    async with AsyncSessionLocal() as db:
        user = await register_user(db, username, email, password, role=UserRole.ADMIN)
        logger.info(f"Admin user created: {user.username} (ID: {user.id})")


if __name__ == "__main__":
    asyncio.run(create_admin_user())
