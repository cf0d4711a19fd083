# backend/seed_admin.py
"""
Create or reset the admin account used to sign in to the dashboard.

    python seed_admin.py --email me@example.com --password secret --name "Me"
"""
import argparse
import asyncio

from core.init import run_all
from core.logger import get_logger
from core.security import hash_password
from models.db_models import AdminUser

logger = get_logger(__name__)

async def seed_admin(email: str, password: str, name: str = None) -> dict:
    store = await run_all()
    try:
        email = email.strip().lower()
        existing = await store.find_unique(AdminUser, {"email": email})
        data = {"hashed_password": hash_password(password), "name": name, "is_active": True}
        if existing:
            user = await store.update(AdminUser, {"email": email}, data)
            logger.info(f"Admin password reset for {email}")
        else:
            user = await store.create(AdminUser, {"email": email, **data})
            logger.info(f"Admin account created for {email}")
        return user
    finally:
        await store.dispose()

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create or reset the dashboard admin account")
    parser.add_argument("--email", required=True, help="Admin login email")
    parser.add_argument("--password", required=True, help="Admin password")
    parser.add_argument("--name", default=None, help="Display name")
    args = parser.parse_args()

    asyncio.run(seed_admin(args.email, args.password, args.name))
