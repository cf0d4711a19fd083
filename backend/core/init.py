# core/init.py
import os

from core.settings import settings
from core.store import ContentStore

# export environment variables
DATABASE_FOLDER = settings.DATABASE_FOLDER
DATABASE_URL = settings.DATABASE_URL

def init_database_folder():
    if not os.path.exists(DATABASE_FOLDER):
        os.makedirs(DATABASE_FOLDER)

async def run_all(database_url: str = DATABASE_URL) -> ContentStore:
    """Prepare the database folder and schema, returning a ready store."""
    if database_url.startswith("sqlite") and ":memory:" not in database_url:
        init_database_folder()
    store = ContentStore.from_url(database_url)
    await store.init_schema()
    return store
