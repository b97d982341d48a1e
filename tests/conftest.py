import os
from contextlib import asynccontextmanager

import pytest
from httpx import ASGITransport, AsyncClient

os.environ.setdefault("MONGODB_URI", "mongomock://localhost")
os.environ.setdefault("MONGO_DB", "arsenal_test")
os.environ.setdefault("ALLOWED_ORIGINS", "http://localhost")

from db_mongo import get_db
from main import app


@pytest.fixture(autouse=True)
def clean_state():
    db = get_db()
    for name in db.list_collection_names():
        db.drop_collection(name)
    yield


@asynccontextmanager
async def api_client():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
