from functools import lru_cache
from urllib.parse import urlparse
from pymongo import MongoClient, ASCENDING
from pymongo.database import Database
from settings import settings


def is_mock_uri(uri: str | None = None) -> bool:
    return str(uri if uri is not None else settings.mongodb_uri or "").startswith("mongomock://")

@lru_cache
def get_client() -> MongoClient:
    uri = settings.mongodb_uri
    if not uri or "xxxx.mongodb.net" in uri or "example.com" in uri:
        raise RuntimeError("MONGODB_URI is missing or still a placeholder.")
    if is_mock_uri(uri):
        import mongomock
        return mongomock.MongoClient()
    return MongoClient(uri)

def _db_name() -> str:
    if is_mock_uri():
        return settings.mongo_db
    u = urlparse(settings.mongodb_uri or "")
    return (u.path or "").lstrip("/") or settings.mongo_db

def get_db() -> Database:
    return get_client()[_db_name()]

def get_col(name: str):
    return get_db()[name]

def players_col():
    return get_col(settings.mongo_collection_users)

def ensure_indexes() -> None:
    players_col().create_index([("nombreUsuario", ASCENDING)], unique=True)
    get_col("audit_logs").create_index("ts")
