from functools import lru_cache
from typing import Iterable, Optional

from pymongo import ReturnDocument
from pymongo.collection import Collection

from db_mongo import players_col
from server.src.modules.equipment_engine import (
    CREDITS,
    PLAYER_KEY,
    AppendToList,
    IncrementField,
    RemoveFromList,
    ReplaceListElement,
)


def _match(stmt) -> dict:
    if stmt.match_id is not None:
        return {"id": stmt.match_id}
    return {"name": stmt.match_name}


def to_update(stmt) -> tuple[dict, dict]:
    """Translate one engine statement into a (filter, update) pair."""
    if not isinstance(stmt, (RemoveFromList, AppendToList, IncrementField, ReplaceListElement)):
        raise TypeError(f"Unsupported statement: {stmt!r}")
    owner = {PLAYER_KEY: stmt.player_key}
    if isinstance(stmt, RemoveFromList):
        return owner, {"$pull": {stmt.container_path: _match(stmt)}}
    if isinstance(stmt, AppendToList):
        return owner, {"$push": {stmt.container_path: stmt.item}}
    if isinstance(stmt, IncrementField):
        return owner, {"$inc": {stmt.field_path: stmt.delta}}
    locate = {f"{stmt.container_path}.{k}": v for k, v in _match(stmt).items()}
    return {**owner, **locate}, {"$set": {f"{stmt.container_path}.$": stmt.new_value}}


class PlayerStore:
    """Player documents keyed by nombreUsuario."""

    def __init__(self, collection: Optional[Collection] = None):
        self._col = collection if collection is not None else players_col()

    @property
    def collection(self) -> Collection:
        return self._col

    def load(self, name: str) -> Optional[dict]:
        if not isinstance(name, str) or not name:
            return None
        return self._col.find_one({PLAYER_KEY: name}, {"_id": 0})

    def load_many(self, names: Iterable[str]) -> dict[str, Optional[dict]]:
        wanted = sorted({n for n in names if isinstance(n, str) and n})
        found = {d[PLAYER_KEY]: d for d in self._col.find({PLAYER_KEY: {"$in": wanted}}, {"_id": 0})}
        return {n: found.get(n) for n in wanted}

    def batch_write(self, statements: list) -> int:
        """
        Apply statements in order, each matched and applied on its own.
        There is no rollback: a failure part way leaves earlier statements
        applied. Returns how many updates the store reports as modified.
        """
        applied = 0
        for stmt in statements:
            selector, update = to_update(stmt)
            applied += self._col.update_one(selector, update).modified_count
        return applied

    def insert_players(self, docs: list[dict]) -> list[str]:
        names = [d[PLAYER_KEY] for d in docs]
        existing = {d[PLAYER_KEY] for d in self._col.find({PLAYER_KEY: {"$in": names}}, {PLAYER_KEY: 1})}
        created: list[str] = []
        for doc in docs:
            name = doc[PLAYER_KEY]
            if name in existing or name in created:
                continue
            self._col.insert_one(dict(doc))
            created.append(name)
        return created

    def increment_credits(self, name: str, delta: int) -> Optional[int]:
        doc = self._col.find_one_and_update(
            {PLAYER_KEY: name},
            {"$inc": {CREDITS: delta}},
            projection={"_id": 0, CREDITS: 1},
            return_document=ReturnDocument.AFTER,
        )
        if doc is None:
            return None
        return int(doc.get(CREDITS) or 0)


@lru_cache
def get_player_store() -> PlayerStore:
    return PlayerStore()
