from db_mongo import players_col


def make_player(name: str, creditos: int = 0, inventario: dict | None = None, equipados: dict | None = None, **extra) -> dict:
    def container(raw):
        raw = raw or {}
        return {k: list(raw.get(k, [])) for k in ("weapons", "armors", "items", "epicAbility", "hero")}

    doc = {
        "nombreUsuario": name,
        "creditos": creditos,
        "inventario": container(inventario),
        "equipados": container(equipados),
    }
    doc.update(extra)
    return doc


def seed_player(name: str, **kwargs) -> dict:
    doc = make_player(name, **kwargs)
    players_col().insert_one(dict(doc))
    return doc


def stored_player(name: str) -> dict | None:
    return players_col().find_one({"nombreUsuario": name}, {"_id": 0})
