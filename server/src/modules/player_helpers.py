from typing import Any

from server.src.modules.equipment_engine import (
    CREDITS,
    LOCATIONS,
    PLAYER_KEY,
    SEARCH_ORDER,
    EngineError,
    ErrorKind,
    RewardRequest,
    SlotKind,
    WonItem,
)

# route suffix -> (kind, legacy body key)
SLOT_ROUTES = {
    "weapon": (SlotKind.WEAPON, "weaponName"),
    "armor": (SlotKind.ARMOR, "armorName"),
    "item": (SlotKind.ITEM, "itemName"),
    "epic": (SlotKind.EPIC_ABILITY, "epicName"),
    "hero": (SlotKind.HERO, "heroName"),
}


def _invalid(message: str) -> EngineError:
    return EngineError(ErrorKind.INVALID_INPUT, message)


def _required_str(b: dict, key: str) -> str:
    value = (b or {}).get(key)
    if not isinstance(value, str) or not value.strip():
        raise _invalid(f"'{key}' is required")
    return value.strip()


def _int_field(b: dict, key: str, default: Any = None) -> int:
    value = (b or {}).get(key, default)
    # bool is an int subclass; JSON true/false is not a number here
    if isinstance(value, bool) or value is None:
        raise _invalid(f"'{key}' must be a number")
    if isinstance(value, float):
        if not value.is_integer():
            raise _invalid(f"'{key}' must be a whole number")
        return int(value)
    if not isinstance(value, int):
        raise _invalid(f"'{key}' must be a number")
    return value


def _slot_route(suffix: str):
    return SLOT_ROUTES.get((suffix or "").strip().lower())


def _item_name_from_body(b: dict, legacy_key: str) -> str:
    b = b or {}
    if isinstance(b.get(legacy_key), str) and b.get(legacy_key).strip():
        return b[legacy_key].strip()
    return _required_str(b, "name")


def _container_from_body(raw: Any) -> dict:
    raw = raw if isinstance(raw, dict) else {}
    out = {k: v for k, v in raw.items()}
    for kind in SEARCH_ORDER:
        entries = raw.get(kind.value)
        if entries is None:
            out[kind.value] = []
        elif isinstance(entries, dict):
            out[kind.value] = [entries]
        elif isinstance(entries, list):
            out[kind.value] = [e for e in entries if isinstance(e, dict)]
        else:
            raise _invalid(f"'{kind.value}' must be a list")
    return out


def _player_from_body(b: dict) -> dict:
    if not isinstance(b, dict):
        raise _invalid("Player must be an object")
    name = _required_str(b, PLAYER_KEY)
    doc = {k: v for k, v in b.items() if k != "_id"}
    doc[PLAYER_KEY] = name
    doc[CREDITS] = _int_field(b, CREDITS, 0)
    for location in LOCATIONS:
        doc[location] = _container_from_body(b.get(location))
    _check_unique_ids(doc)
    return doc


def _check_unique_ids(doc: dict) -> None:
    # one (kind, id) lives in a single container, once
    for kind in SEARCH_ORDER:
        seen = set()
        for location in LOCATIONS:
            for entry in doc[location][kind.value]:
                item_id = entry.get("id")
                if item_id is None:
                    continue
                if item_id in seen:
                    raise EngineError(
                        ErrorKind.DUPLICATE_ITEM,
                        f"{kind.value} id {item_id} appears more than once for {doc[PLAYER_KEY]}",
                    )
                seen.add(item_id)


def _players_from_body(body: Any) -> list[dict]:
    raw = body if isinstance(body, list) else [body]
    if not raw or body is None:
        raise _invalid("No player data received")
    return [_player_from_body(b) for b in raw]


def _won_items_from_body(raw: Any) -> tuple:
    if not isinstance(raw, list):
        raise _invalid("'WonItem' must be a list")
    won = []
    for w in raw:
        if not isinstance(w, dict):
            raise _invalid("Each WonItem must be an object")
        won.append(WonItem(_required_str(w, "originPlayer"), _required_str(w, "itemName")))
    return tuple(won)


def _reward_from_body(b: dict) -> RewardRequest:
    """
    {"Rewards": {"playerRewarded", "credits", "exp", "heroId"?, "heroName"?},
     "WonItem": [{"originPlayer", "itemName"}]}
    Credits and exp may be negative.
    """
    if not isinstance(b, dict) or not isinstance(b.get("Rewards"), dict):
        raise _invalid("Invalid reward data")
    r = b["Rewards"]
    hero_id = r.get("heroId")
    if hero_id is not None:
        hero_id = _int_field(r, "heroId")
    hero_name = r.get("heroName")
    if hero_name is not None and not isinstance(hero_name, str):
        raise _invalid("'heroName' must be a string")
    return RewardRequest(
        player_rewarded=_required_str(r, "playerRewarded"),
        credits=_int_field(r, "credits"),
        exp=_int_field(r, "exp"),
        won_items=_won_items_from_body(b.get("WonItem", [])),
        hero_id=hero_id,
        hero_name=(hero_name or "").strip() or None,
    )


def _public_player(doc: dict) -> dict:
    out = dict(doc or {})
    out.pop("_id", None)
    for location in LOCATIONS:
        out[location] = _container_from_body(out.get(location))
    return out
