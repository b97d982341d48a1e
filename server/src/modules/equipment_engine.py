"""
Inventory / equipment mutation rules for player documents.

Everything here is pure: functions read one or two player documents and
return a MutationPlan describing the store statements to send. Nothing in
this module talks to MongoDB.
"""
from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Mapping, Optional, Union

from server.src.modules.leveling import apply_experience

logger = logging.getLogger("arsenal.engine")

PLAYER_KEY = "nombreUsuario"
CREDITS = "creditos"
INVENTORY = "inventario"
EQUIPPED = "equipados"
LOCATIONS = (INVENTORY, EQUIPPED)


class SlotKind(str, Enum):
    WEAPON = "weapons"
    ARMOR = "armors"
    ITEM = "items"
    EPIC_ABILITY = "epicAbility"
    HERO = "hero"


SEARCH_ORDER = (
    SlotKind.WEAPON,
    SlotKind.ARMOR,
    SlotKind.ITEM,
    SlotKind.EPIC_ABILITY,
    SlotKind.HERO,
)


class ErrorKind(str, Enum):
    PLAYER_NOT_FOUND = "player_not_found"
    ITEM_NOT_FOUND = "item_not_found"
    INVALID_INPUT = "invalid_input"
    NO_OP_REWARD = "no_op_reward"
    DUPLICATE_PLAYER = "duplicate_player"
    DUPLICATE_ITEM = "duplicate_item"


class EngineError(Exception):
    def __init__(self, kind: ErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message


# ---------- Statements ----------

@dataclass(frozen=True)
class RemoveFromList:
    player_key: str
    container_path: str
    match_id: Any = None
    match_name: Optional[str] = None


@dataclass(frozen=True)
class AppendToList:
    player_key: str
    container_path: str
    item: dict


@dataclass(frozen=True)
class IncrementField:
    player_key: str
    field_path: str
    delta: int


@dataclass(frozen=True)
class ReplaceListElement:
    player_key: str
    container_path: str
    new_value: dict
    match_id: Any = None
    match_name: Optional[str] = None


Statement = Union[RemoveFromList, AppendToList, IncrementField, ReplaceListElement]


@dataclass
class MutationPlan:
    statements: list = field(default_factory=list)
    item: Optional[dict] = None
    kind: Optional[SlotKind] = None
    location: Optional[str] = None
    hero: Optional[dict] = None
    moved: list = field(default_factory=list)
    skipped: list = field(default_factory=list)


@dataclass(frozen=True)
class WonItem:
    origin_player: str
    item_name: str


@dataclass(frozen=True)
class RewardRequest:
    player_rewarded: str
    credits: int
    exp: int
    won_items: tuple = ()
    hero_id: Optional[int] = None
    hero_name: Optional[str] = None


# ---------- Lookups ----------

def slot_kind(value: Any) -> SlotKind:
    if isinstance(value, SlotKind):
        return value
    raw = str(value or "").strip()
    for kind in SlotKind:
        if raw == kind.value or raw.lower() == kind.name.lower() or raw.lower() == kind.value.lower():
            return kind
    raise EngineError(ErrorKind.INVALID_INPUT, f"Unknown equipment kind: {raw or '(empty)'}")


def _name_key(value: Any) -> str:
    return str(value or "").lower()


def container_path(location: str, kind: SlotKind) -> str:
    return f"{location}.{kind.value}"


def entries(player: Mapping[str, Any], location: str, kind: SlotKind) -> list:
    container = player.get(location) or {}
    return list(container.get(kind.value) or [])


def find_by_name(container: Optional[Mapping[str, Any]], kind: SlotKind, name: str) -> Optional[dict]:
    key = _name_key(name)
    for entry in (container or {}).get(kind.value) or []:
        if isinstance(entry, dict) and _name_key(entry.get("name")) == key:
            return entry
    return None


def locate_item(
    player: Mapping[str, Any],
    item_name: str,
    locations: Iterable[str] = LOCATIONS,
) -> Optional[tuple]:
    """First (location, kind, entry) whose name matches, locations outermost."""
    for location in locations:
        container = player.get(location) or {}
        for kind in SEARCH_ORDER:
            entry = find_by_name(container, kind, item_name)
            if entry is not None:
                return location, kind, entry
    return None


def owned_location(player: Mapping[str, Any], kind: SlotKind, item_id: Any) -> Optional[str]:
    """Container already holding `(kind, item_id)`, or None. Entries without id never clash."""
    if item_id is None:
        return None
    for location in LOCATIONS:
        if any(isinstance(e, dict) and e.get("id") == item_id for e in entries(player, location, kind)):
            return location
    return None


def _remove_statement(player_key: str, location: str, kind: SlotKind, entry: dict) -> RemoveFromList:
    if entry.get("id") is not None:
        return RemoveFromList(player_key, container_path(location, kind), match_id=entry["id"])
    return RemoveFromList(player_key, container_path(location, kind), match_name=entry.get("name"))


def _player_key(player: Optional[Mapping[str, Any]]) -> str:
    if not player:
        raise EngineError(ErrorKind.PLAYER_NOT_FOUND, "Player not found")
    key = player.get(PLAYER_KEY)
    if not isinstance(key, str) or not key.strip():
        raise EngineError(ErrorKind.INVALID_INPUT, f"Player document has no {PLAYER_KEY}")
    return key


def _require_name(item_name: Any) -> str:
    if not isinstance(item_name, str) or not item_name.strip():
        raise EngineError(ErrorKind.INVALID_INPUT, "Item name is required")
    return item_name


# ---------- Equip / unequip ----------

def _move(player: Mapping[str, Any], kind: Any, item_name: str, source: str, dest: str) -> MutationPlan:
    key = _player_key(player)
    kind = slot_kind(kind)
    item_name = _require_name(item_name)
    entry = find_by_name(player.get(source), kind, item_name)
    if entry is None:
        raise EngineError(
            ErrorKind.ITEM_NOT_FOUND,
            f"'{item_name}' not found in {source}.{kind.value} of {key}",
        )
    item = copy.deepcopy(entry)
    return MutationPlan(
        statements=[
            _remove_statement(key, source, kind, entry),
            AppendToList(key, container_path(dest, kind), item),
        ],
        item=item,
        kind=kind,
        location=source,
    )


def equip(player: Mapping[str, Any], kind: Any, item_name: str) -> MutationPlan:
    return _move(player, kind, item_name, INVENTORY, EQUIPPED)


def unequip(player: Mapping[str, Any], kind: Any, item_name: str) -> MutationPlan:
    return _move(player, kind, item_name, EQUIPPED, INVENTORY)


# ---------- Transfer ----------

def transfer_item(origin: Mapping[str, Any], target: Mapping[str, Any], item_name: str) -> MutationPlan:
    """Move a named entry from origin (inventory first, then equipped) to target's inventory."""
    origin_key = _player_key(origin)
    target_key = _player_key(target)
    item_name = _require_name(item_name)
    if origin_key == target_key:
        raise EngineError(ErrorKind.INVALID_INPUT, "Origin and target must be different players")

    found = locate_item(origin, item_name, LOCATIONS)
    if found is None:
        raise EngineError(ErrorKind.ITEM_NOT_FOUND, f"'{item_name}' not found for {origin_key}")
    location, kind, entry = found
    held = owned_location(target, kind, entry.get("id"))
    if held is not None:
        raise EngineError(
            ErrorKind.DUPLICATE_ITEM,
            f"{kind.value} id {entry['id']} already owned by {target_key} ({held})",
        )
    item = copy.deepcopy(entry)
    return MutationPlan(
        statements=[
            _remove_statement(origin_key, location, kind, entry),
            AppendToList(target_key, container_path(INVENTORY, kind), item),
        ],
        item=item,
        kind=kind,
        location=location,
    )


# ---------- Rewards ----------

def resolve_reward_hero(
    player: Mapping[str, Any],
    hero_id: Any = None,
    hero_name: Optional[str] = None,
) -> Optional[tuple]:
    """
    Pick the hero that receives reward experience, as (location, entry).

    An explicit id wins over an explicit name; both look in equipped heroes
    before benched ones. An id that matches no hero resolves to None, even
    when a name is also given. Without either, a lone equipped hero is
    used, or a lone benched hero when nothing is equipped. Anything else is
    ambiguous and resolves to None.
    """
    equipped = entries(player, EQUIPPED, SlotKind.HERO)
    benched = entries(player, INVENTORY, SlotKind.HERO)

    if hero_id is not None:
        for location, heroes in ((EQUIPPED, equipped), (INVENTORY, benched)):
            for hero in heroes:
                if isinstance(hero, dict) and hero.get("id") == hero_id:
                    return location, hero
        return None
    if hero_name:
        for location in (EQUIPPED, INVENTORY):
            hero = find_by_name(player.get(location), SlotKind.HERO, hero_name)
            if hero is not None:
                return location, hero
        return None
    if len(equipped) == 1:
        return EQUIPPED, equipped[0]
    if not equipped and len(benched) == 1:
        return INVENTORY, benched[0]
    return None


def level_hero(hero: Mapping[str, Any], delta: int) -> dict:
    updated = copy.deepcopy(dict(hero))
    level, experience = apply_experience(
        int(updated.get("level") or 1),
        int(updated.get("experience") or 0),
        delta,
    )
    updated["level"] = level
    updated["experience"] = experience
    return updated


def apply_reward(
    target: Mapping[str, Any],
    reward: RewardRequest,
    origins: Mapping[str, Optional[Mapping[str, Any]]],
) -> MutationPlan:
    """
    Credits, hero experience and won items for one player.

    `origins` maps origin player names to their documents (None when the
    player does not exist). Pieces that cannot be applied are skipped and
    noted in the plan; only a plan with no statements at all fails.
    """
    target_key = _player_key(target)
    plan = MutationPlan()

    plan.statements.append(IncrementField(target_key, CREDITS, int(reward.credits)))

    if reward.exp:
        resolved = resolve_reward_hero(target, reward.hero_id, reward.hero_name)
        if resolved is None:
            logger.info("No hero resolved for %s; skipping %s exp", target_key, reward.exp)
            plan.skipped.append(f"exp: no hero resolved for {target_key}")
        else:
            location, hero = resolved
            levelled = level_hero(hero, reward.exp)
            path = container_path(location, SlotKind.HERO)
            if hero.get("id") is not None:
                stmt = ReplaceListElement(target_key, path, levelled, match_id=hero["id"])
            else:
                stmt = ReplaceListElement(target_key, path, levelled, match_name=hero.get("name"))
            plan.statements.append(stmt)
            plan.hero = levelled

    # working copies so the same equipped entry cannot be won twice
    # and the target never receives an id it already holds
    remaining: dict[str, dict] = {}
    receiver = {location: {k.value: entries(target, location, k) for k in SEARCH_ORDER} for location in LOCATIONS}
    for won in reward.won_items:
        origin_name = won.origin_player
        if origin_name == target_key:
            plan.skipped.append(f"won item '{won.item_name}': origin is the rewarded player")
            continue
        if origin_name not in remaining:
            doc = origins.get(origin_name)
            if not doc:
                plan.skipped.append(f"won item '{won.item_name}': player {origin_name} not found")
                continue
            remaining[origin_name] = copy.deepcopy(dict(doc))
        origin = remaining[origin_name]
        found = locate_item(origin, won.item_name, (EQUIPPED,))
        if found is None:
            plan.skipped.append(f"won item '{won.item_name}': not equipped by {origin_name}")
            continue
        location, kind, entry = found
        if owned_location(receiver, kind, entry.get("id")) is not None:
            plan.skipped.append(f"won item '{won.item_name}': {target_key} already owns {kind.value} id {entry['id']}")
            continue
        item = copy.deepcopy(entry)
        plan.statements.append(_remove_statement(origin_name, location, kind, entry))
        plan.statements.append(AppendToList(target_key, container_path(INVENTORY, kind), item))
        plan.moved.append({"originPlayer": origin_name, "kind": kind.value, "item": item})
        origin[location][kind.value] = [e for e in origin[location][kind.value] if e is not entry]
        receiver[INVENTORY][kind.value].append(item)

    if not plan.statements:
        raise EngineError(ErrorKind.NO_OP_REWARD, f"Reward for {target_key} produced no changes")
    return plan


# ---------- Inventory additions ----------

def add_to_inventory(player: Mapping[str, Any], kind: Any, item: Any) -> MutationPlan:
    key = _player_key(player)
    kind = slot_kind(kind)
    if not isinstance(item, dict):
        raise EngineError(ErrorKind.INVALID_INPUT, "Item must be an object")
    _require_name(item.get("name"))
    item_id = item.get("id")
    held = owned_location(player, kind, item_id)
    if held is not None:
        raise EngineError(
            ErrorKind.DUPLICATE_ITEM,
            f"{kind.value} id {item_id} already owned by {key} ({held})",
        )
    stored = copy.deepcopy(item)
    return MutationPlan(
        statements=[AppendToList(key, container_path(INVENTORY, kind), stored)],
        item=stored,
        kind=kind,
        location=INVENTORY,
    )


# ---------- In-memory application ----------

def _list_at(doc: dict, path: str) -> list:
    location, kind = path.split(".", 1)
    container = doc.setdefault(location, {})
    return container.setdefault(kind, [])


def _matches(entry: Any, match_id: Any, match_name: Optional[str]) -> bool:
    if not isinstance(entry, dict):
        return False
    if match_id is not None:
        return entry.get("id") == match_id
    return entry.get("name") == match_name


def apply_statements(players: Mapping[str, Mapping[str, Any]], statements: Iterable[Statement]) -> dict:
    """
    Apply statements to copies of `players` (keyed by player name) the way
    the store would, returning the new documents. Statements for unknown
    players are ignored, as an unmatched update is by the store.
    """
    docs = {name: copy.deepcopy(dict(doc)) for name, doc in players.items()}
    for stmt in statements:
        doc = docs.get(stmt.player_key)
        if doc is None:
            continue
        if isinstance(stmt, RemoveFromList):
            current = _list_at(doc, stmt.container_path)
            current[:] = [e for e in current if not _matches(e, stmt.match_id, stmt.match_name)]
        elif isinstance(stmt, AppendToList):
            _list_at(doc, stmt.container_path).append(copy.deepcopy(stmt.item))
        elif isinstance(stmt, IncrementField):
            doc[stmt.field_path] = int(doc.get(stmt.field_path) or 0) + stmt.delta
        elif isinstance(stmt, ReplaceListElement):
            current = _list_at(doc, stmt.container_path)
            for idx, entry in enumerate(current):
                if _matches(entry, stmt.match_id, stmt.match_name):
                    current[idx] = copy.deepcopy(stmt.new_value)
                    break
    return docs
