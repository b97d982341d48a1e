"""
Player operations: load documents, run the engine, persist its statements.

The functions here raise EngineError for every expected failure and leave
HTTP concerns to players_api.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from server.src.modules import equipment_engine as engine
from server.src.modules.equipment_engine import (
    CREDITS,
    EQUIPPED,
    EngineError,
    ErrorKind,
    MutationPlan,
    RewardRequest,
    SlotKind,
)
from server.src.modules.logging_helpers import logger, write_audit
from server.src.modules.player_helpers import _players_from_body, _public_player
from server.src.modules.player_store import PlayerStore


@dataclass
class MutationResult:
    applied: int
    plan: MutationPlan

    @property
    def expected(self) -> int:
        # the store does not count a zero increment as a modification
        return sum(
            1 for s in self.plan.statements
            if not (isinstance(s, engine.IncrementField) and s.delta == 0)
        )

    @property
    def partial(self) -> bool:
        return self.applied < self.expected


def _require_player(store: PlayerStore, name: str) -> dict:
    doc = store.load(name)
    if not doc:
        raise EngineError(ErrorKind.PLAYER_NOT_FOUND, f"Player {name} not found")
    return doc


def _persist(store: PlayerStore, action: str, player: str, plan: MutationPlan, detail: Optional[dict] = None) -> MutationResult:
    applied = store.batch_write(plan.statements)
    result = MutationResult(applied=applied, plan=plan)
    if result.partial:
        logger.warning(
            "%s for %s applied %d of %d statements", action, player, applied, result.expected
        )
    if applied:
        write_audit(action, player, detail or {}, before=None, after={"applied": applied})
    return result


def get_player(store: PlayerStore, name: str) -> dict:
    return _public_player(_require_player(store, name))


def get_equipped_hero(store: PlayerStore, name: str) -> dict:
    doc = _require_player(store, name)
    heroes = engine.entries(doc, EQUIPPED, SlotKind.HERO)
    if not heroes:
        raise EngineError(ErrorKind.ITEM_NOT_FOUND, f"No equipped hero for {name}")
    return heroes[0]


def create_players(store: PlayerStore, body: Any) -> list[str]:
    docs = _players_from_body(body)
    created = store.insert_players(docs)
    if not created:
        raise EngineError(ErrorKind.DUPLICATE_PLAYER, "All players already exist")
    logger.info("Players created: %s", ", ".join(created))
    return created


def add_to_inventory(store: PlayerStore, name: str, kind: Any, item: Any) -> MutationResult:
    doc = _require_player(store, name)
    plan = engine.add_to_inventory(doc, kind, item)
    return _persist(store, "inventory_add", name, plan, {"kind": plan.kind.value, "id": plan.item.get("id")})


def equip_item(store: PlayerStore, name: str, kind: Any, item_name: str) -> MutationResult:
    doc = _require_player(store, name)
    plan = engine.equip(doc, kind, item_name)
    return _persist(store, "equip", name, plan, {"kind": plan.kind.value, "item": plan.item.get("name")})


def unequip_item(store: PlayerStore, name: str, kind: Any, item_name: str) -> MutationResult:
    doc = _require_player(store, name)
    plan = engine.unequip(doc, kind, item_name)
    return _persist(store, "unequip", name, plan, {"kind": plan.kind.value, "item": plan.item.get("name")})


def transfer_item(store: PlayerStore, origin_name: str, target_name: str, item_name: str) -> MutationResult:
    origin = _require_player(store, origin_name)
    target = _require_player(store, target_name)
    plan = engine.transfer_item(origin, target, item_name)
    return _persist(
        store,
        "transfer",
        origin_name,
        plan,
        {"target": target_name, "kind": plan.kind.value, "item": plan.item.get("name"), "from": plan.location},
    )


def apply_reward(store: PlayerStore, reward: RewardRequest) -> MutationResult:
    if reward.credits < 0 or reward.exp < 0:
        logger.info("Reward with negative values for %s: credits=%s exp=%s",
                    reward.player_rewarded, reward.credits, reward.exp)
    target = _require_player(store, reward.player_rewarded)
    origins = store.load_many(w.origin_player for w in reward.won_items)
    plan = engine.apply_reward(target, reward, origins)
    for reason in plan.skipped:
        logger.info("Reward for %s skipped %s", reward.player_rewarded, reason)
    result = _persist(
        store,
        "reward",
        reward.player_rewarded,
        plan,
        {"credits": reward.credits, "exp": reward.exp, "won": len(plan.moved)},
    )
    if result.applied == 0:
        raise EngineError(ErrorKind.NO_OP_REWARD, f"Reward for {reward.player_rewarded} changed nothing")
    return result


def increment_credits(store: PlayerStore, name: str, delta: int) -> int:
    balance = store.increment_credits(name, delta)
    if balance is None:
        raise EngineError(ErrorKind.PLAYER_NOT_FOUND, f"Player {name} not found")
    write_audit("credits", name, {CREDITS: delta}, after={CREDITS: balance})
    return balance
