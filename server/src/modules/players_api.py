from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, HTTPException
from pydantic import BaseModel, Field
from pymongo.errors import PyMongoError

from server.src.modules import players_service
from server.src.modules.equipment_engine import EngineError, ErrorKind
from server.src.modules.logging_helpers import logger
from server.src.modules.player_helpers import (
    _int_field,
    _item_name_from_body,
    _required_str,
    _reward_from_body,
    _slot_route,
)
from server.src.modules.player_store import PlayerStore, get_player_store

router = APIRouter(tags=["usuarios"])


class StatusOut(BaseModel):
    status: str
    message: str


class CreatedOut(StatusOut):
    created: list[str]


class MoveOut(StatusOut):
    kind: str
    item: dict
    applied: int


class TransferOut(MoveOut):
    source: str = Field(alias="from")


class RewardOut(StatusOut):
    applied: int
    hero: Optional[dict] = None
    won: list[dict]
    skipped: list[str]


class CreditsOut(StatusOut):
    creditos: int


_STATUS_BY_KIND = {
    ErrorKind.PLAYER_NOT_FOUND: 404,
    ErrorKind.ITEM_NOT_FOUND: 404,
    ErrorKind.INVALID_INPUT: 400,
    ErrorKind.NO_OP_REWARD: 400,
    ErrorKind.DUPLICATE_PLAYER: 409,
    ErrorKind.DUPLICATE_ITEM: 409,
}


def _http_error(exc: EngineError) -> HTTPException:
    return HTTPException(status_code=_STATUS_BY_KIND.get(exc.kind, 400), detail=exc.message)


def _run(operation: str, fn, *args):
    try:
        return fn(*args)
    except EngineError as exc:
        raise _http_error(exc)
    except PyMongoError:
        logger.exception("%s store failure", operation)
        raise HTTPException(status_code=500, detail=f"Database error during {operation}")


def _moved(result) -> dict:
    plan = result.plan
    return {"kind": plan.kind.value, "item": plan.item, "applied": result.applied}


# ---------- Reads ----------

@router.get("/usuarios/{player_name}")
def get_usuario(player_name: str, store: PlayerStore = Depends(get_player_store)):
    return _run("get player", players_service.get_player, store, player_name)


@router.get("/usuarios/{player_name}/hero")
def get_usuario_hero(player_name: str, store: PlayerStore = Depends(get_player_store)):
    return _run("get hero", players_service.get_equipped_hero, store, player_name)


# ---------- Onboarding / inventory ----------

@router.post("/usuarios/create", status_code=201, response_model=CreatedOut)
def create_usuarios(body: Any = Body(None), store: PlayerStore = Depends(get_player_store)):
    created = _run("create players", players_service.create_players, store, body)
    return {"status": "success", "message": "Players created", "created": created}


@router.post("/usuarios/{player_name}/inventario/{kind}", response_model=MoveOut)
def add_to_inventario(
    player_name: str,
    kind: str,
    item: dict = Body(...),
    store: PlayerStore = Depends(get_player_store),
):
    result = _run("add to inventory", players_service.add_to_inventory, store, player_name, kind, item)
    return {"status": "success", "message": "Item added to inventory", **_moved(result)}


# ---------- Equip / unequip ----------

def _slot_or_404(slot: str):
    entry = _slot_route(slot)
    if entry is None:
        raise HTTPException(status_code=404, detail=f"Unknown slot: {slot}")
    return entry


@router.put("/usuarios/{player_name}/equip{slot}", response_model=MoveOut)
def equip(
    player_name: str,
    slot: str,
    body: dict = Body(...),
    store: PlayerStore = Depends(get_player_store),
):
    kind, legacy_key = _slot_or_404(slot)
    item_name = _run("equip", _item_name_from_body, body, legacy_key)
    result = _run("equip", players_service.equip_item, store, player_name, kind, item_name)
    return {"status": "success", "message": f"{item_name} equipped", **_moved(result)}


@router.put("/usuarios/{player_name}/unequip{slot}", response_model=MoveOut)
def unequip(
    player_name: str,
    slot: str,
    body: dict = Body(...),
    store: PlayerStore = Depends(get_player_store),
):
    kind, legacy_key = _slot_or_404(slot)
    item_name = _run("unequip", _item_name_from_body, body, legacy_key)
    result = _run("unequip", players_service.unequip_item, store, player_name, kind, item_name)
    return {"status": "success", "message": f"{item_name} unequipped", **_moved(result)}


@router.put("/usuarios/hero/{player_name}/unequipHero", response_model=MoveOut)
def unequip_hero_legacy(player_name: str, body: dict = Body(...), store: PlayerStore = Depends(get_player_store)):
    return unequip(player_name, "Hero", body, store)


# ---------- Economy ----------

@router.post("/usuarios/rewards", response_model=RewardOut)
def apply_rewards(body: dict = Body(...), store: PlayerStore = Depends(get_player_store)):
    reward = _run("reward", _reward_from_body, body)
    result = _run("reward", players_service.apply_reward, store, reward)
    plan = result.plan
    return {
        "status": "success",
        "message": "Reward applied",
        "applied": result.applied,
        "hero": plan.hero,
        "won": plan.moved,
        "skipped": plan.skipped,
    }


@router.patch("/usuarios/transfer-item", response_model=TransferOut)
def transfer_item(body: dict = Body(...), store: PlayerStore = Depends(get_player_store)):
    def _fields():
        return _required_str(body, "originUser"), _required_str(body, "targetUser"), _required_str(body, "itemName")

    origin, target, item_name = _run("transfer", _fields)
    result = _run("transfer", players_service.transfer_item, store, origin, target, item_name)
    return {
        "status": "success",
        "message": f"'{item_name}' transferred from {origin} to {target}",
        "from": result.plan.location,
        **_moved(result),
    }


@router.patch("/usuarios/{player_name}/creditos", response_model=CreditsOut)
def incrementar_creditos(player_name: str, body: dict = Body(...), store: PlayerStore = Depends(get_player_store)):
    delta = _run("credits", _int_field, body, "creditos")
    balance = _run("credits", players_service.increment_credits, store, player_name, delta)
    return {"status": "success", "message": f"Credits updated for {player_name}", "creditos": balance}
