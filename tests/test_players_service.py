import logging

from server.src.modules import players_service
from server.src.modules.equipment_engine import RewardRequest, WonItem, equip
from server.src.modules.player_store import PlayerStore
from tests.helpers import seed_player, stored_player

SHIELD = {"id": 7, "name": "Escudo", "defense": 4}


def test_zero_credit_reward_is_not_reported_as_partial(caplog):
    seed_player("Ana")
    seed_player("Luis", equipados={"armors": [SHIELD]})
    reward = RewardRequest("Ana", credits=0, exp=0, won_items=(WonItem("Luis", "Escudo"),))

    with caplog.at_level(logging.WARNING, logger="arsenal"):
        result = players_service.apply_reward(PlayerStore(), reward)

    assert result.applied == 2
    assert result.expected == 2
    assert not result.partial
    assert not [r for r in caplog.records if r.levelno >= logging.WARNING]
    assert stored_player("Ana")["inventario"]["armors"] == [SHIELD]


def test_missing_write_is_reported_as_partial(caplog):
    seed_player("Ana", inventario={"weapons": [{"id": 3, "name": "Espada"}]})
    store = PlayerStore()
    doc = store.load("Ana")
    # another request moved the sword after this snapshot was read
    store.collection.update_one({"nombreUsuario": "Ana"}, {"$set": {"inventario.weapons": []}})

    plan = equip(doc, "weapons", "Espada")
    with caplog.at_level(logging.WARNING, logger="arsenal"):
        result = players_service._persist(store, "equip", "Ana", plan)

    assert result.applied == 1
    assert result.partial
    assert any("applied 1 of 2" in r.getMessage() for r in caplog.records)
