import pytest

from server.src.modules.equipment_engine import (
    AppendToList,
    IncrementField,
    RemoveFromList,
    ReplaceListElement,
)
from server.src.modules.player_store import PlayerStore, to_update
from tests.helpers import make_player, seed_player, stored_player


def test_to_update_shapes():
    assert to_update(RemoveFromList("Ana", "inventario.weapons", match_id=3)) == (
        {"nombreUsuario": "Ana"},
        {"$pull": {"inventario.weapons": {"id": 3}}},
    )
    assert to_update(RemoveFromList("Ana", "inventario.weapons", match_name="Arco")) == (
        {"nombreUsuario": "Ana"},
        {"$pull": {"inventario.weapons": {"name": "Arco"}}},
    )
    assert to_update(AppendToList("Ana", "equipados.items", {"id": 1, "name": "Pocion"})) == (
        {"nombreUsuario": "Ana"},
        {"$push": {"equipados.items": {"id": 1, "name": "Pocion"}}},
    )
    assert to_update(IncrementField("Ana", "creditos", -5)) == (
        {"nombreUsuario": "Ana"},
        {"$inc": {"creditos": -5}},
    )
    hero = {"id": 10, "name": "Caballero", "level": 2, "experience": 0}
    assert to_update(ReplaceListElement("Ana", "equipados.hero", hero, match_id=10)) == (
        {"nombreUsuario": "Ana", "equipados.hero.id": 10},
        {"$set": {"equipados.hero.$": hero}},
    )


def test_to_update_rejects_unknown_statements():
    with pytest.raises(TypeError):
        to_update(object())


def test_load_hides_object_id():
    seed_player("Ana", creditos=7)
    store = PlayerStore()
    doc = store.load("Ana")
    assert "_id" not in doc
    assert doc["creditos"] == 7
    assert store.load("Nadie") is None
    assert store.load("") is None


def test_load_many_reports_missing_names():
    seed_player("Ana")
    found = PlayerStore().load_many(["Ana", "Nadie", "Ana"])
    assert set(found) == {"Ana", "Nadie"}
    assert found["Ana"]["nombreUsuario"] == "Ana"
    assert found["Nadie"] is None


def test_batch_write_applies_in_order_and_counts():
    seed_player("Ana", inventario={"weapons": [{"id": 3, "name": "Espada"}]})
    store = PlayerStore()
    applied = store.batch_write([
        RemoveFromList("Ana", "inventario.weapons", match_id=3),
        AppendToList("Ana", "equipados.weapons", {"id": 3, "name": "Espada"}),
        IncrementField("Ana", "creditos", 25),
    ])

    assert applied == 3
    doc = stored_player("Ana")
    assert doc["inventario"]["weapons"] == []
    assert doc["equipados"]["weapons"] == [{"id": 3, "name": "Espada"}]
    assert doc["creditos"] == 25


def test_batch_write_empty_is_zero():
    assert PlayerStore().batch_write([]) == 0


def test_batch_write_has_no_rollback():
    seed_player("Ana")
    applied = PlayerStore().batch_write([
        IncrementField("Ana", "creditos", 10),
        AppendToList("Nadie", "inventario.items", {"id": 1, "name": "Pocion"}),
    ])
    assert applied == 1
    assert stored_player("Ana")["creditos"] == 10


def test_replace_list_element_targets_matching_entry():
    heroes = [{"id": 10, "name": "Caballero", "level": 1}, {"id": 11, "name": "Maga", "level": 1}]
    seed_player("Ana", equipados={"hero": heroes})
    levelled = {"id": 11, "name": "Maga", "level": 4, "experience": 12}

    applied = PlayerStore().batch_write([ReplaceListElement("Ana", "equipados.hero", levelled, match_id=11)])

    assert applied == 1
    assert stored_player("Ana")["equipados"]["hero"] == [heroes[0], levelled]


def test_insert_players_skips_existing_and_repeated():
    seed_player("Ana")
    created = PlayerStore().insert_players([make_player("Ana"), make_player("Luis"), make_player("Luis")])
    assert created == ["Luis"]
    assert stored_player("Luis")["creditos"] == 0


def test_increment_credits_returns_balance():
    seed_player("Ana", creditos=100)
    store = PlayerStore()
    assert store.increment_credits("Ana", -150) == -50
    assert store.increment_credits("Nadie", 5) is None
