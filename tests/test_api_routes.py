from tests.factories import PASSWORD, armor_data, creature_type_data, make_armor, make_weapon, weapon_data


def test_reads_are_public(client):
    weapon = make_weapon()
    resp = client.get(f"/api/weapons/{weapon.id}")
    assert resp.status_code == 200
    assert resp.get_json()["name"] == "scimitar"


def test_read_missing_or_malformed_id_is_404(client):
    for url in ("/api/weapons/42", "/api/weapons/abc", "/api/creature-types/0"):
        resp = client.get(url)
        assert resp.status_code == 404
        assert resp.get_json()["code"] == "not_found"


def test_writes_require_login(client):
    resp = client.post("/api/weapons", json=weapon_data())
    assert resp.status_code == 401
    assert resp.get_json() == {"error": "authentication required", "code": "unauthorized"}


def test_create_returns_201(auth_client):
    resp = auth_client.post("/api/armors", json=armor_data())
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["name"] == "Leather"
    assert body["creature_types"] == []


def test_service_errors_map_to_status_codes(auth_client):
    resp = auth_client.post("/api/weapons", json={"properties": ["light"]})
    assert resp.status_code == 400
    assert resp.get_json() == {
        "error": "Weapon creation failed, fields missing: name,damages",
        "code": "missing_fields",
    }

    auth_client.post("/api/weapons", json=weapon_data())
    resp = auth_client.post("/api/weapons", json=weapon_data())
    assert resp.status_code == 409
    assert resp.get_json()["code"] == "duplicate_name"

    resp = auth_client.patch("/api/weapons/99", json={"name": "club"})
    assert resp.status_code == 404

    resp = auth_client.delete("/api/weapons/abc")
    assert resp.status_code == 400
    assert resp.get_json()["code"] == "invalid_identifier"


def test_update_and_delete(auth_client):
    armor = make_armor()
    resp = auth_client.patch(f"/api/armors/{armor.id}", json={"base_ac": 12, "bogus": True})
    assert resp.status_code == 200
    assert resp.get_json()["base_ac"] == 12

    resp = auth_client.delete(f"/api/armors/{armor.id}")
    assert resp.get_json() == {"deleted": True}
    assert auth_client.get(f"/api/armors/{armor.id}").status_code == 404


def test_clone_route(auth_client):
    armor = make_armor()
    resp = auth_client.post(f"/api/armors/{armor.id}/clone")
    assert resp.status_code == 201
    assert resp.get_json()["name"] == "Leather 2"
    # Weapons are not clonable
    weapon = make_weapon()
    assert auth_client.post(f"/api/weapons/{weapon.id}/clone").status_code == 404


def test_search_coerces_query_values(client):
    make_weapon()
    make_weapon(name="shortbow", properties=["ammunition", "two-handed"], normal_range=80, long_range=320)
    make_armor(name="Padded", disadvantage=True)
    make_armor()

    resp = client.get("/api/weapons?normal_range=80")
    assert [w["name"] for w in resp.get_json()] == ["shortbow"]
    resp = client.get("/api/armors?disadvantage=true")
    assert [a["name"] for a in resp.get_json()] == ["Padded"]
    # Search results carry columns only
    assert "creature_types" not in resp.get_json()[0]

    resp = client.get("/api/weapons?damages=x")
    assert resp.status_code == 400
    assert resp.get_json()["code"] == "invalid_field"


def test_creature_type_graph_and_links(auth_client):
    armor = make_armor()
    weapon = make_weapon()
    resp = auth_client.post("/api/creature-types", json=creature_type_data(armor_id=armor.id))
    assert resp.status_code == 201
    goblin = resp.get_json()
    assert goblin["armor"]["name"] == "Leather"

    resp = auth_client.post(f"/api/creature-types/{goblin['id']}/weapons/{weapon.id}")
    assert [w["name"] for w in resp.get_json()["weapons"]] == ["scimitar"]

    resp = auth_client.post("/api/action-patterns", json={"creature_type_id": goblin["id"]})
    pattern = resp.get_json()
    resp = auth_client.post(
        "/api/actions", json={"action_pattern_id": pattern["id"], "index": 0, "weapon_id": weapon.id}
    )
    assert resp.status_code == 201

    graph = auth_client.get(f"/api/creature-types/{goblin['id']}").get_json()
    assert graph["action_patterns"][0]["actions"][0]["weapon"]["name"] == "scimitar"

    resp = auth_client.delete(f"/api/creature-types/{goblin['id']}/weapons/{weapon.id}")
    assert resp.get_json()["weapons"] == []

    resp = auth_client.post(f"/api/creature-types/{goblin['id']}/spells/77")
    assert resp.status_code == 400


def test_action_kind_error_over_http(auth_client):
    goblin = auth_client.post("/api/creature-types", json=creature_type_data()).get_json()
    pattern = auth_client.post("/api/action-patterns", json={"creature_type_id": goblin["id"]}).get_json()
    resp = auth_client.post("/api/actions", json={"action_pattern_id": pattern["id"], "index": 0})
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "Action creation failed, action must be one of weapon, spell, or other"


def test_register_login_logout_me(client):
    resp = client.post("/api/register", json={"email": "GM@example.com", "password": PASSWORD})
    assert resp.status_code == 201
    assert resp.get_json()["email"] == "gm@example.com"
    assert "password" not in resp.get_json()

    assert client.get("/api/me").get_json()["email"] == "gm@example.com"
    assert client.post("/api/logout").get_json() == {"ok": True}
    assert client.get("/api/me").status_code == 401

    resp = client.post("/api/login", json={"email": "gm@example.com", "password": "Wr0ng&Board"})
    assert resp.status_code == 401
    assert resp.get_json()["code"] == "invalid_credentials"

    resp = client.post("/api/login", json={"email": "gm@example.com", "password": PASSWORD})
    assert resp.status_code == 200
    assert client.get("/api/me").status_code == 200


def test_register_validation_errors(client):
    resp = client.post("/api/register", json={"email": "gm@example.com", "password": "short"})
    assert resp.status_code == 400
    assert resp.get_json()["code"] == "invalid_field"
    client.post("/api/register", json={"email": "gm@example.com", "password": PASSWORD})
    resp = client.post("/api/register", json={"email": "gm@example.com", "password": PASSWORD})
    assert resp.status_code == 409
