"""Tests for the HTTP surface in kintree/main.py."""


class TestHealth:
    def test_health(self, client):
        assert client.get("/health").json() == {"ok": True}


class TestPersons:
    def test_create_and_get(self, client):
        resp = client.post("/api/persons", json={"first_name": "Ada", "last_name": "King", "gender": "F"})
        assert resp.status_code == 200
        person = resp.json()
        assert person["name"] == "Ada King"
        got = client.get(f"/api/persons/{person['id']}").json()
        assert got["gender"] == "F"

    def test_invalid_gender(self, client):
        assert client.post("/api/persons", json={"name": "X", "gender": "Z"}).status_code == 422

    def test_not_found(self, client):
        assert client.get("/api/persons/nope").status_code == 404
        assert client.delete("/api/persons/nope").status_code == 404

    def test_delete(self, client, person_dad):
        assert client.delete("/api/persons/dad").json() == {"ok": True}
        assert client.get("/api/persons").json() == []


class TestRelationships:
    def test_create_and_filter(self, client, person_dad, person_child):
        resp = client.post("/api/relationships", json={"person_a": "dad", "person_b": "kid", "type": "parent"})
        assert resp.status_code == 200
        rel = resp.json()
        listed = client.get("/api/relationships", params={"person_id": "kid"}).json()
        assert [r["id"] for r in listed] == [rel["id"]]
        assert client.delete(f"/api/relationships/{rel['id']}").status_code == 200
        assert client.delete(f"/api/relationships/{rel['id']}").status_code == 404

    def test_self_relationship(self, client):
        resp = client.post("/api/relationships", json={"person_a": "a", "person_b": "a", "type": "spouse"})
        assert resp.status_code == 400

    def test_unknown_type(self, client):
        resp = client.post("/api/relationships", json={"person_a": "a", "person_b": "b", "type": "rival"})
        assert resp.status_code == 422


class TestFamilies:
    def test_create(self, client):
        resp = client.post("/api/families", json={"husband": "dad", "children": ["kid"]})
        assert resp.status_code == 200
        assert client.get("/api/families").json()[0]["husband"] == "dad"

    def test_empty_family(self, client):
        assert client.post("/api/families", json={"family_name": "Ghosts"}).status_code == 422


class TestTree:
    def test_get_tree(self, client, family_graph):
        body = client.get("/api/tree").json()
        nodes = {n["id"]: n for n in body["nodes"]}
        assert set(nodes) == {"dad", "mom", "kid"}
        assert nodes["kid"]["rels"]["parents"] == ["dad", "mom"]
        assert nodes["kid"]["data"]["gender"] == "M"
        assert body["metadata"]["errors"] == []

    def test_date_window(self, client, family_graph):
        body = client.get("/api/tree", params={"start_date": "1979-01-01"}).json()
        assert [n["id"] for n in body["nodes"]] == ["kid"]
        assert body["nodes"][0]["rels"]["parents"] == []

    def test_private_hidden(self, client, db_session, family_graph):
        client.post("/api/persons", json={"id": "hid", "name": "Hidden One"})
        public = client.get("/api/tree").json()
        everyone = client.get("/api/tree", params={"include_private": True}).json()
        assert len(public["nodes"]) == 3
        assert len(everyone["nodes"]) == 4

    def test_save_round_trip(self, client, family_graph):
        original = client.get("/api/tree").json()["nodes"]
        current = [n for n in original if n["id"] != "kid"]
        current.append({"id": "n1", "data": {"name": "Lee Smith", "gender": "F", "isPublic": True},
                        "rels": {"parents": ["dad", "mom"], "spouses": [], "children": []}})
        resp = client.post("/api/tree/save", json={"current": current, "original": original, "user_id": "u1"})
        assert resp.status_code == 200
        result = resp.json()
        assert result["persons_created"] == 1
        assert result["persons_deleted"] == 1
        assert result["relationships_created"] == 2
        assert result["error_count"] == 0

        nodes = {n["id"]: n for n in client.get("/api/tree").json()["nodes"]}
        assert set(nodes) == {"dad", "mom", "n1"}
        assert nodes["n1"]["rels"]["parents"] == ["dad", "mom"]

    def test_validate(self, client):
        resp = client.post("/api/tree/validate", json=[
            {"id": "1", "data": {"name": "Ada"}, "rels": {"parents": ["2"]}},
        ])
        assert resp.json() == {"is_valid": False, "errors": ["Person 1 references non-existent parent 2"]}
