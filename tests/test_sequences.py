"""Tests for /api/sequences."""

from conftest import create


def sequence_payload(hierarchy, titre="Séquence 1 : la combustion", **extra):
    return {"titre_sequence": titre, "chapitre_id": hierarchy["chapitre_id"], **extra}


class TestSaveSequence:
    """Tests for creating and updating sequences with their items."""

    def test_items_share_one_ordering(self, client, hierarchy, make_activity, make_evaluation):
        a1 = make_activity("Observation", objectifs=[hierarchy["objectif_ids"][0]])
        a2 = make_activity("Expérience")
        ev = make_evaluation("Bilan")
        data = create(client, "/api/sequences", sequence_payload(hierarchy, items=[
            {"type": "activity", "id": a1["id"]},
            {"type": "evaluation", "id": ev["id"]},
            {"type": "activity", "id": a2["id"]},
        ]))

        assert [(i["type"], i["id"]) for i in data["items"]] == [
            ("activity", a1["id"]), ("evaluation", ev["id"]), ("activity", a2["id"]),
        ]
        assert [i["order_in_sequence"] for i in data["items"]] == [1, 2, 3]
        assert data["items"][0]["objectifs"] == ["Identifier les réactifs d'une combustion"]
        assert data["items"][1]["connaissances"] == ["Combustion du carbone"]
        assert data["items"][1]["capacites_evaluees"] == ["Observer"]
        assert data["statut"] == "brouillon"

    def test_duplicate_item_rejected(self, client, hierarchy, make_activity):
        activity = make_activity()
        response = client.post("/api/sequences", json=sequence_payload(hierarchy, items=[
            {"type": "activity", "id": activity["id"]},
            {"type": "activity", "id": activity["id"]},
        ]))
        assert response.status_code == 400

    def test_same_id_different_types_allowed(self, client, hierarchy, make_activity, make_evaluation):
        activity = make_activity()
        evaluation = make_evaluation()
        assert activity["id"] == evaluation["id"] == 1
        data = create(client, "/api/sequences", sequence_payload(hierarchy, items=[
            {"type": "evaluation", "id": evaluation["id"]},
            {"type": "activity", "id": activity["id"]},
        ]))
        assert [i["type"] for i in data["items"]] == ["evaluation", "activity"]

    def test_chapter_required(self, client):
        response = client.post("/api/sequences", json={"titre_sequence": "Sans chapitre"})
        assert response.status_code == 400
        assert response.json()["detail"] == "Veuillez sélectionner un chapitre pour la séquence."

    def test_invalid_statut(self, client, hierarchy):
        response = client.post("/api/sequences", json=sequence_payload(hierarchy, statut="publiée"))
        assert response.status_code == 400

    def test_unknown_item(self, client, hierarchy):
        response = client.post("/api/sequences", json=sequence_payload(hierarchy, items=[{"type": "activity", "id": 99}]))
        assert response.status_code == 404

    def test_default_order_is_last_in_chapter(self, client, hierarchy):
        first = create(client, "/api/sequences", sequence_payload(hierarchy, "S1"))
        second = create(client, "/api/sequences", sequence_payload(hierarchy, "S2"))
        assert (first["ordre"], second["ordre"]) == (1, 2)

    def test_update_replaces_items(self, client, hierarchy, make_activity):
        a1 = make_activity("A1")
        a2 = make_activity("A2")
        sequence = create(client, "/api/sequences", sequence_payload(hierarchy, items=[{"type": "activity", "id": a1["id"]}]))

        response = client.put(f"/api/sequences/{sequence['id']}", json=sequence_payload(
            hierarchy, "Séquence revue", statut="validee", items=[{"type": "activity", "id": a2["id"]}],
        ))
        assert response.status_code == 200
        data = response.json()
        assert data["titre_sequence"] == "Séquence revue"
        assert data["statut"] == "validee"
        assert data["ordre"] == sequence["ordre"]
        assert [i["id"] for i in data["items"]] == [a2["id"]]


class TestChapterOrder:
    """Tests for listing and reordering the sequences of a chapter."""

    def test_reorder(self, client, hierarchy):
        s1 = create(client, "/api/sequences", sequence_payload(hierarchy, "S1"))
        s2 = create(client, "/api/sequences", sequence_payload(hierarchy, "S2"))
        s3 = create(client, "/api/sequences", sequence_payload(hierarchy, "S3"))

        response = client.put(
            f"/api/sequences/chapitres/{hierarchy['chapitre_id']}/ordre", json=[s3["id"], s1["id"], s2["id"]]
        )
        assert response.status_code == 200
        assert [s["titre_sequence"] for s in response.json()] == ["S3", "S1", "S2"]
        assert [s["ordre"] for s in response.json()] == [1, 2, 3]

        listed = client.get("/api/sequences", params={"chapitre_id": hierarchy["chapitre_id"]}).json()
        assert [s["id"] for s in listed] == [s3["id"], s1["id"], s2["id"]]

    def test_reorder_must_list_every_sequence(self, client, hierarchy):
        s1 = create(client, "/api/sequences", sequence_payload(hierarchy, "S1"))
        create(client, "/api/sequences", sequence_payload(hierarchy, "S2"))
        response = client.put(f"/api/sequences/chapitres/{hierarchy['chapitre_id']}/ordre", json=[s1["id"]])
        assert response.status_code == 400

    def test_filter_by_statut(self, client, hierarchy):
        create(client, "/api/sequences", sequence_payload(hierarchy, "Brouillon"))
        create(client, "/api/sequences", sequence_payload(hierarchy, "Archivée", statut="archivee"))
        archived = client.get("/api/sequences", params={"statut": "archivee"}).json()
        assert [s["titre_sequence"] for s in archived] == ["Archivée"]
        assert archived[0]["hierarchy"]["titre_chapitre"] == "Les combustions"


class TestDeleteSequence:
    """Deleting a sequence keeps its activities and evaluations."""

    def test_delete(self, client, hierarchy, make_activity):
        activity = make_activity()
        sequence = create(client, "/api/sequences", sequence_payload(hierarchy, items=[{"type": "activity", "id": activity["id"]}]))
        assert client.delete(f"/api/sequences/{sequence['id']}").status_code == 200
        assert client.get(f"/api/sequences/{sequence['id']}").status_code == 404
        assert client.get(f"/api/activities/{activity['id']}").status_code == 200

    def test_chapter_with_sequences_cannot_be_deleted(self, client, hierarchy):
        create(client, "/api/sequences", sequence_payload(hierarchy))
        client.delete(f"/api/curriculum/objectifs/{hierarchy['objectif_ids'][0]}")
        client.delete(f"/api/curriculum/objectifs/{hierarchy['objectif_ids'][1]}")
        response = client.delete(f"/api/curriculum/chapitres/{hierarchy['chapitre_id']}")
        assert response.status_code == 409
