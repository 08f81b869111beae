"""Tests for /api/planning: fiche save/load and progression editing."""

import pytest

from conftest import create


@pytest.fixture
def sources(client, hierarchy, make_activity, make_evaluation):
    """One sequence, two activities and one evaluation to plan with."""
    sequence = create(client, "/api/sequences", {"titre_sequence": "Séquence 1", "chapitre_id": hierarchy["chapitre_id"]})
    a1 = make_activity("Observation", description="Regarder la flamme")
    a2 = make_activity("Expérience")
    evaluation = make_evaluation("Bilan", consignes_specifiques="Répondre sur la copie")
    return {"sequence": sequence["id"], "a1": a1["id"], "a2": a2["id"], "evaluation": evaluation["id"]}


@pytest.fixture
def fiche(client, hierarchy, sources):
    """A saved fiche whose progression is seq, act(a1), eval, act(a2)."""
    return create(client, "/api/planning/fiches", {
        "chapitreReferenceId": hierarchy["chapitre_id"],
        "nomFichePlanification": "Fiche combustions",
        "createdBy": "M. Alami",
        "progressionItems": [
            {"type": "sequence", "sourceId": sources["sequence"], "ordre": 1},
            {"type": "activity", "sourceId": sources["a1"], "ordre": 2},
            {"type": "evaluation", "sourceId": sources["evaluation"], "ordre": 3},
            {"type": "activity", "sourceId": sources["a2"], "ordre": 4},
        ],
    })


def item_ids(plan):
    return [item["id"] for item in plan["progressionItems"]]


class TestSaveAndLoad:
    """Tests for saving and loading a whole fiche."""

    def test_save_sorts_and_renumbers(self, client, hierarchy, sources):
        data = create(client, "/api/planning/fiches", {
            "chapitreReferenceId": hierarchy["chapitre_id"],
            "progressionItems": [
                {"type": "activity", "sourceId": sources["a2"], "ordre": 30},
                {"type": "sequence", "sourceId": sources["sequence"], "ordre": 5},
                {"type": "evaluation", "sourceId": sources["evaluation"], "ordre": 10},
            ],
        })
        assert item_ids(data) == [
            f"seq-{sources['sequence']}", f"eval-{sources['evaluation']}", f"act-{sources['a2']}",
        ]
        assert [item["ordre"] for item in data["progressionItems"]] == [1, 2, 3]
        assert data["statut"] == "Brouillon"

    def test_load_hydrates_chapter_and_items(self, client, hierarchy, sources, fiche):
        data = client.get(f"/api/planning/fiches/{fiche['id']}").json()
        assert data["titreChapitre"] == "Les combustions"
        assert data["niveauId"] == hierarchy["niveau_id"]
        assert data["uniteId"] == hierarchy["unite_id"]
        assert data["objectifsReferencesIds"] == hierarchy["objectif_ids"]
        assert data["objectifsGeneraux"].split("\n\n")[0].endswith("Identifier les réactifs d'une combustion")
        assert data["createdBy"] == "M. Alami"

        activity = data["progressionItems"][1]
        assert activity["titre"] == "Observation"
        assert activity["description"] == "Regarder la flamme"
        assert activity["chapficheId"] == fiche["id"]
        assert data["progressionItems"][2]["description"] == "Répondre sur la copie"

    def test_chapter_required(self, client):
        response = client.post("/api/planning/fiches", json={"nomFichePlanification": "Sans chapitre"})
        assert response.status_code == 400
        assert response.json()["detail"] == "Veuillez sélectionner un chapitre de référence avant d'enregistrer."

    def test_unknown_statut_falls_back_to_brouillon(self, client, hierarchy):
        data = create(client, "/api/planning/fiches", {
            "chapitreReferenceId": hierarchy["chapitre_id"], "statut": "Publié",
        })
        assert data["statut"] == "Brouillon"

    def test_duplicate_items_rejected(self, client, hierarchy, sources):
        item = {"type": "activity", "sourceId": sources["a1"]}
        response = client.post("/api/planning/fiches", json={
            "chapitreReferenceId": hierarchy["chapitre_id"], "progressionItems": [item, item],
        })
        assert response.status_code == 400

    def test_unknown_source_rejected(self, client, hierarchy):
        response = client.post("/api/planning/fiches", json={
            "chapitreReferenceId": hierarchy["chapitre_id"],
            "progressionItems": [{"type": "sequence", "sourceId": 404}],
        })
        assert response.status_code == 404

    def test_update_rewrites_progression(self, client, hierarchy, sources, fiche):
        response = client.put(f"/api/planning/fiches/{fiche['id']}", json={
            "chapitreReferenceId": hierarchy["chapitre_id"],
            "nomFichePlanification": "Fiche revue",
            "statut": "Finalisé",
            "progressionItems": [{"type": "activity", "sourceId": sources["a2"], "ordre": 1}],
        })
        assert response.status_code == 200
        data = response.json()
        assert data["nomFichePlanification"] == "Fiche revue"
        assert data["statut"] == "Finalisé"
        assert item_ids(data) == [f"act-{sources['a2']}"]

    def test_update_without_author_keeps_author(self, client, hierarchy, fiche):
        response = client.put(f"/api/planning/fiches/{fiche['id']}", json={
            "chapitreReferenceId": hierarchy["chapitre_id"],
            "nomFichePlanification": "Fiche revue",
        })
        assert response.status_code == 200
        assert response.json()["createdBy"] == "M. Alami"
        assert client.get(f"/api/planning/fiches/{fiche['id']}").json()["createdBy"] == "M. Alami"

    def test_load_unknown(self, client):
        assert client.get("/api/planning/fiches/999").status_code == 404


class TestProgressionEditing:
    """Tests for adding, removing, moving and reordering progression items."""

    def test_add_goes_last(self, client, hierarchy, fiche):
        extra = create(client, "/api/activities", {"titre_activite": "Synthèse", "chapitre_id": hierarchy["chapitre_id"]})
        response = client.post(f"/api/planning/fiches/{fiche['id']}/items", json={"type": "activity", "sourceId": extra["id"]})
        assert response.status_code == 200
        items = response.json()["progressionItems"]
        assert items[-1]["id"] == f"act-{extra['id']}"
        assert items[-1]["ordre"] == 5

    def test_add_existing_item_rejected(self, client, sources, fiche):
        response = client.post(
            f"/api/planning/fiches/{fiche['id']}/items", json={"type": "activity", "sourceId": sources["a1"]}
        )
        assert response.status_code == 400

    def test_remove_renumbers(self, client, sources, fiche):
        response = client.delete(f"/api/planning/fiches/{fiche['id']}/items/act-{sources['a1']}")
        assert response.status_code == 200
        items = response.json()["progressionItems"]
        assert [item["ordre"] for item in items] == [1, 2, 3]
        assert f"act-{sources['a1']}" not in [item["id"] for item in items]

    @pytest.mark.parametrize("item_id", ["act-999", "bogus", "seq-x"])
    def test_remove_unknown(self, client, fiche, item_id):
        assert client.delete(f"/api/planning/fiches/{fiche['id']}/items/{item_id}").status_code == 404

    def test_move_by_index(self, client, fiche):
        before = item_ids(fiche)
        response = client.post(f"/api/planning/fiches/{fiche['id']}/items/move", json={"fromIndex": 0, "toIndex": 2})
        assert response.status_code == 200
        assert item_ids(response.json()) == [before[1], before[2], before[0], before[3]]

    def test_move_by_direction(self, client, fiche):
        before = item_ids(fiche)
        response = client.post(
            f"/api/planning/fiches/{fiche['id']}/items/move", json={"itemId": before[3], "direction": "up"}
        )
        assert item_ids(response.json()) == [before[0], before[1], before[3], before[2]]

    def test_move_first_up_is_noop(self, client, fiche):
        before = item_ids(fiche)
        response = client.post(
            f"/api/planning/fiches/{fiche['id']}/items/move", json={"itemId": before[0], "direction": "up"}
        )
        assert item_ids(response.json()) == before

    def test_move_out_of_range(self, client, fiche):
        response = client.post(f"/api/planning/fiches/{fiche['id']}/items/move", json={"fromIndex": 0, "toIndex": 9})
        assert response.status_code == 400

    def test_move_needs_indexes_or_direction(self, client, fiche):
        response = client.post(f"/api/planning/fiches/{fiche['id']}/items/move", json={"fromIndex": 1})
        assert response.status_code == 400

    def test_reorder(self, client, fiche):
        new_order = list(reversed(item_ids(fiche)))
        response = client.put(f"/api/planning/fiches/{fiche['id']}/items/order", json=new_order)
        assert response.status_code == 200
        data = response.json()
        assert item_ids(data) == new_order
        assert [item["ordre"] for item in data["progressionItems"]] == [1, 2, 3, 4]

    def test_reorder_must_list_every_item(self, client, fiche):
        response = client.put(f"/api/planning/fiches/{fiche['id']}/items/order", json=item_ids(fiche)[:2])
        assert response.status_code == 400


class TestListAndDelete:
    """Tests for listing and deleting fiches."""

    def test_list_counts_items(self, client, hierarchy, fiche):
        empty = create(client, "/api/planning/fiches", {"chapitreReferenceId": hierarchy["chapitre_id"]})
        data = client.get("/api/planning/fiches").json()
        assert [f["id"] for f in data] == [empty["id"], fiche["id"]]
        assert [f["itemCount"] for f in data] == [0, 4]
        assert data[1]["titreChapitre"] == "Les combustions"

    def test_list_filters(self, client, hierarchy, fiche):
        assert len(client.get("/api/planning/fiches", params={"niveau_id": hierarchy["niveau_id"]}).json()) == 1
        assert client.get("/api/planning/fiches", params={"statut": "Archivé"}).json() == []

    def test_delete_keeps_sources(self, client, sources, fiche):
        assert client.delete(f"/api/planning/fiches/{fiche['id']}").status_code == 200
        assert client.get(f"/api/planning/fiches/{fiche['id']}").status_code == 404
        assert client.get(f"/api/activities/{sources['a1']}").status_code == 200

    def test_deleted_source_leaves_progression(self, client, sources, fiche):
        client.delete(f"/api/activities/{sources['a1']}")
        data = client.get(f"/api/planning/fiches/{fiche['id']}").json()
        assert f"act-{sources['a1']}" not in item_ids(data)
        assert len(data["progressionItems"]) == 3
