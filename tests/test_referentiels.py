"""Tests for /api/referentiels."""

from conftest import create


class TestCompetences:
    """Tests for competences."""

    def test_specific_requires_unit(self, client):
        response = client.post(
            "/api/referentiels/competences",
            json={"titre_competence": "Analyser", "type_competence": "spécifique"},
        )
        assert response.status_code == 400

    def test_general_has_no_unit(self, client, hierarchy):
        data = create(client, "/api/referentiels/competences", {
            "titre_competence": "Communiquer", "type_competence": "générale", "unite_id": hierarchy["unite_id"],
        })
        assert data["unite_id"] is None

    def test_invalid_type(self, client):
        response = client.post(
            "/api/referentiels/competences", json={"titre_competence": "X", "type_competence": "autre"}
        )
        assert response.status_code == 400

    def test_filters(self, client, referentiels, hierarchy):
        generales = client.get("/api/referentiels/competences", params={"type_competence": "générale"}).json()
        assert [c["id"] for c in generales] == [referentiels["competence_generale_id"]]

        par_unite = client.get("/api/referentiels/competences", params={"unite_id": hierarchy["unite_id"]}).json()
        assert [c["id"] for c in par_unite] == [referentiels["competence_specifique_id"]]


class TestOtherReferentiels:
    """Tests for connaissances, capacites and modalites."""

    def test_connaissances_by_chapter(self, client, referentiels, hierarchy):
        create(client, "/api/referentiels/connaissances", {"titre_connaissance": "Sans chapitre"})
        data = client.get("/api/referentiels/connaissances", params={"chapitre_id": hierarchy["chapitre_id"]}).json()
        assert [c["id"] for c in data] == [referentiels["connaissance_id"]]

    def test_connaissance_unknown_chapter(self, client):
        response = client.post(
            "/api/referentiels/connaissances", json={"titre_connaissance": "X", "chapitre_id": 555}
        )
        assert response.status_code == 404

    def test_update_and_delete_modalite(self, client, referentiels):
        modalite_id = referentiels["modalite_id"]
        response = client.put(f"/api/referentiels/modalites/{modalite_id}", json={"nom_modalite": "Oral"})
        assert response.json()["nom_modalite"] == "Oral"

        assert client.delete(f"/api/referentiels/modalites/{modalite_id}").status_code == 200
        assert client.get(f"/api/referentiels/modalites/{modalite_id}").status_code == 404

    def test_blank_capacite(self, client):
        response = client.post("/api/referentiels/capacites", json={"titre_capacite_habilete": ""})
        assert response.status_code == 400
