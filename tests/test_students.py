"""Tests for /api/classes and /api/eleves: class registers, grades and absences."""

import pytest

from conftest import create


@pytest.fixture
def classe(client, hierarchy):
    return create(client, "/api/classes", {
        "nom_classe": "TC-3", "annee_scolaire": "2024-2025",
        "niveau_id": hierarchy["niveau_id"], "option_id": hierarchy["option_id"],
    })


@pytest.fixture
def make_eleve(client, classe):
    def _make(code="J130000001", nom="Benali", prenom="Sara", **extra):
        payload = {"code_eleve": code, "nom": nom, "prenom": prenom, "classe_id": classe["id"], **extra}
        return create(client, "/api/eleves", payload)
    return _make


class TestClasses:
    """Tests for the class CRUD."""

    def test_create_trims_name(self, client):
        data = create(client, "/api/classes", {"nom_classe": "  1BAC-SE-2 ", "annee_scolaire": " "})
        assert data["nom_classe"] == "1BAC-SE-2"
        assert data["annee_scolaire"] is None

    def test_blank_name(self, client):
        response = client.post("/api/classes", json={"nom_classe": "  "})
        assert response.status_code == 400
        assert response.json()["detail"] == "Le nom de la classe est obligatoire."

    def test_option_must_belong_to_level(self, client, hierarchy):
        other = create(client, "/api/curriculum/niveaux", {"nom_niveau": "2ème Bac"})
        response = client.post("/api/classes", json={
            "nom_classe": "2BAC-PC-1", "niveau_id": other["id"], "option_id": hierarchy["option_id"],
        })
        assert response.status_code == 400

    def test_unknown_level(self, client):
        assert client.post("/api/classes", json={"nom_classe": "X", "niveau_id": 77}).status_code == 404

    def test_filters(self, client, hierarchy, classe):
        create(client, "/api/classes", {"nom_classe": "Atelier", "annee_scolaire": "2023-2024"})

        by_level = client.get("/api/classes", params={"niveau_id": hierarchy["niveau_id"]}).json()
        assert [c["nom_classe"] for c in by_level] == ["TC-3"]
        by_year = client.get("/api/classes", params={"annee_scolaire": "2023-2024"}).json()
        assert [c["nom_classe"] for c in by_year] == ["Atelier"]
        assert [c["nom_classe"] for c in client.get("/api/classes").json()] == ["Atelier", "TC-3"]

    def test_update(self, client, classe):
        response = client.put(f"/api/classes/{classe['id']}", json={"nom_classe": "TC-4"})
        assert response.status_code == 200
        data = client.get(f"/api/classes/{classe['id']}").json()
        assert data["nom_classe"] == "TC-4"
        assert data["niveau_id"] is None

    def test_delete_with_students_conflicts(self, client, classe, make_eleve):
        make_eleve()
        response = client.delete(f"/api/classes/{classe['id']}")
        assert response.status_code == 409
        assert "1 élève(s)" in response.json()["detail"]

    def test_delete_empty_class(self, client, classe):
        assert client.delete(f"/api/classes/{classe['id']}").status_code == 200
        assert client.get(f"/api/classes/{classe['id']}").status_code == 404

    def test_deleting_level_clears_reference(self, client):
        niveau = create(client, "/api/curriculum/niveaux", {"nom_niveau": "Collège"})
        classe = create(client, "/api/classes", {"nom_classe": "3AC-1", "niveau_id": niveau["id"]})
        assert client.delete(f"/api/curriculum/niveaux/{niveau['id']}").status_code == 200
        assert client.get(f"/api/classes/{classe['id']}").json()["niveau_id"] is None


class TestStudents:
    """Tests for the student CRUD."""

    def test_create_and_get(self, client, classe, make_eleve):
        eleve = make_eleve(code=" J130000042 ", date_naissance="2009-04-12")
        assert eleve["code_eleve"] == "J130000042"
        assert eleve["nom_classe"] == "TC-3"
        assert eleve["total_heures_absence"] == 0

        data = client.get(f"/api/eleves/{eleve['id']}").json()
        assert data["date_naissance"] == "2009-04-12"

    @pytest.mark.parametrize("changes,message", [
        ({"code_eleve": " "}, "Le code élève est obligatoire."),
        ({"nom": ""}, "Le nom de l'élève est obligatoire."),
        ({"prenom": None}, "Le prénom de l'élève est obligatoire."),
        ({"classe_id": None}, "Veuillez sélectionner une classe valide."),
    ])
    def test_required_fields(self, client, classe, changes, message):
        payload = {"code_eleve": "J1", "nom": "Benali", "prenom": "Sara", "classe_id": classe["id"], **changes}
        response = client.post("/api/eleves", json=payload)
        assert response.status_code == 400
        assert response.json()["detail"] == message

    def test_unknown_class(self, client):
        payload = {"code_eleve": "J1", "nom": "Benali", "prenom": "Sara", "classe_id": 404}
        assert client.post("/api/eleves", json=payload).status_code == 404

    def test_duplicate_code_conflicts(self, client, classe, make_eleve):
        make_eleve(code="J1")
        payload = {"code_eleve": "J1", "nom": "Idrissi", "prenom": "Omar", "classe_id": classe["id"]}
        response = client.post("/api/eleves", json=payload)
        assert response.status_code == 409
        assert "J1" in response.json()["detail"]

    def test_update_keeps_own_code(self, client, classe, make_eleve):
        eleve = make_eleve(code="J1")
        response = client.put(f"/api/eleves/{eleve['id']}", json={
            "code_eleve": "J1", "nom": "Benali", "prenom": "Sarah", "classe_id": classe["id"],
        })
        assert response.status_code == 200
        assert response.json()["prenom"] == "Sarah"

    def test_list_sorted_and_filtered(self, client, classe, make_eleve):
        make_eleve(code="J1", nom="Zahidi", prenom="Amine")
        make_eleve(code="J2", nom="Alaoui", prenom="Yasmine")
        autre = create(client, "/api/classes", {"nom_classe": "TC-5"})
        create(client, "/api/eleves", {"code_eleve": "J3", "nom": "Berrada", "prenom": "Ali", "classe_id": autre["id"]})

        in_class = client.get("/api/eleves", params={"classe_id": classe["id"]}).json()
        assert [e["nom"] for e in in_class] == ["Alaoui", "Zahidi"]
        found = client.get("/api/eleves", params={"search": "yas"}).json()
        assert [e["code_eleve"] for e in found] == ["J2"]

    def test_delete_removes_grades_and_absences(self, client, make_eleve):
        eleve = make_eleve()
        client.put(f"/api/eleves/{eleve['id']}/notes", json={"cc1": 12})
        client.post(f"/api/eleves/{eleve['id']}/absences", json={"date_absence": "2024-10-01", "heures": 2})

        assert client.delete(f"/api/eleves/{eleve['id']}").status_code == 200
        assert client.get(f"/api/eleves/{eleve['id']}").status_code == 404
        assert client.get(f"/api/eleves/{eleve['id']}/notes").status_code == 404


class TestGrades:
    """Tests for the grade row of a student and the class grade sheet."""

    def test_no_grades_yet(self, client, make_eleve):
        eleve = make_eleve()
        data = client.get(f"/api/eleves/{eleve['id']}/notes").json()
        assert data["cc1"] is None
        assert data["moyenne"] is None

    def test_upsert(self, client, make_eleve):
        eleve = make_eleve()
        url = f"/api/eleves/{eleve['id']}/notes"
        first = client.put(url, json={"cc1": 12, "cc2": 15.5})
        assert first.status_code == 200
        assert first.json()["moyenne"] == 13.75

        second = client.put(url, json={"cc1": 14, "cc2": 15.5, "cc3": 9, "c_act": 18.5}).json()
        assert second["moyenne"] == 14.25
        assert client.get(url).json()["cc3"] == 9

    @pytest.mark.parametrize("notes", [{"cc1": 21}, {"c_act": -0.5}])
    def test_out_of_range(self, client, make_eleve, notes):
        eleve = make_eleve()
        response = client.put(f"/api/eleves/{eleve['id']}/notes", json=notes)
        assert response.status_code == 400
        assert response.json()["detail"] == "Les notes doivent être comprises entre 0 et 20."

    def test_unknown_student(self, client):
        assert client.put("/api/eleves/99/notes", json={"cc1": 10}).status_code == 404

    def test_class_sheet(self, client, classe, make_eleve):
        zahidi = make_eleve(code="J1", nom="Zahidi", prenom="Amine")
        make_eleve(code="J2", nom="Alaoui", prenom="Yasmine")
        client.put(f"/api/eleves/{zahidi['id']}/notes", json={"cc1": 10, "cc2": 16})

        data = client.get(f"/api/classes/{classe['id']}/notes").json()
        assert data["classe"]["nom_classe"] == "TC-3"
        assert [(line["nom"], line["moyenne"]) for line in data["eleves"]] == [("Alaoui", None), ("Zahidi", 13.0)]


class TestAbsences:
    """Tests for a student's absences."""

    def test_add_list_and_total(self, client, make_eleve):
        eleve = make_eleve()
        url = f"/api/eleves/{eleve['id']}/absences"
        create(client, url, {"date_absence": "2024-10-01", "heures": 2, "motif": " Malade "})
        create(client, url, {"date_absence": "2024-11-05", "heures": 1.5})

        absences = client.get(url).json()
        assert [a["date_absence"] for a in absences] == ["2024-11-05", "2024-10-01"]
        assert absences[1]["motif"] == "Malade"
        assert client.get(f"/api/eleves/{eleve['id']}").json()["total_heures_absence"] == 3.5

    def test_hours_must_be_positive(self, client, make_eleve):
        eleve = make_eleve()
        response = client.post(f"/api/eleves/{eleve['id']}/absences", json={"date_absence": "2024-10-01", "heures": 0})
        assert response.status_code == 400

    def test_delete_checks_owner(self, client, make_eleve):
        sara = make_eleve(code="J1")
        omar = make_eleve(code="J2", nom="Idrissi", prenom="Omar")
        absence = create(client, f"/api/eleves/{sara['id']}/absences", {"date_absence": "2024-10-01", "heures": 2})

        assert client.delete(f"/api/eleves/{omar['id']}/absences/{absence['id']}").status_code == 404
        assert client.delete(f"/api/eleves/{sara['id']}/absences/{absence['id']}").status_code == 200
        assert client.get(f"/api/eleves/{sara['id']}/absences").json() == []
