"""Shared fixtures: a fresh SQLite database per test and small curriculum builders."""

import os
import tempfile

# Must be set before the application (and its engine) is imported
TEST_DIR = tempfile.mkdtemp(prefix="planipeda-tests-")
DB_PATH = os.path.join(TEST_DIR, "test.db")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{DB_PATH}"
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient

from planipeda.main import app


@pytest.fixture
def client():
    """Test client on an empty database; the lifespan creates the tables."""
    if os.path.exists(DB_PATH):
        os.remove(DB_PATH)
    with TestClient(app) as c:
        yield c


def create(client, path, payload):
    response = client.post(path, json=payload)
    assert response.status_code == 200, response.text
    return response.json()


@pytest.fixture
def hierarchy(client):
    """Niveau > Option > Unite > Chapitre with two objectives."""
    niveau = create(client, "/api/curriculum/niveaux", {"nom_niveau": "Tronc commun"})
    option = create(client, "/api/curriculum/options", {"nom_option": "Sciences", "niveau_id": niveau["id"]})
    unite = create(client, "/api/curriculum/unites", {"titre_unite": "La matière", "option_id": option["id"]})
    chapitre = create(client, "/api/curriculum/chapitres", {"titre_chapitre": "Les combustions", "unite_id": unite["id"]})
    obj1 = create(client, "/api/curriculum/objectifs", {
        "chapitre_id": chapitre["id"], "objectif_type": "Savoir",
        "description_objectif": "Identifier les réactifs d'une combustion",
    })
    obj2 = create(client, "/api/curriculum/objectifs", {
        "chapitre_id": chapitre["id"], "objectif_type": "Savoir-faire",
        "description_objectif": "Mettre en évidence le dioxyde de carbone",
    })
    return {
        "niveau_id": niveau["id"],
        "option_id": option["id"],
        "unite_id": unite["id"],
        "chapitre_id": chapitre["id"],
        "objectif_ids": [obj1["id"], obj2["id"]],
    }


@pytest.fixture
def referentiels(client, hierarchy):
    """One of each reference item, attached to the hierarchy fixture."""
    specifique = create(client, "/api/referentiels/competences", {
        "titre_competence": "Interpréter une transformation", "type_competence": "spécifique",
        "unite_id": hierarchy["unite_id"],
    })
    generale = create(client, "/api/referentiels/competences", {
        "titre_competence": "Adopter une démarche scientifique", "type_competence": "générale",
    })
    connaissance = create(client, "/api/referentiels/connaissances", {
        "titre_connaissance": "Combustion du carbone", "chapitre_id": hierarchy["chapitre_id"],
    })
    modalite = create(client, "/api/referentiels/modalites", {"nom_modalite": "Écrit"})
    capacite = create(client, "/api/referentiels/capacites", {"titre_capacite_habilete": "Observer"})
    return {
        "competence_specifique_id": specifique["id"],
        "competence_generale_id": generale["id"],
        "connaissance_id": connaissance["id"],
        "modalite_id": modalite["id"],
        "capacite_id": capacite["id"],
    }


@pytest.fixture
def evaluation_payload(hierarchy, referentiels):
    """A payload that passes every evaluation form check."""
    return {
        "titre_evaluation": "Contrôle n°1",
        "chapitre_id": hierarchy["chapitre_id"],
        "type_evaluation": "Formative",
        "introduction_activite": "<p>Une bougie brûle sous un bocal.</p>",
        "objectifs": [hierarchy["objectif_ids"][0]],
        "selected_competence_id": referentiels["competence_specifique_id"],
        "selected_general_competence_ids": [referentiels["competence_generale_id"]],
        "selected_connaissance_ids": [referentiels["connaissance_id"]],
        "modalite_evaluation_ids": [referentiels["modalite_id"]],
        "selected_capacite_habilete_ids": [referentiels["capacite_id"]],
        "contenu_blocs": [{"order": 0, "type": "text", "text_content_html": "<p>Question 1</p>"}],
    }


@pytest.fixture
def make_activity(client, hierarchy):
    def _make(titre="Combustion d'une bougie", **extra):
        payload = {"titre_activite": titre, "chapitre_id": hierarchy["chapitre_id"], **extra}
        return create(client, "/api/activities", payload)
    return _make


@pytest.fixture
def make_evaluation(client, evaluation_payload):
    def _make(titre="Contrôle n°1", **extra):
        return create(client, "/api/evaluations", {**evaluation_payload, "titre_evaluation": titre, **extra})
    return _make
