import logging
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from planipeda.database import transaction
from planipeda.errors import InvalidDataError, NotFoundError
from planipeda.models.activity import Activite
from planipeda.models.curriculum import (
    CapaciteHabilete, Chapitre, Competence, CompetenceType, Connaissance, Modalite, Niveau, Objectif, Option, Unite,
)
from planipeda.models.planning import Chapfiche
from planipeda.models.sequence import Sequence
from planipeda.schemas.curriculum_schema import HierarchyPath
from planipeda.services.relations import ensure_no_children, get_or_404, require_text

logger = logging.getLogger(__name__)


class Level:
    """One step of the Niveau > Option > Unite > Chapitre > Objectif ladder."""

    def __init__(self, model, label, name_field, parent_model=None, parent_field=None, children=(), order_by=None):
        self.model = model
        self.label = label
        self.name_field = name_field
        self.parent_model = parent_model
        self.parent_field = parent_field
        # (child model, foreign key attribute, label used in conflict messages)
        self.children = children
        self.order_by = order_by if order_by is not None else getattr(model, name_field)


LEVELS: Dict[str, Level] = {
    "niveaux": Level(
        Niveau, "le niveau", "nom_niveau",
        children=((Option, "niveau_id", "option(s)"),),
    ),
    "options": Level(
        Option, "l'option", "nom_option", Niveau, "niveau_id",
        children=((Unite, "option_id", "unité(s)"),),
    ),
    "unites": Level(
        Unite, "l'unité", "titre_unite", Option, "option_id",
        children=(
            (Chapitre, "unite_id", "chapitre(s)"),
            (Competence, "unite_id", "compétence(s) spécifique(s)"),
        ),
    ),
    "chapitres": Level(
        Chapitre, "le chapitre", "titre_chapitre", Unite, "unite_id",
        children=(
            (Objectif, "chapitre_id", "objectif(s)"),
            (Sequence, "chapitre_id", "séquence(s)"),
            (Chapfiche, "chapitre_id", "fiche(s) de planification"),
        ),
    ),
    "objectifs": Level(
        Objectif, "l'objectif", "description_objectif", Chapitre, "chapitre_id",
        order_by=Objectif.id,
    ),
}


def chapitre_ids_query(unite_id: Optional[int] = None, option_id: Optional[int] = None, niveau_id: Optional[int] = None):
    """Sub-select of the chapter ids below the given unit / option / level."""
    query = select(Chapitre.id).join(Unite, Chapitre.unite_id == Unite.id).join(Option, Unite.option_id == Option.id)
    if unite_id is not None:
        query = query.where(Chapitre.unite_id == unite_id)
    if option_id is not None:
        query = query.where(Unite.option_id == option_id)
    if niveau_id is not None:
        query = query.where(Option.niveau_id == niveau_id)
    return query


def filter_by_hierarchy(query, chapitre_column, chapitre_id=None, unite_id=None, option_id=None, niveau_id=None):
    if chapitre_id is not None:
        query = query.where(chapitre_column == chapitre_id)
    if unite_id is not None or option_id is not None or niveau_id is not None:
        query = query.where(chapitre_column.in_(chapitre_ids_query(unite_id, option_id, niveau_id)))
    return query


class HierarchyService:
    @staticmethod
    def _level(name: str) -> Level:
        level = LEVELS.get(name)
        if level is None:
            raise NotFoundError(f"Niveau de hiérarchie inconnu : {name}.")
        return level

    @staticmethod
    async def list_items(db: AsyncSession, level_name: str, parent_id: Optional[int] = None) -> list:
        level = HierarchyService._level(level_name)
        query = select(level.model)
        if parent_id is not None and level.parent_field:
            query = query.where(getattr(level.model, level.parent_field) == parent_id)
        result = await db.execute(query.order_by(level.order_by))
        return result.scalars().all()

    @staticmethod
    async def get_item(db: AsyncSession, level_name: str, item_id: int):
        level = HierarchyService._level(level_name)
        return await get_or_404(db, level.model, item_id, level.label.capitalize())

    @staticmethod
    async def _clean(db: AsyncSession, level: Level, data: dict) -> dict:
        values = dict(data)
        values[level.name_field] = require_text(values.get(level.name_field), f"Le nom de {level.label} est obligatoire.")
        if level.parent_field:
            parent_label = next(l.label for l in LEVELS.values() if l.model is level.parent_model)
            await get_or_404(db, level.parent_model, values.get(level.parent_field), parent_label.capitalize())
        if values.get("objectif_type") is not None:
            values["objectif_type"] = values["objectif_type"].strip() or None
        return values

    @staticmethod
    async def create_item(db: AsyncSession, level_name: str, data: dict):
        level = HierarchyService._level(level_name)
        async with transaction(db, f"Creating {level_name}"):
            values = await HierarchyService._clean(db, level, data)
            item = level.model(**values)
            db.add(item)
            await db.flush()
        logger.info("Created %s %s", level_name, item.id)
        return item

    @staticmethod
    async def update_item(db: AsyncSession, level_name: str, item_id: int, data: dict):
        level = HierarchyService._level(level_name)
        async with transaction(db, f"Updating {level_name} {item_id}"):
            item = await get_or_404(db, level.model, item_id, level.label.capitalize())
            values = await HierarchyService._clean(db, level, data)
            for key, value in values.items():
                setattr(item, key, value)
        logger.info("Updated %s %s", level_name, item_id)
        return item

    @staticmethod
    async def delete_item(db: AsyncSession, level_name: str, item_id: int) -> None:
        level = HierarchyService._level(level_name)
        async with transaction(db, f"Deleting {level_name} {item_id}"):
            item = await get_or_404(db, level.model, item_id, level.label.capitalize())
            await ensure_no_children(db, level.label, [
                (model, getattr(model, field) == item_id, label) for model, field, label in level.children
            ])
            await db.delete(item)
        logger.info("Deleted %s %s", level_name, item_id)

    # --- Cascading selector ---

    @staticmethod
    async def selector(
        db: AsyncSession,
        niveau_id: Optional[int] = None,
        option_id: Optional[int] = None,
        unite_id: Optional[int] = None,
        chapitre_id: Optional[int] = None,
    ) -> dict:
        """
        Lists for each select of the hierarchy, computed from the current selection.

        A selected id that does not belong to the selected parent is dropped, along
        with every selection below it, the same way the form resets the lower selects
        when a higher one changes.
        """
        lists = {"niveaux": await HierarchyService.list_items(db, "niveaux")}
        selection = {"niveau_id": None, "option_id": None, "unite_id": None, "chapitre_id": None}
        steps = (
            ("niveau_id", niveau_id, "niveaux", "options"),
            ("option_id", option_id, "options", "unites"),
            ("unite_id", unite_id, "unites", "chapitres"),
            ("chapitre_id", chapitre_id, "chapitres", "objectifs"),
        )
        for key, wanted, current_list, next_list in steps:
            if wanted is None or wanted not in {item.id for item in lists[current_list]}:
                break
            selection[key] = wanted
            lists[next_list] = await HierarchyService.list_items(db, next_list, wanted)

        # Everything below the last consistent selection stays empty
        for name in ("options", "unites", "chapitres", "objectifs"):
            lists.setdefault(name, [])
        return {"selection": selection, **lists}

    # --- Paths ---

    @staticmethod
    async def hierarchy_paths(db: AsyncSession, chapitre_ids) -> Dict[int, HierarchyPath]:
        """Ancestors of several chapters in one query, keyed by chapter id."""
        ids = {i for i in chapitre_ids if i is not None}
        if not ids:
            return {}
        result = await db.execute(
            select(Chapitre, Unite, Option, Niveau)
            .join(Unite, Chapitre.unite_id == Unite.id)
            .join(Option, Unite.option_id == Option.id)
            .join(Niveau, Option.niveau_id == Niveau.id)
            .where(Chapitre.id.in_(ids))
        )
        paths = {}
        for chapitre, unite, option, niveau in result.all():
            paths[chapitre.id] = HierarchyPath(
                niveau_id=niveau.id, nom_niveau=niveau.nom_niveau,
                option_id=option.id, nom_option=option.nom_option,
                unite_id=unite.id, titre_unite=unite.titre_unite,
                chapitre_id=chapitre.id, titre_chapitre=chapitre.titre_chapitre,
            )
        return paths

    @staticmethod
    async def hierarchy_path(db: AsyncSession, chapitre_id: Optional[int]) -> HierarchyPath:
        paths = await HierarchyService.hierarchy_paths(db, [chapitre_id])
        return paths.get(chapitre_id, HierarchyPath())

    @staticmethod
    async def chapitre_path(db: AsyncSession, chapitre_id: int) -> dict:
        chapitre = await get_or_404(db, Chapitre, chapitre_id, "Le chapitre")
        unite = await db.get(Unite, chapitre.unite_id)
        option = await db.get(Option, unite.option_id)
        niveau = await db.get(Niveau, option.niveau_id)
        objectifs = await HierarchyService.list_items(db, "objectifs", chapitre_id)
        return {"chapitre": chapitre, "unite": unite, "option": option, "niveau": niveau, "objectifs": objectifs}

    @staticmethod
    async def tree(db: AsyncSession) -> List[dict]:
        """Whole hierarchy, nested, each level sorted like its list endpoint."""
        rows = {name: await HierarchyService.list_items(db, name) for name in LEVELS}

        def children_of(name: str, parent_id: int) -> list:
            level = LEVELS[name]
            return [item for item in rows[name] if getattr(item, level.parent_field) == parent_id]

        def as_dict(item, fields):
            return {field: getattr(item, field) for field in fields}

        tree = []
        for niveau in rows["niveaux"]:
            options = []
            for option in children_of("options", niveau.id):
                unites = []
                for unite in children_of("unites", option.id):
                    chapitres = []
                    for chapitre in children_of("chapitres", unite.id):
                        objectifs = [
                            as_dict(o, ("id", "chapitre_id", "objectif_type", "description_objectif"))
                            for o in children_of("objectifs", chapitre.id)
                        ]
                        chapitres.append({**as_dict(chapitre, ("id", "titre_chapitre", "unite_id")), "objectifs": objectifs})
                    unites.append({**as_dict(unite, ("id", "titre_unite", "option_id")), "chapitres": chapitres})
                options.append({**as_dict(option, ("id", "nom_option", "niveau_id")), "unites": unites})
            tree.append({**as_dict(niveau, ("id", "nom_niveau")), "options": options})
        return tree

    # --- Bulk import and demo data ---

    @staticmethod
    async def import_chapitres(db: AsyncSession, unite_id: int, contenu: str) -> List[Chapitre]:
        titres = [line.strip() for line in (contenu or "").splitlines() if line.strip()]
        if not titres:
            raise InvalidDataError("Le contenu à importer est vide.")

        async with transaction(db, f"Importing chapters into unit {unite_id}"):
            await get_or_404(db, Unite, unite_id, "L'unité")
            chapitres = [Chapitre(titre_chapitre=titre, unite_id=unite_id) for titre in titres]
            db.add_all(chapitres)
            await db.flush()
        logger.info("Imported %s chapters into unit %s", len(chapitres), unite_id)
        return chapitres

    @staticmethod
    async def seed(db: AsyncSession) -> dict:
        result = await db.execute(select(Niveau))
        if result.scalars().first():
            return {"message": "Data already seeded"}

        async with transaction(db, "Seeding demo data"):
            tc = Niveau(nom_niveau="Tronc commun")
            bac1 = Niveau(nom_niveau="1ère année Bac")
            db.add_all([tc, bac1])
            await db.flush()

            sciences = Option(nom_option="Sciences", niveau_id=tc.id)
            sc_exp = Option(nom_option="Sciences expérimentales", niveau_id=bac1.id)
            db.add_all([sciences, sc_exp])
            await db.flush()

            matiere = Unite(titre_unite="La matière et l'environnement", option_id=sciences.id)
            electricite = Unite(titre_unite="L'électricité", option_id=sciences.id)
            db.add_all([matiere, electricite])
            await db.flush()

            combustion = Chapitre(titre_chapitre="Les combustions", unite_id=matiere.id)
            air = Chapitre(titre_chapitre="L'air qui nous entoure", unite_id=matiere.id)
            circuit = Chapitre(titre_chapitre="Le circuit électrique simple", unite_id=electricite.id)
            db.add_all([combustion, air, circuit])
            await db.flush()

            db.add_all([
                Objectif(chapitre_id=combustion.id, objectif_type="Savoir",
                         description_objectif="Identifier les réactifs et les produits d'une combustion."),
                Objectif(chapitre_id=combustion.id, objectif_type="Savoir-faire",
                         description_objectif="Mettre en évidence le dioxyde de carbone produit."),
                Objectif(chapitre_id=air.id, objectif_type="Savoir",
                         description_objectif="Connaître la composition de l'air."),
                Objectif(chapitre_id=circuit.id, objectif_type="Savoir-faire",
                         description_objectif="Réaliser un circuit électrique simple."),
            ])

            db.add_all([
                Competence(titre_competence="Adopter une démarche scientifique",
                           type_competence=CompetenceType.GENERALE),
                Competence(titre_competence="Communiquer à l'écrit et à l'oral",
                           type_competence=CompetenceType.GENERALE),
                Competence(titre_competence="Interpréter une transformation chimique",
                           type_competence=CompetenceType.SPECIFIQUE, unite_id=matiere.id),
                Connaissance(titre_connaissance="Combustion du carbone", chapitre_id=combustion.id),
                Connaissance(titre_connaissance="Test à l'eau de chaux", chapitre_id=combustion.id),
                CapaciteHabilete(titre_capacite_habilete="Observer"),
                CapaciteHabilete(titre_capacite_habilete="Analyser un document"),
                Modalite(nom_modalite="Écrit"),
                Modalite(nom_modalite="Oral"),
                Modalite(nom_modalite="Travaux pratiques"),
            ])
            db.add(Activite(
                chapitre_id=combustion.id,
                titre_activite="Combustion d'une bougie",
                description="Observer la combustion d'une bougie sous un bocal.",
                duree_minutes=30,
                ressource_urls=[],
            ))
        logger.info("Seeded demo hierarchy and reference data")
        return {"message": "Seeded successfully"}
