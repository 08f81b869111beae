import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from planipeda.database import transaction
from planipeda.errors import InvalidDataError
from planipeda.models.activity import Activite, ActiviteObjectif
from planipeda.models.curriculum import Chapitre, Objectif
from planipeda.schemas.activity_schema import ActivityRequest, ActivityResponse, ActivitySummary
from planipeda.schemas.curriculum_schema import HierarchyPath, ObjectifResponse
from planipeda.services.hierarchy_service import HierarchyService, filter_by_hierarchy
from planipeda.services.relations import ensure_exist, get_or_404, require_text, sync_links, unique_ids

logger = logging.getLogger(__name__)

ACTIVITY_FIELDS = (
    "chapitre_id", "description", "role_enseignant", "materiel", "duree_minutes",
    "modalite_deroulement", "modalite_evaluation", "commentaires",
)


async def check_objectifs(db: AsyncSession, objectif_ids, chapitre_id: Optional[int]) -> None:
    """Every objective must exist and, once a chapter is chosen, belong to it."""
    await ensure_exist(db, Objectif, objectif_ids, "Objectif(s)")
    if chapitre_id is None or not objectif_ids:
        return
    result = await db.execute(
        select(Objectif.id).where(Objectif.id.in_(objectif_ids), Objectif.chapitre_id != chapitre_id)
    )
    foreign = result.scalars().all()
    if foreign:
        raise InvalidDataError(
            f"Objectif(s) n'appartenant pas au chapitre sélectionné : {', '.join(str(i) for i in sorted(foreign))}."
        )


async def objectifs_of(db: AsyncSession, link_model, owner_column: str, owner_id: int) -> list:
    result = await db.execute(
        select(Objectif)
        .join(link_model, link_model.objectif_id == Objectif.id)
        .where(getattr(link_model, owner_column) == owner_id)
        .order_by(link_model.id)
    )
    return result.scalars().all()


class ActivityService:
    @staticmethod
    async def save(db: AsyncSession, data: ActivityRequest, activite_id: Optional[int] = None) -> ActivityResponse:
        objectif_ids = unique_ids(data.objectifs)

        action = f"Updating activity {activite_id}" if activite_id else "Creating activity"
        async with transaction(db, action):
            titre = require_text(data.titre_activite, "Le titre de l'activité est obligatoire.")
            if data.duree_minutes is not None and data.duree_minutes < 0:
                raise InvalidDataError("La durée doit être un nombre positif de minutes.")
            if data.chapitre_id is not None:
                await get_or_404(db, Chapitre, data.chapitre_id, "Le chapitre")
            await check_objectifs(db, objectif_ids, data.chapitre_id)

            if activite_id is None:
                activite = Activite()
                db.add(activite)
            else:
                activite = await get_or_404(db, Activite, activite_id, "L'activité")

            activite.titre_activite = titre
            for field in ACTIVITY_FIELDS:
                setattr(activite, field, getattr(data, field))
            activite.ressource_urls = list(data.ressource_urls)
            await db.flush()

            await sync_links(db, ActiviteObjectif, "activite_id", activite.id, "objectif_id", objectif_ids)

        logger.info("Saved activity %s with %s objective(s)", activite.id, len(objectif_ids))
        return await ActivityService.get(db, activite.id)

    @staticmethod
    async def get(db: AsyncSession, activite_id: int) -> ActivityResponse:
        activite = await get_or_404(db, Activite, activite_id, "L'activité")
        objectifs = await objectifs_of(db, ActiviteObjectif, "activite_id", activite_id)
        return ActivityResponse(
            **_summary_fields(activite),
            hierarchy=await HierarchyService.hierarchy_path(db, activite.chapitre_id),
            description=activite.description,
            role_enseignant=activite.role_enseignant,
            materiel=activite.materiel,
            modalite_deroulement=activite.modalite_deroulement,
            modalite_evaluation=activite.modalite_evaluation,
            commentaires=activite.commentaires,
            ressource_urls=activite.ressource_urls or [],
            objectifs=[ObjectifResponse.model_validate(o) for o in objectifs],
        )

    @staticmethod
    async def list_activities(
        db: AsyncSession,
        chapitre_id: Optional[int] = None,
        unite_id: Optional[int] = None,
        option_id: Optional[int] = None,
        niveau_id: Optional[int] = None,
        search: Optional[str] = None,
    ) -> list:
        query = filter_by_hierarchy(select(Activite), Activite.chapitre_id, chapitre_id, unite_id, option_id, niveau_id)
        if search and search.strip():
            query = query.where(Activite.titre_activite.ilike(f"%{search.strip()}%"))
        result = await db.execute(query.order_by(Activite.titre_activite))
        activites = result.scalars().all()

        paths = await HierarchyService.hierarchy_paths(db, [a.chapitre_id for a in activites])
        return [
            ActivitySummary(**_summary_fields(a), hierarchy=paths.get(a.chapitre_id, HierarchyPath()))
            for a in activites
        ]

    @staticmethod
    async def delete(db: AsyncSession, activite_id: int) -> None:
        # Objective links, sequence and planning appearances cascade in the database
        async with transaction(db, f"Deleting activity {activite_id}"):
            activite = await get_or_404(db, Activite, activite_id, "L'activité")
            await db.delete(activite)
        logger.info("Deleted activity %s", activite_id)


def _summary_fields(activite: Activite) -> dict:
    return {
        "id": activite.id,
        "titre_activite": activite.titre_activite,
        "chapitre_id": activite.chapitre_id,
        "duree_minutes": activite.duree_minutes,
        "created_at": activite.created_at,
        "updated_at": activite.updated_at,
    }
