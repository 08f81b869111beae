import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from planipeda.database import transaction
from planipeda.errors import InvalidDataError
from planipeda.models.curriculum import (
    CapaciteHabilete, Chapitre, Competence, CompetenceType, Connaissance, Modalite, Unite,
)
from planipeda.services.relations import get_or_404, require_text

logger = logging.getLogger(__name__)

# resource name -> (model, title field, label)
REFERENTIELS = {
    "competences": (Competence, "titre_competence", "La compétence"),
    "connaissances": (Connaissance, "titre_connaissance", "La connaissance"),
    "capacites": (CapaciteHabilete, "titre_capacite_habilete", "La capacité/habileté"),
    "modalites": (Modalite, "nom_modalite", "La modalité"),
}


class ReferentielService:
    @staticmethod
    async def list_items(
        db: AsyncSession,
        name: str,
        type_competence: Optional[str] = None,
        unite_id: Optional[int] = None,
        chapitre_id: Optional[int] = None,
    ) -> list:
        model, title_field, _ = REFERENTIELS[name]
        query = select(model)
        if model is Competence:
            if type_competence:
                query = query.where(Competence.type_competence == type_competence)
            if unite_id is not None:
                query = query.where(Competence.unite_id == unite_id)
        if model is Connaissance and chapitre_id is not None:
            query = query.where(Connaissance.chapitre_id == chapitre_id)
        result = await db.execute(query.order_by(getattr(model, title_field)))
        return result.scalars().all()

    @staticmethod
    async def get_item(db: AsyncSession, name: str, item_id: int):
        model, _, label = REFERENTIELS[name]
        return await get_or_404(db, model, item_id, label)

    @staticmethod
    async def _clean(db: AsyncSession, name: str, data: dict) -> dict:
        model, title_field, label = REFERENTIELS[name]
        values = dict(data)
        values[title_field] = require_text(values.get(title_field), f"Le titre de {label.lower()} est obligatoire.")

        if model is Competence:
            type_competence = values.get("type_competence") or CompetenceType.SPECIFIQUE
            if type_competence not in CompetenceType.ALL:
                raise InvalidDataError(f"Type de compétence invalide : {type_competence}.")
            values["type_competence"] = type_competence
            if type_competence == CompetenceType.SPECIFIQUE:
                if values.get("unite_id") is None:
                    raise InvalidDataError("Une compétence spécifique doit être rattachée à une unité.")
                await get_or_404(db, Unite, values["unite_id"], "L'unité")
            else:
                values["unite_id"] = None

        if model is Connaissance and values.get("chapitre_id") is not None:
            await get_or_404(db, Chapitre, values["chapitre_id"], "Le chapitre")
        return values

    @staticmethod
    async def create_item(db: AsyncSession, name: str, data: dict):
        model = REFERENTIELS[name][0]
        async with transaction(db, f"Creating {name}"):
            item = model(**await ReferentielService._clean(db, name, data))
            db.add(item)
            await db.flush()
        logger.info("Created %s %s", name, item.id)
        return item

    @staticmethod
    async def update_item(db: AsyncSession, name: str, item_id: int, data: dict):
        async with transaction(db, f"Updating {name} {item_id}"):
            item = await ReferentielService.get_item(db, name, item_id)
            for key, value in (await ReferentielService._clean(db, name, data)).items():
                setattr(item, key, value)
        logger.info("Updated %s %s", name, item_id)
        return item

    @staticmethod
    async def delete_item(db: AsyncSession, name: str, item_id: int) -> None:
        # Evaluation links go with the row (ON DELETE CASCADE)
        async with transaction(db, f"Deleting {name} {item_id}"):
            item = await ReferentielService.get_item(db, name, item_id)
            await db.delete(item)
        logger.info("Deleted %s %s", name, item_id)
