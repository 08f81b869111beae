import logging
from collections import defaultdict
from typing import List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from planipeda.database import transaction
from planipeda.errors import InvalidDataError
from planipeda.models.activity import Activite, ActiviteObjectif
from planipeda.models.curriculum import CapaciteHabilete, Chapitre, Connaissance, Objectif
from planipeda.models.evaluation import Evaluation, EvaluationCapaciteHabilete, EvaluationConnaissance
from planipeda.models.sequence import Sequence, SequenceActivite, SequenceEvaluation, SequenceStatut
from planipeda.schemas.curriculum_schema import HierarchyPath
from planipeda.schemas.sequence_schema import SequenceItem, SequenceRequest, SequenceResponse, SequenceSummary
from planipeda.services.hierarchy_service import HierarchyService, filter_by_hierarchy
from planipeda.services.relations import ensure_exist, ensure_no_duplicates, get_or_404, require_text

logger = logging.getLogger(__name__)

SEQUENCE_FIELDS = ("objectifs_specifiques", "description", "duree_estimee", "prerequis", "chapitre_id")


async def _titles_by_owner(db: AsyncSession, owner_column, title_column, join_on, owner_ids) -> dict:
    """{owner id: [titles]} for one link table, in link order."""
    titles = defaultdict(list)
    if not owner_ids:
        return titles
    result = await db.execute(
        select(owner_column, title_column).join_from(owner_column.class_, title_column.class_, join_on)
        .where(owner_column.in_(owner_ids))
        .order_by(owner_column.class_.id)
    )
    for owner_id, title in result.all():
        titles[owner_id].append(title)
    return titles


class SequenceService:
    @staticmethod
    async def _items(db: AsyncSession, sequence_id: int) -> List[SequenceItem]:
        activites = (await db.execute(
            select(SequenceActivite, Activite)
            .join(Activite, SequenceActivite.activite_id == Activite.id)
            .where(SequenceActivite.sequence_id == sequence_id)
        )).all()
        evaluations = (await db.execute(
            select(SequenceEvaluation, Evaluation)
            .join(Evaluation, SequenceEvaluation.evaluation_id == Evaluation.id)
            .where(SequenceEvaluation.sequence_id == sequence_id)
        )).all()

        activite_ids = [a.id for _, a in activites]
        evaluation_ids = [e.id for _, e in evaluations]
        objectifs = await _titles_by_owner(
            db, ActiviteObjectif.activite_id, Objectif.description_objectif,
            ActiviteObjectif.objectif_id == Objectif.id, activite_ids,
        )
        connaissances = await _titles_by_owner(
            db, EvaluationConnaissance.evaluation_id, Connaissance.titre_connaissance,
            EvaluationConnaissance.connaissance_id == Connaissance.id, evaluation_ids,
        )
        capacites = await _titles_by_owner(
            db, EvaluationCapaciteHabilete.evaluation_id, CapaciteHabilete.titre_capacite_habilete,
            EvaluationCapaciteHabilete.capacite_habilete_id == CapaciteHabilete.id, evaluation_ids,
        )

        items = [
            SequenceItem(
                id=activite.id, type="activity", titre=activite.titre_activite,
                order_in_sequence=link.ordre, link_id=link.id,
                description=activite.description, objectifs=objectifs[activite.id],
            )
            for link, activite in activites
        ] + [
            SequenceItem(
                id=evaluation.id, type="evaluation", titre=evaluation.titre_evaluation,
                order_in_sequence=link.ordre, link_id=link.id,
                type_evaluation=evaluation.type_evaluation,
                introduction_activite=evaluation.introduction_activite,
                consignes_specifiques=evaluation.consignes_specifiques,
                connaissances=connaissances[evaluation.id],
                capacites_evaluees=capacites[evaluation.id],
            )
            for link, evaluation in evaluations
        ]
        return sorted(items, key=lambda item: (item.order_in_sequence, item.type, item.link_id))

    @staticmethod
    async def save(db: AsyncSession, data: SequenceRequest, sequence_id: Optional[int] = None) -> SequenceResponse:
        action = f"Updating sequence {sequence_id}" if sequence_id else "Creating sequence"
        async with transaction(db, action):
            titre = require_text(data.titre_sequence, "Le titre de la séquence est obligatoire.")
            if data.chapitre_id is None:
                raise InvalidDataError("Veuillez sélectionner un chapitre pour la séquence.")
            if data.statut not in SequenceStatut.ALL:
                raise InvalidDataError(f"Statut de séquence invalide : {data.statut}.")
            ensure_no_duplicates(
                ((item.type, item.id) for item in data.items),
                "Une activité ou une évaluation ne peut apparaître qu'une seule fois dans la séquence.",
            )

            await get_or_404(db, Chapitre, data.chapitre_id, "Le chapitre")
            await ensure_exist(db, Activite, [i.id for i in data.items if i.type == "activity"], "Activité(s)")
            await ensure_exist(db, Evaluation, [i.id for i in data.items if i.type == "evaluation"], "Évaluation(s)")

            if sequence_id is None:
                sequence = Sequence()
                db.add(sequence)
            else:
                sequence = await get_or_404(db, Sequence, sequence_id, "La séquence")

            if data.ordre is not None:
                sequence.ordre = data.ordre
            elif sequence_id is None or sequence.chapitre_id != data.chapitre_id:
                # Goes last in its (new) chapter
                result = await db.execute(select(func.max(Sequence.ordre)).where(Sequence.chapitre_id == data.chapitre_id))
                sequence.ordre = (result.scalar() or 0) + 1

            sequence.titre_sequence = titre
            sequence.statut = data.statut
            for field in SEQUENCE_FIELDS:
                setattr(sequence, field, getattr(data, field))
            await db.flush()

            await db.execute(delete(SequenceActivite).where(SequenceActivite.sequence_id == sequence.id))
            await db.execute(delete(SequenceEvaluation).where(SequenceEvaluation.sequence_id == sequence.id))
            for position, item in enumerate(data.items, start=1):
                if item.type == "activity":
                    db.add(SequenceActivite(sequence_id=sequence.id, activite_id=item.id, ordre=position))
                else:
                    db.add(SequenceEvaluation(sequence_id=sequence.id, evaluation_id=item.id, ordre=position))

        logger.info("Saved sequence %s with %s item(s)", sequence.id, len(data.items))
        return await SequenceService.get(db, sequence.id)

    @staticmethod
    async def get(db: AsyncSession, sequence_id: int) -> SequenceResponse:
        sequence = await get_or_404(db, Sequence, sequence_id, "La séquence")
        return SequenceResponse(
            **_summary_fields(sequence),
            hierarchy=await HierarchyService.hierarchy_path(db, sequence.chapitre_id),
            objectifs_specifiques=sequence.objectifs_specifiques,
            description=sequence.description,
            prerequis=sequence.prerequis,
            items=await SequenceService._items(db, sequence_id),
        )

    @staticmethod
    async def list_sequences(
        db: AsyncSession,
        chapitre_id: Optional[int] = None,
        unite_id: Optional[int] = None,
        option_id: Optional[int] = None,
        niveau_id: Optional[int] = None,
        statut: Optional[str] = None,
    ) -> List[SequenceSummary]:
        query = filter_by_hierarchy(select(Sequence), Sequence.chapitre_id, chapitre_id, unite_id, option_id, niveau_id)
        if statut:
            query = query.where(Sequence.statut == statut)
        result = await db.execute(query.order_by(Sequence.chapitre_id, Sequence.ordre, Sequence.id))
        sequences = result.scalars().all()

        paths = await HierarchyService.hierarchy_paths(db, [s.chapitre_id for s in sequences])
        return [
            SequenceSummary(**_summary_fields(s), hierarchy=paths.get(s.chapitre_id, HierarchyPath()))
            for s in sequences
        ]

    @staticmethod
    async def reorder_chapitre(db: AsyncSession, chapitre_id: int, sequence_ids: List[int]) -> List[SequenceSummary]:
        """Renumber the chapter's sequences 1..n following sequence_ids."""
        async with transaction(db, f"Reordering sequences of chapter {chapitre_id}"):
            await get_or_404(db, Chapitre, chapitre_id, "Le chapitre")
            result = await db.execute(select(Sequence).where(Sequence.chapitre_id == chapitre_id))
            sequences = {s.id: s for s in result.scalars().all()}

            if len(sequence_ids) != len(set(sequence_ids)) or set(sequence_ids) != set(sequences):
                raise InvalidDataError("La liste doit contenir exactement les séquences du chapitre.")
            for position, sid in enumerate(sequence_ids, start=1):
                sequences[sid].ordre = position

        logger.info("Reordered %s sequence(s) of chapter %s", len(sequence_ids), chapitre_id)
        return await SequenceService.list_sequences(db, chapitre_id=chapitre_id)

    @staticmethod
    async def delete(db: AsyncSession, sequence_id: int) -> None:
        async with transaction(db, f"Deleting sequence {sequence_id}"):
            sequence = await get_or_404(db, Sequence, sequence_id, "La séquence")
            await db.delete(sequence)
        logger.info("Deleted sequence %s", sequence_id)


def _summary_fields(sequence: Sequence) -> dict:
    return {
        "id": sequence.id,
        "titre_sequence": sequence.titre_sequence,
        "statut": sequence.statut,
        "chapitre_id": sequence.chapitre_id,
        "ordre": sequence.ordre,
        "duree_estimee": sequence.duree_estimee,
        "created_at": sequence.created_at,
        "updated_at": sequence.updated_at,
    }
