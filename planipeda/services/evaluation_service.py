import logging
from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from planipeda.database import transaction
from planipeda.errors import InvalidDataError
from planipeda.models.activity import Activite
from planipeda.models.curriculum import (
    CapaciteHabilete, Chapitre, Competence, CompetenceType, Connaissance, Modalite, Objectif,
)
from planipeda.models.evaluation import (
    Evaluation, EvaluationCapaciteHabilete, EvaluationCompetence, EvaluationConnaissance, EvaluationContentBlock,
    EvaluationModalite, EvaluationObjectif,
)
from planipeda.models.sequence import Sequence
from planipeda.schemas.curriculum_schema import HierarchyPath, ObjectifResponse
from planipeda.schemas.evaluation_schema import (
    ContentBlockData, ContentBlockResponse, EvaluationRequest, EvaluationResponse, EvaluationSummary,
    LinkedCapacite, LinkedCompetence, ResultatData, ResultatsRequest,
)
from planipeda.schemas.referentiel_schema import ConnaissanceResponse, ModaliteResponse
from planipeda.services.activity_service import objectifs_of
from planipeda.services.hierarchy_service import HierarchyService, filter_by_hierarchy
from planipeda.services.relations import ensure_exist, get_or_404, sync_links, unique_ids

logger = logging.getLogger(__name__)

EMPTY_EDITOR_HTML = "<p><br></p>"

EVALUATION_FIELDS = (
    "chapitre_id", "sequence_id", "activite_id", "type_evaluation", "grille_correction",
    "introduction_activite", "consignes_specifiques", "modalite_evaluation_autre_texte",
)


def _filled(text: Optional[str]) -> bool:
    return bool(text and text.strip())


def validate_evaluation(data: EvaluationRequest) -> None:
    """Form checks, in the order the user sees them. The first failure wins."""
    if not _filled(data.titre_evaluation):
        raise InvalidDataError("Le titre de l'évaluation est obligatoire.")
    if not data.selected_competence_id and not data.selected_general_competence_ids:
        raise InvalidDataError("Veuillez sélectionner au moins une compétence (spécifique ou générale).")
    if data.chapitre_id and not data.selected_connaissance_ids and not _filled(data.new_connaissance_text):
        raise InvalidDataError(
            "Veuillez sélectionner au moins une connaissance ou ajouter une nouvelle notion si un chapitre est sélectionné."
        )
    if not data.modalite_evaluation_ids and not _filled(data.modalite_evaluation_autre_texte):
        raise InvalidDataError(
            "Veuillez sélectionner au moins une modalité d'évaluation ou spécifier une nouvelle modalité."
        )
    if not _filled(data.introduction_activite) or data.introduction_activite == EMPTY_EDITOR_HTML:
        raise InvalidDataError("La section 'Situation d'évaluation / Introduction' est obligatoire.")
    if not data.contenu_blocs:
        raise InvalidDataError(
            "Veuillez ajouter au moins un bloc de contenu (paragraphe, image, etc.) pour le corps de l'activité."
        )


def ordered_blocks(blocks: List[ContentBlockData]) -> List[ContentBlockData]:
    # A block without `order` keeps its list position; ties keep payload order
    indexed = [(block.order if block.order is not None else index, index, block) for index, block in enumerate(blocks)]
    return [block for _, _, block in sorted(indexed, key=lambda entry: (entry[0], entry[1]))]


async def _resultats(db: AsyncSession, link_model, target_column: str, evaluation_id: int) -> dict:
    """Current `resultat` per linked id, carried over when the links are rewritten."""
    result = await db.execute(
        select(getattr(link_model, target_column), link_model.resultat)
        .where(link_model.evaluation_id == evaluation_id, link_model.resultat.isnot(None))
    )
    return {target_id: {"resultat": resultat} for target_id, resultat in result.all()}


async def _check_competence_types(db: AsyncSession, specifique_id: Optional[int], generale_ids: List[int]) -> None:
    ids = unique_ids([specifique_id, *generale_ids])
    if not ids:
        return
    result = await db.execute(select(Competence.id, Competence.type_competence).where(Competence.id.in_(ids)))
    types = dict(result.all())
    if specifique_id is not None and types.get(specifique_id) != CompetenceType.SPECIFIQUE:
        raise InvalidDataError(f"La compétence {specifique_id} n'est pas une compétence spécifique.")
    wrong = [i for i in unique_ids(generale_ids) if types.get(i) != CompetenceType.GENERALE]
    if wrong:
        raise InvalidDataError(
            f"Compétence(s) non générale(s) parmi les compétences générales : {', '.join(str(i) for i in wrong)}."
        )


async def _set_resultats(
    db: AsyncSession, link_model, target_column: str, evaluation_id: int, entries: List[ResultatData], label: str
) -> None:
    for entry in entries:
        result = await db.execute(
            select(link_model)
            .where(link_model.evaluation_id == evaluation_id, getattr(link_model, target_column) == entry.id)
        )
        link = result.scalars().first()
        if link is None:
            raise InvalidDataError(f"{label} {entry.id} n'est pas liée à l'évaluation {evaluation_id}.")
        link.resultat = (entry.resultat or "").strip() or None


class EvaluationService:
    @staticmethod
    async def save(db: AsyncSession, data: EvaluationRequest, evaluation_id: Optional[int] = None) -> EvaluationResponse:
        action = f"Updating evaluation {evaluation_id}" if evaluation_id else "Creating evaluation"
        async with transaction(db, action):
            validate_evaluation(data)

            competence_ids = unique_ids([data.selected_competence_id, *data.selected_general_competence_ids])
            connaissance_ids = unique_ids(data.selected_connaissance_ids)
            objectif_ids = unique_ids(data.objectifs)
            modalite_ids = unique_ids(data.modalite_evaluation_ids)
            capacite_ids = unique_ids(data.selected_capacite_habilete_ids)

            if data.chapitre_id is not None:
                await get_or_404(db, Chapitre, data.chapitre_id, "Le chapitre")
            if data.sequence_id is not None:
                await get_or_404(db, Sequence, data.sequence_id, "La séquence")
            if data.activite_id is not None:
                await get_or_404(db, Activite, data.activite_id, "L'activité")
            await ensure_exist(db, Objectif, objectif_ids, "Objectif(s)")
            await ensure_exist(db, Competence, competence_ids, "Compétence(s)")
            await _check_competence_types(db, data.selected_competence_id, data.selected_general_competence_ids)
            await ensure_exist(db, Connaissance, connaissance_ids, "Connaissance(s)")
            await ensure_exist(db, Modalite, modalite_ids, "Modalité(s)")
            await ensure_exist(db, CapaciteHabilete, capacite_ids, "Capacité(s)/habileté(s)")

            if evaluation_id is None:
                evaluation = Evaluation()
                db.add(evaluation)
            else:
                evaluation = await get_or_404(db, Evaluation, evaluation_id, "L'évaluation")

            evaluation.titre_evaluation = data.titre_evaluation.strip()
            for field in EVALUATION_FIELDS:
                setattr(evaluation, field, getattr(data, field))
            evaluation.ressource_urls_json = list(data.ressource_urls)
            evaluation.ressources_eleve_urls = list(data.ressources_eleve_urls)
            await db.flush()

            if _filled(data.new_connaissance_text):
                connaissance = Connaissance(
                    titre_connaissance=data.new_connaissance_text.strip(),
                    description_connaissance="",
                    chapitre_id=data.chapitre_id,
                )
                db.add(connaissance)
                await db.flush()
                connaissance_ids.append(connaissance.id)
                logger.info("Added knowledge %s from evaluation form", connaissance.id)

            competence_resultats = await _resultats(db, EvaluationCompetence, "competence_id", evaluation.id)
            capacite_resultats = await _resultats(db, EvaluationCapaciteHabilete, "capacite_habilete_id", evaluation.id)

            await sync_links(db, EvaluationObjectif, "evaluation_id", evaluation.id, "objectif_id", objectif_ids)
            await sync_links(db, EvaluationCompetence, "evaluation_id", evaluation.id, "competence_id",
                             competence_ids, competence_resultats)
            await sync_links(db, EvaluationConnaissance, "evaluation_id", evaluation.id, "connaissance_id",
                             connaissance_ids)
            await sync_links(db, EvaluationModalite, "evaluation_id", evaluation.id, "modalite_id", modalite_ids)
            await sync_links(db, EvaluationCapaciteHabilete, "evaluation_id", evaluation.id, "capacite_habilete_id",
                             capacite_ids, capacite_resultats)

            await db.execute(delete(EvaluationContentBlock).where(EvaluationContentBlock.evaluation_id == evaluation.id))
            for position, block in enumerate(ordered_blocks(data.contenu_blocs), start=1):
                db.add(EvaluationContentBlock(
                    evaluation_id=evaluation.id,
                    block_order=position,
                    block_type=block.type,
                    text_content_html=block.text_content_html,
                    questions_html=block.questions_html,
                    media_url=block.media_url,
                    media_alt_text=block.media_alt_text,
                    media_position=block.media_position,
                ))

        logger.info("Saved evaluation %s (%s content block(s))", evaluation.id, len(data.contenu_blocs))
        return await EvaluationService.get(db, evaluation.id)

    @staticmethod
    async def get(db: AsyncSession, evaluation_id: int) -> EvaluationResponse:
        evaluation = await get_or_404(db, Evaluation, evaluation_id, "L'évaluation")

        competences = await db.execute(
            select(Competence, EvaluationCompetence.resultat)
            .join(EvaluationCompetence, EvaluationCompetence.competence_id == Competence.id)
            .where(EvaluationCompetence.evaluation_id == evaluation_id)
            .order_by(EvaluationCompetence.id)
        )
        capacites = await db.execute(
            select(CapaciteHabilete, EvaluationCapaciteHabilete.resultat)
            .join(EvaluationCapaciteHabilete, EvaluationCapaciteHabilete.capacite_habilete_id == CapaciteHabilete.id)
            .where(EvaluationCapaciteHabilete.evaluation_id == evaluation_id)
            .order_by(EvaluationCapaciteHabilete.id)
        )
        connaissances = await db.execute(
            select(Connaissance)
            .join(EvaluationConnaissance, EvaluationConnaissance.connaissance_id == Connaissance.id)
            .where(EvaluationConnaissance.evaluation_id == evaluation_id)
            .order_by(EvaluationConnaissance.id)
        )
        modalites = await db.execute(
            select(Modalite)
            .join(EvaluationModalite, EvaluationModalite.modalite_id == Modalite.id)
            .where(EvaluationModalite.evaluation_id == evaluation_id)
            .order_by(EvaluationModalite.id)
        )
        blocks = await db.execute(
            select(EvaluationContentBlock)
            .where(EvaluationContentBlock.evaluation_id == evaluation_id)
            .order_by(EvaluationContentBlock.block_order, EvaluationContentBlock.id)
        )
        objectifs = await objectifs_of(db, EvaluationObjectif, "evaluation_id", evaluation_id)

        return EvaluationResponse(
            **_summary_fields(evaluation),
            hierarchy=await HierarchyService.hierarchy_path(db, evaluation.chapitre_id),
            grille_correction=evaluation.grille_correction,
            introduction_activite=evaluation.introduction_activite,
            consignes_specifiques=evaluation.consignes_specifiques,
            ressource_urls=evaluation.ressource_urls_json or [],
            ressources_eleve_urls=evaluation.ressources_eleve_urls or [],
            modalite_evaluation_autre_texte=evaluation.modalite_evaluation_autre_texte,
            objectifs=[ObjectifResponse.model_validate(o) for o in objectifs],
            competences=[
                LinkedCompetence(
                    id=c.id, titre_competence=c.titre_competence, description_competence=c.description_competence,
                    type_competence=c.type_competence, unite_id=c.unite_id, resultat=resultat,
                )
                for c, resultat in competences.all()
            ],
            connaissances=[ConnaissanceResponse.model_validate(c) for c in connaissances.scalars().all()],
            modalites=[ModaliteResponse.model_validate(m) for m in modalites.scalars().all()],
            capacites_habiletes=[
                LinkedCapacite(id=c.id, titre_capacite_habilete=c.titre_capacite_habilete, resultat=resultat)
                for c, resultat in capacites.all()
            ],
            contenu_blocs=[ContentBlockResponse.model_validate(b) for b in blocks.scalars().all()],
        )

    @staticmethod
    async def list_evaluations(
        db: AsyncSession,
        chapitre_id: Optional[int] = None,
        unite_id: Optional[int] = None,
        option_id: Optional[int] = None,
        niveau_id: Optional[int] = None,
        type_evaluation: Optional[str] = None,
        sequence_id: Optional[int] = None,
        activite_id: Optional[int] = None,
        search: Optional[str] = None,
    ) -> List[EvaluationSummary]:
        query = filter_by_hierarchy(select(Evaluation), Evaluation.chapitre_id, chapitre_id, unite_id, option_id, niveau_id)
        if type_evaluation:
            query = query.where(Evaluation.type_evaluation == type_evaluation)
        if sequence_id is not None:
            query = query.where(Evaluation.sequence_id == sequence_id)
        if activite_id is not None:
            query = query.where(Evaluation.activite_id == activite_id)
        if search and search.strip():
            query = query.where(Evaluation.titre_evaluation.ilike(f"%{search.strip()}%"))
        result = await db.execute(query.order_by(Evaluation.titre_evaluation))
        evaluations = result.scalars().all()

        paths = await HierarchyService.hierarchy_paths(db, [e.chapitre_id for e in evaluations])
        return [
            EvaluationSummary(**_summary_fields(e), hierarchy=paths.get(e.chapitre_id, HierarchyPath()))
            for e in evaluations
        ]

    @staticmethod
    async def record_resultats(db: AsyncSession, evaluation_id: int, data: ResultatsRequest) -> EvaluationResponse:
        """Store the result noted for each linked competence or capacity. Blank clears it."""
        async with transaction(db, f"Recording results of evaluation {evaluation_id}"):
            await get_or_404(db, Evaluation, evaluation_id, "L'évaluation")
            await _set_resultats(db, EvaluationCompetence, "competence_id", evaluation_id,
                                 data.competences, "La compétence")
            await _set_resultats(db, EvaluationCapaciteHabilete, "capacite_habilete_id", evaluation_id,
                                 data.capacites_habiletes, "La capacité/habileté")

        logger.info(
            "Recorded %s competence and %s capacity result(s) for evaluation %s",
            len(data.competences), len(data.capacites_habiletes), evaluation_id,
        )
        return await EvaluationService.get(db, evaluation_id)

    @staticmethod
    async def delete(db: AsyncSession, evaluation_id: int) -> None:
        async with transaction(db, f"Deleting evaluation {evaluation_id}"):
            evaluation = await get_or_404(db, Evaluation, evaluation_id, "L'évaluation")
            await db.delete(evaluation)
        logger.info("Deleted evaluation %s", evaluation_id)


def _summary_fields(evaluation: Evaluation) -> dict:
    return {
        "id": evaluation.id,
        "titre_evaluation": evaluation.titre_evaluation,
        "type_evaluation": evaluation.type_evaluation,
        "chapitre_id": evaluation.chapitre_id,
        "sequence_id": evaluation.sequence_id,
        "activite_id": evaluation.activite_id,
        "created_at": evaluation.created_at,
        "date_mise_a_jour": evaluation.date_mise_a_jour,
    }
