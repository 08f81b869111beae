import logging
from typing import Dict, List, Optional, Tuple

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from planipeda.database import transaction
from planipeda.errors import InvalidDataError, NotFoundError
from planipeda.models.activity import Activite
from planipeda.models.curriculum import Chapitre
from planipeda.models.evaluation import Evaluation
from planipeda.models.planning import (
    Chapfiche, ChapficheActivite, ChapficheEvaluation, ChapficheSequence, StatutFiche,
)
from planipeda.models.sequence import Sequence
from planipeda.schemas.planning_schema import (
    AddItemRequest, FicheSummary, MoveItemRequest, PlanChapitre, ProgressionItem,
)
from planipeda.services import ordering
from planipeda.services.hierarchy_service import HierarchyService, filter_by_hierarchy
from planipeda.services.relations import ensure_exist, ensure_no_duplicates, get_or_404
from planipeda.utils.time_utils import get_local_time

logger = logging.getLogger(__name__)


class Source:
    """Where a progression item type lives: its link table and its master table."""

    def __init__(self, prefix, link_model, link_column, model, title_field, description_field, label):
        self.prefix = prefix
        self.link_model = link_model
        self.link_column = link_column
        self.model = model
        self.title_field = title_field
        self.description_field = description_field
        self.label = label


SOURCES: Dict[str, Source] = {
    "sequence": Source("seq", ChapficheSequence, "sequence_id", Sequence,
                       "titre_sequence", "description", "Séquence(s)"),
    "activity": Source("act", ChapficheActivite, "activite_id", Activite,
                       "titre_activite", "description", "Activité(s)"),
    "evaluation": Source("eval", ChapficheEvaluation, "evaluation_id", Evaluation,
                         "titre_evaluation", "consignes_specifiques", "Évaluation(s)"),
}
TYPES_BY_PREFIX = {source.prefix: item_type for item_type, source in SOURCES.items()}


def item_key(item_type: str, source_id: int) -> str:
    return f"{SOURCES[item_type].prefix}-{source_id}"


def parse_item_key(item_id: str) -> Tuple[str, int]:
    prefix, _, raw_id = (item_id or "").partition("-")
    if prefix not in TYPES_BY_PREFIX or not raw_id.isdigit():
        raise NotFoundError(f"Élément de progression inconnu : {item_id}.")
    return TYPES_BY_PREFIX[prefix], int(raw_id)


def format_objectifs(objectifs) -> str:
    return "\n\n".join(f"{o.id}. {o.description_objectif}" for o in objectifs)


def valid_statut(statut: Optional[str]) -> str:
    return statut if statut in StatutFiche.ALL else StatutFiche.BROUILLON


class PlanningService:
    # --- Progression rows: {"type", "sourceId", "ordre"} dicts ---

    @staticmethod
    async def _rows(db: AsyncSession, fiche_id: int) -> List[dict]:
        rows = []
        for item_type, source in SOURCES.items():
            column = getattr(source.link_model, source.link_column)
            result = await db.execute(
                select(column, source.link_model.ordre).where(source.link_model.chapfiche_id == fiche_id)
            )
            rows.extend({"type": item_type, "sourceId": sid, "ordre": ordre} for sid, ordre in result.all())
        return ordering.sort_by_order(rows)

    @staticmethod
    async def _check_sources(db: AsyncSession, rows: List[dict]) -> None:
        ensure_no_duplicates(
            ((row["type"], row["sourceId"]) for row in rows),
            "Un même élément ne peut apparaître qu'une seule fois dans la progression.",
        )
        for item_type, source in SOURCES.items():
            ids = [row["sourceId"] for row in rows if row["type"] == item_type]
            await ensure_exist(db, source.model, ids, source.label)

    @staticmethod
    async def _write(db: AsyncSession, fiche_id: int, rows: List[dict]) -> List[dict]:
        """Replace the whole progression of the fiche, numbered 1..n in list order."""
        rows = ordering.renumber(rows)
        for source in SOURCES.values():
            await db.execute(delete(source.link_model).where(source.link_model.chapfiche_id == fiche_id))
        for row in rows:
            source = SOURCES[row["type"]]
            db.add(source.link_model(**{
                "chapfiche_id": fiche_id,
                source.link_column: row["sourceId"],
                "ordre": row["ordre"],
            }))
        return rows

    @staticmethod
    async def _hydrate(db: AsyncSession, fiche_id: int, rows: List[dict]) -> List[ProgressionItem]:
        details = {}
        for item_type, source in SOURCES.items():
            ids = [row["sourceId"] for row in rows if row["type"] == item_type]
            if not ids:
                continue
            result = await db.execute(select(source.model).where(source.model.id.in_(ids)))
            for obj in result.scalars().all():
                details[(item_type, obj.id)] = (
                    getattr(obj, source.title_field), getattr(obj, source.description_field),
                )
        items = []
        for row in rows:
            titre, description = details.get((row["type"], row["sourceId"]), (None, None))
            items.append(ProgressionItem(
                id=item_key(row["type"], row["sourceId"]),
                type=row["type"],
                sourceId=row["sourceId"],
                ordre=row["ordre"],
                chapficheId=fiche_id,
                titre=titre,
                description=description,
            ))
        return items

    @staticmethod
    async def _fiche(db: AsyncSession, fiche_id: int) -> Chapfiche:
        return await get_or_404(db, Chapfiche, fiche_id, "La fiche de planification")

    # --- Load / save ---

    @staticmethod
    async def load(db: AsyncSession, fiche_id: int) -> PlanChapitre:
        fiche = await PlanningService._fiche(db, fiche_id)
        path = await HierarchyService.hierarchy_path(db, fiche.chapitre_id)
        objectifs = await HierarchyService.list_items(db, "objectifs", fiche.chapitre_id)
        rows = await PlanningService._rows(db, fiche_id)

        return PlanChapitre(
            id=fiche.id,
            chapitreReferenceId=fiche.chapitre_id,
            niveauId=path.niveau_id,
            optionId=path.option_id,
            uniteId=path.unite_id,
            titreChapitre=path.titre_chapitre or "",
            objectifsGeneraux=format_objectifs(objectifs),
            objectifsReferencesIds=[o.id for o in objectifs],
            nomFichePlanification=fiche.nom_fiche_planification or "",
            statut=valid_statut(fiche.statut),
            createdBy=fiche.created_by or "",
            createdAt=fiche.date_creation,
            updatedAt=fiche.updated_at,
            progressionItems=await PlanningService._hydrate(db, fiche_id, rows),
        )

    @staticmethod
    async def save(db: AsyncSession, plan: PlanChapitre, fiche_id: Optional[int] = None) -> PlanChapitre:
        """
        Create or update a fiche with its whole progression.

        Items are sorted by their `ordre`, renumbered 1..n and the three link
        tables are rewritten. Everything happens in one transaction.
        """
        action = f"Updating fiche {fiche_id}" if fiche_id else "Creating fiche"
        async with transaction(db, action):
            if not plan.chapitreReferenceId:
                raise InvalidDataError("Veuillez sélectionner un chapitre de référence avant d'enregistrer.")
            await get_or_404(db, Chapitre, plan.chapitreReferenceId, "Le chapitre")

            rows = ordering.sort_by_order(
                {"type": item.type, "sourceId": item.sourceId, "ordre": item.ordre} for item in plan.progressionItems
            )
            await PlanningService._check_sources(db, rows)

            if fiche_id is None:
                fiche = Chapfiche()
                db.add(fiche)
            else:
                fiche = await PlanningService._fiche(db, fiche_id)

            if plan.statut not in StatutFiche.ALL:
                logger.warning("Unknown fiche statut %r, falling back to %s", plan.statut, StatutFiche.BROUILLON)
            fiche.chapitre_id = plan.chapitreReferenceId
            fiche.statut = valid_statut(plan.statut)
            fiche.nom_fiche_planification = (plan.nomFichePlanification or "").strip() or None
            if plan.createdBy is not None:
                fiche.created_by = plan.createdBy
            await db.flush()

            rows = await PlanningService._write(db, fiche.id, rows)

        logger.info("Saved fiche %s with %s progression item(s)", fiche.id, len(rows))
        return await PlanningService.load(db, fiche.id)

    # --- Progression editing ---

    @staticmethod
    async def add_item(db: AsyncSession, fiche_id: int, item: AddItemRequest) -> PlanChapitre:
        source = SOURCES[item.type]
        async with transaction(db, f"Adding {item.type} {item.sourceId} to fiche {fiche_id}"):
            fiche = await PlanningService._fiche(db, fiche_id)
            rows = await PlanningService._rows(db, fiche_id)
            new_row = {"type": item.type, "sourceId": item.sourceId, "ordre": ordering.next_order(rows)}
            await PlanningService._check_sources(db, rows + [new_row])

            db.add(source.link_model(**{
                "chapfiche_id": fiche_id,
                source.link_column: item.sourceId,
                "ordre": new_row["ordre"],
            }))
            fiche.updated_at = get_local_time()

        logger.info("Added %s to fiche %s at position %s", item_key(item.type, item.sourceId), fiche_id, new_row["ordre"])
        return await PlanningService.load(db, fiche_id)

    @staticmethod
    async def remove_item(db: AsyncSession, fiche_id: int, item_id: str) -> PlanChapitre:
        item_type, source_id = parse_item_key(item_id)
        async with transaction(db, f"Removing {item_id} from fiche {fiche_id}"):
            fiche = await PlanningService._fiche(db, fiche_id)
            rows = await PlanningService._rows(db, fiche_id)
            remaining = [r for r in rows if (r["type"], r["sourceId"]) != (item_type, source_id)]
            if len(remaining) == len(rows):
                raise NotFoundError(f"L'élément {item_id} ne fait pas partie de la fiche.")

            await PlanningService._write(db, fiche_id, remaining)
            fiche.updated_at = get_local_time()

        logger.info("Removed %s from fiche %s", item_id, fiche_id)
        return await PlanningService.load(db, fiche_id)

    @staticmethod
    async def move_item(db: AsyncSession, fiche_id: int, move: MoveItemRequest) -> PlanChapitre:
        async with transaction(db, f"Moving item in fiche {fiche_id}"):
            fiche = await PlanningService._fiche(db, fiche_id)
            rows = await PlanningService._rows(db, fiche_id)

            try:
                if move.fromIndex is not None and move.toIndex is not None:
                    moved = ordering.array_move(rows, move.fromIndex, move.toIndex)
                elif move.itemId and move.direction:
                    keys = [item_key(r["type"], r["sourceId"]) for r in rows]
                    if move.itemId not in keys:
                        raise NotFoundError(f"L'élément {move.itemId} ne fait pas partie de la fiche.")
                    moved = ordering.move_by_direction(rows, keys.index(move.itemId), move.direction)
                else:
                    raise InvalidDataError("Indiquez fromIndex et toIndex, ou itemId et direction.")
            except IndexError as e:
                raise InvalidDataError(f"Déplacement impossible : {e}") from e

            await PlanningService._write(db, fiche_id, moved)
            fiche.updated_at = get_local_time()

        return await PlanningService.load(db, fiche_id)

    @staticmethod
    async def reorder(db: AsyncSession, fiche_id: int, item_ids: List[str]) -> PlanChapitre:
        async with transaction(db, f"Reordering fiche {fiche_id}"):
            fiche = await PlanningService._fiche(db, fiche_id)
            rows = await PlanningService._rows(db, fiche_id)
            by_key = {item_key(r["type"], r["sourceId"]): r for r in rows}

            if len(item_ids) != len(set(item_ids)) or set(item_ids) != set(by_key):
                raise InvalidDataError("Le nouvel ordre doit contenir exactement les éléments de la progression.")

            await PlanningService._write(db, fiche_id, [by_key[key] for key in item_ids])
            fiche.updated_at = get_local_time()

        logger.info("Reordered %s item(s) of fiche %s", len(item_ids), fiche_id)
        return await PlanningService.load(db, fiche_id)

    # --- Listing / deletion ---

    @staticmethod
    async def item_counts(db: AsyncSession, fiche_ids) -> Dict[int, int]:
        counts = {fid: 0 for fid in fiche_ids}
        if not counts:
            return counts
        for source in SOURCES.values():
            link = source.link_model
            result = await db.execute(
                select(link.chapfiche_id, func.count())
                .where(link.chapfiche_id.in_(list(counts)))
                .group_by(link.chapfiche_id)
            )
            for fid, count in result.all():
                counts[fid] += count
        return counts

    @staticmethod
    async def list_fiches(
        db: AsyncSession,
        chapitre_id: Optional[int] = None,
        unite_id: Optional[int] = None,
        option_id: Optional[int] = None,
        niveau_id: Optional[int] = None,
        statut: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[FicheSummary]:
        query = select(Chapfiche, Chapitre.titre_chapitre).join(Chapitre, Chapfiche.chapitre_id == Chapitre.id)
        query = filter_by_hierarchy(query, Chapfiche.chapitre_id, chapitre_id, unite_id, option_id, niveau_id)
        if statut:
            query = query.where(Chapfiche.statut == statut)
        query = query.order_by(Chapfiche.date_creation.desc(), Chapfiche.id.desc())
        if limit:
            query = query.limit(limit)
        result = await db.execute(query)
        rows = result.all()

        counts = await PlanningService.item_counts(db, [fiche.id for fiche, _ in rows])
        return [
            FicheSummary(
                id=fiche.id,
                nomFichePlanification=fiche.nom_fiche_planification,
                statut=valid_statut(fiche.statut),
                chapitreReferenceId=fiche.chapitre_id,
                titreChapitre=titre,
                createdBy=fiche.created_by,
                createdAt=fiche.date_creation,
                updatedAt=fiche.updated_at,
                itemCount=counts.get(fiche.id, 0),
            )
            for fiche, titre in rows
        ]

    @staticmethod
    async def delete(db: AsyncSession, fiche_id: int) -> None:
        async with transaction(db, f"Deleting fiche {fiche_id}"):
            fiche = await PlanningService._fiche(db, fiche_id)
            await db.delete(fiche)
        logger.info("Deleted fiche %s", fiche_id)
