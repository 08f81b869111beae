import logging
from typing import Iterable, List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from planipeda.database import transaction
from planipeda.errors import ConflictError, InvalidDataError, NotFoundError
from planipeda.models.curriculum import Niveau, Option
from planipeda.models.student import AbsenceEleve, Classe, Eleve, NoteEleve
from planipeda.schemas.student_schema import (
    AbsenceRequest, ClasseNotesLine, ClasseNotesResponse, ClasseRequest, ClasseResponse, EleveDetail, EleveRequest,
    NotesRequest, NotesResponse,
)
from planipeda.services.relations import ensure_no_children, get_or_404, require_text

logger = logging.getLogger(__name__)

NOTE_FIELDS = ("cc1", "cc2", "cc3", "c_act")
NOTE_MIN, NOTE_MAX = 0, 20


def moyenne(values: Iterable[Optional[float]]) -> Optional[float]:
    """Mean of the filled grades, None when nothing is graded yet."""
    filled = [v for v in values if v is not None]
    if not filled:
        return None
    return round(sum(filled) / len(filled), 2)


def _notes_fields(eleve_id: int, note: Optional[NoteEleve]) -> dict:
    values = {field: getattr(note, field) if note else None for field in NOTE_FIELDS}
    return {
        "eleve_id": eleve_id,
        **values,
        "moyenne": moyenne(values.values()),
        "updated_at": note.updated_at if note else None,
    }


async def _note_of(db: AsyncSession, eleve_id: int) -> Optional[NoteEleve]:
    result = await db.execute(select(NoteEleve).where(NoteEleve.eleve_id == eleve_id))
    return result.scalars().first()


class StudentService:
    # --- Classes ---

    @staticmethod
    async def list_classes(
        db: AsyncSession,
        niveau_id: Optional[int] = None,
        option_id: Optional[int] = None,
        annee_scolaire: Optional[str] = None,
    ) -> list:
        query = select(Classe)
        if niveau_id is not None:
            query = query.where(Classe.niveau_id == niveau_id)
        if option_id is not None:
            query = query.where(Classe.option_id == option_id)
        if annee_scolaire:
            query = query.where(Classe.annee_scolaire == annee_scolaire)
        result = await db.execute(query.order_by(Classe.nom_classe, Classe.id))
        return result.scalars().all()

    @staticmethod
    async def get_class(db: AsyncSession, classe_id: int) -> Classe:
        return await get_or_404(db, Classe, classe_id, "La classe")

    @staticmethod
    async def _clean_class(db: AsyncSession, data: ClasseRequest) -> dict:
        values = data.model_dump()
        values["nom_classe"] = require_text(data.nom_classe, "Le nom de la classe est obligatoire.")
        values["annee_scolaire"] = (data.annee_scolaire or "").strip() or None
        if data.niveau_id is not None:
            await get_or_404(db, Niveau, data.niveau_id, "Le niveau")
        if data.option_id is not None:
            option = await get_or_404(db, Option, data.option_id, "L'option")
            if data.niveau_id is not None and option.niveau_id != data.niveau_id:
                raise InvalidDataError(f"L'option {option.id} n'appartient pas au niveau {data.niveau_id}.")
        return values

    @staticmethod
    async def create_class(db: AsyncSession, data: ClasseRequest) -> Classe:
        async with transaction(db, "Creating class"):
            classe = Classe(**await StudentService._clean_class(db, data))
            db.add(classe)
            await db.flush()
        logger.info("Created class %s (%s)", classe.id, classe.nom_classe)
        return classe

    @staticmethod
    async def update_class(db: AsyncSession, classe_id: int, data: ClasseRequest) -> Classe:
        async with transaction(db, f"Updating class {classe_id}"):
            classe = await StudentService.get_class(db, classe_id)
            for key, value in (await StudentService._clean_class(db, data)).items():
                setattr(classe, key, value)
        logger.info("Updated class %s", classe_id)
        return classe

    @staticmethod
    async def delete_class(db: AsyncSession, classe_id: int) -> None:
        async with transaction(db, f"Deleting class {classe_id}"):
            classe = await StudentService.get_class(db, classe_id)
            await ensure_no_children(db, "la classe", [(Eleve, Eleve.classe_id == classe_id, "élève(s)")])
            await db.delete(classe)
        logger.info("Deleted class %s", classe_id)

    # --- Students ---

    @staticmethod
    async def list_students(db: AsyncSession, classe_id: Optional[int] = None, search: Optional[str] = None) -> list:
        query = select(Eleve)
        if classe_id is not None:
            query = query.where(Eleve.classe_id == classe_id)
        if search and search.strip():
            pattern = f"%{search.strip()}%"
            query = query.where(or_(Eleve.code_eleve.ilike(pattern), Eleve.nom.ilike(pattern), Eleve.prenom.ilike(pattern)))
        result = await db.execute(query.order_by(Eleve.nom, Eleve.prenom, Eleve.id))
        return result.scalars().all()

    @staticmethod
    async def get_student(db: AsyncSession, eleve_id: int) -> EleveDetail:
        eleve = await get_or_404(db, Eleve, eleve_id, "L'élève")
        classe = await db.get(Classe, eleve.classe_id)
        result = await db.execute(
            select(func.coalesce(func.sum(AbsenceEleve.heures), 0)).where(AbsenceEleve.eleve_id == eleve_id)
        )
        return EleveDetail(
            id=eleve.id,
            code_eleve=eleve.code_eleve,
            nom=eleve.nom,
            prenom=eleve.prenom,
            date_naissance=eleve.date_naissance,
            classe_id=eleve.classe_id,
            created_at=eleve.created_at,
            nom_classe=classe.nom_classe if classe else None,
            total_heures_absence=result.scalar_one(),
        )

    @staticmethod
    async def _clean_student(db: AsyncSession, data: EleveRequest, eleve_id: Optional[int] = None) -> dict:
        code = require_text(data.code_eleve, "Le code élève est obligatoire.")
        nom = require_text(data.nom, "Le nom de l'élève est obligatoire.")
        prenom = require_text(data.prenom, "Le prénom de l'élève est obligatoire.")
        if data.classe_id is None:
            raise InvalidDataError("Veuillez sélectionner une classe valide.")
        await get_or_404(db, Classe, data.classe_id, "La classe")

        query = select(Eleve.id).where(Eleve.code_eleve == code)
        if eleve_id is not None:
            query = query.where(Eleve.id != eleve_id)
        if (await db.execute(query)).first() is not None:
            raise ConflictError(f"Le code élève {code} est déjà utilisé.")

        return {
            "code_eleve": code,
            "nom": nom,
            "prenom": prenom,
            "date_naissance": data.date_naissance,
            "classe_id": data.classe_id,
        }

    @staticmethod
    async def create_student(db: AsyncSession, data: EleveRequest) -> EleveDetail:
        async with transaction(db, "Creating student"):
            eleve = Eleve(**await StudentService._clean_student(db, data))
            db.add(eleve)
            await db.flush()
        logger.info("Created student %s in class %s", eleve.id, eleve.classe_id)
        return await StudentService.get_student(db, eleve.id)

    @staticmethod
    async def update_student(db: AsyncSession, eleve_id: int, data: EleveRequest) -> EleveDetail:
        async with transaction(db, f"Updating student {eleve_id}"):
            eleve = await get_or_404(db, Eleve, eleve_id, "L'élève")
            for key, value in (await StudentService._clean_student(db, data, eleve_id)).items():
                setattr(eleve, key, value)
        logger.info("Updated student %s", eleve_id)
        return await StudentService.get_student(db, eleve_id)

    @staticmethod
    async def delete_student(db: AsyncSession, eleve_id: int) -> None:
        # Grades and absences go with the row (ON DELETE CASCADE)
        async with transaction(db, f"Deleting student {eleve_id}"):
            eleve = await get_or_404(db, Eleve, eleve_id, "L'élève")
            await db.delete(eleve)
        logger.info("Deleted student %s", eleve_id)

    # --- Grades ---

    @staticmethod
    async def get_notes(db: AsyncSession, eleve_id: int) -> NotesResponse:
        await get_or_404(db, Eleve, eleve_id, "L'élève")
        return NotesResponse(**_notes_fields(eleve_id, await _note_of(db, eleve_id)))

    @staticmethod
    async def save_notes(db: AsyncSession, eleve_id: int, data: NotesRequest) -> NotesResponse:
        """Upsert the grade row of a student. Every given grade is out of 20."""
        values = data.model_dump()
        async with transaction(db, f"Saving grades of student {eleve_id}"):
            await get_or_404(db, Eleve, eleve_id, "L'élève")
            if any(v is not None and not NOTE_MIN <= v <= NOTE_MAX for v in values.values()):
                raise InvalidDataError("Les notes doivent être comprises entre 0 et 20.")

            note = await _note_of(db, eleve_id)
            if note is None:
                note = NoteEleve(eleve_id=eleve_id)
                db.add(note)
            for key, value in values.items():
                setattr(note, key, value)
            await db.flush()

        logger.info("Saved grades of student %s", eleve_id)
        return NotesResponse(**_notes_fields(eleve_id, note))

    @staticmethod
    async def class_notes(db: AsyncSession, classe_id: int) -> ClasseNotesResponse:
        classe = await StudentService.get_class(db, classe_id)
        result = await db.execute(
            select(Eleve, NoteEleve)
            .outerjoin(NoteEleve, NoteEleve.eleve_id == Eleve.id)
            .where(Eleve.classe_id == classe_id)
            .order_by(Eleve.nom, Eleve.prenom, Eleve.id)
        )
        return ClasseNotesResponse(
            classe=ClasseResponse.model_validate(classe),
            eleves=[
                ClasseNotesLine(code_eleve=e.code_eleve, nom=e.nom, prenom=e.prenom, **_notes_fields(e.id, note))
                for e, note in result.all()
            ],
        )

    # --- Absences ---

    @staticmethod
    async def list_absences(db: AsyncSession, eleve_id: int) -> List[AbsenceEleve]:
        await get_or_404(db, Eleve, eleve_id, "L'élève")
        result = await db.execute(
            select(AbsenceEleve)
            .where(AbsenceEleve.eleve_id == eleve_id)
            .order_by(AbsenceEleve.date_absence.desc(), AbsenceEleve.id.desc())
        )
        return result.scalars().all()

    @staticmethod
    async def add_absence(db: AsyncSession, eleve_id: int, data: AbsenceRequest) -> AbsenceEleve:
        async with transaction(db, f"Adding absence of student {eleve_id}"):
            await get_or_404(db, Eleve, eleve_id, "L'élève")
            if data.heures <= 0:
                raise InvalidDataError("Le nombre d'heures d'absence doit être positif.")
            absence = AbsenceEleve(
                eleve_id=eleve_id,
                date_absence=data.date_absence,
                heures=data.heures,
                motif=(data.motif or "").strip() or None,
            )
            db.add(absence)
            await db.flush()
        logger.info("Added absence %s (%sh) for student %s", absence.id, absence.heures, eleve_id)
        return absence

    @staticmethod
    async def delete_absence(db: AsyncSession, eleve_id: int, absence_id: int) -> None:
        async with transaction(db, f"Deleting absence {absence_id}"):
            absence = await db.get(AbsenceEleve, absence_id)
            if absence is None or absence.eleve_id != eleve_id:
                raise NotFoundError(f"L'absence {absence_id} introuvable.")
            await db.delete(absence)
        logger.info("Deleted absence %s of student %s", absence_id, eleve_id)
