from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from planipeda.models.activity import Activite
from planipeda.models.curriculum import (
    CapaciteHabilete, Chapitre, Competence, Connaissance, Modalite, Niveau, Objectif, Option, Unite,
)
from planipeda.models.evaluation import Evaluation
from planipeda.models.planning import Chapfiche, StatutFiche
from planipeda.models.sequence import Sequence
from planipeda.models.student import Classe, Eleve

COUNTED = {
    "niveaux": Niveau,
    "options": Option,
    "unites": Unite,
    "chapitres": Chapitre,
    "objectifs": Objectif,
    "competences": Competence,
    "connaissances": Connaissance,
    "capacites": CapaciteHabilete,
    "modalites": Modalite,
    "activites": Activite,
    "evaluations": Evaluation,
    "sequences": Sequence,
    "fiches": Chapfiche,
    "classes": Classe,
    "eleves": Eleve,
}


class DashboardService:
    @staticmethod
    async def stats(db: AsyncSession, recent: int = 5) -> dict:
        counts = {}
        for name, model in COUNTED.items():
            result = await db.execute(select(func.count()).select_from(model))
            counts[name] = result.scalar_one()

        fiches_par_statut = {statut: 0 for statut in StatutFiche.ALL}
        result = await db.execute(select(Chapfiche.statut, func.count()).group_by(Chapfiche.statut))
        for statut, count in result.all():
            key = statut if statut in StatutFiche.ALL else StatutFiche.BROUILLON
            fiches_par_statut[key] += count

        result = await db.execute(
            select(Chapfiche, Chapitre.titre_chapitre)
            .join(Chapitre, Chapfiche.chapitre_id == Chapitre.id)
            .order_by(Chapfiche.updated_at.desc(), Chapfiche.id.desc())
            .limit(recent)
        )
        recentes = [
            {
                "id": fiche.id,
                "nomFichePlanification": fiche.nom_fiche_planification,
                "titreChapitre": titre,
                "statut": fiche.statut,
                "updatedAt": fiche.updated_at,
            }
            for fiche, titre in result.all()
        ]

        return {"counts": counts, "fiches_par_statut": fiches_par_statut, "fiches_recentes": recentes}
