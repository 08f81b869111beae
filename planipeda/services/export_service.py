import io
import logging
import re

from docx import Document
from docx.shared import Pt, RGBColor
from fpdf import FPDF
from sqlalchemy.ext.asyncio import AsyncSession

from planipeda.schemas.curriculum_schema import HierarchyPath
from planipeda.schemas.planning_schema import PlanChapitre
from planipeda.services.hierarchy_service import HierarchyService
from planipeda.services.planning_service import PlanningService

logger = logging.getLogger(__name__)

DOCX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

TYPE_LABELS = {"sequence": "Séquence", "activity": "Activité", "evaluation": "Évaluation"}


def clean_text(text: str) -> str:
    """Clean text to be compatible with FPDF's default latin-1 fonts."""
    if not text:
        return ""
    text = str(text)
    text = text.replace('\r', '')
    text = text.replace('–', '-').replace('—', '-').replace('’', "'").replace('‘', "'")
    text = text.replace('“', '"').replace('”', '"').replace('•', '\x95')
    text = text.replace('œ', 'oe').replace('…', '...')
    # Anything outside latin-1 becomes '?'
    return text.encode('latin-1', 'replace').decode('latin-1')


def strip_html(text: str) -> str:
    if not text:
        return ""
    text = re.sub(r'<br\s*/?>|</p>', '\n', text)
    text = re.sub(r'<[^>]+>', '', text)
    return text.replace('&nbsp;', ' ').strip()


def safe_filename(name: str) -> str:
    # Header values must stay ASCII
    return re.sub(r'[^\w\s-]', '', name or "", flags=re.ASCII).strip().replace(" ", "_") or "fiche"


def export_title(plan: PlanChapitre) -> str:
    return plan.nomFichePlanification or f"Fiche de planification - {plan.titreChapitre}"


def header_lines(plan: PlanChapitre, path: HierarchyPath) -> list:
    created = plan.createdAt.strftime("%d/%m/%Y") if plan.createdAt else "-"
    return [
        ("Niveau - Option", f"{path.nom_niveau or '-'} - {path.nom_option or '-'}"),
        ("Unité", path.titre_unite or "-"),
        ("Chapitre", plan.titreChapitre or "-"),
        ("Date de création", created),
        ("Statut", plan.statut),
    ]


def progression_lines(plan: PlanChapitre) -> list:
    return [
        (f"{item.ordre}. [{TYPE_LABELS.get(item.type, item.type)}] {item.titre or ''}", strip_html(item.description))
        for item in plan.progressionItems
    ]


class ExportService:
    @staticmethod
    async def load(db: AsyncSession, fiche_id: int):
        plan = await PlanningService.load(db, fiche_id)
        path = await HierarchyService.hierarchy_path(db, plan.chapitreReferenceId)
        return plan, path

    @staticmethod
    def to_pdf(plan: PlanChapitre, path: HierarchyPath) -> bytes:
        pdf = FPDF()
        pdf.add_page()

        # Header
        pdf.set_font("Arial", 'B', 16)
        pdf.multi_cell(190, 10, clean_text(export_title(plan)), align='C')
        pdf.ln(4)

        pdf.set_font("Arial", '', 11)
        for label, value in header_lines(plan, path):
            pdf.cell(0, 7, clean_text(f"{label} : {value}"), ln=True)
        pdf.ln(4)

        pdf.set_font("Arial", 'B', 13)
        pdf.cell(0, 9, clean_text("Objectifs généraux"), ln=True)
        pdf.set_font("Arial", '', 11)
        pdf.set_x(10)
        pdf.multi_cell(0, 7, clean_text(plan.objectifsGeneraux or "Aucun objectif."))
        pdf.ln(4)

        pdf.set_font("Arial", 'B', 13)
        pdf.cell(0, 9, clean_text("Progression"), ln=True)
        lines = progression_lines(plan)
        if not lines:
            pdf.set_font("Arial", 'I', 11)
            pdf.cell(0, 7, clean_text("Aucun élément dans la progression."), ln=True)
        for title, description in lines:
            pdf.set_font("Arial", 'B', 11)
            pdf.set_x(10)
            pdf.multi_cell(0, 7, clean_text(title))
            if description:
                pdf.set_font("Arial", '', 10)
                pdf.set_x(10)
                pdf.multi_cell(0, 6, clean_text(description))
            pdf.ln(2)

        return bytes(pdf.output())

    @staticmethod
    def to_docx(plan: PlanChapitre, path: HierarchyPath) -> io.BytesIO:
        doc = Document()

        h0 = doc.add_heading(export_title(plan), 0)
        h0.alignment = 1 # Center
        for run in h0.runs:
            run.font.color.rgb = RGBColor(0, 0, 0)

        for label, value in header_lines(plan, path):
            p = doc.add_paragraph()
            p.add_run(f"{label} : ").bold = True
            p.add_run(value)

        doc.add_heading("Objectifs généraux", level=1)
        for block in (plan.objectifsGeneraux or "Aucun objectif.").split("\n\n"):
            doc.add_paragraph(block)

        doc.add_heading("Progression", level=1)
        lines = progression_lines(plan)
        if not lines:
            doc.add_paragraph("Aucun élément dans la progression.").runs[0].italic = True
        for title, description in lines:
            p = doc.add_paragraph()
            run = p.add_run(title)
            run.bold = True
            run.font.size = Pt(11)
            if description:
                doc.add_paragraph(description)

        file_stream = io.BytesIO()
        doc.save(file_stream)
        file_stream.seek(0)
        return file_stream
