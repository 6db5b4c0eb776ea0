"""Document gateway — operation PDFs rendered with ReportLab.

Kinds:
  task_order     — field team task order (team + procedure checklist + signatures)
  plan           — planning approval sent to the company (details, contacts, scope)
  result_report  — screening result letter (scope + physician sign-off)

Input is a resolved bundle:
    {"appointment": {...}, "company": {...} | None, "staff": [...], "tests": [...]}

Returns PDF bytes. Any rendering failure is raised as CollaboratorError;
nothing is retried.
"""

from __future__ import annotations

import io
import logging
from datetime import date
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import cm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from app.core.exceptions import CollaboratorError, ValidationError
from app.models.operation import TYPE_LABELS
from app.services.duration import format_duration
from app.utils.helpers import parse_date

logger = logging.getLogger(__name__)

DOCUMENT_KINDS = ("task_order", "plan", "result_report")

DOCUMENT_TITLES = {
    "task_order": "SAHA GÖREV EMRİ",
    "plan": "SAĞLIK TARAMASI PLANI",
    "result_report": "TARAMA SONUÇ RAPORU",
}

PRIMARY = colors.HexColor("#2563eb")
DARK = colors.HexColor("#1e293b")
LIGHT_BG = colors.HexColor("#f1f5f9")


def _text(value) -> str:
    return escape(str(value)) if value not in (None, "") else "-"


def _date_label(value) -> str:
    parsed = parse_date(value)
    return parsed.strftime("%d.%m.%Y") if parsed else "-"


class OperationDocumentBuilder:
    """Builds one PDF for one operation bundle."""

    def __init__(self, kind: str, bundle: dict, institution_name: str = "") -> None:
        self.kind = kind
        self.appointment = bundle.get("appointment") or {}
        self.company = bundle.get("company") or {}
        self.staff = bundle.get("staff") or []
        self.tests = bundle.get("tests") or []
        self.institution_name = institution_name

        styles = getSampleStyleSheet()
        self.title_style = ParagraphStyle(
            "DocTitle", parent=styles["Heading1"], fontSize=18,
            textColor=PRIMARY, alignment=1, spaceAfter=6,
        )
        self.heading_style = ParagraphStyle(
            "DocHeading", parent=styles["Heading2"], fontSize=12,
            textColor=DARK, spaceBefore=14, spaceAfter=6,
        )
        self.body_style = ParagraphStyle(
            "DocBody", parent=styles["Normal"], fontSize=10, textColor=DARK, leading=14,
        )
        self.small_style = ParagraphStyle(
            "DocSmall", parent=self.body_style, fontSize=8, textColor=colors.grey,
        )

    # ── Building blocks ──────────────────────────────────────────────────

    def _header(self) -> list:
        story = []
        if self.institution_name:
            story.append(Paragraph(_text(self.institution_name), self.small_style))
        story.append(Paragraph(DOCUMENT_TITLES[self.kind], self.title_style))
        story.append(Paragraph(
            f"{_text(self.company.get('name'))} - {_date_label(self.appointment.get('date'))}",
            self.body_style,
        ))
        story.append(Spacer(1, 0.4 * cm))
        return story

    def _table(self, rows: list[list], widths: list[float], header: bool = True) -> Table:
        table = Table(rows, colWidths=widths)
        commands = [
            ("FONTSIZE", (0, 0), (-1, -1), 9),
            ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
            ("LINEBELOW", (0, 0), (-1, -1), 0.25, colors.lightgrey),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
        ]
        if header:
            commands += [
                ("BACKGROUND", (0, 0), (-1, 0), LIGHT_BG),
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
            ]
        table.setStyle(TableStyle(commands))
        return table

    def _details(self) -> list:
        appt = self.appointment
        rows = [
            ["Görev No", f"#{appt.get('id', '')}"],
            ["Başlık", appt.get("title") or "-"],
            ["Tarih", _date_label(appt.get("date"))],
            ["Saat", f"{appt.get('start_time') or '-'} - {appt.get('end_time') or '-'}"],
            ["Süre", format_duration(appt.get("duration_minutes"))],
            ["Tür", TYPE_LABELS.get(appt.get("type"), appt.get("type") or "-")],
            ["Konum", self.company.get("address") or "-"],
        ]
        return [
            Paragraph("OPERASYON DETAYLARI", self.heading_style),
            self._table(rows, [4 * cm, 12 * cm], header=False),
        ]

    def _contacts(self) -> list:
        rows = [
            ["Firma Yetkilisi", self.company.get("authorized_person") or "-"],
            ["Telefon", self.company.get("phone") or "-"],
            ["E-Posta", self.company.get("email") or "-"],
        ]
        return [
            Paragraph("İLETİŞİM BİLGİLERİ", self.heading_style),
            self._table(rows, [4 * cm, 12 * cm], header=False),
        ]

    def _scope(self, checklist: bool = False) -> list:
        if not self.tests:
            return [
                Paragraph("TARAMA KAPSAMI", self.heading_style),
                Paragraph("* Özel test tanımlanmamıştır.", self.small_style),
            ]
        if checklist:
            rows = [["#", "HİZMET / TEST ADI", "KATEGORİ", "KONTROL"]]
            rows += [
                [str(i), t.get("name") or "-", t.get("category") or "-", "[   ] Tamamlandı"]
                for i, t in enumerate(self.tests, start=1)
            ]
            widths = [1 * cm, 7 * cm, 4 * cm, 4 * cm]
        else:
            rows = [["HİZMET ADI", "KATEGORİ"]]
            rows += [[t.get("name") or "-", t.get("category") or "-"] for t in self.tests]
            widths = [10 * cm, 6 * cm]
        return [Paragraph("TARAMA KAPSAMI", self.heading_style), self._table(rows, widths)]

    def _team(self, with_signature: bool = False) -> list:
        header = ["#", "PERSONEL ADI", "ÜNVAN / GÖREV"]
        if with_signature:
            header.append("İMZA")
        rows = [header]
        for i, member in enumerate(self.staff, start=1):
            row = [str(i), member.get("name") or "-", member.get("title") or "-"]
            if with_signature:
                row.append("")
            rows.append(row)
        widths = [1 * cm, 7 * cm, 5 * cm] + ([3 * cm] if with_signature else [])
        return [Paragraph("GÖREVLİ SAHA EKİBİ", self.heading_style), self._table(rows, widths)]

    def _signatures(self, left: str, right: str) -> list:
        rows = [[left, right], ["\n........................................"] * 2]
        return [Spacer(1, 1 * cm), self._table(rows, [8 * cm, 8 * cm], header=False)]

    # ── Kinds ────────────────────────────────────────────────────────────

    def _story(self) -> list:
        story = self._header()
        if self.kind == "task_order":
            story += self._details()
            story += self._team(with_signature=True)
            story += self._scope(checklist=True)
            story.append(Paragraph("SAHA NOTLARI", self.heading_style))
            story.append(Spacer(1, 2 * cm))
            story += self._signatures("EKİP LİDERİ", "FİRMA YETKİLİSİ (TESLİM ALAN)")
        elif self.kind == "plan":
            story += self._details()
            story += self._contacts()
            story += self._scope()
            story += self._team()
            story.append(Spacer(1, 0.5 * cm))
            story.append(Paragraph(
                "Not: Lütfen tarama saatinden 15 dakika önce personellerinizin hazır "
                "bulunmasını sağlayınız.",
                self.small_style,
            ))
        else:
            story.append(Paragraph(
                f"Sayın {_text(self.company.get('name'))} Yetkilisi,", self.body_style,
            ))
            story.append(Paragraph(
                f"Rapor Tarihi: {date.today().strftime('%d.%m.%Y')}", self.small_style,
            ))
            story += self._details()
            story += self._scope()
            story.append(Paragraph("GENEL DEĞERLENDİRME &amp; HEKİM GÖRÜŞÜ", self.heading_style))
            story.append(Spacer(1, 2 * cm))
            story += self._signatures("ONAYLAYAN HEKİM", "TESLİM ALAN")
        return story

    def build(self) -> bytes:
        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            leftMargin=2 * cm,
            rightMargin=2 * cm,
            topMargin=1.5 * cm,
            bottomMargin=1.5 * cm,
            title=f"{DOCUMENT_TITLES[self.kind]} - {self.appointment.get('title', '')}",
        )
        doc.build(self._story())
        return buffer.getvalue()


class DocumentGateway:
    """Renders operation documents; the only entry point services use."""

    def __init__(self, institution_name: str = "") -> None:
        self.institution_name = institution_name

    def render(self, kind: str, bundle: dict) -> bytes:
        if kind not in DOCUMENT_KINDS:
            raise ValidationError(
                f"Invalid document kind. Must be one of: {list(DOCUMENT_KINDS)}",
                details={"kind": kind},
            )
        appointment_id = (bundle.get("appointment") or {}).get("id")
        try:
            pdf = OperationDocumentBuilder(kind, bundle, self.institution_name).build()
        except Exception as exc:
            logger.exception("Document render failed kind=%s appointment_id=%s", kind, appointment_id)
            raise CollaboratorError("documents", f"{kind} generation failed") from exc
        logger.info(
            "Document rendered",
            extra={"event_type": "document_rendered", "kind": kind,
                   "appointment_id": appointment_id, "bytes": len(pdf)},
        )
        return pdf


def build_document_gateway(config) -> DocumentGateway:
    return DocumentGateway(config.get("INSTITUTION_NAME") or "")
