"""
Proposal PDF rendering.

Two stages:
1. build_document_model() turns {proposal, client, items} into a
   ProposalDocumentModel where every figure is already computed and
   formatted. Totals come from the items passed in, never from the
   proposal's stored snapshot.
2. render_proposal_pdf() lays the model out with reportlab platypus.
   The header band and the footer are drawn by the page callback, so they
   repeat on every page; "Página N / M" is stamped by a two-pass canvas once
   the page count is known.

The renderer reads nothing but its arguments.
"""

import enum
import logging
from dataclasses import dataclass, field
from io import BytesIO
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_RIGHT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.pdfgen import canvas
from reportlab.platypus import (
    BaseDocTemplate, PageTemplate, Frame, Paragraph, Spacer, Table, TableStyle, KeepTogether
)

from proposal_manager.exceptions import RenderError, ValidationError
from proposal_manager.services.pricing_service import Discount, ProposalTotals, compute_totals
from proposal_manager.utils.formatters import (
    EM_DASH, format_brl, format_fee_cell, date_br_long, optional_text
)

logger = logging.getLogger(__name__)


# Page geometry (points)
PAGE_MARGIN_X = 40
PAGE_MARGIN_TOP = 20
HEADER_HEIGHT = 88
HEADER_GAP = 18
FOOTER_Y = 24
PAGE_MARGIN_BOTTOM = 56

PILLS_PER_ROW = 4

# Tallest service block kept in the two-column grid; well under one frame
MAX_GRID_ROW_HEIGHT = 300

DEFAULT_INTRO = (
    "A {name} é uma empresa de marketing e tecnologia que ajuda negócios a venderem mais pela "
    "internet, construindo toda a estrutura digital necessária para crescer e performar no online. "
    "Trabalhamos com foco em resultados mensuráveis, entregáveis claros e governança de projeto."
)

DEFAULT_BUSINESS_INFO = {
    'name': 'Vieri Group',
    'subtitle': 'Prestação de Serviço de Marketing',
    'email': 'contato@vierigroup.com',
    'phone': '(48) 99999-9999',
    'initials': 'VG',
    'intro': None,
}


class ProposalTheme(enum.Enum):
    """Document layout variants."""
    PILLS = 'pills'
    CLASSIC = 'classic'


THEME_PALETTES = {
    ProposalTheme.PILLS: {
        'primary': colors.HexColor('#3b0f6f'),
        'primary_light': colors.HexColor('#efe6fb'),
        'accent': colors.HexColor('#6f2bd6'),
        'table_header_bg': colors.HexColor('#faf7fe'),
        'show_pills': True,
        'dash_zero_fees': True,
    },
    ProposalTheme.CLASSIC: {
        'primary': colors.HexColor('#2C3E50'),
        'primary_light': colors.HexColor('#E8F8F5'),
        'accent': colors.HexColor('#3498DB'),
        'table_header_bg': colors.HexColor('#ECF0F1'),
        'show_pills': False,
        'dash_zero_fees': False,
    },
}

TEXT_DARK = colors.HexColor('#222222')
TEXT_MUTED = colors.HexColor('#6e6e6e')
LINE = colors.HexColor('#d9d9d9')
DISCOUNT_RED = colors.HexColor('#c0392b')


def coerce_theme(theme: Union['ProposalTheme', str, None]) -> 'ProposalTheme':
    if theme is None:
        return ProposalTheme.PILLS
    if isinstance(theme, ProposalTheme):
        return theme
    try:
        return ProposalTheme(str(theme).lower())
    except ValueError:
        raise ValidationError(
            f'Tema inválido: {theme!r}. Use {", ".join(t.value for t in ProposalTheme)}.'
        )


@dataclass
class ServiceBlock:
    title: str
    description: str


@dataclass
class InvestmentRow:
    service: str
    monthly: str
    setup: str


@dataclass
class TotalsRow:
    label: str
    value: str
    kind: str = 'normal'  # normal | discount | final


@dataclass
class ProposalDocumentModel:
    """Everything the layout prints, already formatted."""
    theme: ProposalTheme
    title: str
    subtitle: str
    initials: str
    client_label: str
    issue_date: str
    intro: str
    totals: ProposalTotals
    pills: List[str] = field(default_factory=list)
    services: List[ServiceBlock] = field(default_factory=list)
    investment_rows: List[InvestmentRow] = field(default_factory=list)
    totals_rows: List[TotalsRow] = field(default_factory=list)
    observations: Optional[str] = None
    footer_contact: str = ''

    @property
    def final_total_label(self) -> str:
        return self.totals_rows[-1].value

    @property
    def has_discount_row(self) -> bool:
        return any(row.kind == 'discount' for row in self.totals_rows)


def _business(business_info: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    merged = dict(DEFAULT_BUSINESS_INFO)
    for key, value in (business_info or {}).items():
        if value not in (None, ''):
            merged[key] = value
    return merged


def _client_label(client: Mapping[str, Any]) -> str:
    name = optional_text(client.get('name')) or ''
    company = optional_text(client.get('company'))
    return f"{company} {EM_DASH} {name}" if company else name


def build_document_model(proposal: Mapping[str, Any], client: Mapping[str, Any],
                         items: Sequence[Mapping[str, Any]],
                         theme: Union[ProposalTheme, str, None] = None,
                         business_info: Optional[Mapping[str, Any]] = None) -> ProposalDocumentModel:
    """
    Compute and format every value printed on the proposal document.

    Args:
        proposal: {'created_at', 'discount_value' (absolute), 'observations', ...}
        client: {'name', 'company', ...}
        items: [{'service_name', 'plan_name', 'description', 'monthly_fee', 'setup_fee'}]
        theme: ProposalTheme or its value
        business_info: branding overrides (name, subtitle, email, phone, initials, intro)

    Raises:
        RenderError: created_at is not a valid timestamp or a fee is not numeric
    """
    theme = coerce_theme(theme)
    palette = THEME_PALETTES[theme]
    business = _business(business_info)

    try:
        issue_date = date_br_long(proposal.get('created_at'))
    except (ValueError, TypeError) as e:
        raise RenderError(f'Data de emissão inválida: {proposal.get("created_at")!r}') from e

    try:
        totals = compute_totals(items, Discount.absolute(proposal.get('discount_value') or 0))
    except ValidationError as e:
        raise RenderError(f'Valores inválidos na proposta: {e.message}') from e

    fee_cell = format_fee_cell if palette['dash_zero_fees'] else format_brl

    services = []
    investment_rows = []
    pills = []
    for item in items:
        service_name = item.get('service_name') or ''
        plan_name = item.get('plan_name') or ''
        services.append(ServiceBlock(
            title=f"{service_name} {EM_DASH} {plan_name}" if plan_name else service_name,
            description=optional_text(item.get('description')) or 'Descrição não informada.',
        ))
        investment_rows.append(InvestmentRow(
            service=service_name,
            monthly=fee_cell(item.get('monthly_fee')),
            setup=fee_cell(item.get('setup_fee')),
        ))
        if palette['show_pills'] and service_name and service_name not in pills:
            pills.append(service_name)

    totals_rows = [
        TotalsRow('Valor Mensal:', format_brl(totals.monthly)),
        TotalsRow('Implementação:', format_brl(totals.setup)),
    ]
    if totals.discount_amount > 0:
        totals_rows.append(TotalsRow('Desconto:', f"- {format_brl(totals.discount_amount)}", 'discount'))
    totals_rows.append(TotalsRow('Valor Final de Contratação', format_brl(totals.final), 'final'))

    contact = [business['name'], business.get('email'), business.get('phone')]

    return ProposalDocumentModel(
        theme=theme,
        title='Proposta Comercial',
        subtitle=business['subtitle'],
        initials=business['initials'],
        client_label=_client_label(client),
        issue_date=issue_date,
        intro=business['intro'] or DEFAULT_INTRO.format(name=business['name']),
        totals=totals,
        pills=pills,
        services=services,
        investment_rows=investment_rows,
        totals_rows=totals_rows,
        observations=optional_text(proposal.get('observations')),
        footer_contact=' • '.join(part for part in contact if part),
    )


class NumberedCanvas(canvas.Canvas):
    """Defers page output until save() so every page can show 'Página N / M'."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._saved_page_states = []

    def showPage(self):
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self):
        total_pages = len(self._saved_page_states)
        for state in self._saved_page_states:
            self.__dict__.update(state)
            self._draw_page_number(total_pages)
            super().showPage()
        super().save()

    def _draw_page_number(self, total_pages):
        self.saveState()
        self.setFont('Helvetica', 9)
        self.setFillColor(TEXT_MUTED)
        self.drawRightString(
            self._pagesize[0] - PAGE_MARGIN_X, FOOTER_Y,
            f"Página {self._pageNumber} / {total_pages}"
        )
        self.restoreState()


class ProposalDocTemplate(BaseDocTemplate):
    """A4 template whose page callback draws the fixed header band and footer."""

    def __init__(self, buffer, document_model: ProposalDocumentModel, **kwargs):
        self.document_model = document_model
        self.palette = THEME_PALETTES[document_model.theme]
        super().__init__(
            buffer,
            pagesize=A4,
            leftMargin=PAGE_MARGIN_X,
            rightMargin=PAGE_MARGIN_X,
            topMargin=PAGE_MARGIN_TOP + HEADER_HEIGHT + HEADER_GAP,
            bottomMargin=PAGE_MARGIN_BOTTOM,
            title=f"Proposta Comercial - {document_model.client_label}",
            author=document_model.footer_contact.split(' • ')[0],
            creator='proposal-manager',
            invariant=True,
            **kwargs
        )
        frame = Frame(
            self.leftMargin, self.bottomMargin, self.width, self.height,
            id='content', leftPadding=0, rightPadding=0, topPadding=0, bottomPadding=0
        )
        self.addPageTemplates([PageTemplate(id='proposal', frames=[frame], onPage=self._decorate_page)])

    def _decorate_page(self, canv, doc):
        self._draw_header(canv)
        self._draw_footer(canv)

    def _draw_header(self, canv):
        model = self.document_model
        page_width, page_height = self.pagesize
        x = self.leftMargin
        width = page_width - self.leftMargin - self.rightMargin
        y = page_height - PAGE_MARGIN_TOP - HEADER_HEIGHT

        canv.saveState()
        canv.setFillColor(self.palette['primary'])
        canv.roundRect(x, y, width, HEADER_HEIGHT, 6, stroke=0, fill=1)

        canv.setFillColor(colors.white)
        canv.setFont('Helvetica-Bold', 18)
        canv.drawString(x + 18, y + HEADER_HEIGHT - 38, model.title)
        canv.setFont('Helvetica', 9)
        canv.drawString(x + 18, y + HEADER_HEIGHT - 54, model.subtitle)

        radius = 28
        center_x = x + width - 18 - radius
        center_y = y + HEADER_HEIGHT / 2
        canv.setFillColor(self.palette['accent'])
        canv.circle(center_x, center_y, radius, stroke=0, fill=1)
        canv.setFillColor(colors.white)
        canv.setFont('Helvetica-Bold', 18)
        canv.drawCentredString(center_x, center_y - 6, model.initials)
        canv.restoreState()

    def _draw_footer(self, canv):
        canv.saveState()
        canv.setStrokeColor(LINE)
        canv.setLineWidth(0.5)
        page_width = self.pagesize[0]
        canv.line(PAGE_MARGIN_X, FOOTER_Y + 14, page_width - PAGE_MARGIN_X, FOOTER_Y + 14)
        canv.setFont('Helvetica', 9)
        canv.setFillColor(TEXT_MUTED)
        canv.drawString(PAGE_MARGIN_X, FOOTER_Y, self.document_model.footer_contact)
        canv.restoreState()


def _styles(palette) -> Dict[str, ParagraphStyle]:
    base = getSampleStyleSheet()['Normal']
    return {
        'label': ParagraphStyle('ClientLabel', parent=base, fontName='Helvetica-Bold',
                                fontSize=10, leading=13, textColor=TEXT_DARK),
        'value': ParagraphStyle('ClientValue', parent=base, fontSize=10, leading=13, textColor=TEXT_MUTED),
        'value_right': ParagraphStyle('ClientValueRight', parent=base, fontSize=10, leading=13,
                                      textColor=TEXT_MUTED, alignment=TA_RIGHT),
        'section': ParagraphStyle('SectionTitle', parent=base, fontName='Helvetica-Bold',
                                  fontSize=12, leading=15, textColor=palette['primary'], spaceAfter=8),
        'paragraph': ParagraphStyle('Body', parent=base, fontSize=10, leading=13,
                                    textColor=TEXT_MUTED, spaceAfter=6),
        'pill': ParagraphStyle('Pill', parent=base, fontName='Helvetica-Bold', fontSize=9.5,
                               leading=12, textColor=palette['primary']),
        'service_title': ParagraphStyle('ServiceTitle', parent=base, fontName='Helvetica-Bold',
                                        fontSize=10, leading=13, textColor=TEXT_DARK),
        'service_desc': ParagraphStyle('ServiceDesc', parent=base, fontSize=9, leading=12,
                                       textColor=TEXT_MUTED, spaceBefore=2, spaceAfter=6),
        'cell': ParagraphStyle('Cell', parent=base, fontSize=10, leading=13, textColor=TEXT_DARK),
    }


def _client_block(model, styles, width):
    table = Table(
        [[
            [Paragraph('Cliente:', styles['label']), Paragraph(escape(model.client_label), styles['value'])],
            [Paragraph('Data de Emissão:', ParagraphStyle('LabelRight', parent=styles['label'], alignment=TA_RIGHT)),
             Paragraph(model.issue_date, styles['value_right'])],
        ]],
        colWidths=[width * 0.6, width * 0.4]
    )
    table.setStyle(TableStyle([
        ('BOX', (0, 0), (-1, -1), 1, TEXT_DARK),
        ('VALIGN', (0, 0), (-1, -1), 'TOP'),
        ('LEFTPADDING', (0, 0), (-1, -1), 8),
        ('RIGHTPADDING', (0, 0), (-1, -1), 8),
        ('TOPPADDING', (0, 0), (-1, -1), 8),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 8),
    ]))
    return table


def _pills_grid(model, styles, palette, width):
    cell_width = width / PILLS_PER_ROW
    pills = []
    for label in model.pills:
        pill = Table([[Paragraph(escape(label), styles['pill'])]], colWidths=[cell_width - 8])
        pill.setStyle(TableStyle([
            ('BACKGROUND', (0, 0), (-1, -1), palette['primary_light']),
            ('ROUNDEDCORNERS', [8, 8, 8, 8]),
            ('TOPPADDING', (0, 0), (-1, -1), 6),
            ('BOTTOMPADDING', (0, 0), (-1, -1), 6),
            ('LEFTPADDING', (0, 0), (-1, -1), 10),
        ]))
        pills.append(pill)

    rows = [pills[i:i + PILLS_PER_ROW] for i in range(0, len(pills), PILLS_PER_ROW)]
    rows[-1] += [''] * (PILLS_PER_ROW - len(rows[-1]))
    grid = Table(rows, colWidths=[cell_width] * PILLS_PER_ROW, hAlign='LEFT')
    grid.setStyle(TableStyle([
        ('LEFTPADDING', (0, 0), (-1, -1), 0),
        ('RIGHTPADDING', (0, 0), (-1, -1), 8),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 8),
        ('VALIGN', (0, 0), (-1, -1), 'TOP'),
    ]))
    return grid


def _service_flowables(block, styles):
    return [
        Paragraph(escape(block.title), styles['service_title']),
        Paragraph(escape(block.description), styles['service_desc']),
    ]


def _block_height(block, styles, width):
    """Height of a service block laid out at width."""
    return sum(
        flowable.wrap(width, MAX_GRID_ROW_HEIGHT * 10)[1]
        for flowable in _service_flowables(block, styles)
    )


def _services_grid(blocks, styles, width):
    cells = [_service_flowables(block, styles) for block in blocks]
    if len(cells) % 2:
        cells.append('')
    rows = [cells[i:i + 2] for i in range(0, len(cells), 2)]
    grid = Table(rows, colWidths=[width / 2, width / 2], hAlign='LEFT')
    grid.setStyle(TableStyle([
        ('VALIGN', (0, 0), (-1, -1), 'TOP'),
        ('LEFTPADDING', (0, 0), (-1, -1), 0),
        ('RIGHTPADDING', (0, 0), (-1, -1), 8),
    ]))
    return grid


def _services_two_columns(blocks, styles, width):
    """
    Two descriptions per row.

    Table rows cannot break across pages, so a block too tall for a row is
    laid out full width as plain paragraphs, which can.
    """
    flowables = []
    pending = []
    for block in blocks:
        if _block_height(block, styles, width / 2 - 8) > MAX_GRID_ROW_HEIGHT:
            if pending:
                flowables.append(_services_grid(pending, styles, width))
                pending = []
            flowables += _service_flowables(block, styles)
        else:
            pending.append(block)
    if pending:
        flowables.append(_services_grid(pending, styles, width))
    return flowables


def _services_section(model, styles, palette, width):
    flowables = [Paragraph('2º Serviços e Benefícios', styles['section'])]

    if not model.services:
        flowables.append(Paragraph('Nenhum serviço incluído.', styles['paragraph']))
        return flowables

    if palette['show_pills'] and model.pills:
        flowables.append(_pills_grid(model, styles, palette, width))

    if model.theme is ProposalTheme.PILLS:
        flowables += _services_two_columns(model.services, styles, width)
    else:
        for block in model.services:
            flowables.append(KeepTogether(_service_flowables(block, styles)))

    return flowables


def _investment_table(model, styles, palette, width):
    data = [['Serviço', 'Mensal', 'Implementação']]
    for row in model.investment_rows:
        data.append([Paragraph(escape(row.service), styles['cell']), row.monthly, row.setup])

    table = Table(data, colWidths=[width * 0.55, width * 0.225, width * 0.225], repeatRows=1)
    table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), palette['table_header_bg']),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 10),
        ('TEXTCOLOR', (0, 0), (-1, -1), TEXT_DARK),
        ('LINEABOVE', (0, 0), (-1, 0), 1, LINE),
        ('LINEBELOW', (0, 0), (-1, -1), 1, LINE),
        ('ALIGN', (1, 0), (-1, -1), 'RIGHT'),
        ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
        ('TOPPADDING', (0, 0), (-1, -1), 6),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 6),
        ('LEFTPADDING', (0, 0), (0, -1), 0),
    ]))
    return table


def _totals_table(model, palette, width):
    data = [[row.label, row.value] for row in model.totals_rows]
    table = Table(data, colWidths=[width * 0.26, width * 0.16], hAlign='RIGHT')

    commands = [
        ('FONTSIZE', (0, 0), (-1, -1), 10),
        ('TEXTCOLOR', (0, 0), (0, -1), TEXT_MUTED),
        ('FONTNAME', (1, 0), (1, -1), 'Helvetica-Bold'),
        ('ALIGN', (1, 0), (1, -1), 'RIGHT'),
        ('TOPPADDING', (0, 0), (-1, -1), 4),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 4),
    ]
    for index, row in enumerate(model.totals_rows):
        if row.kind == 'discount':
            commands.append(('TEXTCOLOR', (0, index), (-1, index), DISCOUNT_RED))
        elif row.kind == 'final':
            commands += [
                ('LINEABOVE', (0, index), (-1, index), 1, LINE),
                ('BACKGROUND', (0, index), (-1, index), palette['primary_light']),
                ('FONTNAME', (0, index), (-1, index), 'Helvetica-Bold'),
                ('TEXTCOLOR', (0, index), (-1, index), palette['primary']),
                ('TOPPADDING', (0, index), (-1, index), 6),
            ]
    table.setStyle(TableStyle(commands))
    return table


def _story(model: ProposalDocumentModel, width: float) -> List[Any]:
    palette = THEME_PALETTES[model.theme]
    styles = _styles(palette)

    story = [_client_block(model, styles, width), Spacer(1, 18)]

    story += [
        Paragraph('1º Introdução', styles['section']),
        Paragraph(escape(model.intro), styles['paragraph']),
        Spacer(1, 14),
    ]

    story += _services_section(model, styles, palette, width)
    story.append(Spacer(1, 14))

    story += [
        Paragraph('3º Investimento', styles['section']),
        _investment_table(model, styles, palette, width),
        Spacer(1, 8),
        KeepTogether([_totals_table(model, palette, width)]),
    ]

    if model.observations:
        story += [
            Spacer(1, 14),
            KeepTogether([
                Paragraph('Observações', styles['service_title']),
                Paragraph(escape(model.observations).replace('\n', '<br/>'), styles['service_desc']),
            ]),
        ]

    return story


def render_proposal_pdf(proposal: Mapping[str, Any], client: Mapping[str, Any],
                        items: Sequence[Mapping[str, Any]],
                        theme: Union[ProposalTheme, str, None] = None,
                        business_info: Optional[Mapping[str, Any]] = None) -> BytesIO:
    """
    Render the proposal document as PDF.

    Deterministic for the same inputs (reportlab invariant mode).

    Returns:
        BytesIO positioned at 0

    Raises:
        RenderError: bad input data or a layout failure
    """
    model = build_document_model(proposal, client, items, theme, business_info)

    buffer = BytesIO()
    doc = ProposalDocTemplate(buffer, model)
    try:
        doc.build(_story(model, doc.width), canvasmaker=NumberedCanvas)
    except Exception as e:
        logger.exception(f"PDF layout failed for proposal {proposal.get('id')}: {e}")
        raise RenderError() from e

    logger.info(f"Rendered proposal {proposal.get('id')} ({model.theme.value}, {doc.page} pages)")
    buffer.seek(0)
    return buffer


def proposal_filename(client: Mapping[str, Any]) -> str:
    """Download name: company first, then client name."""
    label = optional_text(client.get('company')) or optional_text(client.get('name')) or 'Cliente'
    safe = ''.join(ch for ch in label if ch not in '\\/:*?"<>|').strip()
    return f"Proposta - {safe or 'Cliente'}.pdf"
