# billing/pdf.py

from io import BytesIO

from django.conf import settings
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import inch
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer

from dashboard.templatetags.dashboard_extras import format_currency

HEADER_COLOR = colors.HexColor('#0d6efd')


def _date_range_label(invoice):
    start = invoice.from_date.strftime('%d/%m/%Y') if invoice.from_date else 'Beginning'
    end = invoice.to_date.strftime('%d/%m/%Y') if invoice.to_date else 'Today'
    return f"{start} - {end}"


def render_invoice_pdf(invoice):
    """Renders a saved invoice as an A4 PDF and returns the bytes."""
    buffer = BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=A4, title=f"Invoice {invoice.invoice_number}")
    styles = getSampleStyleSheet()
    elements = []

    title_style = ParagraphStyle(
        'InvoiceTitle',
        parent=styles['Heading1'],
        fontSize=20,
        textColor=HEADER_COLOR,
        alignment=1,
        spaceAfter=6,
    )
    info_style = ParagraphStyle('info', parent=styles['Normal'], fontSize=10, leading=13)

    elements.append(Paragraph(settings.LAB_NAME, title_style))
    elements.append(Paragraph(f"Invoice {invoice.invoice_number}", ParagraphStyle('subtitle', parent=styles['Normal'], fontSize=12, alignment=1)))
    elements.append(Spacer(1, 0.3 * inch))
    elements.append(Paragraph(f"<b>Dentist:</b> {invoice.dentist_name}", info_style))
    elements.append(Paragraph(f"<b>Period:</b> {_date_range_label(invoice)}", info_style))
    elements.append(Paragraph(f"<b>Issued:</b> {invoice.created_at.strftime('%d/%m/%Y')}", info_style))
    elements.append(Spacer(1, 0.3 * inch))

    table_data = [['Material', 'Teeth', 'Price', 'Total']]
    for row in invoice.summary_rows:
        if not row['tooth_count']:
            continue
        table_data.append([
            row['material'],
            str(row['tooth_count']),
            format_currency(row['price']),
            format_currency(row['total']),
        ])
    table_data.append(['', '', 'Subtotal', format_currency(invoice.subtotal)])
    table_data.append(['', '', 'Paid', format_currency(invoice.paid_amount)])
    table_data.append(['', '', 'Grand Total', format_currency(invoice.grand_total)])

    table = Table(table_data, colWidths=[2.2 * inch, 0.9 * inch, 1.4 * inch, 1.6 * inch])
    table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), HEADER_COLOR),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('BOTTOMPADDING', (0, 0), (-1, 0), 10),
        ('GRID', (0, 0), (-1, -4), 0.5, colors.grey),
        ('ALIGN', (1, 0), (-1, -1), 'RIGHT'),
        ('FONTNAME', (0, -1), (-1, -1), 'Helvetica-Bold'),
        ('BACKGROUND', (0, -1), (-1, -1), colors.HexColor('#f0f0f0')),
    ]))
    elements.append(table)
    elements.append(Spacer(1, 0.3 * inch))

    if invoice.cases:
        elements.append(Paragraph("Cases", styles['Heading3']))
        case_rows = [['Date', 'Patient', 'Teeth', 'Material', 'Shade']]
        for case in invoice.cases:
            case_rows.append([
                (case.get('created_at') or '')[:10],
                case.get('patient_name', ''),
                case.get('tooth_numbers', ''),
                case.get('material', ''),
                case.get('shade', ''),
            ])
        case_table = Table(case_rows, repeatRows=1)
        case_table.setStyle(TableStyle([
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
            ('FONTSIZE', (0, 0), (-1, -1), 8),
            ('GRID', (0, 0), (-1, -1), 0.25, colors.grey),
        ]))
        elements.append(case_table)

    doc.build(elements)
    return buffer.getvalue()
