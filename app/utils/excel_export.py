from openpyxl import Workbook
from openpyxl.styles import Font, Alignment, PatternFill, Border, Side
from openpyxl.utils import get_column_letter
from io import BytesIO


def create_styled_workbook(title, headers, data, column_widths=None):
    wb = Workbook()
    ws = wb.active
    ws.title = title[:31]
    ws.sheet_view.rightToLeft = True

    header_fill = PatternFill(start_color="0F766E", end_color="0F766E", fill_type="solid")
    header_font = Font(name='Arial', size=12, bold=True, color="FFFFFF")
    data_font = Font(name='Arial', size=11)
    centered = Alignment(horizontal='center', vertical='center', wrap_text=True)
    thin = Side(style='thin')
    thin_border = Border(left=thin, right=thin, top=thin, bottom=thin)

    for col_num, header in enumerate(headers, 1):
        cell = ws.cell(row=1, column=col_num, value=header)
        cell.fill = header_fill
        cell.font = header_font
        cell.alignment = centered
        cell.border = thin_border

    row_fills = [
        PatternFill(start_color="FFFFFF", end_color="FFFFFF", fill_type="solid"),
        PatternFill(start_color="F0FDFA", end_color="F0FDFA", fill_type="solid")
    ]

    for row_num, row_data in enumerate(data, 2):
        for col_num, value in enumerate(row_data, 1):
            cell = ws.cell(row=row_num, column=col_num, value=value)
            cell.font = data_font
            cell.alignment = centered
            cell.border = thin_border
            cell.fill = row_fills[row_num % 2]

    widths = column_widths or [20] * len(headers)
    for col_num, width in enumerate(widths, 1):
        ws.column_dimensions[get_column_letter(col_num)].width = width

    ws.freeze_panes = 'A2'

    output = BytesIO()
    wb.save(output)
    output.seek(0)
    return output


def export_certificates_to_excel(certificates):
    title = "الشهادات الصحية"

    headers = [
        "رقم الشهادة",
        "الاسم الكامل",
        "رقم الهوية",
        "الجنسية",
        "المهنة",
        "الجنس",
        "تاريخ الإصدار",
        "تاريخ الانتهاء",
        "نوع البرنامج",
        "اسم المنشأة",
        "البلدية",
        "تاريخ الإنشاء"
    ]

    data = []
    for certificate in certificates:
        data.append([
            certificate.certificate_number or "",
            certificate.name or "",
            certificate.id_number or "",
            certificate.nationality or "",
            certificate.profession or "",
            certificate.gender or "",
            certificate.issue_date or "",
            certificate.expiry_date or "",
            certificate.program_type or "",
            certificate.facility_name or "",
            certificate.municipality or "",
            str(certificate.created_at or "")[:10]
        ])

    column_widths = [18, 25, 15, 12, 18, 8, 14, 14, 20, 30, 18, 14]

    return create_styled_workbook(title, headers, data, column_widths)
