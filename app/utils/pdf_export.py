import logging
from io import BytesIO
import requests
from PIL import Image, ImageDraw, ImageFont, features
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas
from app.utils.qr import generate_qr_code

logger = logging.getLogger(__name__)

EXPORT_SCALE = 2
A4_WIDTH = 210 * mm

# layout in unscaled pixels
CARD_WIDTH = 600
MARGIN = 24
PHOTO_SIZE = (130, 160)
QR_SIZE = 130
ROW_HEIGHT = 58

TEAL = (15, 118, 110)
DARK = (31, 41, 55)
MUTED = (107, 114, 128)
BORDER = (209, 213, 219)
WHITE = (255, 255, 255)
PANEL = (240, 253, 250)

DETAIL_ROWS = (
    (('الجنسية', 'nationality'), ('رقم الهوية', 'id_number')),
    (('المهنة', 'profession'), ('رقم الشهادة الصحية', 'certificate_number')),
    (('تاريخ نهاية الشهادة الصحية', 'expiry_date'), ('تاريخ إصدار الشهادة الصحية', 'issue_date')),
    (('تاريخ انتهاء البرنامج التثقيفي', 'program_end_date'), ('نوع البرنامج التثقيفي', 'program_type')),
    (('رقم المنشأة', 'facility_number'), ('اسم المنشأة', 'facility_name')),
    (('البلدية', 'municipality'), ('رقم الرخصة', 'license_number')),
)

INSTRUCTIONS = (
    'شهادة صحية تجدد سنويا.',
    'يسمح لحامل الشهادة الصحية بالعمل في منشآت الغذاء أو الصحة العامة وفق المهنة المسموح بها نظاما.',
    'يلزم حامل هذه الشهادة بإجراء فحص طبي عند عودته من الخارج قبل البدء بممارسة العمل.',
    'لا تعتبر الشهادة إثبات هوية.',
)

class ExportError(Exception):
    pass

class _Canvas:
    """رسم النصوص من اليمين لليسار على صورة مكبرة"""

    def __init__(self, width, height, scale, font_path=None):
        self.scale = scale
        self.font_path = font_path
        self.image = Image.new('RGB', (width * scale, height * scale), WHITE)
        self.draw = ImageDraw.Draw(self.image)
        self._fonts = {}
        self._text_options = {'direction': 'rtl'} if features.check('raqm') else {}

    def font(self, size):
        if size not in self._fonts:
            scaled = size * self.scale
            loaded = None
            if self.font_path:
                try:
                    loaded = ImageFont.truetype(self.font_path, scaled)
                except OSError as e:
                    logger.warning(f"Cannot load certificate font {self.font_path}: {e}")
            self._fonts[size] = loaded or ImageFont.load_default(size=scaled)
        return self._fonts[size]

    def box(self, left, top, right, bottom, fill=None, outline=None):
        s = self.scale
        self.draw.rectangle((left * s, top * s, right * s, bottom * s), fill=fill, outline=outline, width=s)

    def text_right(self, right, top, text, size=14, fill=DARK):
        font = self.font(size)
        text = str(text or '')
        width = self.draw.textlength(text, font=font, **self._text_options)
        self.draw.text((right * self.scale - width, top * self.scale), text, font=font, fill=fill, **self._text_options)

    def text_center(self, center, top, text, size=14, fill=DARK):
        font = self.font(size)
        text = str(text or '')
        width = self.draw.textlength(text, font=font, **self._text_options)
        self.draw.text((center * self.scale - width / 2, top * self.scale), text, font=font, fill=fill, **self._text_options)

    def paste(self, image, left, top, size):
        resized = image.convert('RGB').resize((size[0] * self.scale, size[1] * self.scale))
        self.image.paste(resized, (left * self.scale, top * self.scale))

def _fetch_photo(url, timeout):
    if not url:
        return None
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
        return Image.open(BytesIO(response.content))
    except Exception as e:
        logger.warning(f"Could not load certificate photo {url}: {e}")
        return None

def rasterize_certificate(certificate, verification_url, font_path=None, scale=EXPORT_SCALE, timeout=10):
    """يرسم بطاقة الشهادة مع لوحة التعليمات في صورة واحدة"""
    details_top = 150
    instructions_top = details_top + len(DETAIL_ROWS) * ROW_HEIGHT + 80
    height = instructions_top + 60 + len(INSTRUCTIONS) * 44 + MARGIN

    c = _Canvas(CARD_WIDTH, height, scale, font_path)
    right = CARD_WIDTH - MARGIN

    c.box(0, 0, CARD_WIDTH, 70, fill=TEAL)
    c.text_center(CARD_WIDTH / 2, 20, 'الشهادة الصحية الموحدة', size=26, fill=WHITE)
    c.text_center(CARD_WIDTH / 2, 88, certificate.name, size=24, fill=TEAL)
    c.box(MARGIN, 130, right, 131, fill=BORDER)

    photo = _fetch_photo(certificate.photo_url, timeout)
    photo_left = right - PHOTO_SIZE[0]
    if photo is not None:
        c.paste(photo, photo_left, details_top, PHOTO_SIZE)
    else:
        c.box(photo_left, details_top, right, details_top + PHOTO_SIZE[1], fill=PANEL, outline=BORDER)
        c.text_center(photo_left + PHOTO_SIZE[0] / 2, details_top + 70, 'لا توجد صورة', size=12, fill=MUTED)

    qr_top = details_top + PHOTO_SIZE[1] + 16
    c.paste(generate_qr_code(verification_url, box_size=4), photo_left, qr_top, (QR_SIZE, QR_SIZE))

    column_right = photo_left - 20
    column_width = (column_right - MARGIN) / 2
    for index, row in enumerate(DETAIL_ROWS):
        top = details_top + index * ROW_HEIGHT
        for position, (label, field) in enumerate(row):
            cell_right = column_right - position * column_width
            c.box(cell_right - column_width + 4, top, cell_right, top + ROW_HEIGHT - 6, outline=BORDER)
            c.text_right(cell_right - 8, top + 6, label, size=11, fill=MUTED)
            c.text_right(cell_right - 8, top + 26, getattr(certificate, field), size=14)

    footer_top = instructions_top - 50
    c.text_center(CARD_WIDTH / 2, footer_top, '199040  |  www.balady.gov.sa', size=12, fill=MUTED)

    c.box(0, instructions_top, CARD_WIDTH, height, fill=PANEL)
    c.text_right(right, instructions_top + 16, 'تعليمات وإرشادات', size=20, fill=TEAL)
    for index, line in enumerate(INSTRUCTIONS):
        c.text_right(right, instructions_top + 60 + index * 44, f'✦ {line}', size=13)

    return c.image

def page_size_for(image):
    """عرض A4 مع الحفاظ على نسبة أبعاد الصورة"""
    width_px, height_px = image.size
    return A4_WIDTH, height_px * A4_WIDTH / width_px

def build_pdf(image):
    page_width, page_height = page_size_for(image)
    buf = BytesIO()
    pdf = canvas.Canvas(buf, pagesize=(page_width, page_height), pageCompression=1)
    pdf.drawImage(ImageReader(image.convert('RGB')), 0, 0, width=page_width, height=page_height)
    pdf.showPage()
    pdf.save()
    return buf.getvalue()

def export_certificate_pdf(certificate, verification_url, font_path=None, timeout=10):
    try:
        image = rasterize_certificate(certificate, verification_url, font_path=font_path, timeout=timeout)
        return build_pdf(image)
    except Exception as e:
        logger.error(f"Error generating PDF for certificate {certificate.id}: {e}")
        raise ExportError('حدث خطأ أثناء تصدير ملف PDF. يرجى المحاولة مرة أخرى.') from e
