from urllib.parse import urlencode

GENDER_MALE = 'ذكر'
GENDER_FEMALE = 'أنثى'
GENDER_CHOICES = (GENDER_MALE, GENDER_FEMALE)

REQUIRED_FIELDS = (
    'name', 'id_number', 'nationality', 'profession',
    'certificate_number', 'issue_date', 'expiry_date',
    'program_type', 'program_end_date'
)

OPTIONAL_DEFAULTS = {
    'facility_name': 'أسواق نوريم غالب بن شافي الشمس التجارية',
    'facility_number': '7041726855',
    'license_number': '4100671520174',
    'gender': GENDER_MALE,
    'municipality': 'بلدية مشيرفة',
}

IMAGE_FIELDS = ('photo_url', 'qr_code_url')
SERVER_FIELDS = ('created_at', 'updated_at')

FIELDS = ('id',) + REQUIRED_FIELDS + tuple(OPTIONAL_DEFAULTS) + IMAGE_FIELDS + SERVER_FIELDS

# fields that must be present in a public verification link
VERIFY_REQUIRED_FIELDS = ('id', 'name', 'id_number', 'certificate_number')

SEARCH_FIELDS = ('certificate_number', 'id_number')

FIELD_LABELS = {
    'name': 'الاسم الكامل',
    'id_number': 'رقم الهوية',
    'nationality': 'الجنسية',
    'profession': 'المهنة',
    'certificate_number': 'رقم الشهادة الصحية',
    'issue_date': 'تاريخ إصدار الشهادة',
    'expiry_date': 'تاريخ نهاية الشهادة',
    'program_type': 'نوع البرنامج التثقيفي',
    'program_end_date': 'تاريخ انتهاء البرنامج',
    'facility_name': 'اسم المنشأة',
    'facility_number': 'رقم المنشأة',
    'license_number': 'رقم الرخصة',
    'gender': 'الجنس',
    'municipality': 'البلدية',
}


class Certificate:
    """A single health certificate as stored in the ``certificates`` table.

    The store is the source of truth; instances are transient copies used
    to move a record between the forms, the store client and the views.
    """

    def __init__(self, **fields):
        for field in FIELDS:
            setattr(self, field, fields.get(field))
        for field, default in OPTIONAL_DEFAULTS.items():
            if not getattr(self, field):
                setattr(self, field, default)

    @classmethod
    def from_row(cls, row):
        return cls(**{key: value for key, value in row.items() if key in FIELDS})

    @classmethod
    def from_form(cls, form, certificate_id=None):
        data = {}
        for field in REQUIRED_FIELDS + tuple(OPTIONAL_DEFAULTS):
            value = form.get(field)
            data[field] = value.strip() if value else value
        return cls(id=certificate_id, **data)

    @staticmethod
    def validate_form(form):
        errors = {}
        for field in REQUIRED_FIELDS:
            value = form.get(field)
            if not value or not value.strip():
                errors[field] = f'حقل {FIELD_LABELS[field]} مطلوب'

        gender = form.get('gender')
        if gender and gender not in GENDER_CHOICES:
            errors['gender'] = 'قيمة الجنس غير صالحة'
        return errors

    def to_payload(self):
        """Row sent on insert; timestamps are assigned by the store."""
        payload = {
            field: getattr(self, field)
            for field in FIELDS
            if field not in SERVER_FIELDS
        }
        if payload['id'] is None:
            del payload['id']
        return payload

    def to_dict(self):
        return {field: getattr(self, field) for field in FIELDS}

    def to_query_params(self):
        return {
            field: getattr(self, field) or ''
            for field in ('id',) + REQUIRED_FIELDS + tuple(OPTIONAL_DEFAULTS)
        }

    def public_verify_query(self):
        return urlencode(self.to_query_params())

    def __eq__(self, other):
        if not isinstance(other, Certificate):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self):
        return f'<Certificate {self.certificate_number} ({self.id})>'
