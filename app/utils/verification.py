import logging
from app.models.certificate import Certificate, OPTIONAL_DEFAULTS, REQUIRED_FIELDS, VERIFY_REQUIRED_FIELDS
from app.utils.store import CertificateLookup

logger = logging.getLogger(__name__)

QUERY_FIELDS = ('id',) + REQUIRED_FIELDS + tuple(OPTIONAL_DEFAULTS)

LOOKUP_MESSAGES = {
    CertificateLookup.NOT_FOUND: 'لم يتم العثور على الشهادة المطلوبة',
    CertificateLookup.FAILED: 'حدث خطأ أثناء جلب بيانات الشهادة',
    CertificateLookup.UNAVAILABLE: 'متغيرات البيئة الخاصة بـ Supabase غير متوفرة. لا يمكن التحقق من الشهادة.',
    CertificateLookup.INCOMPLETE: 'معلومات الشهادة غير مكتملة',
}

def lookup_message(lookup):
    return LOOKUP_MESSAGES.get(lookup.status, 'الشهادة غير صالحة')

def resolve_public_verification(store, params):
    """يتحقق من رابط التحقق العام ويعيد بناء الشهادة من الرابط إذا لم تؤكدها قاعدة البيانات"""
    values = {field: (params.get(field) or '').strip() for field in QUERY_FIELDS}
    if any(not values[field] for field in VERIFY_REQUIRED_FIELDS):
        return CertificateLookup(CertificateLookup.INCOMPLETE)

    if store.available:
        lookup = store.fetch_by_id(values['id'])
        if lookup.found:
            return lookup
        logger.info(f"Certificate {values['id']} not confirmed by the store ({lookup.status}), using link data")

    certificate = Certificate(**{field: value or None for field, value in values.items()})
    return CertificateLookup(CertificateLookup.FOUND, certificate, source=CertificateLookup.SOURCE_URL)
