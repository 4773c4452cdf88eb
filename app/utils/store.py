import base64
import binascii
import logging
import mimetypes
import threading
from flask import current_app
from supabase import create_client
from supabase.client import ClientOptions
from app.models.certificate import Certificate, IMAGE_FIELDS, SEARCH_FIELDS
from app.utils.helpers import epoch_millis

logger = logging.getLogger(__name__)

# public URLs handed out by the storage API carry a query marker
PUBLIC_URL_MARKER = '?'

class StoreError(Exception):
    pass

class StoreUnavailable(StoreError):
    """متغيرات البيئة الخاصة بـ Supabase غير متوفرة"""

class SupabaseBackend:
    """إعدادات الاتصال بـ Supabase مع إنشاء العميل عند أول استخدام"""

    def __init__(self, url, key, timeout=10, client=None):
        self.url = url
        self.key = key
        self.timeout = timeout
        self._client = client
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config):
        return cls(
            config.get('SUPABASE_URL'),
            config.get('SUPABASE_ANON_KEY'),
            timeout=config.get('BACKEND_TIMEOUT', 10)
        )

    @property
    def configured(self):
        return self._client is not None or bool(self.url and self.key)

    @property
    def client(self):
        if self._client is not None:
            return self._client

        if not self.configured:
            logger.warning("Missing Supabase environment variables")
            return None

        with self._lock:
            if self._client is None:
                try:
                    options = ClientOptions(
                        postgrest_client_timeout=self.timeout,
                        storage_client_timeout=self.timeout
                    )
                    self._client = create_client(self.url, self.key, options=options)
                    logger.info(f"Supabase client initialized for {self.url}")
                except Exception as e:
                    logger.error(f"Error creating Supabase client: {e}")
                    return None
        return self._client

class CertificateLookup:
    """نتيجة البحث عن شهادة: الحالة ومصدر البيانات (قاعدة البيانات أو رابط التحقق)"""

    FOUND = 'found'
    NOT_FOUND = 'not_found'
    FAILED = 'failed'
    UNAVAILABLE = 'unavailable'
    INCOMPLETE = 'incomplete'

    SOURCE_STORE = 'store'
    SOURCE_URL = 'url'

    def __init__(self, status, certificate=None, source=SOURCE_STORE):
        self.status = status
        self.certificate = certificate
        self.source = source

    @property
    def found(self):
        return self.status == self.FOUND and self.certificate is not None

    @property
    def degraded(self):
        return self.found and self.source == self.SOURCE_URL

    def __repr__(self):
        return f'<CertificateLookup {self.status} ({self.source})>'

def decode_data_url(data_url):
    """يفكك data URL إلى نوع الملف والبيانات"""
    header, sep, encoded = (data_url or '').partition(',')
    if not sep or not header.startswith('data:') or ';base64' not in header:
        raise ValueError('not a base64 data URL')

    content_type = header[len('data:'):].split(';', 1)[0] or 'image/png'
    try:
        content = base64.b64decode(encoded, validate=True)
    except binascii.Error as e:
        raise ValueError(f'invalid base64 payload: {e}') from e
    if not content:
        raise ValueError('empty image payload')
    return content_type, content

class CertificateStore:

    def __init__(self, backend, table='certificates', bucket='certificates'):
        self.backend = backend
        self.table = table
        self.bucket = bucket

    @classmethod
    def from_config(cls, config, backend=None):
        return cls(
            backend or SupabaseBackend.from_config(config),
            table=config.get('CERTIFICATES_TABLE', 'certificates'),
            bucket=config.get('CERTIFICATES_BUCKET', 'certificates')
        )

    @property
    def available(self):
        return self.backend.configured

    def _require_client(self):
        client = self.backend.client
        if client is None:
            raise StoreUnavailable('Supabase client not available')
        return client

    def _rows(self, client):
        return client.table(self.table)

    def public_url(self, file_name):
        client = self._require_client()
        return client.storage.from_(self.bucket).get_public_url(file_name)

    def create(self, certificate):
        client = self._require_client()
        try:
            response = self._rows(client).insert(certificate.to_payload()).execute()
        except Exception as e:
            logger.error(f"Error creating certificate: {e}")
            raise StoreError('فشل في إنشاء الشهادة. يرجى المحاولة مرة أخرى.') from e

        if not response.data:
            logger.error("Error creating certificate: insert returned no rows")
            raise StoreError('فشل في إنشاء الشهادة. يرجى المحاولة مرة أخرى.')

        created = Certificate.from_row(response.data[0])
        logger.info(f"Certificate {created.id} created")
        return created

    def fetch_by_id(self, certificate_id):
        client = self.backend.client
        if client is None:
            return CertificateLookup(CertificateLookup.UNAVAILABLE)

        try:
            response = self._rows(client).select('*').eq('id', certificate_id).limit(1).execute()
        except Exception as e:
            logger.error(f"Error fetching certificate {certificate_id}: {e}")
            return CertificateLookup(CertificateLookup.FAILED)

        if not response.data:
            return CertificateLookup(CertificateLookup.NOT_FOUND)

        row = dict(response.data[0])
        for field in IMAGE_FIELDS:
            value = row.get(field)
            if value and PUBLIC_URL_MARKER not in value:
                try:
                    row[field] = client.storage.from_(self.bucket).get_public_url(value.rsplit('/', 1)[-1])
                except Exception as e:
                    logger.error(f"Error getting public URL for {field}: {e}")

        return CertificateLookup(CertificateLookup.FOUND, Certificate.from_row(row))

    def fetch_all(self):
        client = self.backend.client
        if client is None:
            return []

        try:
            response = self._rows(client).select('*').order('created_at', desc=True).execute()
        except Exception as e:
            logger.error(f"Error fetching certificates: {e}")
            return []

        return [Certificate.from_row(row) for row in response.data or []]

    def search(self, field, term):
        if field not in SEARCH_FIELDS:
            raise ValueError(f'unsupported search field: {field}')
        term = (term or '').strip()
        if not term:
            raise ValueError('empty search term')

        client = self._require_client()
        try:
            response = (
                self._rows(client)
                .select('*')
                .ilike(field, f'%{term}%')
                .order('created_at', desc=True)
                .execute()
            )
        except Exception as e:
            logger.error(f"Error searching certificates by {field}: {e}")
            raise StoreError('حدث خطأ أثناء البحث. يرجى المحاولة مرة أخرى.') from e

        return [Certificate.from_row(row) for row in response.data or []]

    def delete_by_id(self, certificate_id):
        client = self._require_client()
        try:
            self._rows(client).delete().eq('id', certificate_id).execute()
        except Exception as e:
            logger.error(f"Error deleting certificate {certificate_id}: {e}")
            return False

        logger.info(f"Certificate {certificate_id} deleted")
        return True

    def upload_image(self, data_url, prefix):
        client = self._require_client()
        try:
            content_type, content = decode_data_url(data_url)
            extension = mimetypes.guess_extension(content_type) or '.png'
            # same prefix within the same millisecond overwrites (upsert)
            file_name = f'{prefix}_{epoch_millis()}{extension}'

            bucket = client.storage.from_(self.bucket)
            bucket.upload(file_name, content, {'content-type': content_type, 'upsert': 'true'})
            return bucket.get_public_url(file_name)
        except Exception as e:
            logger.error(f"Error uploading image {prefix}: {e}")
            return None

def get_store():
    return current_app.extensions['certificate_store']
