"""
Pytest configuration and fixtures for testing.
"""
import copy
import pytest

from app import create_app
from app.utils.store import CertificateStore, SupabaseBackend
from config import Config


class TestConfig(Config):
    __test__ = False

    TESTING = True
    SECRET_KEY = 'test-secret-key'
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SUPABASE_URL = ''
    SUPABASE_ANON_KEY = ''
    PUBLIC_BASE_URL = 'https://certs.example.com'
    CERTIFICATE_FONT_PATH = ''
    DEFAULT_ADMIN_PHONE = '0500000000'
    DEFAULT_ADMIN_PASSWORD = 'admin123'
    TELEGRAM_BOT_TOKEN = ''
    TELEGRAM_CHAT_ID = ''


class FakeBackendError(Exception):
    pass


class FakeResponse:
    def __init__(self, data):
        self.data = data


class FakeQuery:
    """Mimics the postgrest query builder used by the store."""

    def __init__(self, backend, table):
        self.backend = backend
        self.table = table
        self.operation = 'select'
        self.payload = None
        self.filters = []
        self.order_by = None
        self.max_rows = None

    def select(self, *columns):
        return self

    def insert(self, payload):
        self.operation = 'insert'
        self.payload = payload
        return self

    def delete(self):
        self.operation = 'delete'
        return self

    def eq(self, column, value):
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def ilike(self, column, pattern):
        needle = pattern.strip('%').lower()
        self.filters.append(lambda row: needle in (row.get(column) or '').lower())
        return self

    def order(self, column, desc=False):
        self.order_by = (column, desc)
        return self

    def limit(self, count):
        self.max_rows = count
        return self

    def execute(self):
        backend = self.backend
        backend.calls.append((self.table, self.operation))
        rows = backend.tables.setdefault(self.table, [])

        if self.operation == 'insert':
            if backend.fail_writes:
                raise FakeBackendError('insert rejected')
            payloads = self.payload if isinstance(self.payload, list) else [self.payload]
            inserted = []
            for payload in payloads:
                backend.clock += 1
                row = dict(payload)
                row.setdefault('id', f'generated-{backend.clock}')
                row['created_at'] = f'2026-01-01T00:00:{backend.clock:02d}+00:00'
                row['updated_at'] = row['created_at']
                rows.append(row)
                inserted.append(copy.deepcopy(row))
            return FakeResponse(inserted)

        if self.operation == 'delete':
            if backend.fail_writes:
                raise FakeBackendError('delete rejected')
            matched = [row for row in rows if all(check(row) for check in self.filters)]
            backend.tables[self.table] = [row for row in rows if row not in matched]
            return FakeResponse(copy.deepcopy(matched))

        if backend.fail_reads:
            raise FakeBackendError('connection refused')
        result = [row for row in rows if all(check(row) for check in self.filters)]
        if self.order_by:
            column, desc = self.order_by
            result.sort(key=lambda row: row.get(column) or '', reverse=desc)
        if self.max_rows is not None:
            result = result[:self.max_rows]
        return FakeResponse(copy.deepcopy(result))


class FakeBucket:

    def __init__(self, backend, name):
        self.backend = backend
        self.name = name

    def upload(self, path, file, file_options=None):
        self.backend.calls.append((self.name, 'upload'))
        if self.backend.fail_uploads:
            raise FakeBackendError('bucket not found')
        self.backend.objects[path] = (file, file_options)
        return {'Key': f'{self.name}/{path}'}

    def get_public_url(self, path):
        return f'https://project.supabase.co/storage/v1/object/public/{self.name}/{path}?'


class FakeStorage:

    def __init__(self, backend):
        self.backend = backend

    def from_(self, bucket):
        return FakeBucket(self.backend, bucket)


class FakeSupabase:
    """In-memory stand-in for the supabase client used by the store."""

    def __init__(self):
        self.tables = {}
        self.objects = {}
        self.calls = []
        self.clock = 0
        self.fail_reads = False
        self.fail_writes = False
        self.fail_uploads = False
        self.storage = FakeStorage(self)

    def table(self, name):
        return FakeQuery(self, name)


@pytest.fixture
def fake_supabase():
    return FakeSupabase()


@pytest.fixture
def store(fake_supabase):
    return CertificateStore(SupabaseBackend(None, None, client=fake_supabase))


@pytest.fixture
def offline_store():
    return CertificateStore(SupabaseBackend('', ''))


@pytest.fixture
def app(fake_supabase):
    app = create_app(TestConfig, certificate_backend=SupabaseBackend(None, None, client=fake_supabase))
    yield app


@pytest.fixture
def offline_app():
    app = create_app(TestConfig)
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def offline_client(offline_app):
    return offline_app.test_client()


def login(client, phone_number='0500000000', password='admin123'):
    return client.post(
        '/auth/login',
        data={'phone_number': phone_number, 'password': password}
    )


@pytest.fixture
def admin_client(client):
    login(client)
    return client


@pytest.fixture
def offline_admin_client(offline_client):
    login(offline_client)
    return offline_client


@pytest.fixture
def certificate_form():
    return {
        'name': 'Test User',
        'id_number': '123',
        'nationality': 'يمني',
        'profession': 'سائق خاص',
        'certificate_number': 'C-1',
        'issue_date': '1446/11/08',
        'expiry_date': '1447/11/08',
        'program_type': 'متطلبات الغذاء',
        'program_end_date': '1449/11/03',
        'gender': 'ذكر',
    }


@pytest.fixture
def operator_client(app):
    from app.utils.init_db import create_operator

    with app.app_context():
        create_operator('0511111111', 'موظف الإصدار', 'operator123')
    client = app.test_client()
    login(client, '0511111111', 'operator123')
    return client


@pytest.fixture
def create_certificate(store):
    """Insert a certificate straight into the fake backend."""
    from app.models.certificate import Certificate

    def _create(**fields):
        data = {
            'name': 'Test User',
            'id_number': '123',
            'nationality': 'يمني',
            'profession': 'سائق خاص',
            'certificate_number': 'C-1',
            'issue_date': '1446/11/08',
            'expiry_date': '1447/11/08',
            'program_type': 'متطلبات الغذاء',
            'program_end_date': '1449/11/03',
        }
        data.update(fields)
        return store.create(Certificate(**data))
    return _create


@pytest.fixture
def image_bytes():
    """Encode a small real image in the given Pillow format."""
    from io import BytesIO
    from PIL import Image

    def _encode(image_format='PNG'):
        output = BytesIO()
        Image.new('RGB', (8, 8), (15, 118, 110)).save(output, format=image_format)
        return output.getvalue()
    return _encode
