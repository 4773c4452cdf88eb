import os

basedir = os.path.abspath(os.path.dirname(__file__))

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///' + os.path.join(basedir, 'health_certificates.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    SUPABASE_URL = os.environ.get('SUPABASE_URL') or os.environ.get('NEXT_PUBLIC_SUPABASE_URL', '')
    SUPABASE_ANON_KEY = os.environ.get('SUPABASE_ANON_KEY') or os.environ.get('NEXT_PUBLIC_SUPABASE_ANON_KEY', '')
    CERTIFICATES_TABLE = os.environ.get('CERTIFICATES_TABLE', 'certificates')
    CERTIFICATES_BUCKET = os.environ.get('CERTIFICATES_BUCKET', 'certificates')
    BACKEND_TIMEOUT = int(os.environ.get('BACKEND_TIMEOUT', '10'))

    PUBLIC_BASE_URL = os.environ.get('PUBLIC_BASE_URL', '')

    MAX_CONTENT_LENGTH = 16 * 1024 * 1024
    ALLOWED_PHOTO_EXTENSIONS = {'png', 'jpg', 'jpeg', 'gif', 'webp'}

    CERTIFICATE_FONT_PATH = os.environ.get('CERTIFICATE_FONT_PATH', '')
    PDF_FILENAME = 'الشهادة_الصحية_الموحدة.pdf'

    DEFAULT_ADMIN_PHONE = os.environ.get('DEFAULT_ADMIN_PHONE', '0500000000')
    DEFAULT_ADMIN_PASSWORD = os.environ.get('DEFAULT_ADMIN_PASSWORD', 'admin123')

    TELEGRAM_BOT_TOKEN = os.environ.get('TELEGRAM_BOT_TOKEN', '')
    TELEGRAM_CHAT_ID = os.environ.get('TELEGRAM_CHAT_ID', '')
