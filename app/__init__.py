from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from config import Config

db = SQLAlchemy()
login_manager = LoginManager()

def create_app(config_class=Config, certificate_backend=None):
    app = Flask(__name__)
    app.config.from_object(config_class)

    db.init_app(app)
    login_manager.init_app(app)
    login_manager.login_view = 'auth.login'
    login_manager.login_message = 'يرجى تسجيل الدخول للوصول إلى هذه الصفحة.'
    login_manager.login_message_category = 'warning'

    from app.models import user

    @login_manager.user_loader
    def load_user(user_id):
        try:
            loaded_user = db.session.get(user.User, int(user_id))
        except (TypeError, ValueError):
            return None
        if loaded_user and loaded_user.is_active:
            return loaded_user
        return None

    from app.utils.store import CertificateStore
    store = CertificateStore.from_config(app.config, backend=certificate_backend)
    app.extensions['certificate_store'] = store

    from app.routes import auth, certificates, public

    app.register_blueprint(auth.bp)
    app.register_blueprint(certificates.bp)
    app.register_blueprint(public.bp)

    @app.context_processor
    def inject_store_status():
        return {'store_available': store.available}

    with app.app_context():
        db.create_all()
        from app.utils import init_db
        init_db.initialize_database()

    from app.utils.init_db import register_commands
    register_commands(app)

    return app
