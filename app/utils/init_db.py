from flask import current_app
import click
from app import db
from app.models import User
import logging

logger = logging.getLogger(__name__)

def initialize_database():
    """ينشئ حساب المدير الافتراضي عند أول تشغيل"""
    if User.query.filter_by(role='admin').first():
        return

    admin = User(
        phone_number=current_app.config['DEFAULT_ADMIN_PHONE'],
        full_name='مدير النظام',
        role='admin'
    )
    admin.set_password(current_app.config['DEFAULT_ADMIN_PASSWORD'])
    db.session.add(admin)
    db.session.commit()
    logger.info(f"Default admin account created ({admin.phone_number})")

def create_operator(phone_number, full_name, password, role='operator'):
    if User.query.filter_by(phone_number=phone_number).first():
        raise ValueError('رقم الجوال مستخدم مسبقاً')

    operator = User(phone_number=phone_number, full_name=full_name, role=role)
    operator.set_password(password)
    db.session.add(operator)
    db.session.commit()
    logger.info(f"Operator {phone_number} created with role {role}")
    return operator

def register_commands(app):
    @app.cli.command('create-operator')
    @click.argument('phone_number')
    @click.argument('full_name')
    @click.password_option()
    @click.option('--admin', is_flag=True, help='منح صلاحيات المدير')
    def create_operator_command(phone_number, full_name, password, admin):
        """إضافة موظف جديد لإصدار الشهادات"""
        try:
            create_operator(phone_number, full_name, password, role='admin' if admin else 'operator')
        except ValueError as e:
            raise click.ClickException(str(e))
        click.echo(f'تم إنشاء الحساب {phone_number}')
