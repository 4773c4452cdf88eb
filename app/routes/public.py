from flask import Blueprint, render_template, request, current_app
from app.utils.store import get_store
from app.utils.verification import lookup_message, resolve_public_verification

bp = Blueprint('public', __name__)

@bp.route('/')
def index():
    missing_env = []
    if not get_store().available:
        missing_env = [key for key in ('SUPABASE_URL', 'SUPABASE_ANON_KEY') if not current_app.config.get(key)]
    return render_template('public/index.html', missing_env=missing_env)

@bp.route('/verify/<certificate_id>')
def verify(certificate_id):
    lookup = get_store().fetch_by_id(certificate_id)
    if not lookup.found:
        return render_template('public/invalid.html', message=lookup_message(lookup)), 404

    return render_template('public/verify.html', certificate=lookup.certificate, degraded=False)

@bp.route('/public-verify')
def public_verify():
    lookup = resolve_public_verification(get_store(), request.args)
    if not lookup.found:
        return render_template('public/invalid.html', message=lookup_message(lookup)), 404

    return render_template('public/verify.html', certificate=lookup.certificate, degraded=lookup.degraded)
