import uuid
from io import BytesIO
from flask import Blueprint, render_template, request, flash, redirect, url_for, send_file, current_app
from app.models.certificate import Certificate, GENDER_CHOICES, OPTIONAL_DEFAULTS, SEARCH_FIELDS, FIELD_LABELS
from app.utils.decorators import role_required
from app.utils.excel_export import export_certificates_to_excel
from app.utils.helpers import allowed_file, file_to_data_url, riyadh_now
from app.utils.pdf_export import ExportError, export_certificate_pdf
from app.utils.qr import qr_code_data_url, verification_url
from app.utils.store import StoreError, StoreUnavailable, get_store
from app.utils.telegram_notifications import notify_certificate_issued
from app.utils.verification import lookup_message

bp = Blueprint('certificates', __name__)

UNAVAILABLE_MESSAGE = 'متغيرات البيئة الخاصة بـ Supabase غير متوفرة. لا يمكن حفظ الشهادة في قاعدة البيانات.'
STORAGE_WARNING = 'هناك مشكلة في تخزين الصور. يرجى التأكد من إنشاء bucket بإسم "certificates" في لوحة تحكم Supabase وجعله عاماً (public).'


def public_origin():
    return current_app.config.get('PUBLIC_BASE_URL') or request.host_url


def _parse_uuid(value):
    try:
        return str(uuid.UUID(value or ''))
    except ValueError:
        return None


def _render_form(certificate_id, values, errors=None, status=200):
    return render_template(
        'certificates/create.html',
        certificate_id=certificate_id,
        values=values,
        errors=errors or {},
        labels=FIELD_LABELS,
        genders=GENDER_CHOICES,
        qr_preview=qr_code_data_url(verification_url(public_origin(), certificate_id))
    ), status


@bp.route('/dashboard')
@role_required('admin', 'operator')
def dashboard():
    certificates = get_store().fetch_all()
    stats = {
        'total': len(certificates),
        'with_photo': sum(1 for certificate in certificates if certificate.photo_url),
    }
    stats['without_photo'] = stats['total'] - stats['with_photo']
    return render_template('certificates/dashboard.html', stats=stats, recent=certificates[:5])


@bp.route('/create', methods=['GET', 'POST'])
@role_required('admin', 'operator')
def create():
    store = get_store()

    if request.method == 'GET':
        return _render_form(str(uuid.uuid4()), dict(OPTIONAL_DEFAULTS))

    certificate_id = _parse_uuid(request.form.get('certificate_id')) or str(uuid.uuid4())
    values = request.form.to_dict()

    errors = Certificate.validate_form(request.form)
    photo_data_url = None
    photo = request.files.get('photo')
    if photo and photo.filename:
        allowed = current_app.config['ALLOWED_PHOTO_EXTENSIONS']
        if not allowed_file(photo.filename, allowed):
            errors['photo'] = 'صيغة الصورة غير مدعومة'
        else:
            try:
                photo_data_url = file_to_data_url(photo, allowed)
            except ValueError as e:
                errors['photo'] = str(e)
    if errors:
        return _render_form(certificate_id, values, errors, status=400)

    if not store.available:
        flash(UNAVAILABLE_MESSAGE, 'danger')
        return _render_form(certificate_id, values, status=503)

    certificate = Certificate.from_form(request.form, certificate_id)
    qr_data_url = qr_code_data_url(verification_url(public_origin(), certificate_id))

    try:
        storage_failed = False
        if photo_data_url:
            certificate.photo_url = store.upload_image(photo_data_url, f'photo_{certificate_id}')
            storage_failed = certificate.photo_url is None

        certificate.qr_code_url = store.upload_image(qr_data_url, f'qrcode_{certificate_id}')
        storage_failed = storage_failed or certificate.qr_code_url is None

        created = store.create(certificate)
    except StoreUnavailable:
        flash(UNAVAILABLE_MESSAGE, 'danger')
        return _render_form(certificate_id, values, status=503)
    except StoreError as e:
        flash(str(e), 'danger')
        return _render_form(certificate_id, values, status=502)

    if storage_failed:
        flash(STORAGE_WARNING, 'warning')
    flash('تم إنشاء الشهادة بنجاح', 'success')

    view_url = url_for('certificates.view', certificate_id=created.id, _external=True)
    notify_certificate_issued(current_app.config, created, view_url)
    return redirect(url_for('certificates.view', certificate_id=created.id))


@bp.route('/view/<certificate_id>')
@role_required('admin', 'operator')
def view(certificate_id):
    lookup = get_store().fetch_by_id(certificate_id)
    if not lookup.found:
        return render_template('public/invalid.html', message=lookup_message(lookup), show_create=True), 404

    certificate = lookup.certificate
    origin = public_origin().rstrip('/')
    return render_template(
        'certificates/view.html',
        certificate=certificate,
        verification_url=verification_url(origin, certificate.id),
        public_verify_url=f'{origin}/public-verify?{certificate.public_verify_query()}'
    )


@bp.route('/view/<certificate_id>/pdf')
@role_required('admin', 'operator')
def export_pdf(certificate_id):
    lookup = get_store().fetch_by_id(certificate_id)
    if not lookup.found:
        flash(lookup_message(lookup), 'danger')
        return redirect(url_for('certificates.view', certificate_id=certificate_id))

    try:
        pdf_bytes = export_certificate_pdf(
            lookup.certificate,
            verification_url(public_origin(), certificate_id),
            font_path=current_app.config.get('CERTIFICATE_FONT_PATH'),
            timeout=current_app.config.get('BACKEND_TIMEOUT', 10)
        )
    except ExportError as e:
        flash(str(e), 'danger')
        return redirect(url_for('certificates.view', certificate_id=certificate_id))

    return send_file(
        BytesIO(pdf_bytes),
        mimetype='application/pdf',
        as_attachment=True,
        download_name=current_app.config['PDF_FILENAME']
    )


@bp.route('/certificates')
@role_required('admin', 'operator')
def certificates():
    return render_template('certificates/list.html', certificates=get_store().fetch_all())


@bp.route('/certificates/export.xlsx')
@role_required('admin', 'operator')
def export_excel():
    output = export_certificates_to_excel(get_store().fetch_all())
    return send_file(
        output,
        mimetype='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
        as_attachment=True,
        download_name=f'certificates_{riyadh_now().strftime("%Y%m%d")}.xlsx'
    )


@bp.route('/certificates/<certificate_id>/delete', methods=['POST'])
@role_required('admin')
def delete(certificate_id):
    try:
        deleted = get_store().delete_by_id(certificate_id)
    except StoreUnavailable:
        flash('متغيرات البيئة الخاصة بـ Supabase غير متوفرة. لا يمكن حذف الشهادة.', 'danger')
        return redirect(url_for('certificates.certificates'))

    if deleted:
        flash('تم حذف الشهادة بنجاح', 'success')
    else:
        flash('فشل في حذف الشهادة. يرجى المحاولة مرة أخرى.', 'danger')
    return redirect(url_for('certificates.certificates'))


@bp.route('/search')
@role_required('admin', 'operator')
def search():
    field = request.args.get('field', 'certificate_number')
    term = request.args.get('q')
    results = []
    searched = False

    if term is not None:
        if not term.strip():
            flash('الرجاء إدخال قيمة للبحث', 'danger')
        elif field not in SEARCH_FIELDS:
            flash('حقل البحث غير مدعوم', 'danger')
        else:
            searched = True
            try:
                results = get_store().search(field, term)
            except StoreUnavailable:
                flash('متغيرات البيئة الخاصة بـ Supabase غير متوفرة. لا يمكن البحث.', 'danger')
            except StoreError as e:
                flash(str(e), 'danger')

    return render_template(
        'certificates/search.html',
        field=field,
        term=term or '',
        results=results,
        searched=searched,
        labels=FIELD_LABELS,
        search_fields=SEARCH_FIELDS
    )
