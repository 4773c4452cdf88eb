"""
Tests for the operator pages: list, search, delete, dashboard and exports.
"""
from io import BytesIO

import pytest
from flask import template_rendered
from openpyxl import load_workbook
from PIL import Image

from app.models.certificate import Certificate
from app.utils import pdf_export


class TestList:

    def test_lists_newest_first(self, admin_client, create_certificate):
        create_certificate(id='a', name='First Holder')
        create_certificate(id='b', name='Second Holder')

        html = admin_client.get('/certificates').get_data(as_text=True)

        assert html.index('Second Holder') < html.index('First Holder')

    def test_empty_list(self, admin_client):
        response = admin_client.get('/certificates')

        assert response.status_code == 200
        assert 'لا توجد شهادات' in response.get_data(as_text=True)

    def test_unconfigured_backend_shows_empty_list(self, offline_admin_client):
        response = offline_admin_client.get('/certificates')

        assert response.status_code == 200
        assert 'لا توجد شهادات' in response.get_data(as_text=True)


class TestDelete:

    def test_admin_deletes_certificate(self, admin_client, store, create_certificate):
        created = create_certificate(id='abc')

        response = admin_client.post(f'/certificates/{created.id}/delete', follow_redirects=True)

        assert 'تم حذف الشهادة بنجاح' in response.get_data(as_text=True)
        assert not store.fetch_by_id('abc').found
        assert store.fetch_all() == []

    def test_backend_error_reports_failure(self, admin_client, fake_supabase, create_certificate):
        create_certificate(id='abc')
        fake_supabase.fail_writes = True

        response = admin_client.post('/certificates/abc/delete', follow_redirects=True)

        assert 'فشل في حذف الشهادة' in response.get_data(as_text=True)

    def test_operator_cannot_delete(self, operator_client, store, create_certificate):
        create_certificate(id='abc')

        response = operator_client.post('/certificates/abc/delete')

        assert response.status_code == 403
        assert store.fetch_by_id('abc').found

    def test_unconfigured_backend_fails_closed(self, offline_admin_client):
        response = offline_admin_client.post('/certificates/abc/delete', follow_redirects=True)

        assert response.status_code == 200
        assert 'لا يمكن حذف الشهادة' in response.get_data(as_text=True)


class TestSearch:

    def test_empty_term_is_rejected_without_backend_call(self, admin_client, fake_supabase):
        response = admin_client.get('/search?field=certificate_number&q=+')

        assert 'الرجاء إدخال قيمة للبحث' in response.get_data(as_text=True)
        assert fake_supabase.calls == []

    def test_partial_case_insensitive_match(self, admin_client, create_certificate):
        create_certificate(id='a', name='Matching Holder', certificate_number='HC-777')
        create_certificate(id='b', name='Other Holder', certificate_number='XY-1')

        html = admin_client.get('/search?field=certificate_number&q=hc-7').get_data(as_text=True)

        assert 'Matching Holder' in html
        assert 'Other Holder' not in html

    def test_search_by_id_number(self, admin_client, create_certificate):
        create_certificate(id='a', name='Matching Holder', id_number='1098765432')

        html = admin_client.get('/search?field=id_number&q=8765').get_data(as_text=True)

        assert 'Matching Holder' in html

    def test_no_results(self, admin_client):
        html = admin_client.get('/search?field=certificate_number&q=none').get_data(as_text=True)

        assert 'لم يتم العثور على نتائج' in html

    def test_backend_failure_is_reported(self, admin_client, fake_supabase):
        fake_supabase.fail_reads = True

        html = admin_client.get('/search?field=certificate_number&q=C').get_data(as_text=True)

        assert 'حدث خطأ أثناء البحث' in html


class TestViewAndDashboard:

    def test_view_shows_certificate_and_links(self, admin_client, create_certificate):
        create_certificate(id='abc', name='Stored Name')

        html = admin_client.get('/view/abc').get_data(as_text=True)

        assert 'Stored Name' in html
        assert 'https://certs.example.com/verify/abc' in html
        assert 'https://certs.example.com/public-verify?id=abc' in html

    def test_view_unknown_certificate_offers_create(self, admin_client):
        response = admin_client.get('/view/missing')

        assert response.status_code == 404
        assert 'إنشاء شهادة جديدة' in response.get_data(as_text=True)

    def test_dashboard_counts(self, app, admin_client, create_certificate):
        for index in range(7):
            photo_url = 'https://cdn.example.com/p.png?' if index < 3 else None
            create_certificate(id=f'c{index}', name=f'Holder {index}', photo_url=photo_url)

        rendered = []

        def record(sender, template, context, **extra):
            rendered.append(context)

        with template_rendered.connected_to(record, app):
            response = admin_client.get('/dashboard')

        assert response.status_code == 200
        context = rendered[0]
        assert context['stats'] == {'total': 7, 'with_photo': 3, 'without_photo': 4}
        assert [c.id for c in context['recent']] == ['c6', 'c5', 'c4', 'c3', 'c2']
        html = response.get_data(as_text=True)
        assert '<strong>7</strong>' in html
        assert 'Holder 6' in html
        assert 'Holder 1' not in html


class TestExports:

    def test_pdf_download(self, admin_client, create_certificate):
        create_certificate(id='abc')

        response = admin_client.get('/view/abc/pdf')

        assert response.status_code == 200
        assert response.mimetype == 'application/pdf'
        assert response.data.startswith(b'%PDF')
        assert 'attachment' in response.headers['Content-Disposition']

    def test_pdf_failure_keeps_view(self, admin_client, create_certificate, monkeypatch):
        create_certificate(id='abc')

        def broken(*args, **kwargs):
            raise RuntimeError('canvas exploded')

        monkeypatch.setattr(pdf_export, 'rasterize_certificate', broken)

        response = admin_client.get('/view/abc/pdf')

        assert response.status_code == 302
        assert response.headers['Location'].endswith('/view/abc')
        follow = admin_client.get('/view/abc')
        assert 'حدث خطأ أثناء تصدير ملف PDF' in follow.get_data(as_text=True)

    def test_excel_export(self, admin_client, create_certificate):
        create_certificate(id='a', certificate_number='C-1')
        create_certificate(id='b', certificate_number='C-2')

        response = admin_client.get('/certificates/export.xlsx')

        assert response.status_code == 200
        sheet = load_workbook(BytesIO(response.data)).active
        assert sheet.sheet_view.rightToLeft
        assert sheet.cell(row=1, column=1).value == 'رقم الشهادة'
        assert [sheet.cell(row=row, column=1).value for row in (2, 3)] == ['C-2', 'C-1']


class TestRasterizer:

    def test_rasterizes_at_double_scale(self):
        certificate = Certificate(id='abc', name='Test User', certificate_number='C-1')

        image = pdf_export.rasterize_certificate(certificate, 'https://certs.example.com/verify/abc')

        assert image.size[0] == pdf_export.CARD_WIDTH * pdf_export.EXPORT_SCALE

    def test_page_keeps_aspect_ratio_at_a4_width(self):
        width, height = pdf_export.page_size_for(Image.new('RGB', (1200, 2400)))

        assert width == pytest.approx(pdf_export.A4_WIDTH)
        assert height == pytest.approx(pdf_export.A4_WIDTH * 2)

    def test_build_pdf_returns_pdf_document(self):
        pdf_bytes = pdf_export.build_pdf(Image.new('RGB', (600, 900), 'white'))

        assert pdf_bytes.startswith(b'%PDF')
