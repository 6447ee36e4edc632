"""
Payroll PDF tests.

Verifies:
- Only real PDFs within the size limit are accepted
- Uploads list with the uploader's display name and stream back inline
- Upload, view and delete each need their own payroll PDF permission
- Delete removes the stored content
"""

import io

import pytest

from portal.models import Blob
from portal.services import blob_service, role_service

from .conftest import login_headers

PDF_BYTES = b'%PDF-1.7\n1 0 obj\n<<>>\nendobj\n%%EOF'


def _upload(client, headers, data=PDF_BYTES, name='payroll-oct.pdf', mimetype='application/pdf'):
    return client.post(
        '/pdfs',
        headers=headers,
        data={'file': (io.BytesIO(data), name, mimetype)},
        content_type='multipart/form-data',
    )


class TestUpload:
    def test_upload_list_and_view(self, client, admin_headers):
        response = _upload(client, admin_headers)
        assert response.status_code == 201
        document = response.get_json()['file']
        assert document['original_name'] == 'payroll-oct.pdf'
        assert document['uploader_display'] == 'Administrator Tester'

        listed = client.get('/pdfs', headers=admin_headers).get_json()
        assert [d['id'] for d in listed] == [document['id']]

        view = client.get(f"/pdfs/{document['id']}/view", headers=admin_headers)
        assert view.status_code == 200
        assert view.mimetype == 'application/pdf'
        assert view.data == PDF_BYTES

    @pytest.mark.parametrize('data,name,mimetype', [
        (b'hello', 'notes.txt', 'text/plain'),
        (PDF_BYTES, 'payroll.txt', 'application/pdf'),
        (b'not really a pdf', 'fake.pdf', 'application/pdf'),
        (b'', 'empty.pdf', 'application/pdf'),
    ])
    def test_rejects_non_pdfs(self, client, admin_headers, data, name, mimetype):
        response = _upload(client, admin_headers, data=data, name=name, mimetype=mimetype)

        assert response.status_code == 400
        assert response.get_json()['error'] == 'ValidationError'

    def test_rejects_oversized(self, app, client, admin_headers, monkeypatch):
        monkeypatch.setitem(app.config, 'MAX_UPLOAD_BYTES', 16)

        response = _upload(client, admin_headers)

        assert response.status_code == 400


class TestDelete:
    def test_clerk_cannot_delete(self, client, admin_headers, clerk_headers):
        document = _upload(client, admin_headers).get_json()['file']

        response = client.delete(f"/pdfs/{document['id']}", headers=clerk_headers)

        assert response.status_code == 403

    def test_delete_removes_content(self, client, admin_headers, db_session):
        document = _upload(client, admin_headers).get_json()['file']

        response = client.delete(f"/pdfs/{document['id']}", headers=admin_headers)

        assert response.status_code == 204
        assert db_session.query(Blob).count() == 0
        assert client.get(f"/pdfs/{document['id']}/view", headers=admin_headers).status_code == 404


class TestBlobMaintenance:
    def test_orphans_are_found_and_purged(self, client, admin_headers, db_session):
        kept = _upload(client, admin_headers).get_json()['file']
        orphan_id = blob_service.get_blob_store().put(b'left behind', 'application/pdf')

        assert blob_service.find_orphaned_blob_ids() == [orphan_id]

        removed = blob_service.purge_orphaned_blobs(max_age_hours=-1)

        assert removed == 1
        assert db_session.query(Blob).count() == 1
        assert client.get(f"/pdfs/{kept['id']}/view", headers=admin_headers).status_code == 200


class TestPermissions:
    def test_clerk_can_view_but_not_upload(self, client, admin_headers, clerk_headers):
        document = _upload(client, admin_headers).get_json()['file']

        assert _upload(client, clerk_headers).status_code == 403
        assert client.get(f"/pdfs/{document['id']}/view", headers=clerk_headers).status_code == 200

    def test_view_needs_download_permission(self, client, admin_headers, make_user):
        role_service.create_role(None, name='listing-only')
        make_user('reader', role='listing-only')
        document = _upload(client, admin_headers).get_json()['file']
        headers = login_headers(client, 'reader')

        assert client.get('/pdfs', headers=headers).status_code == 200
        assert client.get(f"/pdfs/{document['id']}/view", headers=headers).status_code == 403
