"""
Tests for the JSON upload/report endpoints.
"""
import io

import pytest

from app import create_app


@pytest.fixture
def client():
    app = create_app(test_config={'TESTING': True})
    with app.test_client() as client:
        yield client


def _upload(client, data: bytes, filename='export.csv', service_type='acueducto'):
    return client.post(
        '/api/uploads',
        data={'file': (io.BytesIO(data), filename), 'service_type': service_type},
        content_type='multipart/form-data',
    )


def test_health(client):
    response = client.get('/health')
    assert response.status_code == 200
    assert response.get_json() == {'status': 'healthy'}


def test_services(client):
    services = client.get('/api/services').get_json()
    assert [s['service_type'] for s in services] == ['acueducto', 'alcantarillado', 'aseo']
    aseo = services[2]
    assert aseo['report_fields'] == ['periodo', 'claseUso', 'numeroUsuarios', 'numeroMedidores', 'tarifa']


class TestUploadAndReport:

    def test_upload_then_reports(self, client, acueducto_csv_bytes):
        response = _upload(client, acueducto_csv_bytes)
        assert response.status_code == 201
        body = response.get_json()
        assert body['row_count'] == 3
        assert body['service_type'] == 'acueducto'
        upload_id = body['upload_id']

        monthly = client.get(f'/api/uploads/{upload_id}/report?mode=monthly').get_json()
        assert monthly['mode'] == 'monthly'
        assert [r['periodo'] for r in monthly['rows']] == ['01-2024', '02-2024']
        assert list(monthly['rows'][0]) == [
            'periodo', 'claseUso', 'numeroUsuarios', 'numeroMedidores',
            'totalConsumo', 'totalFacturado', 'totalRecaudo',
        ]

        annual = client.get(f'/api/uploads/{upload_id}/report?mode=annual').get_json()
        assert [r['periodo'] for r in annual['rows']] == ['2024', '2024']

    def test_default_mode(self, client, acueducto_csv_bytes):
        upload_id = _upload(client, acueducto_csv_bytes).get_json()['upload_id']
        body = client.get(f'/api/uploads/{upload_id}/report').get_json()
        assert body['mode'] == 'monthly'

    def test_missing_columns(self, client):
        response = _upload(client, b'A;B\n1;2\n')
        assert response.status_code == 422
        body = response.get_json()
        assert body['service_type'] == 'acueducto'
        assert 'VALOR TOTAL FACTURADO' in body['missing']

    def test_unsupported_extension(self, client, acueducto_csv_bytes):
        response = _upload(client, acueducto_csv_bytes, filename='export.pdf')
        assert response.status_code == 400

    def test_wrong_mime_type(self, client, acueducto_csv_bytes):
        response = client.post(
            '/api/uploads',
            data={
                'file': (io.BytesIO(acueducto_csv_bytes), 'export.csv', 'application/pdf'),
                'service_type': 'acueducto',
            },
            content_type='multipart/form-data',
        )
        assert response.status_code == 400
        assert 'application/pdf' in response.get_json()['error']

    def test_empty_file(self, client):
        response = _upload(client, b'')
        assert response.status_code == 400

    def test_no_file(self, client):
        response = client.post('/api/uploads', data={'service_type': 'aseo'})
        assert response.status_code == 400

    def test_unknown_upload(self, client):
        response = client.get('/api/uploads/does-not-exist/report')
        assert response.status_code == 404

    def test_invalid_mode(self, client, acueducto_csv_bytes):
        upload_id = _upload(client, acueducto_csv_bytes).get_json()['upload_id']
        response = client.get(f'/api/uploads/{upload_id}/report?mode=weekly')
        assert response.status_code == 400
        assert response.get_json()['allowed'] == ['monthly', 'annual']
