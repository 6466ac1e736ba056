"""Integration tests for the permohonan, dokumen and catalog endpoints

Run through FastAPI's TestClient with the database, catalog, document store
and task queue replaced by the fixtures in conftest.py.
"""

from unittest.mock import patch
from uuid import uuid4

import pytest

from config import settings
from observability.health import ComponentHealth, HealthStatus

API = "/api/v1"


@pytest.fixture
def headers(auth_headers, applicant):
    return auth_headers(applicant)


@pytest.fixture
def create_body(company):
    return {
        "company_id": str(company.id),
        "jenis_lesen_id": 1,
        "butiran_operasi": {
            "alamat_premis": {
                "alamat_1": "No. 12, Jalan Bunga Raya",
                "bandar": "Shah Alam",
                "poskod": "40000",
                "negeri": "Selangor",
            },
            "nama_perniagaan": "Kedai Makan Aminah",
            "jenis_operasi": "Restoran",
            "bilangan_pekerja": 4,
        },
    }


@pytest.fixture
def created(client, headers, create_body):
    response = client.post(f"{API}/permohonan", json=create_body, headers=headers)
    assert response.status_code == 201
    return response.json()


def upload_file(client, headers, permohonan_id, keperluan_id, content, filename="dokumen.pdf", mime="application/pdf"):
    return client.post(
        f"{API}/permohonan/{permohonan_id}/dokumen",
        data={"keperluan_dokumen_id": str(keperluan_id)},
        files={"file": (filename, content, mime)},
        headers=headers,
    )


class TestPermohonanFlow:

    def test_create_returns_draft(self, created, applicant):
        assert created["status"] == "Draf"
        assert created["tarikh_serahan"] is None
        assert created["user_id"] == str(applicant.id)
        assert created["butiran_operasi"]["alamat_premis"]["bandar"] == "Shah Alam"

    def test_full_submission(self, client, headers, created, pdf_bytes, task_queue):
        permohonan_id = created["id"]

        checklist = client.get(f"{API}/permohonan/{permohonan_id}/kelengkapan", headers=headers).json()
        assert checklist["lengkap"] is False
        assert len(checklist["validation_errors"]) == 3

        for keperluan_id in (1, 2, 3):
            response = upload_file(client, headers, permohonan_id, keperluan_id, pdf_bytes)
            assert response.status_code == 201
            assert response.json()["message"] == "Dokumen berjaya dimuat naik."
            assert response.json()["data"]["status_sah"] == "BelumSah"

        checklist = client.get(f"{API}/permohonan/{permohonan_id}/kelengkapan", headers=headers).json()
        assert checklist["lengkap"] is True
        assert checklist["validation_errors"] == []

        response = client.post(f"{API}/permohonan/{permohonan_id}/submit", headers=headers)
        assert response.status_code == 200
        assert response.json()["status"] == "Diserahkan"
        assert response.json()["tarikh_serahan"] is not None
        assert "send_submission_notification" in task_queue.consumers

        response = client.post(f"{API}/permohonan/{permohonan_id}/cancel", headers=headers)
        assert response.status_code == 422
        assert response.json()["error_code"] == "PERMOHONAN_NOT_DRAFT"

        detail = client.get(f"{API}/permohonan/{permohonan_id}", headers=headers).json()
        assert detail["jenis_lesen"]["nama"] == "Lesen Perniagaan Makanan"
        assert len(detail["dokumen"]) == 3

    def test_incomplete_submission_lists_missing(self, client, headers, created, pdf_bytes):
        upload_file(client, headers, created["id"], 1, pdf_bytes)

        response = client.post(f"{API}/permohonan/{created['id']}/submit", headers=headers)

        assert response.status_code == 422
        body = response.json()
        assert body["error_code"] == "PERMOHONAN_INCOMPLETE"
        assert body["validation_errors"] == [
            "Required document missing: Gambar Premis Perniagaan",
            "Required document missing: Sijil Kesihatan",
        ]

    def test_cancel_with_reason(self, client, headers, created, audit_entries):
        response = client.post(
            f"{API}/permohonan/{created['id']}/cancel",
            json={"reason": "Premis belum siap"},
            headers=headers,
        )
        assert response.status_code == 200
        assert response.json()["status"] == "Dibatalkan"
        assert audit_entries("permohonan_cancelled")[0].metadata_json["reason"] == "Premis belum siap"

    def test_cancel_without_body(self, client, headers, created):
        response = client.post(f"{API}/permohonan/{created['id']}/cancel", headers=headers)
        assert response.json()["status"] == "Dibatalkan"

    def test_patch_merges_details(self, client, headers, created):
        response = client.patch(
            f"{API}/permohonan/{created['id']}",
            json={"butiran_operasi": {"catatan": "Tingkat bawah"}},
            headers=headers,
        )
        assert response.status_code == 200
        details = response.json()["butiran_operasi"]
        assert details["catatan"] == "Tingkat bawah"
        assert details["nama_perniagaan"] == "Kedai Makan Aminah"

    def test_patch_cannot_erase_required_details(self, client, headers, created):
        response = client.patch(
            f"{API}/permohonan/{created['id']}",
            json={"butiran_operasi": {"nama_perniagaan": None, "alamat_premis": {"alamat_1": None}}},
            headers=headers,
        )
        assert response.status_code == 422
        body = response.json()
        assert body["error_code"] == "VALIDATION_ERROR"
        assert "nama_perniagaan: is required" in body["validation_errors"]

        detail = client.get(f"{API}/permohonan/{created['id']}", headers=headers).json()
        assert detail["butiran_operasi"]["nama_perniagaan"] == "Kedai Makan Aminah"
        assert detail["butiran_operasi"]["alamat_premis"]["alamat_1"] == "No. 12, Jalan Bunga Raya"

    def test_list_with_meta(self, client, headers, create_body):
        for _ in range(3):
            client.post(f"{API}/permohonan", json=create_body, headers=headers)

        body = client.get(f"{API}/permohonan?per_page=2", headers=headers).json()

        assert len(body["data"]) == 2
        assert body["meta"] == {"current_page": 1, "per_page": 2, "total": 3, "last_page": 2}

    def test_list_filters_by_status(self, client, headers, created):
        body = client.get(f"{API}/permohonan?status=Diserahkan", headers=headers).json()
        assert body["data"] == []
        assert body["meta"]["total"] == 0


class TestErrors:

    def test_other_user_is_forbidden(self, client, created, auth_headers, other_user):
        response = client.get(f"{API}/permohonan/{created['id']}", headers=auth_headers(other_user))
        assert response.status_code == 403
        assert response.json()["error_code"] == "NOT_OWNER"

    def test_unknown_application(self, client, headers):
        response = client.get(f"{API}/permohonan/{uuid4()}", headers=headers)
        assert response.status_code == 404
        assert response.json()["error_code"] == "PERMOHONAN_NOT_FOUND"

    def test_missing_token(self, client):
        response = client.get(f"{API}/permohonan")
        assert response.status_code in (401, 403)

    def test_invalid_token(self, client):
        response = client.get(f"{API}/permohonan", headers={"Authorization": "Bearer not-a-token"})
        assert response.status_code == 401

    def test_request_validation_body(self, client, headers):
        response = client.post(f"{API}/permohonan", json={"jenis_lesen_id": 0}, headers=headers)

        assert response.status_code == 422
        body = response.json()
        assert body["error_code"] == "VALIDATION_ERROR"
        assert any(message.startswith("company_id") for message in body["validation_errors"])

    def test_invalid_license_type(self, client, headers, create_body):
        create_body["jenis_lesen_id"] = 99
        response = client.post(f"{API}/permohonan", json=create_body, headers=headers)
        assert response.status_code == 422
        assert response.json()["error_code"] == "INVALID_JENIS_LESEN"

    def test_company_of_someone_else(self, client, headers, create_body, other_company):
        create_body["company_id"] = str(other_company.id)
        response = client.post(f"{API}/permohonan", json=create_body, headers=headers)
        assert response.status_code == 403
        assert response.json()["error_code"] == "COMPANY_NOT_OWNED"

    def test_module_disabled(self, client, headers, monkeypatch):
        monkeypatch.setattr(settings, "PERMOHONAN_MODULE_ENABLED", False)
        response = client.get(f"{API}/permohonan", headers=headers)
        assert response.status_code == 503
        assert response.json()["error_code"] == "FEATURE_DISABLED"


class TestDokumenEndpoints:

    def test_rejects_executable(self, client, headers, created):
        response = upload_file(
            client, headers, created["id"], 1, b"MZ\x90\x00", filename="setup.exe", mime="application/x-msdownload"
        )
        assert response.status_code == 422
        assert response.json()["error_code"] == "INVALID_FILE_TYPE"

    def test_list_and_delete(self, client, headers, created, pdf_bytes, document_store):
        uploaded = upload_file(client, headers, created["id"], 2, pdf_bytes, filename="premis.pdf").json()["data"]

        listed = client.get(f"{API}/permohonan/{created['id']}/dokumen", headers=headers).json()
        assert [d["id"] for d in listed["data"]] == [uploaded["id"]]

        response = client.delete(f"{API}/permohonan/{created['id']}/dokumen/{uploaded['id']}", headers=headers)
        assert response.status_code == 200
        assert response.json()["message"] == "Dokumen berjaya dipadam."
        assert document_store.blobs == {}

    def test_missing_requirement_field(self, client, headers, created, pdf_bytes):
        response = client.post(
            f"{API}/permohonan/{created['id']}/dokumen",
            files={"file": ("ssm.pdf", pdf_bytes, "application/pdf")},
            headers=headers,
        )
        assert response.status_code == 422
        assert response.json()["error_code"] == "VALIDATION_ERROR"


class TestCatalogEndpoints:

    def test_license_types(self, client, headers):
        body = client.get(f"{API}/catalog/jenis-lesen", headers=headers).json()
        assert [item["kod"] for item in body["data"]] == ["LPM", "LKR", "LPK"]

    def test_requirements(self, client, headers):
        body = client.get(f"{API}/catalog/jenis-lesen/2/keperluan-dokumen", headers=headers).json()
        assert [item["id"] for item in body["data"]] == [4, 5]


class TestObservabilityEndpoints:

    def test_health(self, client):
        healthy = ComponentHealth(HealthStatus.HEALTHY, "Redis connection OK", 0.1)
        with patch("observability.router.check_redis_health", return_value=healthy):
            response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert set(body["components"]) == {"database", "redis", "document_store"}

    def test_metrics_exposed(self, client):
        response = client.get("/metrics")
        assert response.status_code == 200
        assert "permohonan_dokumen_uploads_total" in response.text

    def test_request_id_echoed(self, client):
        response = client.get("/ready", headers={"X-Request-ID": "req-integration"})
        assert response.status_code == 200
        assert response.headers["X-Request-ID"] == "req-integration"
