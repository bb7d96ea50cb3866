"""API tests."""

import asyncio

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import NullPool

from aio_jobs.api.deps import get_embedding_drain, get_translation_drain
from aio_jobs.database import Base, get_database_url
from aio_jobs.database.models import OrganizationORM, PostORM
from aio_jobs.main import app
from aio_jobs.services.drain import EmbeddingDrain, TranslationDrain


async def seed_database() -> None:
    """Create tables and content with a short-lived engine of its own."""
    engine = create_async_engine(get_database_url(), poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
        await conn.execute(
            OrganizationORM.__table__.insert(),
            [{"id": "org-api", "name": "API Org", "slug": "org-api"}],
        )
        await conn.execute(
            PostORM.__table__.insert(),
            [
                {"id": f"api-post-{i}", "organization_id": "org-api", "title": f"記事{i}"}
                for i in range(1, 4)
            ],
        )
    await engine.dispose()


@pytest.fixture(scope="module")
def client(fake_providers):
    """Create a test client with fake providers behind the drain endpoints."""
    asyncio.run(seed_database())
    translator, embedder = fake_providers
    app.dependency_overrides[get_translation_drain] = lambda: TranslationDrain(
        provider=translator, retry_base_delay_seconds=0
    )
    app.dependency_overrides[get_embedding_drain] = lambda: EmbeddingDrain(provider=embedder)
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture(scope="module")
def fake_providers(fake_translator, fake_embedder):
    return fake_translator(), fake_embedder()


def enqueue_body(**overrides) -> dict:
    body = {
        "organization_id": "org-api",
        "source_table": "posts",
        "source_id": "api-post-1",
        "source_field": "title",
        "source_text": "記事1",
        "source_lang": "ja",
        "target_lang": "en",
    }
    body.update(overrides)
    return body


def test_root(client):
    """Test root endpoint."""
    response = client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "AIO Jobs"
    assert "version" in data


def test_health(client):
    """Test health endpoint."""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert set(data["queues"]) == {"translation", "embedding"}
    assert isinstance(data["queues"]["translation"]["pending"], int)
    assert isinstance(data["queues"]["embedding"]["in_progress"], int)


def test_enqueue_translation_and_dedup(client):
    response = client.post("/api/translations/enqueue", json=enqueue_body(target_lang="fr"))
    assert response.status_code == 200
    first = response.json()
    assert first["success"] is True
    assert first["skipped"] is False

    response = client.post("/api/translations/enqueue", json=enqueue_body(target_lang="fr"))
    assert response.status_code == 200
    second = response.json()
    assert second["skipped"] is True
    assert second["job_id"] == first["job_id"]


def test_enqueue_validation_errors(client):
    response = client.post("/api/translations/enqueue", json=enqueue_body(source_field="slug"))
    assert response.status_code == 400

    response = client.post("/api/translations/enqueue", json=enqueue_body(target_lang="ja"))
    assert response.status_code == 400

    response = client.post("/api/translations/enqueue", json=enqueue_body(priority=0))
    assert response.status_code == 400

    response = client.post(
        "/api/translations/enqueue", json=enqueue_body(organization_id="org-missing")
    )
    assert response.status_code == 404


def test_drain_get_and_cancel(client):
    job_id = client.post(
        "/api/translations/enqueue",
        json=enqueue_body(source_id="api-post-2", target_lang="de", priority=10),
    ).json()["job_id"]

    response = client.post("/api/translations/drain", params={"batch_size": 50})
    assert response.status_code == 200
    assert response.json()["completed_count"] >= 1

    response = client.get(f"/api/translations/{job_id}")
    assert response.status_code == 200
    job = response.json()
    assert job["status"] == "completed"
    assert job["translated_text"] == "[de] 記事1"
    assert job["completed_at"] is not None

    # Terminal jobs cannot be cancelled
    response = client.post(f"/api/translations/{job_id}/cancel")
    assert response.status_code == 409

    response = client.post("/api/translations/missing/cancel")
    assert response.status_code == 404
    response = client.get("/api/translations/missing")
    assert response.status_code == 404


def test_cancel_pending_job(client):
    job_id = client.post(
        "/api/translations/enqueue",
        json=enqueue_body(source_id="api-post-3", target_lang="ko", delay_seconds=3600),
    ).json()["job_id"]

    response = client.post(f"/api/translations/{job_id}/cancel")
    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"


def test_list_and_metrics(client):
    client.post("/api/translations/enqueue", json=enqueue_body(target_lang="it"))

    response = client.get(
        "/api/translations", params={"target_lang": "it", "organization_id": "org-api"}
    )
    assert response.status_code == 200
    page = response.json()
    assert page["total"] == 1
    assert page["data"][0]["target_lang"] == "it"

    response = client.get("/api/translations", params={"limit": 0})
    assert response.status_code == 400

    response = client.get("/api/translations/metrics", params={"organization_id": "org-api"})
    assert response.status_code == 200
    metrics = response.json()
    assert metrics["total_jobs"] >= 1
    assert "jobs_by_language" in metrics


def test_bulk_translate(client):
    response = client.post(
        "/api/translations/bulk",
        json={"organization_id": "org-api", "target_languages": ["es"], "content_types": ["posts"]},
    )
    assert response.status_code == 200
    result = response.json()
    assert result["requested_count"] == 3
    assert result["enqueued_count"] == 3

    response = client.post(
        "/api/translations/bulk",
        json={"organization_id": "org-missing", "target_languages": ["es"]},
    )
    assert response.status_code == 404


def test_embedding_enqueue_and_drain(client):
    response = client.post(
        "/api/embeddings/enqueue",
        json={
            "organization_id": "org-api",
            "source_table": "posts",
            "source_id": "api-post-1",
            "source_field": "title",
            "content_text": "記事1",
        },
    )
    assert response.status_code == 200
    job_id = response.json()["job_id"]

    response = client.post("/api/embeddings/drain")
    assert response.status_code == 200
    assert response.json()["completed_count"] == 1

    job = client.get(f"/api/embeddings/{job_id}").json()
    assert job["status"] == "completed"
    assert job["chunk_count"] == 1

    metrics = client.get("/api/embeddings/metrics").json()
    assert metrics["active_embeddings"] == 1

    response = client.get(
        "/api/embeddings/vectors", params={"organization_id": "org-api", "is_active": True}
    )
    assert response.status_code == 200
    page = response.json()
    assert page["total"] == 1
    assert page["data"][0]["job_id"] == job_id
    assert page["data"][0]["chunk_text"] == "記事1"
    assert page["data"][0]["vector"] is None

    response = client.get(
        "/api/embeddings/vectors", params={"source_id": "api-post-1", "include_vectors": True}
    )
    assert response.json()["data"][0]["vector"] == [3.0, 1.0, 0.5]

    response = client.get("/api/embeddings/vectors", params={"source_table": "pages"})
    assert response.status_code == 400


def test_session_optimistic_save(client):
    response = client.post("/api/sessions", json={"user_id": "user-1", "answers": {"q1": "a"}})
    assert response.status_code == 201
    session_id = response.json()["id"]

    response = client.patch(
        f"/api/sessions/{session_id}", json={"answers": {"q2": "b"}, "clientVersion": 0}
    )
    assert response.status_code == 200
    saved = response.json()
    assert saved["ok"] is True
    assert saved["newVersion"] == 1
    assert "updatedAt" in saved

    # Same base version again: rejected with the authoritative document
    response = client.patch(
        f"/api/sessions/{session_id}", json={"answers": {"q2": "c"}, "clientVersion": 0}
    )
    assert response.status_code == 409
    conflict = response.json()
    assert conflict["conflict"] is True
    assert conflict["latest"]["id"] == session_id
    assert conflict["latest"]["version"] == 1
    assert conflict["latest"]["answers"] == {"q1": "a", "q2": "b"}

    response = client.get(f"/api/sessions/{session_id}")
    assert response.status_code == 200
    assert response.json()["readOnly"] is False

    response = client.patch(f"/api/sessions/{session_id}", json={"answers": {}})
    assert response.status_code == 400


def test_session_delete(client):
    session_id = client.post("/api/sessions", json={"user_id": "user-2"}).json()["id"]

    assert client.delete(f"/api/sessions/{session_id}").status_code == 200
    assert client.delete(f"/api/sessions/{session_id}").status_code == 404
    response = client.patch(
        f"/api/sessions/{session_id}", json={"answers": {"q": 1}, "clientVersion": 0}
    )
    assert response.status_code == 404


def test_admin_performance(client):
    client.get("/")
    response = client.get("/api/admin/performance")
    assert response.status_code == 200
    summary = response.json()
    assert summary["count"] >= 1
    assert summary["capacity"] >= summary["count"]
