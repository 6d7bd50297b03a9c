from unittest.mock import AsyncMock, patch

from school_directory.services.errors import PersistenceError


async def test_root(client):
    response = await client.get("/")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


async def test_health_db(client):
    response = await client.get("/health/db")
    assert response.json() == {"database": "connected", "status": "healthy", "result": 1}


async def test_health_storage_not_configured(client):
    response = await client.get("/health/storage")
    assert response.json()["storage"] == "not_configured"


async def test_persistence_error_response(client):
    error = PersistenceError("commit lost", stage="commit", reconciliation_required=True)
    with patch("school_directory.services.school_service.list_schools", AsyncMock(side_effect=error)):
        response = await client.get("/api/schools")

    assert response.status_code == 500
    assert response.json() == {
        "error": "Failed to save changes",
        "detail": "commit lost",
        "stage": "commit",
        "reconciliation_required": True,
    }


async def test_error_responses_echo_allowed_origin(client):
    response = await client.get(
        "/api/schools", params={"limit": 500}, headers={"Origin": "http://localhost:3000"}
    )
    assert response.status_code == 400
    assert response.headers["access-control-allow-origin"] == "http://localhost:3000"
