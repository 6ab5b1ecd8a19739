"""Tests for the index, health check and JSON error pages."""

from unittest.mock import patch


class TestMainRoutes:
    """Test cases for the main blueprint."""

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.get_json()
        assert data["ok"] is True
        assert data["status"] == "healthy"
        assert data["database"] == "connected"
        assert data["configuration"]["environment"] == "testing"

    def test_health_reports_provider_services(self, app, client):
        app.config.update(
            {
                "OCR_PROVIDER": "groq",
                "GROQ_API_KEY": "gk",
                "GRADING_PROVIDER": "gemini",
                "GEMINI_API_KEY": "",
            }
        )

        services = client.get("/health").get_json()["services"]

        assert set(services) == {"groq_ocr", "gemini_grading"}
        assert services["groq_ocr"]["available"] is True
        assert services["gemini_grading"]["available"] is False
        assert services["groq_ocr"]["status"] == "unknown"
        assert services["groq_ocr"]["metrics"]["total_requests"] == 0

    def test_health_reports_unknown_provider(self, app, client):
        app.config["OCR_PROVIDER"] = "vision"

        data = client.get("/health").get_json()

        assert data["ok"] is True
        assert "Unknown OCR provider" in data["providerErrors"]["ocr"]

    def test_health_database_unavailable(self, client):
        with patch(
            "webapp.routes.main_routes.db.session.execute", side_effect=RuntimeError("down")
        ):
            response = client.get("/health")

        assert response.status_code == 503
        assert response.get_json()["status"] == "unhealthy"

    def test_index_lists_endpoints(self, client):
        data = client.get("/").get_json()

        assert data["message"] == "Answer Paper Correction API"
        assert data["endpoints"]["papers"]["upload"] == "POST /api/papers/upload/student-papers"
        assert data["endpoints"]["grading"]["grade"] == "POST /api/grading/grade"


class TestErrorPages:
    """Errors are answered with JSON."""

    def test_unknown_route(self, client):
        response = client.get("/api/nothing-here")

        assert response.status_code == 404
        assert response.is_json
        assert response.get_json()["code"] == "NOT_FOUND"

    def test_method_not_allowed(self, client):
        response = client.delete("/health")

        assert response.status_code == 405
        assert response.get_json()["code"] == "METHOD_NOT_ALLOWED"

    def test_cors_headers(self, client):
        response = client.get("/health", headers={"Origin": "http://localhost:5173"})
        assert "Access-Control-Allow-Origin" in response.headers
