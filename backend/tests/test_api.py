"""Tests for the coach HTTP API."""
import uuid

import pytest
from fastapi.testclient import TestClient

from coach.main import app


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def user_id():
    return f"user-{uuid.uuid4().hex[:8]}"


def _ask(client, user_id, **overrides):
    body = {
        "query": "Is my offer worth the CAC I pay?",
        "businessContext": {"cac": 100, "currentRevenue": 36000, "customerCount": 10, "grossMargin": 50},
        "sessionType": "diagnostic",
        "userId": user_id,
    }
    body.update(overrides)
    return client.post("/coach/ask", json=body)


class TestAsk:

    def test_ask(self, client, user_id):
        response = _ask(client, user_id)
        assert response.status_code == 200

        data = response.json()
        assert [a["agentType"] for a in data["analysis"]] == ["offer", "financial", "constraint-analyzer"]
        assert data["synthesis"]
        assert len(data["actionItems"]) <= 8
        assert data["sessionId"]
        assert data["turnId"]
        assert data["mode"] == "local"
        assert data["routing"]["primary"]["agent"]

    def test_strategic_session(self, client, user_id):
        response = _ask(client, user_id, query="hello", sessionType="strategic", businessContext=None)

        assert response.status_code == 200
        assert len(response.json()["analysis"]) == 7

    @pytest.mark.parametrize("overrides", [
        {"query": "   "},
        {"sessionType": ""},
        {"sessionType": "weekly"},
        {"userId": ""},
    ])
    def test_blank_or_unknown_fields(self, client, user_id, overrides):
        assert _ask(client, user_id, **overrides).status_code == 400

    @pytest.mark.parametrize("context", [
        {"grossMargin": 150},
        {"grossMargin": -1},
        {"customerCount": -3},
        {"ltv": -10},
    ])
    def test_out_of_range_context(self, client, user_id, context):
        assert _ask(client, user_id, businessContext=context).status_code == 422

    def test_negative_cac_is_reported_not_rejected(self, client, user_id):
        response = _ask(client, user_id, businessContext={"cac": -5, "grossMargin": 50})

        assert response.status_code == 200
        financial = next(a for a in response.json()["analysis"] if a["agentType"] == "financial")
        assert financial["findings"][0] == "Invalid CAC (-5) - treated as 0"

    def test_missing_user_id(self, client):
        response = client.post("/coach/ask", json={"query": "hello"})
        assert response.status_code == 422


class TestFeedbackAndMemory:

    def test_feedback_round(self, client, user_id):
        turn_id = _ask(client, user_id).json()["turnId"]

        response = client.post("/coach/feedback", json={"userId": user_id, "turnId": turn_id, "feedback": "positive"})
        assert response.status_code == 200

        memory = client.get(f"/coach/memory/{user_id}").json()
        assert memory["totalConversations"] == 1

    def test_feedback_for_unknown_turn(self, client, user_id):
        response = client.post("/coach/feedback", json={"userId": user_id, "turnId": "nope", "feedback": "negative"})
        assert response.status_code == 404

    def test_clear_memory(self, client, user_id):
        _ask(client, user_id)

        assert client.delete(f"/coach/memory/{user_id}").json() == {"cleared": True}
        assert client.delete(f"/coach/memory/{user_id}").json() == {"cleared": False}


class TestMetadataEndpoints:

    def test_health(self, client):
        data = client.get("/coach/health").json()

        assert data["status"] == "healthy"
        assert data["availableAgents"][0] == "master-conductor"
        assert len(data["availableAgents"]) == 8

    def test_diagnostic_questions(self, client):
        data = client.get("/coach/analyzers/offer/questions").json()

        assert data["analyzer"] == "offer"
        assert len(data["questions"]) == 8

    def test_unknown_analyzer_questions(self, client):
        assert client.get("/coach/analyzers/astrology/questions").status_code == 404

    def test_route(self, client):
        response = client.post("/coach/route", json={"query": "What's my biggest business constraint right now?"})

        assert response.status_code == 200
        assert response.json()["primary"]["agent"] == "constraint-analyzer"

    def test_route_blank_query(self, client):
        assert client.post("/coach/route", json={"query": " "}).status_code == 400

    def test_routing_analytics(self, client):
        data = client.get("/coach/routing/analytics").json()
        assert set(data["queryComplexityDistribution"]) == {"simple", "medium", "complex", "strategic"}
