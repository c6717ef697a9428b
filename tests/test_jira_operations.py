"""
Tests for JIRA Operations API Endpoints
Connection test, project lookup, ticket creation and text parsing
"""
import json
import pytest
import requests
from unittest.mock import Mock, patch
from fastapi.testclient import TestClient

from api.main import app
from api.utils import error_response
from toolhub.jira_client import JiraClient

CREDENTIALS = {
    "url": "https://test.atlassian.net",
    "email": "qa@example.com",
    "token": "secret"
}


def http_error(status_code, payload=None):
    response = Mock()
    response.status_code = status_code
    response.json.return_value = payload or {}
    return requests.exceptions.HTTPError(f"{status_code} Error", response=response)


@pytest.fixture
def client():
    """Create test client"""
    return TestClient(app)


@pytest.fixture
def mock_jira_client():
    """Mock JIRA client"""
    jira_client = Mock(spec=JiraClient)
    jira_client.server_url = CREDENTIALS["url"]
    jira_client.get_myself.return_value = {'accountId': 'abc', 'displayName': 'QA Bot'}
    jira_client.get_project.return_value = {'id': '10000', 'key': 'PAY', 'issueTypes': [{'name': 'Bug'}]}
    jira_client.create_issue.return_value = {'id': '10001', 'key': 'PAY-5'}
    jira_client.browse_url.side_effect = lambda key: f"{CREDENTIALS['url']}/browse/{key}"
    return jira_client


@pytest.fixture
def mock_jira_client_dependency(mock_jira_client):
    """Override the per-request JIRA client factory"""
    with patch('api.routes.jira_operations.create_jira_client', return_value=mock_jira_client) as factory:
        mock_jira_client.factory = factory
        yield mock_jira_client


class TestConnectionEndpoint:
    """Tests for POST /api/jira/test-connection"""

    def test_success(self, client, mock_jira_client_dependency):
        response = client.post("/api/jira/test-connection", json=CREDENTIALS)

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["user"]["displayName"] == "QA Bot"
        mock_jira_client_dependency.factory.assert_called_once_with(
            CREDENTIALS["url"], CREDENTIALS["email"], CREDENTIALS["token"]
        )

    def test_bad_credentials(self, client, mock_jira_client_dependency):
        mock_jira_client_dependency.get_myself.side_effect = http_error(401)

        response = client.post("/api/jira/test-connection", json=CREDENTIALS)

        assert response.status_code == 401
        assert response.json() == {
            "success": False,
            "error": "Authentication failed. Please check your email and API token.",
            "message": "Connection failed"
        }

    def test_network_error(self, client, mock_jira_client_dependency):
        mock_jira_client_dependency.get_myself.side_effect = requests.exceptions.ConnectionError("refused")

        response = client.post("/api/jira/test-connection", json=CREDENTIALS)

        assert response.status_code == 500
        assert response.json()["error"] == "Network error. Please check your Jira URL and internet connection."

    def test_missing_credentials(self, client):
        response = client.post("/api/jira/test-connection", json={"url": "https://test.atlassian.net"})

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Missing required fields: email, token"}

    def test_blank_credentials_count_as_missing(self, client):
        response = client.post("/api/jira/test-connection", json={**CREDENTIALS, "token": ""})

        assert response.status_code == 400
        assert response.json()["error"] == "Missing required fields: token"


class TestErrorResponse:
    """Tests for the shared error body"""

    def test_extra_message_field(self):
        response = error_response(401, "Authentication failed", message="Connection failed")

        assert response.status_code == 401
        assert json.loads(response.body) == {
            "success": False,
            "error": "Authentication failed",
            "message": "Connection failed"
        }


class TestGetProjectEndpoint:
    """Tests for POST /api/jira/get-project"""

    def test_success(self, client, mock_jira_client_dependency):
        response = client.post("/api/jira/get-project", json={**CREDENTIALS, "projectKey": "PAY"})

        assert response.status_code == 200
        assert response.json()["project"]["issueTypes"] == [{'name': 'Bug'}]
        mock_jira_client_dependency.get_project.assert_called_once_with("PAY")

    def test_unknown_project(self, client, mock_jira_client_dependency):
        mock_jira_client_dependency.get_project.side_effect = http_error(404)

        response = client.post("/api/jira/get-project", json={**CREDENTIALS, "projectKey": "NOPE"})

        assert response.status_code == 404
        assert response.json()["error"] == "Project not found. Please check your project key."

    def test_missing_project_key(self, client):
        response = client.post("/api/jira/get-project", json=CREDENTIALS)

        assert response.status_code == 400
        assert response.json()["error"] == "Missing required fields: projectKey"


class TestCreateTicketEndpoint:
    """Tests for POST /api/jira/create-ticket"""

    def test_create_ticket(self, client, mock_jira_client_dependency):
        response = client.post(
            "/api/jira/create-ticket",
            json={
                **CREDENTIALS,
                "projectKey": "PAY",
                "ticketData": {
                    "id": 7,
                    "title": "Login fails on iOS app",
                    "issueType": "Bug",
                    "priority": "High",
                    "steps": ["Open the app"]
                },
                "metadata": {"fixVersion": "tbc", "assignee": "abc"}
            }
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["ticketKey"] == "PAY-5"
        assert data["ticketUrl"] == "https://test.atlassian.net/browse/PAY-5"
        assert data["originalId"] == 7
        fields = mock_jira_client_dependency.create_issue.call_args.args[0]
        assert fields["assignee"] == {"accountId": "abc"}
        assert "fixVersions" not in fields

    def test_create_ticket_rejected_by_jira(self, client, mock_jira_client_dependency):
        mock_jira_client_dependency.create_issue.side_effect = http_error(
            400, {"errorMessages": ["Issue type is required"]}
        )

        response = client.post(
            "/api/jira/create-ticket",
            json={**CREDENTIALS, "projectKey": "PAY", "ticketData": {"id": "t-1", "title": "Broken"}}
        )

        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "error": "Bad request: Issue type is required",
            "title": "Broken",
            "originalId": "t-1"
        }

    def test_missing_ticket_data(self, client):
        response = client.post("/api/jira/create-ticket", json={**CREDENTIALS, "projectKey": "PAY"})

        assert response.status_code == 400
        assert response.json()["error"] == "Missing required fields: ticketData"


class TestBulkCreateEndpoint:
    """Tests for POST /api/jira/create-tickets-bulk"""

    @patch('toolhub.ticket_creator.time.sleep')
    def test_bulk_with_malformed_ticket(self, mock_sleep, client, mock_jira_client_dependency):
        response = client.post(
            "/api/jira/create-tickets-bulk",
            json={
                **CREDENTIALS,
                "projectKey": "PAY",
                "tickets": [{"title": "First"}, {"description": "no title"}, {"title": "Third"}]
            }
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["summary"] == {"total": 3, "successful": 2, "failed": 1}
        assert data["results"][1]["status"] == "failed"
        assert mock_jira_client_dependency.create_issue.call_count == 2


class TestParseTicketEndpoint:
    """Tests for POST /api/jira/parse-ticket"""

    def test_parse(self, client):
        response = client.post(
            "/api/jira/parse-ticket",
            json={"text": "Bug: Checkout button broken\nPriority: High\nSteps:\n1. Add item\n2. Tap checkout"}
        )

        assert response.status_code == 200
        ticket = response.json()["ticket"]
        assert ticket["title"] == "Checkout button broken"
        assert ticket["issueType"] == "Bug"
        assert ticket["steps"] == ["Add item", "Tap checkout"]

    def test_blank_text(self, client):
        response = client.post("/api/jira/parse-ticket", json={"text": "  "})

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Text is required"}
