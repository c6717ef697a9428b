"""
Tests for Confluence API Endpoints
"""
import pytest
import requests
from unittest.mock import Mock, patch
from fastapi.testclient import TestClient

from api.main import app
from toolhub.confluence_client import ConfluenceClient, InvalidConfluenceResponse

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
    return TestClient(app)


@pytest.fixture
def mock_confluence_client():
    confluence = Mock(spec=ConfluenceClient)
    with patch('api.routes.confluence.create_confluence_client', return_value=confluence):
        yield confluence


class TestConfluenceConnection:

    def test_success(self, client, mock_confluence_client):
        mock_confluence_client.test_connection.return_value = {'accountId': 'abc'}

        response = client.post("/api/confluence/test-connection", json=CREDENTIALS)

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "user": {"accountId": "abc"},
            "message": "Confluence connection successful"
        }

    def test_login_page(self, client, mock_confluence_client):
        mock_confluence_client.test_connection.side_effect = InvalidConfluenceResponse(
            "Authentication failed - redirected to login page"
        )

        response = client.post("/api/confluence/test-connection", json=CREDENTIALS)

        assert response.status_code == 500
        data = response.json()
        assert data["success"] is False
        assert data["message"] == "Connection failed"
        assert "login page" in data["error"]

    def test_network_error(self, client, mock_confluence_client):
        mock_confluence_client.test_connection.side_effect = requests.exceptions.ConnectionError("refused")

        response = client.post("/api/confluence/test-connection", json=CREDENTIALS)

        assert response.status_code == 500
        assert response.json() == {
            "success": False,
            "error": "Network error. Please check your Confluence URL and internet connection.",
            "message": "Connection failed"
        }


class TestSpacesAndPages:

    def test_get_spaces(self, client, mock_confluence_client):
        mock_confluence_client.get_spaces.return_value = [{'key': 'QA', 'name': 'QA Team'}]

        response = client.post("/api/confluence/get-spaces", json=CREDENTIALS)

        assert response.status_code == 200
        assert response.json()["spaces"] == [{'key': 'QA', 'name': 'QA Team'}]

    def test_get_spaces_failure(self, client, mock_confluence_client):
        mock_confluence_client.get_spaces.side_effect = http_error(403, {"message": "Forbidden"})

        response = client.post("/api/confluence/get-spaces", json=CREDENTIALS)

        assert response.status_code == 403
        assert response.json()["error"] == "API error (403): Forbidden"

    def test_get_page_info(self, client, mock_confluence_client):
        mock_confluence_client.get_page_info.return_value = {'id': '123', 'title': 'Releases'}

        response = client.post("/api/confluence/get-page-info", json={**CREDENTIALS, "pageId": "123"})

        assert response.status_code == 200
        assert response.json()["page"]["title"] == "Releases"
        mock_confluence_client.get_page_info.assert_called_once_with("123")

    def test_page_not_found(self, client, mock_confluence_client):
        mock_confluence_client.get_page_info.side_effect = http_error(404)

        response = client.post("/api/confluence/get-page-info", json={**CREDENTIALS, "pageId": "999"})

        assert response.status_code == 404
        assert response.json()["error"] == "Page not found. Please check your page ID."

    def test_create_page(self, client, mock_confluence_client):
        mock_confluence_client.create_page.return_value = {'id': '777', 'title': 'Release v1'}

        response = client.post(
            "/api/confluence/create-page",
            json={**CREDENTIALS, "spaceKey": "QA", "title": "Release v1", "content": "<p>Notes</p>"}
        )

        assert response.status_code == 200
        mock_confluence_client.create_page.assert_called_once_with("QA", "Release v1", "<p>Notes</p>", None)

    def test_create_page_duplicate_title(self, client, mock_confluence_client):
        mock_confluence_client.create_page.side_effect = http_error(
            400, {"message": "A page with this title already exists"}
        )

        response = client.post(
            "/api/confluence/create-page",
            json={**CREDENTIALS, "spaceKey": "QA", "title": "Release v1", "content": "<p>Notes</p>"}
        )

        assert response.status_code == 400
        assert 'A page with the title "Release v1" already exists' in response.json()["error"]


class TestCreateSubpage:

    def test_api_release_gets_api_checklist(self, client, mock_confluence_client):
        mock_confluence_client.create_subpage.return_value = {'id': '778', 'parentId': '777'}

        response = client.post(
            "/api/confluence/create-subpage",
            json={**CREDENTIALS, "spaceKey": "QA", "parentId": "777", "title": "Payments API 2.4 checklist"}
        )

        assert response.status_code == 200
        space_key, parent_id, title, document = mock_confluence_client.create_subpage.call_args.args
        assert (space_key, parent_id, title) == ("QA", "777", "Payments API 2.4 checklist")
        table = next(node for node in document['content'] if node['type'] == 'table')
        assert len(table['content']) == 25

    def test_release_name_overrides_title(self, client, mock_confluence_client):
        mock_confluence_client.create_subpage.return_value = {'id': '778'}

        client.post(
            "/api/confluence/create-subpage",
            json={**CREDENTIALS, "spaceKey": "QA", "parentId": "777",
                  "title": "API checklist", "releaseName": "Web 3.1"}
        )

        document = mock_confluence_client.create_subpage.call_args.args[3]
        table = next(node for node in document['content'] if node['type'] == 'table')
        steps = [row['content'][0]['content'][0]['content'][0]['text'] for row in table['content'][1:]]
        assert "15.1" in steps

    def test_missing_parent(self, client):
        response = client.post(
            "/api/confluence/create-subpage",
            json={**CREDENTIALS, "spaceKey": "QA", "title": "Checklist"}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Missing required fields: parentId"

    def test_duplicate_subpage(self, client, mock_confluence_client):
        mock_confluence_client.create_subpage.side_effect = http_error(
            400, {"message": "Title already exists"}
        )

        response = client.post(
            "/api/confluence/create-subpage",
            json={**CREDENTIALS, "spaceKey": "QA", "parentId": "777", "title": "Checklist"}
        )

        assert response.status_code == 400
        assert response.json()["error"].startswith('A sub-page with the title "Checklist" already exists')


class TestChecklistPreview:

    def test_preview(self, client):
        response = client.post("/api/confluence/checklist-preview", json={"releaseName": "Web 3.1"})

        assert response.status_code == 200
        data = response.json()
        assert data["template"] == "Web"
        assert data["stepCount"] == 23
        assert data["adf"]["type"] == "doc"
        assert data["html"].count("<ac:task-list>") == data["checkboxCount"]
