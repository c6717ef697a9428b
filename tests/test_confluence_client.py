"""
Tests for the Confluence client and its error translation
"""
import json
import pytest
import requests
from unittest.mock import Mock

from toolhub.confluence_client import (
    ConfluenceClient,
    InvalidConfluenceResponse,
    describe_connection_error,
    describe_page_info_error,
    describe_page_creation_error,
    ENDPOINT_NOT_FOUND,
    NO_CONFLUENCE_LICENSE
)


def json_response(data, status_code=200):
    response = Mock()
    response.status_code = status_code
    response.headers = {'Content-Type': 'application/json'}
    response.text = json.dumps(data)
    response.json.return_value = data
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(
            f"{status_code} Error", response=response
        )
    else:
        response.raise_for_status.return_value = None
    return response


def html_response(body):
    response = Mock()
    response.status_code = 200
    response.headers = {'Content-Type': 'text/html; charset=UTF-8'}
    response.text = body
    response.raise_for_status.return_value = None
    return response


def http_error(status_code, payload=None):
    return json_response(payload or {}, status_code).raise_for_status.side_effect


@pytest.fixture
def client():
    confluence = ConfluenceClient("https://test.atlassian.net", "qa@example.com", "token")
    confluence.session = Mock()
    return confluence


class TestRestBase:

    def test_wiki_prefix_added(self):
        assert ConfluenceClient("https://test.atlassian.net/", "u", "t").rest_base == \
            "https://test.atlassian.net/wiki/rest/api"

    def test_wiki_url_kept(self):
        assert ConfluenceClient("https://test.atlassian.net/wiki", "u", "t").rest_base == \
            "https://test.atlassian.net/wiki/rest/api"


class TestConnection:

    def test_first_endpoint_with_user(self, client):
        client.session.get.return_value = json_response({'accountId': 'abc', 'displayName': 'QA'})

        assert client.test_connection()['accountId'] == 'abc'
        assert client.session.get.call_count == 1

    def test_login_page_is_rejected(self, client):
        client.session.get.side_effect = [
            html_response('<!DOCTYPE html><html><head><title>Log in - Atlassian</title></head></html>'),
            json_response({'displayName': 'QA'}),
        ]

        assert client.test_connection() == {'displayName': 'QA'}
        assert client.session.get.call_args_list[1].args[0] == \
            "https://test.atlassian.net/wiki/rest/api/user/current"

    def test_missing_user_data_fails_every_endpoint(self, client):
        client.session.get.return_value = json_response({'results': []})

        with pytest.raises(InvalidConfluenceResponse):
            client.test_connection()

        assert client.session.get.call_count == 3

    def test_last_error_is_raised(self, client):
        client.session.get.return_value = json_response({}, 401)

        with pytest.raises(requests.exceptions.HTTPError):
            client.test_connection()

    def test_describe_login_page_error(self):
        status, message = describe_connection_error(
            InvalidConfluenceResponse("Authentication failed - redirected to login page")
        )

        assert status == 500
        assert "login page" in message

    def test_describe_unauthorized(self):
        status, message = describe_connection_error(http_error(401))

        assert status == 401
        assert message.startswith("Authentication failed")

    def test_describe_network_error(self):
        _, message = describe_connection_error(requests.exceptions.ConnectionError("refused"))

        assert message == "Network error. Please check your Confluence URL and internet connection."


class TestSpaces:

    def test_batches_until_short_page(self, client):
        first_batch = [{'id': n, 'key': f'S{n}', 'name': f'Space {n}', 'type': 'global'} for n in range(2)]
        client.session.get.side_effect = [
            json_response({'results': first_batch[:1]}),
            json_response({'results': first_batch}),
            json_response({'results': [{
                'id': 9, 'key': 'QA', 'name': 'QA Team',
                'description': {'plain': {'value': 'Release pages'}}
            }]}),
        ]

        spaces = client.get_spaces(batch_size=2)

        assert [space['key'] for space in spaces] == ['S0', 'S1', 'QA']
        assert spaces[2]['description'] == 'Release pages'
        assert client.session.get.call_args_list[2].kwargs['params']['start'] == 2

    def test_probe_failure_is_raised(self, client):
        client.session.get.return_value = json_response({'message': 'Forbidden'}, 403)

        with pytest.raises(requests.exceptions.HTTPError):
            client.get_spaces()

    def test_failing_batch_keeps_loaded_spaces(self, client):
        client.session.get.side_effect = [
            json_response({'results': []}),
            json_response({'results': [{'key': 'A'}, {'key': 'B'}]}),
            json_response({}, 500),
        ]

        assert [space['key'] for space in client.get_spaces(batch_size=2)] == ['A', 'B']

    def test_safety_cap(self, client):
        client.session.get.return_value = json_response({'results': [{'key': 'X'}] * 100})

        spaces = client.get_spaces(safety_cap=300)

        assert len(spaces) == 400
        # probe + four full batches
        assert client.session.get.call_count == 5


class TestPageInfo:

    def test_page_with_space(self, client):
        client.session.get.return_value = json_response({
            'id': '123', 'title': 'Releases', 'type': 'page',
            'space': {'id': 1, 'key': 'QA', 'name': 'QA Team'}
        })

        page = client.get_page_info('123')

        assert page == {
            'id': '123', 'title': 'Releases', 'type': 'page',
            'space': {'id': 1, 'key': 'QA', 'name': 'QA Team'}
        }
        assert client.session.get.call_args.args[0] == "https://test.atlassian.net/rest/api/content/123"

    def test_describe_not_found(self):
        assert describe_page_info_error(http_error(404)) == (404, 'Page not found. Please check your page ID.')

    def test_describe_without_response(self):
        assert describe_page_info_error(requests.exceptions.Timeout()) == (500, 'Failed to get page information')


class TestPageCreation:

    def test_create_page_under_parent(self, client):
        client.session.post.return_value = json_response({
            'id': '777', 'title': 'Release v1',
            '_links': {'webui': '/wiki/spaces/QA/pages/777', 'tinyui': '/wiki/x/AbC'}
        })

        page = client.create_page('QA', 'Release v1', '<p>Hi</p>', parent_id='100')

        assert page == {
            'id': '777',
            'title': 'Release v1',
            'url': 'https://test.atlassian.net/wiki/spaces/QA/pages/777',
            'shortUrl': 'https://test.atlassian.net/wiki/x/AbC',
            'spaceKey': 'QA'
        }
        payload = client.session.post.call_args.kwargs['json']
        assert payload['ancestors'] == [{'id': '100'}]
        assert payload['body']['storage']['representation'] == 'storage'
        assert client.session.post.call_args.args[0] == "https://test.atlassian.net/wiki/rest/api/content"

    def test_create_subpage_sends_adf(self, client):
        client.session.post.return_value = json_response({'id': '778', 'title': 'Checklist', '_links': {}})
        document = {'type': 'doc', 'version': 1, 'content': []}

        page = client.create_subpage('QA', '777', 'Checklist', document)

        assert page['parentId'] == '777'
        assert page['url'] == 'https://test.atlassian.net/wiki/spaces/QA/pages/778'
        assert page['shortUrl'] == 'https://test.atlassian.net/wiki/x/778'
        body = client.session.post.call_args.kwargs['json']['body']['atlas_doc_format']
        assert body['representation'] == 'atlas_doc_format'
        assert json.loads(body['value']) == document

    def test_duplicate_title(self):
        error = http_error(400, {'message': 'A page with this title already exists'})

        status, message = describe_page_creation_error(error, 'Release v1')
        assert status == 400
        assert message.startswith('A page with the title "Release v1" already exists in this space')

        _, message = describe_page_creation_error(error, 'Release v1', subpage=True)
        assert message.startswith('A sub-page with the title "Release v1" already exists under this parent page')

    def test_missing_license(self):
        error = http_error(403, {'message': 'Current user not permitted to use Confluence'})

        assert describe_page_creation_error(error, 'x') == (403, NO_CONFLUENCE_LICENSE)

    def test_endpoint_not_found(self):
        assert describe_page_creation_error(http_error(404), 'x') == (404, ENDPOINT_NOT_FOUND)

    def test_other_status(self):
        status, message = describe_page_creation_error(http_error(500, {'message': 'boom'}), 'x', subpage=True)

        assert status == 500
        assert message == 'Sub-page creation error (500): boom'
