import requests
from typing import Dict, List, Optional, Any, Tuple
import json
import logging

from bs4 import BeautifulSoup

from .errors import upstream_status, upstream_payload, describe_upstream_error, is_duplicate_title_error

logger = logging.getLogger(__name__)

CONNECTION_ERRORS = {
    401: 'Authentication failed. Please check your email and API token.',
    403: 'Permission denied. Please check your Confluence permissions.',
    404: 'Confluence instance not found. Please check your URL.',
}

PAGE_INFO_ERRORS = {
    404: 'Page not found. Please check your page ID.',
    403: 'No permission to access this page.',
}

NO_CONFLUENCE_LICENSE = (
    'User account does not have Confluence access. Please ensure your account has a '
    'Confluence license and proper permissions.'
)
ENDPOINT_NOT_FOUND = (
    'API endpoint not found. This might be due to incorrect Confluence URL or API path. '
    'Please verify your Confluence URL is correct.'
)


class InvalidConfluenceResponse(Exception):
    """Raised when Confluence answers with something other than the expected JSON"""


def _looks_like_html(response: requests.Response) -> bool:
    content_type = response.headers.get('Content-Type', '')
    body = response.text or ''
    return 'text/html' in content_type or '<html' in body or '<!DOCTYPE html>' in body


def _html_title(body: str) -> str:
    soup = BeautifulSoup(body, 'html.parser')
    return soup.title.get_text(strip=True) if soup.title else ''


def _plain_description(space: Dict[str, Any]) -> str:
    plain = (space.get('description') or {}).get('plain')
    if isinstance(plain, dict):
        return plain.get('value') or ''
    return plain or ''


class ConfluenceClient:
    """Confluence API client for release pages and spaces"""

    def __init__(self, server_url: str, username: str, api_token: str, timeout: int = 30):
        self.server_url = server_url.rstrip('/')
        self.auth = (username, api_token)
        self.timeout = timeout
        self.session = requests.Session()
        self.session.auth = self.auth
        self.session.headers.update({
            'Accept': 'application/json'
        })

    @property
    def rest_base(self) -> str:
        """REST API root; Confluence Cloud serves it under /wiki"""
        if self.server_url.endswith('/wiki'):
            return f"{self.server_url}/rest/api"
        return f"{self.server_url}/wiki/rest/api"

    def _get_json(self, url: str, params: Optional[Dict[str, Any]] = None, timeout: int = 10) -> Any:
        response = self.session.get(url, params=params, timeout=timeout)
        response.raise_for_status()
        if _looks_like_html(response):
            title = _html_title(response.text)
            raise InvalidConfluenceResponse(
                f"Authentication failed - redirected to login page{f' ({title})' if title else ''}"
            )
        try:
            return response.json()
        except ValueError as e:
            raise InvalidConfluenceResponse(f"Invalid JSON response from {url}") from e

    def test_connection(self) -> Dict[str, Any]:
        """
        Identify the user behind the credentials.

        Several endpoints are tried because self-hosted and cloud instances mount
        the REST API differently. The last error is raised if none of them works.
        """
        endpoints = [
            f"{self.server_url}/rest/api/user/current",
            f"{self.server_url}/wiki/rest/api/user/current",
            f"{self.server_url}/rest/api/content?limit=1",
        ]
        logger.info(f"🔍 Testing Confluence connection to: {self.server_url}")

        last_error: Optional[Exception] = None
        for endpoint in endpoints:
            try:
                data = self._get_json(endpoint, timeout=10)
                if not isinstance(data, dict) or not any(
                    data.get(key) for key in ('accountId', 'username', 'name', 'displayName')
                ):
                    raise InvalidConfluenceResponse('Invalid response - missing user data')
                logger.info(f"✅ Confluence connection successful with endpoint: {endpoint}")
                return data
            except (requests.exceptions.RequestException, InvalidConfluenceResponse) as e:
                logger.info(f"❌ Failed endpoint {endpoint}: {upstream_status(e, default=0) or e}")
                last_error = e

        raise last_error

    def get_spaces(self, batch_size: int = 100, safety_cap: int = 1000) -> List[Dict[str, Any]]:
        """
        Get all spaces visible to the user

        The endpoint is checked with a single-item request first; a failure there
        is raised. Afterwards batches are requested until one comes back short or
        the safety cap is passed; a failing batch ends the listing.
        """
        endpoint = f"{self.rest_base}/space"
        logger.info(f"📋 Fetching Confluence spaces from: {endpoint}")
        self._get_json(endpoint, params={'limit': 1, 'expand': 'description'}, timeout=15)

        all_spaces: List[Dict[str, Any]] = []
        start = 0
        while True:
            try:
                data = self._get_json(
                    endpoint,
                    params={'start': start, 'limit': batch_size, 'expand': 'description'},
                    timeout=15
                )
            except (requests.exceptions.RequestException, InvalidConfluenceResponse) as e:
                logger.warning(f"❌ Failed to fetch spaces batch at start={start}: {e}")
                break

            batch = data.get('results') if isinstance(data, dict) else data
            if not isinstance(batch, list):
                break

            all_spaces.extend(batch)
            logger.debug(f"Batch loaded: {len(batch)} spaces (total so far: {len(all_spaces)})")

            if len(batch) < batch_size:
                break
            start += len(batch)
            if start > safety_cap:
                logger.warning(f"⚠️ Safety break: reached {safety_cap} spaces limit")
                break

        spaces = [
            {
                'id': space.get('id'),
                'key': space.get('key'),
                'name': space.get('name'),
                'description': _plain_description(space),
                'type': space.get('type'),
            }
            for space in all_spaces
        ]
        logger.info(f"🎉 Loaded {len(spaces)} Confluence spaces")
        return spaces

    def get_page_info(self, page_id: str) -> Dict[str, Any]:
        """Get a page with its space"""
        page = self._get_json(
            f"{self.server_url}/rest/api/content/{page_id}",
            params={'expand': 'space,ancestors'},
            timeout=10
        )
        space = page.get('space') or {}
        return {
            'id': page.get('id'),
            'title': page.get('title'),
            'type': page.get('type'),
            'space': {
                'id': space.get('id'),
                'key': space.get('key'),
                'name': space.get('name'),
            }
        }

    def _create_content(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        response = self.session.post(
            f"{self.rest_base}/content",
            json=payload,
            headers={'Content-Type': 'application/json', 'X-Atlassian-Token': 'no-check'},
            timeout=self.timeout
        )
        response.raise_for_status()
        return response.json()

    def page_urls(self, page: Dict[str, Any], space_key: str) -> Tuple[str, str]:
        """Full and short browser URLs of a created page"""
        links = page.get('_links') or {}
        page_id = page.get('id')

        if links.get('webui'):
            page_url = f"{self.server_url}{links['webui']}"
        elif links.get('base'):
            page_url = f"{links['base']}/wiki/spaces/{space_key}/pages/{page_id}"
        else:
            page_url = f"{self.server_url}/wiki/spaces/{space_key}/pages/{page_id}"

        if links.get('tinyui'):
            short_url = f"{self.server_url}{links['tinyui']}"
        else:
            short_url = f"{self.server_url}/wiki/x/{page_id}"

        return page_url, short_url

    def create_page(self, space_key: str, title: str, content: str,
                    parent_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Create a page from storage-format markup

        Args:
            space_key: Space to create the page in
            title: Page title (unique within the space)
            content: Storage-format body
            parent_id: Optional parent page

        Returns:
            Created page summary with its URLs
        """
        logger.info(f"Creating Confluence page: {title} in space: {space_key}")
        payload: Dict[str, Any] = {
            'type': 'page',
            'title': title,
            'space': {'key': space_key},
            'body': {
                'storage': {
                    'value': content,
                    'representation': 'storage'
                }
            }
        }
        if parent_id:
            payload['ancestors'] = [{'id': parent_id}]

        created = self._create_content(payload)
        page_url, short_url = self.page_urls(created, space_key)
        logger.info(f"✅ Created page {created.get('title')} (ID: {created.get('id')}): {page_url}")
        return {
            'id': created.get('id'),
            'title': created.get('title'),
            'url': page_url,
            'shortUrl': short_url,
            'spaceKey': space_key
        }

    def create_subpage(self, space_key: str, parent_id: str, title: str,
                       adf_document: Dict[str, Any]) -> Dict[str, Any]:
        """Create a child page whose body is an ADF document"""
        logger.info(f"Creating Confluence sub-page: {title} under parent: {parent_id}")
        payload = {
            'type': 'page',
            'title': title,
            'space': {'key': space_key},
            'ancestors': [{'id': parent_id}],
            'body': {
                'atlas_doc_format': {
                    'value': json.dumps(adf_document),
                    'representation': 'atlas_doc_format'
                }
            }
        }

        created = self._create_content(payload)
        page_url, short_url = self.page_urls(created, space_key)
        logger.info(f"✅ Created sub-page {created.get('title')} (ID: {created.get('id')}): {page_url}")
        return {
            'id': created.get('id'),
            'title': created.get('title'),
            'url': page_url,
            'shortUrl': short_url,
            'spaceKey': space_key,
            'parentId': parent_id
        }


def describe_connection_error(error: Exception) -> Tuple[int, str]:
    if isinstance(error, InvalidConfluenceResponse):
        return 500, f"Error: {error}"
    return describe_upstream_error(
        error,
        CONNECTION_ERRORS,
        generic='Confluence API error ({status}): {detail}',
        fallback=f"Error: {error}",
        service='Confluence'
    )


def describe_page_info_error(error: Exception) -> Tuple[int, str]:
    if getattr(error, 'response', None) is None:
        return 500, 'Failed to get page information'
    return describe_upstream_error(error, PAGE_INFO_ERRORS, generic='API error ({status}): {detail}', fallback='')


def describe_spaces_error(error: Exception) -> Tuple[int, str]:
    if getattr(error, 'response', None) is None:
        return 500, 'Failed to fetch Confluence spaces'
    return describe_upstream_error(error, {}, generic='API error ({status}): {detail}', fallback='')


def describe_page_creation_error(error: Exception, title: str, subpage: bool = False) -> Tuple[int, str]:
    """Translate a page creation failure into (status, message)"""
    kind = 'sub-page' if subpage else 'page'
    if getattr(error, 'response', None) is None:
        return 500, f'Failed to create {kind}'

    status = upstream_status(error)
    message = str(upstream_payload(error).get('message') or '')

    if status == 400:
        if is_duplicate_title_error(error):
            if subpage:
                return status, (
                    f'A sub-page with the title "{title}" already exists under this parent page. '
                    'Please use a different title or check if the page was already created.'
                )
            return status, (
                f'A page with the title "{title}" already exists in this space. '
                'Please use a different title or check if the page was already created.'
            )
        return status, f"Bad request: {message or 'Invalid data provided'}"
    if status == 401:
        return status, f'Authentication failed during {kind} creation.'
    if status == 403:
        if 'not permitted to use Confluence' in message:
            return status, NO_CONFLUENCE_LICENSE
        return status, 'Permission denied. You may not have permission to create pages in this space.'
    if status == 404:
        return status, ENDPOINT_NOT_FOUND

    prefix = 'Sub-page' if subpage else 'Page'
    return status, f"{prefix} creation error ({status}): {message or error}"
