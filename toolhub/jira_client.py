import requests
from typing import Dict, List, Optional, Any
import logging
import os

logger = logging.getLogger(__name__)


class UnexpectedJiraResponse(ValueError):
    """A successful Jira response that lacks the expected payload"""


class JiraClient:
    """Jira API client bound to the credentials supplied by the caller"""

    server_url: str = ''
    timeout: int = 30
    short_timeout: int = 10
    probe_timeout: int = 5

    def __init__(self, server_url: str, username: str, api_token: str, timeout: int = 30,
                 short_timeout: int = 10, probe_timeout: int = 5):
        self.server_url = server_url.rstrip('/')
        self.auth = (username, api_token)
        self.timeout = timeout
        self.short_timeout = short_timeout
        self.probe_timeout = probe_timeout

        self.session = requests.Session()
        self.session.auth = self.auth
        self.session.headers.update({
            'Accept': 'application/json',
            'Content-Type': 'application/json'
        })
        logger.debug(f"JiraClient initialized for {self.server_url} as {username}")

    def clone(self) -> 'JiraClient':
        """Same credentials and timeouts on a fresh session, for use from another thread"""
        return JiraClient(
            self.server_url, self.auth[0], self.auth[1],
            timeout=self.timeout,
            short_timeout=self.short_timeout,
            probe_timeout=self.probe_timeout
        )

    def _url(self, path: str) -> str:
        return f"{self.server_url}{path}"

    def browse_url(self, ticket_key: str) -> str:
        """Human-facing URL of an issue"""
        return self._url(f'/browse/{ticket_key}')

    def get_myself(self) -> Dict[str, Any]:
        """Get the user the credentials belong to (used as a connection test)"""
        response = self.session.get(self._url('/rest/api/3/myself'), timeout=self.short_timeout)
        response.raise_for_status()
        return response.json()

    def get_project(self, project_key: str) -> Dict[str, Any]:
        """Get project details including its issue types"""
        response = self.session.get(self._url(f'/rest/api/3/project/{project_key}'), timeout=self.short_timeout)
        response.raise_for_status()
        return response.json()

    def get_project_versions(self, project_key: str, timeout: Optional[int] = None) -> List[Dict[str, Any]]:
        """Get all versions (fix versions / releases) of a project"""
        response = self.session.get(
            self._url(f'/rest/api/3/project/{project_key}/versions'),
            timeout=timeout or self.short_timeout
        )
        response.raise_for_status()
        return response.json() or []

    def get_fields(self, api_version: str = '3') -> List[Dict[str, Any]]:
        """Get all field definitions, custom fields included"""
        response = self.session.get(self._url(f'/rest/api/{api_version}/field'), timeout=15)
        response.raise_for_status()
        data = response.json()
        return data if isinstance(data, list) else []

    # ==================== Issue API Methods ====================

    def create_issue(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create an issue

        Args:
            fields: Jira ``fields`` payload

        Returns:
            Created issue reference (id, key, self)
        """
        response = self.session.post(self._url('/rest/api/3/issue'), json={'fields': fields}, timeout=self.timeout)
        response.raise_for_status()
        result = response.json()
        logger.info(f"✅ Created ticket {result.get('key')}")
        return result

    def get_issue(self, ticket_key: str, fields: str, api_version: str = '2',
                  timeout: Optional[int] = None) -> Dict[str, Any]:
        """Get a single issue with the given comma-separated field list"""
        response = self.session.get(
            self._url(f'/rest/api/{api_version}/issue/{ticket_key}'),
            params={'fields': fields},
            timeout=timeout or self.short_timeout
        )
        response.raise_for_status()
        return response.json()

    def search_issues(self, jql: str, fields: str, max_results: int = 50, start_at: int = 0,
                      api_version: str = '2', timeout: Optional[int] = None) -> List[Dict[str, Any]]:
        """Search issues with the classic GET search endpoint"""
        params = {
            'jql': jql,
            'fields': fields,
            'maxResults': max_results,
            'startAt': start_at
        }
        response = self.session.get(
            self._url(f'/rest/api/{api_version}/search'),
            params=params,
            timeout=timeout or self.timeout
        )
        response.raise_for_status()
        data = response.json() or {}
        if 'issues' not in data:
            raise UnexpectedJiraResponse(f"Search response has no issues: {sorted(data)}")
        return data['issues']

    def browse_project_issues(self, project_key: str, max_results: int = 300) -> List[Dict[str, Any]]:
        """
        Browse the most recent issues of a project without any issue type clause.

        Used when type-filtered JQL queries are rejected upstream.
        """
        return self.search_issues(
            jql=f'project={project_key} ORDER BY created DESC',
            fields='id,key,summary,status,issuetype,created,updated,parent,subtasks',
            max_results=max_results,
            timeout=20
        )

    def search_with_fallback(self, jql: str, max_results: int, fields: List[str]) -> Dict[str, Any]:
        """
        Run a JQL search trying the enhanced endpoint first, then the classic ones.

        Endpoints are tried in order: POST /search/jql, POST /search, GET /search.
        The last error is raised when all of them fail.

        Returns:
            Raw search response body
        """
        endpoints = [
            ('POST', '/rest/api/3/search/jql', {'jql': jql, 'maxResults': max(max_results, 1), 'fields': fields}),
            ('POST', '/rest/api/3/search', {'jql': jql, 'maxResults': max_results, 'fields': fields}),
            ('GET', '/rest/api/3/search', {'jql': jql, 'maxResults': max_results, 'fields': ','.join(fields)}),
        ]

        last_error: Optional[Exception] = None
        for method, path, payload in endpoints:
            try:
                logger.info(f"Trying search endpoint: {method} {path}")
                if method == 'POST':
                    response = self.session.post(self._url(path), json=payload, timeout=15)
                else:
                    response = self.session.get(self._url(path), params=payload, timeout=15)
                response.raise_for_status()
                logger.info(f"✅ Search successful with: {method} {path}")
                return response.json() or {}
            except requests.exceptions.RequestException as e:
                status = getattr(e.response, 'status_code', None) if getattr(e, 'response', None) is not None else None
                logger.warning(f"❌ Failed search endpoint {method} {path}: {status or e}")
                last_error = e

        raise last_error

    def attach_file(self, ticket_key: str, file_path: str, filename: str,
                    content_type: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        Attach a stored file to an issue

        Args:
            ticket_key: Issue to attach to
            file_path: Path of the stored file
            filename: Name shown in Jira
            content_type: MIME type of the file
        """
        url = self._url(f'/rest/api/3/issue/{ticket_key}/attachments')
        with open(file_path, 'rb') as handle:
            files = {'file': (filename, handle, content_type or 'application/octet-stream')}
            # Multipart upload: drop the session-wide JSON content type
            response = self.session.post(
                url,
                files=files,
                headers={'X-Atlassian-Token': 'no-check', 'Content-Type': None},
                timeout=self.timeout
            )
        response.raise_for_status()
        logger.info(f"📎 Attached {filename} to {ticket_key} ({os.path.getsize(file_path)} bytes)")
        return response.json() or []

    # ==================== Sprint / Board API Methods ====================

    def get_board_id(self, project_key: str) -> Optional[int]:
        """
        Get the first scrum board ID for a project

        Returns:
            Board ID if found, None otherwise
        """
        response = self.session.get(
            self._url('/rest/agile/1.0/board'),
            params={'projectKeyOrId': project_key, 'type': 'scrum'},
            timeout=self.short_timeout
        )
        response.raise_for_status()

        boards = (response.json() or {}).get('values', [])
        if boards:
            board_id = boards[0].get('id')
            logger.info(f"✅ Found board {board_id} for project {project_key}")
            return board_id

        logger.warning(f"⚠️ No board found for project {project_key}")
        return None

    def get_board_sprints(self, board_id: int, state: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        Get sprints for a board

        Args:
            board_id: JIRA board ID
            state: Optional sprint state filter (e.g., "active,future")
        """
        params = {}
        if state:
            params['state'] = state

        response = self.session.get(
            self._url(f'/rest/agile/1.0/board/{board_id}/sprint'),
            params=params,
            timeout=self.short_timeout
        )
        response.raise_for_status()

        sprints = (response.json() or {}).get('values', [])
        logger.info(f"✅ Retrieved {len(sprints)} sprints for board {board_id}")
        return sprints

    def add_issues_to_sprint(self, sprint_id: Any, issue_keys: List[str]) -> bool:
        """
        Add issues to a sprint

        Returns:
            True if successful, False otherwise
        """
        try:
            response = self.session.post(
                self._url(f'/rest/agile/1.0/sprint/{sprint_id}/issue'),
                json={'issues': issue_keys},
                timeout=self.short_timeout
            )
            response.raise_for_status()
            logger.info(f"✅ Added {', '.join(issue_keys)} to sprint {sprint_id}")
            return True
        except requests.exceptions.RequestException as e:
            logger.warning(f"⚠️ Failed to add {', '.join(issue_keys)} to sprint {sprint_id}: {e}")
            return False

    # ==================== User API Methods ====================

    def get_assignable_users(self, project_key: str, page_size: int = 100, limit: int = 1000) -> List[Dict[str, Any]]:
        """
        Get users assignable to issues of a project.

        Pages are requested until one comes back shorter than ``page_size``
        or ``limit`` users have been collected.
        """
        all_users: List[Dict[str, Any]] = []
        start_at = 0

        while True:
            response = self.session.get(
                self._url('/rest/api/3/user/assignable/search'),
                params={'project': project_key, 'maxResults': page_size, 'startAt': start_at},
                timeout=self.short_timeout
            )
            response.raise_for_status()

            users = response.json() or []
            all_users.extend(users)

            if len(users) < page_size:
                break

            start_at += page_size

            if len(all_users) >= limit:
                logger.warning(f"⚠️ Reached safety limit of {limit} assignees")
                break

        logger.info(f"📋 Fetched {len(all_users)} assignees with pagination")
        return all_users[:limit]
