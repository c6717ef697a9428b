"""
Release (fix version) queries
"""
import logging
from datetime import datetime
from functools import cmp_to_key
from typing import List, Dict, Any, Optional, Tuple

from .jira_client import JiraClient
from .errors import upstream_status, upstream_payload

logger = logging.getLogger(__name__)

RELEASE_ERRORS = {
    404: 'Project not found. Please check your project key.',
    403: 'No permission to access this project.',
}


def _release_date(version: Dict[str, Any]) -> Optional[datetime]:
    value = version.get('releaseDate')
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def _compare_versions(a: Dict[str, Any], b: Dict[str, Any]) -> int:
    if not a.get('released') and b.get('released'):
        return -1
    if a.get('released') and not b.get('released'):
        return 1

    date_a, date_b = _release_date(a), _release_date(b)
    if date_a and date_b:
        return (date_b > date_a) - (date_b < date_a)

    name_a, name_b = (a.get('name') or '').lower(), (b.get('name') or '').lower()
    return (name_a > name_b) - (name_a < name_b)


def sort_versions(versions: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Unreleased first, then newest release date, then name"""
    return sorted(versions, key=cmp_to_key(_compare_versions))


def release_jql(project_key: str, version: str) -> str:
    return f'project = "{project_key}" AND fixVersion = "{version}" AND issuetype != Sub-task'


class ReleaseService:
    """Release listing, issue counts and field metadata for a Jira project"""

    def __init__(self, jira_client: JiraClient):
        self.jira_client = jira_client

    def get_releases(self, project_key: str) -> List[Dict[str, Any]]:
        logger.info(f"Fetching releases for project: {project_key}")
        versions = self.jira_client.get_project_versions(project_key, timeout=15)

        releases = [
            {
                'id': version.get('id'),
                'name': version.get('name'),
                'description': version.get('description') or '',
                'releaseDate': version.get('releaseDate'),
                'released': version.get('released', False),
                'archived': version.get('archived', False),
                'startDate': version.get('startDate'),
            }
            for version in sort_versions(versions)
        ]
        logger.info(f"Found {len(releases)} versions for project {project_key}")
        return releases

    def get_release_details(self, project_key: str, version_name: Optional[str],
                            version_id: Optional[str] = None) -> Dict[str, Any]:
        """Count the non-subtask issues of a release"""
        jql = release_jql(project_key, version_name or version_id or '')
        logger.info(f"Getting release details for: {version_name} (JQL: {jql})")

        data = self.jira_client.search_with_fallback(jql, max_results=0, fields=['summary'])
        if data.get('total') is not None:
            issue_count = data['total']
        else:
            issue_count = len(data.get('issues') or [])

        logger.info(f"Found {issue_count} issues for release: {version_name}")
        return {
            'name': version_name,
            'id': version_id,
            'projectKey': project_key,
            'jql': jql,
            'issueCount': issue_count,
        }

    def get_status_breakdown(self, jql: str, max_results: int = 1000) -> Dict[str, Any]:
        """Count issues matching a JQL query per status and per issue type"""
        data = self.jira_client.search_with_fallback(jql, max_results=max_results, fields=['status', 'issuetype'])
        issues = data.get('issues') or []

        status_breakdown: Dict[str, int] = {}
        type_breakdown: Dict[str, int] = {}
        for issue in issues:
            fields = issue.get('fields') or {}
            status = (fields.get('status') or {}).get('name') or 'Unknown'
            issue_type = (fields.get('issuetype') or {}).get('name') or 'Unknown'
            status_breakdown[status] = status_breakdown.get(status, 0) + 1
            type_breakdown[issue_type] = type_breakdown.get(issue_type, 0) + 1

        total = data.get('total') or len(issues)
        logger.info(f"✅ Found {total} issues with status breakdown: {status_breakdown}")
        return {
            'totalIssues': total,
            'statusBreakdown': status_breakdown,
            'issueTypeBreakdown': type_breakdown,
            'jql': jql,
        }

    def get_field_metadata(self, field_ids: Optional[List[str]] = None) -> Dict[str, Any]:
        """
        Describe custom fields

        Args:
            field_ids: Fields to describe individually; unknown ids are reported by id only

        Returns:
            Dict with ``fields`` (requested ids) and ``allCustomFields``
        """
        all_fields = self.jira_client.get_fields()
        by_id = {field.get('id'): field for field in all_fields}

        requested = {}
        for field_id in field_ids or []:
            field = by_id.get(field_id) or {}
            requested[field_id] = {
                'id': field_id,
                'name': field.get('name') or field_id,
                'type': (field.get('schema') or {}).get('type'),
                'custom': field.get('custom'),
            }

        return {
            'fields': requested,
            'allCustomFields': [
                {'id': field.get('id'), 'name': field.get('name'), 'type': (field.get('schema') or {}).get('type')}
                for field in all_fields if field.get('custom')
            ]
        }


def describe_release_details_error(error: Exception) -> Tuple[int, str]:
    """Release detail failures mention deprecated search endpoints explicitly"""
    if getattr(error, 'response', None) is None:
        return 500, 'Failed to get release details'

    status = upstream_status(error)
    data = upstream_payload(error)
    detail = ', '.join(str(m) for m in data.get('errorMessages') or []) or data.get('message')
    if status == 410:
        return status, f"API deprecated (410): {detail or 'The API endpoint has been deprecated. Please contact support.'}"
    return status, f"API error ({status}): {detail or error}"
