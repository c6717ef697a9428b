"""
Epic Resolution

Locates Epic-like issues of a project when type-filtered JQL queries are
rejected upstream (HTTP 410). Strategies are tried in order and the first one
that produces an answer wins; running out of strategies yields an empty result,
never an error.
"""
import logging
from typing import List, Dict, Any, Optional, Callable

import requests

from .jira_client import JiraClient
from .models import EpicSummary, EpicSearchResult

logger = logging.getLogger(__name__)

EPIC_LIKE_TYPE_MARKERS = ('epic', 'story', 'feature', 'initiative')
TODO_STATUS = 'To Do'
EPIC_LINK_SCHEMA = 'com.pyxis.greenhopper.jira:gh-epic-link'

UPSTREAM_ERRORS = (requests.exceptions.RequestException, ValueError)


def _fields(issue: Dict[str, Any]) -> Dict[str, Any]:
    return issue.get('fields') or {}


def issue_type_name(issue: Dict[str, Any]) -> str:
    return ((_fields(issue).get('issuetype') or {}).get('name') or '')


def status_name(issue: Dict[str, Any]) -> str:
    return ((_fields(issue).get('status') or {}).get('name') or '')


def is_epic_like(issue: Dict[str, Any], count_parents_of_subtasks: bool = True) -> bool:
    """
    Heuristic for "this issue can act as an Epic".

    True when the type name mentions epic/story/feature/initiative, the type
    sits at hierarchy level 1 or below (a missing level counts as 0), or,
    optionally, the issue has sub-tasks and no parent of its own.
    """
    fields = _fields(issue)
    type_name = issue_type_name(issue).lower()
    hierarchy_level = (fields.get('issuetype') or {}).get('hierarchyLevel') or 0

    if any(marker in type_name for marker in EPIC_LIKE_TYPE_MARKERS):
        return True
    if hierarchy_level <= 1:
        return True
    if count_parents_of_subtasks:
        return bool(fields.get('subtasks')) and not fields.get('parent')
    return False


def matches_search_term(key: str, summary: str, search_term: Optional[str]) -> bool:
    """Case-insensitive substring match on summary or key; a blank term matches everything"""
    if not search_term or not search_term.strip():
        return True
    term = search_term.strip().lower()
    return term in (summary or '').lower() or term in (key or '').lower()


class EpicSearchService:
    """Best-effort Epic lookup for a single project"""

    METHOD_BROWSE = 'NON-JQL Browse & Filter'
    METHOD_PROBE = 'Known Epic Keys Probing'
    METHOD_NONE = 'No results found'

    def __init__(self, jira_client: JiraClient, probe_keys: Optional[List[str]] = None, browse_limit: int = 300):
        self.jira_client = jira_client
        self.probe_keys = list(probe_keys or [])
        self.browse_limit = browse_limit

    def with_client(self, jira_client: JiraClient) -> 'EpicSearchService':
        return EpicSearchService(jira_client, probe_keys=self.probe_keys, browse_limit=self.browse_limit)

    def search(self, project_key: str, search_term: Optional[str] = None, max_results: int = 20) -> EpicSearchResult:
        """
        Search "To Do" Epics of a project, optionally narrowed by a search term

        Args:
            project_key: Jira project key
            search_term: Optional substring matched against summary and key
            max_results: Maximum number of epics returned (``total`` is not truncated)

        Returns:
            EpicSearchResult naming the strategy that produced it
        """
        logger.info(f"🔍 Epic search: '{search_term or ''}' in project {project_key}")

        for strategy in (self._search_by_browsing, self._search_by_probing):
            result = strategy(project_key, search_term, max_results)
            if result is not None:
                logger.info(f"✅ Returning {len(result.epics)} Epics ({result.method})")
                return result

        logger.warning("⚠️ All Epic search approaches failed - returning empty results")
        return EpicSearchResult(epics=[], total=0, method=self.METHOD_NONE, searchTerm=search_term or '')

    def _search_by_browsing(self, project_key: str, search_term: Optional[str], max_results: int) -> Optional[EpicSearchResult]:
        """Browse recent project issues and filter them locally"""
        try:
            issues = self.jira_client.browse_project_issues(project_key, max_results=self.browse_limit)
        except UPSTREAM_ERRORS as e:
            logger.warning(f"❌ Browsing project issues failed: {e}")
            return None

        logger.info(f"📋 Browsed {len(issues)} project issues")

        found = [
            issue for issue in issues
            if is_epic_like(issue) and status_name(issue) == TODO_STATUS
        ]
        found = [
            issue for issue in found
            if matches_search_term(issue.get('key', ''), _fields(issue).get('summary', ''), search_term)
        ]

        epics = [self._summarize(issue) for issue in found[:max_results]]
        return EpicSearchResult(
            epics=epics,
            total=len(found),
            method=self.METHOD_BROWSE,
            searchTerm=search_term or ''
        )

    def _search_by_probing(self, project_key: str, search_term: Optional[str], max_results: int) -> Optional[EpicSearchResult]:
        """Fetch each configured issue key and keep the "To Do" Epics"""
        if not self.probe_keys:
            logger.info("No Epic probe keys configured, skipping probing")
            return None

        logger.info(f"🔍 Probing {len(self.probe_keys)} configured Epic keys")
        probed: List[EpicSummary] = []
        for key in self.probe_keys:
            try:
                issue = self.jira_client.get_issue(
                    key,
                    fields='id,key,summary,status,issuetype,created',
                    api_version='2',
                    timeout=self.jira_client.probe_timeout
                )
            except UPSTREAM_ERRORS as e:
                logger.debug(f"Probe of {key} failed: {e}")
                continue

            if not _fields(issue):
                continue
            if status_name(issue) == TODO_STATUS and 'epic' in issue_type_name(issue).lower():
                probed.append(self._summarize(issue, default_type='Epic', include_updated=False))

        if not probed:
            return None

        logger.info(f"✅ Found {len(probed)} Epics via key probing")
        matching = [epic for epic in probed if matches_search_term(epic.key, epic.summary, search_term)]
        return EpicSearchResult(
            epics=matching[:max_results],
            total=len(matching),
            method=self.METHOD_PROBE,
            searchTerm=search_term or ''
        )

    @staticmethod
    def _summarize(issue: Dict[str, Any], default_type: str = 'Unknown', include_updated: bool = True) -> EpicSummary:
        fields = _fields(issue)
        return EpicSummary(
            key=issue.get('key', ''),
            summary=fields.get('summary') or 'No summary',
            status=status_name(issue) or 'Unknown',
            created=fields.get('created'),
            updated=fields.get('updated') if include_updated else None,
            issueType=issue_type_name(issue) or default_type
        )

    # ==================== Parent issues for project metadata ====================

    def load_parent_issues(self, project_key: str) -> List[Dict[str, Any]]:
        """
        Load issues that can be chosen as a ticket's parent.

        Tries, in order: recent "To Do" Epics by JQL, top-level issues of
        Epic-like types, targets of the Epic Link custom field, and a query per
        Epic-like issue type of the project. Returns an empty list when every
        approach fails.
        """
        approaches: List[Callable[[str], List[Dict[str, Any]]]] = [
            self._recent_todo_epics,
            self._top_level_issues,
            self._epic_link_targets,
            self._issues_of_parent_types,
        ]
        for approach in approaches:
            try:
                issues = approach(project_key)
            except UPSTREAM_ERRORS as e:
                logger.warning(f"❌ {approach.__name__} failed for {project_key}: {e}")
                continue
            if issues:
                logger.info(f"✅ Loaded {len(issues)} parent issues via {approach.__name__}")
                return issues

        logger.warning(f"⚠️ No parent issues found for project {project_key}")
        return []

    def _recent_todo_epics(self, project_key: str) -> List[Dict[str, Any]]:
        return self.jira_client.search_issues(
            jql=f'project="{project_key}" AND issuetype="Epic" AND status="{TODO_STATUS}" ORDER BY created DESC',
            fields='id,key,summary,status,issuetype,created',
            max_results=10,
            timeout=self.jira_client.short_timeout
        )

    def _top_level_issues(self, project_key: str) -> List[Dict[str, Any]]:
        issues = self.jira_client.search_issues(
            jql=f'project={project_key} AND parent is EMPTY',
            fields='id,key,summary,status,issuetype,parent',
            max_results=50,
            api_version='3',
            timeout=15
        )
        return [issue for issue in issues if is_epic_like(issue, count_parents_of_subtasks=False)]

    def _epic_link_targets(self, project_key: str) -> List[Dict[str, Any]]:
        epic_link_field = next(
            (field for field in self.jira_client.get_fields(api_version='2')
             if field.get('name') and (
                 'epic link' in field['name'].lower()
                 or (field.get('schema') or {}).get('custom') == EPIC_LINK_SCHEMA
             )),
            None
        )
        if not epic_link_field:
            return []

        field_id = epic_link_field['id']
        logger.info(f"Found Epic Link field: {field_id}")
        issues = self.jira_client.search_issues(
            jql=f'project={project_key}',
            fields=field_id,
            max_results=100,
            api_version='3',
            timeout=15
        )

        epic_keys: List[str] = []
        for issue in issues:
            value = _fields(issue).get(field_id)
            if value and isinstance(value, str) and value not in epic_keys:
                epic_keys.append(value)

        epics = []
        for epic_key in epic_keys[:20]:
            try:
                epics.append(self.jira_client.get_issue(
                    epic_key,
                    fields='id,key,summary,status,issuetype',
                    api_version='2',
                    timeout=self.jira_client.probe_timeout
                ))
            except UPSTREAM_ERRORS as e:
                logger.debug(f"Could not fetch Epic {epic_key}: {e}")
        return epics

    def _issues_of_parent_types(self, project_key: str) -> List[Dict[str, Any]]:
        project = self.jira_client.get_project(project_key)
        parent_types = [
            issue_type for issue_type in project.get('issueTypes', [])
            if any(marker in (issue_type.get('name') or '').lower() for marker in ('epic', 'story', 'feature'))
            or (issue_type.get('hierarchyLevel') is not None and issue_type['hierarchyLevel'] <= 1)
        ]
        logger.info(f"📋 Found {len(parent_types)} parent-level issue types")

        for issue_type in parent_types:
            try:
                issues = self.jira_client.search_issues(
                    jql=f'project={project_key} AND issuetype="{issue_type["name"]}" ORDER BY created DESC',
                    fields='id,key,summary,status,issuetype',
                    max_results=20,
                    api_version='3',
                    timeout=self.jira_client.short_timeout
                )
            except UPSTREAM_ERRORS as e:
                logger.warning(f"❌ Query for type {issue_type.get('name')} failed: {e}")
                continue
            if issues:
                return issues
        return []
