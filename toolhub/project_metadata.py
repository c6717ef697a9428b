"""
Project Metadata Aggregation

Collects the sprint, fix version, assignee and Epic options of a project for
the ticket form. The four lookups run in parallel and each one falls back to
an empty list on its own, so a single failing lookup never aborts the others.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Dict, Any, Optional, Callable

from pydantic import ValidationError

from .jira_client import JiraClient
from .epic_search import EpicSearchService
from .models import (
    ProjectMetadata, ProjectRef, SprintOption, VersionOption, AssigneeOption, EpicOption
)

logger = logging.getLogger(__name__)

TBC_VERSION_ID = 'tbc'
TBC_VERSION_NAME = 'To be confirmed'
SPRINT_BACKLOG_MARKER = 'active sprint backlog'


def select_default_sprint(sprints: List[SprintOption], project_key: str,
                          default_name: str, board_marker: str) -> Optional[SprintOption]:
    """
    Mark and return the sprint pre-selected in the ticket form.

    Priority: exact ``default_name`` → backlog sprint carrying the shared board
    marker → backlog sprint carrying ``(PROJECT_KEY)`` → first active sprint.
    """
    def backlog_with(marker: str) -> Optional[SprintOption]:
        return next(
            (s for s in sprints if SPRINT_BACKLOG_MARKER in s.name.lower() and marker in s.name),
            None
        )

    default = (
        next((s for s in sprints if s.name == default_name), None)
        or backlog_with(board_marker)
        or backlog_with(f'({project_key})')
        or next((s for s in sprints if s.state == 'active'), None)
    )

    for sprint in sprints:
        sprint.isDefault = sprint is default

    logger.info(f"Default sprint for {project_key}: {default.name if default else 'NOT FOUND'}")
    return default


def ensure_tbc_version(versions: List[VersionOption]) -> List[VersionOption]:
    """
    Make "To be confirmed" the default version, adding a placeholder when the
    project does not define one. The result holds exactly one such entry.
    """
    tbc = [v for v in versions if v.name == TBC_VERSION_NAME]
    others = [v for v in versions if v.name != TBC_VERSION_NAME]
    for version in others:
        version.isDefault = False

    if tbc:
        tbc_version = tbc[0]
        tbc_version.isDefault = True
        position = versions.index(tbc_version)
        kept = [v for i, v in enumerate(versions) if v.name != TBC_VERSION_NAME or i == position]
        return kept

    placeholder = VersionOption(
        id=TBC_VERSION_ID,
        name=TBC_VERSION_NAME,
        released=False,
        archived=False,
        isDefault=True
    )
    return [placeholder] + others


class ProjectMetadataService:
    """Aggregates project metadata from independent Jira lookups"""

    def __init__(self, jira_client: JiraClient, epic_search: Optional[EpicSearchService] = None,
                 default_sprint_name: str = 'Active Sprint Backlog (249)', board_marker: str = '(249)',
                 assignee_page_size: int = 100, assignee_limit: int = 1000):
        self.jira_client = jira_client
        self.epic_search = epic_search or EpicSearchService(jira_client)
        self.default_sprint_name = default_sprint_name
        self.board_marker = board_marker
        self.assignee_page_size = assignee_page_size
        self.assignee_limit = assignee_limit

    def get_metadata(self, project_key: str) -> ProjectMetadata:
        """
        Fetch sprints, versions, assignees and Epics of a project

        The project lookup itself is not guarded: an unknown project or bad
        credentials propagate to the caller. Each parallel lookup runs on its
        own client session.
        """
        logger.info(f"Fetching project metadata for: {project_key}")
        project = self.jira_client.get_project(project_key)

        lookups: Dict[str, Callable[[JiraClient, str], list]] = {
            'sprints': self._load_sprints,
            'versions': self._load_versions,
            'assignees': self._load_assignees,
            'epics': self._load_epics,
        }
        with ThreadPoolExecutor(max_workers=len(lookups)) as executor:
            futures = {
                name: executor.submit(self._guarded, name, lookup, self.jira_client.clone(), project_key)
                for name, lookup in lookups.items()
            }
            options = {name: future.result() for name, future in futures.items()}

        sprints = options['sprints']
        select_default_sprint(sprints, project_key, self.default_sprint_name, self.board_marker)
        versions = ensure_tbc_version(options['versions'])
        assignees = options['assignees']
        epics = options['epics']

        logger.info(
            f"Project metadata fetched: {len(sprints)} sprints, {len(versions)} versions, "
            f"{len(assignees)} assignees, {len(epics)} epics"
        )

        return ProjectMetadata(
            sprints=sprints,
            versions=versions,
            assignees=assignees,
            epics=epics,
            project=ProjectRef(id=project.get('id'), key=project_key, name=project.get('name'))
        )

    @staticmethod
    def _guarded(name: str, lookup: Callable[[JiraClient, str], list],
                 jira_client: JiraClient, project_key: str) -> list:
        try:
            return lookup(jira_client, project_key) or []
        except Exception as e:
            logger.warning(f"Failed to fetch {name} for {project_key}: {e}")
            return []

    @staticmethod
    def _map_rows(name: str, rows: List[Dict[str, Any]], build: Callable[[Dict[str, Any]], Any]) -> list:
        """Build one option per upstream row, skipping rows that do not fit"""
        options = []
        for row in rows or []:
            try:
                options.append(build(row))
            except (ValidationError, AttributeError, TypeError) as e:
                logger.warning(f"Skipping malformed {name} entry {row!r}: {e}")
        return options

    def _load_sprints(self, jira_client: JiraClient, project_key: str) -> List[SprintOption]:
        board_id = jira_client.get_board_id(project_key)
        if board_id is None:
            return []
        rows = jira_client.get_board_sprints(board_id, state='active,future')
        return self._map_rows('sprint', rows, lambda s: SprintOption(
            id=s.get('id'), name=s.get('name') or '', state=s.get('state')
        ))

    def _load_versions(self, jira_client: JiraClient, project_key: str) -> List[VersionOption]:
        rows = jira_client.get_project_versions(project_key)
        return self._map_rows('version', rows, lambda v: VersionOption(
            id=v.get('id'),
            name=v.get('name') or '',
            released=bool(v.get('released')),
            archived=bool(v.get('archived'))
        ))

    def _load_assignees(self, jira_client: JiraClient, project_key: str) -> List[AssigneeOption]:
        rows = jira_client.get_assignable_users(
            project_key,
            page_size=self.assignee_page_size,
            limit=self.assignee_limit
        )
        return self._map_rows('assignee', rows, lambda u: AssigneeOption(
            accountId=u.get('accountId'),
            displayName=u.get('displayName'),
            emailAddress=u.get('emailAddress'),
            avatarUrl=(u.get('avatarUrls') or {}).get('24x24')
        ))

    def _load_epics(self, jira_client: JiraClient, project_key: str) -> List[EpicOption]:
        rows = self.epic_search.with_client(jira_client).load_parent_issues(project_key)
        return self._map_rows('epic', rows, _epic_option)


def _epic_option(issue: Dict[str, Any]) -> EpicOption:
    fields = issue.get('fields') or {}
    return EpicOption(
        id=issue.get('id'),
        key=issue.get('key') or '',
        summary=fields.get('summary') or issue.get('summary') or 'No summary',
        status=(fields.get('status') or issue.get('status') or {}).get('name') or 'Unknown'
    )
