"""
Epic and Project Metadata Routes
Endpoints feeding the ticket form: Epic search and sprint/version/assignee options
"""
from fastapi import APIRouter
import logging
import requests

from toolhub.errors import upstream_status, first_error_message
from toolhub.models import EpicSearchResult, ProjectMetadata
from ..models.jira_operations import ProjectRequest, EpicSearchRequest
from ..dependencies import create_jira_client, create_epic_search, create_metadata_service
from ..utils import error_response

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/api/jira/search-epics",
             tags=["Epics"],
             response_model=EpicSearchResult,
             summary="Search Epics of a project",
             description="Best-effort Epic lookup that keeps working when JQL issue type queries are rejected. "
                         "Returns an empty list rather than an error when nothing can be found.")
def search_epics(request: EpicSearchRequest):
    """Search 'To Do' Epics of a project"""
    jira_client = create_jira_client(request.url, request.email, request.token)
    epic_search = create_epic_search(jira_client)

    try:
        return epic_search.search(request.project_key, request.search_term, request.max_results)
    except Exception as e:
        logger.error(f"Epic search error: {e}")
        return error_response(500, 'Failed to search Epics', details=str(e))


@router.post("/api/jira/project-metadata",
             tags=["Epics"],
             response_model=ProjectMetadata,
             summary="Get ticket placement options for a project",
             description="Sprints (with the default pre-selected), fix versions (with 'To be confirmed'), "
                         "assignable users and parent Epics, fetched in parallel.")
def get_project_metadata(request: ProjectRequest):
    """Get sprints, versions, assignees and Epics of a project"""
    jira_client = create_jira_client(request.url, request.email, request.token)
    service = create_metadata_service(jira_client)

    try:
        return service.get_metadata(request.project_key)
    except requests.exceptions.RequestException as e:
        message = first_error_message(e) or str(e) or 'Unknown error occurred'
        logger.error(f"Failed to fetch project metadata for {request.project_key}: {message}")
        return error_response(upstream_status(e), message)
