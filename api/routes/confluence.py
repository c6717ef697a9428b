"""
Confluence Routes
Endpoints for Confluence connection checks, spaces and release pages
"""
from fastapi import APIRouter
import logging
import requests

from toolhub.checklist import ChecklistDocument
from toolhub.confluence_client import (
    InvalidConfluenceResponse,
    describe_connection_error,
    describe_spaces_error,
    describe_page_info_error,
    describe_page_creation_error
)
from ..models.common import AtlassianCredentials
from ..models.confluence import (
    PageInfoRequest,
    CreatePageRequest,
    CreateSubpageRequest,
    ChecklistPreviewRequest,
    ChecklistPreviewResponse
)
from ..dependencies import create_confluence_client
from ..utils import error_response

router = APIRouter()
logger = logging.getLogger(__name__)

CONFLUENCE_ERRORS = (requests.exceptions.RequestException, InvalidConfluenceResponse)


@router.post("/api/confluence/test-connection",
             tags=["Confluence"],
             summary="Test Confluence credentials",
             description="Identify the current user, trying the REST API with and without the /wiki prefix. "
                         "Login pages returned instead of JSON count as failures.")
def test_connection(request: AtlassianCredentials):
    """Test a Confluence connection"""
    client = create_confluence_client(request.url, request.email, request.token)

    try:
        user = client.test_connection()
    except CONFLUENCE_ERRORS as e:
        status, message = describe_connection_error(e)
        logger.error(f"Confluence connection test failed: {message}")
        return error_response(status, message, message='Connection failed')

    return {"success": True, "user": user, "message": "Confluence connection successful"}


@router.post("/api/confluence/get-spaces",
             tags=["Confluence"],
             summary="List Confluence spaces",
             description="All spaces visible to the user, loaded in batches of 100.")
def get_spaces(request: AtlassianCredentials):
    """List Confluence spaces"""
    client = create_confluence_client(request.url, request.email, request.token)

    try:
        spaces = client.get_spaces()
    except CONFLUENCE_ERRORS as e:
        status, message = describe_spaces_error(e)
        logger.error(f"Failed to fetch Confluence spaces: {message}")
        return error_response(status, message)

    if spaces:
        logger.info(f"Available space keys: {', '.join(str(space['key']) for space in spaces)}")
    return {"success": True, "spaces": spaces}


@router.post("/api/confluence/get-page-info",
             tags=["Confluence"],
             summary="Get page details",
             description="Page id, title, type and space of a Confluence page.")
def get_page_info(request: PageInfoRequest):
    """Get a Confluence page with its space"""
    client = create_confluence_client(request.url, request.email, request.token)
    logger.info(f"Getting page info for ID: {request.page_id}")

    try:
        page = client.get_page_info(request.page_id)
    except CONFLUENCE_ERRORS as e:
        status, message = describe_page_info_error(e)
        logger.error(f"Failed to get page info: {message}")
        return error_response(status, message)

    return {"success": True, "page": page}


@router.post("/api/confluence/create-page",
             tags=["Confluence"],
             summary="Create a Confluence page",
             description="Create a page from storage-format markup, optionally under a parent page.")
def create_page(request: CreatePageRequest):
    """Create a Confluence page"""
    client = create_confluence_client(request.url, request.email, request.token)

    try:
        page = client.create_page(request.space_key, request.title, request.content, request.parent_id)
    except requests.exceptions.RequestException as e:
        status, message = describe_page_creation_error(e, request.title)
        logger.error(f"Failed to create Confluence page: {message}")
        return error_response(status, message)

    return {"success": True, "page": page}


@router.post("/api/confluence/create-subpage",
             tags=["Confluence"],
             summary="Create a release checklist page",
             description="Create a child page holding the release checklist. Release names containing "
                         "'api' get the 24-step API checklist, all others the 23-step Web checklist.")
def create_subpage(request: CreateSubpageRequest):
    """Create a release checklist sub-page"""
    client = create_confluence_client(request.url, request.email, request.token)
    checklist = ChecklistDocument(request.release_name or request.title)
    logger.info(
        f"Generating {checklist.template_name} checklist ({checklist.step_count} steps) for '{checklist.release_name}'"
    )

    try:
        page = client.create_subpage(request.space_key, request.parent_id, request.title, checklist.to_adf())
    except requests.exceptions.RequestException as e:
        status, message = describe_page_creation_error(e, request.title, subpage=True)
        logger.error(f"Failed to create Confluence sub-page: {message}")
        return error_response(status, message)

    return {"success": True, "page": page}


@router.post("/api/confluence/checklist-preview",
             tags=["Confluence"],
             response_model=ChecklistPreviewResponse,
             summary="Preview a release checklist",
             description="Render the checklist for a release name as ADF and storage HTML without creating a page.")
def checklist_preview(request: ChecklistPreviewRequest):
    """Render a release checklist"""
    checklist = ChecklistDocument(request.release_name)
    return ChecklistPreviewResponse(
        adf=checklist.to_adf(),
        html=checklist.to_html(),
        **checklist.summary()
    )
