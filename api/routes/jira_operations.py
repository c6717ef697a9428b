"""
JIRA Operations Routes
Endpoints for connection checks, project lookup and ticket creation
"""
from fastapi import APIRouter
import logging
import requests

from toolhub.errors import describe_upstream_error
from toolhub.ticket_creator import describe_creation_error
from toolhub.ticket_parser import parse_ticket_text
from ..models.jira_operations import (
    ProjectRequest,
    TestConnectionResponse,
    CreateTicketRequest,
    BulkCreateTicketsRequest,
    BulkCreateTicketsResponse,
    ParseTicketRequest,
    ParseTicketResponse
)
from ..models.common import AtlassianCredentials
from ..dependencies import create_jira_client, create_ticket_creator
from ..utils import error_response

router = APIRouter()
logger = logging.getLogger(__name__)

CONNECTION_ERRORS = {
    401: 'Authentication failed. Please check your email and API token.',
    403: 'Permission denied. Please check your Jira permissions.',
    404: 'Jira instance not found. Please check your URL.',
}

PROJECT_ERRORS = {
    404: 'Project not found. Please check your project key.',
    403: 'No permission to access this project.',
}


@router.post("/api/jira/test-connection",
             tags=["JIRA Operations"],
             response_model=TestConnectionResponse,
             summary="Test JIRA credentials",
             description="Fetch the current user with the supplied credentials to verify URL, email and API token.")
def test_connection(request: AtlassianCredentials):
    """Test a JIRA connection"""
    jira_client = create_jira_client(request.url, request.email, request.token)
    logger.info(f"Testing Jira connection to: {jira_client.server_url}")

    try:
        user = jira_client.get_myself()
    except requests.exceptions.RequestException as e:
        status, message = describe_upstream_error(
            e,
            CONNECTION_ERRORS,
            generic='Jira API error ({status}): {detail}',
            fallback=f'Error: {e}'
        )
        logger.error(f"Jira connection test failed: {message}")
        return error_response(status, message, message='Connection failed')

    logger.info(f"✅ Connected to Jira as {user.get('displayName') or user.get('emailAddress')}")
    return TestConnectionResponse(user=user)


@router.post("/api/jira/get-project",
             tags=["JIRA Operations"],
             summary="Get project details",
             description="Return the raw JIRA project, including its issue types.")
def get_project(request: ProjectRequest):
    """Get a JIRA project"""
    jira_client = create_jira_client(request.url, request.email, request.token)

    try:
        project = jira_client.get_project(request.project_key)
    except requests.exceptions.RequestException as e:
        status, message = describe_upstream_error(
            e,
            PROJECT_ERRORS,
            generic='Project API error ({status})',
            fallback='Failed to get project information'
        )
        logger.error(f"Failed to get project {request.project_key}: {message}")
        return error_response(status, message)

    return {"success": True, "project": project}


@router.post("/api/jira/create-ticket",
             tags=["JIRA Operations"],
             summary="Create a JIRA ticket",
             description="Create a ticket from parsed fields, optionally placing it in a sprint, "
                         "fix version and parent, and attaching previously uploaded files.")
def create_ticket(request: CreateTicketRequest):
    """Create a single JIRA ticket"""
    jira_client = create_jira_client(request.url, request.email, request.token)
    creator = create_ticket_creator(jira_client)

    try:
        return creator.create_ticket(
            request.project_key,
            request.ticket_data,
            metadata=request.metadata,
            attachments=request.attachments
        )
    except requests.exceptions.RequestException as e:
        status, message = describe_creation_error(e)
        logger.error(f"Failed to create Jira ticket '{request.ticket_data.title}': {message}")
        return error_response(
            status,
            message,
            title=request.ticket_data.title,
            originalId=request.ticket_data.id
        )


@router.post("/api/jira/create-tickets-bulk",
             tags=["JIRA Operations"],
             response_model=BulkCreateTicketsResponse,
             summary="Create several JIRA tickets",
             description="Create tickets one after another with a short delay between them. "
                         "A failing or malformed ticket does not stop the others.")
def create_tickets_bulk(request: BulkCreateTicketsRequest):
    """Create tickets sequentially with per-ticket isolation"""
    jira_client = create_jira_client(request.url, request.email, request.token)
    creator = create_ticket_creator(jira_client)
    return creator.create_tickets_bulk(request.project_key, request.tickets)


@router.post("/api/jira/parse-ticket",
             tags=["JIRA Operations"],
             response_model=ParseTicketResponse,
             summary="Parse free text into ticket fields",
             description="Extract title, type, priority, steps, environment and results from a free-text report.")
def parse_ticket(request: ParseTicketRequest):
    """Parse a free-text ticket"""
    ticket = parse_ticket_text(request.text)
    if ticket is None:
        return error_response(400, 'Text is required')
    return ParseTicketResponse(ticket=ticket)

