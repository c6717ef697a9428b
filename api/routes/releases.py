"""
Release Routes
Endpoints listing releases and summarizing the issues they contain
"""
from fastapi import APIRouter
import logging
import requests

from toolhub.errors import describe_upstream_error, upstream_detail
from toolhub.releases import RELEASE_ERRORS, describe_release_details_error
from ..models.jira_operations import (
    ReleasesRequest,
    ReleaseDetailsRequest,
    StatusBreakdownRequest,
    FieldMetadataRequest
)
from ..dependencies import create_jira_client, create_release_service
from ..utils import error_response

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/api/jira/get-releases",
             tags=["Releases"],
             summary="List project releases",
             description="Fix versions of a project, unreleased first, then by release date (newest first), then by name.")
def get_releases(request: ReleasesRequest):
    """List the releases of a project"""
    service = create_release_service(create_jira_client(request.url, request.email, request.token))

    try:
        releases = service.get_releases(request.project_key)
    except requests.exceptions.RequestException as e:
        status, message = describe_upstream_error(
            e,
            RELEASE_ERRORS,
            generic='API error ({status}): {detail}',
            fallback='Failed to fetch project releases'
        )
        logger.error(f"Failed to fetch project releases: {message}")
        return error_response(status, message)

    return {"success": True, "releases": releases, "project": {"key": request.project_key}}


@router.post("/api/jira/get-release-details",
             tags=["Releases"],
             summary="Count the issues of a release",
             description="Count non-subtask issues with the given fix version, trying the enhanced "
                         "search endpoint first and the classic ones after it.")
def get_release_details(request: ReleaseDetailsRequest):
    """Count the issues of a release"""
    if not request.version_name and not request.version_id:
        return error_response(
            400,
            'Missing required fields: url, email, token, projectKey, versionName or versionId'
        )

    service = create_release_service(create_jira_client(request.url, request.email, request.token))

    try:
        release = service.get_release_details(
            request.project_key,
            request.version_name,
            request.version_id
        )
    except requests.exceptions.RequestException as e:
        status, message = describe_release_details_error(e)
        logger.error(f"Failed to get release details: {message}")
        return error_response(status, message)

    return {"success": True, "release": release}


@router.post("/api/jira/get-issue-status-breakdown",
             tags=["Releases"],
             summary="Count issues per status",
             description="Count issues matching a JQL query per status name and per issue type.")
def get_issue_status_breakdown(request: StatusBreakdownRequest):
    """Count issues per status and issue type"""
    service = create_release_service(create_jira_client(request.url, request.email, request.token))

    try:
        breakdown = service.get_status_breakdown(request.jql)
    except requests.exceptions.RequestException as e:
        message = f"Failed to search issues: {upstream_detail(e)}"
        logger.error(message)
        return error_response(500, message)

    return {"success": True, **breakdown}


@router.post("/api/jira/get-field-metadata",
             tags=["Releases"],
             summary="Describe JIRA custom fields",
             description="List all custom fields and describe the requested field ids individually.")
def get_field_metadata(request: FieldMetadataRequest):
    """Describe custom fields"""
    service = create_release_service(create_jira_client(request.url, request.email, request.token))

    try:
        metadata = service.get_field_metadata(request.field_ids)
    except requests.exceptions.RequestException as e:
        status, message = describe_upstream_error(
            e,
            {},
            generic='API error ({status}): {detail}',
            fallback='Failed to fetch field metadata'
        )
        logger.error(f"Failed to fetch field metadata: {message}")
        return error_response(status, message)

    return {"success": True, **metadata}
