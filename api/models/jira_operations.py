"""
JIRA Operations Models
Request and response models for JIRA proxy endpoints
"""
from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any

from toolhub.models import TicketInput, TicketMetadata, AttachmentRef
from .common import AtlassianCredentials


class ProjectRequest(AtlassianCredentials):
    """Request scoped to a single JIRA project"""
    project_key: str = Field(
        ...,
        alias="projectKey",
        min_length=1,
        description="JIRA project key",
        example="PROJ"
    )


class TestConnectionResponse(BaseModel):
    """Response for a successful connection test"""
    success: bool = True
    user: Dict[str, Any]
    message: str = "Connection successful"


class EpicSearchRequest(ProjectRequest):
    """Request to search Epics of a project"""
    search_term: Optional[str] = Field(
        None,
        alias="searchTerm",
        description="Substring matched against Epic summary and key (case-insensitive)",
        example="onboarding"
    )
    max_results: int = Field(
        default=20,
        alias="maxResults",
        ge=1,
        description="Maximum number of Epics returned"
    )


class CreateTicketRequest(ProjectRequest):
    """Request to create a single ticket"""
    ticket_data: TicketInput = Field(
        ...,
        alias="ticketData",
        description="Parsed ticket fields"
    )
    attachments: List[AttachmentRef] = Field(
        default_factory=list,
        description="Files returned by the upload endpoint"
    )
    metadata: Optional[TicketMetadata] = Field(
        None,
        description="Sprint, fix version, assignee and parent placement"
    )


class BulkCreateTicketsRequest(ProjectRequest):
    """Request to create several tickets one after another"""
    tickets: List[Any] = Field(
        ...,
        description="Ticket objects; malformed entries are reported as failures"
    )


class BulkCreateSummary(BaseModel):
    total: int
    successful: int
    failed: int


class BulkCreateTicketsResponse(BaseModel):
    """Response for bulk ticket creation"""
    success: bool
    results: List[Dict[str, Any]]
    summary: BulkCreateSummary


class ParseTicketRequest(BaseModel):
    """Request to parse free text into ticket fields"""
    text: Optional[str] = Field(
        None,
        description="Free-text bug report or feature request",
        example="Bug: Login fails on iOS app\nPriority: High"
    )


class ParseTicketResponse(BaseModel):
    success: bool = True
    ticket: TicketInput


class FieldMetadataRequest(AtlassianCredentials):
    """Request describing JIRA fields"""
    field_ids: List[str] = Field(
        default_factory=list,
        alias="fieldIds",
        description="Custom field ids to describe individually",
        example=["customfield_10131"]
    )


class ReleasesRequest(ProjectRequest):
    """Request to list the releases (fix versions) of a project"""


class ReleaseDetailsRequest(ProjectRequest):
    """Request to count the issues of a release"""
    version_name: Optional[str] = Field(
        None,
        alias="versionName",
        description="Release (fix version) name",
        example="API v2.4.0"
    )
    version_id: Optional[str] = Field(
        None,
        alias="versionId",
        description="Release (fix version) id",
        example="10042"
    )


class StatusBreakdownRequest(AtlassianCredentials):
    """Request to count issues per status for a JQL query"""
    jql: str = Field(
        ...,
        min_length=1,
        description="JQL query selecting the issues",
        example='project = "PROJ" AND fixVersion = "API v2.4.0"'
    )
