"""
Models Package
Export all API models for easy imports
"""
# Shared models
from .common import (
    AtlassianCredentials
)

# JIRA models
from .jira_operations import (
    ProjectRequest,
    TestConnectionResponse,
    EpicSearchRequest,
    CreateTicketRequest,
    BulkCreateTicketsRequest,
    BulkCreateSummary,
    BulkCreateTicketsResponse,
    ParseTicketRequest,
    ParseTicketResponse,
    FieldMetadataRequest,
    ReleasesRequest,
    ReleaseDetailsRequest,
    StatusBreakdownRequest
)

# Confluence models
from .confluence import (
    PageInfoRequest,
    CreatePageRequest,
    CreateSubpageRequest,
    ChecklistPreviewRequest,
    ChecklistPreviewResponse
)

# Utility models
from .utility import (
    TranslateRequest,
    TranslateResponse,
    HealthResponse,
    UploadedFile,
    UploadResponse,
    CachedSpace,
    CachedSpacesResponse
)

__all__ = [
    'AtlassianCredentials',
    'ProjectRequest',
    'TestConnectionResponse',
    'EpicSearchRequest',
    'CreateTicketRequest',
    'BulkCreateTicketsRequest',
    'BulkCreateSummary',
    'BulkCreateTicketsResponse',
    'ParseTicketRequest',
    'ParseTicketResponse',
    'FieldMetadataRequest',
    'ReleasesRequest',
    'ReleaseDetailsRequest',
    'StatusBreakdownRequest',
    'PageInfoRequest',
    'CreatePageRequest',
    'CreateSubpageRequest',
    'ChecklistPreviewRequest',
    'ChecklistPreviewResponse',
    'TranslateRequest',
    'TranslateResponse',
    'HealthResponse',
    'UploadedFile',
    'UploadResponse',
    'CachedSpace',
    'CachedSpacesResponse',
]
