"""
Confluence Models
Request models for Confluence proxy endpoints and checklist previews
"""
from pydantic import BaseModel, Field
from typing import Optional, Dict, Any

from .common import AtlassianCredentials


class PageInfoRequest(AtlassianCredentials):
    """Request for a page and its space"""
    page_id: str = Field(
        ...,
        alias="pageId",
        min_length=1,
        description="Confluence page id",
        example="123456789"
    )


class CreatePageRequest(AtlassianCredentials):
    """Request to create a page from storage-format markup"""
    space_key: str = Field(..., alias="spaceKey", min_length=1, description="Space key", example="QA")
    title: str = Field(..., min_length=1, description="Page title (unique within the space)")
    content: str = Field(..., min_length=1, description="Storage-format page body")
    parent_id: Optional[str] = Field(None, alias="parentId", description="Optional parent page id")


class CreateSubpageRequest(AtlassianCredentials):
    """Request to create a release checklist page under a parent page"""
    space_key: str = Field(..., alias="spaceKey", min_length=1, description="Space key", example="QA")
    parent_id: str = Field(..., alias="parentId", min_length=1, description="Parent page id")
    title: str = Field(..., min_length=1, description="Page title", example="API v2.4.0 Release")
    release_name: Optional[str] = Field(
        None,
        alias="releaseName",
        description="Release name choosing the checklist template (defaults to the title)",
        example="API v2.4.0"
    )


class ChecklistPreviewRequest(BaseModel):
    """Request to render a checklist without creating a page"""
    release_name: str = Field(
        default="",
        alias="releaseName",
        description="Release name; names containing 'api' use the API template",
        example="Web v3.1.0"
    )

    model_config = {'populate_by_name': True}


class ChecklistPreviewResponse(BaseModel):
    success: bool = True
    releaseName: str
    template: str
    stepCount: int
    rowCount: int
    checkboxCount: int
    adf: Dict[str, Any]
    html: str
