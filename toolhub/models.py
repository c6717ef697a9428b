from typing import Any, Optional, List
from pydantic import BaseModel, Field


class TicketInput(BaseModel):
    """Ticket fields parsed from a free-text bug report"""
    id: Optional[Any] = None
    title: str
    description: str = ''
    steps: List[str] = []
    environment: str = ''
    priority: str = 'Medium'
    issue_type: str = Field('Bug', alias='issueType')
    expected_result: str = Field('', alias='expectedResult')
    actual_result: str = Field('', alias='actualResult')
    definition_of_done: str = Field('', alias='definitionOfDone')

    model_config = {'populate_by_name': True}


class TicketMetadata(BaseModel):
    """Optional placement of a ticket: sprint, fix version, assignee and parent"""
    sprint: Optional[Any] = None
    fix_version: Optional[str] = Field(None, alias='fixVersion')
    assignee: Optional[str] = None
    parent: Optional[str] = None

    model_config = {'populate_by_name': True}


class AttachmentRef(BaseModel):
    """Reference to a file previously stored by the upload endpoint"""
    filename: str
    originalname: Optional[str] = None
    mimetype: Optional[str] = None


class SprintOption(BaseModel):
    id: Any
    name: str
    state: Optional[str] = None
    isDefault: bool = False


class VersionOption(BaseModel):
    id: Any
    name: str
    released: bool = False
    archived: bool = False
    isDefault: bool = False


class AssigneeOption(BaseModel):
    accountId: Optional[str] = None
    displayName: Optional[str] = None
    emailAddress: Optional[str] = None
    avatarUrl: Optional[str] = None


class EpicOption(BaseModel):
    id: Optional[str] = None
    key: str
    summary: str = 'No summary'
    status: str = 'Unknown'
    isDefault: bool = False


class EpicSummary(BaseModel):
    """Epic-like issue returned by the Epic search"""
    key: str
    summary: str = 'No summary'
    status: str = 'Unknown'
    created: Optional[str] = None
    updated: Optional[str] = None
    issueType: str = 'Unknown'


class EpicSearchResult(BaseModel):
    success: bool = True
    epics: List[EpicSummary] = []
    total: int = 0
    method: str
    searchTerm: str = ''


class ProjectRef(BaseModel):
    id: Optional[str] = None
    key: str
    name: Optional[str] = None


class ProjectMetadata(BaseModel):
    """Everything the ticket form needs to place a ticket in a project"""
    sprints: List[SprintOption] = []
    versions: List[VersionOption] = []
    assignees: List[AssigneeOption] = []
    epics: List[EpicOption] = []
    project: ProjectRef

