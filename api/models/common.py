"""
Common Models
Credentials and error shapes shared by the Jira and Confluence endpoints
"""
from pydantic import BaseModel, Field


class AtlassianCredentials(BaseModel):
    """Basic-auth triple supplied by the browser with every proxied call"""
    url: str = Field(
        ...,
        min_length=1,
        description="Base URL of the Atlassian site",
        example="https://your-domain.atlassian.net"
    )
    email: str = Field(
        ...,
        min_length=1,
        description="Account email used for Basic authentication",
        example="qa@example.com"
    )
    token: str = Field(
        ...,
        min_length=1,
        description="Atlassian API token",
        example="ATATT3xFfGF0..."
    )

    model_config = {'populate_by_name': True}
