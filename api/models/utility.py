"""
Utility Models
Translation, upload and health models
"""
from pydantic import BaseModel, Field
from typing import Optional, List


class TranslateRequest(BaseModel):
    """Request to translate Vietnamese text to English"""
    text: Optional[str] = Field(None, description="Text to translate", example="Không thể đăng nhập")
    use_api: bool = Field(
        default=True,
        alias="useAPI",
        description="Call the translation providers (false returns the text unchanged)"
    )

    model_config = {'populate_by_name': True}


class TranslateResponse(BaseModel):
    translatedText: str
    method: str
    success: bool = True


class HealthResponse(BaseModel):
    status: str = "OK"
    message: str = "Jira Tool Proxy Server is running"
    timestamp: str


class UploadedFile(BaseModel):
    filename: str
    originalname: str
    size: int
    mimetype: Optional[str] = None
    url: str


class UploadResponse(BaseModel):
    success: bool = True
    files: List[UploadedFile]
    message: str


class CachedSpace(BaseModel):
    key: Optional[str] = None
    name: Optional[str] = None


class CachedSpacesResponse(BaseModel):
    success: bool = True
    message: str = "Cached spaces from server startup"
    count: int
    spaces: List[CachedSpace]
