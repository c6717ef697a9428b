"""
Translation Routes
Vietnamese to English translation for ticket text
"""
from fastapi import APIRouter
from fastapi.responses import JSONResponse
import logging

from ..models.utility import TranslateRequest, TranslateResponse
from ..dependencies import get_translator

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/api/translate",
             tags=["Utilities"],
             response_model=TranslateResponse,
             summary="Translate Vietnamese text to English",
             description="Try the Google web endpoint, then LibreTranslate. "
                         "When both fail the original text is returned with success=true.")
def translate(request: TranslateRequest):
    """Translate text, falling back to the original on provider failure"""
    if not request.text:
        return JSONResponse(status_code=400, content={"error": "Text is required"})

    translated = get_translator().translate(request.text, use_api=request.use_api)
    return TranslateResponse(
        translatedText=translated,
        method='API' if request.use_api else 'Dictionary'
    )
