"""
Vietnamese to English translation with provider fallback
"""
import logging
from typing import Optional, List, Callable

import requests

logger = logging.getLogger(__name__)


class Translator:
    """Tries the Google web endpoint, then LibreTranslate, then gives the text back unchanged"""

    def __init__(self, google_url: str = 'https://translate.googleapis.com/translate_a/single',
                 libretranslate_url: str = 'https://libretranslate.de/translate',
                 source: str = 'vi', target: str = 'en', timeout: int = 10):
        self.google_url = google_url
        self.libretranslate_url = libretranslate_url
        self.source = source
        self.target = target
        self.timeout = timeout
        self.session = requests.Session()

    def translate(self, text: str, use_api: bool = True) -> str:
        """
        Translate text, never failing

        Args:
            text: Text in the source language
            use_api: When False no provider is called and the text is returned as is

        Returns:
            Translated text, or the original text when every provider fails
        """
        if not use_api:
            return text

        providers: List[Callable[[str], Optional[str]]] = [self._google, self._libretranslate]
        for provider in providers:
            try:
                translated = provider(text)
            except (requests.exceptions.RequestException, ValueError, KeyError, IndexError, TypeError) as e:
                logger.warning(f"⚠️ {provider.__name__.lstrip('_')} translation failed: {e}")
                continue
            if translated:
                logger.info(f"🌐 Translated with {provider.__name__.lstrip('_')}: \"{text[:50]}\" -> \"{translated[:50]}\"")
                return translated

        logger.warning("All translation providers failed, returning original text")
        return text

    def _google(self, text: str) -> Optional[str]:
        response = self.session.get(
            self.google_url,
            params={'client': 'gtx', 'sl': self.source, 'tl': self.target, 'dt': 't', 'q': text},
            timeout=self.timeout
        )
        response.raise_for_status()
        # [[["translated", "original", ...], ...], ...]
        segments = response.json()[0] or []
        return ''.join(segment[0] for segment in segments if segment and segment[0])

    def _libretranslate(self, text: str) -> Optional[str]:
        response = self.session.post(
            self.libretranslate_url,
            json={'q': text, 'source': self.source, 'target': self.target, 'format': 'text'},
            timeout=self.timeout
        )
        response.raise_for_status()
        return (response.json() or {}).get('translatedText')
