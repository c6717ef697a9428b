"""
Upstream error translation

Maps failures of Jira/Confluence REST calls to an HTTP status and a message
that can be shown to the person using the tool.
"""
import logging
from typing import Dict, Optional, Tuple

import requests

logger = logging.getLogger(__name__)

NETWORK_ERROR_MESSAGE = "Network error. Please check your {service} URL and internet connection."


def upstream_status(error: Exception, default: int = 500) -> int:
    """Status code of the upstream response behind an error, or the default"""
    response = getattr(error, 'response', None)
    if response is not None and getattr(response, 'status_code', None):
        return response.status_code
    return default


def upstream_payload(error: Exception) -> Dict:
    """Decoded JSON body of the upstream error response (empty when unavailable)"""
    response = getattr(error, 'response', None)
    if response is None:
        return {}
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def upstream_detail(error: Exception) -> str:
    """Best human-readable detail from an upstream error body"""
    data = upstream_payload(error)
    messages = data.get('errorMessages')
    if messages:
        return ', '.join(str(m) for m in messages)
    if data.get('message'):
        return str(data['message'])
    return str(error)


def describe_upstream_error(
    error: Exception,
    messages: Dict[int, str],
    generic: str,
    fallback: str,
    service: str = "Jira",
) -> Tuple[int, str]:
    """
    Translate an upstream failure into (status, message).

    Args:
        error: Exception raised while talking to the upstream API
        messages: Status-specific messages (e.g. 401, 403, 404)
        generic: Template for other statuses, formatted with ``status`` and ``detail``
        fallback: Message used when the error carries no upstream response
        service: Service name used in the network error message

    Returns:
        Tuple of HTTP status to respond with and the message
    """
    response = getattr(error, 'response', None)
    if response is not None:
        status = upstream_status(error)
        if status in messages:
            return status, messages[status]
        return status, generic.format(status=status, detail=upstream_detail(error))

    if isinstance(error, (requests.exceptions.ConnectionError, requests.exceptions.Timeout)):
        return 500, NETWORK_ERROR_MESSAGE.format(service=service)

    return 500, fallback


def is_duplicate_title_error(error: Exception) -> bool:
    """Whether a Confluence 400 response complains about an existing page title"""
    if upstream_status(error) != 400:
        return False
    data = upstream_payload(error)
    message = str(data.get('message') or '').lower()
    if any(marker in message for marker in ('page with this title already exists', 'title already exists', 'duplicate title')):
        return True
    title_errors = (data.get('errors') or {}) if isinstance(data.get('errors'), dict) else {}
    return 'already exists' in str(title_errors.get('title', ''))


def first_error_message(error: Exception) -> Optional[str]:
    """First upstream errorMessages entry or message, used by the metadata endpoint"""
    data = upstream_payload(error)
    messages = data.get('errorMessages') or []
    if messages:
        return str(messages[0])
    return data.get('message')
