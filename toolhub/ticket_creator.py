"""
Ticket Creation Service for JIRA Integration
"""
import logging
import os
import time
from typing import List, Dict, Any, Optional, Tuple

import requests
from pydantic import ValidationError

from .jira_client import JiraClient
from .models import TicketInput, TicketMetadata, AttachmentRef
from .errors import upstream_status, upstream_payload, describe_upstream_error

logger = logging.getLogger(__name__)

ISSUE_TYPE_MAPPING = {
    'Bug': 'Bug',
    'Story': 'Story',
    'Task': 'Task',
    'Epic': 'Epic',
}

PRIORITY_MAPPING = {
    'High': 'High',
    'Medium': 'Medium',
    'Low': 'Low',
    'Critical': 'Highest',
}

TBC_VERSION_ID = 'tbc'

CREATION_ERRORS = {
    401: 'Authentication failed during ticket creation.',
    403: 'Permission denied. You may not have permission to create issues in this project.',
}


def build_description(ticket: TicketInput) -> str:
    """Plain-text Jira description assembled from the parsed ticket sections"""
    description = ''
    if ticket.description and ticket.description.strip():
        description += ticket.description + '\n\n'

    if ticket.steps:
        description += 'Steps to Reproduce:\n'
        for index, step in enumerate(ticket.steps, 1):
            description += f'{index}. {step}\n'
        description += '\n'

    if ticket.environment and ticket.environment.strip():
        description += f'Environment: {ticket.environment}\n\n'

    if ticket.expected_result and ticket.expected_result.strip():
        description += f'Expected Result: {ticket.expected_result}\n\n'

    if ticket.actual_result and ticket.actual_result.strip():
        description += f'Actual Result: {ticket.actual_result}\n\n'

    return description.strip()


def build_issue_fields(project_key: str, ticket: TicketInput,
                       metadata: Optional[TicketMetadata] = None) -> Dict[str, Any]:
    """Jira ``fields`` payload for a new issue"""
    description = build_description(ticket)
    fields: Dict[str, Any] = {
        'project': {'key': project_key},
        'summary': ticket.title,
        'description': {
            'type': 'doc',
            'version': 1,
            'content': [{
                'type': 'paragraph',
                'content': [{'type': 'text', 'text': description}] if description else []
            }]
        },
        'issuetype': {'name': ISSUE_TYPE_MAPPING.get(ticket.issue_type, 'Task')},
        'priority': {'name': PRIORITY_MAPPING.get(ticket.priority, 'Medium')},
    }

    if metadata:
        if metadata.assignee:
            fields['assignee'] = {'accountId': metadata.assignee}
        if metadata.fix_version and metadata.fix_version != TBC_VERSION_ID:
            fields['fixVersions'] = [{'id': metadata.fix_version}]
        if metadata.parent:
            fields['parent'] = {'id': metadata.parent}

    return fields


def describe_creation_error(error: Exception) -> Tuple[int, str]:
    """Translate a ticket creation failure into (status, message)"""
    if upstream_status(error, default=0) == 400:
        messages = upstream_payload(error).get('errorMessages')
        detail = ', '.join(str(m) for m in messages) if messages else 'Invalid data provided'
        return 400, f'Bad request: {detail}'

    return describe_upstream_error(
        error,
        CREATION_ERRORS,
        generic='Ticket creation error ({status}): {detail}',
        fallback=f'Failed to create ticket: {error}'
    )


class TicketCreator:
    """Service for creating JIRA tickets from parsed ticket input"""

    def __init__(self, jira_client: JiraClient, upload_dir: Optional[str] = None, bulk_delay: float = 0.5):
        self.jira_client = jira_client
        self.upload_dir = upload_dir
        self.bulk_delay = bulk_delay

    def create_ticket(self, project_key: str, ticket: TicketInput,
                      metadata: Optional[TicketMetadata] = None,
                      attachments: Optional[List[AttachmentRef]] = None) -> Dict[str, Any]:
        """
        Create a ticket, then place it in a sprint and attach uploaded files

        Args:
            project_key: Target project
            ticket: Parsed ticket fields
            metadata: Optional sprint, fix version, assignee and parent
            attachments: Files previously stored by the upload endpoint

        Returns:
            Creation result for the API response

        Raises:
            requests.exceptions.RequestException: when the issue itself cannot be created
        """
        logger.info(
            f"Creating ticket '{ticket.title}' in {project_key} "
            f"(attachments={len(attachments or [])}, sprint={metadata.sprint if metadata else None})"
        )

        created = self.jira_client.create_issue(build_issue_fields(project_key, ticket, metadata))
        ticket_key = created.get('key')

        if metadata and metadata.sprint:
            # Sprint placement is best effort, the ticket already exists
            self.jira_client.add_issues_to_sprint(metadata.sprint, [ticket_key])

        attachment_results = self.attach_files(ticket_key, attachments or [])

        return {
            'success': True,
            'ticketKey': ticket_key,
            'ticketUrl': self.jira_client.browse_url(ticket_key),
            'ticketId': created.get('id'),
            'title': ticket.title,
            'originalId': ticket.id,
            'attachments': attachment_results,
            'metadata': {
                'sprint': metadata.sprint if metadata else None,
                'fixVersion': metadata.fix_version if metadata else None,
                'assignee': metadata.assignee if metadata else None,
            }
        }

    def stored_path(self, filename: str) -> Optional[str]:
        """Path of a stored upload, or None when the name escapes the upload directory"""
        directory = os.path.realpath(self.upload_dir or '.')
        name = os.path.basename(filename or '')
        if not name or name in ('.', '..'):
            return None
        path = os.path.realpath(os.path.join(directory, name))
        if os.path.dirname(path) != directory:
            return None
        return path

    def attach_files(self, ticket_key: str, attachments: List[AttachmentRef]) -> List[Dict[str, Any]]:
        """
        Attach stored uploads to a ticket

        Files missing from the upload directory are skipped. A failing upload is
        reported in its own result entry and does not stop the others.
        """
        results = []
        for attachment in attachments:
            display_name = attachment.originalname or attachment.filename
            file_path = self.stored_path(attachment.filename)

            if file_path is None or not os.path.isfile(file_path):
                logger.warning(f"⚠️ File not found in upload directory: {attachment.filename}")
                continue

            try:
                response = self.jira_client.attach_file(
                    ticket_key, file_path, display_name, attachment.mimetype
                )
                attachment_id = response[0].get('id') if response else None
                results.append({
                    'filename': display_name,
                    'jiraAttachmentId': attachment_id,
                    'success': True
                })
            except (requests.exceptions.RequestException, OSError) as e:
                logger.error(f"❌ Failed to attach file {display_name}: {e}")
                results.append({
                    'filename': display_name,
                    'success': False,
                    'error': str(e)
                })

        return results

    def create_tickets_bulk(self, project_key: str, tickets: List[Any]) -> Dict[str, Any]:
        """
        Create several tickets one after another

        Each ticket is isolated: malformed entries and upstream failures are
        recorded as failed results while the remaining tickets are still
        attempted. A fixed delay separates consecutive creations.

        Returns:
            Dict with ``success`` (at least one created), ``results`` and ``summary``
        """
        start_time = time.time()
        logger.info(f"Starting bulk creation of {len(tickets)} tickets in {project_key}")

        results = []
        successful = 0
        failed = 0

        for index, raw_ticket in enumerate(tickets):
            result = self._create_isolated(project_key, raw_ticket)
            results.append(result)
            if result['status'] == 'success':
                successful += 1
            else:
                failed += 1

            if index < len(tickets) - 1 and self.bulk_delay:
                time.sleep(self.bulk_delay)

        logger.info(
            f"Bulk creation finished in {time.time() - start_time:.2f}s: "
            f"{successful} created, {failed} failed"
        )

        return {
            'success': successful > 0,
            'results': results,
            'summary': {
                'total': len(tickets),
                'successful': successful,
                'failed': failed
            }
        }

    def _create_isolated(self, project_key: str, raw_ticket: Any) -> Dict[str, Any]:
        title = raw_ticket.get('title') if isinstance(raw_ticket, dict) else None
        original_id = raw_ticket.get('id') if isinstance(raw_ticket, dict) else None

        if not isinstance(raw_ticket, dict):
            return self._failure('Invalid ticket data: expected an object', title, original_id)

        try:
            ticket = TicketInput.model_validate(raw_ticket)
        except ValidationError as e:
            missing = [str(err['loc'][-1]) for err in e.errors()]
            return self._failure(f"Invalid ticket data: {', '.join(missing)}", title, original_id)

        try:
            result = self.create_ticket(project_key, ticket)
        except requests.exceptions.RequestException as e:
            _, message = describe_creation_error(e)
            logger.error(f"❌ Failed to create ticket '{ticket.title}': {message}")
            return self._failure(message, ticket.title, ticket.id)
        except Exception as e:
            logger.error(f"❌ Unexpected error creating ticket '{ticket.title}': {e}")
            return self._failure(str(e), ticket.title, ticket.id)

        result['status'] = 'success'
        return result

    @staticmethod
    def _failure(error: str, title: Optional[str], original_id: Any) -> Dict[str, Any]:
        return {
            'success': False,
            'status': 'failed',
            'error': error,
            'title': title,
            'originalId': original_id
        }
