"""
Shared Dependencies
Configuration, per-request upstream clients and the startup spaces cache
"""
from typing import Optional, List, Dict, Any
from toolhub.config import Config
from toolhub.jira_client import JiraClient
from toolhub.confluence_client import ConfluenceClient, InvalidConfluenceResponse
from toolhub.epic_search import EpicSearchService
from toolhub.project_metadata import ProjectMetadataService
from toolhub.ticket_creator import TicketCreator
from toolhub.releases import ReleaseService
from toolhub.translator import Translator
from toolhub.uploads import UploadStore
import requests
import logging

logger = logging.getLogger(__name__)

# Global state (initialized on startup, or lazily on first use)
config: Optional[Config] = None
upload_store: Optional[UploadStore] = None
translator: Optional[Translator] = None

# Spaces loaded from the configured Confluence account at startup, never refreshed
cached_spaces: List[Dict[str, Any]] = []


def get_config() -> Config:
    """Get Config instance"""
    global config
    if config is None:
        config = Config()
    return config


def get_upload_store() -> UploadStore:
    """Get the upload store bound to the configured upload directory"""
    global upload_store
    if upload_store is None:
        cfg = get_config()
        uploads = cfg.uploads
        upload_store = UploadStore(
            directory=cfg.get_upload_directory(),
            allowed_extensions=uploads.get('allowed_extensions', []),
            max_files=uploads.get('max_files', 10),
            max_file_size_mb=uploads.get('max_file_size_mb', 40),
            public_base_url='' if cfg.is_production() else f"http://localhost:{cfg.get_port()}"
        )
    return upload_store


def get_translator() -> Translator:
    """Get Translator instance"""
    global translator
    if translator is None:
        settings = get_config().translation
        translator = Translator(
            google_url=settings.get('google_url'),
            libretranslate_url=settings.get('libretranslate_url'),
            source=settings.get('source_language', 'vi'),
            target=settings.get('target_language', 'en'),
            timeout=settings.get('timeout', 10)
        )
    return translator


def get_cached_spaces() -> List[Dict[str, Any]]:
    return cached_spaces


def create_jira_client(url: str, email: str, token: str) -> JiraClient:
    """Build a JIRA client for the credentials supplied with a request"""
    settings = get_config().jira
    return JiraClient(
        server_url=url,
        username=email,
        api_token=token,
        timeout=settings.get('timeout', 30),
        short_timeout=settings.get('short_timeout', 10),
        probe_timeout=settings.get('probe_timeout', 5)
    )


def create_confluence_client(url: str, email: str, token: str) -> ConfluenceClient:
    """Build a Confluence client for the credentials supplied with a request"""
    return ConfluenceClient(server_url=url, username=email, api_token=token)


def create_epic_search(jira_client: JiraClient) -> EpicSearchService:
    cfg = get_config()
    return EpicSearchService(
        jira_client,
        probe_keys=cfg.get_epic_probe_keys(),
        browse_limit=cfg.jira.get('epic_browse_limit', 300)
    )


def create_metadata_service(jira_client: JiraClient) -> ProjectMetadataService:
    settings = get_config().jira
    return ProjectMetadataService(
        jira_client,
        epic_search=create_epic_search(jira_client),
        default_sprint_name=settings.get('default_sprint_name', 'Active Sprint Backlog (249)'),
        board_marker=settings.get('default_sprint_board_marker', '(249)'),
        assignee_page_size=settings.get('assignee_page_size', 100),
        assignee_limit=settings.get('assignee_limit', 1000)
    )


def create_ticket_creator(jira_client: JiraClient) -> TicketCreator:
    return TicketCreator(
        jira_client,
        upload_dir=get_upload_store().directory,
        bulk_delay=float(get_config().jira.get('bulk_delay_seconds', 0.5))
    )


def create_release_service(jira_client: JiraClient) -> ReleaseService:
    return ReleaseService(jira_client)


def load_cached_spaces() -> List[Dict[str, Any]]:
    """Fill the spaces cache from the configured Confluence account, if any"""
    global cached_spaces
    cfg = get_config()
    if not cfg.has_confluence_credentials():
        logger.info("No Confluence credentials configured, spaces cache stays empty")
        return cached_spaces

    client = ConfluenceClient(
        server_url=cfg.confluence['server_url'],
        username=cfg.confluence['username'],
        api_token=cfg.confluence['api_token']
    )
    try:
        cached_spaces = client.get_spaces()
        logger.info(f"✅ Cached {len(cached_spaces)} Confluence spaces at startup")
    except (requests.exceptions.RequestException, InvalidConfluenceResponse) as e:
        logger.warning(f"⚠️ Could not load Confluence spaces at startup: {e}")
    return cached_spaces


def initialize_services():
    """Load configuration, prepare the upload directory and fill the spaces cache"""
    global config
    try:
        config = Config()
        store = get_upload_store()
        store.ensure_directory()
        logger.info(f"Upload directory: {store.directory}")
        load_cached_spaces()
        logger.info("All services initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize services: {e}")
        raise
