import os
import re
import yaml
import logging
from typing import Dict, Any, Optional, List
from dotenv import load_dotenv

logger = logging.getLogger(__name__)


DEFAULT_CONFIG: Dict[str, Any] = {
    'server': {
        'port': 3001,
        'environment': 'development',
        'cors_origins': ['http://localhost:3000', 'http://localhost:3001'],
    },
    'uploads': {
        'directory': '',
        'max_files': 10,
        'max_file_size_mb': 40,
        'allowed_extensions': [
            'jpeg', 'jpg', 'png', 'gif', 'pdf', 'doc', 'docx', 'xls', 'xlsx',
            'txt', 'log', 'zip', 'rar', 'mp4', 'avi', 'mov'
        ],
    },
    'jira': {
        'timeout': 30,
        'short_timeout': 10,
        'probe_timeout': 5,
        'epic_browse_limit': 300,
        'epic_probe_keys': [],
        'default_sprint_name': 'Active Sprint Backlog (249)',
        'default_sprint_board_marker': '(249)',
        'bulk_delay_seconds': 0.5,
        'assignee_page_size': 100,
        'assignee_limit': 1000,
    },
    'confluence': {
        'server_url': '',
        'username': '',
        'api_token': '',
    },
    'translation': {
        'source_language': 'vi',
        'target_language': 'en',
        'google_url': 'https://translate.googleapis.com/translate_a/single',
        'libretranslate_url': 'https://libretranslate.de/translate',
        'timeout': 10,
    },
}


class Config:
    """Configuration manager for the ToolHub proxy"""

    def __init__(self, config_path: Optional[str] = None):
        load_dotenv()
        self.config_path = config_path or os.getenv('TOOLHUB_CONFIG', 'config.yaml')
        self._config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from YAML file with environment variable substitution"""
        if not os.path.exists(self.config_path):
            logger.warning(f"Configuration file not found: {self.config_path}, using built-in defaults")
            return self._merge_defaults({})

        with open(self.config_path, 'r') as file:
            config_content = file.read()

        config_content = self._substitute_env_vars(config_content)

        return self._merge_defaults(yaml.safe_load(config_content) or {})

    def _merge_defaults(self, loaded: Dict[str, Any]) -> Dict[str, Any]:
        """Fill every section with built-in defaults for keys the file leaves out"""
        merged = {}
        for section, defaults in DEFAULT_CONFIG.items():
            values = loaded.get(section) or {}
            merged[section] = {**defaults, **{k: v for k, v in values.items() if v not in (None, '')}}
        for section, values in loaded.items():
            merged.setdefault(section, values)
        return merged

    def _substitute_env_vars(self, content: str) -> str:
        """Replace ${VAR_NAME} and ${VAR_NAME:default} with environment variables"""
        def replace_var(match):
            var_expr = match.group(1)
            if ':' in var_expr:
                var_name, default_value = var_expr.split(':', 1)
                return os.getenv(var_name, default_value)
            else:
                return os.getenv(var_expr, '')

        return re.sub(r'\$\{([^}]+)\}', replace_var, content)

    @property
    def server(self) -> Dict[str, Any]:
        return self._config.get('server', {})

    @property
    def uploads(self) -> Dict[str, Any]:
        return self._config.get('uploads', {})

    @property
    def jira(self) -> Dict[str, Any]:
        return self._config.get('jira', {})

    @property
    def confluence(self) -> Dict[str, Any]:
        return self._config.get('confluence', {})

    @property
    def translation(self) -> Dict[str, Any]:
        return self._config.get('translation', {})

    def get_port(self) -> int:
        """Get listen port from environment or config"""
        return int(os.getenv('PORT', self.server.get('port', 3001)))

    def is_production(self) -> bool:
        """
        Serverless/production mode changes the upload directory and upload URLs.

        Either VERCEL being set or NODE_ENV/ENVIRONMENT equal to "production" enables it.
        """
        if os.getenv('VERCEL'):
            return True
        environment = os.getenv('NODE_ENV') or os.getenv('ENVIRONMENT') or self.server.get('environment', '')
        return str(environment).lower() == 'production'

    def get_upload_directory(self) -> str:
        """Get the directory uploaded files are stored in"""
        configured = self.uploads.get('directory')
        if configured:
            return configured
        if self.is_production():
            return '/tmp/uploads'
        return os.path.join(os.getcwd(), 'uploads')

    def get_epic_probe_keys(self) -> List[str]:
        """
        Get issue keys probed when browsing for Epics fails.

        Supports a comma-separated string (from an environment variable) or a YAML list.
        """
        keys = self.jira.get('epic_probe_keys', [])
        if isinstance(keys, str):
            return [k.strip() for k in keys.split(',') if k.strip()]
        if isinstance(keys, list):
            return [k for k in keys if k and isinstance(k, str)]
        return []

    def get_cors_origins(self) -> List[str]:
        origins = self.server.get('cors_origins', [])
        if isinstance(origins, str):
            return [o.strip() for o in origins.split(',') if o.strip()]
        return list(origins)

    def has_confluence_credentials(self) -> bool:
        """Whether startup credentials for the spaces cache are configured"""
        return all(self.confluence.get(field) for field in ['server_url', 'username', 'api_token'])
