"""
Local storage for files attached to tickets
"""
import os
import time
import logging
from typing import Dict, Any, List, Optional, BinaryIO

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


class UploadRejected(ValueError):
    """Raised when an uploaded file breaks the type, size or count limits"""


class UploadStore:
    """Stores uploads as ``<timestamp-ms>-<original name>`` in a single directory"""

    def __init__(self, directory: str, allowed_extensions: List[str], max_files: int = 10,
                 max_file_size_mb: int = 40, public_base_url: str = ''):
        self.directory = directory
        self.allowed_extensions = {ext.lower().lstrip('.') for ext in allowed_extensions}
        self.max_files = max_files
        self.max_file_size = max_file_size_mb * 1024 * 1024
        self.public_base_url = public_base_url.rstrip('/')

    def ensure_directory(self) -> str:
        os.makedirs(self.directory, exist_ok=True)
        return self.directory

    def is_allowed(self, filename: str) -> bool:
        extension = os.path.splitext(filename or '')[1].lower().lstrip('.')
        return extension in self.allowed_extensions

    def stored_name(self, original_name: str) -> str:
        return f"{int(time.time() * 1000)}-{os.path.basename(original_name)}"

    def path_for(self, stored_name: str) -> str:
        return os.path.join(self.directory, os.path.basename(stored_name))

    def url_for(self, stored_name: str) -> str:
        """Relative URL in production, absolute localhost URL otherwise"""
        return f"{self.public_base_url}/uploads/{stored_name}"

    def check_batch(self, filenames: List[str]) -> None:
        """Validate a batch before anything is written"""
        if len(filenames) > self.max_files:
            raise UploadRejected(f'Too many files. A maximum of {self.max_files} files is allowed.')
        for name in filenames:
            if not self.is_allowed(name):
                raise UploadRejected('Only common file types are allowed!')

    def save(self, original_name: str, stream: BinaryIO, mimetype: Optional[str] = None) -> Dict[str, Any]:
        """
        Copy an uploaded stream into the upload directory

        Returns:
            File info with stored filename, original name, size, MIME type and URL

        Raises:
            UploadRejected: if the type is not allowed or the file is too large
        """
        if not self.is_allowed(original_name):
            raise UploadRejected('Only common file types are allowed!')

        self.ensure_directory()
        stored = self.stored_name(original_name)
        path = self.path_for(stored)

        size = 0
        with open(path, 'wb') as target:
            while True:
                chunk = stream.read(CHUNK_SIZE)
                if not chunk:
                    break
                size += len(chunk)
                if size > self.max_file_size:
                    break
                target.write(chunk)

        if size > self.max_file_size:
            os.remove(path)
            raise UploadRejected(
                f'File too large: {original_name} exceeds {self.max_file_size // (1024 * 1024)}MB'
            )

        logger.info(f"📁 Stored upload {original_name} as {stored} ({size} bytes)")
        return {
            'filename': stored,
            'originalname': original_name,
            'size': size,
            'mimetype': mimetype,
            'url': self.url_for(stored)
        }

    def remove(self, stored_name: str) -> None:
        path = self.path_for(stored_name)
        if os.path.exists(path):
            os.remove(path)

