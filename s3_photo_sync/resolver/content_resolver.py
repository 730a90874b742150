"""
Content resolver: opens media references and reports their MIME type.
"""
import logging
import mimetypes
from pathlib import Path
from typing import BinaryIO, Optional, Tuple
from urllib.parse import unquote, urlparse

from s3_photo_sync.exceptions import ResolutionError
from s3_photo_sync.models import MediaReference

logger = logging.getLogger(__name__)

# mimetypes.guess_extension() picks odd spellings for a few common types
_PREFERRED_EXTENSIONS = {
    'image/jpeg': 'jpg',
    'image/heic': 'heic',
    'image/heif': 'heif',
    'image/tiff': 'tiff',
    'video/quicktime': 'mov',
    'video/mp4': 'mp4',
    'video/3gpp': '3gp',
}

mimetypes.add_type('image/heic', '.heic')
mimetypes.add_type('image/heif', '.heif')


def extension_for_mime(mime_type: Optional[str]) -> Optional[str]:
    """
    Map a MIME type to a file extension without the leading dot.

    Returns None when the type is unknown.
    """
    if not mime_type:
        return None
    mime_type = mime_type.split(';', 1)[0].strip().lower()
    if mime_type in _PREFERRED_EXTENSIONS:
        return _PREFERRED_EXTENSIONS[mime_type]
    extension = mimetypes.guess_extension(mime_type)
    if extension:
        return extension.lstrip('.')
    return None


class ContentResolver:
    """Opens byte streams for media references.

    Subclasses implement open_stream() and get_type(); the orchestrator only
    talks to this interface.
    """

    def open_stream(self, reference: MediaReference) -> BinaryIO:
        raise NotImplementedError

    def get_type(self, reference: MediaReference) -> Optional[str]:
        raise NotImplementedError

    def resolve_extension(self, reference: MediaReference) -> Tuple[str, str]:
        """
        Determine (content_type, extension) for a reference.

        Raises:
            ResolutionError: If the type cannot be determined
        """
        try:
            mime_type = self.get_type(reference)
        except OSError as e:
            raise ResolutionError(f"Could not read type of {reference}: {e}") from e
        extension = extension_for_mime(mime_type)
        if not mime_type or not extension:
            raise ResolutionError(f"Unknown content type for {reference}: {mime_type!r}")
        return mime_type, extension


class LocalFileResolver(ContentResolver):
    """Resolver for plain filesystem paths and file:// URIs."""

    def to_path(self, reference: MediaReference) -> Path:
        parsed = urlparse(reference)
        if parsed.scheme == 'file':
            return Path(unquote(parsed.path))
        if parsed.scheme and len(parsed.scheme) > 1:
            raise ResolutionError(f"Unsupported reference scheme: {parsed.scheme}")
        return Path(reference)

    def open_stream(self, reference: MediaReference) -> BinaryIO:
        path = self.to_path(reference)
        logger.debug(f"Opening {path}")
        return open(path, 'rb')

    def get_type(self, reference: MediaReference) -> Optional[str]:
        mime_type, _ = mimetypes.guess_type(self.to_path(reference).name)
        return mime_type
