"""
Staging store: copies media content into uniquely named private temp files.
"""
import logging
import shutil
import uuid
from pathlib import Path
from typing import Optional, Union

from s3_photo_sync.exceptions import ResolutionError, StagingError
from s3_photo_sync.models import GENERIC_EXTENSION, MediaReference
from s3_photo_sync.resolver.content_resolver import ContentResolver

logger = logging.getLogger(__name__)

COPY_CHUNK_SIZE = 1024 * 1024  # 1MB


class StagingStore:
    """Materializes media references as local files for upload."""

    def __init__(self, staging_dir: Union[str, Path], resolver: ContentResolver):
        """
        Initialize the staging store.

        Args:
            staging_dir: Private cache directory for staged files
            resolver: Resolver used to open source streams
        """
        self.staging_dir = Path(staging_dir)
        self.staging_dir.mkdir(parents=True, exist_ok=True)
        self.resolver = resolver

    def _new_path(self, extension_hint: Optional[str]) -> Path:
        extension = (extension_hint or GENERIC_EXTENSION).lstrip('.')
        return self.staging_dir / f"{uuid.uuid4().hex}.{extension}"

    def stage(self, reference: MediaReference, extension_hint: Optional[str] = None) -> Path:
        """
        Copy the content behind a reference into a fresh temp file.

        Args:
            reference: Media reference to copy
            extension_hint: Extension for the staged file (default: bin)

        Returns:
            Path of the staged file; unique for every call

        Raises:
            StagingError: If the source cannot be opened or the write fails
        """
        staged_path = self._new_path(extension_hint)

        try:
            source = self.resolver.open_stream(reference)
        except (OSError, ValueError, ResolutionError) as e:
            raise StagingError(f"Cannot open {reference}: {e}", reference=reference) from e

        with source:
            try:
                target = open(staged_path, 'xb')
            except OSError as e:
                # Nothing was created, so the existing file is left alone
                raise StagingError(f"Cannot create {staged_path.name}: {e}", reference=reference) from e

            try:
                with target:
                    shutil.copyfileobj(source, target, COPY_CHUNK_SIZE)
            except OSError as e:
                self.release(staged_path)
                raise StagingError(f"Failed to stage {reference}: {e}", reference=reference) from e

        logger.debug(f"Staged {reference} -> {staged_path.name}")
        return staged_path

    def release(self, staged_path: Optional[Path]) -> None:
        """Remove a staged file. Missing files are not an error."""
        if staged_path is None:
            return
        try:
            Path(staged_path).unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Could not remove staged file {staged_path}: {e}")

    def purge(self) -> int:
        """
        Remove files left behind by a batch that was interrupted.

        Returns:
            Number of files removed
        """
        removed = 0
        for leftover in self.staging_dir.iterdir():
            if leftover.is_file():
                self.release(leftover)
                removed += 1
        if removed:
            logger.info(f"Removed {removed} leftover staged file(s) from {self.staging_dir}")
        return removed
