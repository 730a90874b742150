"""
Media selection: find photos and videos to sync.

Two ways to pick a batch: every image/video added within a date range, or an
explicit list chosen by the user. Both produce plain media references.
"""
import logging
import mimetypes
from datetime import date, datetime, time, timedelta
from pathlib import Path
from typing import Iterable, List, Union

from s3_photo_sync.models import MediaReference

logger = logging.getLogger(__name__)

MEDIA_TYPE_PREFIXES = ('image/', 'video/')


def is_media_file(path: Path) -> bool:
    """Check whether a path looks like a photo or video."""
    mime_type, _ = mimetypes.guess_type(path.name)
    return bool(mime_type) and mime_type.startswith(MEDIA_TYPE_PREFIXES)


def date_range_bounds(start_date: date, end_date: date) -> tuple:
    """
    Convert a date range to POSIX timestamp bounds ``[start, end)``.

    The end bound is midnight after end_date, so the whole last day
    (including its final fractional second) is covered.

    Raises:
        ValueError: If start_date is after end_date
    """
    if start_date > end_date:
        raise ValueError(f"Start date {start_date} is after end date {end_date}")
    start = datetime.combine(start_date, time.min)
    end = datetime.combine(end_date + timedelta(days=1), time.min)
    return start.timestamp(), end.timestamp()


def find_media_for_date_range(media_dir: Union[str, Path],
                              start_date: date,
                              end_date: date) -> List[MediaReference]:
    """
    Find photos and videos under a directory modified within a date range.

    Args:
        media_dir: Directory to search recursively
        start_date: First day of the range
        end_date: Last day of the range (inclusive)

    Returns:
        Sorted list of file paths as media references
    """
    media_dir = Path(media_dir)
    if not media_dir.is_dir():
        raise ValueError(f"Media directory does not exist: {media_dir}")

    start_ts, end_ts = date_range_bounds(start_date, end_date)

    found = []
    for path in media_dir.rglob('*'):
        if not path.is_file() or not is_media_file(path):
            continue
        try:
            modified = path.stat().st_mtime
        except OSError as e:
            logger.warning(f"Skipping {path}: {e}")
            continue
        if start_ts <= modified < end_ts:
            found.append(str(path))

    found.sort()
    logger.info(f"Found {len(found)} media items between {start_date} and {end_date}")
    return found


def normalize_references(items: Iterable[str]) -> List[MediaReference]:
    """
    Clean up an explicit selection.

    Strips whitespace, drops blanks and removes duplicates, keeping the
    first occurrence order.
    """
    seen = set()
    references = []
    for item in items:
        reference = item.strip() if item else ''
        if not reference or reference in seen:
            continue
        seen.add(reference)
        references.append(reference)
    return references
