import logging
from pathlib import Path

from large_objects.storage.base import ObjectStore
from large_objects.util import md5_hex

logger = logging.getLogger(__name__)  # noqa


def put_object(
    store: ObjectStore,
    container: str,
    source: Path,
    object_name: str | None = None,
) -> Exception | None:
    """Upload a whole file as a single object, named after the file by default."""
    object_name = object_name or source.name
    try:
        data = source.read_bytes()
    except OSError as e:
        return e
    try:
        store.put_object(container, object_name, data, etag=md5_hex(data))
    except Exception as e:
        logger.error(f"Error uploading {source} to {container}/{object_name}: {e}")
        return e
    logger.info(f"Uploaded {source} to {container}/{object_name}")
    return None
