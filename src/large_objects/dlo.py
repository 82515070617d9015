import logging

from large_objects.storage.base import ObjectStore

logger = logging.getLogger(__name__)  # noqa

DLO_MANIFEST_HEADER = "X-Object-Manifest"


def make_dlo(
    store: ObjectStore,
    container: str,
    name: str,
    segment_container: str | None = None,
    prefix: str | None = None,
) -> Exception | None:
    """Write a dynamic large object manifest.

    The manifest is an empty object whose header names every object under
    `segment_container/prefix`. Segments default to the manifest's container
    and name.
    """
    segment_container = segment_container or container
    prefix = prefix if prefix is not None else name
    headers = {DLO_MANIFEST_HEADER: f"{segment_container}/{prefix}"}
    try:
        store.put_object(container, name, b"", headers=headers)
    except Exception as e:
        logger.error(f"Failed to upload DLO manifest {container}/{name}: {e}")
        return e
    logger.info(
        f"Created DLO {container}/{name} over {segment_container}/{prefix}"
    )
    return None
