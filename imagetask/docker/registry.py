import threading
import types
import typing

from imagetask.loggers import logger

if typing.TYPE_CHECKING:
    from imagetask.docker.store import ImageStore


class ImageHashRegistry(object):
    """
    Hashes of every image known to the image store, queried at most once.

    The first call to :meth:`get` queries the store; callers arriving while that query runs wait for it, and every
    later call returns the same mapping. The mapping is never refreshed, so it goes stale as soon as a build unit
    writes an image. Up-to-date checks therefore query the store directly instead.
    """

    def __init__(self, store: "ImageStore"):
        self._store = store
        self._lock = threading.Lock()
        self._hashes: typing.Optional[typing.Mapping[str, str]] = None

    @property
    def store(self) -> "ImageStore":
        return self._store

    @property
    def populated(self) -> bool:
        return self._hashes is not None

    def get(self) -> typing.Mapping[str, str]:
        if self._hashes is not None:
            return self._hashes
        with self._lock:
            if self._hashes is None:
                hashes = self._store.list_image_hashes()
                logger.debug(f"Image store knows {len(hashes)} tagged images")
                self._hashes = types.MappingProxyType(dict(hashes))
        return self._hashes
