import typing

from imagetask import constants
from imagetask.core.graph import OwnershipPredicate, base_image_hashes
from imagetask.loggers import logger

if typing.TYPE_CHECKING:
    from imagetask.core.unit import BuildUnit
    from imagetask.docker.store import ImageStore


class StalenessOracle(object):
    """
    Decides, right before a build unit would run, whether its image can be reused.

    The base image hashes of a unit are recorded when its task is materialized, from the registry's one-off view of
    the image store. By the time the task runs, other units may have rebuilt base images and images may have been
    removed from the store, so the store is queried again here, bypassing the registry.
    """

    def __init__(
        self,
        store: "ImageStore",
        is_owned: OwnershipPredicate,
        environ: typing.Optional[typing.Mapping[str, str]] = None,
    ):
        self._store = store
        self._is_owned = is_owned
        self._environ = environ

    def is_up_to_date(self, unit: "BuildUnit") -> bool:
        if not unit.materialized:
            logger.info(f"Not up to date: {unit.task_path} has no recorded base image hashes")
            return False

        # Missing dependency declarations may result in tasks being materialized in the wrong order.
        for image, image_hash in unit.base_image_hashes.items():
            if self._is_owned(image) and image_hash == constants.UNKNOWN_IMAGE_HASH:
                logger.info(f"Not up to date: missing base image {image} in docker")
                return False

        all_image_hashes = self._store.list_image_hashes()
        # An id file left behind by an earlier build does not mean the image still exists, it may have been removed
        # with `docker image rm` since.
        if unit.tagged_image not in all_image_hashes:
            logger.info(f"Not up to date: id file exists but image {unit.tagged_image} not found in docker")
            return False

        current = base_image_hashes(unit.base_images(self._environ), all_image_hashes)
        if dict(current) != dict(unit.base_image_hashes):
            logger.info(f"Not up to date: at least one base image of {unit.tagged_image} changed in docker")
            return False
        return True
