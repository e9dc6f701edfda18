import subprocess
import typing
from abc import ABC, abstractmethod

from imagetask import constants
from imagetask.exceptions.system import ImageStoreError
from imagetask.loggers import logger

if typing.TYPE_CHECKING:
    from imagetask.configuration import Config

DOCKER_IMAGES_COMMAND = [
    "docker",
    "images",
    "--no-trunc",
    "-f",
    "dangling=false",
    "--format",
    constants.DOCKER_IMAGES_FORMAT,
]


def parse_image_listing(listing: str) -> typing.Dict[str, str]:
    """
    Parses one ``<repository>:<tag> <hash>`` record per line into a mapping of tagged image name to hash.
    """
    hashes = {}
    for line in listing.splitlines():
        splits = line.split()
        if not splits:
            continue
        if len(splits) != 2:
            raise ImageStoreError(f"Unexpected line in image listing: '{line}'")
        hashes[splits[0]] = splits[1].strip()
    return hashes


class ImageStore(ABC):
    """
    The external image store, i.e. the docker daemon that build commands write images into.
    """

    @abstractmethod
    def list_image_hashes(self) -> typing.Dict[str, str]:
        """
        Queries the store for every tagged image it holds.

        Returns:
            mapping of ``repository:tag`` to the image hash.
        """
        raise NotImplementedError("This method is not implemented in the base class.")


class DockerCliImageStore(ImageStore):
    """Lists images by running the docker executable."""

    def __init__(self, command: typing.Optional[typing.List[str]] = None):
        self._command = command or DOCKER_IMAGES_COMMAND

    def list_image_hashes(self) -> typing.Dict[str, str]:
        logger.debug(f"Run command: {' '.join(self._command)}")
        try:
            out = subprocess.run(self._command, capture_output=True, check=True, text=True)
        except subprocess.CalledProcessError as e:
            raise ImageStoreError(f"Listing docker images failed:\n{e.stderr}") from e
        except OSError as e:
            raise ImageStoreError(f"Could not run {self._command[0]}") from e
        return parse_image_listing(out.stdout)


class DockerSdkImageStore(ImageStore):
    """Lists images through the docker daemon API."""

    def __init__(self, client=None):
        self._client = client

    def _get_client(self):
        if self._client is None:
            import docker

            self._client = docker.from_env()
        return self._client

    def list_image_hashes(self) -> typing.Dict[str, str]:
        from docker.errors import DockerException

        try:
            images = self._get_client().images.list(filters={"dangling": False})
        except DockerException as e:
            raise ImageStoreError("Listing docker images failed") from e
        hashes = {}
        for image in images:
            for tag in image.tags:
                hashes[tag] = image.id
        return hashes


def get_image_store(config: "Config") -> ImageStore:
    if config.store_backend == "sdk":
        return DockerSdkImageStore()
    return DockerCliImageStore()
