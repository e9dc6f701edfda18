import threading
import types
import typing
from graphlib import CycleError, TopologicalSorter

from imagetask import constants
from imagetask.exceptions.user import DuplicateImageProducerError, ImageDependencyCycleError, MissingImageProducerError
from imagetask.loggers import logger

if typing.TYPE_CHECKING:
    from imagetask.core.unit import BuildUnit

OwnershipPredicate = typing.Callable[[str], bool]


class UnitIndex(object):
    """
    Tagged image name to the build unit producing it. Append only, populated while projects are declared and read
    while tasks are materialized, possibly from other threads.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._units: typing.Dict[str, "BuildUnit"] = {}

    def register(self, unit: "BuildUnit"):
        with self._lock:
            existing = self._units.get(unit.tagged_image)
            if existing is not None and existing is not unit:
                raise DuplicateImageProducerError(unit.tagged_image, existing.task_path, unit.task_path)
            self._units[unit.tagged_image] = unit

    def get(self, tagged_image: str) -> typing.Optional["BuildUnit"]:
        with self._lock:
            return self._units.get(tagged_image)

    def units(self) -> typing.List["BuildUnit"]:
        with self._lock:
            return list(self._units.values())

    def __contains__(self, tagged_image: str) -> bool:
        return self.get(tagged_image) is not None

    def __len__(self):
        with self._lock:
            return len(self._units)


def base_image_hashes(
    base_images: typing.Iterable[str], known_hashes: typing.Mapping[str, str]
) -> typing.Mapping[str, str]:
    """
    Snapshot of the hash of every base image, ``???`` for images the store does not know.
    """
    return types.MappingProxyType(
        {image: known_hashes.get(image, constants.UNKNOWN_IMAGE_HASH) for image in base_images}
    )


def resolve_dependencies(
    unit: "BuildUnit",
    snapshot: typing.Mapping[str, str],
    index: UnitIndex,
    is_owned: OwnershipPredicate,
) -> typing.List["BuildUnit"]:
    """
    Build units producing the base images of ``unit`` that this build graph owns.

    :raises MissingImageProducerError: if an owned base image has no registered producer
    """
    producers = []
    for base_image in sorted(snapshot):
        if not is_owned(base_image):
            continue
        logger.info(f"adding image task dependency: image {unit.tagged_image} is based on {base_image}")
        producer = index.get(base_image)
        if producer is None:
            raise MissingImageProducerError(unit.tagged_image, base_image)
        producers.append(producer)
    return producers


def validate_graph(
    index: UnitIndex,
    is_owned: OwnershipPredicate,
    environ: typing.Optional[typing.Mapping[str, str]] = None,
) -> typing.List["BuildUnit"]:
    """
    Checks, before any task is materialized, that every owned base image of every declared unit has a producer and
    that no image transitively depends on itself.

    :return: the declared units, producers before consumers
    """
    graph: typing.Dict[str, typing.Set[str]] = {}
    for unit in index.units():
        producers = set()
        for base_image in unit.base_images(environ):
            if not is_owned(base_image):
                continue
            if base_image not in index:
                raise MissingImageProducerError(unit.tagged_image, base_image)
            producers.add(base_image)
        graph[unit.tagged_image] = producers

    try:
        order = list(TopologicalSorter(graph).static_order())
    except CycleError as e:
        raise ImageDependencyCycleError(e.args[1]) from e
    return [index.get(tagged_image) for tagged_image in order]
