import typing

from imagetask import constants

if typing.TYPE_CHECKING:
    from imagetask.configuration import Config


def split_tagged_image(tagged_image: str) -> typing.Tuple[str, typing.Optional[str]]:
    """Splits ``repository:tag`` on the last colon. A colon inside a registry host:port is not a tag separator."""
    repository, sep, tag = tagged_image.rpartition(":")
    if not sep or "/" in tag:
        return tagged_image, None
    return repository, tag


def is_owned(
    tagged_image: str,
    namespace: str = constants.DEFAULT_NAMESPACE,
    dev_tag: str = constants.DEFAULT_DEV_TAG,
    excluded: typing.Iterable[str] = constants.DEFAULT_EXCLUDED_IMAGES,
) -> bool:
    """
    Whether ``tagged_image`` is built by this build graph rather than pulled from elsewhere.
    """
    repository, tag = split_tagged_image(tagged_image)
    if not repository.startswith(namespace):
        return False
    if repository in excluded:
        return False
    # Images in the namespace with another tag are built separately, e.g. released images.
    if tag != dev_tag:
        return False
    return True


class ImageOwnership(object):
    """:func:`is_owned` bound to the image settings of a :class:`~imagetask.configuration.Config`."""

    def __init__(self, config: "Config"):
        self._namespace = config.namespace
        self._dev_tag = config.dev_tag
        self._excluded = frozenset(config.excluded_images)

    def __call__(self, tagged_image: str) -> bool:
        return is_owned(tagged_image, self._namespace, self._dev_tag, self._excluded)
