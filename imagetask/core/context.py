import typing

from imagetask.configuration import Config
from imagetask.core.graph import UnitIndex
from imagetask.docker.ownership import ImageOwnership
from imagetask.docker.registry import ImageHashRegistry
from imagetask.docker.store import ImageStore, get_image_store


class BuildContext(object):
    """
    State shared by all build units of one build invocation: the one-off view of the image store and the index of
    which unit produces which image. A new context starts from scratch, tests create one per test.

    :param config: settings, read with :meth:`Config.auto` when not given
    :param store: the image store, picked from the config's store backend when not given
    :param environ: mapping used to substitute variables in Dockerfiles, the process environment when not given
    """

    def __init__(
        self,
        config: typing.Optional[Config] = None,
        store: typing.Optional[ImageStore] = None,
        environ: typing.Optional[typing.Mapping[str, str]] = None,
    ):
        self.config = config or Config.auto()
        self.store = store or get_image_store(self.config)
        self.environ = environ
        self.registry = ImageHashRegistry(self.store)
        self.index = UnitIndex()
        self.ownership = ImageOwnership(self.config)
