"""
Configuration for imagetask is read from an ini file and overridden from environment variables.

.. code-block:: ini

    [images]
    namespace=airbyte/
    dev_tag=dev
    excluded=airbyte/base-airbyte-protocol-python

    [build]
    script=tools/bin/build_image.sh
    versions_dir=.dockerversions

    [store]
    backend=cli

Every option ``option`` of section ``section`` can be overridden with the environment variable
``IMAGETASK_{SECTION}_{OPTION}``, e.g. ``IMAGETASK_IMAGES_DEV_TAG=dev``.
"""

from __future__ import annotations

import os
import typing
from dataclasses import dataclass, field

from imagetask import constants
from imagetask.configuration import internal as _internal
from imagetask.configuration.file import ConfigEntry, ConfigFile, get_config_file, set_if_exists

STORE_BACKENDS = ("cli", "sdk")


@dataclass(init=True, repr=True, eq=True, frozen=True)
class Config(object):
    """
    Settings shared by every build unit of a build invocation.

    :param namespace: repository prefix of the images this build graph produces
    :param dev_tag: tag of the images this build graph produces
    :param excluded_images: repositories under the namespace that are built elsewhere
    :param name_label: build file LABEL naming the produced repository
    :param build_script: path of the external build command, relative to the root directory
    :param versions_dir: directory, relative to the root directory, holding the id files
    :param store_backend: ``cli`` queries the docker executable, ``sdk`` the docker daemon API
    :param history_dir: where the local scheduler records input fingerprints of successful tasks
    """

    namespace: str = constants.DEFAULT_NAMESPACE
    dev_tag: str = constants.DEFAULT_DEV_TAG
    excluded_images: typing.Tuple[str, ...] = field(default=constants.DEFAULT_EXCLUDED_IMAGES)
    name_label: str = constants.DEFAULT_NAME_LABEL
    build_script: str = constants.DEFAULT_BUILD_SCRIPT
    versions_dir: str = constants.DEFAULT_VERSIONS_DIR
    store_backend: str = "cli"
    history_dir: str = os.path.join("~", ".imagetask", "history")

    def __post_init__(self):
        if self.store_backend not in STORE_BACKENDS:
            raise ValueError(f"store backend must be one of {STORE_BACKENDS}, got '{self.store_backend}'")

    @classmethod
    def auto(cls, config_file: typing.Optional[typing.Union[str, ConfigFile]] = None) -> Config:
        """
        Reads from Config file, and overrides from Environment variables. Refer to ConfigEntry for details
        """
        config_file = get_config_file(config_file)
        kwargs = {}
        kwargs = set_if_exists(kwargs, "namespace", _internal.Images.NAMESPACE.read(config_file))
        kwargs = set_if_exists(kwargs, "dev_tag", _internal.Images.DEV_TAG.read(config_file))
        excluded = _internal.Images.EXCLUDED.read(config_file)
        if excluded is not None:
            kwargs["excluded_images"] = tuple(excluded)
        kwargs = set_if_exists(kwargs, "name_label", _internal.Images.NAME_LABEL.read(config_file))
        kwargs = set_if_exists(kwargs, "build_script", _internal.Build.SCRIPT.read(config_file))
        kwargs = set_if_exists(kwargs, "versions_dir", _internal.Build.VERSIONS_DIR.read(config_file))
        kwargs = set_if_exists(kwargs, "store_backend", _internal.Store.BACKEND.read(config_file))
        kwargs = set_if_exists(kwargs, "history_dir", _internal.Scheduler.HISTORY.read(config_file))
        return Config(**kwargs)


__all__ = ["Config", "ConfigEntry", "ConfigFile", "get_config_file"]
