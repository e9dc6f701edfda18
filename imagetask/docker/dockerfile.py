"""
Reads the image references out of a Dockerfile.

Only the directives that make one image depend on another are looked at:

- ``FROM <image> [AS <alias>]`` derives a new stage from ``<image>``,
- ``COPY --from=<image-or-alias> ...`` copies files out of a previous stage or out of another image.

Aliases are resolved to the image they name, so ``FROM airbyte/base:dev AS b`` followed by ``COPY --from=b /x /x``
depends on ``airbyte/base:dev`` only.
"""

import os
import re
import typing
from pathlib import Path

from imagetask import constants
from imagetask.exceptions.user import BuildFileParseError

if typing.TYPE_CHECKING:
    from imagetask.configuration import Config

FROM_PREFIX = "FROM "
COPY_FROM_PREFIX = "COPY --from="

_ENV_VAR_RE = re.compile(r"\$(\$?)\{([^}]+)\}")
DEFAULT_SEPARATOR = ":-"


def substitute_env(value: str, environ: typing.Optional[typing.Mapping[str, str]] = None) -> str:
    """
    Replaces every ``${NAME}`` in ``value`` with the value of the environment variable ``NAME``. References to unset
    variables are left as they are, e.g. ``amazoncorretto:${JDK_VERSION}`` stays unchanged when ``JDK_VERSION`` is
    not set.

    ``${NAME:-default}`` falls back to ``default`` when ``NAME`` is not set, and ``$${NAME}`` is a literal
    ``${NAME}``.
    """
    if environ is None:
        environ = os.environ

    def _replace(m: re.Match) -> str:
        if m.group(1):
            return m.group(0)[1:]
        name, sep, default = m.group(2).partition(DEFAULT_SEPARATOR)
        if name in environ:
            return environ[name]
        return default if sep else m.group(0)

    return _ENV_VAR_RE.sub(_replace, value)


def _stage_aliases(lines: typing.List[str]) -> typing.Dict[str, str]:
    aliases = {}
    for line in lines:
        parts = line.split()
        if len(parts) >= 4 and parts[0] == "FROM" and parts[-2] == "AS":
            aliases[parts[-1]] = parts[1]
    return aliases


def parse_base_images(
    contents: str,
    environ: typing.Optional[typing.Mapping[str, str]] = None,
    path: typing.Optional[typing.Union[str, os.PathLike]] = None,
) -> typing.Set[str]:
    """
    Returns every image the Dockerfile ``contents`` directly derives from or copies from.

    :param contents: text of the Dockerfile
    :param environ: mapping used to substitute ``${NAME}`` references, defaults to the process environment
    :param path: location of the Dockerfile, only used in error messages
    :raises BuildFileParseError: if a directive names an empty image
    """
    lines = contents.splitlines()
    aliases = _stage_aliases(lines)

    images = set()
    for line in lines:
        if line.startswith(FROM_PREFIX):
            parts = line.split()
            if len(parts) < 2:
                raise BuildFileParseError(path, line)
            images.add(parts[1])
        elif line.startswith(COPY_FROM_PREFIX):
            reference = line[len(COPY_FROM_PREFIX) :]
            if not reference or reference[0].isspace():
                raise BuildFileParseError(path, line)
            name = reference.split()[0]
            images.add(aliases.get(name, name))

    # Some image tags rely on environment variables (e.g. "FROM amazoncorretto:${JDK_VERSION}").
    return {substitute_env(image, environ).strip() for image in images}


def read_base_images(
    path: typing.Union[str, os.PathLike], environ: typing.Optional[typing.Mapping[str, str]] = None
) -> typing.Set[str]:
    return parse_base_images(Path(path).read_text(), environ=environ, path=path)


def read_label(contents: str, label: str) -> typing.Optional[str]:
    """Value of ``LABEL <label>=<value>`` in the Dockerfile, if any."""
    prefix = f"{label}="
    for line in contents.splitlines():
        parts = line.split()
        if not parts or parts[0] != "LABEL":
            continue
        for part in parts[1:]:
            if part.startswith(prefix):
                return part[len(prefix) :].strip("\"'")
    return None


def build_file_variant(build_file_name: str) -> typing.Optional[str]:
    """
    ``mssql.Dockerfile`` and ``Dockerfile.mssql`` are both the ``mssql`` variant, a plain ``Dockerfile`` has none.
    """
    if build_file_name == constants.DOCKERFILE:
        return None
    if build_file_name.endswith(f".{constants.DOCKERFILE}"):
        return build_file_name[: -len(constants.DOCKERFILE) - 1]
    if build_file_name.startswith(f"{constants.DOCKERFILE}."):
        return build_file_name[len(constants.DOCKERFILE) + 1 :]
    return build_file_name


def image_name(project_dir: typing.Union[str, os.PathLike], build_file_name: str, config: "Config") -> str:
    """
    Repository of the image built from ``build_file_name`` in ``project_dir``, without its tag.

    The Dockerfile's name label wins. Without one the repository is named after the project directory, followed by
    the build file's variant.
    """
    build_file = Path(project_dir) / build_file_name
    if build_file.exists():
        labelled = read_label(build_file.read_text(), config.name_label)
        if labelled:
            return labelled
    name = f"{config.namespace}{Path(project_dir).name}"
    variant = build_file_variant(build_file_name)
    if variant:
        name = f"{name}-{variant}"
    return name


def dev_tagged_image(project_dir: typing.Union[str, os.PathLike], build_file_name: str, config: "Config") -> str:
    return f"{image_name(project_dir, build_file_name, config)}:{config.dev_tag}"
