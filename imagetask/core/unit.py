import hashlib
import os
import typing
from dataclasses import dataclass, field
from pathlib import Path

from imagetask.core.project import Project
from imagetask.docker.dockerfile import read_base_images


def id_file_name(build_file: typing.Union[str, os.PathLike]) -> str:
    """The id file of a build unit is named after the md5 of the build file's absolute path."""
    return hashlib.md5(str(Path(build_file).absolute()).encode("utf-8")).hexdigest()


@dataclass(eq=False)
class BuildUnit(object):
    """
    One image build of a project.

    ``files``, ``base_image_hashes`` and ``dependencies`` are only known once the unit is materialized, which happens
    when the scheduler realizes its task.
    """

    project: Project
    task_name: str
    build_file: Path
    tagged_image: str
    id_file: Path
    files: typing.List[Path] = field(default_factory=list)
    base_image_hashes: typing.Optional[typing.Mapping[str, str]] = None
    dependencies: typing.List["BuildUnit"] = field(default_factory=list)

    @property
    def task_path(self) -> str:
        return self.project.task_path(self.task_name)

    @property
    def materialized(self) -> bool:
        return self.base_image_hashes is not None

    def base_images(self, environ: typing.Optional[typing.Mapping[str, str]] = None) -> typing.Set[str]:
        return read_base_images(self.build_file, environ=environ)

    def __repr__(self):
        return f"BuildUnit({self.task_path} -> {self.tagged_image})"
