import os
import typing
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class Project(object):
    """
    A directory of the build graph. Projects are named after their path relative to the root directory, with ``:``
    separators, e.g. ``airbyte-integrations:bases:base-normalization``.
    """

    name: str
    project_dir: Path
    root_dir: Path

    @classmethod
    def from_dir(
        cls, project_dir: typing.Union[str, os.PathLike], root_dir: typing.Union[str, os.PathLike]
    ) -> "Project":
        project_dir = Path(project_dir).absolute()
        root_dir = Path(root_dir).absolute()
        try:
            parts = project_dir.relative_to(root_dir).parts
        except ValueError:
            parts = (project_dir.name,)
        return cls(name=":".join(parts) or root_dir.name, project_dir=project_dir, root_dir=root_dir)

    def file(self, name: str) -> Path:
        return self.project_dir / name

    def task_path(self, task_name: str) -> str:
        return f":{self.name}:{task_name}"
