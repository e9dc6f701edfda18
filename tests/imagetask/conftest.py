import threading
import typing
from pathlib import Path

import pytest

from imagetask.configuration import Config
from imagetask.core.context import BuildContext
from imagetask.core.factory import ImageTaskFactory
from imagetask.core.project import Project
from imagetask.core.scheduler import LocalScheduler
from imagetask.docker.store import ImageStore


class FakeImageStore(ImageStore):
    """In-memory image store counting how often it is queried."""

    def __init__(self, hashes: typing.Optional[typing.Dict[str, str]] = None):
        self.hashes = dict(hashes or {})
        self.calls = 0
        self._lock = threading.Lock()

    def list_image_hashes(self) -> typing.Dict[str, str]:
        with self._lock:
            self.calls += 1
        return dict(self.hashes)


@pytest.fixture
def fake_store():
    """Factory of in-memory image stores."""
    return FakeImageStore


@pytest.fixture
def image_store():
    return FakeImageStore()


@pytest.fixture
def config(tmp_path):
    return Config(history_dir=str(tmp_path / "history"))


@pytest.fixture
def build_context(config, image_store):
    return BuildContext(config=config, store=image_store, environ={})


@pytest.fixture
def scheduler():
    return LocalScheduler()


@pytest.fixture
def factory(build_context, scheduler):
    return ImageTaskFactory(build_context, scheduler)


@pytest.fixture
def root_dir(tmp_path):
    root = tmp_path / "repo"
    root.mkdir()
    return root


@pytest.fixture
def make_project(root_dir):
    """Creates a project directory under the root with the given Dockerfile contents."""

    def _make_project(
        rel_path: str, dockerfile: typing.Optional[str] = None, build_file_name: str = "Dockerfile", **files: str
    ) -> Project:
        project_dir = root_dir / rel_path
        project_dir.mkdir(parents=True, exist_ok=True)
        if dockerfile is not None:
            (project_dir / build_file_name).write_text(dockerfile)
        for name, contents in files.items():
            Path(project_dir, name).write_text(contents)
        return Project.from_dir(project_dir, root_dir)

    return _make_project
