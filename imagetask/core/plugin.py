"""
Decides which image tasks a project gets.

Every project gets an ``airbyteDocker`` task building its ``Dockerfile``. ``source-mongodb`` additionally builds
``Dockerfile.test`` and ``base-normalization`` builds one image per destination variant.
"""

import typing

from imagetask import constants
from imagetask.core.project import Project
from imagetask.core.scheduler import TaskHandle

if typing.TYPE_CHECKING:
    from imagetask.core.factory import ImageTaskFactory

IMAGE_TASK = "airbyteDocker"
TEST_IMAGE_TASK = "airbyteDockerTest"
TEST_DOCKERFILE = "Dockerfile.test"

NORMALIZATION_PROJECT_SUFFIX = "base-normalization"
MONGODB_PROJECT_SUFFIX = "source-mongodb"

NORMALIZATION_VARIANTS = {
    "airbyteDockerMSSql": "mssql",
    "airbyteDockerMySql": "mysql",
    "airbyteDockerOracle": "oracle",
    "airbyteDockerClickhouse": "clickhouse",
    "airbyteDockerSnowflake": "snowflake",
    "airbyteDockerRedshift": "redshift",
    "airbyteDockerTiDB": "tidb",
    "airbyteDockerDuckDB": "duckdb",
}


def image_tasks(project: Project) -> typing.Dict[str, str]:
    """Task name to build file name for every image task of ``project``."""
    tasks = {IMAGE_TASK: constants.DOCKERFILE}
    if project.name.endswith(MONGODB_PROJECT_SUFFIX):
        tasks[TEST_IMAGE_TASK] = TEST_DOCKERFILE
    if project.name.endswith(NORMALIZATION_PROJECT_SUFFIX):
        for task_name, variant in NORMALIZATION_VARIANTS.items():
            tasks[task_name] = f"{variant}.{constants.DOCKERFILE}"
    return tasks


def apply(project: Project, factory: "ImageTaskFactory") -> typing.List[TaskHandle]:
    return [factory.declare(project, task_name, build_file) for task_name, build_file in image_tasks(project).items()]
