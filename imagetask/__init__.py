"""
imagetask generates image build tasks for a build graph.

For every project with a Dockerfile it creates a task that rebuilds the project's ``:dev`` image only when the image
is stale, and orders it after the tasks building the images it derives from.

.. code-block:: python

    from imagetask import BuildContext, ImageTaskFactory, LocalScheduler, Project, apply, validate_graph

    context = BuildContext()
    scheduler = LocalScheduler()
    factory = ImageTaskFactory(context, scheduler)
    projects = [Project.from_dir(d, ".") for d in ("bases/base-java", "connectors/source-postgres")]
    for project in projects:
        apply(project, factory)
    validate_graph(context.index, context.ownership, context.environ)
    scheduler.run([project.task_path("assemble") for project in projects])
"""

__version__ = "0.0.0+develop"

from imagetask.configuration import Config
from imagetask.core.context import BuildContext
from imagetask.core.factory import ImageTaskFactory
from imagetask.core.graph import UnitIndex, validate_graph
from imagetask.core.plugin import apply
from imagetask.core.project import Project
from imagetask.core.scheduler import LocalScheduler, Scheduler
from imagetask.core.staleness import StalenessOracle
from imagetask.core.unit import BuildUnit
from imagetask.docker import ImageHashRegistry, is_owned, parse_base_images
from imagetask.loggers import logger
