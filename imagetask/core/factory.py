import typing
from pathlib import Path

from imagetask import constants
from imagetask.core.builder import run_build_command
from imagetask.core.context import BuildContext
from imagetask.core.graph import base_image_hashes, resolve_dependencies
from imagetask.core.project import Project
from imagetask.core.scheduler import Scheduler, Task, TaskHandle
from imagetask.core.staleness import StalenessOracle
from imagetask.core.unit import BuildUnit, id_file_name
from imagetask.docker.dockerfile import dev_tagged_image
from imagetask.loggers import logger
from imagetask.tools.fileset import filtered_project_files

# Built before an image task of the same project when the project has them.
DIST_TAR_TASK = "distTar"
GENERATE_TASK = "generate"


class ImageTaskFactory(object):
    """
    Creates the image build tasks of projects.

    Declaring a unit is cheap: it names the image the unit produces and registers a lazy task. Materializing the unit
    queries the image store, records the hashes of its base images and wires it after the producers of the base
    images this build graph owns. Materialization only happens when the scheduler realizes the task, so docker is
    not queried for builds that do not include any image task.
    """

    def __init__(self, context: BuildContext, scheduler: Scheduler):
        self._context = context
        self._scheduler = scheduler
        self._oracle = StalenessOracle(context.store, context.ownership, context.environ)

    @property
    def context(self) -> BuildContext:
        return self._context

    @property
    def scheduler(self) -> Scheduler:
        return self._scheduler

    def lifecycle_task(self, project: Project, task_name: str) -> TaskHandle:
        path = project.task_path(task_name)
        return self._scheduler.find(path) or self._scheduler.register(path)

    def id_file(self, project: Project, build_file: Path) -> Path:
        return project.root_dir / self._context.config.versions_dir / id_file_name(build_file)

    def declare(
        self, project: Project, task_name: str, build_file_name: str = constants.DOCKERFILE
    ) -> TaskHandle:
        build_file = project.file(build_file_name)
        if not build_file.exists():
            placeholder = self._scheduler.register(
                project.task_path(task_name),
                action=lambda t: logger.info(f"Skipping {t.name} because {build_file} does not exist."),
            )
            # The project still gets its lifecycle steps, building or cleaning it is not an error.
            self._scheduler.depends_on(self.lifecycle_task(project, constants.ASSEMBLE_TASK), placeholder)
            self.lifecycle_task(project, constants.CLEAN_TASK)
            return placeholder

        unit = BuildUnit(
            project=project,
            task_name=task_name,
            build_file=build_file,
            tagged_image=dev_tagged_image(project.project_dir, build_file_name, self._context.config),
            id_file=self.id_file(project, build_file),
        )
        self._context.index.register(unit)

        handle = self._scheduler.register(unit.task_path, configure=lambda task: self.materialize(unit, task))
        # Images for java projects always rely on the distribution tarball, and all files must exist beforehand.
        handle.configure(lambda task: self._depend_on_existing(task, project, DIST_TAR_TASK, GENERATE_TASK))
        self._scheduler.depends_on(self.lifecycle_task(project, constants.ASSEMBLE_TASK), handle)

        # Cleaning only deletes the id file, images are left alone.
        clean = self._scheduler.register(
            project.task_path(f"{task_name}Clean"), action=lambda t: unit.id_file.unlink(missing_ok=True)
        )
        self._scheduler.depends_on(self.lifecycle_task(project, constants.CLEAN_TASK), clean)
        return handle

    def _depend_on_existing(self, task: Task, project: Project, *task_names: str):
        for name in task_names:
            other = self._scheduler.find(project.task_path(name))
            if other is not None:
                task.depends_on(other)

    def materialize(self, unit: BuildUnit, task: Task):
        context = self._context
        base_images = unit.base_images(context.environ)
        snapshot = base_image_hashes(base_images, context.registry.get())
        producers = resolve_dependencies(unit, snapshot, context.index, context.ownership)

        versions_dir = (unit.project.root_dir / context.config.versions_dir).absolute()
        unit.files = [f for f in filtered_project_files(unit.project.project_dir) if versions_dir not in f.parents]
        unit.base_image_hashes = snapshot
        unit.dependencies = producers

        for producer in producers:
            if producer.project == unit.project:
                # The project's assemble step already depends on this task.
                task.depends_on(self._scheduler.named(producer.task_path))
            else:
                # Depend on 'assemble' instead of the image task itself, it's simpler that way.
                task.depends_on(self.lifecycle_task(producer.project, constants.ASSEMBLE_TASK))

        task.inputs = [*unit.files, unit.build_file, unit.project.root_dir / context.config.build_script]
        task.input_properties["base_image_hashes"] = dict(snapshot)
        task.input_properties["tagged_image"] = unit.tagged_image
        task.outputs = [unit.id_file]
        task.up_to_date_when.append(lambda _: self._oracle.is_up_to_date(unit))
        task.action = lambda _: run_build_command(unit, context.config)
