import os
import typing
from dataclasses import dataclass, field

import rich_click as click
from diskcache import Cache
from rich.console import Console
from rich.table import Table
from rich.traceback import Traceback

from imagetask import constants
from imagetask.configuration import Config
from imagetask.core.context import BuildContext
from imagetask.core.factory import ImageTaskFactory
from imagetask.core.graph import validate_graph
from imagetask.core.plugin import apply
from imagetask.core.project import Project
from imagetask.core.scheduler import LocalScheduler
from imagetask.core.unit import BuildUnit
from imagetask.exceptions.base import ImageTaskException
from imagetask.loggers import get_level_from_cli_verbosity, logger

_HASH_DISPLAY_LENGTH = 19


@dataclass
class ImageTaskParams:
    config_file: typing.Optional[str] = None
    verbose: int = 0
    root: str = "."
    jobs: int = 1
    config: Config = field(default_factory=Config)


def pretty_print_exception(e: Exception, verbosity: int = 0):
    """
    Prints the error, and the traceback with -v or more.
    """
    if isinstance(e, (click.exceptions.Exit, click.ClickException)):
        raise e

    if isinstance(e, ImageTaskException):
        click.secho(str(e), fg="red")
        cause = e.__cause__
        while cause is not None:
            click.secho(f"  caused by: {cause}", fg="magenta")
            cause = cause.__cause__
    else:
        click.secho(f"{type(e).__name__}: {e}", fg="red")

    if verbosity > 0:
        Console(stderr=True).print(Traceback.from_exception(type(e), e, e.__traceback__))


class ErrorHandlingCommand(click.RichGroup):
    """
    Helper class that wraps the invoke method of a click command to catch exceptions and print them in a nice way.
    """

    def invoke(self, ctx: click.Context) -> typing.Any:
        verbosity = ctx.params["verbose"]
        logger.setLevel(get_level_from_cli_verbosity(verbosity))
        try:
            return super().invoke(ctx)
        except Exception as e:
            pretty_print_exception(e, verbosity)
            exit(1)


def _short_hash(image_hash: str) -> str:
    return image_hash[:_HASH_DISPLAY_LENGTH]


def _declare(
    params: ImageTaskParams, project_dirs: typing.Iterable[str], scheduler: LocalScheduler
) -> typing.Tuple[typing.List[Project], typing.List[BuildUnit]]:
    """
    Declares the image tasks of every project, then checks that the graph of images is complete and acyclic before
    anything gets materialized. Returns the projects and their units, producers first.
    """
    context = BuildContext(config=params.config)
    factory = ImageTaskFactory(context, scheduler)
    projects = [Project.from_dir(d, params.root) for d in project_dirs]
    for project in projects:
        apply(project, factory)
    units = validate_graph(context.index, context.ownership, context.environ)
    return projects, units


def _status_row(scheduler: LocalScheduler, unit: BuildUnit) -> typing.Tuple[str, ...]:
    task = scheduler.named(unit.task_path).get()
    up_to_date = scheduler.is_up_to_date(task)
    return (
        unit.task_path,
        unit.tagged_image,
        "\n".join(f"{image} {_short_hash(h)}" for image, h in sorted(unit.base_image_hashes.items())),
        "\n".join(d.tagged_image for d in unit.dependencies),
        "yes" if up_to_date else "no",
    )


def _run_lifecycle(params: ImageTaskParams, project_dirs: typing.Iterable[str], task_name: str):
    with Cache(os.path.expanduser(params.config.history_dir)) as history:
        scheduler = LocalScheduler(history=history, max_workers=params.jobs)
        projects, _ = _declare(params, project_dirs, scheduler)
        outcomes = scheduler.run([project.task_path(task_name) for project in projects])

    table = Table(title=f"{task_name} tasks")
    table.add_column("Task")
    table.add_column("Outcome")
    for name, outcome in sorted(outcomes.items()):
        table.add_row(name, outcome.value)
    Console().print(table)


@click.group("imagetask", cls=ErrorHandlingCommand, invoke_without_command=False)
@click.option(
    "-v",
    "--verbose",
    count=True,
    help="Show verbose messages and exception traces. Repeat for more verbosity.",
)
@click.option(
    "-c",
    "--config",
    "config_file",
    required=False,
    type=click.Path(exists=True, dir_okay=False),
    help="Path to config file. Defaults to $IMAGETASK_CONFIG, ./imagetask.config or ~/.imagetask/config.",
)
@click.option(
    "--root",
    default=".",
    show_default=True,
    type=click.Path(exists=True, file_okay=False),
    help="Root directory of the build graph. Build scripts and id files are resolved against it.",
)
@click.option("-j", "--jobs", default=1, show_default=True, type=click.IntRange(min=1), help="Tasks run concurrently.")
@click.pass_context
def main(ctx: click.Context, verbose: int, config_file: typing.Optional[str], root: str, jobs: int):
    """
    Builds the docker images of a build graph, rebuilding an image only when it is stale.
    """
    ctx.obj = ImageTaskParams(
        config_file=config_file, verbose=verbose, root=root, jobs=jobs, config=Config.auto(config_file)
    )


@main.command()
@click.argument("project_dirs", nargs=-1, required=True, type=click.Path(exists=True, file_okay=False))
@click.pass_obj
def build(params: ImageTaskParams, project_dirs: typing.Tuple[str, ...]):
    """Builds the images of the given projects and the images they are based on."""
    _run_lifecycle(params, project_dirs, constants.ASSEMBLE_TASK)


@main.command()
@click.argument("project_dirs", nargs=-1, required=True, type=click.Path(exists=True, file_okay=False))
@click.pass_obj
def clean(params: ImageTaskParams, project_dirs: typing.Tuple[str, ...]):
    """Deletes the id files of the given projects. Images are left in docker."""
    _run_lifecycle(params, project_dirs, constants.CLEAN_TASK)


@main.command()
@click.argument("project_dirs", nargs=-1, required=True, type=click.Path(exists=True, file_okay=False))
@click.pass_obj
def status(params: ImageTaskParams, project_dirs: typing.Tuple[str, ...]):
    """Shows the base images, dependencies and staleness of every image of the given projects."""
    with Cache(os.path.expanduser(params.config.history_dir)) as history:
        scheduler = LocalScheduler(history=history)
        _, units = _declare(params, project_dirs, scheduler)
        rows = [_status_row(scheduler, unit) for unit in units]

    table = Table(title="Images")
    table.add_column("Task")
    table.add_column("Image")
    table.add_column("Base images")
    table.add_column("Depends on")
    table.add_column("Up to date")
    for row in rows:
        table.add_row(*row)
    Console().print(table)


@main.command()
@click.pass_obj
def images(params: ImageTaskParams):
    """Lists the tagged images known to the image store with their hashes."""
    context = BuildContext(config=params.config)
    for name, image_hash in sorted(context.store.list_image_hashes().items()):
        click.echo(f"{name} {image_hash}")


if __name__ == "__main__":
    main()
