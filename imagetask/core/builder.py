import typing
from subprocess import CalledProcessError, run

import click

from imagetask.exceptions.system import BuildCommandError
from imagetask.exceptions.user import ConfigurationError

if typing.TYPE_CHECKING:
    from imagetask.configuration import Config
    from imagetask.core.unit import BuildUnit


def build_command(unit: "BuildUnit", config: "Config") -> typing.List[str]:
    """
    The build script is invoked as
    ``<script> <root dir> <project dir> <build file name> <tagged image> <id file>`` and writes the hash of the built
    image into the id file.
    """
    project = unit.project
    script = (project.root_dir / config.build_script).absolute()
    return [
        str(script),
        str(project.root_dir.absolute()),
        str(project.project_dir.absolute()),
        unit.build_file.name,
        unit.tagged_image,
        str(unit.id_file.absolute()),
    ]


def run_build_command(unit: "BuildUnit", config: "Config"):
    command = build_command(unit, config)
    script = unit.project.root_dir / config.build_script
    if not script.is_file():
        raise ConfigurationError(f"Build script {script} does not exist")

    unit.id_file.parent.mkdir(parents=True, exist_ok=True)
    click.secho(f"Run command: {' '.join(command)} ", fg="blue")
    try:
        run(command, check=True)
    except CalledProcessError as e:
        raise BuildCommandError(unit.tagged_image, e.returncode) from e
