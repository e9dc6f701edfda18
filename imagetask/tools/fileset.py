import os
import stat
import typing
from pathlib import Path

from docker.utils.build import PatternMatcher

from imagetask import constants
from imagetask.loggers import logger

EXCLUDE_DIRS = {".git"}
# Excluded when the project has no .dockerignore.
VENV_DIR = ".venv"


def read_dockerignore(project_dir: typing.Union[str, os.PathLike]) -> typing.Optional[typing.List[str]]:
    dockerignore = os.path.join(project_dir, constants.DOCKERIGNORE)
    if not os.path.isfile(dockerignore):
        return None
    with open(dockerignore, "r") as f:
        return [l.strip() for l in f.readlines() if l.strip() and not l.startswith("#")]


def filtered_project_files(project_dir: typing.Union[str, os.PathLike]) -> typing.List[Path]:
    """
    A superset of the files copied into the image: every file of the project with the .dockerignore rules applied.
    Parsing the COPY directives would be more precise but this is good enough in practice.
    """
    patterns = read_dockerignore(project_dir)
    if patterns is None:
        logger.info(f"No .dockerignore found in {project_dir}, only excluding {VENV_DIR}")

        def is_ignored(path: str) -> bool:
            return VENV_DIR in path

    else:
        pm = PatternMatcher(patterns)
        is_ignored = pm.matches

    files = []
    for root, dirnames, filenames in os.walk(project_dir, topdown=True):
        dirnames[:] = sorted(d for d in dirnames if d not in EXCLUDE_DIRS)
        for fname in sorted(filenames):
            abspath = os.path.join(root, fname)
            # Only consider files that exist (e.g. disregard symlinks that point to non-existent files)
            if not os.path.exists(abspath) or stat.S_ISSOCK(os.stat(abspath).st_mode):
                continue
            relpath = os.path.relpath(abspath, project_dir)
            if is_ignored(Path(relpath).as_posix()):
                continue
            files.append(Path(abspath))
    return files
