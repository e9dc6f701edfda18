"""
A minimal host scheduler for the image tasks.

Tasks are registered lazily: :meth:`Scheduler.register` only records how to configure the task, and the configuration
runs the first time the task is realized, i.e. when something asks for the :class:`Task` behind a :class:`TaskHandle`.
Only tasks reachable from the requested ones are ever realized.

:class:`LocalScheduler` skips a task when all of its outputs exist, its inputs have not changed since its last
successful run and all of its up-to-date predicates hold.
"""

import hashlib
import json
import os
import threading
import typing
from concurrent.futures import FIRST_COMPLETED, ThreadPoolExecutor, wait
from enum import Enum
from graphlib import CycleError, TopologicalSorter
from pathlib import Path

from imagetask.exceptions.system import TaskExecutionError
from imagetask.exceptions.user import ConfigurationError
from imagetask.loggers import logger

_MISSING_FILE_MARKER = b"<missing>"


class Task(object):
    def __init__(self, name: str):
        self.name = name
        self.inputs: typing.List[Path] = []
        self.input_properties: typing.Dict[str, typing.Any] = {}
        self.outputs: typing.List[Path] = []
        self.up_to_date_when: typing.List[typing.Callable[["Task"], bool]] = []
        self.dependencies: typing.List["TaskHandle"] = []
        self.action: typing.Optional[typing.Callable[["Task"], None]] = None

    def depends_on(self, *handles: "TaskHandle"):
        for handle in handles:
            if handle not in self.dependencies:
                self.dependencies.append(handle)

    def __repr__(self):
        return f"Task({self.name})"


class TaskHandle(object):
    """Lazy reference to a registered task."""

    def __init__(self, name: str, scheduler: "Scheduler"):
        self.name = name
        self._scheduler = scheduler
        self._configure_actions: typing.List[typing.Callable[[Task], None]] = []
        self._task: typing.Optional[Task] = None

    @property
    def realized(self) -> bool:
        return self._task is not None

    def configure(self, action: typing.Callable[[Task], None]) -> "TaskHandle":
        with self._scheduler.lock:
            if self._task is not None:
                action(self._task)
            else:
                self._configure_actions.append(action)
        return self

    def get(self) -> Task:
        with self._scheduler.lock:
            if self._task is None:
                logger.debug(f"Realizing task {self.name}")
                task = Task(self.name)
                self._task = task
                for action in self._configure_actions:
                    action(task)
                self._configure_actions.clear()
            return self._task

    def __repr__(self):
        return f"TaskHandle({self.name})"


class Scheduler(object):
    """
    Task registration interface. Task names are unique within a scheduler.
    """

    def __init__(self):
        # Configuring a task may realize or configure other tasks.
        self.lock = threading.RLock()
        self._handles: typing.Dict[str, TaskHandle] = {}

    def register(
        self,
        name: str,
        configure: typing.Optional[typing.Callable[[Task], None]] = None,
        action: typing.Optional[typing.Callable[[Task], None]] = None,
    ) -> TaskHandle:
        with self.lock:
            if name in self._handles:
                raise ConfigurationError(f"Task {name} is already registered")
            handle = TaskHandle(name, self)
            self._handles[name] = handle
        if action is not None:
            handle.configure(lambda t: setattr(t, "action", action))
        if configure is not None:
            handle.configure(configure)
        return handle

    def find(self, name: str) -> typing.Optional[TaskHandle]:
        with self.lock:
            return self._handles.get(name)

    def named(self, name: str) -> TaskHandle:
        handle = self.find(name)
        if handle is None:
            raise ConfigurationError(f"Task with name '{name}' not found")
        return handle

    def names(self) -> typing.List[str]:
        with self.lock:
            return sorted(self._handles)

    def depends_on(self, handle: TaskHandle, other: TaskHandle):
        handle.configure(lambda t: t.depends_on(other))


def _filehash_update(path: Path, hasher) -> None:
    blocksize = 65536
    with open(path, "rb") as f:
        bytes = f.read(blocksize)
        while bytes:
            hasher.update(bytes)
            bytes = f.read(blocksize)


def fingerprint(task: Task) -> str:
    """md5 over the input file paths and contents and the input properties of ``task``."""
    hasher = hashlib.md5()
    for path in sorted(str(p) for p in task.inputs):
        hasher.update(path.encode("utf-8"))
        if os.path.isfile(path):
            _filehash_update(Path(path), hasher)
        else:
            hasher.update(_MISSING_FILE_MARKER)
    hasher.update(json.dumps(task.input_properties, sort_keys=True, default=str).encode("utf-8"))
    return hasher.hexdigest()


class TaskOutcome(Enum):
    EXECUTED = "executed"
    UP_TO_DATE = "up-to-date"
    NO_ACTION = "no-action"


class LocalScheduler(Scheduler):
    """
    Runs tasks in the current process.

    :param history: mapping of task name to the input fingerprint of its last successful run. A ``diskcache.Cache``
        keeps it across invocations. Defaults to an in-memory dict.
    :param max_workers: number of tasks run concurrently
    """

    def __init__(self, history: typing.Optional[typing.MutableMapping[str, str]] = None, max_workers: int = 1):
        super().__init__()
        self._history = history if history is not None else {}
        self._max_workers = max_workers

    def execution_graph(self, names: typing.Iterable[str]) -> typing.Dict[str, typing.Set[str]]:
        """Realizes the requested tasks and everything they depend on. Returns task name -> dependency names."""
        graph: typing.Dict[str, typing.Set[str]] = {}
        pending = [self.named(n) for n in names]
        while pending:
            handle = pending.pop()
            if handle.name in graph:
                continue
            task = handle.get()
            graph[handle.name] = {d.name for d in task.dependencies}
            pending.extend(task.dependencies)
        return graph

    def is_up_to_date(self, task: Task) -> bool:
        if not task.outputs:
            return False
        for output in task.outputs:
            if not os.path.exists(output):
                logger.info(f"Task {task.name} not up to date: output {output} does not exist")
                return False
        if self._history.get(task.name) != fingerprint(task):
            logger.info(f"Task {task.name} not up to date: inputs changed")
            return False
        return all(predicate(task) for predicate in task.up_to_date_when)

    def execute(self, task: Task) -> TaskOutcome:
        if task.action is None:
            return TaskOutcome.NO_ACTION
        if self.is_up_to_date(task):
            logger.info(f"Task {task.name} is up to date")
            return TaskOutcome.UP_TO_DATE
        task_fingerprint = fingerprint(task)
        logger.info(f"Executing task {task.name}")
        try:
            task.action(task)
        except Exception as e:
            raise TaskExecutionError(task.name) from e
        if task.outputs:
            self._history[task.name] = task_fingerprint
        return TaskOutcome.EXECUTED

    def run(self, names: typing.Iterable[str]) -> typing.Dict[str, TaskOutcome]:
        """
        Runs the named tasks after everything they depend on. The first failure aborts the run.
        """
        graph = self.execution_graph(names)
        sorter = TopologicalSorter(graph)
        try:
            sorter.prepare()
        except CycleError as e:
            raise ConfigurationError(f"Tasks depend on each other: {' -> '.join(e.args[1])}") from e

        outcomes: typing.Dict[str, TaskOutcome] = {}
        with ThreadPoolExecutor(max_workers=self._max_workers) as executor:
            running = {}
            while sorter.is_active():
                for name in sorter.get_ready():
                    running[executor.submit(self.execute, self.named(name).get())] = name
                done, _ = wait(running, return_when=FIRST_COMPLETED)
                for future in done:
                    name = running.pop(future)
                    # Re-raises the task's failure, the executor waits for the tasks still running.
                    outcomes[name] = future.result()
                    sorter.done(name)
        return outcomes
