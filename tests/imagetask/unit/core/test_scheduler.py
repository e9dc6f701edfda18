import threading

import pytest
from diskcache import Cache

from imagetask.core.scheduler import LocalScheduler, Scheduler, Task, TaskOutcome, fingerprint
from imagetask.exceptions.system import TaskExecutionError
from imagetask.exceptions.user import ConfigurationError


def _file_task(tmp_path, calls, name="build"):
    source = tmp_path / "source.txt"
    source.write_text("v1")
    output = tmp_path / "out" / f"{name}.id"

    def configure(task: Task):
        task.inputs = [source]
        task.outputs = [output]

    def action(task: Task):
        calls.append(task.name)
        output.parent.mkdir(exist_ok=True)
        output.write_text("built")

    return source, output, configure, action


def test_registration_is_lazy():
    scheduler = Scheduler()
    configured = []
    handle = scheduler.register("a", configure=lambda t: configured.append(t.name))

    assert configured == []
    assert not handle.realized
    task = handle.get()
    assert handle.get() is task
    assert configured == ["a"]


def test_configure_after_realization_applies_immediately():
    scheduler = Scheduler()
    handle = scheduler.register("a")
    handle.get()
    handle.configure(lambda t: t.input_properties.update(k="v"))
    assert handle.get().input_properties == {"k": "v"}


def test_duplicate_and_unknown_names():
    scheduler = Scheduler()
    scheduler.register("a")
    with pytest.raises(ConfigurationError):
        scheduler.register("a")
    with pytest.raises(ConfigurationError):
        scheduler.named("b")
    assert scheduler.find("b") is None
    assert scheduler.names() == ["a"]


def test_run_orders_dependencies():
    scheduler = LocalScheduler()
    calls = []
    record = lambda t: calls.append(t.name)  # noqa: E731
    a = scheduler.register("a", action=record)
    b = scheduler.register("b", action=record)
    c = scheduler.register("c", action=record)
    scheduler.depends_on(c, b)
    scheduler.depends_on(b, a)
    scheduler.register("unrelated", configure=lambda t: pytest.fail("must not be realized"))

    outcomes = scheduler.run(["c"])
    assert calls == ["a", "b", "c"]
    assert outcomes == {"a": TaskOutcome.EXECUTED, "b": TaskOutcome.EXECUTED, "c": TaskOutcome.EXECUTED}


def test_tasks_without_action():
    scheduler = LocalScheduler()
    scheduler.register("lifecycle")
    assert scheduler.run(["lifecycle"]) == {"lifecycle": TaskOutcome.NO_ACTION}


def test_up_to_date_when_inputs_and_outputs_unchanged(tmp_path):
    calls = []
    source, output, configure, action = _file_task(tmp_path, calls)
    history = {}

    scheduler = LocalScheduler(history=history)
    scheduler.register("build", configure=configure, action=action)
    assert scheduler.run(["build"]) == {"build": TaskOutcome.EXECUTED}

    scheduler = LocalScheduler(history=history)
    scheduler.register("build", configure=configure, action=action)
    assert scheduler.run(["build"]) == {"build": TaskOutcome.UP_TO_DATE}

    source.write_text("v2")
    scheduler = LocalScheduler(history=history)
    scheduler.register("build", configure=configure, action=action)
    assert scheduler.run(["build"]) == {"build": TaskOutcome.EXECUTED}
    assert calls == ["build", "build"]


def test_missing_output_reruns(tmp_path):
    calls = []
    _, output, configure, action = _file_task(tmp_path, calls)
    scheduler = LocalScheduler()
    scheduler.register("build", configure=configure, action=action)
    scheduler.run(["build"])
    output.unlink()
    scheduler.run(["build"])
    assert calls == ["build", "build"]


def test_up_to_date_predicate_can_force_rerun(tmp_path):
    calls = []
    _, _, configure, action = _file_task(tmp_path, calls)
    verdicts = [False]

    def configure_with_predicate(task):
        configure(task)
        task.up_to_date_when.append(lambda t: verdicts[0])

    scheduler = LocalScheduler()
    scheduler.register("build", configure=configure_with_predicate, action=action)
    scheduler.run(["build"])
    assert scheduler.run(["build"]) == {"build": TaskOutcome.EXECUTED}
    verdicts[0] = True
    assert scheduler.run(["build"]) == {"build": TaskOutcome.UP_TO_DATE}


def test_history_persists_in_diskcache(tmp_path):
    calls = []
    _, _, configure, action = _file_task(tmp_path, calls)
    with Cache(str(tmp_path / "history")) as history:
        scheduler = LocalScheduler(history=history)
        scheduler.register("build", configure=configure, action=action)
        scheduler.run(["build"])
    with Cache(str(tmp_path / "history")) as history:
        scheduler = LocalScheduler(history=history)
        scheduler.register("build", configure=configure, action=action)
        assert scheduler.run(["build"]) == {"build": TaskOutcome.UP_TO_DATE}


def test_failure_aborts_the_run():
    scheduler = LocalScheduler()
    calls = []

    def fail(task):
        raise RuntimeError("exit code 2")

    a = scheduler.register("a", action=fail)
    b = scheduler.register("b", action=lambda t: calls.append(t.name))
    scheduler.depends_on(b, a)

    with pytest.raises(TaskExecutionError) as e:
        scheduler.run(["b"])
    assert e.value.task_name == "a"
    assert isinstance(e.value.__cause__, RuntimeError)
    assert calls == []


def test_cycles_are_rejected():
    scheduler = LocalScheduler()
    a = scheduler.register("a")
    b = scheduler.register("b")
    scheduler.depends_on(a, b)
    scheduler.depends_on(b, a)
    with pytest.raises(ConfigurationError):
        scheduler.run(["a"])


def test_concurrent_run():
    scheduler = LocalScheduler(max_workers=4)
    threads = set()
    lock = threading.Lock()

    def record(task):
        with lock:
            threads.add(task.name)

    final = scheduler.register("final", action=record)
    for i in range(8):
        scheduler.depends_on(final, scheduler.register(f"t{i}", action=record))

    outcomes = scheduler.run(["final"])
    assert len(outcomes) == 9
    assert threads == {"final", *(f"t{i}" for i in range(8))}


def test_fingerprint(tmp_path):
    source = tmp_path / "a.txt"
    source.write_text("a")
    task = Task("t")
    task.inputs = [source, tmp_path / "missing.txt"]
    task.input_properties = {"base_image_hashes": {"airbyte/base:dev": "h1"}}
    first = fingerprint(task)
    assert fingerprint(task) == first

    task.input_properties = {"base_image_hashes": {"airbyte/base:dev": "h2"}}
    assert fingerprint(task) != first
