from imagetask.exceptions.system import BuildCommandError, TaskExecutionError
from imagetask.exceptions.user import ConfigurationError, ImageDependencyCycleError, MissingImageProducerError


def test_error_codes():
    assert ConfigurationError.error_code == "USER:ConfigurationError"
    assert MissingImageProducerError.error_code == "USER:MissingImageProducer"
    assert TaskExecutionError.error_code == "SYSTEM:TaskExecutionError"
    assert issubclass(MissingImageProducerError, ConfigurationError)


def test_str_includes_cause():
    try:
        try:
            raise BuildCommandError("airbyte/base:dev", 2)
        except BuildCommandError as e:
            raise TaskExecutionError(":base:airbyteDocker") from e
    except TaskExecutionError as e:
        assert str(e) == (
            "SYSTEM:TaskExecutionError: error=task :base:airbyteDocker failed, "
            "cause=SYSTEM:BuildCommandError: error=building image airbyte/base:dev failed with exit code 2"
        )


def test_cycle_is_kept():
    e = ImageDependencyCycleError(["airbyte/a:dev", "airbyte/b:dev", "airbyte/a:dev"])
    assert e.cycle == ["airbyte/a:dev", "airbyte/b:dev", "airbyte/a:dev"]
    assert "airbyte/a:dev -> airbyte/b:dev -> airbyte/a:dev" in str(e)
