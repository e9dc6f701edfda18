from imagetask.exceptions.base import ImageTaskException as _ImageTaskException


class ImageTaskUserException(_ImageTaskException):
    _ERROR_CODE = "USER:Unknown"


class ConfigurationError(ImageTaskUserException):
    """The build graph is misconfigured. Raised while it is being constructed, never retried."""

    _ERROR_CODE = "USER:ConfigurationError"


class BuildFileParseError(ConfigurationError):
    _ERROR_CODE = "USER:BuildFileParseError"

    def __init__(self, path, line: str):
        self.path = path
        self.line = line
        super().__init__(f"Empty image name in {path or 'build file'}: '{line.strip()}'")


class MissingImageProducerError(ConfigurationError):
    _ERROR_CODE = "USER:MissingImageProducer"

    def __init__(self, tagged_image: str, base_image: str):
        self.tagged_image = tagged_image
        self.base_image = base_image
        super().__init__(f"no known project for image {base_image} (base image of {tagged_image})")


class DuplicateImageProducerError(ConfigurationError):
    _ERROR_CODE = "USER:DuplicateImageProducer"

    def __init__(self, tagged_image: str, first: str, second: str):
        super().__init__(f"image {tagged_image} is produced by both {first} and {second}")


class ImageDependencyCycleError(ConfigurationError):
    _ERROR_CODE = "USER:ImageDependencyCycle"

    def __init__(self, cycle):
        self.cycle = list(cycle)
        super().__init__(f"images depend on each other: {' -> '.join(self.cycle)}")
