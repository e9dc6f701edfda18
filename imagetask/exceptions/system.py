from imagetask.exceptions.base import ImageTaskException as _ImageTaskException


class ImageTaskSystemException(_ImageTaskException):
    _ERROR_CODE = "SYSTEM:Unknown"


class ImageStoreError(ImageTaskSystemException):
    _ERROR_CODE = "SYSTEM:ImageStoreError"


class BuildCommandError(ImageTaskSystemException):
    _ERROR_CODE = "SYSTEM:BuildCommandError"

    def __init__(self, tagged_image: str, returncode: int):
        self.tagged_image = tagged_image
        self.returncode = returncode
        super().__init__(f"building image {tagged_image} failed with exit code {returncode}")


class TaskExecutionError(ImageTaskSystemException):
    _ERROR_CODE = "SYSTEM:TaskExecutionError"

    def __init__(self, task_name: str):
        self.task_name = task_name
        super().__init__(f"task {task_name} failed")
