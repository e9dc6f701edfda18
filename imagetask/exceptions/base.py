class _ImageTaskCodedExceptionMetaclass(type):
    @property
    def error_code(cls):
        return cls._ERROR_CODE


class ImageTaskException(Exception, metaclass=_ImageTaskCodedExceptionMetaclass):
    _ERROR_CODE = "UnknownImageTaskException"

    def __str__(self):
        error_message = f"error={','.join(str(a) for a in self.args) if self.args else 'None'}"
        if self.__cause__:
            error_message += f", cause={self.__cause__}"

        return f"{self._ERROR_CODE}: {error_message}"
