"""Errors raised while generating tests from a Swagger document."""


class Swagger2TestsError(Exception):
    """Base class for all swagger2tests errors."""


class SchemaError(Swagger2TestsError):
    """The API document contains something the generator cannot classify.

    Fatal: the whole run is aborted, no file is emitted.
    """

    def __init__(self, message: str, path: str = "", operation: str = ""):
        self.path = path
        self.operation = operation
        location = " ".join(p for p in (operation.upper(), path) if p)
        super().__init__(f"{message} ({location})" if location else message)


class ResourceError(Swagger2TestsError):
    """A template required for rendering could not be loaded."""


class ConfigError(Swagger2TestsError):
    """The generation config holds an unsupported value."""
