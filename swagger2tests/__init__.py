"""swagger2tests - Generate API test stubs from Swagger 2.0 specs."""

__version__ = "0.1.0"

from .config import GenerationConfig
from .errors import ConfigError, ResourceError, SchemaError, Swagger2TestsError
from .generator import GenerationResult, TestDescriptor, TestGenerator, generate_tests
from .parser import ApiDocument, SwaggerParser

__all__ = [
    "SwaggerParser",
    "ApiDocument",
    "GenerationConfig",
    "TestGenerator",
    "TestDescriptor",
    "GenerationResult",
    "generate_tests",
    "Swagger2TestsError",
    "SchemaError",
    "ResourceError",
    "ConfigError",
]
