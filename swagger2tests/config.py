"""Generation settings."""

from dataclasses import dataclass
from typing import Any, Mapping, Tuple

from .errors import ConfigError

SUPPORTED_TEST_MODULES = ("supertest", "request")
SUPPORTED_ASSERTION_FORMATS = ("should", "expect", "assert")

# Modules whose tests address the API with a full URL instead of an app handle
ABSOLUTE_URL_MODULES = ("request",)
# Modules whose tests carry query parameters inline in the request path
INLINE_QUERY_MODULES = ("supertest",)


@dataclass(frozen=True)
class GenerationConfig:
    """What to generate and for which test library.

    ``path_names`` restricts generation to the listed paths, in that order.
    An empty tuple means every path of the document.
    """

    test_module: str = "supertest"
    assertion_format: str = "should"
    path_names: Tuple[str, ...] = ()

    def __post_init__(self):
        if self.test_module not in SUPPORTED_TEST_MODULES:
            raise ConfigError(
                f"Unsupported test module '{self.test_module}' "
                f"(expected one of: {', '.join(SUPPORTED_TEST_MODULES)})"
            )
        if self.assertion_format not in SUPPORTED_ASSERTION_FORMATS:
            raise ConfigError(
                f"Unsupported assertion format '{self.assertion_format}' "
                f"(expected one of: {', '.join(SUPPORTED_ASSERTION_FORMATS)})"
            )
        # Accept any iterable of paths but store an immutable tuple
        object.__setattr__(self, "path_names", tuple(self.path_names))

    @property
    def absolute_urls(self) -> bool:
        return self.test_module in ABSOLUTE_URL_MODULES

    @property
    def inline_query(self) -> bool:
        return self.test_module in INLINE_QUERY_MODULES

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "GenerationConfig":
        """Build a config from ``testModule``/``assertionFormat``/``pathName`` keys.

        Snake case keys are accepted as well.
        """
        return cls(
            test_module=data.get("testModule", data.get("test_module", "supertest")),
            assertion_format=data.get(
                "assertionFormat", data.get("assertion_format", "should")
            ),
            path_names=tuple(data.get("pathName", data.get("path_names", ())) or ()),
        )
