"""Jinja2 rendering of test descriptors into mocha test files."""

import logging
import re
from pathlib import Path
from typing import Any, Mapping, Protocol

from jinja2 import Environment, FileSystemLoader, TemplateError

from .errors import ResourceError

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).parent / "templates"

_PATH_PARAM_RE = re.compile(r"\{(.*?)\}")


class Renderer(Protocol):
    """Turns descriptor mappings into test source text."""

    def render_test(self, context: Mapping[str, Any]) -> str: ...

    def render_operation(self, context: Mapping[str, Any]) -> str: ...

    def render_path(self, context: Mapping[str, Any]) -> str: ...

    def render_environment(self, context: Mapping[str, Any]) -> str: ...


def pathify(path: str) -> str:
    """Mark path parameters so they stand out in generated tests."""
    if not isinstance(path, str):
        raise TypeError(f"pathify requires a string, got {type(path).__name__}")
    return _PATH_PARAM_RE.sub(r"{\1 PARAM GOES HERE}", path)


def js_quote(text: Any) -> str:
    """Escape text for a single-quoted JavaScript string."""
    return str(text).replace("\\", "\\\\").replace("'", "\\'").replace("\n", " ")


class TemplateRenderer:
    """Renders tests for one test module from the bundled templates.

    Every template is loaded up front; a missing or broken one raises
    :class:`ResourceError` from the constructor.
    """

    def __init__(self, test_module: str, templates_dir: Path = TEMPLATES_DIR):
        self.test_module = test_module
        self.env = Environment(
            loader=FileSystemLoader(str(templates_dir)),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["pathify"] = pathify
        self.env.filters["js_quote"] = js_quote

        self._load("assertions.js.j2")
        self._test = self._load(f"{test_module}/test.js.j2")
        self._operation = self._load("inner_describe.js.j2")
        self._path = self._load("outer_describe.js.j2")
        self._environment = self._load("environment.j2")

    def _load(self, name: str):
        try:
            return self.env.get_template(name)
        except TemplateError as e:
            raise ResourceError(f"Cannot load template '{name}': {e}") from e

    def render_test(self, context: Mapping[str, Any]) -> str:
        return self._test.render(**context)

    def render_operation(self, context: Mapping[str, Any]) -> str:
        return self._operation.render(**context)

    def render_path(self, context: Mapping[str, Any]) -> str:
        return self._path.render(**context)

    def render_environment(self, context: Mapping[str, Any]) -> str:
        return self._environment.render(**context)
