"""Swagger 2.0 document parser."""

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Union

import requests
import yaml

from .errors import SchemaError

logger = logging.getLogger(__name__)

HTTP_METHODS = ('get', 'put', 'post', 'delete', 'options', 'head', 'patch')


class ParameterLocation(str, Enum):
    """Where a request parameter is carried."""

    PATH = "path"
    QUERY = "query"
    HEADER = "header"
    FORM_DATA = "formData"
    BODY = "body"


class SecuritySchemeType(str, Enum):
    """Authentication mechanisms understood by the generator."""

    BASIC = "basic"
    API_KEY = "apiKey"
    OAUTH2 = "oauth2"


@dataclass(frozen=True)
class Parameter:
    """An operation or path-level parameter.

    ``location`` is kept as written in the document; it is checked against
    :class:`ParameterLocation` when parameters are classified.
    """

    name: str
    location: str
    required: bool = False
    description: str = ""
    type: str = ""
    schema: Optional[Dict[str, Any]] = None


@dataclass(frozen=True)
class SecurityScheme:
    """A named entry of ``securityDefinitions``."""

    name: str
    type: str
    location: str = ""  # query, header (for apiKey)
    param_name: str = ""  # name of the header/query param (for apiKey)


@dataclass(frozen=True)
class Response:
    """A documented response of an operation."""

    code: str
    description: str = ""
    schema: Optional[Dict[str, Any]] = None


@dataclass
class Operation:
    """One HTTP-verb handler of a path.

    ``consumes``, ``produces`` and ``security`` stay ``None`` when the
    operation does not override the document-wide value.
    """

    method: str
    summary: str = ""
    operation_id: str = ""
    parameters: List[Parameter] = field(default_factory=list)
    consumes: Optional[List[str]] = None
    produces: Optional[List[str]] = None
    security: Optional[List[Dict[str, List[str]]]] = None
    responses: Dict[str, Response] = field(default_factory=dict)


@dataclass
class PathItem:
    """Operations and shared parameters of a single path."""

    path: str
    parameters: List[Parameter] = field(default_factory=list)
    operations: Dict[str, Operation] = field(default_factory=dict)


@dataclass
class ApiDocument:
    """A parsed Swagger 2.0 document."""

    title: str = "API"
    version: str = "1.0.0"
    description: str = ""
    schemes: List[str] = field(default_factory=list)
    host: Optional[str] = None
    base_path: Optional[str] = None
    consumes: List[str] = field(default_factory=list)
    produces: List[str] = field(default_factory=list)
    security: List[Dict[str, List[str]]] = field(default_factory=list)
    security_definitions: Dict[str, SecurityScheme] = field(default_factory=dict)
    paths: Dict[str, PathItem] = field(default_factory=dict)

    @property
    def scheme(self) -> str:
        """First declared scheme, ``http`` when none is declared."""
        return self.schemes[0] if self.schemes else "http"

    @property
    def host_or_default(self) -> str:
        return self.host if self.host is not None else "localhost:10010"


def enumerate_operations(path_item: Dict[str, Any]) -> Iterator[str]:
    """Yield the HTTP verbs declared on a raw path item, in document order."""
    for key in path_item:
        if key in HTTP_METHODS:
            yield key


class SwaggerParser:
    """Parser for Swagger 2.0 specifications."""

    def parse(self, source: Union[str, Path]) -> ApiDocument:
        """Parse a Swagger document from a file path or URL."""
        raw = self._load_spec(source)
        return self.parse_document(raw)

    def _load_spec(self, source: Union[str, Path]) -> dict:
        """Load spec from file or URL."""
        if isinstance(source, Path):
            source = str(source)

        # Check if URL
        if source.startswith(('http://', 'https://')):
            logger.debug("Fetching %s", source)
            response = requests.get(source, timeout=30)
            response.raise_for_status()
            content = response.text
            if source.endswith('.yaml') or source.endswith('.yml'):
                return yaml.safe_load(content)
            try:
                return json.loads(content)
            except json.JSONDecodeError:
                return yaml.safe_load(content)

        # Local file
        path = Path(source)
        content = path.read_text(encoding='utf-8')

        if path.suffix in ('.yaml', '.yml'):
            return yaml.safe_load(content)
        return json.loads(content)

    def parse_document(self, raw: dict) -> ApiDocument:
        """Parse an already loaded document into an :class:`ApiDocument`."""
        info = raw.get('info', {})

        paths = {}
        for path, item in (raw.get('paths') or {}).items():
            paths[path] = self._parse_path_item(path, item or {}, raw)

        return ApiDocument(
            title=info.get('title', 'API'),
            version=str(info.get('version', '1.0.0')),
            description=info.get('description', ''),
            schemes=list(raw.get('schemes') or []),
            host=raw.get('host'),
            base_path=raw.get('basePath'),
            consumes=list(raw.get('consumes') or []),
            produces=list(raw.get('produces') or []),
            security=list(raw.get('security') or []),
            security_definitions=self._parse_security_definitions(
                raw.get('securityDefinitions') or {}
            ),
            paths=paths,
        )

    def _parse_path_item(self, path: str, item: dict, spec: dict) -> PathItem:
        """Parse one entry of ``paths``."""
        operations = {}
        for method in enumerate_operations(item):
            operations[method] = self._parse_operation(method, item[method] or {}, spec)

        return PathItem(
            path=path,
            parameters=self._parse_parameters(item.get('parameters', []), spec),
            operations=operations,
        )

    def _parse_operation(self, method: str, details: dict, spec: dict) -> Operation:
        """Parse a single operation."""
        responses = {}
        for code, response in (details.get('responses') or {}).items():
            response = response or {}
            if '$ref' in response:
                response = self._resolve_ref(response['$ref'], spec)
            responses[str(code)] = Response(
                code=str(code),
                description=response.get('description', ''),
                schema=response.get('schema'),
            )

        return Operation(
            method=method,
            summary=details.get('summary', ''),
            operation_id=details.get('operationId', ''),
            parameters=self._parse_parameters(details.get('parameters', []), spec),
            consumes=details.get('consumes'),
            produces=details.get('produces'),
            security=details.get('security'),
            responses=responses,
        )

    def _parse_parameters(self, params: list, spec: dict) -> List[Parameter]:
        """Parse parameters."""
        result = []

        for param in params or []:
            # Handle $ref
            if '$ref' in param:
                param = self._resolve_ref(param['$ref'], spec)

            result.append(Parameter(
                name=param.get('name', ''),
                location=param.get('in', ''),
                required=param.get('required', False),
                description=param.get('description', ''),
                type=param.get('type', ''),
                schema=param.get('schema'),
            ))

        return result

    def _parse_security_definitions(self, definitions: dict) -> Dict[str, SecurityScheme]:
        """Parse security definitions, keeping document order."""
        result = {}

        for name, details in definitions.items():
            result[name] = SecurityScheme(
                name=name,
                type=details.get('type', ''),
                location=details.get('in', ''),
                param_name=details.get('name', ''),
            )

        return result

    def _resolve_ref(self, ref: str, spec: dict) -> dict:
        """Resolve a local $ref pointer.

        Raises:
            SchemaError: if a '#/' pointer does not lead to an object.
        """
        if not ref.startswith('#/'):
            return {}

        parts = ref[2:].split('/')
        current = spec

        for part in parts:
            if isinstance(current, dict) and part in current:
                current = current[part]
            else:
                raise SchemaError(f"Unresolvable $ref '{ref}'")

        if not isinstance(current, dict):
            raise SchemaError(f"Unresolvable $ref '{ref}'")
        return current
