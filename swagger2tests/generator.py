"""Test descriptor compilation and test file generation."""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple
from urllib.parse import quote, urlencode

from .config import GenerationConfig
from .errors import SchemaError
from .parser import (
    ApiDocument,
    Operation,
    Parameter,
    ParameterLocation,
    PathItem,
    SecurityScheme,
    SecuritySchemeType,
)
from .renderer import Renderer, TemplateRenderer

logger = logging.getLogger(__name__)

TYPE_JSON = "application/json"
QUERY_PLACEHOLDER = "DATA"
TEST_FILE_SUFFIX = "-test.js"
ROOT_FILE_NAME = "base-path" + TEST_FILE_SUFFIX
ENV_FILE_NAME = ".env"

# Words of an identifier: acronyms, capitalized words, lowercase runs, numbers
_WORD_RE = re.compile(r"[A-Z]{2,}(?=[A-Z][a-z]|[^A-Za-z]|$)|[A-Z]?[a-z]+|[A-Z]|[0-9]+")
_UNSAFE_FILENAME_RE = re.compile(r"[^A-Za-z0-9._-]")


@dataclass(frozen=True)
class EffectiveSettings:
    """``consumes``/``produces``/``security`` in force for one operation."""

    consumes: Tuple[str, ...] = ()
    produces: Tuple[str, ...] = ()
    security: Tuple[Dict[str, List[str]], ...] = ()


@dataclass(frozen=True)
class ClassifiedParameters:
    """Parameters of an operation grouped by location."""

    path: Tuple[Parameter, ...] = ()
    query: Tuple[Parameter, ...] = ()
    header: Tuple[Parameter, ...] = ()
    form_data: Tuple[Parameter, ...] = ()
    body: Tuple[Parameter, ...] = ()

    def __iter__(self):
        for bucket in (self.path, self.query, self.header, self.form_data, self.body):
            yield from bucket


@dataclass(frozen=True)
class AuthInjection:
    """Where a credential goes: ``name`` is the env var, ``type`` the scheme detail."""

    name: str
    type: str

    def to_context(self) -> Dict[str, str]:
        return {"name": self.name, "type": self.type}


@dataclass(frozen=True)
class SecurityInjection:
    """Credentials an operation's tests must send."""

    query_api_key: Optional[AuthInjection] = None
    header_api_key: Optional[AuthInjection] = None
    header_security: Optional[AuthInjection] = None

    @property
    def is_empty(self) -> bool:
        return not (self.query_api_key or self.header_api_key or self.header_security)


@dataclass(frozen=True)
class TestDescriptor:
    """Everything a template needs to render one test case."""

    __test__ = False

    method: str
    response_code: str
    description: str
    assertion: str
    content_type: str
    return_type: str
    path: str
    parameters: ClassifiedParameters
    security: SecurityInjection
    schema: Optional[str] = None

    @property
    def no_schema(self) -> bool:
        return self.schema is None

    @property
    def requires_validator(self) -> bool:
        """Whether the rendered test validates the body against the schema."""
        return self.return_type == TYPE_JSON and not self.no_schema

    def to_context(self) -> Dict[str, Any]:
        """Fields handed to the test template."""
        security = self.security
        context = {
            "method": self.method,
            "responseCode": self.response_code,
            "description": self.description,
            "assertion": self.assertion,
            "noSchema": self.no_schema,
            "bodyParameters": list(self.parameters.body),
            "queryParameters": list(self.parameters.query),
            "headerParameters": list(self.parameters.header),
            "pathParameters": list(self.parameters.path),
            "formParameters": list(self.parameters.form_data),
            "queryApiKey": security.query_api_key.to_context() if security.query_api_key else None,
            "headerApiKey": security.header_api_key.to_context() if security.header_api_key else None,
            "headerSecurity": security.header_security.to_context() if security.header_security else None,
            "path": self.path,
            "contentType": self.content_type,
            "returnType": self.return_type,
        }
        if self.schema is not None:
            context["schema"] = self.schema
        return context


@dataclass(frozen=True)
class OperationTests:
    """Descriptors of one operation of a path."""

    method: str
    descriptors: Tuple[TestDescriptor, ...] = ()

    @property
    def import_validator(self) -> bool:
        return any(d.requires_validator for d in self.descriptors)

    @property
    def import_env(self) -> bool:
        return any(not d.security.is_empty for d in self.descriptors)


@dataclass(frozen=True)
class PathTests:
    """Descriptors of every operation of one path, plus file-level settings."""

    path: str
    assertion: str
    test_module: str
    scheme: str
    host: str
    operations: Tuple[OperationTests, ...] = ()

    @property
    def descriptors(self) -> List[TestDescriptor]:
        return [d for op in self.operations for d in op.descriptors]

    @property
    def import_validator(self) -> bool:
        return any(op.import_validator for op in self.operations)

    @property
    def import_env(self) -> bool:
        return any(op.import_env for op in self.operations)

    def to_context(self, tests: Sequence[str]) -> Dict[str, Any]:
        """Fields handed to the file-level template, ``tests`` being rendered operations."""
        return {
            "description": self.path,
            "assertion": self.assertion,
            "testmodule": self.test_module,
            "scheme": self.scheme,
            "host": self.host,
            "tests": list(tests),
            "importValidator": self.import_validator,
            "importEnv": self.import_env,
        }


@dataclass(frozen=True)
class EnvDescriptor:
    """Environment variables listed in the generated ``.env`` file."""

    env_vars: Tuple[str, ...] = ()

    def to_context(self) -> Dict[str, Any]:
        return {"envVars": list(self.env_vars)}


@dataclass(frozen=True)
class GeneratedFile:
    """A rendered output file."""

    name: str
    test: str


@dataclass(frozen=True)
class GenerationResult:
    """Output of a generation run."""

    files: Tuple[GeneratedFile, ...] = ()
    paths: Tuple[PathTests, ...] = field(default=(), repr=False)

    @property
    def import_validator(self) -> bool:
        """Whether any generated test needs a schema validator."""
        return any(p.import_validator for p in self.paths)

    @property
    def import_env(self) -> bool:
        """Whether any generated test reads credentials from the environment."""
        return any(p.import_env for p in self.paths)

    def to_list(self) -> List[Dict[str, str]]:
        return [{"name": f.name, "test": f.test} for f in self.files]


def env_var_name(identifier: str) -> str:
    """Convert an identifier to an env var token: ``ApiKeyAuth`` -> ``API_KEY_AUTH``."""
    return "_".join(word.upper() for word in _WORD_RE.findall(identifier))


def resolve_setting(operation_value: Optional[Sequence], fallback_value: Optional[Sequence]) -> list:
    """Pick the operation value, else the fallback, else an empty list."""
    if operation_value:
        return list(operation_value)
    if fallback_value:
        return list(fallback_value)
    return []


def resolve_effective_settings(document: ApiDocument, operation: Operation) -> EffectiveSettings:
    return EffectiveSettings(
        consumes=tuple(resolve_setting(operation.consumes, document.consumes)),
        produces=tuple(resolve_setting(operation.produces, document.produces)),
        security=tuple(resolve_setting(operation.security, document.security)),
    )


def _location_of(param: Parameter, path: str, operation: str) -> ParameterLocation:
    try:
        return ParameterLocation(param.location)
    except ValueError:
        raise SchemaError(
            f"Unrecognized location '{param.location}' for parameter '{param.name}'",
            path=path,
            operation=operation,
        ) from None


def classify_parameters(
    path_parameters: Iterable[Parameter],
    operation_parameters: Iterable[Parameter],
    path: str = "",
    operation: str = "",
) -> ClassifiedParameters:
    """Sort path-level then operation-level parameters into location buckets.

    Body parameters are only accepted at operation level.

    Raises:
        SchemaError: a parameter has an unknown location, or a path-level
            parameter is carried in the body.
    """
    buckets: Dict[ParameterLocation, List[Parameter]] = {loc: [] for loc in ParameterLocation}

    for param in path_parameters:
        location = _location_of(param, path, operation)
        if location is ParameterLocation.BODY:
            raise SchemaError(
                f"Body parameter '{param.name}' is not allowed at path level",
                path=path,
            )
        buckets[location].append(param)

    for param in operation_parameters:
        buckets[_location_of(param, path, operation)].append(param)

    return ClassifiedParameters(
        path=tuple(buckets[ParameterLocation.PATH]),
        query=tuple(buckets[ParameterLocation.QUERY]),
        header=tuple(buckets[ParameterLocation.HEADER]),
        form_data=tuple(buckets[ParameterLocation.FORM_DATA]),
        body=tuple(buckets[ParameterLocation.BODY]),
    )


def resolve_security(
    requirements: Sequence[Mapping[str, Any]],
    definitions: Mapping[str, SecurityScheme],
    path: str = "",
    operation: str = "",
) -> SecurityInjection:
    """Turn the first security requirement into credential injection points.

    Requirements are alternatives; only the first one is honoured.

    Raises:
        SchemaError: a referenced scheme is undeclared, has an unknown type,
            or is an API key outside the query and header.
    """
    if not requirements:
        return SecurityInjection()
    if len(requirements) > 1:
        logger.debug(
            "%s %s: using the first of %d security alternatives",
            operation.upper(), path, len(requirements),
        )

    injected: Dict[str, AuthInjection] = {}
    for ref in requirements[0]:
        scheme = definitions.get(ref)
        if scheme is None:
            raise SchemaError(
                f"Security scheme '{ref}' is not declared in securityDefinitions",
                path=path,
                operation=operation,
            )
        try:
            scheme_type = SecuritySchemeType(scheme.type)
        except ValueError:
            raise SchemaError(
                f"Unrecognized security type '{scheme.type}' for scheme '{ref}'",
                path=path,
                operation=operation,
            ) from None

        name = env_var_name(ref)
        if scheme_type is SecuritySchemeType.BASIC:
            injected["header_security"] = AuthInjection(name, "Basic")
        elif scheme_type is SecuritySchemeType.OAUTH2:
            injected["header_security"] = AuthInjection(name, "Bearer")
        elif scheme.location == "query":
            injected["query_api_key"] = AuthInjection(name, scheme.param_name)
        elif scheme.location == "header":
            injected["header_api_key"] = AuthInjection(name, scheme.param_name)
        else:
            raise SchemaError(
                f"API key '{ref}' must be sent in the query or a header, not '{scheme.location}'",
                path=path,
                operation=operation,
            )

    return SecurityInjection(**injected)


def expand_content_types(
    consumes: Sequence[Optional[str]], produces: Sequence[Optional[str]]
) -> List[Tuple[str, str]]:
    """Pair request and response content types, defaulting to JSON.

    Consumes is the outer loop. Missing ``produces`` entries are skipped.
    """
    if consumes:
        if produces:
            return [(c, p) for c in consumes for p in produces if p is not None]
        return [(c, TYPE_JSON) for c in consumes]
    if produces:
        return [(TYPE_JSON, p) for p in produces if p is not None]
    return [(TYPE_JSON, TYPE_JSON)]


def build_path(
    document: ApiDocument,
    path: str,
    config: GenerationConfig,
    query_parameters: Sequence[Parameter] = (),
    query_api_key: Optional[AuthInjection] = None,
) -> str:
    """Build the request path of a test.

    ``{param}`` placeholders are left for the template to fill in.
    """
    url = ""
    if config.absolute_urls:
        url = f"{document.scheme}://{document.host_or_default}"

    base_path = document.base_path or ""
    if base_path == "/":
        base_path = ""
    url += base_path + path

    if config.inline_query:
        query = []
        if query_parameters:
            names = {param.name: QUERY_PLACEHOLDER for param in query_parameters}
            query.append(urlencode(sorted(names.items()), quote_via=quote))
        if query_api_key:
            query.append(f"{query_api_key.type}=")
        if query:
            url += "?" + "&".join(query)

    return url


def _pretty_schema(schema: Optional[Dict[str, Any]]) -> Optional[str]:
    if schema is None:
        return None
    return json.dumps(schema, indent=2, ensure_ascii=False)


def assemble_operation(
    document: ApiDocument,
    path_item: PathItem,
    operation: Operation,
    config: GenerationConfig,
) -> OperationTests:
    """Build every descriptor of an operation: response codes x content types."""
    path, method = path_item.path, operation.method
    settings = resolve_effective_settings(document, operation)
    parameters = classify_parameters(path_item.parameters, operation.parameters, path, method)
    security = resolve_security(settings.security, document.security_definitions, path, method)
    request_path = build_path(document, path, config, parameters.query, security.query_api_key)
    content_types = expand_content_types(settings.consumes, settings.produces)

    descriptors = []
    for code, response in operation.responses.items():
        schema = _pretty_schema(response.schema)
        for consume, produce in content_types:
            descriptors.append(TestDescriptor(
                method=method,
                response_code=code,
                description=f"{code} {response.description}",
                assertion=config.assertion_format,
                content_type=consume,
                return_type=produce,
                path=request_path,
                parameters=parameters,
                security=security,
                schema=schema,
            ))

    logger.debug("%s %s: %d test(s)", method.upper(), path, len(descriptors))
    return OperationTests(method=method, descriptors=tuple(descriptors))


def file_name(path: str) -> str:
    """Output file name for a path: ``/pets/{id}`` -> ``pets-id-test.js``."""
    if path == "/":
        return ROOT_FILE_NAME
    name = path[1:] if path.startswith("/") else path
    name = _UNSAFE_FILENAME_RE.sub("", name.replace("/", "-"))
    return name + TEST_FILE_SUFFIX


def build_env_descriptor(security_definition_names: Iterable[str]) -> EnvDescriptor:
    return EnvDescriptor(env_vars=tuple(env_var_name(n) for n in security_definition_names))


class TestGenerator:
    """Generates test files from a parsed Swagger document."""

    __test__ = False

    def __init__(self, config: Optional[GenerationConfig] = None, renderer: Optional[Renderer] = None):
        self.config = config or GenerationConfig()
        # Templates are loaded here so a missing one fails before any work
        self.renderer = renderer if renderer is not None else TemplateRenderer(self.config.test_module)

    def compile(self, document: ApiDocument) -> List[PathTests]:
        """Build descriptors for every selected path without rendering them."""
        result = []

        for path_item in self._select_paths(document):
            operations = tuple(
                assemble_operation(document, path_item, operation, self.config)
                for operation in path_item.operations.values()
            )
            result.append(PathTests(
                path=path_item.path,
                assertion=self.config.assertion_format,
                test_module=self.config.test_module,
                scheme=document.scheme,
                host=document.host_or_default,
                operations=operations,
            ))

        return result

    def generate(self, document: ApiDocument) -> GenerationResult:
        """Compile then render every selected path, plus the ``.env`` file."""
        paths = self.compile(document)
        files = []

        for path_tests in paths:
            rendered_operations = []
            for operation in path_tests.operations:
                tests = [self.renderer.render_test(d.to_context()) for d in operation.descriptors]
                rendered_operations.append(self.renderer.render_operation(
                    {"description": operation.method, "tests": tests}
                ))
            files.append(GeneratedFile(
                name=file_name(path_tests.path),
                test=self.renderer.render_path(path_tests.to_context(rendered_operations)),
            ))

        if document.security_definitions:
            env = build_env_descriptor(document.security_definitions)
            files.append(GeneratedFile(
                name=ENV_FILE_NAME,
                test=self.renderer.render_environment(env.to_context()),
            ))

        logger.info("Generated %d file(s)", len(files))
        return GenerationResult(files=tuple(files), paths=tuple(paths))

    def _select_paths(self, document: ApiDocument) -> List[PathItem]:
        """Paths to generate, honouring ``path_names`` order."""
        if not self.config.path_names:
            return list(document.paths.values())

        selected = []
        for name in self.config.path_names:
            path_item = document.paths.get(name)
            if path_item is None:
                logger.warning("Path %s is not in the document, skipping it", name)
                continue
            selected.append(path_item)
        return selected


def generate_tests(document: ApiDocument, config: Optional[GenerationConfig] = None) -> List[Dict[str, str]]:
    """Generate tests for a document, as ``{"name", "test"}`` dicts."""
    return TestGenerator(config).generate(document).to_list()
