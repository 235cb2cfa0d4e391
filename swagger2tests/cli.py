"""Main CLI for swagger2tests."""

import logging
import sys
from pathlib import Path

import click

from . import __version__
from .config import SUPPORTED_ASSERTION_FORMATS, SUPPORTED_TEST_MODULES, GenerationConfig
from .generator import TestGenerator
from .parser import SwaggerParser


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Log each generation step")
def main(verbose: bool):
    """swagger2tests - Generate API test stubs from Swagger 2.0 specs.

    Example:

        # Write mocha/supertest stubs for every path
        swagger2tests generate petstore.yaml -o test/api
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@main.command()
@click.argument("spec", type=str)
@click.option("--output", "-o", type=click.Path(), default="test", help="Output directory")
@click.option(
    "--test-module", "-m",
    type=click.Choice(SUPPORTED_TEST_MODULES),
    default="supertest",
    help="Test library the stubs are written for",
)
@click.option(
    "--assertion-format", "-a",
    type=click.Choice(SUPPORTED_ASSERTION_FORMATS),
    default="should",
    help="Chai assertion style",
)
@click.option("--path", "-p", "paths", multiple=True, help="Only generate tests for this path (repeatable)")
@click.option("--stdout", is_flag=True, help="Print to stdout instead of writing files")
def generate(spec: str, output: str, test_module: str, assertion_format: str, paths: tuple, stdout: bool):
    """Generate test stubs from a Swagger spec.

    SPEC can be a file path or URL to a Swagger 2.0 document.

    Examples:

        swagger2tests generate petstore.yaml -o test/api
        swagger2tests generate petstore.json -m request -a expect -p /pets -p /pets/{petId}
    """
    try:
        config = GenerationConfig(
            test_module=test_module,
            assertion_format=assertion_format,
            path_names=paths,
        )
        generator = TestGenerator(config)

        document = SwaggerParser().parse(spec)
        click.echo(f"Parsed: {document.title} v{document.version}", err=True)
        click.echo(f"Found {len(document.paths)} paths", err=True)

        result = generator.generate(document)

        if stdout:
            for generated in result.files:
                click.echo(f"// {generated.name}")
                click.echo(generated.test)
        else:
            output_dir = Path(output)
            output_dir.mkdir(parents=True, exist_ok=True)
            for generated in result.files:
                file_path = output_dir / generated.name
                file_path.write_text(generated.test, encoding="utf-8")
                click.echo(f"  Created {file_path}", err=True)
            click.echo(f"Generated {len(result.files)} files in {output_dir}", err=True)

    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@main.command()
@click.argument("spec", type=str)
def inspect(spec: str):
    """Inspect a Swagger spec without generating tests.

    Shows paths, operations, response codes and auth schemes.
    """
    try:
        document = SwaggerParser().parse(spec)
    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(f"\n{document.title} v{document.version}")
    click.echo(f"Base: {document.scheme}://{document.host_or_default}{document.base_path or ''}")

    if document.security_definitions:
        click.echo("\nSecurity definitions:")
        for name, scheme in document.security_definitions.items():
            click.echo(f"   - {name}: {scheme.type}")

    click.echo(f"\nPaths ({len(document.paths)} total):")
    for path, item in document.paths.items():
        click.echo(f"\n   {path}")
        for method, operation in item.operations.items():
            codes = ", ".join(operation.responses) or "no responses"
            click.echo(f"   • {method.upper():7} {codes}")


if __name__ == "__main__":
    main()
