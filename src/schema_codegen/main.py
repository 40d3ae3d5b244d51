"""CLI entrypoint for schema-codegen."""

import logging
from pathlib import Path

import rich_click as click

from schema_codegen import __version__
from schema_codegen.build.controllers import BuildCliController, GenerateCommand
from schema_codegen.build.models import SourceSet
from schema_codegen.errors import SchemaCodegenError

click.rich_click.USE_MARKDOWN = True
BUILD_CONTROLLER = BuildCliController()


@click.group()
@click.version_option(version=__version__, prog_name="schema-codegen")
def schema_codegen() -> None:
    """Incremental schema-to-code generation."""


@schema_codegen.command("generate")
@click.option(
    "--build-file",
    type=click.Path(path_type=Path),
    default=None,
    help="JSON build file declaring tasks and extensions. Defaults to schema-codegen.json.",
)
@click.option(
    "--project-dir",
    type=click.Path(path_type=Path, file_okay=False),
    default=None,
    help="Project base directory used to resolve relative locators.",
)
@click.option(
    "--output-dir",
    type=click.Path(path_type=Path, file_okay=False),
    default=None,
    help="Directory receiving generated sources.",
)
@click.option(
    "--marker-dir",
    type=click.Path(path_type=Path, file_okay=False),
    default=None,
    help="Directory holding per-task .DONE markers.",
)
@click.option(
    "--generator",
    "generator_command",
    default=None,
    help="Generator command line, for example `xjc`.",
)
@click.option(
    "--test/--main",
    "test_sources",
    default=False,
    show_default=True,
    help="Generate into the test source root instead of the main one.",
)
@click.option(
    "--keep-going/--fail-fast",
    default=False,
    show_default=True,
    help="Continue with remaining tasks when the generator exits with an error.",
)
@click.option("--verbose", is_flag=True, default=False, help="Enable debug logging.")
def generate(  # noqa: PLR0913
    build_file: Path | None,
    project_dir: Path | None,
    output_dir: Path | None,
    marker_dir: Path | None,
    generator_command: str | None,
    test_sources: bool,
    keep_going: bool,
    verbose: bool,
) -> None:
    """Regenerate code for every task whose schema or dependencies changed."""

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        result = BUILD_CONTROLLER.generate(
            GenerateCommand(
                build_file=build_file,
                project_dir=project_dir,
                output_dir=output_dir,
                marker_dir=marker_dir,
                generator_command=generator_command,
                source_set=SourceSet.TEST if test_sources else SourceSet.MAIN,
                keep_going=keep_going,
            ),
        )
    except (SchemaCodegenError, ValueError) as error:
        raise click.ClickException(str(error)) from error

    _emit_lines(result.lines)
    if not result.success:
        raise click.ClickException("Code generation failed.")


def _emit_lines(lines: list[str]) -> None:
    for line in lines:
        click.echo(line)


if __name__ == "__main__":  # pragma: no cover
    schema_codegen()
