"""CLI entry point for openapi-mcp."""

import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import click

from .config import Config
from .log_setup import configure_logging
from .models.common import ValidationSeverity
from .schema_gen import DocumentLoadError, ToolSetBuilder


def load_document(path: Path) -> Dict[str, Any]:
    """Read an OpenAPI document from a JSON file. No validation beyond 'is a JSON object'."""
    try:
        with open(path, encoding="utf-8") as f:
            document = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise DocumentLoadError(f"Could not read OpenAPI document {path}: {e}", path=path) from e
    if not isinstance(document, dict):
        raise DocumentLoadError(f"OpenAPI document {path} is not a JSON object.", path=path)
    return document


@click.group()
@click.option(
    "--config-file", "-c",
    type=click.Path(exists=True, dir_okay=False, resolve_path=True),
    help="Path to a JSON configuration file.",
    envvar="OPENAPI_MCP_CONFIG_FILE"
)
@click.option(
    "--log-level", "-l",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    default=None,
    help="Override the logging level (e.g., DEBUG, INFO).",
)
@click.option(
    "--log-format",
    type=click.Choice(["console", "json"], case_sensitive=False),
    default=None,
    help="Override logging format.",
)
@click.pass_context
def cli(ctx: click.Context, config_file: Optional[str], log_level: Optional[str], log_format: Optional[str]) -> None:
    """openapi-mcp - Converts OpenAPI operations into tool schemas."""
    try:
        if config_file:
            cfg = Config.from_file(Path(config_file))
        else:
            # Environment variables (and .env if present)
            cfg = Config()
    except Exception as e:
        click.echo(f"Error loading configuration: {e}", err=True)
        sys.exit(1)

    if log_level:
        cfg.logging.level = log_level.upper()
    if log_format:
        cfg.logging.format = log_format.lower()

    configure_logging(cfg.logging)
    ctx.ensure_object(dict)
    ctx.obj["config"] = cfg


@cli.command()
@click.argument("document", type=click.Path(exists=True, dir_okay=False, resolve_path=True))
@click.option(
    "--format", "-f", "output_format",
    type=click.Choice(["registry", "openai", "anthropic"], case_sensitive=False),
    default="registry",
    show_default=True,
    help="Which projection of the compiled tools to emit.",
)
@click.option(
    "--output-file", "-o",
    type=click.Path(dir_okay=False, writable=True, resolve_path=True),
    help="Write the JSON output here instead of stdout.",
)
@click.option("--include-operation", multiple=True, help="Operation id glob to keep. Can be used multiple times.")
@click.option("--exclude-operation", multiple=True, help="Operation id glob to drop. Can be used multiple times.")
@click.pass_context
def convert(
    ctx: click.Context,
    document: str,
    output_format: str,
    output_file: Optional[str],
    include_operation: List[str],
    exclude_operation: List[str],
) -> None:
    """Converts an OpenAPI JSON DOCUMENT into tool definitions."""
    config: Config = ctx.obj["config"]
    if include_operation:
        config.filter.include_operations = list(include_operation)
    if exclude_operation:
        config.filter.exclude_operations = list(exclude_operation)

    try:
        openapi_document = load_document(Path(document))
    except DocumentLoadError as e:
        click.echo(str(e), err=True)
        sys.exit(1)

    tool_set = ToolSetBuilder.from_config(config).build(openapi_document)

    output_format = output_format.lower()
    if output_format == "openai":
        result: Any = tool_set.to_openai_tools()
    elif output_format == "anthropic":
        result = tool_set.to_anthropic_tools()
    else:
        result = tool_set.to_registry().to_dict()

    rendered = json.dumps(result, indent=2)
    if output_file:
        try:
            with open(output_file, "w", encoding="utf-8") as f:
                f.write(rendered)
        except OSError as e:
            click.echo(f"Error writing output file {output_file}: {e}", err=True)
            sys.exit(1)
        click.echo(f"{len(tool_set.entries)} tools written to {output_file}", err=True)
    else:
        click.echo(rendered)

    warnings = [issue for issue in tool_set.issues if issue.severity != ValidationSeverity.INFO]
    if warnings:
        click.echo(f"\n{len(warnings)} conversion warning(s):", err=True)
        for issue in warnings:
            where = f" [{issue.location}]" if issue.location else ""
            pointer = f" ({issue.pointer})" if issue.pointer else ""
            click.echo(f"  {issue.code}{where}{pointer}: {issue.message}", err=True)


@cli.command()
@click.pass_context
def version(ctx: click.Context) -> None:
    """Show version information."""
    from . import __version__
    click.echo(f"openapi-mcp v{__version__}")


@cli.command()
@click.pass_context
def config_show(ctx: click.Context) -> None:
    """Show current configuration."""
    config = ctx.obj["config"]
    click.echo(json.dumps(config.model_dump(mode="json"), indent=2))


if __name__ == "__main__":
    cli()
