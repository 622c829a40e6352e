"""Rapid CLI - Main Entry Point.

Commands:
    project  - Project a JSON/YAML document through declared schemas
    config   - Show the resolved engine configuration
"""

import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click

from . import __cli_name__
from .. import __version__
from ..config import ConfigError
from ..faults import Fault
from .utils.colors import error, warning, _CROSS


@click.group()
@click.version_option(version=__version__, prog_name=__cli_name__)
@click.option('--verbose', '-v', is_flag=True, help='Log projection details to stderr')
@click.pass_context
def cli(ctx, verbose: bool):
    """Declarative projection of documents into JSON.

    \b
    Quick start:
      rapid project data.yaml --schemas schemas.yaml
      rapid project data.yaml --schemas schemas.yaml --only id,name
      rapid config --config rapid.yaml
    """
    ctx.ensure_object(dict)
    ctx.obj['verbose'] = verbose
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(levelname)s %(name)s: %(message)s",
            stream=sys.stderr,
        )


# ============================================================================
# Commands
# ============================================================================

@cli.command('project')
@click.argument('data_file', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option('--schemas', '-s', 'schemas_file', required=True,
              type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help='YAML/JSON file declaring schemas per kind')
@click.option('--root', type=str, help='Kind of the top-level node(s)')
@click.option('--only', type=str, help='Comma-separated base attributes to keep')
@click.option('--except', 'except_', type=str, help='Comma-separated base attributes to drop')
@click.option('--extra-fields', type=str, help='Comma-separated optional fields to add')
@click.option('--associations', type=str, help='Comma-separated associations to add')
@click.option('--param', '-p', 'params', multiple=True, help='Request parameter NAME=VALUE (repeatable)')
@click.option('--key', type=str, help='Wrap the payload under this key')
@click.option('--config', '-c', 'config_files', multiple=True, help='Engine config file (repeatable)')
@click.option('--indent', type=int, default=2, show_default=True, help='JSON indentation')
@click.pass_context
def project(
    ctx,
    data_file: Path,
    schemas_file: Path,
    root: Optional[str],
    only: Optional[str],
    except_: Optional[str],
    extra_fields: Optional[str],
    associations: Optional[str],
    params: tuple,
    key: Optional[str],
    config_files: tuple,
    indent: int,
):
    """
    Project DATA_FILE and print the result as JSON.

    Examples:
      rapid project testers.yaml -s schemas.yaml --root tester
      rapid project testers.yaml -s schemas.yaml -p fields=id -p post_fields=id
      rapid project testers.yaml -s schemas.yaml --extra-fields last_name --key testers
    """
    from .commands.project import parse_params, run_projection

    try:
        request_params = parse_params(params)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--param")

    options = {"params": request_params}
    for name, value in (
        ("only", only),
        ("except", except_),
        ("extra_fields", extra_fields),
        ("associations", associations),
        ("key", key),
    ):
        if value is not None:
            options[name] = value

    try:
        result = run_projection(
            data_file,
            schemas_file,
            root=root,
            options=options,
            config_paths=config_files,
        )
    except (Fault, ConfigError) as e:
        error(f"  {_CROSS} {e}")
        sys.exit(1)

    for message in result.messages:
        warning(f"  warning: {message}")

    click.echo(json.dumps(result.data, indent=indent or None, default=str))


@cli.command('config')
@click.option('--config', '-c', 'config_files', multiple=True, help='Engine config file (repeatable)')
def config(config_files: tuple):
    """Print the resolved engine configuration as JSON."""
    from .commands.config import resolved_config

    try:
        data = resolved_config(config_files)
    except ConfigError as e:
        error(f"  {_CROSS} {e}")
        sys.exit(1)

    click.echo(json.dumps(data, indent=2, sort_keys=True))


def main():
    """Entry point for `rapid` command."""
    cli(obj={})


if __name__ == '__main__':
    main()
