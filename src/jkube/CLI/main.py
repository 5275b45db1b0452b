"""
Command Line Interface for jkube.
"""
import logging
import os
from datetime import datetime
from functools import wraps

import click

from ..BUILDERS.config_helper import init_image_configuration
from ..ENRICHERS.base_enricher import PlatformMode
from ..errors import ConfigurationError, JKubeError
from ..MANAGERS.resource_service import ResourceService
from ..MODELS.container import Container
from ..PARSERS.project_config_parser import DEFAULT_DESCRIPTOR, ProjectConfigParser, load_properties
from ..RUNNERS.container_naming import format_container_name
from ..RUNNERS.start_order_resolver import StartOrderResolver


def handle_errors(f):
    """Reports build errors as a message and a non zero exit code."""
    @wraps(f)
    def wrapper(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except JKubeError as e:
            click.echo(f"Error: {e}", err=True)
            click.get_current_context().exit(1)
    return wrapper


@click.group()
@click.option('--file', '-f', default=DEFAULT_DESCRIPTOR, help='Project descriptor path')
@click.option('--properties', '-p', 'properties_file', default=None, help='Properties file overriding project properties')
@click.option('--define', '-D', 'defines', multiple=True, help='Property override as key=value, wins over the properties file')
@click.option('--verbose', '-v', is_flag=True, help='Log debug output')
@click.pass_context
def cli(ctx, file, properties_file, defines, verbose):
    """
    jkube - Container image and Kubernetes manifest generation for Java projects.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj['file'] = file
    ctx.obj['properties_file'] = properties_file
    ctx.obj['defines'] = defines


def _properties(ctx):
    """Properties of the properties file, overridden by the -D definitions."""
    properties = load_properties(ctx.obj['properties_file']) if ctx.obj.get('properties_file') else {}
    for define in ctx.obj.get('defines', ()):
        key, sep, value = define.partition('=')
        if not sep or not key.strip():
            raise ConfigurationError(f"Invalid property definition '{define}', expected key=value")
        properties[key.strip()] = value
    return properties or None


def _load(ctx, name_filter=None):
    """Parses the descriptor and resolves its images."""
    file = ctx.obj['file']
    if not os.path.exists(file):
        click.echo(f"Error: {file} not found.", err=True)
        ctx.exit(1)
    config = ProjectConfigParser(_properties(ctx)).parse(file)
    timestamp = config.project.build_timestamp
    build_timestamp = datetime.fromtimestamp(timestamp / 1000) if timestamp is not None else None
    images = init_image_configuration(config.project, config.images, name_filter, build_timestamp=build_timestamp)
    return config, images, build_timestamp


@cli.command()
@click.option('--mode', '-m', type=click.Choice([m.value for m in PlatformMode]), default=PlatformMode.KUBERNETES.value)
@click.option('--out', '-o', default=None, help='Output directory')
@click.pass_context
@handle_errors
def resource(ctx, mode, out):
    """Generate the Kubernetes or OpenShift manifests."""
    config, images, _ = _load(ctx)
    result = ResourceService(config, images).write_resources(PlatformMode(mode), out)
    for path in result.resource_files:
        click.echo(path)
    click.echo(f"Manifest written to {result.manifest}")


@cli.command()
@click.option('--filter', 'name_filter', default=None, help='Comma separated image names or aliases')
@click.pass_context
@handle_errors
def images(ctx, name_filter):
    """List the resolved image names."""
    _, resolved, _ = _load(ctx, name_filter)
    for image in resolved:
        click.echo(f"{image.alias}\t{image.name}" if image.alias else image.name)


@cli.command(name='start-order')
@click.pass_context
@handle_errors
def start_order(ctx):
    """Print the order in which the image containers start."""
    _, resolved, _ = _load(ctx)
    for image in StartOrderResolver().resolve(resolved):
        click.echo(image.alias or image.name)


@cli.command(name='container-name')
@click.argument('image')
@click.option('--pattern', default=None, help='Naming pattern, e.g. %n-%i')
@click.option('--existing', multiple=True, help='Names of existing containers')
@click.pass_context
@handle_errors
def container_name(ctx, image, pattern, existing):
    """Print the name of the next container for IMAGE (name or alias)."""
    _, resolved, build_timestamp = _load(ctx)
    matching = [i for i in resolved if image in (i.name, i.alias)]
    if not matching:
        click.echo(f"Error: No image {image} configured.", err=True)
        ctx.exit(1)
    containers = [Container(name=name, id=name) for name in existing]
    click.echo(format_container_name(matching[0], pattern, build_timestamp, containers))


def main():
    """
    Main entry point for the CLI.
    """
    cli(obj={})


if __name__ == '__main__':
    main()
