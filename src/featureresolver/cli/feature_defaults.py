#!/usr/bin/env python3
"""Command-line tool for compiling and resolving edition feature defaults.

Commands:
- validate: check that a feature set schema and its extensions are well formed
- compile: compile per-edition defaults into a YAML artifact
- resolve: resolve the features of one edition, merging parent and child overrides
- init-config: write a default configuration file
"""

import sys
from pathlib import Path
from typing import Any, NoReturn

import click
import yaml

from featureresolver.config import ConfigManager, ResolverConfig
from featureresolver.defaults import compile_defaults, dump_defaults, load_defaults
from featureresolver.errors import FeatureResolutionError
from featureresolver.resolver import FeatureResolver
from featureresolver.schema import (
    DescriptorPool,
    FieldDescriptor,
    MessageType,
    validate_descriptor,
    validate_extension,
)
from featureresolver.system.path_resolver import PathResolver
from featureresolver.system.structlog_configurator import configure_structlog
from featureresolver.values import FeatureValue


def fail(message: str) -> NoReturn:
    """Report an error on stderr and exit with status 1."""
    click.echo(click.style(f"Error: {message}", fg="red"), err=True)
    sys.exit(1)


def load_schema(
    schema_path: Path, feature_set_name: str, extension_names: tuple[str, ...]
) -> tuple[DescriptorPool, MessageType | None, list[FieldDescriptor | None]]:
    """Load a schema and look up the feature set and its extensions.

    When no extension names are given, every registered extension of the
    feature set is used.
    """
    pool = DescriptorPool.from_yaml(schema_path)
    feature_set = pool.find_message(feature_set_name)
    if extension_names:
        extensions = [pool.find_extension(name) for name in extension_names]
    elif feature_set is not None:
        extensions = list(pool.extensions_of(feature_set))
    else:
        extensions = []
    return pool, feature_set, extensions


def load_features(
    path: Path | None, feature_set: MessageType, pool: DescriptorPool
) -> FeatureValue:
    """Load features from a YAML mapping file, or return empty features."""
    if path is None:
        return FeatureValue(feature_set)
    try:
        data = yaml.safe_load(path.read_text()) or {}
        if not isinstance(data, dict):
            raise TypeError("expected a mapping of feature names to values")
        return FeatureValue.from_dict(feature_set, data, pool)
    except (yaml.YAMLError, KeyError, TypeError, ValueError) as e:
        fail(f"Invalid features in {path}: {e}")


@click.group()
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Configuration file (default: $FEATURERESOLVER_CONFIG or ~/.feature-resolver/config.yaml)",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None) -> None:
    """Compile and resolve edition feature defaults."""
    ctx.ensure_object(dict)
    manager = ConfigManager(PathResolver(), config_path)
    try:
        config = manager.load()
    except ValueError as e:
        fail(str(e))

    configure_structlog(config)
    ctx.obj["config_manager"] = manager
    ctx.obj["config"] = config


@cli.command()
@click.argument("schema", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--feature-set", help="Fully qualified feature set type (default: from config)")
@click.option("--extension", "extension_names", multiple=True, help="Extension to include")
@click.pass_obj
def validate(
    obj: dict[str, Any], schema: Path, feature_set: str | None, extension_names: tuple[str, ...]
) -> None:
    """Validate a feature set schema and its extensions."""
    config: ResolverConfig = obj["config"]
    feature_set_name = feature_set or config.feature_set

    try:
        _pool, feature_set_type, extensions = load_schema(
            schema, feature_set_name, extension_names
        )
        if feature_set_type is None:
            fail(f"Unable to find definition of {feature_set_name} in {schema}.")
        validate_descriptor(feature_set_type)
        for extension in extensions:
            validate_descriptor(validate_extension(feature_set_type, extension))
    except FeatureResolutionError as e:
        fail(str(e))

    click.echo(
        click.style(
            f"✓ {feature_set_name} is valid ({len(extensions)} extensions)",
            fg="green",
        )
    )


@cli.command("compile")
@click.argument("schema", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--feature-set", help="Fully qualified feature set type (default: from config)")
@click.option("--extension", "extension_names", multiple=True, help="Extension to include")
@click.option("--minimum-edition", help="Earliest supported edition (default: from config)")
@click.option("--maximum-edition", help="Latest supported edition (default: from config)")
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write the compiled defaults here instead of stdout",
)
@click.pass_obj
def compile_command(
    obj: dict[str, Any],
    schema: Path,
    feature_set: str | None,
    extension_names: tuple[str, ...],
    minimum_edition: str | None,
    maximum_edition: str | None,
    output: Path | None,
) -> None:
    """Compile per-edition feature defaults from SCHEMA."""
    config: ResolverConfig = obj["config"]

    try:
        _pool, feature_set_type, extensions = load_schema(
            schema, feature_set or config.feature_set, extension_names
        )
        compiled = compile_defaults(
            feature_set_type,
            extensions,
            minimum_edition or config.minimum_edition,
            maximum_edition or config.maximum_edition,
        )
    except FeatureResolutionError as e:
        fail(str(e))

    text = dump_defaults(compiled, output)
    if output is None:
        click.echo(text, nl=False)
    else:
        click.echo(
            click.style(
                f"✓ Compiled defaults for editions {', '.join(compiled.editions)} to {output}",
                fg="green",
            )
        )


@cli.command()
@click.argument("defaults", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("schema", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--edition", required=True, help="Edition to resolve features for")
@click.option("--feature-set", help="Fully qualified feature set type (default: from config)")
@click.option(
    "--parent",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="YAML file with the parent's resolved features",
)
@click.option(
    "--child",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="YAML file with the features set on the child",
)
@click.pass_obj
def resolve(
    obj: dict[str, Any],
    defaults: Path,
    schema: Path,
    edition: str,
    feature_set: str | None,
    parent: Path | None,
    child: Path | None,
) -> None:
    """Resolve the features of EDITION using compiled DEFAULTS and SCHEMA."""
    config: ResolverConfig = obj["config"]
    feature_set_name = feature_set or config.feature_set

    try:
        pool = DescriptorPool.from_yaml(schema)
        feature_set_type = pool.find_message(feature_set_name)
        if feature_set_type is None:
            fail(f"Unable to find definition of {feature_set_name} in {schema}.")
        compiled = load_defaults(defaults, feature_set_type, pool)
        resolver = FeatureResolver.create(edition, compiled)
        merged = resolver.merge_features(
            load_features(parent, feature_set_type, pool),
            load_features(child, feature_set_type, pool),
        )
    except FeatureResolutionError as e:
        fail(str(e))

    text = yaml.safe_dump(merged.to_dict(), default_flow_style=False, sort_keys=False)
    click.echo(text, nl=False)


@cli.command("init-config")
@click.option("--force", is_flag=True, help="Overwrite an existing configuration file")
@click.pass_obj
def init_config(obj: dict[str, Any], force: bool) -> None:
    """Write the default configuration file."""
    manager: ConfigManager = obj["config_manager"]
    if manager.config_path.exists() and not force:
        fail(f"{manager.config_path} already exists (use --force to overwrite)")

    manager.save(ResolverConfig())
    click.echo(click.style(f"✓ Wrote default configuration to {manager.config_path}", fg="green"))


def main() -> None:
    """Entry point for the feature defaults CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()
