#!/usr/bin/env python3
"""iocbox CLI entry point: inspect and check composition roots."""

import importlib
import json
import os
import sys
from typing import Any, Optional, Tuple

import click
from rich import print
from rich.table import Table

from iocbox import __version__
from iocbox.config import ContainerConfig, load_config
from iocbox.container import Container
from iocbox.exceptions import (
    AutowireError,
    AutowireReason,
    ConfigError,
    ExitCode,
    IocboxError,
    ValidationError,
    handle_cli_error,
)
from iocbox.introspection import TypeIntrospector
from iocbox.logging_config import get_logger, log_context, setup_logging
from iocbox.validation import accepts_no_arguments, validate_identifier

logger = get_logger(__name__)


def load_composition_root(root: str, config: ContainerConfig) -> Container:
    """Load the Container named by ``module:attribute``.

    The attribute is either a Container or a callable returning one. A
    callable that takes an argument is given the resolved ContainerConfig.
    """
    module_name, sep, attribute = root.partition(":")
    if not sep or not module_name.strip() or not attribute.strip():
        raise ValidationError(
            f"Composition root must look like 'module:attribute', got '{root}'",
            field="root",
            value=root,
            suggestion="For example: myapp.bootstrap:build_container",
        )

    # the working directory is importable, as with `python -m`
    if os.getcwd() not in sys.path:
        sys.path.insert(0, os.getcwd())

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigError(
            f"Cannot import composition root module {module_name}: {e}",
            context={'root': root},
        ) from e

    target: Any = module
    for part in attribute.split("."):
        target = getattr(target, part, None)
        if target is None:
            raise ConfigError(
                f"Module {module_name} has no attribute {attribute}",
                context={'root': root},
            )

    if not isinstance(target, Container) and callable(target):
        target = target() if accepts_no_arguments(target) else target(config)

    if not isinstance(target, Container):
        raise ConfigError(
            f"{root} did not provide a Container, got {type(target).__name__}",
            context={'root': root},
        )

    logger.debug(f"Loaded composition root {root} with {len(target)} interfaces")
    return target


@click.group(invoke_without_command=True)
@click.version_option(__version__, prog_name="iocbox")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose (DEBUG) logging")
@click.option("--log-file", type=str, default=None, help="Path to log file")
@click.option("--print-config", is_flag=True, help="Print resolved configuration and exit")
@click.option("--config", "config_path", type=str, default=None, help="Path to config file")
@click.pass_context
def main(ctx: click.Context, verbose: bool, log_file: Optional[str], print_config: bool,
         config_path: Optional[str]):
    """iocbox - inspect and verify inversion-of-control containers."""
    try:
        config = load_config(config_path)
    except ConfigError as e:
        handle_cli_error(e, verbose)

    setup_logging(
        level=config.log_level,
        log_file=log_file,
        json_format=config.log_json,
        verbose=verbose,
    )
    logger.debug(f"iocbox CLI started (v{__version__})")

    if print_config:
        click.echo(json.dumps(config.to_dict(), indent=2))
        ctx.exit(ExitCode.SUCCESS.value)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        ctx.exit(ExitCode.SUCCESS.value)

    ctx.obj = {"config": config, "verbose": verbose}


@main.command("list")
@click.argument("root", type=str)
@click.pass_context
def list_interfaces(ctx: click.Context, root: str):
    """List the identifiers registered by a composition root."""
    try:
        container = load_composition_root(root, ctx.obj["config"])
    except IocboxError as e:
        handle_cli_error(e, ctx.obj["verbose"])

    table = Table(title=f"Interfaces registered by {root}")
    table.add_column("#", justify="right")
    table.add_column("Identifier")
    table.add_column("Resolves to class")

    for index, identifier in enumerate(container.get_instance_list(), start=1):
        importable = container.introspector.resolve_type(identifier) is not None
        table.add_row(str(index), identifier, "yes" if importable else "[yellow]no[/]")

    print(table)
    print(f"[green]{len(container)} interface(s)[/]")


@main.command()
@click.argument("root", type=str)
@click.argument("identifiers", nargs=-1)
@click.pass_context
def check(ctx: click.Context, root: str, identifiers: Tuple[str, ...]):
    """Resolve every registered identifier (or only IDENTIFIERS) through get_instance."""
    verbose = ctx.obj["verbose"]
    try:
        container = load_composition_root(root, ctx.obj["config"])
        targets = [validate_identifier(i) for i in identifiers] or container.get_instance_list()
    except IocboxError as e:
        handle_cli_error(e, verbose)

    table = Table(title=f"Resolution check for {root}")
    table.add_column("Identifier")
    table.add_column("Status")
    table.add_column("Detail")

    failures = 0
    for identifier in targets:
        try:
            instance = container.get_instance(identifier)
        except Exception as e:
            # any factory failure is reported, not raised
            failures += 1
            context = log_context(e.context) if isinstance(e, IocboxError) else {}
            context.setdefault("identifier", identifier)
            logger.debug("Resolution failed", exc_info=verbose, extra=context)
            detail = e.message if isinstance(e, IocboxError) else f"{type(e).__name__}: {e}"
            table.add_row(identifier, "[red]FAIL[/]", detail)
        else:
            table.add_row(identifier, "[green]OK[/]", type(instance).__qualname__)

    print(table)

    if failures:
        print(f"[red]{failures} of {len(targets)} interface(s) failed to resolve[/]")
        ctx.exit(ExitCode.RESOLUTION_ERROR.value)

    print(f"[green]All {len(targets)} interface(s) resolved[/]")


@main.command()
@click.argument("type_name", type=str)
@click.pass_context
def inspect(ctx: click.Context, type_name: str):
    """Show the constructor parameters autowire would see for TYPE_NAME."""
    introspector = TypeIntrospector()
    try:
        identifier = validate_identifier(type_name)
        cls = introspector.resolve_type(identifier)
        if cls is None:
            raise AutowireError(
                f"{identifier} cannot be found",
                target=identifier,
                reason=AutowireReason.TYPE_NOT_FOUND,
                suggestion="Use a fully qualified, importable class name",
            )
    except IocboxError as e:
        handle_cli_error(e, ctx.obj["verbose"])

    parameters = introspector.constructor_parameters(cls)
    constructible = introspector.is_constructible(identifier)
    print(f"[bold]{identifier}[/] ({'concrete' if constructible else 'not autowirable'})")

    if not parameters:
        print("[dim]No constructor parameters[/]")
        return

    table = Table()
    table.add_column("Parameter")
    table.add_column("Declared type")
    table.add_column("Default")
    table.add_column("Note")

    for param in parameters:
        note = ""
        if param.is_variadic:
            note = "[red]variadic[/]"
        elif param.declared_type is None:
            note = "[red]untyped[/]"
        elif introspector.is_constructible(param.declared_type):
            note = "autowired"
        table.add_row(
            param.name,
            param.declared_type or "-",
            repr(param.default) if param.has_default else "-",
            note,
        )

    print(table)


if __name__ == "__main__":
    main()
