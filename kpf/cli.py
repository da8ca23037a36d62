# SPDX-FileCopyrightText: Copyright (c) 2024-2026, Kpf Developers (See LICENSE for list)
# SPDX-License-Identifier: BSD 3-Clause License
import json
import logging
from typing import Optional

import jsonpath
import rich.table
import rich.tree
import typer
import yaml
from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from typing_extensions import Annotated

import kpf
from kpf._objects import Event

from ._typer_utils import err_console, fail, register

console = Console()

SETTINGS_ERRORS = (
    ValueError,
    yaml.YAMLError,
    jsonpath.JSONPathError,
    jsonpath.JSONPointerError,
    jsonpath.JSONPatchError,
)
app = typer.Typer(
    no_args_is_help=True,
    help="Start, stop and inspect port-forward sessions into Kubernetes namespaces.",
)
settings_app = typer.Typer(
    no_args_is_help=True,
    name="settings",
    help="Inspect and change kpf settings.",
)

EVENT_STYLES = {
    kpf.EventKind.STARTED: "green",
    kpf.EventKind.REVIEW_STARTED: "green",
    kpf.EventKind.STOPPED: "yellow",
    kpf.EventKind.CONFIG_OPENED: "blue",
}


def notify(event: Event) -> None:
    """Print lifecycle events, failures go to stderr."""
    if event.kind.is_failure:
        err_console.print(f"[red]{event.kind.value}[/red]: {escape(event.message)}")
    else:
        style = EVENT_STYLES.get(event.kind, "white")
        console.print(f"[{style}]{event.kind.value}[/{style}]: {escape(event.message)}")


def _session(ctx: typer.Context, open_files: bool = True) -> kpf.Session:
    return kpf.Session(
        settings=ctx.obj.get("config"),
        runner=ctx.obj.get("runner"),
        notify=notify,
        opener=typer.launch if open_files else None,
    )


@app.callback()
def main(
    ctx: typer.Context,
    config: Annotated[
        Optional[str],
        typer.Option("--config", "-c", help="Path to a YAML settings file."),
    ] = None,
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Show debug logging.")
    ] = False,
):
    """Start, stop and inspect port-forward sessions into Kubernetes namespaces."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )
    ctx.ensure_object(dict)["config"] = config


def status(ctx: typer.Context):
    """Show whether a port-forward session is active."""
    state = _session(ctx).state()
    if state.active:
        console.print(f"Port-forward [green]active[/green] in {state.display_namespace}")
    else:
        console.print("Port-forward [dim]inactive[/dim]")


def menu(ctx: typer.Context):
    """List the actions available for the current session state."""
    built = _session(ctx).build_menu()
    tree = rich.tree.Tree("kpf")
    index = {id(item): n for n, item in enumerate(built.items, start=1)}
    groups = [(built.namespace_title, built.session_items)]
    if not built.state.active:
        groups.append((built.review_title, built.review_items))
    groups.append((built.help_title, built.help_items))
    for title, items in groups:
        branch = tree.add(f"[bold]{title}[/bold]")
        for item in items:
            branch.add(f"[cyan]{index[id(item)]}[/cyan] {escape(item.label)}")
    console.print(tree)


def run(
    ctx: typer.Context,
    number: Annotated[int, typer.Argument(help="Item number shown by `kpf menu`.")],
):
    """Execute an item of the menu, by number."""
    session = _session(ctx)
    built = session.build_menu()
    if not 1 <= number <= len(built):
        raise fail(ValueError(f"no menu item {number}"))
    session.execute_action(built.items[number - 1])


def start(
    ctx: typer.Context,
    namespace: Annotated[str, typer.Argument()],
    release: Annotated[
        Optional[str],
        typer.Option("--release", "-r", help="Start a review port-forward for this release."),
    ] = None,
):
    """Start a port-forward session in a namespace."""
    item = (
        kpf.StartReview(namespace, release) if release else kpf.StartPlain(namespace)
    )
    _session(ctx).execute_action(item)


def stop(ctx: typer.Context):
    """Stop port-forwarding. This tears down every session, not only the active namespace."""
    session = _session(ctx)
    state = session.state()
    session.execute_action(kpf.Stop(state.namespace))


def open_config(
    ctx: typer.Context,
    print_only: Annotated[
        bool, typer.Option("--print", help="Print the path instead of opening it.")
    ] = False,
):
    """Open the configuration file of the active session."""
    session = _session(ctx, open_files=not print_only)
    state = session.state()
    if not state.active:
        raise fail(ValueError("no active port-forward session"))
    result = session.execute_action(kpf.OpenConfig(state.namespace))
    if print_only:
        typer.echo(result.stdout)


async def settings_show(ctx: typer.Context):
    """Display the merged settings."""
    settings = await kpf.Settings(ctx.obj.get("config"))
    table = rich.table.Table(box=box.SIMPLE)
    table.add_column("Key", style="magenta", no_wrap=True)
    table.add_column("Value", style="yellow")
    for key, value in settings.raw.items():
        table.add_row(key, value if isinstance(value, str) else json.dumps(value))
    console.print(table)


async def settings_get(ctx: typer.Context, path: Annotated[str, typer.Argument()]):
    """Query settings with a JSONPath expression, such as `$.help_links[*].url`."""
    settings = await kpf.Settings(ctx.obj.get("config"))
    for value in settings.get(path=path):
        typer.echo(value if isinstance(value, str) else json.dumps(value))


async def settings_set(
    ctx: typer.Context,
    pointer: Annotated[str, typer.Argument(help="JSON Pointer, such as /timeout.")],
    value: Annotated[str, typer.Argument(help="YAML value.")],
):
    """Set a value in the settings file."""
    settings = await kpf.Settings(ctx.obj.get("config"))
    await settings.set(pointer, yaml.safe_load(value))
    console.print(f'Set "{pointer}" in {settings.path}.')


register(settings_app, settings_show, "show", errors=SETTINGS_ERRORS)
register(settings_app, settings_get, "get", errors=SETTINGS_ERRORS)
register(settings_app, settings_set, "set", errors=SETTINGS_ERRORS)

register(app, status, errors=kpf.KpfError)
register(app, menu, errors=kpf.KpfError)
register(app, run, errors=kpf.KpfError)
register(app, start, errors=(ValueError, *kpf.KpfError))
register(app, stop, errors=kpf.KpfError)
register(app, open_config, "open-config", errors=kpf.KpfError)
register(app, settings_app, "settings")


def go():
    app()


if __name__ == "__main__":
    go()
