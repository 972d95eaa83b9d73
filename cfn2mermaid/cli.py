"""
cfn2mermaid CLI entry point.
"""
import os
import sys
from typing import List, Optional

import click
from rich.console import Console
from rich.table import Table

from cfn2mermaid import __version__
from cfn2mermaid.config import OUTPUT_FORMATS, ConfigError, load_config
from cfn2mermaid.detect import detect_format
from cfn2mermaid.graph import builder
from cfn2mermaid.models.graph import Edge
from cfn2mermaid.parsers import cloudformation
from cfn2mermaid.parsers.cloudformation import TemplateParseError
from cfn2mermaid.reporters import json_reporter, markdown, mermaid


def _print_banner(no_color: bool = False) -> None:
    c = Console(stderr=True, no_color=no_color)
    c.print(f"[bold cyan]cfn2mermaid[/bold cyan]  [dim]v{__version__}[/dim]\n")


def _print_edge_table(edges: List[Edge], no_color: bool) -> None:
    """Print a rich edge table to stderr."""
    tbl = Table(title="Edges", show_header=True, header_style="bold")
    tbl.add_column("#", style="dim", width=4)
    tbl.add_column("From", width=30)
    tbl.add_column("Kind", width=18)
    tbl.add_column("To", width=30)
    tbl.add_column("Kind", width=18)

    for i, e in enumerate(edges, 1):
        tbl.add_row(
            str(i),
            e.source.name,
            e.source.kind.value,
            e.target.name,
            e.target.kind.value,
        )

    Console(stderr=True, no_color=no_color).print(tbl)


@click.group(context_settings=dict(help_option_names=["-h", "--help"]))
@click.version_option(__version__)
@click.pass_context
def cli(ctx):
    """cfn2mermaid: CloudFormation templates to Mermaid diagrams."""
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        ctx.exit()


@cli.command()
@click.argument("input_file", type=click.Path())
@click.option(
    "--output", "-o",
    type=click.Path(),
    default=None,
    help="Write the result to this file (default: stdout).",
)
@click.option(
    "--format", "output_format",
    type=click.Choice(list(OUTPUT_FORMATS), case_sensitive=False),
    default=None,
    help="Output format (default: mermaid, or 'format' from the config file).",
)
@click.option(
    "--direction",
    type=click.Choice(list(mermaid.DIRECTIONS), case_sensitive=False),
    default=None,
    help="Flowchart direction (default: LR, or 'direction' from the config file).",
)
@click.option(
    "--config", "config_path",
    type=click.Path(),
    default=None,
    help="Settings file (default: ./cfn2mermaid.yaml if present).",
)
@click.option(
    "--summary",
    is_flag=True,
    default=False,
    help="Also print the edge table to stderr.",
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    default=False,
    help="Warn about event source mappings left out of the diagram.",
)
@click.option(
    "--no-color",
    is_flag=True,
    default=False,
    help="Disable rich terminal color output.",
)
def convert(
    input_file: str,
    output: Optional[str],
    output_format: Optional[str],
    direction: Optional[str],
    config_path: Optional[str],
    summary: bool,
    verbose: bool,
    no_color: bool,
) -> None:
    """
    Convert a CloudFormation template into a Mermaid dependency diagram.

    INPUT_FILE is a JSON or YAML template.
    """
    _print_banner(no_color)
    stderr = Console(stderr=True, no_color=no_color)

    try:
        cfg = load_config(config_path)
    except ConfigError as exc:
        stderr.print(f"[red]Config error:[/red] {exc}")
        sys.exit(2)
    fmt = (output_format or cfg.output_format).lower()
    flow = (direction or cfg.direction).upper()

    # 1. Parse
    if not os.path.isfile(input_file):
        stderr.print(f"[red]No such file:[/red] {input_file}")
        sys.exit(2)
    if detect_format(input_file) != "cloudformation":
        stderr.print(f"[red]Not a CloudFormation template:[/red] {input_file}")
        sys.exit(2)

    with stderr.status(f"[bold]Parsing {input_file}…"):
        try:
            template = cloudformation.parse_file(input_file)
        except TemplateParseError as exc:
            stderr.print(f"[red]Parse error:[/red] {exc}")
            sys.exit(2)

    stderr.print(f"Found [bold]{len(template)}[/bold] resources.")

    # 2. Build the graph
    with stderr.status("[bold]Resolving references…"):
        edges = builder.build(template)
        unresolved = builder.find_unresolved_mappings(template)

    stderr.print(f"Discovered [bold]{len(edges)}[/bold] edges.")
    if verbose:
        for r in unresolved:
            stderr.print(
                f"[yellow]Warning:[/yellow] event source mapping '{r.name}' "
                "does not bind a known queue to a known function; skipped."
            )

    if summary:
        _print_edge_table(edges, no_color)

    # 3. Render
    if fmt == "json":
        content = json_reporter.build_report(template, edges, input_file)
    elif fmt == "markdown":
        content = markdown.build_report(
            template, edges, input_file, direction=flow, unresolved=unresolved
        )
    else:
        content = mermaid.render(edges, direction=flow)

    if output:
        with open(output, "w", encoding="utf-8", newline="\n") as fh:
            fh.write(content)
        stderr.print(f"Diagram written to [bold]{output}[/bold]")
    else:
        click.echo(content)

    sys.exit(0)


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
