import json
import logging
from pathlib import Path

import click

from .cli_utils import reconstruct_command_line
from .config import MergeConfig
from .merger import CodeMergeError
from .report import render_report
from .walker import OverlayWalker


@click.command()
@click.option("--config", "-c", default=None, type=click.Path(exists=True, dir_okay=False, resolve_path=True))
@click.option("--report", "-r", default=None, type=click.Path(dir_okay=False, resolve_path=True), help="Write a Markdown report of every merge decision")
@click.option("--format", "formatter", default=None, type=click.Choice(["black", "ruff"]), help="Format merged files with black or ruff")
@click.option("--no-reorder", is_flag=True, default=False, help="Keep baseline declaration order instead of the canonical order")
@click.option("--verbose", "-v", is_flag=True, default=False)
@click.argument("generated", type=click.Path(exists=True, file_okay=False, resolve_path=True))
@click.argument("custom", type=click.Path(exists=True, file_okay=False, resolve_path=True))
@click.argument("output", type=click.Path(file_okay=False, resolve_path=True))
def overlay_merge(config, report, formatter, no_reorder, verbose, generated, custom, output):
    """Merge the CUSTOM overlay tree over the GENERATED tree into OUTPUT."""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING, format="%(levelname)s %(name)s: %(message)s")

    if config is not None:
        with open(config) as f:
            config = MergeConfig.from_dict(json.load(f))
    else:
        config = MergeConfig()

    # CLI flags override the config file
    if no_reorder:
        config.reorder = False
    if formatter is not None:
        config.formatter.enabled = True
        config.formatter.tool = formatter

    try:
        reports = OverlayWalker(config).run(Path(generated), Path(custom), Path(output))
    except (CodeMergeError, OSError) as e:
        raise click.ClickException(str(e)) from e

    if report is not None:
        with open(report, "w", encoding="utf-8") as f:
            f.write(render_report(reports, reconstruct_command_line(overlay_merge)))

    click.echo(f"Merged {len(reports)} file(s) into {output}")
