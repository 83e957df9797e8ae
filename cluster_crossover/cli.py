"""
Command line entry point: overlap tables and resolution crossover graphs from a labels table.
"""
import os

import click

from .config import CrossoverConfig
from .core_utilities import perf_monitor
from .crossover_graph import ResolutionTreeBuilder
from .errors import CrossoverError
from .io import read_labelings, save_graph, save_overlap
from .stability import StabilityScorer
from .summary import CrossoverSummary


def _split_columns(value):
    columns = [c.strip() for c in value.split(',') if c.strip()]
    if not columns:
        raise click.BadParameter("Expected a comma-separated list of column names")
    return columns


@click.group()
def main():
    """Compare clusterings of the same entities."""


@main.command()
@click.argument('labels', type=click.Path(exists=True, dir_okay=False))
@click.option('--a', 'column_a', type=str, required=True,
              help="First clustering column.")
@click.option('--b', 'column_b', type=str, required=True,
              help="Second clustering column.")
@click.option('--entity-col', type=str, default=None,
              help="Column holding entity ids (default: row index).")
@click.option('--output', type=click.Path(dir_okay=False), default=None,
              help="CSV file for the overlap table (default: print to stdout).")
@click.option('--verbose/--quiet', default=False,
              help="Print progress messages.")
def summarize(labels, column_a, column_b, entity_col, output, verbose):
    """Overlap table between two clustering columns of LABELS."""
    try:
        labeling_a, labeling_b = read_labelings(labels, columns=[column_a, column_b], entity_col=entity_col)
        summary = CrossoverSummary(verbose=verbose)
        table = summary.summarize(labeling_a, labeling_b)
        comparison = summary.compare(labeling_a, labeling_b)
    except CrossoverError as exc:
        raise click.ClickException(str(exc))

    if output:
        save_overlap(table, output)
        click.echo(f"Overlap table ({len(table)} rows) saved to: {output}")
    else:
        click.echo(table.to_string(index=False))
    click.echo(f"NMI: {comparison['nmi']:.4f}  ARI: {comparison['ari']:.4f}  "
               f"shared entities: {comparison['n_shared']}")


@main.command()
@click.argument('labels', type=click.Path(exists=True, dir_okay=False))
@click.option('--columns', type=str, required=True,
              help="Comma-separated clustering columns, in layer order.")
@click.option('--entity-col', type=str, default=None,
              help="Column holding entity ids (default: row index).")
@click.option('--output-dir', type=click.Path(file_okay=False), required=True,
              help="Directory to save output files.")
@click.option('--run-name', type=str, default='crossover',
              help="Base name for output files.")
@click.option('--parallel/--no-parallel', default=False,
              help="Compute adjacent overlap tables in parallel.")
@click.option('--n-jobs', type=int, default=None,
              help="Number of worker threads when parallel (default: executor default).")
@click.option('--timing/--no-timing', default=False,
              help="Enable detailed timing statistics.")
@click.option('--verbose/--quiet', default=False,
              help="Print progress messages.")
def tree(labels, columns, entity_col, output_dir, run_name, parallel, n_jobs, timing, verbose):
    """Crossover graph and stability scores across clustering columns of LABELS."""
    config = CrossoverConfig(parallel=parallel, n_jobs=n_jobs, verbose=verbose, timing=timing)
    perf_monitor.enabled = config.timing
    perf_monitor.reset()

    try:
        labelings = read_labelings(labels, columns=_split_columns(columns), entity_col=entity_col)
        graph = ResolutionTreeBuilder(config=config).build(labelings)
        graph = StabilityScorer(verbose=verbose).score(graph)
    except CrossoverError as exc:
        raise click.ClickException(str(exc))

    paths = save_graph(graph, output_dir, run_name,
                       metadata={'labels': os.path.abspath(labels), 'config': config.to_dict()},
                       verbose=verbose)

    layer_table = StabilityScorer.layer_summary(graph)
    click.echo(f"Crossover graph: {graph.n_layers} layers, {graph.n_nodes} clusters, {graph.n_edges} edges")
    click.echo(layer_table.to_string(index=False))
    click.echo(f"Results saved to: {os.path.dirname(paths['nodes'])}")

    if config.timing:
        perf_monitor.print_timing_summary()


if __name__ == '__main__':
    main()
