"""
Reading labelings from tables and writing overlap tables / crossover graphs to disk.
"""
import json
import os

import numpy as np
import pandas as pd

from .errors import NotFoundError
from .labeling import Labeling
from .stability import StabilityScorer
from .summary import CrossoverSummary

_READERS = {
    '.csv': lambda path: pd.read_csv(path),
    '.tsv': lambda path: pd.read_csv(path, sep='\t'),
    '.txt': lambda path: pd.read_csv(path, sep='\t'),
    '.parquet': lambda path: pd.read_parquet(path),
}


def _clean_column(series):
    """Float columns holding whole numbers (ints with gaps) back to nullable ints."""
    if pd.api.types.is_float_dtype(series):
        present = series.dropna()
        if len(present) and np.all(np.mod(present.to_numpy(), 1) == 0):
            return series.astype('Int64')
    return series


def labelings_from_frame(df, columns=None, entity_col=None, resolutions=None):
    """
    One Labeling per clustering column of a table.

    Parameters:
    -----------
    df : pandas.DataFrame
        One row per entity; missing cells mark unassigned entities
    columns : list of str, optional
        Clustering columns, in layer order. Defaults to every column except ``entity_col``.
    entity_col : str, optional
        Column holding entity ids. Defaults to the frame index.
    resolutions : mapping, optional
        Column name -> resolution value

    Returns:
    --------
    list of Labeling
        All declared over the same universe (every row of the table)
    """
    if entity_col is not None:
        if entity_col not in df.columns:
            raise NotFoundError(f"Entity column '{entity_col}' not found")
        df = df.set_index(entity_col)

    if columns is None:
        columns = list(df.columns)
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise NotFoundError(f"Clustering columns not found: {missing}")

    resolutions = resolutions or {}
    universe = frozenset(df.index)
    return [
        Labeling(_clean_column(df[col]), source=col, resolution=resolutions.get(col), universe=universe)
        for col in columns
    ]


def read_labelings(path, columns=None, entity_col=None, resolutions=None):
    """Load labelings from a csv / tsv / parquet table (see ``labelings_from_frame``)."""
    suffix = os.path.splitext(str(path))[1].lower()
    if suffix not in _READERS:
        raise ValueError(f"Unsupported table format '{suffix}'. Expected one of {sorted(_READERS)}")
    return labelings_from_frame(_READERS[suffix](path), columns=columns,
                                entity_col=entity_col, resolutions=resolutions)


def save_overlap(table, path):
    """Write an overlap table as CSV."""
    directory = os.path.dirname(str(path))
    if directory:
        os.makedirs(directory, exist_ok=True)
    table.to_csv(path, index=False)
    return path


def save_graph(graph, output_dir, run_name, metadata=None, verbose=False):
    """
    Save a crossover graph: node and edge CSVs, a JSON record file and metadata.

    Unscored graphs are scored before saving.

    Returns:
    --------
    dict
        Output kind -> file path
    """
    os.makedirs(output_dir, exist_ok=True)
    if not graph.is_scored:
        graph = StabilityScorer().score(graph)

    paths = {
        'nodes': os.path.join(output_dir, f"{run_name}_nodes.csv"),
        'edges': os.path.join(output_dir, f"{run_name}_edges.csv"),
        'layers': os.path.join(output_dir, f"{run_name}_layers.csv"),
        'graph': os.path.join(output_dir, f"{run_name}_graph.json"),
        'metadata': os.path.join(output_dir, f"{run_name}_metadata.json"),
    }

    if verbose:
        print(f"Saving {graph.n_nodes} nodes and {graph.n_edges} edges...")
    graph.nodes.to_csv(paths['nodes'], index=False)
    graph.edges.to_csv(paths['edges'], index=False)
    StabilityScorer.layer_summary(graph).to_csv(paths['layers'], index=False)

    with open(paths['graph'], 'w') as f:
        json.dump(CrossoverSummary.graph_records(graph), f, indent=2, default=str)

    info = {
        'run_name': run_name,
        'layers': [str(layer) for layer in graph.layers],
        'n_nodes': graph.n_nodes,
        'n_edges': graph.n_edges,
    }
    if metadata:
        info.update(metadata)
    with open(paths['metadata'], 'w') as f:
        json.dump(info, f, indent=2, default=str)

    if verbose:
        print(f"All data successfully saved to {output_dir}/")
    return paths
