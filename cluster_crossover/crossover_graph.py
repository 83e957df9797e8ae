"""
CrossoverGraph - layered graph of clusters across an ordered sequence of labelings,
and the ResolutionTreeBuilder that assembles it.
"""
from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pandas as pd
from scipy.sparse import csr_matrix

from .config import CrossoverConfig
from .core_utilities import perf_monitor
from .errors import EmptyLabelingError
from .overlap import OverlapMatrixBuilder

NODE_COLUMNS = ['layer', 'source', 'label', 'size']
EDGE_COLUMNS = ['from_layer', 'from_label', 'to_layer', 'to_label',
                'count', 'prop_from', 'prop_to', 'jaccard']


class CrossoverGraph:
    """
    Clusters of each labeling as nodes, one layer per labeling, with overlap
    edges between nodes of adjacent layers only.

    Nodes are keyed by ``(layer, label)``. The graph holds aggregate counts
    only; no entity-level information is kept. Accessors return copies, and
    derived graphs (e.g. scored ones) are new objects.
    """

    def __init__(self, layers, nodes, edges):
        """
        Parameters:
        -----------
        layers : sequence
            Source tag of each layer, in layer order
        nodes : pandas.DataFrame
            At least ``NODE_COLUMNS``
        edges : pandas.DataFrame
            At least ``EDGE_COLUMNS``
        """
        missing = [c for c in NODE_COLUMNS if c not in nodes.columns]
        missing += [c for c in EDGE_COLUMNS if c not in edges.columns]
        if missing:
            raise ValueError(f"Graph tables are missing columns: {missing}")

        if len(edges) and not (edges['to_layer'] == edges['from_layer'] + 1).all():
            raise ValueError("Edges may only connect a layer to the next one")

        self._layers = tuple(layers)
        self._nodes = nodes.reset_index(drop=True).copy()
        self._edges = edges.reset_index(drop=True).copy()
        self._index = {key: i for i, key in enumerate(zip(self._nodes['layer'], self._nodes['label']))}

        unknown = [key for key in zip(self._edges['from_layer'], self._edges['from_label'])
                   if key not in self._index]
        unknown += [key for key in zip(self._edges['to_layer'], self._edges['to_label'])
                    if key not in self._index]
        if unknown:
            raise ValueError(f"Edges reference unknown nodes: {unknown[:5]}")

    @property
    def layers(self):
        return self._layers

    @property
    def nodes(self):
        return self._nodes.copy()

    @property
    def edges(self):
        return self._edges.copy()

    @property
    def n_layers(self):
        return len(self._layers)

    @property
    def n_nodes(self):
        return len(self._nodes)

    @property
    def n_edges(self):
        return len(self._edges)

    @property
    def is_scored(self):
        return 'stability' in self._nodes.columns

    def node_keys(self):
        """``(layer, label)`` of every node, in node order."""
        return list(self._index)

    def _node_position(self, layer, label):
        try:
            return self._index[(layer, label)]
        except KeyError:
            raise KeyError(f"No node with label {label!r} in layer {layer}") from None

    def node(self, layer, label):
        """Attributes of one node as a Series."""
        return self._nodes.iloc[self._node_position(layer, label)].copy()

    def layer_nodes(self, layer):
        """Nodes of one layer, in label order."""
        if not 0 <= layer < self.n_layers:
            raise ValueError(f"Layer {layer} out of range [0, {self.n_layers - 1}]")
        return self._nodes[self._nodes['layer'] == layer].copy()

    def _edge_mask(self, layer_col, label_col, layer, label):
        self._node_position(layer, label)
        return (self._edges[layer_col] == layer) & self._edges[label_col].map(lambda x: x == label)

    def incoming(self, layer, label):
        """Edges ending at a node, in table order."""
        return self._edges[self._edge_mask('to_layer', 'to_label', layer, label)].copy()

    def outgoing(self, layer, label):
        """Edges starting at a node, in table order."""
        return self._edges[self._edge_mask('from_layer', 'from_label', layer, label)].copy()

    def adjacency(self, weight='count'):
        """
        Sparse directed adjacency matrix in node order.

        Parameters:
        -----------
        weight : str, default='count'
            Edge column used as weight. Zero-weight edges are not stored.

        Returns:
        --------
        scipy.sparse.csr_matrix
            Shape (n_nodes, n_nodes); entry (i, j) is the weight of edge i -> j
        """
        if weight not in self._edges.columns or weight in ('from_layer', 'from_label', 'to_layer', 'to_label'):
            raise ValueError(f"Unknown edge weight column '{weight}'")

        rows = np.array([self._index[key] for key in zip(self._edges['from_layer'], self._edges['from_label'])],
                        dtype=np.int64)
        cols = np.array([self._index[key] for key in zip(self._edges['to_layer'], self._edges['to_label'])],
                        dtype=np.int64)
        data = self._edges[weight].to_numpy(dtype=np.float64)

        matrix = csr_matrix((data, (rows, cols)), shape=(self.n_nodes, self.n_nodes))
        matrix.eliminate_zeros()
        return matrix

    def with_node_columns(self, columns):
        """Copy of this graph with extra (or replaced) node columns."""
        nodes = self._nodes.copy()
        for name, values in columns.items():
            nodes[name] = values
        return CrossoverGraph(self._layers, nodes, self._edges)

    def __repr__(self):
        scored = ", scored" if self.is_scored else ""
        return (f"CrossoverGraph(layers={self.n_layers}, nodes={self.n_nodes}, "
                f"edges={self.n_edges}{scored})")


class ResolutionTreeBuilder:
    """
    Builds a CrossoverGraph from an ordered sequence of labelings.

    Each consecutive pair is cross-tabulated with OverlapMatrixBuilder and
    every row of the completed table, zero counts included, becomes an edge.
    Layers further apart are never compared.
    """

    def __init__(self, config=None, overlap_builder=None):
        """
        Parameters:
        -----------
        config : CrossoverConfig, optional
            Parallelism and verbosity settings
        overlap_builder : OverlapMatrixBuilder, optional
            Builder used for each adjacent pair
        """
        self.config = config if config is not None else CrossoverConfig()
        self.verbose = self.config.verbose
        self.overlap_builder = overlap_builder if overlap_builder is not None else OverlapMatrixBuilder()

    def _pair_tables(self, labelings):
        pairs = list(zip(labelings[:-1], labelings[1:]))

        if self.config.parallel and len(pairs) > 1:
            if self.verbose:
                print(f"Computing {len(pairs)} adjacent overlap tables in parallel...")
            with ThreadPoolExecutor(max_workers=self.config.n_jobs) as executor:
                # map yields in submission order and re-raises the first failure
                return list(executor.map(lambda pair: self.overlap_builder.build(*pair), pairs))

        if self.verbose:
            print(f"Computing {len(pairs)} adjacent overlap tables...")
        return [self.overlap_builder.build(a, b) for a, b in pairs]

    def build(self, labelings):
        """
        Assemble the layered graph.

        Parameters:
        -----------
        labelings : sequence of Labeling
            One labeling per layer, in caller order

        Returns:
        --------
        CrossoverGraph

        Raises:
        -------
        ValueError
            If the sequence is empty or repeats a source tag
        AlignmentError, EmptyLabelingError
            From any adjacent pair; no partial graph is returned
        """
        labelings = list(labelings)
        if not labelings:
            raise ValueError("At least one labeling is required to build a crossover graph")

        sources = [labeling.source for labeling in labelings]
        if len(set(sources)) != len(sources):
            raise ValueError(f"Source tags must be unique within a sequence, got {sources}")

        with perf_monitor.activated(self.config.timing), \
                perf_monitor.timed_operation("Build crossover graph", verbose=self.verbose):
            if len(labelings) == 1:
                if labelings[0].n_assigned == 0:
                    raise EmptyLabelingError(f"Labeling '{sources[0]}' has no assigned entities")
                tables = []
            else:
                tables = self._pair_tables(labelings)

            # (layer, label) -> None, insertion ordered
            seen = {}
            edge_frames = []
            for i, table in enumerate(tables):
                for label in table['label_a']:
                    seen.setdefault((i, label), None)
                for label in table['label_b']:
                    seen.setdefault((i + 1, label), None)

                edges = table.rename(columns={
                    'label_a': 'from_label', 'label_b': 'to_label',
                    'prop_a': 'prop_from', 'prop_b': 'prop_to',
                })
                edges.insert(0, 'from_layer', i)
                edges.insert(2, 'to_layer', i + 1)
                edge_frames.append(edges[EDGE_COLUMNS])

            if not tables:
                for label in labelings[0].labels:
                    seen.setdefault((0, label), None)

            nodes = self._node_table(labelings, seen)
            if edge_frames:
                edges = pd.concat(edge_frames, ignore_index=True)
            else:
                edges = pd.DataFrame({c: pd.Series(dtype=object) for c in EDGE_COLUMNS})

        graph = CrossoverGraph(sources, nodes, edges)
        if self.verbose:
            print(f"Built crossover graph: {graph.n_layers} layers, {graph.n_nodes} nodes, "
                  f"{graph.n_edges} edges")
        return graph

    @staticmethod
    def _node_table(labelings, seen):
        rows = []
        for layer, labeling in enumerate(labelings):
            # label order within each layer
            for label, size in zip(labeling.labels, labeling.sizes().tolist()):
                if (layer, label) in seen:
                    rows.append((layer, labeling.source, label, int(size)))
        nodes = pd.DataFrame(rows, columns=NODE_COLUMNS)
        nodes['label'] = nodes['label'].astype(object)
        return nodes


def build_crossover_graph(labelings, config=None):
    """Layered crossover graph for an ordered sequence of labelings."""
    return ResolutionTreeBuilder(config=config).build(labelings)
