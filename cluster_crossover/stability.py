"""
StabilityScorer - per-cluster stability from the edges of a CrossoverGraph.
"""
import numpy as np
import pandas as pd

from .core_utilities import perf_monitor

SCORE_COLUMNS = ['in_score', 'best_in', 'out_score', 'best_out', 'stability', 'degenerate']


class StabilityScorer:
    """
    Scores how cleanly each cluster maps onto its neighbouring layers.

    in_score(n)  = max over edges into n of prop_to (share of n explained by
                   one cluster of the previous layer)
    out_score(n) = max over edges out of n of prop_from (share of n carried
                   into one cluster of the next layer)

    stability is the mean of the two for interior layers, out_score for the
    first layer and in_score for the last. A node whose incident edges all have
    zero count (or that has no edges at all) is flagged degenerate and scores 0.
    Ties for the max keep the neighbour that comes first in label order.
    """

    def __init__(self, verbose=False):
        self.verbose = verbose

    @staticmethod
    def _best(edges, key_cols, score_col, other_label_col):
        """Max score and argmax neighbour per node; first in edge order wins ties."""
        scores, best = {}, {}
        keys = zip(edges[key_cols[0]], edges[key_cols[1]])
        for key, score, other in zip(keys, edges[score_col], edges[other_label_col]):
            if key not in scores or score > scores[key]:
                scores[key] = float(score)
                best[key] = other
        return scores, best

    def score(self, graph):
        """
        Score every node of ``graph``.

        Parameters:
        -----------
        graph : CrossoverGraph

        Returns:
        --------
        CrossoverGraph
            New graph whose nodes carry ``SCORE_COLUMNS``
        """
        with perf_monitor.timed_operation("Score stability"):
            edges = graph.edges
            in_scores, best_in = self._best(edges, ('to_layer', 'to_label'), 'prop_to', 'from_label')
            out_scores, best_out = self._best(edges, ('from_layer', 'from_label'), 'prop_from', 'to_label')

            touched = set()
            nonzero = edges[edges['count'] > 0]
            touched.update(zip(nonzero['from_layer'], nonzero['from_label']))
            touched.update(zip(nonzero['to_layer'], nonzero['to_label']))

            columns = {name: [] for name in SCORE_COLUMNS}
            for key, size in zip(graph.node_keys(), graph.nodes['size']):
                in_score = in_scores.get(key, np.nan)
                out_score = out_scores.get(key, np.nan)
                degenerate = size == 0 or key not in touched

                if degenerate:
                    stability = 0.0
                elif np.isnan(in_score):
                    stability = out_score
                elif np.isnan(out_score):
                    stability = in_score
                else:
                    stability = (in_score + out_score) / 2.0

                columns['in_score'].append(in_score)
                columns['best_in'].append(best_in.get(key))
                columns['out_score'].append(out_score)
                columns['best_out'].append(best_out.get(key))
                columns['stability'].append(float(stability))
                columns['degenerate'].append(bool(degenerate))

            scored = graph.with_node_columns({
                'in_score': pd.Series(columns['in_score'], dtype=np.float64),
                'best_in': pd.Series(columns['best_in'], dtype=object),
                'out_score': pd.Series(columns['out_score'], dtype=np.float64),
                'best_out': pd.Series(columns['best_out'], dtype=object),
                'stability': pd.Series(columns['stability'], dtype=np.float64),
                'degenerate': pd.Series(columns['degenerate'], dtype=bool),
            })

        if self.verbose:
            n_degenerate = int(sum(columns['degenerate']))
            print(f"Scored {scored.n_nodes} clusters across {scored.n_layers} layers "
                  f"({n_degenerate} degenerate)")
        return scored

    @staticmethod
    def layer_summary(graph):
        """
        Per-layer stability overview of a scored graph.

        Returns:
        --------
        pandas.DataFrame
            Columns: layer, source, n_clusters, mean_stability, min_stability, n_degenerate
        """
        if not graph.is_scored:
            raise ValueError("Graph has no stability scores; run StabilityScorer.score first")

        nodes = graph.nodes
        rows = []
        for layer, source in enumerate(graph.layers):
            layer_nodes = nodes[nodes['layer'] == layer]
            rows.append({
                'layer': layer,
                'source': source,
                'n_clusters': len(layer_nodes),
                'mean_stability': float(layer_nodes['stability'].mean()) if len(layer_nodes) else 0.0,
                'min_stability': float(layer_nodes['stability'].min()) if len(layer_nodes) else 0.0,
                'n_degenerate': int(layer_nodes['degenerate'].sum()),
            })
        return pd.DataFrame(rows, columns=['layer', 'source', 'n_clusters', 'mean_stability',
                                           'min_stability', 'n_degenerate'])


def score_stability(graph, verbose=False):
    """Scored copy of ``graph`` (see ``StabilityScorer.score``)."""
    return StabilityScorer(verbose=verbose).score(graph)
