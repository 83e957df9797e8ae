"""
CrossoverSummary - read-only query surface over labelings and crossover graphs,
for reporting and plotting consumers.
"""
import numpy as np
import pandas as pd
from sklearn.metrics import adjusted_rand_score, normalized_mutual_info_score

from .core_utilities import label_codes
from .overlap import OverlapMatrixBuilder, OVERLAP_COLUMNS
from .stability import StabilityScorer

NODE_RECORD_COLUMNS = ['layer', 'source', 'label', 'size', 'stability', 'degenerate', 'in_score', 'out_score']
EDGE_RECORD_COLUMNS = ['from_layer', 'from_label', 'to_layer', 'to_label',
                       'count', 'prop_from', 'prop_to', 'jaccard']


def _records(df, columns):
    """Rows as plain dicts; missing values become None."""
    df = df[columns].astype(object)
    return df.where(pd.notna(df), None).to_dict(orient='records')


class CrossoverSummary:
    """
    Stateless export surface comparing any two labelings of the same entities,
    e.g. clusterings of two different feature spaces.
    """

    def __init__(self, verbose=False):
        self.verbose = verbose

    def summarize(self, labeling_a, labeling_b):
        """Completed overlap table for (A, B), exactly as OverlapMatrixBuilder produces it."""
        return OverlapMatrixBuilder(verbose=self.verbose).build(labeling_a, labeling_b)

    def grid(self, labeling_a, labeling_b, value='jaccard'):
        """Dense label_a x label_b matrix of one overlap column, ready for a heatmap."""
        return OverlapMatrixBuilder.to_grid(self.summarize(labeling_a, labeling_b), value=value)

    def compare(self, labeling_a, labeling_b):
        """
        Global agreement between two labelings on the entities assigned in both.

        Returns:
        --------
        dict
            nmi, ari, n_shared, n_labels_a, n_labels_b
        """
        OverlapMatrixBuilder.check_pair(labeling_a, labeling_b)

        entities = labeling_a.entities
        codes_a = label_codes(labeling_a.values_for(entities), labeling_a.labels)
        codes_b = label_codes(labeling_b.values_for(entities), labeling_b.labels)
        shared = (codes_a >= 0) & (codes_b >= 0)
        n_shared = int(shared.sum())

        if n_shared == 0:
            nmi, ari = 0.0, 0.0
        else:
            nmi = float(normalized_mutual_info_score(codes_a[shared], codes_b[shared]))
            ari = float(adjusted_rand_score(codes_a[shared], codes_b[shared]))

        comparison = {
            'nmi': nmi,
            'ari': ari,
            'n_shared': n_shared,
            'n_labels_a': len(labeling_a.labels),
            'n_labels_b': len(labeling_b.labels),
        }

        if self.verbose:
            print(f"Comparison between '{labeling_a.source}' and '{labeling_b.source}':")
            print(f"  - Normalized Mutual Information: {nmi:.4f}")
            print(f"  - Adjusted Rand Index: {ari:.4f}")
            print(f"  - Shared assigned entities: {n_shared}")

        return comparison

    def best_matches(self, labeling_a, labeling_b, by='jaccard'):
        """
        Best matching B cluster for every A cluster.

        Parameters:
        -----------
        by : str, default='jaccard'
            Overlap column to maximise; ties keep the first label of B in label order

        Returns:
        --------
        pandas.DataFrame
            Columns: label_a, label_b, count, <by>
        """
        if by not in OVERLAP_COLUMNS[2:]:
            raise ValueError(f"Unknown score column '{by}'. Expected one of {OVERLAP_COLUMNS[2:]}")

        table = self.summarize(labeling_a, labeling_b)
        best = {}
        for label_a, label_b, count, score in zip(table['label_a'], table['label_b'],
                                                   table['count'], table[by]):
            if label_a not in best or score > best[label_a][2]:
                best[label_a] = (label_b, int(count), score)

        rows = [{'label_a': a, 'label_b': b, 'count': count, by: score} for a, (b, count, score) in best.items()]
        columns = list(dict.fromkeys(['label_a', 'label_b', 'count', by]))
        result = pd.DataFrame(rows, columns=columns)
        result['label_a'] = result['label_a'].astype(object)
        result['label_b'] = result['label_b'].astype(object)
        return result

    @staticmethod
    def graph_records(graph):
        """
        Plain ``{'nodes': [...], 'edges': [...]}`` form of a crossover graph.

        Unscored graphs are scored first; the graph itself is left untouched.
        """
        if not graph.is_scored:
            graph = StabilityScorer().score(graph)
        return {
            'layers': list(graph.layers),
            'nodes': _records(graph.nodes, NODE_RECORD_COLUMNS),
            'edges': _records(graph.edges, EDGE_RECORD_COLUMNS),
        }

    @staticmethod
    def layer_summary(graph):
        """Per-layer stability overview, scoring the graph first if needed."""
        if not graph.is_scored:
            graph = StabilityScorer().score(graph)
        return StabilityScorer.layer_summary(graph)


def summarize(labeling_a, labeling_b):
    """Completed overlap table between two labelings."""
    return CrossoverSummary().summarize(labeling_a, labeling_b)


def agreement_matrix(labelings, metric='nmi'):
    """
    Symmetric matrix of a global agreement metric between every pair of labelings.

    Parameters:
    -----------
    labelings : sequence of Labeling
    metric : {'nmi', 'ari'}

    Returns:
    --------
    pandas.DataFrame
        Indexed by source tag on both axes; the diagonal is 1
    """
    if metric not in ('nmi', 'ari'):
        raise ValueError(f"Unknown agreement metric '{metric}'. Expected 'nmi' or 'ari'")

    labelings = list(labelings)
    summary = CrossoverSummary()
    n = len(labelings)
    values = np.eye(n, dtype=np.float64)
    for i in range(n):
        for j in range(i + 1, n):
            values[i, j] = values[j, i] = summary.compare(labelings[i], labelings[j])[metric]

    sources = pd.Index([labeling.source for labeling in labelings], dtype=object)
    return pd.DataFrame(values, index=sources, columns=sources)
