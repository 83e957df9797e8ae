"""
OverlapMatrixBuilder - complete pairwise contingency tables between two labelings.
"""
import numpy as np
import pandas as pd

from .core_utilities import count_label_pairs, label_codes, object_array, perf_monitor
from .errors import AlignmentError, EmptyLabelingError

OVERLAP_COLUMNS = ['label_a', 'label_b', 'count', 'size_a', 'size_b', 'prop_a', 'prop_b', 'jaccard']


def _ratio(numerator, denominator):
    """Elementwise numerator / denominator, with 0 wherever the denominator is 0."""
    numerator = np.asarray(numerator, dtype=np.float64)
    denominator = np.broadcast_to(np.asarray(denominator, dtype=np.float64), numerator.shape)
    return np.divide(numerator, denominator, out=np.zeros_like(numerator), where=denominator > 0)


class OverlapMatrixBuilder:
    """
    Cross-tabulates two labelings of the same entity universe.

    Only entities assigned in both labelings are counted. The table is then
    completed so every label of A is paired with every label of B, with zero
    counts for combinations that never occur.
    """

    def __init__(self, verbose=False):
        """
        Parameters:
        -----------
        verbose : bool, default=False
            Whether to print progress messages
        """
        self.verbose = verbose

    @staticmethod
    def check_pair(labeling_a, labeling_b):
        """Raise if two labelings cannot be cross-tabulated."""
        if not labeling_a.shares_universe(labeling_b):
            only_a = len(labeling_a.universe - labeling_b.universe)
            only_b = len(labeling_b.universe - labeling_a.universe)
            raise AlignmentError(
                f"Labelings '{labeling_a.source}' and '{labeling_b.source}' do not share an entity "
                f"universe ({only_a} entities only in the first, {only_b} only in the second)"
            )
        for labeling in (labeling_a, labeling_b):
            if labeling.n_assigned == 0:
                raise EmptyLabelingError(f"Labeling '{labeling.source}' has no assigned entities")

    def count_matrix(self, labeling_a, labeling_b):
        """
        Dense contingency counts between two labelings.

        Returns:
        --------
        labels_a : list
            Row labels, sorted
        labels_b : list
            Column labels, sorted
        counts : numpy.ndarray
            Integer matrix of shape (len(labels_a), len(labels_b))
        """
        self.check_pair(labeling_a, labeling_b)

        labels_a = labeling_a.labels
        labels_b = labeling_b.labels
        # Universe members missing from A are unassigned there and never counted
        entities = labeling_a.entities
        codes_a = label_codes(labeling_a.values_for(entities), labels_a)
        codes_b = label_codes(labeling_b.values_for(entities), labels_b)

        counts = count_label_pairs(codes_a, codes_b, len(labels_a), len(labels_b))
        return labels_a, labels_b, counts

    def build(self, labeling_a, labeling_b):
        """
        Completed overlap table between ``labeling_a`` and ``labeling_b``.

        Parameters:
        -----------
        labeling_a, labeling_b : Labeling
            Two labelings over the same entity universe

        Returns:
        --------
        pandas.DataFrame
            One row per (label_a, label_b) combination, ordered by label_a then
            label_b, with columns ``OVERLAP_COLUMNS``. Sizes are taken over the
            entities assigned in both labelings; ratios with a zero denominator
            are 0.

        Raises:
        -------
        AlignmentError
            If the labelings do not share an entity universe
        EmptyLabelingError
            If either labeling has no assigned entities
        """
        with perf_monitor.timed_operation(f"Overlap {labeling_a.source} vs {labeling_b.source}"):
            labels_a, labels_b, counts = self.count_matrix(labeling_a, labeling_b)

            size_a = counts.sum(axis=1)
            size_b = counts.sum(axis=0)

            prop_a = _ratio(counts, size_a[:, None])
            prop_b = _ratio(counts, size_b[None, :])
            union = size_a[:, None] + size_b[None, :] - counts
            jaccard = _ratio(counts, union)

            n_a, n_b = counts.shape
            table = pd.DataFrame({
                'label_a': pd.Series(np.repeat(object_array(labels_a), n_b), dtype=object),
                'label_b': pd.Series(np.tile(object_array(labels_b), n_a), dtype=object),
                'count': counts.ravel().astype(np.int64),
                'size_a': np.repeat(size_a, n_b).astype(np.int64),
                'size_b': np.tile(size_b, n_a).astype(np.int64),
                'prop_a': prop_a.ravel(),
                'prop_b': prop_b.ravel(),
                'jaccard': jaccard.ravel(),
            }, columns=OVERLAP_COLUMNS)

        if self.verbose:
            print(f"Overlap '{labeling_a.source}' vs '{labeling_b.source}': "
                  f"{n_a} x {n_b} clusters, {int(counts.sum())} shared entities")
        return table

    @staticmethod
    def to_grid(table, value='jaccard'):
        """
        Pivot a completed overlap table into a dense label_a x label_b matrix.

        Parameters:
        -----------
        table : pandas.DataFrame
            Output of ``build``
        value : str, default='jaccard'
            Column to spread over the grid

        Returns:
        --------
        pandas.DataFrame
            Rows indexed by label_a, columns by label_b, in table order
        """
        if value not in table.columns or value in ('label_a', 'label_b'):
            raise ValueError(f"Unknown value column '{value}'. Expected one of {OVERLAP_COLUMNS[2:]}")

        rows = list(dict.fromkeys(table['label_a']))
        cols = list(dict.fromkeys(table['label_b']))
        grid = np.zeros((len(rows), len(cols)), dtype=table[value].dtype)
        grid[label_codes(table['label_a'], rows), label_codes(table['label_b'], cols)] = table[value].to_numpy()

        return pd.DataFrame(grid,
                            index=pd.Index(object_array(rows), dtype=object, name='label_a'),
                            columns=pd.Index(object_array(cols), dtype=object, name='label_b'))


def overlap_matrix(labeling_a, labeling_b, verbose=False):
    """Completed overlap table between two labelings (see ``OverlapMatrixBuilder.build``)."""
    return OverlapMatrixBuilder(verbose=verbose).build(labeling_a, labeling_b)
