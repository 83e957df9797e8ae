"""
Labeling - immutable cluster assignments over a fixed entity universe, and the store that holds them.
"""
from collections import Counter

import pandas as pd

from .core_utilities import object_array, sort_labels
from .errors import AlignmentError, NotFoundError

# Marks an entity excluded from a partition
UNASSIGNED = None


def _preview(items, limit=5):
    items = list(items)
    shown = ", ".join(repr(item) for item in items[:limit])
    return shown + (f", ... ({len(items)} total)" if len(items) > limit else "")


class Labeling:
    """
    One partition of entities into clusters.

    Values that pandas treats as missing (None, NaN, pd.NA) are stored as
    ``UNASSIGNED``. Entities of the universe that do not appear in
    ``assignments`` at all are unassigned as well.
    """

    def __init__(self, assignments, source, resolution=None, universe=None):
        """
        Parameters:
        -----------
        assignments : mapping or pandas.Series
            Entity -> cluster label
        source : hashable
            Tag naming where this labeling came from (a resolution, a modality, ...)
        resolution : float, optional
            Resolution parameter used to produce the labeling, if any
        universe : iterable, optional
            Entity universe the labeling is drawn from. Defaults to the entities
            present in ``assignments``.
        """
        series = assignments if isinstance(assignments, pd.Series) else pd.Series(assignments, dtype=object)
        if series.index.has_duplicates:
            dupes = series.index[series.index.duplicated()].unique()
            raise ValueError(f"Labeling '{source}' assigns some entities twice: {_preview(dupes)}")

        values = [UNASSIGNED if pd.isna(value) else value for value in series.tolist()]
        self._assignments = pd.Series(values, index=series.index.copy(), dtype=object, name=source)

        entities = frozenset(self._assignments.index)
        if universe is None:
            self._universe = entities
        else:
            self._universe = frozenset(universe)
            outside = entities - self._universe
            if outside:
                raise AlignmentError(
                    f"Labeling '{source}' has entities outside its universe: {_preview(outside)}"
                )

        self._source = source
        self._resolution = None if resolution is None else float(resolution)

    @property
    def source(self):
        return self._source

    @property
    def resolution(self):
        return self._resolution

    @property
    def universe(self):
        return self._universe

    @property
    def entities(self):
        """Entities listed by this labeling, assigned or not."""
        return self._assignments.index.copy()

    @property
    def assignments(self):
        """Copy of the full entity -> label series, ``UNASSIGNED`` included."""
        return self._assignments.copy()

    def assigned(self):
        """Series of entities with a real label."""
        return self._assignments[self._assignments.notna()].copy()

    @property
    def n_assigned(self):
        return int(self._assignments.notna().sum())

    @property
    def labels(self):
        """Distinct labels in sorted order."""
        return sort_labels(self._assignments.dropna().tolist())

    def sizes(self):
        """Number of assigned entities per label, in label order."""
        counts = Counter(self._assignments.dropna().tolist())
        labels = self.labels
        return pd.Series(
            [counts[label] for label in labels],
            index=pd.Index(object_array(labels), dtype=object), dtype="int64", name="size",
        )

    def label_of(self, entity):
        """Label of one entity; ``UNASSIGNED`` for universe members without one."""
        if entity in self._assignments.index:
            return self._assignments.loc[entity]
        if entity in self._universe:
            return UNASSIGNED
        raise KeyError(entity)

    def values_for(self, entities):
        """Labels for the given entities, in order; missing entities come back unassigned."""
        return [self._assignments.get(entity, UNASSIGNED) for entity in entities]

    def with_universe(self, universe):
        """Copy of this labeling declared over a different universe."""
        return Labeling(self._assignments, self._source, resolution=self._resolution, universe=universe)

    def shares_universe(self, other):
        return self._universe == other.universe

    def __len__(self):
        return len(self._universe)

    def __eq__(self, other):
        if not isinstance(other, Labeling):
            return NotImplemented
        return (self._source == other._source
                and self._universe == other._universe
                and self._assignments.equals(other._assignments))

    __hash__ = None

    def __repr__(self):
        res = f", resolution={self._resolution}" if self._resolution is not None else ""
        return (f"Labeling(source={self._source!r}{res}, entities={len(self._universe)}, "
                f"assigned={self.n_assigned}, clusters={len(self.labels)})")


class LabelingStore:
    """
    Named, ordered collection of labelings sharing one entity universe.
    """

    def __init__(self, universe=None, verbose=False):
        """
        Parameters:
        -----------
        universe : iterable, optional
            Entity universe. If None, it is fixed by the first labeling added.
        verbose : bool, default=False
            Whether to print progress messages
        """
        self._universe = None if universe is None else frozenset(universe)
        self._labelings = {}
        self.verbose = verbose

    @property
    def universe(self):
        return self._universe

    @property
    def sources(self):
        return list(self._labelings)

    def add(self, labeling):
        """
        Add a labeling, re-declared over the store's universe.

        Raises:
        -------
        AlignmentError
            If the labeling lists entities outside the established universe
        ValueError
            If a labeling with the same source tag is already stored
        """
        if labeling.source in self._labelings:
            raise ValueError(f"A labeling with source '{labeling.source}' is already stored")

        if self._universe is None:
            self._universe = labeling.universe
        else:
            outside = set(labeling.entities) - self._universe
            if outside:
                raise AlignmentError(
                    f"Labeling '{labeling.source}' is not aligned with the store universe; "
                    f"unknown entities: {_preview(outside)}"
                )

        stored = labeling.with_universe(self._universe)
        self._labelings[labeling.source] = stored
        if self.verbose:
            print(f"Stored labeling '{labeling.source}': {stored.n_assigned} assigned entities, "
                  f"{len(stored.labels)} clusters")
        return stored

    def get(self, source):
        """Labeling stored under ``source``; raises NotFoundError if absent."""
        try:
            return self._labelings[source]
        except KeyError:
            raise NotFoundError(f"No labeling with source '{source}'") from None

    def sequence(self, sources=None):
        """Labelings in the given source order (default: insertion order)."""
        if sources is None:
            return list(self._labelings.values())
        return [self.get(source) for source in sources]

    def __contains__(self, source):
        return source in self._labelings

    def __iter__(self):
        return iter(self._labelings.values())

    def __len__(self):
        return len(self._labelings)
