"""
Clustering collaborators - the pluggable seam that turns a similarity graph and a
resolution into a Labeling, and the resolution sweep that drives it.
"""
import inspect
from typing import Protocol, runtime_checkable

import numpy as np
import scipy.sparse as sp

from .config import SweepConfig
from .core_utilities import perf_monitor
from .labeling import Labeling


@runtime_checkable
class ClusteringAlgorithm(Protocol):
    """Anything with ``cluster(graph, resolution) -> Labeling``."""

    def cluster(self, graph, resolution):
        ...


def resolution_source(resolution):
    """Source tag used for a labeling produced at ``resolution``."""
    # 12 significant digits: distinct sweep values keep distinct tags, float drift is dropped
    return f"res{float(resolution):.12g}"


class LeidenClustering:
    """
    Resolution-parameterised Leiden on a sparse similarity graph, via scikit-network.

    scikit-network is an optional dependency and is imported on first use.
    """

    def __init__(self, entities=None, random_state=42, modularity='newman', verbose=False):
        """
        Parameters:
        -----------
        entities : sequence, optional
            Entity id of each graph row. Defaults to 0..n-1.
        random_state : int, default=42
            Seed passed to Leiden for reproducible labels
        modularity : str, default='newman'
            Modularity flavour understood by scikit-network
        verbose : bool, default=False
            Whether to print progress messages
        """
        self.entities = None if entities is None else list(entities)
        self.random_state = random_state
        self.modularity = modularity
        self.verbose = verbose

    def cluster(self, graph, resolution):
        try:
            from sknetwork.clustering import Leiden
        except ImportError:
            raise ImportError("Install scikit-network: pip install scikit-network")

        adjacency = sp.csr_matrix(graph)
        n = adjacency.shape[0]
        if adjacency.shape[1] != n:
            raise ValueError(f"Similarity graph must be square, got shape {adjacency.shape}")
        entities = self.entities if self.entities is not None else list(range(n))
        if len(entities) != n:
            raise ValueError(f"Got {len(entities)} entity ids for a graph with {n} nodes")

        if self.verbose:
            print(f"\n--- Running Leiden with resolution={resolution} ---")

        with perf_monitor.timed_operation(f"Leiden clustering (res={resolution})"):
            leiden = Leiden(
                resolution=float(resolution),
                modularity=self.modularity,
                random_state=self.random_state,
                return_probs=False,
            )
            leiden.fit(adjacency)
            labels = np.asarray(leiden.labels_, dtype=np.int64).ravel()

        if labels.shape[0] != n:
            raise ValueError(f"Leiden labels have wrong shape {labels.shape}")

        if self.verbose:
            print(f"Found {len(np.unique(labels))} communities")

        return Labeling(dict(zip(entities, labels.tolist())),
                        source=resolution_source(resolution), resolution=resolution)


def _accepts_initial_membership(cluster):
    try:
        return 'initial_membership' in inspect.signature(cluster).parameters
    except (TypeError, ValueError):
        return False


def resolution_sweep(algorithm, graph, resolutions=None, config=None, verbose=False):
    """
    Cluster ``graph`` once per resolution, in the order given.

    Parameters:
    -----------
    algorithm : ClusteringAlgorithm or callable
        Object with ``cluster(graph, resolution)`` or a plain function with the
        same signature, returning a Labeling
    graph : any
        Similarity graph, passed through untouched
    resolutions : sequence of float, optional
        Resolution values; overrides ``config.resolutions``
    config : SweepConfig, optional
        Sweep settings. With ``warm_start`` on, each call after the first gets the
        previous labeling as ``initial_membership`` if the algorithm accepts it.

    Returns:
    --------
    list of Labeling
        One per resolution, tagged ``res<resolution>``
    """
    config = config if config is not None else SweepConfig()
    if resolutions is not None:
        config = SweepConfig(resolutions=tuple(resolutions), warm_start=config.warm_start)
    if not config.resolutions:
        raise ValueError("At least one resolution is required")

    cluster = getattr(algorithm, 'cluster', algorithm)
    if not callable(cluster):
        raise TypeError(f"{algorithm!r} is not a clustering algorithm")
    warm = config.warm_start and _accepts_initial_membership(cluster)

    if verbose:
        print(f"Processing {len(config.resolutions)} resolutions: {list(config.resolutions)}")

    labelings = []
    previous = None
    for resolution in config.resolutions:
        with perf_monitor.timed_operation(f"Process resolution {resolution}", verbose=verbose):
            if warm and previous is not None:
                result = cluster(graph, resolution, initial_membership=previous)
            else:
                result = cluster(graph, resolution)

        if not isinstance(result, Labeling):
            raise TypeError(f"Clustering at resolution {resolution} returned "
                            f"{type(result).__name__}, expected Labeling")

        labeling = Labeling(result.assignments, source=resolution_source(resolution),
                            resolution=resolution, universe=result.universe)
        labelings.append(labeling)
        previous = labeling

    return labelings
