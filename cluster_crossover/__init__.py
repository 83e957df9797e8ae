"""
Cluster Crossover Package - Tools for comparing repeated clusterings of the same entities.
"""

# Import main classes for easy access
from .labeling import UNASSIGNED, Labeling, LabelingStore
from .overlap import OverlapMatrixBuilder, OVERLAP_COLUMNS, overlap_matrix
from .crossover_graph import CrossoverGraph, ResolutionTreeBuilder, build_crossover_graph
from .stability import StabilityScorer, score_stability
from .summary import CrossoverSummary, summarize, agreement_matrix
from .clustering import ClusteringAlgorithm, LeidenClustering, resolution_sweep
from .config import CrossoverConfig, SweepConfig
from .errors import CrossoverError, AlignmentError, EmptyLabelingError, NotFoundError

# Import core utilities that might be directly useful
from .core_utilities import (
    TimingStats,
    PerformanceMonitor,
    perf_monitor,
    sort_labels,
)

# Define what gets imported with `from cluster_crossover import *`
__all__ = [
    # Main classes
    'Labeling',
    'LabelingStore',
    'OverlapMatrixBuilder',
    'CrossoverGraph',
    'ResolutionTreeBuilder',
    'StabilityScorer',
    'CrossoverSummary',
    'ClusteringAlgorithm',
    'LeidenClustering',

    # Configuration
    'CrossoverConfig',
    'SweepConfig',

    # Errors
    'CrossoverError',
    'AlignmentError',
    'EmptyLabelingError',
    'NotFoundError',

    # Utility classes
    'TimingStats',
    'PerformanceMonitor',
    'perf_monitor',

    # Core functions
    'UNASSIGNED',
    'OVERLAP_COLUMNS',
    'overlap_matrix',
    'build_crossover_graph',
    'score_stability',
    'summarize',
    'agreement_matrix',
    'resolution_sweep',
    'sort_labels',
]

# Package metadata
__version__ = '1.0.0'
