"""
Core utilities for the cluster crossover framework.
Contains timing helpers, label ordering and the pair-counting kernel shared across modules.
"""
import time
from collections import defaultdict
from contextlib import contextmanager

import numpy as np
import pandas as pd
from numba import njit


class TimingStats:
    """Elapsed-time samples per operation name."""
    def __init__(self):
        self.samples = defaultdict(list)

    def record(self, operation, elapsed):
        # shared by worker threads; append only
        self.samples[operation].append(elapsed)

    def get_stats(self):
        """Count, total, mean, min and max seconds per operation."""
        result = {}
        for op, times in list(self.samples.items()):
            result[op] = {
                'count': len(times),
                'total': sum(times),
                'mean': sum(times) / len(times),
                'min': min(times),
                'max': max(times),
            }
        return result


class PerformanceMonitor:
    """Performance monitoring with minimal overhead."""

    def __init__(self, enabled=True):
        self.enabled = enabled
        self.reset()

    def reset(self):
        """Reset all timing statistics."""
        self.timing = TimingStats()
        self.total_start_time = time.time()

    @contextmanager
    def timed_operation(self, operation_name, verbose=False):
        """Context manager for timing operations with proper nesting."""
        if not self.enabled:
            yield
            return

        start_time = time.time()
        try:
            yield
        finally:
            elapsed = time.time() - start_time
            self.timing.record(operation_name, elapsed)
            if verbose:
                print(f"  [{operation_name}] completed in {elapsed:.2f} seconds")

    def print_timing_summary(self):
        """Print a summary of timing statistics."""
        if not self.enabled:
            return

        total_time = time.time() - self.total_start_time

        print("\n======== TIMING SUMMARY ========")
        print(f"Total execution time: {total_time:.2f} seconds")
        print("\nBreakdown by operation:")

        summary = self.timing.get_stats()
        for operation, stats in sorted(summary.items(), key=lambda x: x[1]['total'], reverse=True):
            percentage = (stats['total'] / total_time) * 100 if total_time > 0 else 0.0
            print(f"  {operation:<30} {stats['total']:10.2f}s ({percentage:6.2f}%)  |  "
                  f"{stats['count']} calls, avg {stats['mean']:.4f}s, "
                  f"min {stats['min']:.4f}s, max {stats['max']:.4f}s")

        print("================================")

    @contextmanager
    def activated(self, enable=True):
        """Temporarily switch recording on (``enable=True``) for the duration of a block."""
        previous = self.enabled
        self.enabled = previous or enable
        try:
            yield self
        finally:
            self.enabled = previous


# Global performance monitor, disabled unless a caller opts in
perf_monitor = PerformanceMonitor(enabled=False)


def sort_labels(labels):
    """
    Return the distinct labels in a fixed, reproducible order.

    Labels are sorted by their natural order; a mix of labels that cannot be
    compared with each other (e.g. ints and strings) is sorted by ``str(label)``.

    Parameters:
    -----------
    labels : iterable
        Hashable cluster labels, duplicates allowed

    Returns:
    --------
    list
        Distinct labels in sorted order
    """
    distinct = list(dict.fromkeys(labels))
    try:
        return sorted(distinct)
    except TypeError:
        return sorted(distinct, key=lambda label: (type(label).__name__, str(label)))


def object_array(values):
    """1-D object array holding ``values`` as-is (tuple labels stay single elements)."""
    values = list(values)
    array = np.empty(len(values), dtype=object)
    # element-wise: slice assignment would broadcast equal-length tuples into a 2-D shape
    for i, value in enumerate(values):
        array[i] = value
    return array


def label_codes(values, labels):
    """Integer code per value (its position in ``labels``); -1 for unassigned or unknown values."""
    return np.asarray(pd.Categorical(values, categories=labels).codes, dtype=np.int64)


@njit(cache=True)
def count_label_pairs(codes_a, codes_b, n_a, n_b):
    """
    Dense contingency counts for two aligned integer code arrays.

    Entries with a negative code (unassigned) on either side are skipped.
    """
    counts = np.zeros((n_a, n_b), np.int64)
    for k in range(codes_a.shape[0]):
        i = codes_a[k]
        j = codes_b[k]
        if i < 0 or j < 0:
            continue
        counts[i, j] += 1
    return counts
