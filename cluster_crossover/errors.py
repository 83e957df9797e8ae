"""
Exceptions raised by the cluster crossover framework.
"""


class CrossoverError(Exception):
    """Base class for all crossover errors."""


class AlignmentError(CrossoverError, ValueError):
    """Two labelings do not share a common entity universe."""


class EmptyLabelingError(CrossoverError, ValueError):
    """A labeling has no assigned entities."""


class NotFoundError(CrossoverError, KeyError):
    """A requested labeling source tag is not in the store."""

    def __str__(self):
        # KeyError repr-quotes its message otherwise
        return str(self.args[0]) if self.args else ''
