"""
Tests for CrossoverGraph and ResolutionTreeBuilder.
"""
import pandas as pd
import pytest

from cluster_crossover import (
    AlignmentError,
    CrossoverConfig,
    CrossoverGraph,
    EmptyLabelingError,
    Labeling,
    ResolutionTreeBuilder,
    build_crossover_graph,
)
from cluster_crossover.core_utilities import perf_monitor
from cluster_crossover.crossover_graph import EDGE_COLUMNS, NODE_COLUMNS


class TestBuild:

    def test_layers_and_nodes(self, chain):
        graph = build_crossover_graph(chain)
        assert graph.layers == ('L0', 'L1', 'L2')
        assert graph.node_keys() == [(0, 'x'), (1, 1), (1, 2), (2, 1), (2, 2)]
        assert list(graph.nodes['size']) == [4, 2, 2, 1, 3]
        assert list(graph.nodes.columns) == NODE_COLUMNS

    def test_edges_include_zero_counts(self, chain):
        graph = build_crossover_graph(chain)
        assert list(graph.edges.columns) == EDGE_COLUMNS
        assert graph.n_edges == 2 + 4
        zero = graph.edges[graph.edges['count'] == 0]
        assert list(zip(zero['from_label'], zero['to_label'])) == [(2, 1)]

    def test_only_adjacent_layers_connected(self, chain):
        edges = build_crossover_graph(chain).edges
        assert (edges['to_layer'] - edges['from_layer'] == 1).all()
        assert not ((edges['from_layer'] == 0) & (edges['to_layer'] == 2)).any()

    def test_edge_values_match_overlap(self, chain):
        graph = build_crossover_graph(chain)
        edge = graph.outgoing(1, 2)
        edge = edge[edge['to_label'] == 2].iloc[0]
        assert edge['count'] == 2
        assert edge['prop_from'] == pytest.approx(1.0)
        assert edge['prop_to'] == pytest.approx(2 / 3)

    def test_node_sizes_count_whole_labeling(self, first):
        partial = Labeling({'a': 1, 'b': None, 'c': 2, 'd': 2}, source='P')
        graph = build_crossover_graph([first, partial])
        assert graph.node(1, 2)['size'] == 2
        assert graph.node(0, 1)['size'] == 2

    def test_single_layer(self, first):
        graph = build_crossover_graph([first])
        assert graph.n_layers == 1
        assert graph.node_keys() == [(0, 1), (0, 2)]
        assert graph.n_edges == 0

    def test_parallel_matches_sequential(self, chain):
        sequential = ResolutionTreeBuilder().build(chain)
        parallel = ResolutionTreeBuilder(CrossoverConfig(parallel=True, n_jobs=2)).build(chain)
        pd.testing.assert_frame_equal(sequential.nodes, parallel.nodes)
        pd.testing.assert_frame_equal(sequential.edges, parallel.edges)

    def test_tuple_labels(self):
        layers = [
            Labeling({'a': ('x', 1), 'b': ('x', 2)}, source='A'),
            Labeling({'a': ('y', 1), 'b': ('y', 1)}, source='B'),
            Labeling({'a': ('z', 1), 'b': ('z', 2)}, source='C'),
        ]
        graph = build_crossover_graph(layers)
        assert graph.node_keys() == [(0, ('x', 1)), (0, ('x', 2)), (1, ('y', 1)),
                                     (2, ('z', 1)), (2, ('z', 2))]
        assert graph.n_edges == 4
        assert graph.node(1, ('y', 1))['size'] == 2
        assert graph.incoming(1, ('y', 1))['count'].tolist() == [1, 1]

    def test_caller_order_is_kept(self, chain):
        graph = build_crossover_graph(list(reversed(chain)))
        assert graph.layers == ('L2', 'L1', 'L0')
        assert graph.node_keys()[-1] == (2, 'x')


class TestBuildFailures:

    def test_empty_sequence(self):
        with pytest.raises(ValueError, match="At least one"):
            build_crossover_graph([])

    def test_duplicate_sources(self, first):
        with pytest.raises(ValueError, match="unique"):
            build_crossover_graph([first, first])

    def test_failing_pair_fails_whole_build(self, first, second):
        stranger = Labeling({'p': 1, 'q': 2}, source='S')
        with pytest.raises(AlignmentError):
            build_crossover_graph([first, second, stranger])

    def test_failing_pair_in_parallel(self, first, second):
        stranger = Labeling({'p': 1, 'q': 2}, source='S')
        builder = ResolutionTreeBuilder(CrossoverConfig(parallel=True))
        with pytest.raises(AlignmentError):
            builder.build([first, stranger, second])

    def test_empty_single_layer(self):
        with pytest.raises(EmptyLabelingError):
            build_crossover_graph([Labeling({'a': None}, source='E')])

    def test_bad_n_jobs(self):
        with pytest.raises(ValueError):
            CrossoverConfig(n_jobs=0)


class TestTiming:

    def test_config_timing_records_build(self, chain):
        perf_monitor.reset()
        ResolutionTreeBuilder(CrossoverConfig(timing=True)).build(chain)
        stats = perf_monitor.timing.get_stats()
        assert stats['Build crossover graph']['count'] == 1
        assert sorted(op for op in stats if op.startswith('Overlap')) == ['Overlap L0 vs L1', 'Overlap L1 vs L2']
        # recording is switched back off after the build
        assert not perf_monitor.enabled

    def test_timing_off_records_nothing(self, chain):
        perf_monitor.reset()
        ResolutionTreeBuilder(CrossoverConfig(timing=False)).build(chain)
        assert perf_monitor.timing.get_stats() == {}


class TestGraphQueries:

    def test_incoming_and_outgoing(self, chain):
        graph = build_crossover_graph(chain)
        assert len(graph.incoming(2, 2)) == 2
        assert len(graph.outgoing(0, 'x')) == 2
        assert graph.incoming(0, 'x').empty

    def test_unknown_node(self, chain):
        graph = build_crossover_graph(chain)
        with pytest.raises(KeyError):
            graph.node(1, 'nope')

    def test_layer_nodes(self, chain):
        graph = build_crossover_graph(chain)
        assert list(graph.layer_nodes(2)['label']) == [1, 2]
        with pytest.raises(ValueError):
            graph.layer_nodes(3)

    def test_adjacency(self, chain):
        graph = build_crossover_graph(chain)
        matrix = graph.adjacency()
        assert matrix.shape == (5, 5)
        assert matrix.nnz == 5
        keys = graph.node_keys()
        assert matrix[keys.index((1, 2)), keys.index((2, 2))] == 2
        assert matrix[keys.index((0, 'x')), keys.index((2, 2))] == 0

    def test_adjacency_weight_column(self, chain):
        graph = build_crossover_graph(chain)
        matrix = graph.adjacency(weight='jaccard')
        keys = graph.node_keys()
        assert matrix[keys.index((1, 1)), keys.index((2, 1))] == pytest.approx(0.5)
        with pytest.raises(ValueError):
            graph.adjacency(weight='from_label')

    def test_accessors_return_copies(self, chain):
        graph = build_crossover_graph(chain)
        nodes = graph.nodes
        nodes['size'] = 0
        assert graph.nodes['size'].sum() == 12

    def test_rejects_non_adjacent_edges(self):
        nodes = pd.DataFrame({'layer': [0, 2], 'source': ['a', 'c'], 'label': [1, 1], 'size': [1, 1]})
        edges = pd.DataFrame({'from_layer': [0], 'from_label': [1], 'to_layer': [2], 'to_label': [1],
                              'count': [1], 'prop_from': [1.0], 'prop_to': [1.0], 'jaccard': [1.0]})
        with pytest.raises(ValueError, match="next one"):
            CrossoverGraph(['a', 'b', 'c'], nodes, edges)
