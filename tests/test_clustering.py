"""
Tests for the clustering seam, resolution sweeps and sweep configuration.
"""
import numpy as np
import pytest
import scipy.sparse as sp

from cluster_crossover import (
    ClusteringAlgorithm,
    Labeling,
    LeidenClustering,
    SweepConfig,
    build_crossover_graph,
    resolution_sweep,
)
from cluster_crossover.clustering import resolution_source


class BlockClustering:
    """Splits entities into ceil(resolution * n_blocks) contiguous blocks."""

    def __init__(self, n_blocks=4):
        self.n_blocks = n_blocks
        self.calls = []

    def cluster(self, graph, resolution):
        self.calls.append(resolution)
        k = max(1, int(np.ceil(resolution * self.n_blocks)))
        n = len(graph)
        return Labeling({entity: i * k // n for i, entity in enumerate(graph)}, source='ignored')


class WarmBlockClustering(BlockClustering):

    def __init__(self, n_blocks=4):
        super().__init__(n_blocks)
        self.initial = []

    def cluster(self, graph, resolution, initial_membership=None):
        self.initial.append(initial_membership)
        return super().cluster(graph, resolution)


ENTITIES = [f"cell{i}" for i in range(8)]


class TestResolutionSweep:

    def test_protocol(self):
        assert isinstance(BlockClustering(), ClusteringAlgorithm)

    def test_one_labeling_per_resolution(self):
        algorithm = BlockClustering()
        labelings = resolution_sweep(algorithm, ENTITIES, [0.25, 0.5, 1.0])
        assert [l.source for l in labelings] == ['res0.25', 'res0.5', 'res1']
        assert [l.resolution for l in labelings] == [0.25, 0.5, 1.0]
        assert [len(l.labels) for l in labelings] == [1, 2, 4]
        assert algorithm.calls == [0.25, 0.5, 1.0]

    def test_caller_order_kept(self):
        labelings = resolution_sweep(BlockClustering(), ENTITIES, [1.0, 0.25])
        assert [l.resolution for l in labelings] == [1.0, 0.25]

    def test_plain_function(self):
        def one_cluster(graph, resolution):
            return Labeling({entity: 0 for entity in graph}, source='x')

        labelings = resolution_sweep(one_cluster, ENTITIES, [0.1])
        assert labelings[0].source == 'res0.1'

    def test_warm_start_passes_previous_labels(self):
        algorithm = WarmBlockClustering()
        labelings = resolution_sweep(algorithm, ENTITIES, config=SweepConfig(resolutions=(0.5, 1.0)))
        assert algorithm.initial[0] is None
        assert algorithm.initial[1] is labelings[0]

    def test_warm_start_off(self):
        algorithm = WarmBlockClustering()
        resolution_sweep(algorithm, ENTITIES, config=SweepConfig(resolutions=(0.5, 1.0), warm_start=False))
        assert algorithm.initial == [None, None]

    def test_bad_return_type(self):
        with pytest.raises(TypeError, match="expected Labeling"):
            resolution_sweep(lambda graph, resolution: [0] * len(graph), ENTITIES, [0.5])

    def test_requires_resolutions(self):
        with pytest.raises(ValueError):
            resolution_sweep(BlockClustering(), ENTITIES, [])

    def test_sweep_feeds_tree_builder(self):
        labelings = resolution_sweep(BlockClustering(), ENTITIES, [0.25, 0.5, 1.0])
        graph = build_crossover_graph(labelings)
        assert graph.layers == ('res0.25', 'res0.5', 'res1')
        # nested blocks: every split is clean
        assert (graph.edges[graph.edges['count'] > 0]['prop_to'] == 1.0).all()


class TestSweepConfig:

    def test_uniform_sweep(self):
        config = SweepConfig.uniform(0.0, 1.0, 0.1)
        assert len(config.resolutions) == 11
        assert config.resolutions[3] == 0.3
        assert config.resolutions[-1] == 1.0

    def test_uniform_rejects_bad_step(self):
        with pytest.raises(ValueError):
            SweepConfig.uniform(0.0, 1.0, 0.0)
        with pytest.raises(ValueError):
            SweepConfig.uniform(1.0, 0.0, 0.1)

    def test_to_dict(self):
        info = SweepConfig(resolutions=(1, 2)).to_dict()
        assert info == {'resolutions': [1.0, 2.0], 'warm_start': True}

    def test_source_tag(self):
        assert resolution_source(0.30000000000000004) == 'res0.3'

    def test_close_resolutions_get_distinct_tags(self):
        assert resolution_source(0.1234561) == 'res0.1234561'
        labelings = resolution_sweep(BlockClustering(), ENTITIES, [0.1234561, 0.1234564])
        assert labelings[0].source != labelings[1].source
        graph = build_crossover_graph(labelings)
        assert graph.n_layers == 2


class TestLeidenClustering:

    def test_two_cliques(self):
        pytest.importorskip("sknetwork")
        block = np.ones((4, 4)) - np.eye(4)
        adjacency = sp.csr_matrix(sp.block_diag([block, block]))
        labeling = LeidenClustering(entities=ENTITIES).cluster(adjacency, 1.0)
        assert len(labeling.labels) == 2
        assert labeling.label_of('cell0') == labeling.label_of('cell3')
        assert labeling.label_of('cell0') != labeling.label_of('cell4')

    def test_entity_count_must_match(self):
        pytest.importorskip("sknetwork")
        with pytest.raises(ValueError, match="entity ids"):
            LeidenClustering(entities=['a']).cluster(sp.eye(3, format='csr'), 1.0)
