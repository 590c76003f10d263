"""
Tests for ARTMAP match tracking
"""

import math
import threading
import time
from concurrent.futures import ThreadPoolExecutor, wait

import pytest
import numpy as np

from adaptive_resonance import (
    ARTMAP,
    ARTMAPParameters,
    ARTModule,
    DimensionMismatch,
    EllipsoidParameters,
    InvalidPattern,
    MatchTrackingState,
    OptimizationPolicy,
    SalienceParameters,
)


def permissive_mapper(**kwargs):
    """Module A accepts every category at baseline, so only labels decide."""
    module_a = ARTModule(EllipsoidParameters(vigilance=0.0, r_hat=4.0))
    return ARTMAP(module_a, parameters=ARTMAPParameters(**kwargs))


class TestMatchTrackingState:
    def test_terminal_states(self):
        assert MatchTrackingState.RESONANCE.is_terminal
        assert MatchTrackingState.FAIL.is_terminal
        for state in (MatchTrackingState.SEARCH_A, MatchTrackingState.CHECK_MAP,
                      MatchTrackingState.RAISE_VIGILANCE):
            assert not state.is_terminal


class TestARTMAPLearning:
    def test_first_pattern_creates_mapping(self):
        mapper = permissive_mapper()
        result = mapper.learn([0.2, 0.2], "a")
        assert result.state is MatchTrackingState.FAIL
        assert not result.exhausted
        assert result.a_index == 0
        assert result.b_label == "a"
        assert result.new_mapping
        assert mapper.map_field == {0: "a"}

    def test_conflict_raises_vigilance_above_winner(self):
        mapper = permissive_mapper()
        mapper.learn([0.2, 0.2], "a")
        result = mapper.learn([0.8, 0.8], "b")

        membership = 1.0 - math.sqrt(0.72) / 4.0
        assert result.state is MatchTrackingState.FAIL
        assert result.rejected == (0,)
        assert result.attempts == 2
        assert result.final_vigilance == pytest.approx(membership + 1e-6)
        assert result.a_index == 1
        assert mapper.map_field == {0: "a", 1: "b"}
        assert mapper.get_performance_snapshot().match_tracking_events == 1

    def test_agreeing_label_resonates(self):
        mapper = permissive_mapper()
        mapper.learn([0.2, 0.2], "a")
        mapper.learn([0.8, 0.8], "b")
        result = mapper.learn([0.2, 0.2], "a")
        assert result.state is MatchTrackingState.RESONANCE
        assert result.is_resonance
        assert result.a_index == 0
        assert result.attempts == 1
        assert result.rejected == ()
        assert not result.new_mapping

    def test_raise_reaches_lower_ranked_category(self):
        mapper = permissive_mapper()
        mapper.learn([0.0, 0.0], "a")
        mapper.learn([0.6, 0.0], "a")      # grows category 0 to radius 0.3
        mapper.learn([0.3, 0.5], "b")      # category 1

        result = mapper.learn([0.3, 0.2], "b")
        assert result.state is MatchTrackingState.RESONANCE
        assert result.rejected == (0,)
        assert result.a_index == 1
        assert result.attempts == 2
        assert result.final_vigilance == pytest.approx(0.85 + 1e-6)

    def test_vigilance_raise_is_transient(self):
        mapper = permissive_mapper()
        mapper.learn([0.2, 0.2], "a")
        mapper.learn([0.8, 0.8], "b")
        result = mapper.learn([0.8, 0.8], "b")
        assert result.final_vigilance == 0.0
        assert mapper.module_a.parameters.vigilance == 0.0

    def test_minimum_increment_floor(self):
        mapper = permissive_mapper(min_vigilance_increment=0.99)
        mapper.learn([0.2, 0.2], "a")
        result = mapper.learn([0.2, 0.3], "b")
        # membership 0.975 + epsilon stays below the floor
        assert result.final_vigilance == pytest.approx(0.99)
        assert result.state is MatchTrackingState.FAIL

    def test_search_exhaustion(self):
        mapper = permissive_mapper(max_search_attempts=1)
        mapper.learn([0.2, 0.2], "a")
        result = mapper.learn([0.8, 0.8], "b")
        assert result.state is MatchTrackingState.FAIL
        assert result.exhausted
        assert result.attempts == 1
        assert result.a_index == 1
        assert mapper.map_field[1] == "b"
        assert mapper.get_performance_snapshot().search_exhaustions == 1

    @pytest.mark.parametrize("max_attempts", [1, 2, 3, 8])
    def test_always_terminates_within_bound(self, max_attempts):
        mapper = ARTMAP(ARTModule(EllipsoidParameters(vigilance=0.3, r_hat=2.0)),
                        parameters=ARTMAPParameters(max_search_attempts=max_attempts))
        rng = np.random.default_rng(max_attempts)
        patterns = rng.uniform(size=(80, 2))
        labels = rng.integers(0, 3, size=80)
        for pattern, label in zip(patterns, labels):
            result = mapper.learn(pattern, int(label))
            assert result.state.is_terminal
            assert 1 <= result.attempts <= max_attempts
            assert len(result.rejected) <= max_attempts
            if result.exhausted:
                assert result.attempts == max_attempts
            assert mapper.map_field[result.a_index] == int(label)

    def test_unsupervised(self):
        mapper = permissive_mapper()
        first = mapper.learn([0.2, 0.2])
        second = mapper.learn([0.8, 0.8])
        assert not first.new_mapping
        assert first.b_label is None
        assert second.state is MatchTrackingState.RESONANCE
        assert second.a_index == 0
        assert mapper.map_field == {}

    def test_unhashable_label(self):
        with pytest.raises(TypeError):
            permissive_mapper().learn([0.2, 0.2], ["a"])

    def test_dimension_checked_before_learning(self):
        mapper = permissive_mapper()
        mapper.learn([0.2, 0.2], "a")
        with pytest.raises(DimensionMismatch):
            mapper.learn([0.2, 0.2, 0.2], "b")
        assert mapper.map_field == {0: "a"}
        assert mapper.module_a.get_category_count() == 1

    def test_same_module_rejected(self):
        module = ARTModule(EllipsoidParameters())
        with pytest.raises(ValueError):
            ARTMAP(module, module)

    def test_module_shared_between_mappers_rejected(self):
        module = ARTModule(EllipsoidParameters())
        ARTMAP(module)
        with pytest.raises(ValueError):
            ARTMAP(module)
        with pytest.raises(ValueError):
            ARTMAP(ARTModule(EllipsoidParameters()), module)

    def test_owned_module_refuses_direct_clear(self):
        mapper = permissive_mapper()
        mapper.learn([0.2, 0.2], "a")
        with pytest.raises(RuntimeError):
            mapper.module_a.clear()
        assert mapper.module_a.get_category_count() == 1
        assert mapper.map_field == {0: "a"}

    def test_out_of_range_input_rejected_before_learning(self):
        mapper = ARTMAP(ARTModule(SalienceParameters(vigilance=0.99)))
        mapper.learn([0.9, 0.9], "a")
        with pytest.raises(InvalidPattern):
            mapper.learn([-0.5, -0.5], "b")
        with pytest.raises(InvalidPattern):
            mapper.predict([-0.5, -0.5])
        assert mapper.map_field == {0: "a"}
        assert mapper.module_a.get_category_count() == 1

    def test_module_counters_follow_mapper_learning(self):
        mapper = permissive_mapper()
        for _ in range(3):
            mapper.learn([0.2, 0.2], "x")
        snapshot = mapper.module_a.get_performance_snapshot()
        assert snapshot.learn_operations == 3
        assert snapshot.categories_created == 1
        assert snapshot.adaptation_events == 2
        assert snapshot.adaptation_ratio == pytest.approx(2 / 3)
        assert snapshot.vector_ops_per_operation == pytest.approx(snapshot.vectorized_operations / 3)


class TestARTMAPWithModuleB:
    def build(self):
        module_a = ARTModule(EllipsoidParameters(vigilance=0.0, r_hat=4.0))
        module_b = ARTModule(EllipsoidParameters(vigilance=0.9))
        return ARTMAP(module_a, module_b)

    def test_labels_are_b_categories(self):
        mapper = self.build()
        first = mapper.learn([0.2, 0.2], [0.0, 0.0])
        second = mapper.learn([0.8, 0.8], [1.0, 1.0])

        assert first.b_label == 0
        assert first.b_result.created
        assert second.b_label == 1
        assert second.rejected == (0,)
        assert mapper.map_field == {0: 0, 1: 1}
        assert mapper.module_b.get_category_count() == 2

    def test_predict(self):
        mapper = self.build()
        mapper.learn([0.2, 0.2], [0.0, 0.0])
        mapper.learn([0.8, 0.8], [1.0, 1.0])

        prediction = mapper.predict([0.8, 0.8])
        assert prediction.is_success
        assert prediction.a_index == 1
        assert prediction.b_label == 1
        assert mapper.predict([0.2, 0.2]).b_label == 0

    def test_target_dimension_checked(self):
        mapper = self.build()
        mapper.learn([0.2, 0.2], [0.0, 0.0])
        with pytest.raises(DimensionMismatch):
            mapper.learn([0.2, 0.2], [0.0, 0.0, 0.0])

    def test_clear(self):
        mapper = self.build()
        mapper.learn([0.2, 0.2], [0.0, 0.0])
        mapper.clear()
        assert mapper.map_field == {}
        assert mapper.module_a.get_category_count() == 0
        assert mapper.module_b.get_category_count() == 0

    def test_both_modules_count_mapper_learning(self):
        mapper = self.build()
        for _ in range(3):
            mapper.learn([0.2, 0.2], [0.0, 0.0])
        mapper.learn([0.8, 0.8])
        a = mapper.module_a.get_performance_snapshot()
        b = mapper.module_b.get_performance_snapshot()
        assert a.learn_operations == 4
        assert b.learn_operations == 3
        assert b.categories_created == 1
        assert b.adaptation_ratio == pytest.approx(2 / 3)

    def test_dimension_fixed_concurrently_leaves_module_b_untouched(self, monkeypatch):
        mapper = self.build()
        store = mapper.module_a.store
        acquire = store.write_locked

        def write_locked_after_competing_learn():
            # another caller fixes A's dimension between the unlocked check and the lock
            monkeypatch.setattr(store, "write_locked", acquire)
            mapper.module_a.learn([0.1, 0.2, 0.3])
            return acquire()

        monkeypatch.setattr(store, "write_locked", write_locked_after_competing_learn)
        with pytest.raises(DimensionMismatch):
            mapper.learn([0.2, 0.2], [0.0, 0.0])

        assert mapper.module_b.get_category_count() == 0
        assert mapper.module_b.store.step == 0
        assert mapper.module_b.dimension is None
        assert mapper.map_field == {}
        assert mapper.module_a.get_category_count() == 1


class TestARTMAPPredictAndMaintenance:
    def test_predict_empty(self):
        prediction = permissive_mapper().predict([0.5, 0.5])
        assert not prediction.is_success
        assert prediction.a_index == -1
        assert prediction.b_label is None

    def test_predict_unmapped_winner(self):
        mapper = permissive_mapper()
        mapper.learn([0.2, 0.2])
        prediction = mapper.predict([0.2, 0.2])
        assert prediction.a_index == -1
        assert prediction.b_label is None

    def test_predict_does_not_mutate(self):
        mapper = permissive_mapper()
        mapper.learn_batch([[0.2, 0.2], [0.8, 0.8]], ["a", "b"])
        before = mapper.module_a.get_categories()
        mapper.predict_batch([[0.3, 0.3], [0.7, 0.9], [0.5, 0.5]])
        after = mapper.module_a.get_categories()
        assert all(x is y for x, y in zip(before, after))
        assert mapper.map_field == {0: "a", 1: "b"}

    def test_optimize_drops_pruned_mappings(self):
        module_a = ARTModule(EllipsoidParameters(vigilance=0.9))
        mapper = ARTMAP(module_a)
        for _ in range(5):
            mapper.learn([0.2, 0.2], "a")
        mapper.learn([0.8, 0.8], "b")

        report = mapper.optimize_network(OptimizationPolicy(min_usage_ratio=0.5))
        assert report.pruned_indices == (1,)
        assert mapper.map_field == {0: "a"}
        assert mapper.predict([0.8, 0.8]).b_label is None

    def test_performance_snapshot(self):
        mapper = permissive_mapper()
        mapper.learn([0.2, 0.2], "a")
        mapper.learn([0.8, 0.8], "b")
        mapper.predict([0.2, 0.2])
        snapshot = mapper.get_performance_snapshot()
        assert snapshot.learn_operations == 2
        assert snapshot.predict_operations == 1
        assert snapshot.categories_created == 2
        assert snapshot.category_count == 2
        mapper.reset_performance_tracking()
        assert mapper.get_performance_snapshot().total_operations == 0


class TestARTMAPConcurrency:
    def test_mapper_and_direct_module_calls_finish(self):
        module_a = ARTModule(EllipsoidParameters(vigilance=0.7))
        module_b = ARTModule(EllipsoidParameters(vigilance=0.9))
        mapper = ARTMAP(module_a, module_b)
        rng = np.random.default_rng(7)
        inputs = rng.uniform(size=(120, 2))
        targets = np.round(inputs)
        probes = rng.uniform(size=(40, 2))

        pool = ThreadPoolExecutor(max_workers=8)
        try:
            learns = [pool.submit(mapper.learn, x, t) for x, t in zip(inputs, targets)]
            predictions = [pool.submit(mapper.predict, p) for p in probes]
            direct = [pool.submit(module_a.predict, p) for p in probes]
            direct += [pool.submit(module_b.predict, p) for p in probes]
            direct += [pool.submit(module_b.learn, t) for t in targets[:40]]
            done, pending = wait(learns + predictions + direct, timeout=60)
        finally:
            pool.shutdown(wait=False)

        assert not pending
        for future in done:
            future.result()

        a_indices = {c.index for c in module_a.get_categories()}
        b_indices = {c.index for c in module_b.get_categories()}
        field = mapper.map_field
        assert set(field) == a_indices
        assert set(field.values()) <= b_indices
        for future in predictions:
            prediction = future.result()
            assert prediction.b_label is None or prediction.b_label in b_indices
        assert module_a.get_performance_snapshot().learn_operations == 120
        assert module_b.get_performance_snapshot().learn_operations == 160
        assert mapper.get_performance_snapshot().learn_operations == 120

    def test_optimize_during_reads_shows_whole_states(self):
        module_a = ARTModule(EllipsoidParameters(vigilance=0.9))
        mapper = ARTMAP(module_a)
        for _ in range(5):
            mapper.learn([0.1, 0.1], "a")
        mapper.learn([0.9, 0.1], "b")
        mapper.learn([0.1, 0.9], "c")
        before = {0: "a", 1: "b", 2: "c"}
        after = {0: "a"}
        stop = threading.Event()
        seen = []
        errors = []

        def reader():
            while not stop.is_set():
                try:
                    indices = tuple(c.index for c in module_a.get_categories())
                    mapping = mapper.map_field
                    label = mapper.predict([0.9, 0.1]).b_label
                    assert indices in ((0, 1, 2), (0,))
                    assert mapping in (before, after)
                    assert label in ("b", None)
                    seen.append(indices)
                except Exception as exc:  # collected for the main thread
                    errors.append(exc)
                    return

        threads = [threading.Thread(target=reader) for _ in range(4)]
        for thread in threads:
            thread.start()
        time.sleep(0.05)
        report = mapper.optimize_network(OptimizationPolicy(min_usage_ratio=0.5))
        time.sleep(0.05)
        stop.set()
        for thread in threads:
            thread.join(5.0)

        assert errors == []
        assert seen
        assert report.pruned_indices == (1, 2)
        assert mapper.map_field == after
        assert [c.index for c in module_a.get_categories()] == [0]
