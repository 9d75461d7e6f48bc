"""Tests for the Selector engine."""

import random

import numpy as np
import pytest

from statfeed import (
    Selector, Configuration, InvalidConfiguration, DegenerateWeight,
    NoAcceptableOption, acceptAll, sort_options, config
)
from statfeed import analysis


def assert_in_delta(expected, actual, delta=1e-10):
    assert abs(expected - actual) < delta


class TestIncrements:
    """Scheduling values for a known configuration."""

    def test_true_increment(self, abc_selector):
        assert_in_delta(3.0, abc_selector.true_increment(0, 0))

    def test_expected_increment(self, abc_selector):
        assert_in_delta(3.03, abc_selector.expected_increment(0, 0))

    def test_scheduling_values(self, abc_selector):
        values = abc_selector.scheduling_values(0)
        assert len(values) == 3
        for expected, actual in zip([3.03, 3.06, 3.09], values):
            assert_in_delta(expected, actual)

    def test_zero_weight_is_infinite(self, abc_selector):
        abc_selector.weights = [[0, 0.5, 0.5]] * 3
        assert abc_selector.true_increment(0, 0) == float('inf')
        assert abc_selector.expected_increment(0, 0) == float('inf')
        values = abc_selector.scheduling_values(0)
        assert np.isinf(values[0])
        assert not np.isnan(values).any()

    def test_weight_monotonicity(self, abc_selector):
        before = abc_selector.scheduling_values(1)[2]
        weights = abc_selector.weights.copy()
        weights[1, 2] *= 2
        abc_selector.weights = weights
        after = abc_selector.scheduling_values(1)[2]
        assert after < before
        # other options are not affected
        assert_in_delta(abc_selector.scheduling_values(1)[0], 3 * (1 + 0.1 * 0.4))

    def test_normalization_value(self, abc_selector):
        assert_in_delta(1.0, abc_selector.normalization_value(0))
        abc_selector.weights = [[1, 1, 2]] * 3
        assert_in_delta(0.25, abc_selector.normalization_value(0))


class TestSortOptions:

    def test_sort_options(self, abc_selector):
        assert abc_selector.sort_options([0.3, 0.5, 0.4]) == ['a', 'c', 'b']

    def test_stable_for_ties(self):
        assert sort_options(['x', 'y', 'z'], [1.0, 0.5, 1.0]) == ['y', 'x', 'z']

    def test_nan_sorts_last(self):
        assert sort_options(['x', 'y', 'z'], [float('nan'), 2.0, 1.0]) == ['z', 'y', 'x']

    def test_wrong_number_of_values(self):
        with pytest.raises(ValueError):
            sort_options(['x', 'y'], [1.0])


class TestPopulateChoices:

    def test_charges_chosen_option(self, abc_selector):
        choices = abc_selector.populate_choices()
        assert choices == ['a', 'b', 'c']
        assert abc_selector.choices == choices
        assert abc_selector.choice_indices == [0, 1, 2]
        assert np.allclose(abc_selector.statistics, [0, 0, 0])

    def test_rank_target(self, abc_selector):
        abc_selector.incrementTarget = 'rank'
        assert abc_selector.populate_choices() == ['a', 'b', 'b']

    def test_rank_target_from_config(self):
        config['increment.target'] = 'rank'
        sel = Selector(['a', 'b', 'c'], 3)
        sel.randoms = [[0.1, 0.2, 0.3], [0.4, 0.5, 0.6], [0.7, 0.8, 0.9]]
        assert sel.incrementTarget == 'rank'
        assert sel.populate_choices() == ['a', 'b', 'b']

    def test_invalid_target(self, abc_selector):
        with pytest.raises(InvalidConfiguration):
            abc_selector.incrementTarget = 'random'

    def test_length(self):
        for size in (1, 7, 50):
            sel = Selector(range(4), size, rng=size)
            assert len(sel.populate_choices()) == size

    def test_size_zero(self):
        sel = Selector(['a', 'b'], 0)
        assert sel.populate_choices() == []
        assert (sel.statistics == 0).all()
        assert sel.history.shape == (0, 2)

    def test_deterministic(self, weighted_selector):
        other = weighted_selector.copy()
        first = weighted_selector.populate_choices()
        assert other.populate_choices() == first
        assert weighted_selector.populate_choices(reset=True) == first

    def test_same_seed_same_choices(self):
        a = Selector('abcd', 40, rng=7).populate_choices()
        b = Selector('abcd', 40, rng=7).populate_choices()
        assert a == b

    def test_rerun_compounds_statistics(self, abc_selector):
        abc_selector.incrementTarget = 'rank'
        assert abc_selector.populate_choices() == ['a', 'b', 'b']
        assert np.allclose(abc_selector.statistics, [6, -3, -3])
        # the debt of the first run carries over
        assert abc_selector.populate_choices()[0] == 'b'
        abc_selector.reset()
        assert (abc_selector.statistics == 0).all()
        assert abc_selector.choices == []
        assert abc_selector.history is None
        assert abc_selector.populate_choices() == ['a', 'b', 'b']

    def test_zero_weight_never_chosen(self):
        size = 200
        sel = Selector(['a', 'b', 'c', 'd'], size, rng=3)
        rng = np.random.default_rng(5)
        weights = rng.random((size, 4))
        weights[rng.random((size, 4)) < 0.4] = 0
        weights[:, 3] = np.where(weights.sum(axis=1) == 0, 1, weights[:, 3])
        sel.weights = weights
        sel.populate_choices()
        for decision, idx in enumerate(sel.choice_indices):
            assert weights[decision, idx] > 0

    def test_proportional_frequencies(self, weighted_selector):
        weighted_selector.populate_choices()
        freqs = analysis.frequencies(weighted_selector)
        expected = np.array([1, 2, 3]) / 6
        assert np.abs(freqs - expected).max() < 0.02

    def test_statistics_bounded(self):
        sel = Selector(['a', 'b', 'c'], 3000, rng=11)
        sel.weights = [[1/6, 2/6, 3/6]] * 3000
        sel.populate_choices()
        spreads = analysis.spread(sel.history)
        maxincrement = (1 + 0.1) * 6
        assert spreads.max() < 2 * maxincrement

    def test_history(self, abc_selector):
        abc_selector.populate_choices()
        history = abc_selector.history
        assert history.shape == (3, 3)
        assert np.allclose(history[-1], abc_selector.statistics)

    def test_no_history(self):
        config['history'] = False
        sel = Selector(['a', 'b'], 4)
        sel.populate_choices()
        assert sel.history is None


class TestAcceptability:

    def test_default_predicate(self):
        assert acceptAll('anything', 0)

    def test_custom_predicate(self):
        def noAOnEven(option, decision):
            return not (option == 'a' and decision % 2 == 0)

        sel = Selector(['a', 'b'], 20, rng=2, accept=noAOnEven)
        sel.weights = [[10, 1]] * 20
        choices = sel.populate_choices()
        assert all(choice != 'a' for choice in choices[::2])
        assert 'a' in choices[1::2]

    def test_no_acceptable_option(self):
        def rejectAtTwo(option, decision):
            return decision != 2

        sel = Selector(['a', 'b', 'c'], 4, accept=rejectAtTwo)
        with pytest.raises(NoAcceptableOption) as excinfo:
            sel.populate_choices()
        assert excinfo.value.decision == 2
        assert sel.choices == []
        assert (sel.statistics == 0).all()

    def test_failed_run_rolls_back(self):
        state = {'strict': False}

        def accept(option, decision):
            return not state['strict'] or decision != 2

        sel = Selector(['a', 'b', 'c'], 3, accept=accept)
        sel.randoms = [[0.1, 0.2, 0.3], [0.4, 0.5, 0.6], [0.7, 0.8, 0.9]]
        sel.incrementTarget = 'rank'
        choices = sel.populate_choices()
        stats = sel.statistics
        history = sel.history
        state['strict'] = True
        with pytest.raises(NoAcceptableOption):
            sel.populate_choices()
        assert sel.choices == choices
        assert np.allclose(sel.statistics, stats)
        assert sel.history is history

    def test_failed_run_with_reset_rolls_back(self):
        state = {'strict': False}

        def accept(option, decision):
            return not state['strict'] or decision != 2

        sel = Selector(['a', 'b', 'c'], 3, accept=accept)
        sel.randoms = [[0.1, 0.2, 0.3], [0.4, 0.5, 0.6], [0.7, 0.8, 0.9]]
        sel.incrementTarget = 'rank'
        choices = sel.populate_choices()
        stats = sel.statistics
        history = sel.history
        state['strict'] = True
        with pytest.raises(NoAcceptableOption):
            sel.populate_choices(reset=True)
        assert sel.choices == choices == ['a', 'b', 'b']
        assert sel.choice_indices == [0, 1, 1]
        assert np.allclose(sel.statistics, stats)
        assert sel.history is history

    def test_predicate_error_rolls_back(self):
        def accept(option, decision):
            if decision == 2:
                raise RuntimeError("predicate failed")
            return True

        sel = Selector(['a', 'b', 'c'], 3, accept=accept)
        sel.randoms = [[0.1, 0.2, 0.3], [0.4, 0.5, 0.6], [0.7, 0.8, 0.9]]
        with pytest.raises(RuntimeError):
            sel.populate_choices()
        assert sel.choices == []
        assert sel.choice_indices == []
        assert (sel.statistics == 0).all()
        assert sel.history is None

    def test_all_zero_weights(self):
        sel = Selector(['a', 'b'], 3)
        sel.weights = [[0.5, 0.5], [0, 0], [0.5, 0.5]]
        with pytest.raises(NoAcceptableOption) as excinfo:
            sel.populate_choices()
        assert excinfo.value.decision == 1
        assert sel.choices == []
        assert (sel.statistics == 0).all()


class TestConstruction:

    def test_defaults(self):
        sel = Selector(['a', 'b', 'c', 'd'], 5)
        assert sel.weights.shape == (5, 4)
        assert np.allclose(sel.weights, 0.25)
        assert sel.randoms.shape == (5, 4)
        assert ((0 <= sel.randoms) & (sel.randoms < 1)).all()
        assert np.allclose(sel.heterogeneities, 0.1)
        assert np.allclose(sel.accents, 1.0)
        assert (sel.statistics == 0).all()
        assert sel.choices == []

    def test_config_defaults(self):
        config['heterogeneity'] = 0.5
        config['accent'] = 2.0
        sel = Selector(['a', 'b'], 3)
        assert np.allclose(sel.heterogeneities, 0.5)
        assert np.allclose(sel.accents, 2.0)

    def test_empty_options(self):
        with pytest.raises(InvalidConfiguration):
            Selector([], 3)

    def test_negative_size(self):
        with pytest.raises(InvalidConfiguration):
            Selector(['a'], -1)

    def test_configuration(self):
        conf = Configuration(weights=[[1, 0], [0, 1]], accents=[1, 2], heterogeneities=0)
        sel = Selector(['a', 'b'], 2, config=conf)
        assert sel.populate_choices() == ['a', 'b']
        assert list(sel.accents) == [1, 2]
        assert list(sel.heterogeneities) == [0, 0]

    def test_injected_sources(self):
        sel = Selector(['a', 'b'], 2, rng=lambda: 0.5)
        assert (sel.randoms == 0.5).all()
        r1 = Selector(['a', 'b'], 3, rng=random.Random(9)).randoms
        r2 = Selector(['a', 'b'], 3, rng=random.Random(9)).randoms
        assert (r1 == r2).all()
        gen = np.random.default_rng(4)
        assert Selector(['a', 'b'], 3, rng=gen).randoms.shape == (3, 2)

    def test_options_are_immutable(self):
        options = ['a', 'b']
        sel = Selector(options, 2)
        options.append('c')
        assert sel.options == ('a', 'b')


class TestConfigure:

    def test_wrong_shape(self, abc_selector):
        with pytest.raises(InvalidConfiguration):
            abc_selector.weights = [[1, 1]] * 3
        with pytest.raises(InvalidConfiguration):
            abc_selector.randoms = [[0.1, 0.2, 0.3]]
        with pytest.raises(InvalidConfiguration):
            abc_selector.accents = [1, 1]

    def test_negative_weight(self, abc_selector):
        with pytest.raises(DegenerateWeight):
            abc_selector.weights = [[1, -1, 1]] * 3
        with pytest.raises(InvalidConfiguration):
            abc_selector.weights = [[1, float('inf'), 1]] * 3

    def test_negative_heterogeneity(self, abc_selector):
        with pytest.raises(InvalidConfiguration):
            abc_selector.heterogeneities = [0.1, -0.1, 0.1]

    def test_atomic(self, abc_selector):
        weights = abc_selector.weights.copy()
        with pytest.raises(InvalidConfiguration):
            abc_selector.configure(weights=[[1, 2, 3]] * 3, randoms=[[0.1]])
        assert (abc_selector.weights == weights).all()

    def test_matrices_are_readonly(self, abc_selector):
        with pytest.raises(ValueError):
            abc_selector.weights[0, 0] = -1
        with pytest.raises(ValueError):
            abc_selector.accents[0] = 2
        assert abc_selector.weights[0, 0] > 0

    def test_scalar_vector(self, abc_selector):
        abc_selector.configure(heterogeneities=0.3, accents=2)
        assert np.allclose(abc_selector.heterogeneities, [0.3] * 3)
        assert np.allclose(abc_selector.accents, [2] * 3)


def test_report(abc_selector):
    abc_selector.populate_choices()
    table = abc_selector.report()
    for word in ('option', 'expected', 'observed', 'count', 'statistic', 'a', 'b', 'c'):
        assert word in table
