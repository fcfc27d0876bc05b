"""Tests for the quality scorer."""

import copy

import numpy as np
import pytest

from extrusion_analytics.core import HistoricalWindow, InvalidBatchError
from extrusion_analytics.detectors.quality import (
    QualityScorer,
    cpk_to_score,
    deviation_score,
    process_capability,
    score_quality,
)


class TestDeviationScore:

    def test_full_score_within_half_width(self):
        assert deviation_score(25.0, 25.0, (-0.5, 0.5)) == 1.0
        assert deviation_score(25.5, 25.0, (-0.5, 0.5)) == 1.0
        assert deviation_score(24.5, 25.0, {'min': -0.5, 'max': 0.5}) == 1.0

    def test_linear_decay_beyond_half_width(self):
        assert deviation_score(25.75, 25.0, (-0.5, 0.5)) == pytest.approx(0.5)
        assert deviation_score(26.0, 25.0, (-0.5, 0.5)) == pytest.approx(0.0)
        assert deviation_score(40.0, 25.0, (-0.5, 0.5)) == 0.0

    def test_monotonically_non_increasing(self):
        scores = [deviation_score(320.0 + d, 320.0, (-20.0, 20.0)) for d in np.linspace(0, 60, 121)]
        assert all(a >= b for a, b in zip(scores, scores[1:]))
        assert scores[0] == 1.0
        assert scores[-1] == 0.0

    def test_degenerate_inputs(self):
        assert deviation_score(1.0, 1.0, (0.0, 0.0)) == 0.0
        assert deviation_score(None, 1.0, (-1.0, 1.0)) == 0.0
        assert deviation_score(1.0, float('nan'), (-1.0, 1.0)) == 0.0


class TestProcessCapability:

    def test_known_values(self):
        values = np.array([24.9, 25.1, 25.0, 24.95, 25.05, 25.0, 24.9, 25.1, 25.02, 24.98])
        sigma = np.std(values, ddof=1)
        result = process_capability(values, 24.5, 25.5)
        assert result.cp == pytest.approx(1.0 / (6 * sigma))
        expected_cpk = min(25.5 - values.mean(), values.mean() - 24.5) / (3 * sigma)
        assert result.cpk == pytest.approx(expected_cpk)

    def test_too_few_points(self):
        result = process_capability([1.0, 2.0, 3.0] * 3, 0.0, 4.0)
        assert (result.cp, result.cpk) == (0.0, 0.0)

    def test_zero_sigma(self):
        result = process_capability([5.0] * 20, 0.0, 10.0)
        assert (result.cp, result.cpk) == (0.0, 0.0)

    def test_inverted_or_missing_limits(self):
        values = np.linspace(1, 2, 12)
        assert process_capability(values, 3.0, 3.0).cp == 0.0
        assert process_capability(values, 5.0, 1.0).cp == 0.0
        assert process_capability(values, None, 1.0).cp == 0.0

    def test_cpk_floored_at_zero(self):
        values = np.linspace(30.0, 31.0, 12)   # mean outside the limits
        result = process_capability(values, 24.5, 25.5)
        assert result.cp > 0
        assert result.cpk == 0.0

    def test_to_dict(self):
        assert process_capability([1.0] * 3, 0, 1).to_dict() == {'Cp': 0.0, 'Cpk': 0.0}


class TestCpkToScore:

    @pytest.mark.parametrize('cpk,expected', [
        (0.0, 0.0), (0.67, 0.0), (1.0, 25.0), (1.33, 50.0), (2.5, 50.0),
    ])
    def test_linear_and_clamped(self, cpk, expected):
        assert cpk_to_score(cpk) == pytest.approx(expected)


class TestScoreQuality:

    def test_on_target_without_history(self, make_reading):
        annotation = score_quality(make_reading())
        assert annotation.deviation_score == pytest.approx(50.0)
        assert annotation.capability_score == 0.0
        assert annotation.score == 50
        assert set(annotation.deviation_detail) >= {'actual_thickness', 'total_output',
                                                    'materials.extruder_C[3].actual_ratio'}
        assert annotation.deviation_detail['total_output'] == {'actual': 320.0, 'target': 320.0, 'score': 1.0}

    def test_missing_targets_are_skipped(self):
        annotation = score_quality({'actual_thickness': 25.0, 'target_thickness': 25.0, 'total_output': 500.0})
        assert list(annotation.deviation_detail) == ['actual_thickness']
        assert annotation.deviation_score == pytest.approx(50.0)
        assert annotation.process_capability['throughput'].cp == 0.0

    def test_caller_tolerance_overrides_default(self, make_reading):
        reading = {'actual_thickness': 25.75, 'target_thickness': 25.0}
        assert score_quality(reading).deviation_score == pytest.approx(25.0)
        widened = score_quality(reading, tolerances={'actual_thickness': (-2.0, 2.0)})
        assert widened.deviation_score == pytest.approx(50.0)

    def test_capable_process_earns_full_capability(self, make_reading):
        history = [
            make_reading(i, actual_thickness=25.0 + (0.05 if i % 2 else -0.05), total_output=320.0 + (1 if i % 2 else -1))
            for i in range(20)
        ]
        window = HistoricalWindow.from_records(history)
        annotation = score_quality(make_reading(30), window=window)
        assert annotation.process_capability['thickness'].cpk > 1.33
        assert annotation.capability_score == pytest.approx(50.0)
        assert annotation.score == 100

    def test_capability_ignores_implausible_list_entries(self, make_reading):
        history = [make_reading(i, total_output=320.0 + i % 3) for i in range(9)]
        history += [make_reading(20 + i, total_output=0.0) for i in range(5)]
        annotation = score_quality(make_reading(30), window=history)
        assert annotation.process_capability['throughput'].cp == 0.0

    def test_record_fields(self, make_reading):
        fields = score_quality(make_reading()).to_record_fields()
        assert fields['quality_score'] == 50
        assert fields['process_capability'] == {
            'thickness': {'Cp': 0.0, 'Cpk': 0.0},
            'throughput': {'Cp': 0.0, 'Cpk': 0.0},
        }
        assert isinstance(fields['quality_details'], dict)


class TestScoreBatch:

    def test_non_list_batch_raises(self):
        with pytest.raises(InvalidBatchError):
            QualityScorer().score_batch('readings')

    def test_empty_batch(self):
        assert QualityScorer().score_batch([]) == []

    def test_implausible_reading_gets_zero_score(self, make_reading):
        results = QualityScorer().score_batch([make_reading(0, total_output=-1.0)])
        assert results[0]['quality_score'] == 0
        assert results[0]['quality_details'] == {}
        assert results[0]['process_capability']['thickness'] == {'Cp': 0.0, 'Cpk': 0.0}

    def test_does_not_mutate_input(self, make_reading):
        readings = [make_reading(i) for i in range(3)]
        snapshot = copy.deepcopy(readings)
        results = QualityScorer().score_batch(readings)
        assert readings == snapshot
        assert all(r['quality_score'] == 50 for r in results)

    def test_scorer_level_tolerances(self, make_reading):
        scorer = QualityScorer(tolerances={'total_output': (-100.0, 100.0)})
        reading = make_reading(0, total_output=370.0)
        assert scorer.score(reading).deviation_detail['total_output']['score'] == 1.0
        assert QualityScorer().score(reading).deviation_detail['total_output']['score'] == pytest.approx(0.0)
