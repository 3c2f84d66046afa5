"""综合疲劳指数融合单元测试"""

import pytest
from hypothesis import given, strategies as st

from evaluators.exhaustion_engine import calculate_exhaustion_index, classify_level, parse_metrics
from models.data_models import FACTOR_CATEGORIES, FACTOR_LABELS, FACTOR_WEIGHTS, Factor, FactorCategory


class TestFactorTable:
    def test_weights_cover_every_factor(self):
        assert set(FACTOR_WEIGHTS) == set(Factor)

    def test_labels_and_categories_cover_every_factor(self):
        assert set(FACTOR_LABELS) == set(Factor)
        assert set(FACTOR_CATEGORIES) == set(Factor)

    def test_category_shares(self):
        behavioral = sum(f.weight for f in Factor if f.category is FactorCategory.BEHAVIORAL)
        physiological = sum(f.weight for f in Factor if f.category is FactorCategory.PHYSIOLOGICAL)
        assert behavioral == pytest.approx(0.40)
        assert physiological == pytest.approx(0.60)


class TestClassifyLevel:
    @pytest.mark.parametrize("score,level", [
        (100, "optimal"),
        (80, "optimal"),
        (79.99, "mild"),
        (60, "mild"),
        (40, "moderate"),
        (20, "severe"),
        (19, "critical"),
        (0, "critical"),
    ])
    def test_thresholds(self, score, level):
        assert classify_level(score) == level


class TestCalculateExhaustionIndex:
    def test_empty_maps(self):
        result = calculate_exhaustion_index({}, {})
        assert result.behavioral_score == 100
        assert result.physiological_score == 100
        assert result.total_score == 100
        assert result.level == "optimal"
        assert result.should_intervene is False
        assert result.factors == ()
        assert "doing great" in result.recommendation

    def test_none_maps(self):
        assert calculate_exhaustion_index().total_score == 100

    def test_small_behavioral_penalty(self):
        result = calculate_exhaustion_index({Factor.TAB_SWITCH: 0.5}, {})
        assert result.behavioral_score == 95
        assert result.total_score == 98
        assert result.factors[0].weighted_contribution == pytest.approx(0.05)
        assert result.factors[0].weight_percent == pytest.approx(10.0)
        assert result.factors[0].category is FactorCategory.BEHAVIORAL

    def test_saturated_physiological_penalty(self):
        """生理得分被压到 0，总分恰好 40，不触发干预"""
        result = calculate_exhaustion_index({}, {Factor.EYE_FATIGUE: 50})
        assert result.physiological_score == 0
        assert result.total_score == 40
        assert result.level == "moderate"
        assert result.should_intervene is False

    def test_everything_saturated(self):
        result = calculate_exhaustion_index({Factor.TAB_SWITCH: 80}, {Factor.BLINK_RATE: 80})
        assert result.total_score == 0
        assert result.level == "critical"
        assert result.should_intervene is True
        assert "Critical exhaustion" in result.recommendation

    def test_recommendation_names_top_factor(self):
        result = calculate_exhaustion_index({Factor.IDLE_TIME: 0.5}, {Factor.EYE_FATIGUE: 2.0})
        assert result.level == "mild"
        assert result.factors[0].name == "Eye Fatigue"
        assert "Eye Fatigue" in result.recommendation

    def test_factors_sorted_descending(self):
        result = calculate_exhaustion_index(
            {Factor.IDLE_TIME: 1.0, Factor.TAB_SWITCH: 1.0},
            {Factor.EYE_FATIGUE: 1.0, Factor.STRESS_LEVEL: 1.0},
        )
        names = [f.name for f in result.factors]
        assert names == ["Eye Fatigue", "Tab Switching", "Stress Level", "Idle Time"]

    def test_equal_contributions_keep_input_order(self):
        result = calculate_exhaustion_index({Factor.TYPING_FATIGUE: 1.0, Factor.TAB_SWITCH: 1.0}, {})
        assert [f.factor for f in result.factors] == [Factor.TYPING_FATIGUE, Factor.TAB_SWITCH]

    def test_string_keys_accepted(self):
        by_name = calculate_exhaustion_index({"tabSwitch": 0.5}, {"blinkRate": 0.2})
        by_enum = calculate_exhaustion_index({Factor.TAB_SWITCH: 0.5}, {Factor.BLINK_RATE: 0.2})
        assert by_name == by_enum

    def test_duplicate_keys_counted_once(self):
        """枚举键和字符串键指向同一因子时只计入一次"""
        result = calculate_exhaustion_index({Factor.TAB_SWITCH: 1.0, "tabSwitch": 1.0}, {})
        single = calculate_exhaustion_index({Factor.TAB_SWITCH: 1.0}, {})
        assert [f.factor for f in result.factors] == [Factor.TAB_SWITCH]
        assert result.behavioral_score == single.behavioral_score
        assert result.total_score == single.total_score

    def test_unknown_and_missing_values_ignored(self):
        result = calculate_exhaustion_index({"bogus": 99, Factor.TAB_SWITCH: None}, {})
        assert result.total_score == 100
        assert result.factors == ()

    def test_wrong_category_ignored(self):
        result = calculate_exhaustion_index({Factor.EYE_FATIGUE: 1.0}, {Factor.TAB_SWITCH: 1.0})
        assert result.factors == ()

    def test_to_dict(self):
        data = calculate_exhaustion_index({Factor.CLICK_ACCURACY: 1.0}, {}).to_dict()
        assert data["factors"][0]["key"] == "clickAccuracy"
        assert data["factors"][0]["category"] == "behavioral"
        assert data["level"] == "optimal"


_values = st.floats(min_value=0.0, max_value=100.0, allow_nan=False)


class TestMonotonicity:
    @given(
        base=st.dictionaries(st.sampled_from(list(Factor)), _values),
        factor=st.sampled_from(list(Factor)),
        increase=st.floats(min_value=0.0, max_value=100.0, allow_nan=False),
    )
    def test_raising_a_penalty_never_raises_total(self, base, factor, increase):
        def split(metrics):
            behavioral = {k: v for k, v in metrics.items() if k.category is FactorCategory.BEHAVIORAL}
            physiological = {k: v for k, v in metrics.items() if k.category is FactorCategory.PHYSIOLOGICAL}
            return behavioral, physiological

        raised = dict(base)
        raised[factor] = base.get(factor, 0.0) + increase

        before = calculate_exhaustion_index(*split(base))
        after = calculate_exhaustion_index(*split(raised))
        assert after.total_score <= before.total_score
        assert 0 <= after.total_score <= 100


class TestParseMetrics:
    def test_filters_invalid_entries(self):
        parsed = parse_metrics({"tabSwitch": 3, "idleTime": "high", "earScore": True, "nope": 1})
        assert parsed == {Factor.TAB_SWITCH: 3.0}

    def test_none(self):
        assert parse_metrics(None) == {}
