import math
import numpy as np
import pytest
from cropclass.adapters.rule_predictor import RulePredictor
from cropclass.config import DEFAULT_CLASSES, DEFAULT_RULES, DEFAULT_TIERS
from cropclass.contracts.core import ClassLabel
from cropclass.contracts.errors import InvalidFeatureError
from cropclass.contracts.model import Condition, DecisionRule
from cropclass.services.confidence_service import ConfidenceClassifier
from tests.factories import make_features

@pytest.fixture
def predictor():
    return RulePredictor(rules=DEFAULT_RULES, classes_def=DEFAULT_CLASSES)

GRID = np.round(np.linspace(-1.0, 1.0, 21), 2)

def test_dense_high_evi_is_forest(predictor):
    for ndvi in GRID[GRID > 0.8]:
        for evi in GRID[GRID > 0.9]:
            out = predictor.predict(make_features(ndvi=float(ndvi), evi=float(evi)))
            assert out.label == "Forest"
            assert 0.85 <= out.confidence <= 0.95

def test_dense_low_evi_is_oil_palm(predictor):
    out = predictor.predict(make_features(ndvi=0.85, evi=0.5, savi=0.1))
    assert out.label == "OilPalm"
    assert 0.75 <= out.confidence <= 0.90

def test_mid_high_savi_is_oil_palm(predictor):
    out = predictor.predict(make_features(ndvi=0.7, evi=0.0, savi=0.75))
    assert out.label == "OilPalm"
    assert 0.70 <= out.confidence <= 0.90

def test_mid_low_savi_is_cacao(predictor):
    for ndvi in (0.61, 0.7, 0.8):
        for savi in GRID[GRID <= 0.7]:
            out = predictor.predict(make_features(ndvi=ndvi, savi=float(savi)))
            assert out.label == "Cacao"
            assert 0.65 <= out.confidence <= 0.90

def test_sparse_is_cacao(predictor):
    for ndvi in GRID[GRID <= 0.6]:
        for evi in (-1.0, 0.95, 1.0):
            out = predictor.predict(make_features(ndvi=float(ndvi), evi=evi, savi=0.9))
            assert out.label == "Cacao"
            assert 0.45 <= out.confidence <= 0.75

def test_scenario_forest_high_tier(predictor):
    out = predictor.predict(make_features(ndvi=0.85, evi=0.95, savi=0.8))
    assert out.label == "Forest"
    level = ConfidenceClassifier.from_table(DEFAULT_TIERS).classify(out.confidence)
    assert level.level in (4, 5)

def test_confidence_deterministic_and_grows_with_margin(predictor):
    a = predictor.predict(make_features(ndvi=0.3))
    b = predictor.predict(make_features(ndvi=0.3))
    c = predictor.predict(make_features(ndvi=-0.5))
    assert a == b
    assert c.confidence > a.confidence

def test_probabilities_normalized(predictor):
    out = predictor.predict(make_features(ndvi=0.7, savi=0.2))
    assert set(out.probabilities) == {"OilPalm", "Cacao", "Forest"}
    assert math.isclose(sum(out.probabilities.values()), 1.0)
    assert out.probabilities[out.label] == out.confidence
    assert max(out.probabilities, key=out.probabilities.get) == out.label

@pytest.mark.parametrize("kw", [
    {"ndvi": 1.5}, {"evi": -1.01}, {"savi": float("nan")},
    {"mean_red": -0.1}, {"std_nir": -1.0}, {"area_ha": 0.0},
])
def test_invalid_features(predictor, kw):
    with pytest.raises(InvalidFeatureError) as ei:
        predictor.predict(make_features(**kw))
    assert ei.value.feature == next(iter(kw))
    assert ei.value.code == "INVALID_FEATURE"

def test_extensible_label_set_without_code_changes():
    classes = tuple(DEFAULT_CLASSES) + (ClassLabel(id=4, name="Bare"),)
    rules = (DecisionRule(label="Bare", when=(Condition(feature="ndvi", op="<=", threshold=0.1),), band=(0.6, 0.9)),) + DEFAULT_RULES
    p = RulePredictor(rules=rules, classes_def=classes)
    out = p.predict(make_features(ndvi=0.0))
    assert out.label == "Bare"
    assert len(out.probabilities) == 4
    assert math.isclose(sum(out.probabilities.values()), 1.0)

def test_rules_with_unknown_label_rejected():
    with pytest.raises(ValueError):
        RulePredictor(rules=(DecisionRule(label="Maize", band=(0.1, 0.2)),), classes_def=DEFAULT_CLASSES)

def test_no_matching_rule():
    rules = (DecisionRule(label="Forest", when=(Condition(feature="ndvi", op=">", threshold=0.9),), band=(0.8, 0.9)),)
    p = RulePredictor(rules=rules, classes_def=DEFAULT_CLASSES)
    with pytest.raises(InvalidFeatureError):
        p.predict(make_features(ndvi=0.1))
