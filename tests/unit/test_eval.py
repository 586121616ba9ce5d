"""
Unit tests for eval module
"""
import pandas as pd
import pytest

from log_sentinel.eval import evaluate_file, evaluate_lines
from log_sentinel.synth import generate_inference_anomaly, generate_training_data
from log_sentinel.pipeline import run_training


class TestEvaluateLines:
    """Tests for evaluate_lines"""

    def test_prf1_counts(self):
        """Test precision, recall and F1 from a small confusion table"""
        scored = pd.DataFrame({"line_no": [0, 1, 2, 3], "z": [3.0, 3.0, 0.0, 0.0]})
        labels = pd.DataFrame({"line_no": [0, 1, 2, 3], "is_anomaly": [1, 0, 1, 0]})
        p, r, f1 = evaluate_lines(scored, labels, threshold=2.5)
        assert p == pytest.approx(0.5)
        assert r == pytest.approx(0.5)
        assert f1 == pytest.approx(0.5)

    def test_no_predictions(self):
        """Test zero division yields zeros"""
        scored = pd.DataFrame({"line_no": [0, 1], "z": [0.0, 0.0]})
        labels = pd.DataFrame({"line_no": [0, 1], "is_anomaly": [0, 0]})
        assert evaluate_lines(scored, labels, 2.5) == (0.0, 0.0, 0.0)


class TestEvaluateFile:
    """Tests for evaluate_file"""

    @pytest.mark.slow
    def test_synthetic_recall(self, tmp_path):
        """Test the detector recovers most synthetic anomalies"""
        train = generate_training_data(tmp_path / "train.log", num_lines=2000, seed=1)
        test = generate_inference_anomaly(tmp_path / "test.log", num_lines=500, anomaly_rate=0.1, seed=2)
        run_training(train, tmp_path / "model")
        p, r, f1 = evaluate_file(tmp_path / "model", test, f"{test}.labels.parquet", threshold=2.5)
        assert r > 0.5
        assert 0.0 <= p <= 1.0 and 0.0 <= f1 <= 1.0
