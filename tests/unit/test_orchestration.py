"""
Unit tests for pipeline module
"""
import pandas as pd
import pytest

from log_sentinel.errors import ConfigurationError
from log_sentinel.model import FrequencyModel
from log_sentinel.pipeline import (
    SCORE_COLUMNS, ScoreParams, TrainParams, WatchParams, bootstrap_scores, explain_line,
    rank_anomalies, run_scoring, run_training, score_line, score_lines, train_model, watch_lines,
)
from log_sentinel.scorer import score
from log_sentinel.stats import compute_stats
from log_sentinel.store import load_model
from log_sentinel.tokenizer import tokenize


class TestParams:
    """Tests for parameter dataclasses"""

    def test_defaults(self):
        """Test default parameters"""
        assert TrainParams().min_count == 1
        assert (ScoreParams().threshold, ScoreParams().top_k) == (2.5, 200)
        watch = WatchParams()
        assert (watch.poll_interval, watch.initial_lines, watch.max_line_chars) == (1.0, 10, 400)


class TestTraining:
    """Tests for train_model and run_training"""

    def test_train_model_prunes(self, tiny_corpus):
        """Test min_count is applied after counting"""
        model = train_model(tiny_corpus, TrainParams(min_count=2))
        assert "d" not in model.unigram_counts

    def test_train_model_rejects_bad_min_count(self, tiny_corpus):
        """Test min_count below one raises before counting"""
        with pytest.raises(ConfigurationError):
            train_model(iter(tiny_corpus), TrainParams(min_count=0))

    def test_bootstrap_includes_blank_lines(self, tiny_corpus):
        """Test every line including blanks gets a bootstrap score"""
        model = FrequencyModel.train(tiny_corpus)
        scores = bootstrap_scores(tiny_corpus + [""], model)
        assert len(scores) == 4
        assert scores[-1] == 0.0

    def test_run_training_persists(self, tmp_path, corpus_file):
        """Test run_training writes a loadable model directory"""
        result = run_training(corpus_file, tmp_path / "m")
        model, stats = load_model(result.model_dir)
        assert model == result.model
        assert stats == result.stats
        assert result.num_lines == 100

    def test_identical_lines_clamp_mad(self, tmp_path):
        """Test a corpus of one repeated line stores MAD 1"""
        corpus = tmp_path / "same.log"
        corpus.write_text("service started ok\n" * 10)
        result = run_training(corpus, tmp_path / "m")
        assert result.stats.mad == 1.0


class TestScoring:
    """Tests for scoring and ranking"""

    def test_score_line_never_fails(self, tiny_corpus):
        """Test arbitrary text scores to a finite value"""
        model = FrequencyModel.train(tiny_corpus)
        stats = compute_stats([1.0, 2.0, 3.0])
        for text in ["", "\t", "ÄÖÜ ß", "!!!"]:
            scored = score_line(text, model, stats)
            assert scored.score >= 0

    def test_score_lines_frame(self, tiny_corpus):
        """Test score table columns and line numbers"""
        model = FrequencyModel.train(tiny_corpus)
        stats = compute_stats(bootstrap_scores(tiny_corpus, model))
        frame = score_lines(["a b c", "x"], model, stats)
        assert list(frame.columns) == SCORE_COLUMNS
        assert frame["line_no"].tolist() == [0, 1]
        assert frame.loc[0, "score"] == score(tokenize("a b c"), model)

    def test_rank_anomalies_filters_sorts_truncates(self):
        """Test threshold filter, descending order, stable ties and top_k"""
        frame = pd.DataFrame({
            "line_no": [0, 1, 2, 3, 4],
            "score": [1.0, 5.0, 3.0, 3.0, 9.0],
            "z": [0.1, 3.0, 2.6, 2.6, 5.0],
            "line": ["a", "b", "c", "d", "e"],
        })
        ranked = rank_anomalies(frame, threshold=2.5, top_k=3)
        assert ranked["line"].tolist() == ["e", "b", "c"]
        assert rank_anomalies(frame, threshold=2.5, top_k=0).empty

    def test_rank_anomalies_rejects_negative_top_k(self):
        """Test negative top_k raises"""
        frame = pd.DataFrame(columns=SCORE_COLUMNS)
        with pytest.raises(ConfigurationError):
            rank_anomalies(frame, 2.5, -1)

    def test_run_scoring_flags_unusual_lines(self, model_dir, tmp_log_file):
        """Test unusual lines rank above the threshold"""
        ranked, stats = run_scoring(tmp_log_file, model_dir, ScoreParams(threshold=2.5, top_k=10))
        assert len(ranked) >= 1
        assert (ranked["z"] >= 2.5).all()
        assert "kernel BUG" in " ".join(ranked["line"])
        assert stats.mad > 0


class TestWatchAndExplain:
    """Tests for watch_lines and explain_line"""

    def test_watch_lines_reports_each_anomaly(self, model_dir):
        """Test anomalies are passed to the callback in arrival order"""
        model, stats = load_model(model_dir)
        seen = []
        lines = ["Sep 14 05:04:44 hostname kernel: CPU1: Core temperature/speed normal",
                 " ".join(f"zork{i}" for i in range(20)),
                 " ".join(f"flux{i}" for i in range(20))]
        processed = watch_lines(iter(lines), model, stats, 2.5, seen.append)
        assert processed == 3
        assert [s.line_no for s in seen] == [1, 2]

    def test_explain_line_attaches_z(self, tiny_corpus):
        """Test explain_line fills z only with stats"""
        model = FrequencyModel.train(tiny_corpus)
        stats = compute_stats(bootstrap_scores(tiny_corpus, model))
        assert explain_line("a b c", model).z is None
        result = explain_line("a b c", model, stats)
        assert result.z == stats.z_score(result.total)
