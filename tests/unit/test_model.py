"""
Unit tests for model module
"""
import pytest

from log_sentinel.errors import ConfigurationError, DegenerateModelError
from log_sentinel.model import FrequencyModel


class TestTraining:
    """Tests for FrequencyModel.train"""

    def test_exact_counts(self, tiny_corpus):
        """Test unigram and bigram counts on the three-line corpus"""
        model = FrequencyModel.train(tiny_corpus)
        assert model.unigram_counts == {"a": 3, "b": 3, "c": 2, "d": 1}
        assert model.bigram_counts == {("a", "b"): 3, ("b", "c"): 2, ("b", "d"): 1}

    def test_derived_values(self, tiny_corpus):
        """Test vocabulary size, total count and left totals"""
        model = FrequencyModel.train(tiny_corpus)
        assert model.vocabulary_size == 4
        assert model.total_unigram_count == 9
        assert model.left_totals == {"a": 3, "b": 3}
        assert model.left_total("c") == 0
        assert model.unigram_count("zzz") == 0
        assert model.bigram_count("a", "b") == 3

    def test_order_independent(self, tiny_corpus):
        """Test line order does not change counts"""
        forward = FrequencyModel.train(tiny_corpus)
        backward = FrequencyModel.train(list(reversed(tiny_corpus)))
        assert forward == backward

    def test_empty_corpus_is_degenerate(self):
        """Test training without tokens raises"""
        with pytest.raises(DegenerateModelError):
            FrequencyModel.train(["", "  ", "::"])

    def test_frozen(self, tiny_corpus):
        """Test model attributes cannot be reassigned"""
        model = FrequencyModel.train(tiny_corpus)
        with pytest.raises(AttributeError):
            model.unigram_counts = {}


class TestMerge:
    """Tests for FrequencyModel.merge"""

    def test_merge_equals_training_on_concatenation(self, tiny_corpus):
        """Test shard models merge to the full-corpus model"""
        extra = ["c d e", "a b"]
        merged = FrequencyModel.train(tiny_corpus).merge(FrequencyModel.train(extra))
        assert merged == FrequencyModel.train(tiny_corpus + extra)


class TestPrune:
    """Tests for FrequencyModel.prune"""

    def test_prune_removes_rare_tokens_and_their_bigrams(self, tiny_corpus):
        """Test min_count=2 drops d and (b, d)"""
        pruned = FrequencyModel.train(tiny_corpus).prune(2)
        assert pruned.unigram_counts == {"a": 3, "b": 3, "c": 2}
        assert pruned.bigram_counts == {("a", "b"): 3, ("b", "c"): 2}

    def test_prune_monotone(self, tiny_corpus):
        """Test raising min_count never grows the vocabulary"""
        model = FrequencyModel.train(tiny_corpus)
        sizes = [model.prune(k).vocabulary_size for k in (1, 2, 3)]
        assert sizes == sorted(sizes, reverse=True)
        assert all(c >= 3 for c in model.prune(3).unigram_counts.values())

    def test_prune_one_is_identity(self, tiny_corpus):
        """Test min_count=1 keeps the model unchanged"""
        model = FrequencyModel.train(tiny_corpus)
        assert model.prune(1) is model

    def test_prune_idempotent(self, tiny_corpus):
        """Test pruning twice with the same threshold changes nothing"""
        once = FrequencyModel.train(tiny_corpus).prune(2)
        assert once.prune(2) == once

    def test_prune_rejects_zero(self, tiny_corpus):
        """Test min_count below one raises"""
        model = FrequencyModel.train(tiny_corpus)
        with pytest.raises(ConfigurationError):
            model.prune(0)
        with pytest.raises(ValueError):
            model.prune(-1)

    def test_prune_everything_is_degenerate(self, tiny_corpus):
        """Test pruning all tokens raises"""
        with pytest.raises(DegenerateModelError):
            FrequencyModel.train(tiny_corpus).prune(100)
