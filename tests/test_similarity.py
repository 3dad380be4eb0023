"""
Tests for core.similarity: lexical similarity scoring.
"""

import math

import pytest

from core.similarity import (
    are_similar,
    combined_similarity,
    cosine_similarity,
    find_best_match,
    jaccard_similarity,
    levenshtein_distance,
    levenshtein_similarity,
    normalize_text,
    remove_stopwords,
)


class TestNormalization:

    def test_lowercases_and_strips_punctuation(self):
        assert normalize_text("  Hello,   World! ") == "hello world"

    def test_none_is_empty(self):
        assert normalize_text(None) == ""

    def test_remove_stopwords(self):
        assert remove_stopwords("the cat and the hat") == "cat hat"


class TestJaccard:

    def test_partial_overlap(self):
        assert jaccard_similarity("the cat sat", "cat sat mat") == pytest.approx(2 / 3)

    def test_both_empty_after_filtering(self):
        assert jaccard_similarity("the", "") == 1.0

    def test_one_empty(self):
        assert jaccard_similarity("cat", "") == 0.0


class TestCosine:

    def test_term_frequency(self):
        expected = 3 / math.sqrt(10)
        assert cosine_similarity("cat cat dog", "cat dog") == pytest.approx(expected)

    def test_zero_magnitude(self):
        assert cosine_similarity("", "cat") == 0.0


class TestLevenshtein:

    def test_classic_distance(self):
        assert levenshtein_distance("kitten", "sitting") == 3

    def test_distance_uses_normalized_text(self):
        assert levenshtein_distance("Kitten!", "kitten") == 0

    def test_similarity_of_empty_strings(self):
        assert levenshtein_similarity("", "") == 1.0

    def test_similarity_range(self):
        assert levenshtein_similarity("abc", "xyz") == 0.0


class TestCombinedSimilarity:

    def test_reflexive(self):
        assert combined_similarity("Change from baseline in HbA1c", "Change from baseline in HbA1c") == 1.0

    def test_reflexive_after_normalization(self):
        assert combined_similarity("Overall Survival.", "overall survival") == 1.0

    def test_symmetric(self):
        a = "Evaluate efficacy"
        b = "Evaluate efficacy and safety"
        assert combined_similarity(a, b) == pytest.approx(combined_similarity(b, a))

    def test_expected_blend(self):
        # jaccard 2/3, cosine 2/sqrt(6), levenshtein 1 - 11/28
        expected = 0.4 * (2 / 3) + 0.4 * (2 / math.sqrt(6)) + 0.2 * (1 - 11 / 28)
        score = combined_similarity("Evaluate efficacy", "Evaluate efficacy and safety")
        assert score == pytest.approx(expected)

    def test_paraphrased_objective(self):
        score = combined_similarity(
            "Evaluate efficacy of Drug X on HbA1c",
            "Assess the efficacy of Drug X in reducing HbA1c",
        )
        assert score >= 0.6

    def test_disjoint_words_are_low(self):
        assert combined_similarity("apple banana", "carrot dill") <= 0.2

    def test_none_never_raises(self):
        score = combined_similarity(None, "Overall survival")
        assert 0.0 <= score <= 1.0

    def test_bounded(self):
        score = combined_similarity("progression free survival", "overall survival at week 52")
        assert 0.0 <= score <= 1.0

    def test_are_similar(self):
        assert are_similar("Overall survival", "overall survival")
        assert not are_similar("Overall survival", "Adverse events", threshold=0.7)


class TestFindBestMatch:

    def test_returns_highest(self):
        candidates = ["Adverse events", "Overall survival", "Overall survival at week 52"]
        best = find_best_match("overall survival", candidates)
        assert best.index == 1
        assert best.score == 1.0
        assert best.text == "Overall survival"

    def test_ties_keep_first(self):
        best = find_best_match("overall survival", ["Overall survival", "overall survival"])
        assert best.index == 0

    def test_none_below_threshold(self):
        assert find_best_match("overall survival", ["Adverse events"], threshold=0.9) is None

    def test_key_function(self):
        candidates = [{"name": "Adverse events"}, {"name": "Overall survival"}]
        best = find_best_match("overall survival", candidates, key=lambda c: c["name"])
        assert best.candidate == {"name": "Overall survival"}

    def test_empty_candidates(self):
        assert find_best_match("anything", []) is None
