"""Tests for free-text answer normalization, matching and hints."""

from exercises.answer_match import (
    first_letter_hint,
    hint_for,
    match_answer,
    normalize_answer,
    to_halfwidth,
)
from models import Difficulty


class TestNormalizeAnswer:
    def test_lowercases(self):
        assert normalize_answer("MISANTHROPE") == "misanthrope"
        assert normalize_answer("MisAnthrope") == "misanthrope"

    def test_folds_fullwidth_characters(self):
        assert normalize_answer("ｍｉｓａｎｔｈｒｏｐｅ") == "misanthrope"
        assert normalize_answer("ＡＢＣ") == "abc"

    def test_collapses_and_trims_whitespace(self):
        assert normalize_answer("be   the   cat") == "be the cat"
        assert normalize_answer("  misanthrope  ") == "misanthrope"

    def test_strips_hyphens_by_default(self):
        assert normalize_answer("well-known") == "wellknown"
        assert normalize_answer("self-esteem") == "selfesteem"

    def test_can_keep_hyphens(self):
        assert normalize_answer("well-known", fold_hyphen=False) == "well-known"

    def test_fullwidth_space_becomes_space(self):
        assert to_halfwidth("ａｂｃ　ｄｅｆ") == "abc def"


class TestMatchAnswer:
    def test_case_insensitive(self):
        assert match_answer("MISANTHROPE", "misanthrope")

    def test_tolerates_extra_whitespace(self):
        assert match_answer("hold him  accountable", "hold him accountable")

    def test_fullwidth_input(self):
        assert match_answer("ｔｅｓｔ", "test")
        assert match_answer("ａｂｃ　ｄｅｆ", "abc def")

    def test_hyphens_are_optional(self):
        assert match_answer("wellknown", "well-known")
        assert match_answer("well-known", "wellknown")
        assert match_answer("well-known", "well-known")

    def test_apostrophes_must_match(self):
        assert match_answer("cat's whiskers", "cat's whiskers")
        assert not match_answer("cats whiskers", "cat's whiskers")
        assert not match_answer("be the cats whiskers", "be the cat's whiskers")
        assert match_answer("BE THE CAT'S WHISKERS", "be the cat's whiskers")

    def test_wrong_answers(self):
        assert not match_answer("wrong", "correct")
        assert not match_answer("misanthrope", "philanthropist")


class TestHints:
    def test_first_letter_of_word_or_phrase(self):
        assert first_letter_hint("misanthrope") == "m_____"
        assert first_letter_hint("be the cat's whiskers") == "b_____"
        assert first_letter_hint("hold sb accountable") == "h_____"

    def test_lowercases_first_letter(self):
        assert first_letter_hint("MISANTHROPE") == "m_____"

    def test_empty_answer_gives_bare_mask(self):
        assert first_letter_hint("") == "_____"
        assert first_letter_hint("   ") == "_____"

    def test_suppressed_at_advanced_difficulty(self):
        assert hint_for("apple", Difficulty.ADVANCED) is None
        assert hint_for("apple", Difficulty.BEGINNER) == "a_____"
        assert hint_for(None, Difficulty.BEGINNER) is None
