"""Text analytics - word counts, reading time, frequency, readability, language."""

import re
from collections import Counter
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from pagescope.constants import (
    DEFAULT_READING_SPEED_WPM,
    FLESCH_FORMULA,
    GRADE_MAPPING,
    LANGUAGE_WORDS,
    MIN_FREQUENCY_WORD_LENGTH,
    STOP_WORDS,
    UNKNOWN_LANGUAGE,
)
from pagescope.models import TextMetrics

_FREQUENCY_TOKEN_RE = re.compile(r"\b[a-z]{%d,}\b" % MIN_FREQUENCY_WORD_LENGTH)
_VOWELS = "aeiouy"


def page_size_kb(html: str) -> float:
    """UTF-8 byte length of ``html`` in kilobytes."""
    return len(html.encode("utf-8")) / 1024


class TextAnalyzer:
    """Computes text metrics over normalized visible page text.

    Every method is a pure function of its input and the word lists given
    at construction.
    """

    FLESCH_FORMULA = FLESCH_FORMULA
    GRADE_MAPPING = GRADE_MAPPING

    def __init__(
        self,
        reading_speed_wpm: float = DEFAULT_READING_SPEED_WPM,
        stopwords: Iterable[str] = STOP_WORDS,
        language_words: Sequence[Tuple[str, Sequence[str]]] = LANGUAGE_WORDS,
        max_frequency_terms: Optional[int] = None,
    ):
        """Initialize the analyzer.

        Args:
            reading_speed_wpm: Words per minute used for reading time
            stopwords: Words excluded from the frequency table
            language_words: (language, marker words) pairs in tie-break order
            max_frequency_terms: Keep only the N most frequent words
                (None keeps all)
        """
        self.reading_speed_wpm = float(reading_speed_wpm)
        self.stopwords = frozenset(stopwords)
        self.language_words = tuple(
            (language, tuple(words)) for language, words in language_words
        )
        self.max_frequency_terms = max_frequency_terms

    def analyze(self, text: str, html: str = "") -> TextMetrics:
        """Analyze text content.

        Args:
            text: Normalized visible body text
            html: Raw HTML, used only for the page size

        Returns:
            TextMetrics for the text
        """
        word_count = self.count_words(text)
        score = self.readability_score(text)

        return TextMetrics(
            word_count=word_count,
            reading_time_minutes=self.reading_time(word_count),
            word_frequency=self.word_frequency(text),
            readability_score=score,
            readability_grade=self._score_to_grade(score) if word_count else "N/A",
            language=self.detect_language(text),
            page_size_kb=page_size_kb(html),
        )

    @staticmethod
    def count_words(text: str) -> int:
        return len(text.split())

    def reading_time(self, word_count: int) -> float:
        return word_count / self.reading_speed_wpm

    def word_frequency(self, text: str) -> Dict[str, int]:
        """Count alphabetic tokens of 3+ letters, stopwords excluded.

        Args:
            text: Text to tokenize

        Returns:
            Mapping of lowercase word to occurrence count
        """
        tokens = _FREQUENCY_TOKEN_RE.findall(text.lower())
        counts = Counter(token for token in tokens if token not in self.stopwords)

        if self.max_frequency_terms is not None:
            return dict(counts.most_common(self.max_frequency_terms))
        return dict(counts)

    def readability_score(self, text: str) -> float:
        """Flesch Reading Ease clamped to [0, 100].

        Sentences are the non-empty segments between periods. Empty text,
        or text without words or sentences, scores 0.
        """
        words = text.split()
        sentences = self._split_sentences(text)

        if not words or not sentences:
            return 0.0

        total_syllables = sum(self._count_syllables(word) for word in words)

        words_per_sentence = len(words) / len(sentences)
        syllables_per_word = total_syllables / len(words)

        score = 206.835 - (1.015 * words_per_sentence) - (84.6 * syllables_per_word)

        return max(0.0, min(100.0, score))

    def detect_language(self, text: str) -> str:
        """Guess the language from marker-word substrings.

        Each language scores the number of its marker words that occur as
        substrings of the lowercased text. Short markers can over-match;
        that is accepted. Ties go to the language listed first. No hits at
        all gives "Unknown".
        """
        text_lower = text.lower()

        scores: List[Tuple[str, int]] = [
            (language, sum(1 for word in words if word in text_lower))
            for language, words in self.language_words
        ]

        if not scores or all(count == 0 for _, count in scores):
            return UNKNOWN_LANGUAGE

        best_language, best_count = scores[0]
        for language, count in scores[1:]:
            if count > best_count:
                best_language, best_count = language, count
        return best_language

    def _split_sentences(self, text: str) -> List[str]:
        return [s for s in text.split(".") if s.strip()]

    def _count_syllables(self, word: str) -> int:
        """Count syllables in a word (vowel-group approximation).

        Args:
            word: Word to analyze

        Returns:
            Estimated syllable count, at least 1
        """
        word = word.lower()
        syllable_count = 0
        previous_was_vowel = False

        for char in word:
            is_vowel = char in _VOWELS
            if is_vowel and not previous_was_vowel:
                syllable_count += 1
            previous_was_vowel = is_vowel

        # Adjust for silent 'e'
        if word.endswith('e') and syllable_count > 1:
            syllable_count -= 1

        return max(1, syllable_count)

    def _score_to_grade(self, score: float) -> str:
        """Convert Flesch Reading Ease score to grade level.

        Args:
            score: Flesch Reading Ease score (0-100)

        Returns:
            Grade level description
        """
        for (low, _high), grade in sorted(self.GRADE_MAPPING.items(), reverse=True):
            if score >= low:
                return grade
        return "Graduate"
