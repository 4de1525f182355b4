# =============================================================================
# Token Degenerator
# =============================================================================
# Generates morphological variants of a token so that an unknown token can
# still be matched against the learned vocabulary.
#
# For "Hello!!!" we produce:
#   - case variants:       "hello!!!", "HELLO!!!"   ("Hello!!!" is the input)
#   - then, for each case variant and the input itself, the "!!!" run
#     collapsed to one mark and stripped entirely:
#                          "hello!", "hello", "HELLO!", "HELLO", "Hello!", "Hello"
#
# Trailing dots are stripped one at a time, so "wait..." also yields
# "wait.." and "wait.".
#
# Results are memoized per instance: the same word is only degenerated once.
# =============================================================================

import re

from hawk_bayes.config import DegeneratorConfig


# One or more trailing "!" / "?" marks
_TRAILING_MARKS = re.compile(r"[!?]+$")


class Degenerator:
    """
    Produces variant spellings of tokens.

    Usage:
        >>> degenerator = Degenerator()
        >>> degenerator.degenerate_word("EXAmple")
        ['example', 'EXAMPLE', 'Example']

    Attributes:
        config: Degenerator configuration.
        degenerates: Memo of word -> variants computed so far.
    """

    def __init__(self, config: DegeneratorConfig | None = None) -> None:
        self.config = config or DegeneratorConfig()
        self.degenerates: dict[str, list[str]] = {}

    def degenerate(self, words) -> dict[str, list[str]]:
        """
        Degenerate several words at once.

        Args:
            words: Iterable of tokens (a token-count mapping works too).

        Returns:
            Mapping of each word to its variants.
        """
        return {word: self.degenerate_word(word) for word in words}

    def degenerate_word(self, word: str) -> list[str]:
        """
        Return the variants of a word, excluding the word itself.

        Args:
            word: The token to degenerate.

        Returns:
            Ordered list of distinct variant strings.
        """
        cached = self.degenerates.get(word)
        if cached is not None:
            return cached

        # multibyte is reserved; str case mapping is Unicode-aware either way
        lower = word.lower()
        upper = word.upper()
        first = upper[:1] + lower[1:]

        candidates = _without(word, _unique([lower, upper, first]))
        candidates.append(word)

        variants = list(candidates)
        for candidate in candidates:
            marks = _TRAILING_MARKS.search(candidate)
            if marks:
                stem = candidate[:marks.start()]
                if len(marks.group()) > 1:
                    # Collapse the run to its last mark
                    variants.append(stem + marks.group()[-1])
                variants.append(stem)

            stripped = candidate
            while stripped.endswith("."):
                stripped = stripped[:-1]
                variants.append(stripped)

        result = _without(word, _unique(variants))
        self.degenerates[word] = result
        return result

    def clear(self) -> None:
        """Forget all memoized variants."""
        self.degenerates.clear()


def _unique(words: list[str]) -> list[str]:
    """Remove duplicates, keeping first-seen order."""
    return list(dict.fromkeys(words))


def _without(word: str, words: list[str]) -> list[str]:
    """Drop every occurrence of word from words."""
    return [w for w in words if w != word]
