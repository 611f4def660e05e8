"""Slug text normalization for friendly ids."""

from __future__ import annotations

import re
import unicodedata

DEFAULT_SLUG_MAX_LENGTH = 255

_NON_WORD = re.compile(r"[^\w]+")


class SlugNormalizer:
    """Turn arbitrary source text into slug text.

    Keeps diacritics and non-ASCII letters unless told otherwise, so that
    ``"¡Feliz año!"`` becomes ``"feliz-año"``. Word runs are joined with a
    single ``-``, which means the output never contains the ``--`` sequence
    separator.
    """

    def __init__(
        self,
        max_length: int | None = DEFAULT_SLUG_MAX_LENGTH,
        *,
        strip_diacritics: bool = False,
        strip_non_ascii: bool = False,
    ) -> None:
        """Initialize slug normalizer.

        Args:
            max_length: Maximum slug length in characters. Use None to disable truncation.
            strip_diacritics: Remove accents from Latin characters (``ñ`` -> ``n``).
            strip_non_ascii: Drop every character outside ASCII.
        """
        self.max_length = max_length
        self.strip_diacritics = strip_diacritics
        self.strip_non_ascii = strip_non_ascii

    def normalize(self, value: object) -> str:
        """Generate slug text from a source value (``None`` becomes ``""``)."""
        if value is None:
            return ""
        text = unicodedata.normalize("NFC", str(value))
        if self.strip_diacritics:
            text = self._strip_diacritics(text)
        if self.strip_non_ascii:
            text = text.encode("ascii", "ignore").decode("ascii")
        return self.truncate(self._slugify(text))

    def truncate(self, value: str) -> str:
        """Truncate slug text to the configured max length."""
        if self.max_length is None or len(value) <= self.max_length:
            return value
        return value[: self.max_length].rstrip("-")

    @staticmethod
    def _slugify(value: str) -> str:
        return _NON_WORD.sub("-", value.lower()).strip("-")

    @staticmethod
    def _strip_diacritics(value: str) -> str:
        decomposed = unicodedata.normalize("NFKD", value)
        stripped = "".join(c for c in decomposed if not unicodedata.combining(c))
        return unicodedata.normalize("NFC", stripped)
