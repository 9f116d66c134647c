"""Analyzer pipeline for the in-memory search stack.

The design follows Whoosh/Lucene: a tokenizer produces a stream of tokens and
a chain of filters rewrites or drops them. Pipelines are selected entirely by
an ``AnalyzerConfig`` (tokenizer, stemmer, stop-word set); stemmers are plain
``reduce(token) -> token`` strategies wrapped by a single ``StemFilter``.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Mapping, MutableMapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from functools import lru_cache
import re
from typing import Any, Protocol

from nltk.stem.porter import PorterStemmer

from ir_workbench.search.errors import ConfigError
from ir_workbench.search.kstem import kstem


@dataclass
class Token:
    """Represents a token emitted by analyzers."""

    text: str
    position: int
    start_char: int
    end_char: int
    attributes: MutableMapping[str, Any] = field(default_factory=dict)

    def copy_with(self, **updates: Any) -> Token:
        data = {
            "text": self.text,
            "position": self.position,
            "start_char": self.start_char,
            "end_char": self.end_char,
            "attributes": dict(self.attributes),
        }
        data.update(updates)
        return Token(**data)


class Tokenizer(Protocol):
    """Protocol implemented by tokenizers."""

    def __call__(self, text: str) -> Iterator[Token]:  # pragma: no cover - interface definition
        ...


class TokenFilter(Protocol):
    """Protocol implemented by token filters."""

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:  # pragma: no cover - interface definition
        ...


class TokenizerName(str, Enum):
    STANDARD = "standard"


class StemmerName(str, Enum):
    NONE = "none"
    PORTER = "porter"
    KSTEM = "kstem"


class StopwordSet(str, Enum):
    ENGLISH = "english"
    NONE = "none"


# Accepted spellings for config values coming from env vars or preset tables.
_STEMMER_ALIASES = {"k-stem": "kstem", "krovetz": "kstem", "nostem": "none"}
_STOPWORD_ALIASES = {"default": "english", "default-english": "english", "empty": "none"}


def _coerce(enum_cls: type[Enum], value: Any, aliases: Mapping[str, str], label: str) -> Any:
    if isinstance(value, enum_cls):
        return value
    normalized = str(value).strip().lower()
    normalized = aliases.get(normalized, normalized)
    try:
        return enum_cls(normalized)
    except ValueError:
        available = sorted(member.value for member in enum_cls)
        msg = f"Unknown {label} '{value}'. Available: {available}"
        raise ConfigError(msg) from None


@dataclass(frozen=True)
class AnalyzerConfig:
    """Validated analyzer selection.

    String values are coerced to their enum members at construction time, so
    an invalid configuration never reaches indexing or search.
    """

    tokenizer: TokenizerName = TokenizerName.STANDARD
    stemmer: StemmerName = StemmerName.PORTER
    stopwords: StopwordSet = StopwordSet.ENGLISH

    def __post_init__(self) -> None:
        object.__setattr__(self, "tokenizer", _coerce(TokenizerName, self.tokenizer, {}, "tokenizer"))
        object.__setattr__(self, "stemmer", _coerce(StemmerName, self.stemmer, _STEMMER_ALIASES, "stemmer"))
        object.__setattr__(self, "stopwords", _coerce(StopwordSet, self.stopwords, _STOPWORD_ALIASES, "stop-word set"))

    def describe(self) -> dict[str, str]:
        return {
            "tokenizer": self.tokenizer.value,
            "stemmer": self.stemmer.value,
            "stopwords": self.stopwords.value,
        }


class StandardTokenizer:
    """Word/number tokenizer.

    Keeps letters and digits joined by internal apostrophes or dots together
    ("don't", "3.5"), joins digit groups across commas ("1,000") and splits on
    everything else, so "Seoul,Korea" yields two tokens.
    """

    _PATTERN = re.compile(r"\w+(?:['’.]\w+|(?<=\d),\d+)*", re.UNICODE)

    def __call__(self, text: str) -> Iterator[Token]:
        for position, match in enumerate(self._PATTERN.finditer(text)):
            yield Token(
                text=match.group(0),
                position=position,
                start_char=match.start(),
                end_char=match.end(),
            )


class LowercaseFilter:
    """Filter that lowercases token text."""

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:
        for token in tokens:
            if token.text.islower():
                yield token
            else:
                yield token.copy_with(text=token.text.lower())


class PossessiveFilter:
    """Strips a trailing possessive ``'s``."""

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:
        for token in tokens:
            text = token.text
            if len(text) > 2 and text[-2] in ("'", "’") and text[-1] in ("s", "S"):
                yield token.copy_with(text=text[:-2])
            else:
                yield token


DEFAULT_STOPWORDS = [
    "a",
    "an",
    "and",
    "are",
    "as",
    "at",
    "be",
    "but",
    "by",
    "for",
    "if",
    "in",
    "into",
    "is",
    "it",
    "no",
    "not",
    "of",
    "on",
    "or",
    "such",
    "that",
    "the",
    "their",
    "then",
    "there",
    "these",
    "they",
    "this",
    "to",
    "was",
    "will",
    "with",
]

_STOPWORD_SETS: dict[StopwordSet, frozenset[str]] = {
    StopwordSet.ENGLISH: frozenset(DEFAULT_STOPWORDS),
    StopwordSet.NONE: frozenset(),
}


class StopFilter:
    """Removes stopwords from the stream."""

    def __init__(self, stopwords: Iterable[str] | None = None) -> None:
        vocab = stopwords if stopwords is not None else DEFAULT_STOPWORDS
        self.stopwords = frozenset(word.lower() for word in vocab)

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:
        for token in tokens:
            if token.text.lower() not in self.stopwords:
                yield token


def _porter_reducer() -> Callable[[str], str]:
    stemmer = PorterStemmer(mode=PorterStemmer.ORIGINAL_ALGORITHM)
    return stemmer.stem


def _identity(token: str) -> str:
    return token


_REDUCERS: dict[StemmerName, Callable[[], Callable[[str], str]]] = {
    StemmerName.NONE: lambda: _identity,
    StemmerName.PORTER: _porter_reducer,
    StemmerName.KSTEM: lambda: kstem,
}


def get_reducer(stemmer: StemmerName | str) -> Callable[[str], str]:
    """Return the ``reduce(token) -> token`` strategy for a stemmer name."""

    name = _coerce(StemmerName, stemmer, _STEMMER_ALIASES, "stemmer")
    return _REDUCERS[name]()


class StemFilter:
    """Applies a term-reduction strategy to every token."""

    def __init__(self, reduce: Callable[[str], str]) -> None:
        self._reduce = reduce

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:
        for token in tokens:
            reduced = self._reduce(token.text)
            if not reduced:
                continue
            if reduced == token.text:
                yield token
            else:
                yield token.copy_with(text=reduced)


class AnalyzerPipeline:
    """Composable analyzer pipeline (tokenizer + filters)."""

    def __init__(self, tokenizer: Tokenizer, filters: Sequence[TokenFilter] | None = None) -> None:
        self.tokenizer = tokenizer
        self.filters = list(filters or [])

    def __call__(self, text: str) -> list[Token]:
        if not text:
            return []
        stream: Iterable[Token] = self.tokenizer(text)
        for token_filter in self.filters:
            stream = token_filter(stream)
        tokens = list(stream)
        for idx, token in enumerate(tokens):  # normalize positions post-filtering
            token.position = idx
        return tokens


_TOKENIZERS: dict[TokenizerName, Callable[[], Tokenizer]] = {
    TokenizerName.STANDARD: StandardTokenizer,
}


def build_analyzer(config: AnalyzerConfig) -> AnalyzerPipeline:
    """Compose the pipeline described by ``config``."""

    filters: list[TokenFilter] = [LowercaseFilter(), PossessiveFilter()]
    stopwords = _STOPWORD_SETS[config.stopwords]
    if stopwords:
        filters.append(StopFilter(stopwords))
    if config.stemmer is not StemmerName.NONE:
        filters.append(StemFilter(get_reducer(config.stemmer)))
    return AnalyzerPipeline(_TOKENIZERS[config.tokenizer](), filters)


@lru_cache(maxsize=32)
def get_analyzer(config: AnalyzerConfig) -> AnalyzerPipeline:
    """Return a cached pipeline for ``config``. Pipelines hold no per-call state."""

    return build_analyzer(config)


def analyze(text: str, config: AnalyzerConfig) -> list[str]:
    """Turn raw text into its normalized term sequence."""

    return [token.text for token in get_analyzer(config)(text) if token.text]
