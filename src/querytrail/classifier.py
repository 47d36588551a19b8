"""
Completeness Classifier

Decides from text alone whether a search query reads as a finished intent.
Zero I/O, deterministic.

The decision is an ordered rule list: each rule inspects the query features
and either returns a verdict or None to defer to the next rule. The final
rule always decides.
"""

import re
from dataclasses import asdict, dataclass
from typing import Callable, Dict, List, Optional, Tuple


PREPOSITIONS = frozenset("""
    in on at by with for from to of into onto about over under between through
    without within via per upon near toward towards across against
""".split())

ARTICLES = frozenset({"a", "an", "the"})

COORDINATING_CONJUNCTIONS = frozenset({"and", "or", "nor", "but"})

NON_TERMINAL_WORDS = PREPOSITIONS | ARTICLES | COORDINATING_CONJUNCTIONS

TERMINAL_CONTENT_NOUNS = frozenset("""
    guide guides tutorial tutorials example examples documentation docs reference
    manual info information steps instructions process method algorithm strategy
    approach overview introduction cheatsheet walkthrough
""".split())

TECHNICAL_TERMS = frozenset("""
    api apis database databases framework frameworks library libraries server
    servers deployment authentication authorization configuration testing
    performance security architecture migration migrations docker kubernetes
    linux git regex json xml http https graphql
""".split())

PROGRAMMING_LANGUAGES = frozenset("""
    python ruby rails javascript typescript java kotlin swift go golang rust c
    cpp csharp php perl scala haskell elixir erlang clojure sql html css bash
    lua dart julia r matlab
""".split())

QUESTION_WORDS = frozenset({"who", "what", "where", "when", "why", "how", "which", "whose", "whom"})

AUX_QUESTION_STARTERS = frozenset("""
    is are was were do does did can could will would should shall may might
    must has have
""".split())

IMPERATIVE_STARTERS = frozenset("""
    please find search look show tell give go make explain compare list get
    learn describe
""".split())

COMPLETENESS_INDICATORS = frozenset("""
    and or but so because therefore thus however nevertheless although though
    since while if when unless whereas
""".split())

TERMINAL_PUNCTUATION = (".", "!", "?")

MIN_LENGTH = 5
MIN_WORDS = 3
FALLBACK_LENGTH = 20

_WHITESPACE = re.compile(r"\s+")
_NON_WORD = re.compile(r"[^\w]")
_THE_WORD = re.compile(r"^the\s+[a-z]+$", re.IGNORECASE)


def normalize(text: Optional[str]) -> str:
    """Trim and collapse internal whitespace runs to single spaces."""
    if not text:
        return ""
    return _WHITESPACE.sub(" ", text.strip())


def _clean(word: str) -> str:
    return _NON_WORD.sub("", word.lower())


@dataclass(frozen=True)
class QueryFeatures:
    """Pre-computed facts the rules look at."""
    text: str
    words: Tuple[str, ...]
    first_word: str
    last_word: str
    interior_words: Tuple[str, ...]

    @property
    def word_count(self) -> int:
        return len(self.words)

    @classmethod
    def from_text(cls, text: Optional[str]) -> "QueryFeatures":
        normalized = normalize(text)
        words = tuple(normalized.split(" ")) if normalized else ()
        return cls(
            text=normalized,
            words=words,
            first_word=words[0].lower() if words else "",
            last_word=_clean(words[-1]) if words else "",
            interior_words=tuple(_clean(w) for w in words[1:-1]),
        )


@dataclass(frozen=True)
class Rule:
    name: str
    check: Callable[[QueryFeatures], Optional[bool]]


def _too_short(f: QueryFeatures) -> Optional[bool]:
    if len(f.text) < MIN_LENGTH or f.word_count < MIN_WORDS:
        return False
    return None


def _terminal_punctuation(f: QueryFeatures) -> Optional[bool]:
    return True if f.text.endswith(TERMINAL_PUNCTUATION) else None


def _dangling_function_word(f: QueryFeatures) -> Optional[bool]:
    return False if f.last_word in NON_TERMINAL_WORDS else None


def _terminal_content_word(f: QueryFeatures) -> Optional[bool]:
    if (f.last_word in TERMINAL_CONTENT_NOUNS
            or f.last_word in TECHNICAL_TERMS
            or f.last_word in PROGRAMMING_LANGUAGES):
        return True
    return None


def _question(f: QueryFeatures) -> Optional[bool]:
    # A question needs a subject and a verb after the question word
    if f.first_word in QUESTION_WORDS or f.first_word in AUX_QUESTION_STARTERS:
        return f.word_count >= 4
    return None


def _imperative(f: QueryFeatures) -> Optional[bool]:
    # An imperative needs an object
    if f.first_word in IMPERATIVE_STARTERS:
        return f.word_count >= 3
    return None


def _subordinate_clause(f: QueryFeatures) -> Optional[bool]:
    if any(word in COMPLETENESS_INDICATORS for word in f.interior_words):
        return True
    return None


def _long_phrase(f: QueryFeatures) -> Optional[bool]:
    return True if f.word_count >= 5 else None


def _noun_phrase(f: QueryFeatures) -> Optional[bool]:
    if f.word_count == 4 and f.last_word not in PREPOSITIONS:
        return True
    return None


def _short_phrase(f: QueryFeatures) -> Optional[bool]:
    if f.word_count > 3:
        return None
    if f.last_word in PREPOSITIONS:
        return False
    if f.word_count == 2 and _THE_WORD.match(f.text):
        return False
    if f.last_word in PROGRAMMING_LANGUAGES or f.last_word in TECHNICAL_TERMS:
        return True
    return None


def _length_fallback(f: QueryFeatures) -> Optional[bool]:
    return len(f.text) > FALLBACK_LENGTH


RULES: Tuple[Rule, ...] = (
    Rule("too_short", _too_short),
    Rule("terminal_punctuation", _terminal_punctuation),
    Rule("dangling_function_word", _dangling_function_word),
    Rule("terminal_content_word", _terminal_content_word),
    Rule("question", _question),
    Rule("imperative", _imperative),
    Rule("subordinate_clause", _subordinate_clause),
    Rule("long_phrase", _long_phrase),
    Rule("noun_phrase", _noun_phrase),
    Rule("short_phrase", _short_phrase),
    Rule("length_fallback", _length_fallback),
)


@dataclass(frozen=True)
class CompletenessAnalysis:
    """Outcome of classifying one query, with the facts behind it."""
    text: str
    appears_complete: bool
    rule: str
    word_count: int
    char_length: int
    first_word: str
    last_word: str
    ends_with_punctuation: bool

    def to_dict(self) -> Dict:
        return asdict(self)


def evaluate(features: QueryFeatures, rules: Tuple[Rule, ...] = RULES) -> Tuple[bool, str]:
    """Run rules in order; return (verdict, deciding rule name)."""
    for rule in rules:
        verdict = rule.check(features)
        if verdict is not None:
            return verdict, rule.name
    # Only reachable with a custom rule table lacking a decisive final rule
    return False, "undecided"


def analyze(text: Optional[str]) -> CompletenessAnalysis:
    """Classify `text` and report which rule decided."""
    features = QueryFeatures.from_text(text)
    verdict, rule = evaluate(features)
    return CompletenessAnalysis(
        text=features.text,
        appears_complete=verdict,
        rule=rule,
        word_count=features.word_count,
        char_length=len(features.text),
        first_word=features.words[0] if features.words else "",
        last_word=features.words[-1] if features.words else "",
        ends_with_punctuation=features.text.endswith(TERMINAL_PUNCTUATION),
    )


def appears_complete(text: Optional[str]) -> bool:
    """Return True if `text` looks like a finished search query."""
    return evaluate(QueryFeatures.from_text(text))[0]


def rule_names() -> List[str]:
    return [rule.name for rule in RULES]
