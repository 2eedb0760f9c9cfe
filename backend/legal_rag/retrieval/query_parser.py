"""Translate web-search style queries into SQLite FTS5 match expressions.

Supported syntax mirrors what users type into a search box:

* bare words are all required (``liability clause`` -> both words)
* ``"quoted text"`` is matched as a phrase
* ``or`` between two terms makes either acceptable
* a leading ``-`` excludes a word or phrase

Common English stopwords are dropped from bare words, unless the query holds
nothing else, so questions typed as sentences still match.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

_TERM_RE = re.compile(r'(-?)"([^"]*)"?|(\S+)')
_WORD_RE = re.compile(r"\w", re.UNICODE)
_NON_WORD_RE = re.compile(r"\W+", re.UNICODE)

STOPWORDS = frozenset(
    """
    a about above after again all am an and any are as at be because been before being below
    between both but by can could did do does doing down during each few for from further had
    has have having he her here hers herself him himself his how i if in into is it its itself
    just me more most my myself of off on once only other our ours ourselves out over own same
    she should so some such than that the their theirs them themselves then there these they
    this those through to too under until up very was we were what when where which while who
    whom why will with would you your yours yourself yourselves
    """.split()
)


class QuerySyntaxError(ValueError):
    """The query cannot be expressed as a full-text match."""


@dataclass(slots=True)
class _Term:
    text: str
    negated: bool = False
    is_or: bool = False
    quoted: bool = False

    @property
    def is_stopword(self) -> bool:
        if self.quoted or self.negated or self.is_or:
            return False
        return _NON_WORD_RE.sub("", self.text.lower()) in STOPWORDS


def to_fts_query(text: str, match_any: bool = False) -> str:
    """Build a MATCH expression; ``match_any`` ORs the clauses instead of ANDing them."""
    terms = _drop_stopwords(_tokenize(text))
    groups: list[list[str]] = []
    negatives: list[str] = []
    join_with_previous = False

    for term in terms:
        if term.is_or:
            join_with_previous = bool(groups)
            continue
        phrase = _quote(term.text)
        if term.negated:
            negatives.append(phrase)
            join_with_previous = False
            continue
        if join_with_previous:
            groups[-1].append(phrase)
        else:
            groups.append([phrase])
        join_with_previous = False

    if not groups:
        raise QuerySyntaxError(f"Query has no searchable terms: {text!r}")

    clauses = [group[0] if len(group) == 1 else f"({' OR '.join(group)})" for group in groups]
    expression = (" OR " if match_any else " AND ").join(clauses)
    if negatives:
        expression = f"({expression})" + "".join(f" NOT {phrase}" for phrase in negatives)
    return expression


def _tokenize(text: str) -> list[_Term]:
    terms: list[_Term] = []
    for match in _TERM_RE.finditer(text):
        negation, phrase, word = match.groups()
        if phrase is not None:
            if _WORD_RE.search(phrase):
                terms.append(_Term(text=" ".join(phrase.split()), negated=bool(negation), quoted=True))
            continue
        if word.lower() == "or":
            terms.append(_Term(text=word, is_or=True))
            continue
        negated = word.startswith("-") and len(word) > 1
        if negated:
            word = word[1:]
        if _WORD_RE.search(word):
            terms.append(_Term(text=word, negated=negated))
    return terms


def _drop_stopwords(terms: list[_Term]) -> list[_Term]:
    kept = [term for term in terms if not term.is_stopword]
    if any(not term.is_or and not term.negated for term in kept):
        return kept
    return terms


def _quote(text: str) -> str:
    return '"' + text.replace('"', '""') + '"'


__all__ = ["to_fts_query", "QuerySyntaxError", "STOPWORDS"]
