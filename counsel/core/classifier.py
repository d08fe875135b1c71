from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Mapping, Optional, Tuple, Union

from langchain_core.messages import BaseMessage


PRACTICE_AREAS: Tuple[str, ...] = (
    "divorce",
    "custody",
    "criminal",
    "injury",
    "contract",
    "employment",
    "immigration",
    "bankruptcy",
    "estate",
    "personal injury",
    "family law",
    "criminal defense",
    "civil litigation",
    "real estate",
    "business law",
    "tax law",
    "intellectual property",
)

# Bare words that hint at a location. "state" also shows up in unrelated
# sentences, so a match on these alone is reported as weak.
LOCATION_CUES: Tuple[str, ...] = ("city", "state", "located", "live")

LOCATION_PATTERNS: Tuple[str, ...] = (
    r"in [a-z]+ [a-z]+",
    r"[a-z]+,\s*[a-z]{2}",
)


def _alternation(parts: Iterable[str]) -> "re.Pattern[str]":
    body = "|".join(parts)
    return re.compile(rf"\b(?:{body})\b")


@dataclass(frozen=True)
class ReadinessVocabulary:
    """Keyword table driving the search-readiness heuristic."""

    practice_areas: Tuple[str, ...] = PRACTICE_AREAS
    location_cues: Tuple[str, ...] = LOCATION_CUES
    location_patterns: Tuple[str, ...] = LOCATION_PATTERNS

    def extend(self, practice_areas: Iterable[str] = (), location_cues: Iterable[str] = ()) -> "ReadinessVocabulary":
        return ReadinessVocabulary(
            practice_areas=self.practice_areas + tuple(practice_areas),
            location_cues=self.location_cues + tuple(location_cues),
            location_patterns=self.location_patterns,
        )

    @property
    def legal_issue_regex(self) -> "re.Pattern[str]":
        # Longest first so "personal injury" wins over "injury" in the reported match.
        terms = sorted(self.practice_areas, key=len, reverse=True)
        return _alternation(re.escape(term) for term in terms)

    @property
    def location_cue_regex(self) -> "re.Pattern[str]":
        return _alternation(re.escape(cue) for cue in self.location_cues)

    @property
    def location_pattern_regex(self) -> "re.Pattern[str]":
        return _alternation(self.location_patterns)


DEFAULT_VOCABULARY = ReadinessVocabulary()


@dataclass(frozen=True)
class ReadinessVerdict:
    legal_issue: Optional[str] = None
    location: Optional[str] = None
    weak_location: bool = False

    @property
    def has_legal_issue(self) -> bool:
        return self.legal_issue is not None

    @property
    def has_location(self) -> bool:
        return self.location is not None

    @property
    def ready(self) -> bool:
        return self.has_legal_issue and self.has_location


Turn = Union[BaseMessage, Mapping[str, object]]


def _turn_text(turn: Turn) -> str:
    if isinstance(turn, BaseMessage):
        content = turn.content
    else:
        content = turn.get("content")
    return content if isinstance(content, str) else ""


def conversation_text(turns: Iterable[Turn]) -> str:
    return " ".join(_turn_text(t) for t in turns).lower()


def classify(turns: Iterable[Turn], vocabulary: ReadinessVocabulary = DEFAULT_VOCABULARY) -> ReadinessVerdict:
    """Check whether the conversation mentions both a legal issue and a location.

    The whole transcript is re-evaluated on every call; nothing carries over
    between requests.
    """
    text = conversation_text(turns)

    issue_regex = vocabulary.legal_issue_regex
    issue = issue_regex.search(text)
    cue = vocabulary.location_cue_regex.search(text)

    # "in a divorce" fits the "in <word> <word>" shape but names the issue, not a place.
    structural = None
    overlapping = None
    for match in vocabulary.location_pattern_regex.finditer(text):
        if issue_regex.search(match.group(0)):
            overlapping = overlapping or match
            continue
        structural = match
        break

    location = structural or cue or overlapping
    return ReadinessVerdict(
        legal_issue=issue.group(0) if issue else None,
        location=location.group(0) if location else None,
        weak_location=structural is None and location is not None,
    )


def should_trigger_search(turns: Iterable[Turn], vocabulary: ReadinessVocabulary = DEFAULT_VOCABULARY) -> bool:
    return classify(turns, vocabulary).ready
