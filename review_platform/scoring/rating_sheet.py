"""
scoring/rating_sheet.py

Per-session rating state for one application.

Every question/answer pair gets exactly one entry when the sheet is opened,
with no rating and the AI flag cleared. Entries are only ever mutated, never
added or removed, so the set of rated answers always matches the set of
pairs the sheet was opened with.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Union
from uuid import UUID

from review_platform.core.exceptions import InvalidRating, InvalidState, UnknownAnswer
from review_platform.models.application import QuestionAnswerPair

AnswerKey = Union[UUID, str]

DEFAULT_MIN_RATING = 1
DEFAULT_MAX_RATING = 10


@dataclass
class RatingEntry:
    """Mutable judgment of one answer."""
    rating: Optional[int] = None
    looks_ai: bool = False

    @property
    def is_rated(self) -> bool:
        return self.rating is not None


class RatingSheet:
    """Owned rating state for one evaluation session."""

    def __init__(
        self,
        answer_ids: Sequence[AnswerKey],
        min_rating: int = DEFAULT_MIN_RATING,
        max_rating: int = DEFAULT_MAX_RATING,
    ):
        keys = [_key(a) for a in answer_ids]
        if len(set(keys)) != len(keys):
            raise InvalidState("Rating sheet received duplicate answer IDs")

        self.min_rating = min_rating
        self.max_rating = max_rating
        self._order: List[str] = keys
        self._entries: Dict[str, RatingEntry] = {k: RatingEntry() for k in keys}
        self._submitted = False

    @classmethod
    def from_pairs(
        cls,
        pairs: Iterable[QuestionAnswerPair],
        min_rating: int = DEFAULT_MIN_RATING,
        max_rating: int = DEFAULT_MAX_RATING,
    ) -> "RatingSheet":
        return cls([p.id for p in pairs], min_rating=min_rating, max_rating=max_rating)

    def __len__(self) -> int:
        return len(self._order)

    def __contains__(self, answer_id: AnswerKey) -> bool:
        return _key(answer_id) in self._entries

    @property
    def answer_ids(self) -> List[str]:
        return list(self._order)

    @property
    def submitted(self) -> bool:
        return self._submitted

    def get(self, answer_id: AnswerKey) -> RatingEntry:
        key = _key(answer_id)
        if key not in self._entries:
            raise UnknownAnswer(key)
        return self._entries[key]

    def set_rating(self, answer_id: AnswerKey, rating: int) -> None:
        """Record a rating for an answer; must be an int within the sheet's bounds."""
        entry = self._mutable_entry(answer_id)
        # bool is an int subclass
        if isinstance(rating, bool) or not isinstance(rating, int):
            raise InvalidRating(_key(answer_id), rating, self.min_rating, self.max_rating)
        if not self.min_rating <= rating <= self.max_rating:
            raise InvalidRating(_key(answer_id), rating, self.min_rating, self.max_rating)
        entry.rating = rating

    def set_looks_ai(self, answer_id: AnswerKey, looks_ai: bool) -> None:
        self._mutable_entry(answer_id).looks_ai = bool(looks_ai)

    def toggle_looks_ai(self, answer_id: AnswerKey) -> bool:
        entry = self._mutable_entry(answer_id)
        entry.looks_ai = not entry.looks_ai
        return entry.looks_ai

    def missing_answer_ids(self) -> List[str]:
        """Answer IDs without a rating, in pair order."""
        return [k for k in self._order if not self._entries[k].is_rated]

    @property
    def is_complete(self) -> bool:
        return not self.missing_answer_ids()

    def entries(self) -> List[tuple]:
        """(answer_id, RatingEntry) tuples in pair order."""
        return [(k, self._entries[k]) for k in self._order]

    def mark_submitted(self) -> None:
        """Lock the sheet once its evaluation has been persisted."""
        self._submitted = True

    def _mutable_entry(self, answer_id: AnswerKey) -> RatingEntry:
        if self._submitted:
            raise InvalidState("Evaluation already submitted; ratings can no longer change")
        return self.get(answer_id)


def _key(answer_id: AnswerKey) -> str:
    return str(answer_id)
