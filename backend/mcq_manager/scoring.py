from __future__ import annotations
from typing import Any, Dict, Iterable, List, Optional, Sequence

from .errors import NotFoundError, ValidationError


ANSWER_CHOICES = ("A", "B", "C", "D", "E")
SKIP = "S"

CORRECT_SCORE = 4
SKIP_SCORE = 0
WRONG_SCORE = -1

# Joined user columns copied onto leaderboard rows
DISPLAY_FIELDS = ("name", "college")

RESPONSE_KEY = ("user_id", "topic_id", "question_id")
ANSWER_FIELDS = ("selected_answer", "is_correct", "score")

Record = Dict[str, Any]


def score_answer(selected_answer: str, correct_answer: str) -> Dict[str, Any]:
    if selected_answer == correct_answer:
        return {"score": CORRECT_SCORE, "is_correct": True}
    if selected_answer == SKIP:
        return {"score": SKIP_SCORE, "is_correct": False}
    return {"score": WRONG_SCORE, "is_correct": False}


def upsert_response(existing: Optional[Record], fields: Record) -> Record:
    """Apply a (re)submission to the stored response for the same user/topic/question.

    Only the answer fields change on an existing record; id and timestamps stay put.
    """
    missing = [k for k in RESPONSE_KEY + ANSWER_FIELDS if k not in fields]
    if missing:
        raise ValidationError(f"response is missing {', '.join(missing)}")
    if existing is None:
        return {k: fields[k] for k in RESPONSE_KEY + ANSWER_FIELDS}
    if any(existing.get(k) != fields[k] for k in RESPONSE_KEY):
        raise ValidationError("existing response belongs to a different user, topic or question")
    return {**existing, **{k: fields[k] for k in ANSWER_FIELDS}}


def _new_entry(response: Record) -> Record:
    user = response.get("user") or {}
    entry = {"user_id": response["user_id"]}
    for field in DISPLAY_FIELDS:
        entry[field] = user.get(field)
    entry["total_score"] = 0
    return entry


def _rank(entries: Iterable[Record], n: int) -> List[Record]:
    if n < 0:
        raise ValidationError("leaderboard size must not be negative")
    # sorted() is stable, entries keep first-appearance order on equal totals
    ranked = sorted(entries, key=lambda e: e["total_score"], reverse=True)[:n]
    for index, entry in enumerate(ranked, start=1):
        entry["rank"] = index
    return ranked


def rank_top_n(responses: Iterable[Record], n: int = 10) -> List[Record]:
    totals: Dict[Any, Record] = {}
    for response in responses:
        entry = totals.get(response["user_id"])
        if entry is None:
            entry = totals[response["user_id"]] = _new_entry(response)
        entry["total_score"] += response.get("score") or 0
    return _rank(totals.values(), n)


def question_order(responses: Iterable[Record]) -> List[Any]:
    """Distinct question ids in the order they first appear."""
    return list(dict.fromkeys(r["question_id"] for r in responses))


def question_positions(ordered_question_ids: Sequence[Any]) -> Dict[Any, int]:
    positions: Dict[Any, int] = {}
    for index, question_id in enumerate(ordered_question_ids):
        positions.setdefault(question_id, index)
    return positions


def positional_status(
    responses: Sequence[Record],
    ordered_question_ids: Optional[Sequence[Any]],
    current_question_id: Any,
    target_user_id: Any,
    n: int = 10,
) -> Dict[str, Any]:
    """Leaderboard as it stood once ``current_question_id`` had been answered.

    Only responses to questions at or before the current one (by position in
    ``ordered_question_ids``) count toward each total. When no ordering is given it is
    derived from the responses themselves. Each row also carries that user's answer to
    the current question, and ``user`` summarises ``target_user_id`` with their rank in
    the top ``n`` (None when outside it).
    """
    if ordered_question_ids is None:
        ordered_question_ids = question_order(responses)
    positions = question_positions(ordered_question_ids)
    if current_question_id not in positions:
        raise NotFoundError(f"question {current_question_id} not found in question order")
    cutoff = positions[current_question_id]

    board: Dict[Any, Record] = {}
    for response in responses:
        position = positions.get(response["question_id"])
        if position is None or position > cutoff:
            continue
        entry = board.get(response["user_id"])
        if entry is None:
            entry = board[response["user_id"]] = _new_entry(response)
            entry.update(selected_answer=None, is_correct=None, score=None)
        entry["total_score"] += response.get("score") or 0
        if response["question_id"] == current_question_id:
            entry.update({k: response.get(k) for k in ANSWER_FIELDS})

    leaderboard = _rank(board.values(), n)
    mine = board.get(target_user_id) or {}
    user = {
        "user_id": target_user_id,
        "total_score": mine.get("total_score", 0),
        "rank": mine.get("rank"),
        "selected_answer": mine.get("selected_answer"),
        "is_correct": mine.get("is_correct"),
        "score": mine.get("score"),
    }
    return {"question_id": current_question_id, "leaderboard": leaderboard, "user": user}
