from __future__ import annotations
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from ..scoring import RESPONSE_KEY, positional_status, rank_top_n, score_answer, upsert_response
from ..settings import settings
from ..storage import Storage, get_storage

router = APIRouter(prefix="/topics", tags=["responses"])


class AnswerSubmit(BaseModel):
	user_id: int
	question_id: int
	selected_answer: Literal["A", "B", "C", "D", "E", "S"]


def _responses_with_users(storage: Storage, topic_id: int) -> List[dict]:
	# Oldest first so equal totals keep a reproducible order
	responses = storage.select_many("student_mcq_responses", {"topic_id": topic_id}, order_by=["created_at", "id"])
	user_ids = list(dict.fromkeys(r["user_id"] for r in responses))
	users = {u["id"]: u for u in storage.select_many("users", {"id": user_ids})} if user_ids else {}
	college_ids = [u["college_id"] for u in users.values() if u["college_id"] is not None]
	colleges = {c["id"]: c["name"] for c in storage.select_many("colleges", {"id": college_ids})} if college_ids else {}
	for response in responses:
		user = users.get(response["user_id"]) or {}
		response["user"] = {"name": user.get("name"), "college": colleges.get(user.get("college_id"))}
	return responses


@router.post("/{topic_id}/responses")
def submit_answer(topic_id: int, payload: AnswerSubmit, storage: Storage = Depends(get_storage)):
	question = storage.require("mcqs", {"id": payload.question_id, "topic_id": topic_id}, "Question")
	storage.require("users", {"id": payload.user_id}, "User")
	key = {"user_id": payload.user_id, "topic_id": topic_id, "question_id": payload.question_id}
	existing = storage.select_one("student_mcq_responses", key)
	result = score_answer(payload.selected_answer, question["correct_answer"])
	record = upsert_response(existing, {**key, "selected_answer": payload.selected_answer, **result})
	saved = storage.upsert("student_mcq_responses", [record], conflict_key=RESPONSE_KEY)[0]
	return {
		**saved,
		"resubmitted": existing is not None,
		"correct_answer": question["correct_answer"],
		"explanation": question["explanation"],
	}


@router.get("/{topic_id}/leaderboard")
def leaderboard(
	topic_id: int,
	limit: Optional[int] = Query(default=None, ge=1, le=100),
	storage: Storage = Depends(get_storage),
):
	storage.require("topics", {"id": topic_id}, "Topic")
	entries = rank_top_n(_responses_with_users(storage, topic_id), limit or settings.leaderboard_size)
	return {"topic_id": topic_id, "leaderboard": entries}


@router.get("/{topic_id}/leaderboard/status")
def leaderboard_status(
	topic_id: int,
	question_id: int,
	user_id: int,
	storage: Storage = Depends(get_storage),
):
	storage.require("topics", {"id": topic_id}, "Topic")
	# The topic's MCQs, in upload order, are the canonical sequence; without any the
	# order falls back to the questions seen in responses
	question_ids = [m["id"] for m in storage.select_many("mcqs", {"topic_id": topic_id}, order_by=["created_at", "id"])]
	status = positional_status(
		_responses_with_users(storage, topic_id),
		question_ids or None,
		question_id,
		user_id,
		settings.leaderboard_size,
	)
	return {"topic_id": topic_id, **status}
