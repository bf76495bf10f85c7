from __future__ import annotations
import logging
from typing import Any, List, Literal, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ..errors import NotFoundError, ValidationError
from ..settings import settings
from ..step4_mcqs import mcq_row
from ..steps import batch_steps, merge_steps, step_numbers, without_step
from ..storage import Storage, get_storage

router = APIRouter(prefix="/topics", tags=["topics"])

logger = logging.getLogger(__name__)

UPLOAD_ORDER = ["created_at", "id"]


class UploadRequest(BaseModel):
	# {"steps": [{"step": 1, "content": ...}, ...]}
	content: Any = None


class McqOptions(BaseModel):
	A: str
	B: str
	C: str
	D: str
	E: str


class McqIn(BaseModel):
	learning_gap: Optional[str] = None
	stem: str
	options: McqOptions
	correct_answer: Literal["A", "B", "C", "D", "E"]
	explanation: Optional[str] = None


class McqUploadRequest(BaseModel):
	mcqs: Optional[List[McqIn]] = None


def topic_uploads(storage: Storage, topic_id: int) -> List[dict]:
	return storage.select_many("topic_uploads", {"topic_id": topic_id}, order_by=UPLOAD_ORDER)


def merged_content(storage: Storage, topic_id: int) -> List[dict]:
	return merge_steps(u["content"] for u in topic_uploads(storage, topic_id))


@router.post("/{topic_id}/uploads", status_code=201)
def upload_content(topic_id: int, req: UploadRequest, storage: Storage = Depends(get_storage)):
	if req.content is None:
		raise ValidationError("Content is required")
	steps = batch_steps(req.content)
	storage.require("topics", {"id": topic_id}, "Topic")
	return storage.insert("topic_uploads", [{"topic_id": topic_id, "content": {"steps": steps}}])[0]


@router.get("/{topic_id}/uploads")
def list_uploads(topic_id: int, storage: Storage = Depends(get_storage)):
	storage.require("topics", {"id": topic_id}, "Topic")
	return topic_uploads(storage, topic_id)


@router.get("/{topic_id}/content")
def topic_content(topic_id: int, storage: Storage = Depends(get_storage)):
	storage.require("topics", {"id": topic_id}, "Topic")
	return {"topic_id": topic_id, "steps": merged_content(storage, topic_id)}


@router.delete("/{topic_id}/uploads/{upload_id}")
def delete_upload(topic_id: int, upload_id: int, storage: Storage = Depends(get_storage)):
	storage.require("topic_uploads", {"id": upload_id, "topic_id": topic_id}, "Upload")
	storage.delete("topic_uploads", {"id": upload_id})
	return {"topic_id": topic_id, "steps": merged_content(storage, topic_id)}


@router.delete("/{topic_id}/steps/{step}")
def delete_step(topic_id: int, step: int, storage: Storage = Depends(get_storage)):
	storage.require("topics", {"id": topic_id}, "Topic")
	touched = 0
	for upload in topic_uploads(storage, topic_id):
		if step not in step_numbers(upload["content"]):
			continue
		storage.update("topic_uploads", {"content": without_step(upload["content"], step)}, {"id": upload["id"]})
		touched += 1
	if not touched:
		raise NotFoundError(f"Step {step} not found")
	logger.info("removed step %s from %d uploads of topic %s", step, touched, topic_id)
	return {"topic_id": topic_id, "steps": merged_content(storage, topic_id)}


@router.post("/{topic_id}/mcqs", status_code=201)
def upload_mcqs(topic_id: int, req: McqUploadRequest, storage: Storage = Depends(get_storage)):
	if not req.mcqs or len(req.mcqs) != settings.mcqs_per_upload:
		raise ValidationError(f"You must upload exactly {settings.mcqs_per_upload} MCQs.")
	storage.require("topics", {"id": topic_id}, "Topic")
	rows = storage.insert("mcqs", [mcq_row(topic_id, m.model_dump()) for m in req.mcqs])
	return {"message": "MCQs uploaded successfully.", "mcqs": rows}


@router.get("/{topic_id}/mcqs")
def list_mcqs(topic_id: int, storage: Storage = Depends(get_storage)):
	return storage.select_many("mcqs", {"topic_id": topic_id}, order_by=UPLOAD_ORDER)
