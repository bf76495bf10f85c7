from __future__ import annotations
import logging
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ..errors import ValidationError
from ..gemini_client import GeminiClient, get_llm_client
from ..generation import GENERATORS
from ..storage import Storage, get_storage
from .topics import merged_content

router = APIRouter(prefix="/gpt", tags=["generation"])

logger = logging.getLogger(__name__)


class GenerateRequest(BaseModel):
	topic_id: Optional[int] = None
	topic_title: Optional[str] = None


async def _generate(kind: str, req: GenerateRequest, storage: Storage, client: GeminiClient) -> dict:
	title = (req.topic_title or "").strip()
	if not req.topic_id or not title:
		raise ValidationError("topic_id and topic_title are required")
	storage.require("topics", {"id": req.topic_id}, "Topic")
	generator = GENERATORS[kind]
	steps = await generator.run(client, title)
	upload = storage.insert("topic_uploads", [{"topic_id": req.topic_id, "content": {"steps": steps}}])[0]
	logger.info("stored generated %s for topic %s as upload %s", generator.label, req.topic_id, upload["id"])
	return {
		"message": f"{generator.label} content generated and stored",
		"steps": [s["step"] for s in steps],
		"data": upload,
		"merged": merged_content(storage, req.topic_id),
	}


@router.post("/generate-topic-content")
async def generate_topic_content(
	req: GenerateRequest,
	storage: Storage = Depends(get_storage),
	client: GeminiClient = Depends(get_llm_client),
):
	return await _generate("steps-1-3", req, storage, client)


@router.post("/generate-step4")
async def generate_step4(
	req: GenerateRequest,
	storage: Storage = Depends(get_storage),
	client: GeminiClient = Depends(get_llm_client),
):
	return await _generate("step-4", req, storage, client)


@router.post("/generate-step5")
async def generate_step5(
	req: GenerateRequest,
	storage: Storage = Depends(get_storage),
	client: GeminiClient = Depends(get_llm_client),
):
	return await _generate("step-5", req, storage, client)


@router.post("/generate-step6")
async def generate_step6(
	req: GenerateRequest,
	storage: Storage = Depends(get_storage),
	client: GeminiClient = Depends(get_llm_client),
):
	return await _generate("step-6", req, storage, client)
