from __future__ import annotations
import json
import logging
import re
from typing import Any, Dict, List

from .scoring import ANSWER_CHOICES
from .steps import find_step
from .storage import Storage


logger = logging.getLogger(__name__)

_MCQ_BLOCK = re.compile(r"<mcq>(.*?)</mcq>", re.DOTALL)


def embedded_mcqs(html: str) -> List[Dict[str, Any]]:
	"""Parse every ``<mcq>{json}</mcq>`` block in a chat message; malformed blocks are skipped."""
	found = []
	for match in _MCQ_BLOCK.finditer(html if isinstance(html, str) else ""):
		try:
			mcq = json.loads(match.group(1).strip())
		except ValueError as e:
			logger.warning("invalid JSON in <mcq>: %s", e)
			continue
		if not isinstance(mcq, dict) or not (mcq.get("stem") and isinstance(mcq.get("options"), dict) and mcq.get("correct_answer")):
			continue
		found.append(mcq)
	return found


def mcq_row(topic_id: int, mcq: Dict[str, Any], step: int | None = None) -> Dict[str, Any]:
	options = mcq.get("options") or {}
	return {
		"topic_id": topic_id,
		"step": step,
		"learning_gap": mcq.get("learning_gap"),
		"stem": mcq["stem"],
		"option_a": options.get("A"),
		"option_b": options.get("B"),
		"option_c": options.get("C"),
		"option_d": options.get("D"),
		"option_e": options.get("E"),
		"correct_answer": mcq["correct_answer"],
		"explanation": mcq.get("explanation"),
	}


def migrate_step4_mcqs(storage: Storage) -> int:
	"""Copy MCQs embedded in stored step 4 chats into the mcqs table. Returns rows inserted."""
	inserted = 0
	for upload in storage.select_many("topic_uploads", order_by=["created_at", "id"]):
		step4 = find_step(upload["content"], 4)
		if step4 is None or not isinstance(step4.get("content"), list):
			continue
		rows = []
		for message in step4["content"]:
			for mcq in embedded_mcqs(message.get("html", "") if isinstance(message, dict) else ""):
				# Only single-letter A-E answers fit the mcqs table
				if mcq["correct_answer"] not in ANSWER_CHOICES:
					logger.warning("skipping <mcq> with answer outside A-E in upload %s", upload["id"])
					continue
				rows.append(mcq_row(upload["topic_id"], mcq, step=4))
		if rows:
			inserted += len(storage.insert("mcqs", rows))
	logger.info("step 4 MCQ migration complete, inserted %d", inserted)
	return inserted


if __name__ == "__main__":
	from .db import SessionLocal, init_db

	logging.basicConfig(level=logging.INFO)
	init_db()
	db = SessionLocal()
	try:
		migrate_step4_mcqs(Storage(db))
	finally:
		db.close()
