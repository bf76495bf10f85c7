from __future__ import annotations
from typing import List

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ..storage import Storage, get_storage

router = APIRouter(tags=["subjects"])


class NameIn(BaseModel):
	name: str = Field(min_length=1, max_length=256)


class ChapterIn(BaseModel):
	name: str = Field(min_length=1, max_length=256)
	topics: List[NameIn] = Field(default_factory=list)


class ChaptersRequest(BaseModel):
	chapters: List[ChapterIn]


def _subject_summary(subject: dict) -> dict:
	return {"id": subject["id"], "name": subject["name"]}


@router.post("/subjects", status_code=201)
def create_subjects(subjects: List[NameIn], storage: Storage = Depends(get_storage)):
	return storage.insert("subjects", [s.model_dump() for s in subjects])


@router.get("/subjects")
def list_subjects(storage: Storage = Depends(get_storage)):
	return [_subject_summary(s) for s in storage.select_many("subjects", order_by=["id"])]


@router.patch("/subjects/{subject_id}")
def rename_subject(subject_id: int, req: NameIn, storage: Storage = Depends(get_storage)):
	storage.require("subjects", {"id": subject_id}, "Subject")
	return storage.update("subjects", {"name": req.name}, {"id": subject_id})[0]


@router.delete("/subjects/{subject_id}")
def delete_subject(subject_id: int, storage: Storage = Depends(get_storage)):
	storage.require("subjects", {"id": subject_id}, "Subject")
	storage.delete("subjects", {"id": subject_id})
	return {"ok": True}


@router.post("/subjects/{subject_id}/chapters", status_code=201)
def add_chapters(subject_id: int, req: ChaptersRequest, storage: Storage = Depends(get_storage)):
	subject = storage.require("subjects", {"id": subject_id}, "Subject")
	created_chapters = []
	created_topics = []
	for chapter in req.chapters:
		chapter_row = storage.insert("chapters", [{"subject_id": subject_id, "name": chapter.name}])[0]
		created_chapters.append(chapter_row)
		if chapter.topics:
			created_topics.extend(
				storage.insert("topics", [{"chapter_id": chapter_row["id"], "name": t.name} for t in chapter.topics])
			)
	return {"subject": _subject_summary(subject), "chapters": created_chapters, "topics": created_topics}


@router.get("/subjects/{subject_id}/structure")
def subject_structure(subject_id: int, storage: Storage = Depends(get_storage)):
	subject = storage.require("subjects", {"id": subject_id}, "Subject")
	chapters = [
		{"id": c["id"], "name": c["name"], "topics": []}
		for c in storage.select_many("chapters", {"subject_id": subject_id}, order_by=["id"])
	]
	by_id = {c["id"]: c for c in chapters}
	if by_id:
		for topic in storage.select_many("topics", {"chapter_id": list(by_id)}, order_by=["id"]):
			by_id[topic["chapter_id"]]["topics"].append({"id": topic["id"], "name": topic["name"]})
	return {"subject": _subject_summary(subject), "chapters": chapters}


@router.patch("/chapters/{chapter_id}")
def rename_chapter(chapter_id: int, req: NameIn, storage: Storage = Depends(get_storage)):
	storage.require("chapters", {"id": chapter_id}, "Chapter")
	return storage.update("chapters", {"name": req.name}, {"id": chapter_id})[0]


@router.delete("/chapters/{chapter_id}")
def delete_chapter(chapter_id: int, storage: Storage = Depends(get_storage)):
	storage.require("chapters", {"id": chapter_id}, "Chapter")
	storage.delete("chapters", {"id": chapter_id})
	return {"ok": True}


@router.get("/topics/{topic_id}")
def get_topic(topic_id: int, storage: Storage = Depends(get_storage)):
	return storage.require("topics", {"id": topic_id}, "Topic")


@router.patch("/topics/{topic_id}")
def rename_topic(topic_id: int, req: NameIn, storage: Storage = Depends(get_storage)):
	storage.require("topics", {"id": topic_id}, "Topic")
	return storage.update("topics", {"name": req.name}, {"id": topic_id})[0]


@router.delete("/topics/{topic_id}")
def delete_topic(topic_id: int, storage: Storage = Depends(get_storage)):
	storage.require("topics", {"id": topic_id}, "Topic")
	storage.delete("topics", {"id": topic_id})
	return {"ok": True}
