from __future__ import annotations
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ..errors import ConflictError
from ..sms_client import normalize_phone
from ..storage import Storage, get_storage

router = APIRouter(tags=["users"])


class RegisterRequest(BaseModel):
	name: str = Field(min_length=1, max_length=256)
	phone: str
	email: Optional[str] = None
	college_id: Optional[int] = None
	year_of_study: Optional[int] = Field(default=None, ge=1, le=10)


class StatusUpdate(BaseModel):
	status: Literal["pending", "active", "suspended"]


class CollegeIn(BaseModel):
	name: str = Field(min_length=1, max_length=256)
	state: Optional[str] = None


@router.post("/users", status_code=201)
def register(req: RegisterRequest, storage: Storage = Depends(get_storage)):
	phone = normalize_phone(req.phone)
	if storage.select_one("users", {"phone": phone}):
		raise ConflictError("phone already registered")
	if req.college_id is not None:
		storage.require("colleges", {"id": req.college_id}, "College")
	row = req.model_dump()
	row["phone"] = phone
	row["email"] = (req.email or "").strip() or None
	return storage.insert("users", [row])[0]


@router.get("/users/status")
def user_status_by_phone(phone: str, storage: Storage = Depends(get_storage)):
	user = storage.select_one("users", {"phone": normalize_phone(phone)})
	if user is None:
		return {"registered": False, "user_id": None, "status": None, "phone_verified": False}
	return {
		"registered": True,
		"user_id": user["id"],
		"status": user["status"],
		"phone_verified": user["phone_verified"],
	}


@router.get("/users/{user_id}")
def get_user(user_id: int, storage: Storage = Depends(get_storage)):
	return storage.require("users", {"id": user_id}, "User")


@router.patch("/users/{user_id}/status")
def update_status(user_id: int, req: StatusUpdate, storage: Storage = Depends(get_storage)):
	storage.require("users", {"id": user_id}, "User")
	return storage.update("users", {"status": req.status}, {"id": user_id})[0]


@router.get("/colleges")
def list_colleges(storage: Storage = Depends(get_storage)):
	return storage.select_many("colleges", order_by=["name", "id"])


@router.post("/colleges", status_code=201)
def create_colleges(colleges: List[CollegeIn], storage: Storage = Depends(get_storage)):
	return storage.insert("colleges", [c.model_dump() for c in colleges])
