from __future__ import annotations
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Integer, Text, Boolean, ForeignKey, JSON, UniqueConstraint
from .db import Base


class Subject(Base):
	__tablename__ = "subjects"
	id = Column(Integer, primary_key=True, autoincrement=True)
	name = Column(String(256), nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class Chapter(Base):
	__tablename__ = "chapters"
	id = Column(Integer, primary_key=True, autoincrement=True)
	subject_id = Column(Integer, ForeignKey("subjects.id", ondelete="CASCADE"), nullable=False, index=True)
	name = Column(String(256), nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class Topic(Base):
	__tablename__ = "topics"
	id = Column(Integer, primary_key=True, autoincrement=True)
	chapter_id = Column(Integer, ForeignKey("chapters.id", ondelete="CASCADE"), nullable=False, index=True)
	name = Column(String(256), nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class College(Base):
	__tablename__ = "colleges"
	id = Column(Integer, primary_key=True, autoincrement=True)
	name = Column(String(256), nullable=False)
	state = Column(String(128), nullable=True)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class User(Base):
	__tablename__ = "users"
	id = Column(Integer, primary_key=True, autoincrement=True)
	name = Column(String(256), nullable=False)
	# E.164, e.g. +919876543210
	phone = Column(String(32), nullable=False, unique=True, index=True)
	email = Column(String(256), nullable=True)
	college_id = Column(Integer, ForeignKey("colleges.id"), nullable=True)
	year_of_study = Column(Integer, nullable=True)
	status = Column(String(32), default="pending", nullable=False)
	phone_verified = Column(Boolean, default=False, nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class Mcq(Base):
	__tablename__ = "mcqs"
	id = Column(Integer, primary_key=True, autoincrement=True)
	topic_id = Column(Integer, ForeignKey("topics.id", ondelete="CASCADE"), nullable=False, index=True)
	# Set when the question was lifted out of generated step content
	step = Column(Integer, nullable=True)
	learning_gap = Column(Text, nullable=True)
	stem = Column(Text, nullable=False)
	option_a = Column(Text, nullable=True)
	option_b = Column(Text, nullable=True)
	option_c = Column(Text, nullable=True)
	option_d = Column(Text, nullable=True)
	option_e = Column(Text, nullable=True)
	correct_answer = Column(String(1), nullable=False)
	explanation = Column(Text, nullable=True)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class TopicUpload(Base):
	__tablename__ = "topic_uploads"
	id = Column(Integer, primary_key=True, autoincrement=True)
	topic_id = Column(Integer, ForeignKey("topics.id", ondelete="CASCADE"), nullable=False, index=True)
	# {"steps": [{"step": 1, "content": ...}, ...]}
	content = Column(JSON, nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class StudentMcqResponse(Base):
	__tablename__ = "student_mcq_responses"
	__table_args__ = (UniqueConstraint("user_id", "topic_id", "question_id", name="uq_response_user_topic_question"),)
	id = Column(Integer, primary_key=True, autoincrement=True)
	user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
	topic_id = Column(Integer, ForeignKey("topics.id", ondelete="CASCADE"), nullable=False, index=True)
	question_id = Column(Integer, ForeignKey("mcqs.id", ondelete="CASCADE"), nullable=False)
	selected_answer = Column(String(1), nullable=False)
	is_correct = Column(Boolean, default=False, nullable=False)
	score = Column(Integer, default=0, nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
