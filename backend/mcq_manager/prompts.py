from __future__ import annotations
from typing import Dict, List


JSON_ONLY = (
	"Output must be a single valid JSON object starting with { and ending with }.\n"
	"Do not include explanations, markdown, headings, commentary or code fences.\n"
	"Do not include HTML page structure like <html>, <head>, <style> or <script>.\n"
	"Inline <strong> for keywords and <i> for clarifications is allowed. Emojis are allowed.\n"
)


def _messages(system: str, user: str) -> List[Dict[str, str]]:
	return [{"role": "system", "content": system}, {"role": "user", "content": user}]


def steps_1_to_3(topic_title: str) -> List[Dict[str, str]]:
	user = (
		"You are an expert USMLE medical educator and structured content developer.\n"
		"Create high-yield, clinically precise content at AMBOSS / UWorld / NBME standard for a mobile learning app.\n\n"
		f"TOPIC: {topic_title}\n\n"
		f"{JSON_ONLY}\n"
		"STEP 1: CLINICAL TEACHER-STUDENT CHAT\n"
		"A 30-message conversation alternating teacher and student. Each message is\n"
		'{"sender": "teacher" | "student", "html": "<div>...</div>"}. The teacher leads; the student confirms or summarizes.\n\n'
		"STEP 2: BUZZWORD ACTIVE RECALL TABLE\n"
		'30 rows of {"buzzword": "<strong>...</strong> with an emoji", "highYieldPoint": "short, precise clinical fact"}.\n\n'
		"STEP 3: REMEDIATION BOOSTER TABLE\n"
		'30 rows, different from step 2, of {"buzzword": "...", "clarifyingFact": "detailed clarifying fact"}.\n\n'
		"Return exactly:\n"
		'{"steps": [{"step": 1, "content": [...]}, {"step": 2, "content": [...]}, {"step": 3, "content": [...]}]}'
	)
	return _messages("You are a medical educator generating JSON output for a learning platform.", user)


def step_4(topic_title: str, message_count: int) -> List[Dict[str, str]]:
	user = (
		"You are an expert USMLE medical educator.\n"
		f"STEP 4: Clinical reasoning chat on the topic: {topic_title}\n\n"
		f"{JSON_ONLY}\n"
		f"Exactly {message_count} messages alternating teacher and student, starting with the teacher.\n"
		"Match AMBOSS / UWorld / NBME depth.\n"
		"Where the teacher asks a question, embed it as <mcq>{\"stem\": \"...\", \"options\": {\"A\": \"...\", ...}, \"correct_answer\": \"A\"}</mcq> inside html.\n\n"
		"Return exactly:\n"
		'{"step": 4, "content": [{"sender": "teacher", "html": "..."}, {"sender": "student", "html": "..."}]}'
	)
	return _messages("You are a USMLE-level educator. Return only valid JSON for Step 4.", user)


def step_5(topic_title: str, mcq_count: int) -> List[Dict[str, str]]:
	user = (
		"You are an expert USMLE Step 1 and Step 2 coaching mentor.\n"
		f"Topic: {topic_title}\n\n"
		f"Identify {mcq_count} learning gaps a student may have with this topic: facts linked to it and background "
		"topics whose absence would hinder understanding. Write one USMLE-style clinical vignette MCQ per learning gap.\n"
		"Every MCQ has a 5-6 sentence vignette stem (age, gender, symptoms, labs, imaging if needed), "
		"5 options labelled A-E, one correct answer and a detailed 10-sentence explanation.\n\n"
		f"{JSON_ONLY}\n"
		"Return exactly:\n"
		'{"step": 5, "content": {"status": "success", "topic": "' + topic_title + '", "mcqs": ['
		'{"learning_gap": "...", "stem": "...", "options": {"A": "...", "B": "...", "C": "...", "D": "...", "E": "..."}, '
		'"correct_answer": "B", "explanation": "..."}]}}'
	)
	return _messages(
		"You are an expert USMLE-level medical educator. Follow all output rules and generate valid structured JSON.",
		user,
	)


def step_6(topic_title: str, media_count: int) -> List[Dict[str, str]]:
	user = (
		"You are an expert medical educator who creates high-yield, exam-focused content for USMLE, NBME, AMBOSS and UWorld.\n"
		f'Topic: "{topic_title}"\n\n'
		f"Task: build a media library for this topic with exactly {media_count} videos and {media_count} images "
		"a student should look up. Each item has a search keyword and a short educational description.\n\n"
		f"{JSON_ONLY}\n"
		"Return exactly:\n"
		'{"steps": [{"step": 6, "content": [{"videos": [{"keyword": "...", "description": "..."}], '
		'"images": [{"keyword": "...", "description": "..."}]}]}]}'
	)
	return _messages("You are a medical educator generating JSON output for a learning platform.", user)
