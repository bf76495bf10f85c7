import json

from mcq_manager.errors import UpstreamError
from mcq_manager.gemini_client import get_llm_client
from mcq_manager.main import app
from mcq_manager.settings import settings


def chat(count=60):
    return [{"sender": "teacher" if i % 2 == 0 else "student", "html": f"<div>{i}</div>"} for i in range(count)]


def test_generation_requires_topic_fields(client):
    r = client.post("/gpt/generate-step4", json={"topic_title": "Necrosis"})
    assert r.status_code == 400
    assert r.json() == {"error": "topic_id and topic_title are required"}


def test_generation_for_missing_topic(client, llm):
    r = client.post("/gpt/generate-step4", json={"topic_id": 999, "topic_title": "Necrosis"})
    assert r.status_code == 404
    assert llm.calls == []


def test_step4_retries_then_stores_and_merges(client, llm, topic_id):
    client.post(
        f"/topics/{topic_id}/uploads",
        json={"content": {"steps": [{"step": 1, "content": ["old"]}, {"step": 4, "content": ["old chat"]}]}},
    )
    llm.replies = ["not json", "```json\n" + json.dumps({"step": 4, "content": chat()}) + "\n```"]

    r = client.post("/gpt/generate-step4", json={"topic_id": topic_id, "topic_title": "Necrosis"})
    assert r.status_code == 200
    body = r.json()
    assert body["steps"] == [4]
    assert len(llm.calls) == 2
    assert llm.calls[0]["temperature"] == 0.3
    assert [s["step"] for s in body["merged"]] == [1, 4]
    assert len(body["merged"][1]["content"]) == 60
    assert len(client.get(f"/topics/{topic_id}/uploads").json()) == 2


def test_steps_1_to_3(client, llm, topic_id):
    payload = {"steps": [{"step": n, "content": [f"row {n}"]} for n in (1, 2, 3)]}
    llm.replies = [json.dumps(payload)]
    r = client.post("/gpt/generate-topic-content", json={"topic_id": topic_id, "topic_title": "Necrosis"})
    assert r.status_code == 200
    assert client.get(f"/topics/{topic_id}/content").json()["steps"] == payload["steps"]


def test_invalid_output_after_all_attempts_is_502(client, llm, topic_id):
    llm.replies = [json.dumps({"step": 5, "content": {"mcqs": []}})] * 3
    r = client.post("/gpt/generate-step5", json={"topic_id": topic_id, "topic_title": "Necrosis"})
    assert r.status_code == 502
    assert r.json() == {"error": "step 5: step 5 must contain exactly 10 mcqs"}
    assert len(llm.calls) == 3
    assert client.get(f"/topics/{topic_id}/uploads").json() == []


def test_provider_failure_is_502(client, llm, topic_id):
    llm.replies = [UpstreamError("Gemini call failed: boom")] * 3
    r = client.post("/gpt/generate-step6", json={"topic_id": topic_id, "topic_title": "Necrosis"})
    assert r.status_code == 502
    assert r.json() == {"error": "Gemini call failed: boom"}


def test_missing_topic_checked_before_provider_config(client, monkeypatch):
    app.dependency_overrides.pop(get_llm_client)
    monkeypatch.setattr(settings, "gemini_api_key", None)
    r = client.post("/gpt/generate-step5", json={"topic_id": 999, "topic_title": "Necrosis"})
    assert r.status_code == 404
    assert r.json() == {"error": "Topic not found"}


def test_unconfigured_provider_is_502(client, topic_id, monkeypatch):
    app.dependency_overrides.pop(get_llm_client)
    monkeypatch.setattr(settings, "gemini_api_key", None)
    monkeypatch.setattr(settings, "openrouter_api_key", None)
    r = client.post("/gpt/generate-step5", json={"topic_id": topic_id, "topic_title": "Necrosis"})
    assert r.status_code == 502
    assert r.json() == {"error": "GEMINI_API_KEY is not configured"}
