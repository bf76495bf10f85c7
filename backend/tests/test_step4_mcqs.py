import json

from mcq_manager.step4_mcqs import embedded_mcqs, migrate_step4_mcqs


def mcq_tag(**fields):
    return "<mcq>" + json.dumps(fields) + "</mcq>"


GOOD = {"stem": "Which enzyme?", "options": {"A": "x", "B": "y"}, "correct_answer": "B"}


def test_embedded_mcqs_skips_broken_blocks():
    html = "<div>" + mcq_tag(**GOOD) + "<mcq>{not json</mcq>" + mcq_tag(stem="no options") + "</div>"
    assert embedded_mcqs(html) == [GOOD]
    assert embedded_mcqs("") == []


def test_migration_copies_step4_mcqs(storage):
    subject = storage.insert("subjects", [{"name": "s"}])[0]
    chapter = storage.insert("chapters", [{"subject_id": subject["id"], "name": "c"}])[0]
    topic = storage.insert("topics", [{"chapter_id": chapter["id"], "name": "t"}])[0]
    chat = [
        {"sender": "teacher", "html": "<div>Quiz: " + mcq_tag(**GOOD) + "</div>"},
        {"sender": "student", "html": "<div>" + mcq_tag(stem="s", options={"A": "a"}, correct_answer="Z") + "</div>"},
    ]
    storage.insert("topic_uploads", [
        {"topic_id": topic["id"], "content": {"steps": [{"step": 4, "content": chat}]}},
        {"topic_id": topic["id"], "content": {"steps": [{"step": 1, "content": chat}]}},
    ])

    assert migrate_step4_mcqs(storage) == 1
    rows = storage.select_many("mcqs")
    assert len(rows) == 1
    assert rows[0]["step"] == 4
    assert rows[0]["option_b"] == "y"
    assert rows[0]["option_e"] is None
    assert rows[0]["topic_id"] == topic["id"]


def test_migration_reads_odd_rows_without_failing(storage):
    subject = storage.insert("subjects", [{"name": "s"}])[0]
    chapter = storage.insert("chapters", [{"subject_id": subject["id"], "name": "c"}])[0]
    topic = storage.insert("topics", [{"chapter_id": chapter["id"], "name": "t"}])[0]
    message = {"sender": "teacher", "html": mcq_tag(**GOOD)}
    storage.insert("topic_uploads", [
        {"topic_id": topic["id"], "content": [{"step": 4, "content": []}]},
        {"topic_id": topic["id"], "content": "not a batch"},
        {"topic_id": topic["id"], "content": {"steps": [{"bogus": 1}, {"step": 4.0, "content": [message, {"html": 7}]}]}},
        {"topic_id": topic["id"], "content": [{"step": 4, "content": [message]}]},
    ])

    assert migrate_step4_mcqs(storage) == 2
    assert [row["stem"] for row in storage.select_many("mcqs")] == ["Which enzyme?", "Which enzyme?"]
