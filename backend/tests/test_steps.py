import pytest

from mcq_manager.errors import ValidationError
from mcq_manager.steps import batch_steps, find_step, merge_steps, step_numbers, without_step


STORED = [
    {"steps": [{"step": 1, "content": "a"}]},
    {"steps": [{"step": 1, "content": "b"}, {"step": 2, "content": "c"}]},
]


def test_later_batches_override_earlier_steps():
    assert merge_steps(STORED) == [{"step": 1, "content": "b"}, {"step": 2, "content": "c"}]


def test_incoming_batch_wins_over_everything_stored():
    merged = merge_steps(STORED, {"steps": [{"step": 2, "content": "z"}]})
    assert merged == [{"step": 1, "content": "b"}, {"step": 2, "content": "z"}]


def test_merge_is_repeatable_and_does_not_touch_inputs():
    first = merge_steps(STORED)
    second = merge_steps(STORED)
    assert first == second
    assert STORED[0] == {"steps": [{"step": 1, "content": "a"}]}


def test_override_replaces_whole_record():
    merged = merge_steps([
        {"steps": [{"step": 3, "content": {"rows": [1, 2], "title": "old"}}]},
        {"steps": [{"step": 3, "content": {"rows": [9]}}]},
    ])
    assert merged == [{"step": 3, "content": {"rows": [9]}}]


def test_output_is_sorted_and_need_not_be_contiguous():
    merged = merge_steps([{"steps": [{"step": 6, "content": "m"}, {"step": 2, "content": "x"}]}])
    assert [s["step"] for s in merged] == [2, 6]


def test_later_record_in_same_batch_wins():
    merged = merge_steps([], [{"step": 4, "content": "first"}, {"step": 4, "content": "second"}])
    assert merged == [{"step": 4, "content": "second"}]


def test_empty_inputs():
    assert merge_steps([]) == []
    assert merge_steps([{"steps": []}], {"steps": []}) == []


@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"steps": "not a list"},
        {"steps": [{"content": "no step"}]},
        {"steps": [{"step": "1", "content": "x"}]},
        {"steps": [{"step": 0}]},
        {"steps": [{"step": True}]},
        {"steps": ["oops"]},
    ],
)
def test_malformed_incoming_batch_is_rejected(payload):
    with pytest.raises(ValidationError):
        merge_steps(STORED, payload)


def test_batch_steps_accepts_bare_list():
    assert batch_steps([{"step": 1}]) == [{"step": 1}]


def test_malformed_stored_rows_are_skipped():
    merged = merge_steps([None, {"steps": "bad"}, {"steps": [{"nostep": 1}, {"step": 5, "content": "ok"}]}])
    assert merged == [{"step": 5, "content": "ok"}]


def test_without_step_drops_every_copy():
    batch = {"steps": [{"step": 4, "content": "a"}, {"step": 5}, {"step": 4, "content": "b"}]}
    assert without_step(batch, 4) == {"steps": [{"step": 5}]}


def test_without_step_keeps_records_it_cannot_read():
    batch = {"steps": [{"step": 4, "content": "a"}, {"bogus": 1}]}
    assert without_step(batch, 4) == {"steps": [{"bogus": 1}]}
    assert without_step([{"step": 4.0}, {"step": 2}], 4) == {"steps": [{"step": 2}]}


def test_step_lookup_reads_stored_shapes_leniently():
    assert step_numbers({"steps": [{"step": 2}, {"bogus": 1}, {"step": 4.0}]}) == [2, 4]
    assert step_numbers([{"step": 3}]) == [3]
    assert step_numbers("garbage") == []
    assert find_step([{"step": 4, "content": "old"}, {"step": 4, "content": "new"}], 4) == {"step": 4, "content": "new"}
    assert find_step({"steps": [{"step": 1}]}, 4) is None
