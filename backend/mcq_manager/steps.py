from __future__ import annotations
import logging
from typing import Any, Dict, Iterable, List, Optional

from .errors import ValidationError


logger = logging.getLogger(__name__)

# {"step": 1, "content": <opaque JSON>}
StepRecord = Dict[str, Any]


def _step_number(record: Any) -> Optional[int]:
    if not isinstance(record, dict):
        return None
    step = record.get("step")
    if isinstance(step, bool):
        return None
    if isinstance(step, float) and step.is_integer():
        step = int(step)
    if not isinstance(step, int) or step < 1:
        return None
    return step


def batch_steps(batch: Any) -> List[StepRecord]:
    """Return the step records of an upload payload, raising ValidationError if malformed.

    Accepts either the stored shape ``{"steps": [...]}`` or the bare list of records.
    """
    steps = batch.get("steps") if isinstance(batch, dict) else batch
    if steps is None:
        raise ValidationError("content.steps is required")
    if not isinstance(steps, list):
        raise ValidationError("content.steps must be an array")
    for index, record in enumerate(steps):
        if _step_number(record) is None:
            raise ValidationError(f"content.steps[{index}] must be an object with a positive integer 'step'")
    return steps


def stored_steps(batch: Any) -> List[StepRecord]:
    """Well-formed step records of a batch already in storage; malformed ones are logged and skipped."""
    # One bad legacy row must not hide a topic
    steps = batch.get("steps") if isinstance(batch, dict) else batch
    if not isinstance(steps, list):
        logger.warning("skipping stored upload without a steps array")
        return []
    records = []
    for record in steps:
        if _step_number(record) is None:
            logger.warning("skipping stored step without a numeric step field: %r", record)
            continue
        records.append(record)
    return records


def merge_steps(batches: Iterable[Any], incoming: Any = None) -> List[StepRecord]:
    """Merge upload batches into one step list, ordered by step number.

    ``batches`` are applied oldest first, then ``incoming`` if given. A later record for a
    step number replaces the earlier one whole; nothing is deep-merged.
    """
    incoming_steps = batch_steps(incoming) if incoming is not None else []
    merged: Dict[int, StepRecord] = {}
    for batch in batches:
        for record in stored_steps(batch):
            merged[_step_number(record)] = record
    for record in incoming_steps:
        merged[_step_number(record)] = record
    return [merged[step] for step in sorted(merged)]


def step_numbers(batch: Any) -> List[int]:
    return [_step_number(r) for r in stored_steps(batch)]


def find_step(batch: Any, step: int) -> Optional[StepRecord]:
    """The record a merge would keep for ``step`` from this batch alone, or None."""
    found = None
    for record in stored_steps(batch):
        if _step_number(record) == step:
            found = record
    return found


def without_step(batch: Any, step: int) -> Dict[str, Any]:
    """Copy of a stored batch with every record for ``step`` removed; other records are kept as stored."""
    steps = batch.get("steps") if isinstance(batch, dict) else batch
    if not isinstance(steps, list):
        steps = []
    return {"steps": [r for r in steps if _step_number(r) != step]}
