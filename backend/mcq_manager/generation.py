from __future__ import annotations
import asyncio
import json
import logging
import re
from typing import Any, Awaitable, Callable, Dict, List, Optional

from .errors import UpstreamError, UpstreamParseError
from .scoring import ANSWER_CHOICES
from .settings import settings
from . import prompts


logger = logging.getLogger(__name__)

STEP4_MESSAGES = 60
STEP6_MEDIA_ITEMS = 10
CHAT_SENDERS = ("teacher", "student")

# Returns None when the parsed payload is acceptable, otherwise the reason it is not
Validator = Callable[[Any], Optional[str]]


def clean_model_text(text: str) -> str:
    cleaned = (text or "").strip().replace("\u200b", "")
    cleaned = re.sub(r"^```(?:json)?", "", cleaned)
    cleaned = re.sub(r"```$", "", cleaned)
    return cleaned.strip()


def extract_json_object(text: str) -> Any:
    cleaned = clean_model_text(text)
    try:
        return json.loads(cleaned)
    except ValueError:
        pass
    code_block = re.search(r"```json\s*([\s\S]*?)\s*```", text or "")
    if code_block:
        try:
            return json.loads(code_block.group(1))
        except ValueError:
            pass
    first = cleaned.find("{")
    last = cleaned.rfind("}")
    if first != -1 and last > first:
        try:
            return json.loads(cleaned[first : last + 1])
        except ValueError:
            pass
    raise UpstreamParseError("LLM did not return valid JSON.")


def _find_step(steps: Any, number: int) -> Optional[Dict[str, Any]]:
    if not isinstance(steps, list):
        return None
    return next((s for s in steps if isinstance(s, dict) and s.get("step") == number), None)


def check_steps_1_to_3(data: Any) -> Optional[str]:
    steps = data.get("steps") if isinstance(data, dict) else None
    if not isinstance(steps, list):
        return "response has no steps array"
    for number in (1, 2, 3):
        step = _find_step(steps, number)
        if step is None or not isinstance(step.get("content"), list) or not step["content"]:
            return f"step {number} is missing or empty"
    return None


def check_chat(messages: Any, expected: int) -> Optional[str]:
    if not isinstance(messages, list) or len(messages) != expected:
        return f"expected {expected} chat messages"
    for index, entry in enumerate(messages):
        if not isinstance(entry, dict) or not isinstance(entry.get("html"), str) or entry.get("sender") not in CHAT_SENDERS:
            return f"chat message {index} needs a teacher/student sender and an html string"
    return None


def check_step4(data: Any) -> Optional[str]:
    if not isinstance(data, dict) or data.get("step") != 4:
        return "response is not step 4"
    return check_chat(data.get("content"), STEP4_MESSAGES)


def check_mcq(mcq: Any) -> Optional[str]:
    if not isinstance(mcq, dict) or not mcq.get("stem"):
        return "mcq has no stem"
    options = mcq.get("options")
    if not isinstance(options, dict) or any(not options.get(k) for k in ANSWER_CHOICES):
        return f"mcq options must include {'/'.join(ANSWER_CHOICES)}"
    if mcq.get("correct_answer") not in ANSWER_CHOICES:
        return "mcq correct_answer must be one of A-E"
    return None


def check_step5(data: Any) -> Optional[str]:
    if not isinstance(data, dict) or data.get("step") != 5:
        return "response is not step 5"
    content = data.get("content")
    mcqs = content.get("mcqs") if isinstance(content, dict) else None
    if not isinstance(mcqs, list) or len(mcqs) != settings.mcqs_per_upload:
        return f"step 5 must contain exactly {settings.mcqs_per_upload} mcqs"
    for index, mcq in enumerate(mcqs):
        reason = check_mcq(mcq)
        if reason:
            return f"mcq {index}: {reason}"
    return None


def _media_ok(items: Any) -> bool:
    return (
        isinstance(items, list)
        and len(items) == STEP6_MEDIA_ITEMS
        and all(isinstance(i, dict) and i.get("keyword") and i.get("description") for i in items)
    )


def check_step6(data: Any) -> Optional[str]:
    step = _find_step(data.get("steps") if isinstance(data, dict) else None, 6)
    if step is None:
        return "response has no step 6"
    content = step.get("content")
    library = content[0] if isinstance(content, list) and content else None
    if not isinstance(library, dict):
        return "step 6 content is empty"
    if not _media_ok(library.get("videos")) or not _media_ok(library.get("images")):
        return f"step 6 needs {STEP6_MEDIA_ITEMS} videos and {STEP6_MEDIA_ITEMS} images with keyword and description"
    return None


async def retry_until_valid(
    produce: Callable[[], Awaitable[str]],
    validate: Validator,
    *,
    attempts: Optional[int] = None,
    delay: Optional[float] = None,
    label: str = "generation",
) -> Any:
    """Call ``produce`` until its text parses as JSON that ``validate`` accepts.

    Gives up after ``attempts`` tries and re-raises the last failure unchanged.
    """
    attempts = attempts if attempts is not None else settings.generation_max_attempts
    delay = delay if delay is not None else settings.generation_retry_delay_seconds
    last_error: UpstreamError = UpstreamParseError(f"{label}: no attempts made")
    for attempt in range(1, max(attempts, 1) + 1):
        try:
            data = extract_json_object(await produce())
            reason = validate(data)
            if reason is None:
                return data
            last_error = UpstreamParseError(f"{label}: {reason}")
        except UpstreamError as e:
            last_error = e
        logger.warning("%s attempt %d/%d failed: %s", label, attempt, attempts, last_error.message)
        if attempt < attempts and delay > 0:
            await asyncio.sleep(delay)
    raise last_error


class StepGenerator:
    """How to ask for one kind of step content and what to keep from the answer."""

    def __init__(
        self,
        label: str,
        build_messages: Callable[[str], List[Dict[str, str]]],
        validate: Validator,
        to_steps: Callable[[Any], List[Dict[str, Any]]],
        temperature: Optional[float] = None,
    ) -> None:
        self.label = label
        self.build_messages = build_messages
        self.validate = validate
        self.to_steps = to_steps
        self.temperature = temperature

    async def run(self, client: Any, topic_title: str) -> List[Dict[str, Any]]:
        messages = self.build_messages(topic_title)
        data = await retry_until_valid(
            lambda: client.complete(messages, temperature=self.temperature),
            self.validate,
            label=self.label,
        )
        return self.to_steps(data)


GENERATORS: Dict[str, StepGenerator] = {
    "steps-1-3": StepGenerator(
        "steps 1-3",
        prompts.steps_1_to_3,
        check_steps_1_to_3,
        lambda data: [_find_step(data["steps"], n) for n in (1, 2, 3)],
    ),
    "step-4": StepGenerator(
        "step 4",
        lambda title: prompts.step_4(title, STEP4_MESSAGES),
        check_step4,
        lambda data: [data],
        temperature=0.3,
    ),
    "step-5": StepGenerator(
        "step 5",
        lambda title: prompts.step_5(title, settings.mcqs_per_upload),
        check_step5,
        lambda data: [data],
        temperature=0.7,
    ),
    "step-6": StepGenerator(
        "step 6",
        lambda title: prompts.step_6(title, STEP6_MEDIA_ITEMS),
        check_step6,
        lambda data: [_find_step(data["steps"], 6)],
    ),
}
