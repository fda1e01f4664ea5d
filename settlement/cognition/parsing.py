"""Minimal structural parsing of collaborator replies.

Replies are free text. Dialogue may end with one action tag; behavior and
reaction replies are expected to be JSON but are often wrapped in prose or a
code fence, so JSON is located leniently before validation.
"""

from __future__ import annotations

import json
import re
from typing import Any, Optional, Tuple

from pydantic import ValidationError

from settlement.logging_utils import log_warning
from settlement.schemas import ActionTag, BehaviorDecision, EventReaction


# First match wins, in this order.
_TAG_PATTERNS = (
    ("follow", re.compile(r"\[FOLLOW\]", re.IGNORECASE)),
    ("go", re.compile(r"\[GO:\s*(.+?)\]", re.IGNORECASE)),
    ("stay", re.compile(r"\[STAY\]", re.IGNORECASE)),
)

_FENCE = re.compile(r"```(?:json)?\s*([\s\S]*?)```", re.IGNORECASE)


def parse_action_tag(text: str) -> Tuple[str, Optional[ActionTag]]:
    """Split a reply into spoken text and at most one action tag."""

    for kind, pattern in _TAG_PATTERNS:
        match = pattern.search(text)
        if match is None:
            continue
        target = match.group(1).strip() if kind == "go" else None
        clean = (text[: match.start()] + text[match.end():]).strip()
        return clean, ActionTag(kind=kind, target=target)
    return text.strip(), None


def parse_json_lenient(text: str) -> Any:
    """Parse JSON directly, from a code fence, or from the outermost braces.

    Raises ``ValueError`` when none of those yields valid JSON.
    """

    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    fenced = _FENCE.search(text)
    if fenced:
        try:
            return json.loads(fenced.group(1).strip())
        except json.JSONDecodeError:
            pass

    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end > start:
        try:
            return json.loads(text[start : end + 1])
        except json.JSONDecodeError:
            pass

    raise ValueError(f"Could not parse JSON from reply: {text[:200]!r}")


def parse_behavior_decision(text: str) -> Optional[BehaviorDecision]:
    try:
        return BehaviorDecision.model_validate(parse_json_lenient(text))
    except (ValueError, ValidationError) as exc:
        log_warning(f"Unusable behavior decision: {exc}")
        return None


def parse_event_reaction(text: str) -> Optional[EventReaction]:
    try:
        return EventReaction.model_validate(parse_json_lenient(text))
    except (ValueError, ValidationError) as exc:
        log_warning(f"Unusable event reaction: {exc}")
        return None
