"""
Validation and reconciliation of the LLM clustering response.

The model's output is untrusted text. It is parsed into plain Python objects
first and only turned into a typed ClusteringResult once every tab id is
accounted for exactly once.

Rules:
- Duplicated ids and ids placed in both a workspace and ``unclustered`` are
  structural failures and are never repaired.
- Input ids the model omitted are appended to ``unclustered``.
- Ids the model invented (not in the input) are dropped.
- Workspaces left with fewer than ``min_tabs_per_workspace`` tabs are
  dissolved and their tabs moved to ``unclustered``.
"""

import json
import math
import re
from typing import Any, Iterable

from intent_tabs.agents.errors import ClusteringResponseError
from intent_tabs.agents.models import ClusterProposal, ClusteringResult
from intent_tabs.config import get_logger

logger = get_logger(__name__)

# ```json ... ``` or a bare ``` ... ``` fence anywhere in the text
FENCED_BLOCK_PATTERN = re.compile(r"```(?:json)?\s*([\s\S]*?)```")

DEFAULT_WORKSPACE_NAME = "Unnamed Workspace"
DEFAULT_CONFIDENCE = 0.5
MIN_TABS_PER_WORKSPACE = 2


def extract_json_payload(response_text: str) -> str:
    """
    Strip prose and code fences around the JSON payload.

    Args:
        response_text: Raw model output

    Returns:
        The fenced block's content if there is one, else the trimmed text
    """
    payload = response_text.strip()
    match = FENCED_BLOCK_PATTERN.search(payload)
    if match:
        payload = match.group(1).strip()
    return payload


def _coerce_tab_id(value: Any, location: str) -> int:
    # bool is an int subclass; true/false are never tab ids
    if isinstance(value, bool):
        raise ClusteringResponseError(f"Invalid tab ID {value!r} in {location}")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    raise ClusteringResponseError(f"Invalid tab ID {value!r} in {location}")


def _describe_workspace(index: int, workspace: Any) -> str:
    name = workspace.get("name") if isinstance(workspace, dict) else None
    if isinstance(name, str) and name.strip():
        return f"workspace {index} ('{name.strip()}')"
    return f"workspace {index}"


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    items = []
    for item in value:
        if isinstance(item, bool) or not isinstance(item, (str, int, float)):
            continue
        text = str(item).strip()
        if text:
            items.append(text)
    return items


def _normalize_confidence(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return DEFAULT_CONFIDENCE
    if math.isnan(value):
        return DEFAULT_CONFIDENCE
    return min(max(float(value), 0.0), 1.0)


def _normalize_workspace(workspace: dict, tab_ids: list[int]) -> ClusterProposal:
    """Fill in defaults for every optional field of a proposed workspace."""
    name = workspace.get("name")
    summary = workspace.get("summary")
    return ClusterProposal(
        name=name.strip() if isinstance(name, str) and name.strip() else DEFAULT_WORKSPACE_NAME,
        tab_ids=tab_ids,
        summary=summary.strip() if isinstance(summary, str) else "",
        key_entities=_string_list(workspace.get("keyEntities")),
        suggested_actions=_string_list(workspace.get("suggestedActions")),
        confidence=_normalize_confidence(workspace.get("confidence")),
    )


def parse_clustering_response(
    response_text: str,
    input_tab_ids: Iterable[int],
    min_tabs_per_workspace: int = MIN_TABS_PER_WORKSPACE,
) -> ClusteringResult:
    """
    Parse and validate the raw LLM response against the input tab ids.

    Args:
        response_text: Raw text returned by the model
        input_tab_ids: Authoritative ids of the tabs that were sent
        min_tabs_per_workspace: Smallest workspace kept as a workspace

    Returns:
        ClusteringResult where every input id appears exactly once

    Raises:
        ClusteringResponseError: If the payload is unparsable or structurally
            broken (missing arrays, non-integer ids, duplicates, collisions)
    """
    input_ids = list(dict.fromkeys(input_tab_ids))
    known_ids = set(input_ids)

    payload = extract_json_payload(response_text)
    try:
        parsed = json.loads(payload)
    except json.JSONDecodeError as e:
        raise ClusteringResponseError(
            f"Invalid response: could not parse JSON ({e.msg} at line {e.lineno} column {e.colno})"
        ) from e

    if not isinstance(parsed, dict) or not isinstance(parsed.get("workspaces"), list):
        raise ClusteringResponseError("Invalid response: missing workspaces array")

    seen: set[int] = set()
    invented: list[int] = []
    proposed: list[tuple[dict, list[int]]] = []

    for index, workspace in enumerate(parsed["workspaces"]):
        label = _describe_workspace(index, workspace)
        if not isinstance(workspace, dict) or not isinstance(workspace.get("tabIds"), list):
            raise ClusteringResponseError(f"Invalid workspace: missing tabIds in {label}")

        tab_ids = []
        for raw_id in workspace["tabIds"]:
            tab_id = _coerce_tab_id(raw_id, label)
            if tab_id in seen:
                raise ClusteringResponseError(f"Duplicate tab ID: {tab_id}")
            seen.add(tab_id)
            if tab_id not in known_ids:
                invented.append(tab_id)
                continue
            tab_ids.append(tab_id)
        proposed.append((workspace, tab_ids))

    workspace_ids = set(seen)

    raw_unclustered = parsed.get("unclustered")
    if raw_unclustered is None:
        raw_unclustered = []
    if not isinstance(raw_unclustered, list):
        raise ClusteringResponseError("Invalid response: unclustered must be an array")

    unclustered: list[int] = []
    for raw_id in raw_unclustered:
        tab_id = _coerce_tab_id(raw_id, "unclustered")
        if tab_id in workspace_ids:
            raise ClusteringResponseError(
                f"Tab ID {tab_id} appears in both workspace and unclustered"
            )
        if tab_id in seen:
            raise ClusteringResponseError(f"Duplicate tab ID: {tab_id}")
        seen.add(tab_id)
        if tab_id not in known_ids:
            invented.append(tab_id)
            continue
        unclustered.append(tab_id)

    if invented:
        logger.warning(f"LLM returned unknown tab IDs, ignoring: {invented}")

    workspaces = []
    for workspace, tab_ids in proposed:
        if len(tab_ids) < min_tabs_per_workspace:
            if tab_ids:
                logger.info(
                    f"Dissolving workspace '{workspace.get('name')}' with {len(tab_ids)} tab(s); "
                    f"moving to unclustered: {tab_ids}"
                )
            unclustered.extend(tab_ids)
            continue
        workspaces.append(_normalize_workspace(workspace, tab_ids))

    missing_ids = [tab_id for tab_id in input_ids if tab_id not in seen]
    if missing_ids:
        logger.warning(f"LLM missed some tab IDs, adding to unclustered: {missing_ids}")
        unclustered.extend(missing_ids)

    return ClusteringResult(workspaces=workspaces, unclustered=unclustered)
