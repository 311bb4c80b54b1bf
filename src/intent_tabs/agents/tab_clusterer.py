"""
Tab clustering service backed by a single LLM call.

This module builds the clustering prompt from enriched tab records, sends it
to the model through OpenRouter's OpenAI-compatible API, and hands the raw
answer to the response parser for validation and reconciliation.
"""

import json
from typing import Any, Optional

from openai import AsyncOpenAI

from intent_tabs.agents.credentials import CredentialStore
from intent_tabs.agents.errors import (
    ClusteringError,
    ClusteringResponseError,
    MissingCredentialError,
    classify_error,
)
from intent_tabs.agents.models import ClusteringResult, TabRecord
from intent_tabs.agents.response_parser import parse_clustering_response
from intent_tabs.config import get_logger, get_settings

logger = get_logger(__name__)

SYSTEM_PROMPT = """You are an intelligent tab organizer. Analyze browser tabs and group them by user INTENT, not just domain.

Guidelines:
- Group by task/project, not website
- Minimum 2 tabs per workspace (single tabs go to unclustered)
- Use clear, human-readable workspace names (e.g., "Berlin Trip Planning", "Q4 Strategy Work")
- Extract key entities: dates, prices, names, deadlines
- Suggest 1-2 actionable next steps per workspace
- Confidence score 0-1 based on how well tabs relate

Return ONLY valid JSON matching this exact schema:
{
  "workspaces": [
    {
      "name": "Workspace Name",
      "tabIds": [1, 2, 3],
      "summary": "1-2 sentence description of what user is trying to accomplish",
      "keyEntities": ["Jan 15-22", "$450/night", "Berlin"],
      "suggestedActions": ["Book hotel", "Check visa requirements"],
      "confidence": 0.85
    }
  ],
  "unclustered": [4, 5]
}

Important:
- tabIds must be the exact numeric IDs from the input
- Every input tab ID must appear exactly once (either in a workspace or unclustered)
- Do not invent or hallucinate tab IDs"""


def format_tabs_for_prompt(tabs: list[TabRecord]) -> str:
    """
    Serialize tabs into the compact JSON the model sees.

    Only id, title, url, domain and one best-effort description are sent.
    """
    simplified = []
    for tab in tabs:
        entry: dict[str, Any] = {
            "id": tab.id,
            "title": tab.title,
            "url": tab.url,
            "domain": tab.domain,
        }
        description = tab.best_description()
        if description:
            entry["description"] = description
        simplified.append(entry)

    return json.dumps(simplified, indent=2, ensure_ascii=False)


def build_user_prompt(tabs: list[TabRecord]) -> str:
    """Build the user message for a clustering request."""
    return f"""Analyze these browser tabs and group by user intent:

{format_tabs_for_prompt(tabs)}

Group these {len(tabs)} tabs into meaningful workspaces based on what the user is trying to accomplish. Remember: return ONLY valid JSON."""


def extract_message_text(response: Any) -> str:
    """
    Pull the text out of the first choice of a chat completion.

    Content may be a string or a list of text-bearing segments, which are
    concatenated.

    Raises:
        ClusteringResponseError: If the response carries no content
    """
    choices = getattr(response, "choices", None) or []
    message = getattr(choices[0], "message", None) if choices else None
    content = getattr(message, "content", None) if message else None

    if not content:
        raise ClusteringResponseError("Empty response from LLM")

    if isinstance(content, str):
        return content

    if isinstance(content, list):
        parts = []
        for segment in content:
            if isinstance(segment, dict):
                parts.append(segment.get("text") or "")
            else:
                parts.append(getattr(segment, "text", None) or "")
        text = "".join(parts)
        if not text:
            raise ClusteringResponseError("Empty response from LLM")
        return text

    return str(content)


class TabClusterer:
    """
    Groups enriched tabs into workspaces with one LLM request.

    Attributes:
        credential_store: Where the provider API key is read from
        model: Model identifier sent to the provider
        temperature: Sampling temperature (kept low for terse, well-formed JSON)
        max_tokens: Output length ceiling
        base_url: OpenAI-compatible endpoint
    """

    def __init__(
        self,
        credential_store: CredentialStore,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        base_url: Optional[str] = None,
    ):
        """
        Initialize the TabClusterer.

        Args:
            credential_store: Credential store holding the API key
            model: Model override. If not provided, loaded from config.
            temperature: Temperature override. Default from config: 0.3
            max_tokens: Output ceiling override. Default from config: 2048
            base_url: Endpoint override. Default from config: OpenRouter
        """
        settings = get_settings()
        self.credential_store = credential_store
        self.model = model or settings.llm_model
        self.temperature = temperature if temperature is not None else settings.llm_temperature
        self.max_tokens = max_tokens or settings.llm_max_tokens
        self.base_url = base_url or settings.openrouter_base_url

    def _get_api_key(self) -> str:
        if not self.credential_store.has_api_key():
            raise MissingCredentialError()
        return self.credential_store.get_api_key().strip()

    async def request_clustering(self, tabs: list[TabRecord], api_key: str) -> str:
        """
        Send the clustering request and return the model's raw text.

        Args:
            tabs: Tabs to cluster
            api_key: Provider API key

        Returns:
            Raw response text
        """
        # One request per run, no SDK-level retries
        client = AsyncOpenAI(api_key=api_key, base_url=self.base_url, max_retries=0)
        try:
            response = await client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": build_user_prompt(tabs)},
                ],
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        finally:
            await client.close()

        return extract_message_text(response)

    async def cluster_tabs(self, tabs: list[TabRecord]) -> ClusteringResult:
        """
        Cluster tabs into workspaces.

        Zero or one tab never reaches the model. Every other failure is
        raised as a classified ClusteringError.

        Args:
            tabs: Enriched tabs (ids unique)

        Returns:
            ClusteringResult accounting for every tab id exactly once

        Raises:
            ClusteringError: On missing/invalid key, rate limiting, malformed
                model output, or any other provider failure
        """
        if not tabs:
            return ClusteringResult()

        if len(tabs) == 1:
            return ClusteringResult(unclustered=[tabs[0].id])

        try:
            api_key = self._get_api_key()
        except MissingCredentialError as e:
            classified = classify_error(e)
            raise ClusteringError(classified.kind, classified.message) from e

        try:
            content = await self.request_clustering(tabs, api_key)
            result = parse_clustering_response(content, [tab.id for tab in tabs])
        except Exception as e:
            classified = classify_error(e)
            logger.error(
                f"LLM clustering error ({classified.kind.value}): {e}",
                exc_info=True,
            )
            raise ClusteringError(classified.kind, classified.message) from e

        logger.info(
            f"Clustered {len(tabs)} tabs into {len(result.workspaces)} workspaces "
            f"({len(result.unclustered)} unclustered)"
        )
        return result
