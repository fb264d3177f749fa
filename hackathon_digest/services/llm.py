"""
LLM Service Module.

This module provides the search services that ask an external AI agent with
web search to find hackathons and programming challenges. The default backend
is an OpenAI agent with the hosted web search tool and a structured output
type; GeminiSearchService does the same with Google Search grounding.

Both services make a single attempt and raise AgentResultError when the agent
does not produce a usable result.
"""

import json
import logging
from typing import Any, List, Optional, Union

from agents import (
    Agent,
    ModelSettings,
    Runner,
    WebSearchTool,
    set_default_openai_key,
    trace,
)
from google import genai
from google.genai import types
from openai.types.responses.web_search_tool import UserLocation
from pydantic import ValidationError

from hackathon_digest.config import DigestConfig
from hackathon_digest.models import HackathonNews
from hackathon_digest.prompts import build_instructions, build_user_request

logger = logging.getLogger(__name__)

AGENT_NAME = "Hackathon News Search Agent"
TRACE_NAME = "Hackathon news agent"
WORKFLOW_ID = "wf_hackathon_news_digest"
MAX_OUTPUT_TOKENS = 16384  # room for 10+ items with long summaries


class AgentResultError(RuntimeError):
    """Raised when the search agent returns no output or an invalid one."""


class AgentSearchService:
    """
    Search service backed by the OpenAI Agents SDK.

    A fresh agent is built per run because its instructions depend on the
    digest configuration.
    """

    def __init__(self, api_key: str, model: str):
        self.api_key = api_key
        self.model = model
        set_default_openai_key(api_key)

    def build_agent(self, config: DigestConfig) -> Agent:
        """Creates the search agent for the given configuration."""
        return Agent(
            name=AGENT_NAME,
            instructions=build_instructions(config),
            model=self.model,
            tools=[
                WebSearchTool(
                    search_context_size="medium",
                    user_location=UserLocation(type="approximate"),
                )
            ],
            output_type=HackathonNews,
            model_settings=ModelSettings(
                temperature=1,
                top_p=1,
                max_tokens=MAX_OUTPUT_TOKENS,
                store=True,
            ),
        )

    def search(self, request_text: str, config: DigestConfig) -> HackathonNews:
        """Runs the agent once and returns its validated output."""
        agent = self.build_agent(config)
        conversation: List[Any] = [
            {"role": "user", "content": request_text},
            {"role": "user", "content": build_user_request(config)},
        ]

        logger.info("Asking %s (%s) to search...", AGENT_NAME, self.model)
        with trace(
            TRACE_NAME,
            metadata={"__trace_source__": "agent-builder", "workflow_id": WORKFLOW_ID},
        ):
            result = Runner.run_sync(agent, conversation)

        news = result.final_output
        if not news:
            raise AgentResultError("Agent result is undefined")
        if not isinstance(news, HackathonNews):
            news = _validate_news(news)

        logger.info("Agent returned %d items.", len(news.items))
        return news


class GeminiSearchService:
    """
    Search service backed by Google Gemini with Google Search grounding.

    Grounded requests cannot use a response schema, so the JSON text is parsed
    and validated against HackathonNews here.
    """

    def __init__(self, api_key: str, model: str):
        self.api_key = api_key
        self.model = model
        self.client = genai.Client(api_key=api_key)

    def _parse_news_json(self, text: str) -> Any:
        """Decodes the items payload, tolerating a ```json fenced block."""
        payload = text.strip()
        if payload.startswith("```"):
            _, _, fenced = payload.partition("\n")
            payload = fenced.rsplit("```", 1)[0]
        try:
            return json.loads(payload)
        except json.JSONDecodeError as e:
            raise AgentResultError(f"Gemini returned malformed items JSON: {e}") from e

    def search(self, request_text: str, config: DigestConfig) -> HackathonNews:
        """Asks Gemini once and returns the validated output."""
        logger.info("Asking Gemini (%s) to search...", self.model)
        response = self.client.models.generate_content(
            model=self.model,
            contents=[request_text, build_user_request(config)],
            config=types.GenerateContentConfig(
                system_instruction=build_instructions(config),
                tools=[types.Tool(google_search=types.GoogleSearch())],
                temperature=1.0,
                top_p=1.0,
                max_output_tokens=MAX_OUTPUT_TOKENS,
            ),
        )

        response_text = response.text if response.text else ""
        if not response_text.strip():
            raise AgentResultError("Agent result is undefined")

        news = _validate_news(self._parse_news_json(response_text))
        logger.info("Gemini returned %d items.", len(news.items))
        return news


SearchService = Union[AgentSearchService, GeminiSearchService]


def _validate_news(payload: Any) -> HackathonNews:
    try:
        return HackathonNews.model_validate(payload)
    except ValidationError as e:
        raise AgentResultError(f"Agent result does not match schema: {e}") from e


def create_search_service(
    config: DigestConfig, api_key: str, model: Optional[str] = None
) -> SearchService:
    """Returns the search service for the configured provider."""
    if config.search_provider == "gemini":
        return GeminiSearchService(api_key, model or config.gemini_model)
    return AgentSearchService(api_key, model or config.openai_model)
