"""
Prompt templates for the hackathon search agent.

The instructions and the structured user request are rendered from a
DigestConfig. Both texts are the input contract of the external agent:
locations and topics are embedded verbatim and the output schema rules are
spelled out explicitly.
"""

from hackathon_digest.config import DigestConfig

MIN_ITEMS = 10
SUMMARY_MIN_SENTENCES = 5
SUMMARY_MAX_SENTENCES = 10

DEFAULT_REQUEST = (
    "Find hackathons in Denver, Czech Republic, and near me; plus programming "
    "challenges (Swift, React, web) I can sign up for."
)

_SOURCES_RULE = (
    "Return only items that come from the search results "
    "(URLs must not be made up).\n"
)

_INSTRUCTIONS = """You are an agent for finding HACKATHONS and PROGRAMMING CHALLENGES the user can sign up for.
You must use the web search tool. Do not respond from memory. {sources_rule}
LOCATIONS to search (include results from all of these):
{locations}
- For "near me" use the approximate user location from the search context when available.

PROGRAMMING CHALLENGES to include:
{challenge_focus}
Examples: Apple Swift Student Challenge, WWDC Swift challenges, React/JavaScript coding competitions, web development hackathons and challenges, coding contests the user can register for.

Goal: Find hackathons and programming challenges from the last {recency_hours} hours (or with upcoming deadlines in that window). Prefer events that are open for registration or have an upcoming deadline.

Quality rules:
- Each item must have a URL, publisher, and date (event date, registration deadline, or publication date).
- Use category to indicate type and location, e.g. "Hackathon (Denver)", "Hackathon (Czech Republic)", "Programming Challenge (Swift)", "Hackathon (Near me)".
- Prefer: Devpost, official hackathon sites, Apple/Google developer challenges, major coding competition platforms, and event listings for the locations above.
- Summary: {min_sentences} to {max_sentences} sentences describing the hackathon or challenge in detail (what it is, who it's for, dates/deadlines, prizes or benefits, how to sign up); mention location or "online" when relevant.
- Date: YYYY-MM-DD or relative (e.g. "deadline March 15, 2025").

Find at least {min_items} items when possible (across all locations and challenge types); return up to {max_items} items. If you don't find anything relevant for a location or category, still return what you find for others. Output language: {language} (cs = Czech, en = English).
The output must be exactly one valid JSON object matching the schema {{"items": [{{"title", "summary", "publisher", "url", "category", "date"}}]}} where every value is a string (no markdown, no extra text). Inside JSON strings do not use raw newlines; use spaces or \\n. Ensure every string is properly closed so the JSON is valid."""

_USER_REQUEST = """User request: {{
  Locations: {locations}
  Programming challenges focus: {challenge_focus}
  Time window: last {recency_hours} hours (weekly digest)
  Find hackathons in these locations and programming challenges the user can sign up for. Return at least {min_items} items when possible (up to {max_items}). Return structured JSON with category indicating type and location (e.g. "Hackathon (Denver)", "Programming Challenge (Swift)"). For each item write a summary of {min_sentences} to {max_sentences} sentences: describe the hackathon/challenge in detail (what it is, who it's for, dates/deadlines, prizes or benefits, how to sign up). Include event or deadline date for each item.
}}"""


def min_items(config: DigestConfig) -> int:
    """Lower bound on requested items; never above the configured maximum."""
    return min(MIN_ITEMS, config.max_items)


def build_instructions(config: DigestConfig) -> str:
    """Returns the system instructions for the search agent."""
    return _INSTRUCTIONS.format(
        sources_rule=_SOURCES_RULE if config.must_include_sources else "\n",
        locations="\n".join(config.locations),
        challenge_focus="\n".join(config.challenge_focus),
        recency_hours=config.recency_hours,
        min_sentences=SUMMARY_MIN_SENTENCES,
        max_sentences=SUMMARY_MAX_SENTENCES,
        min_items=min_items(config),
        max_items=config.max_items,
        language=config.language,
    )


def build_user_request(config: DigestConfig) -> str:
    """Returns the structured request message sent after the user's own text."""
    return _USER_REQUEST.format(
        locations="; ".join(config.locations),
        challenge_focus="; ".join(config.challenge_focus),
        recency_hours=config.recency_hours,
        min_items=min_items(config),
        max_items=config.max_items,
        min_sentences=SUMMARY_MIN_SENTENCES,
        max_sentences=SUMMARY_MAX_SENTENCES,
    )
