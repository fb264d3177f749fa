"""
Data models for the Hackathon Digest application.
"""

from typing import List, TypedDict

from pydantic import BaseModel


class DigestItem(BaseModel):
    """A hackathon or programming challenge returned by the search agent."""

    title: str
    summary: str
    publisher: str
    url: str
    category: str  # e.g. "Hackathon (Denver)", "Programming Challenge (Swift)"
    date: str  # Event date, registration deadline or publication date


class HackathonNews(BaseModel):
    """Structured output schema of the search agent."""

    items: List[DigestItem]


class EmailContent(TypedDict):
    """Type definition for a formatted digest email."""

    subject: str
    body: str


class EmailOutcome(EmailContent):
    """Formatted email plus its delivery status."""

    sent: bool


class _DigestResultBase(TypedDict):
    output_text: str
    output_parsed: dict


class DigestResult(_DigestResultBase, total=False):
    """Value returned by a digest run; 'email' is set only when items were found."""

    email: EmailOutcome
