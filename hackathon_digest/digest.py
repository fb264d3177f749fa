"""
Hackathon Digest Generator
This script asks an AI agent with web search for hackathons and programming
challenges, formats the results into an email, and sends it via SMTP.
"""

import argparse
import json
import logging
import os
import sys
from typing import List, Mapping, Optional

from dotenv import load_dotenv

from hackathon_digest.config import (
    API_KEY_VARS,
    DigestConfig,
    load_config,
    load_smtp_settings,
    require_api_key,
)
from hackathon_digest.models import DigestResult
from hackathon_digest.prompts import DEFAULT_REQUEST
from hackathon_digest.services.email_service import EmailService, format_digest_email
from hackathon_digest.services.llm import SearchService, create_search_service

logger = logging.getLogger(__name__)


def _log_config(config: DigestConfig) -> None:
    logger.info(
        "Workflow state: language=%s locations=%s challenge_focus=%s "
        "recency_hours=%d max_items=%d recipients=%s provider=%s",
        config.language,
        list(config.locations),
        list(config.challenge_focus),
        config.recency_hours,
        config.max_items,
        list(config.recipient_emails),
        config.search_provider,
    )


def run_workflow(
    input_text: str,
    env: Optional[Mapping[str, str]] = None,
    search_service: Optional[SearchService] = None,
    email_service: Optional[EmailService] = None,
) -> DigestResult:
    """
    Runs one digest: search, format, send.

    A missing API key or an empty agent result aborts the run. Email failures
    are logged and reported as sent=False; the parsed items are returned
    either way.
    """
    config = load_config(env)
    api_key = require_api_key(config.search_provider, env)
    _log_config(config)

    if search_service is None:
        search_service = create_search_service(config, api_key)

    news = search_service.search(input_text, config)
    output_parsed = news.model_dump()
    result = DigestResult(
        output_text=news.model_dump_json(),
        output_parsed=output_parsed,
    )

    if not news.items:
        logger.info("No hackathons or challenges found to send.")
        return result

    content = format_digest_email(
        news.items, config.language, timezone=config.timezone
    )
    recipients = list(config.recipient_emails)
    smtp_settings = load_smtp_settings(env)
    if email_service is None:
        email_service = EmailService(smtp_settings)

    email_sent = False
    try:
        if not smtp_settings.user:
            logger.warning(
                "SMTP_USER not set. Skipping email send. "
                "Set the SMTP secrets to enable email."
            )
        else:
            email_service.send_email(recipients, content["subject"], content["body"])
            email_sent = True
    except Exception as e:  # pylint: disable=broad-exception-caught
        # The digest is still returned when delivery fails.
        logger.error("Failed to send email: %s", e)

    result["email"] = {
        "subject": content["subject"],
        "body": content["body"],
        "sent": email_sent,
    }
    return result


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Search for hackathons and programming challenges and email a digest."
    )
    parser.add_argument(
        "request",
        nargs="?",
        default=DEFAULT_REQUEST,
        help="Natural-language request for the search agent.",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main execution entry point."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    load_dotenv()
    args = parse_args(argv)

    try:
        config = load_config()
        logger.info("Running workflow with input: %r", args.request)
        logger.info(
            "Environment check: has_api_key=%s has_smtp_user=%s recipient_count=%d",
            bool(os.environ.get(API_KEY_VARS[config.search_provider])),
            bool(os.environ.get("SMTP_USER")),
            len(config.recipient_emails),
        )
        result = run_workflow(args.request)
    except Exception:  # pylint: disable=broad-exception-caught
        logger.exception("Error running workflow")
        return 1

    print(json.dumps(result, indent=2, ensure_ascii=False))
    logger.info("Workflow completed successfully.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
