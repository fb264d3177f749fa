"""Unit tests for the digest workflow and CLI."""

import json
import os
import smtplib
import unittest
from unittest.mock import MagicMock, patch

from hackathon_digest import digest
from hackathon_digest.config import MissingSecretError
from hackathon_digest.models import HackathonNews
from hackathon_digest.prompts import DEFAULT_REQUEST
from hackathon_digest.services.email_service import MissingSmtpPasswordError
from hackathon_digest.services.llm import AgentResultError

ENV = {
    "OPENAI_API_KEY": "sk-test",
    "SMTP_USER": "bot@example.com",
    "SMTP_PASSWORD": "secret",
    "RECIPIENT_EMAIL": "a@x.com,b@y.com",
}


def make_news(count: int) -> HackathonNews:
    return HackathonNews.model_validate(
        {
            "items": [
                {
                    "title": f"Hack {i}",
                    "summary": f"Summary {i}.",
                    "publisher": "Devpost",
                    "url": f"https://devpost.com/{i}",
                    "category": "Hackathon (Denver)",
                    "date": "2026-11-01",
                }
                for i in range(count)
            ]
        }
    )


class TestRunWorkflow(unittest.TestCase):
    def setUp(self):
        self.search_service = MagicMock()
        self.email_service = MagicMock()

    def run_workflow(self, env):
        return digest.run_workflow(
            "find hackathons",
            env=env,
            search_service=self.search_service,
            email_service=self.email_service,
        )

    def test_sends_email_when_items_found(self):
        news = make_news(2)
        self.search_service.search.return_value = news

        result = self.run_workflow(ENV)

        config = self.search_service.search.call_args[0][1]
        self.assertEqual(self.search_service.search.call_args[0][0], "find hackathons")
        self.assertEqual(config.recipient_emails, ("a@x.com", "b@y.com"))

        self.email_service.send_email.assert_called_once()
        recipients, subject, body = self.email_service.send_email.call_args[0]
        self.assertEqual(recipients, ["a@x.com", "b@y.com"])
        self.assertIn("Hack 0, Hack 1", subject)
        self.assertIn("1. [Hackathon (Denver)] Hack 0 (2026-11-01)", body)

        self.assertEqual(result["output_parsed"], news.model_dump())
        self.assertEqual(json.loads(result["output_text"]), news.model_dump())
        self.assertEqual(
            result["email"], {"subject": subject, "body": body, "sent": True}
        )

    def test_no_items_skips_email(self):
        self.search_service.search.return_value = make_news(0)

        result = self.run_workflow(ENV)

        self.email_service.send_email.assert_not_called()
        self.assertNotIn("email", result)
        self.assertEqual(result["output_parsed"], {"items": []})

    def test_unknown_timezone_keeps_results(self):
        news = make_news(1)
        self.search_service.search.return_value = news
        env = dict(ENV, DIGEST_TIMEZONE="Mars/Olympus")

        result = self.run_workflow(env)

        self.assertEqual(result["output_parsed"]["items"], news.model_dump()["items"])
        self.assertTrue(result["email"]["sent"])

    def test_missing_smtp_user_skips_send(self):
        news = make_news(1)
        self.search_service.search.return_value = news
        env = {k: v for k, v in ENV.items() if k != "SMTP_USER"}

        result = self.run_workflow(env)

        self.email_service.send_email.assert_not_called()
        self.assertFalse(result["email"]["sent"])
        self.assertEqual(result["output_parsed"]["items"], news.model_dump()["items"])

    def test_send_failure_is_recorded(self):
        self.search_service.search.return_value = make_news(1)
        self.email_service.send_email.side_effect = smtplib.SMTPException("down")

        with self.assertLogs("hackathon_digest.digest", level="ERROR"):
            result = self.run_workflow(ENV)

        self.assertFalse(result["email"]["sent"])
        self.assertEqual(len(result["output_parsed"]["items"]), 1)

    def test_credential_error_is_recorded(self):
        self.search_service.search.return_value = make_news(1)
        self.email_service.send_email.side_effect = MissingSmtpPasswordError("no pw")

        result = self.run_workflow(ENV)

        self.assertFalse(result["email"]["sent"])

    def test_missing_api_key_fails_before_search(self):
        env = {k: v for k, v in ENV.items() if k != "OPENAI_API_KEY"}
        with patch("hackathon_digest.digest.create_search_service") as mock_create:
            with self.assertRaises(MissingSecretError):
                digest.run_workflow("find hackathons", env=env)
            mock_create.assert_not_called()

    def test_gemini_provider_requires_gemini_key(self):
        env = dict(ENV, SEARCH_PROVIDER="gemini")
        with self.assertRaises(MissingSecretError):
            self.run_workflow(env)
        self.search_service.search.assert_not_called()

    def test_agent_without_result_aborts(self):
        self.search_service.search.side_effect = AgentResultError(
            "Agent result is undefined"
        )
        with self.assertRaises(AgentResultError):
            self.run_workflow(ENV)
        self.email_service.send_email.assert_not_called()

    @patch("hackathon_digest.digest.create_search_service")
    def test_builds_search_service_from_config(self, mock_create):
        mock_create.return_value.search.return_value = make_news(0)
        digest.run_workflow("find hackathons", env=ENV)
        config, api_key = mock_create.call_args[0]
        self.assertEqual(config.search_provider, "openai")
        self.assertEqual(api_key, "sk-test")


class TestMain(unittest.TestCase):
    @patch.dict(os.environ, {"OPENAI_API_KEY": "sk-test"}, clear=True)
    @patch("hackathon_digest.digest.load_dotenv")
    @patch("hackathon_digest.digest.run_workflow")
    def test_success(self, mock_run, _mock_dotenv):
        mock_run.return_value = {"output_text": "{}", "output_parsed": {"items": []}}
        with patch("builtins.print") as mock_print:
            self.assertEqual(digest.main(["hackathons in Brno"]), 0)
        mock_run.assert_called_once_with("hackathons in Brno")
        printed = json.loads(mock_print.call_args[0][0])
        self.assertEqual(printed["output_parsed"], {"items": []})

    @patch.dict(os.environ, {}, clear=True)
    @patch("hackathon_digest.digest.load_dotenv")
    @patch("hackathon_digest.digest.run_workflow")
    def test_default_request(self, mock_run, _mock_dotenv):
        mock_run.return_value = {"output_text": "{}", "output_parsed": {"items": []}}
        with patch("builtins.print"):
            digest.main([])
        mock_run.assert_called_once_with(DEFAULT_REQUEST)

    @patch.dict(os.environ, {}, clear=True)
    @patch("hackathon_digest.digest.load_dotenv")
    @patch("hackathon_digest.digest.run_workflow")
    def test_failure_exit_code(self, mock_run, _mock_dotenv):
        mock_run.side_effect = MissingSecretError("OPENAI_API_KEY missing")
        self.assertEqual(digest.main([]), 1)


if __name__ == "__main__":
    unittest.main()
