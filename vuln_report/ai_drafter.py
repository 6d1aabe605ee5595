# vuln_report/ai_drafter.py
import json
import logging
import os
from dataclasses import replace
from typing import Optional

from openai import OpenAI, APIError

from .models import Report

logger = logging.getLogger(__name__)

DEFAULT_MODEL = os.environ.get("VULNREPORT_AI_MODEL", "gpt-4o-mini")
API_KEY_PLACEHOLDER = "YOUR_OPENAI_API_KEY_HERE"

# Limits on what a drafted summary may look like.
MAX_SUMMARY_LENGTH = 100

PROMPT_TEMPLATE = """You are helping write an entry for the Go vulnerability database.
Here is the information known about the vulnerability (in JSON format):

{report_json}

Reply with a JSON object with two string fields:
"summary": a one-line summary (at most {max_summary} characters, no trailing period) of the form "<problem> in <package path>",
"description": a short plain-text description for Go developers of the vulnerability and its impact. Do not mention version numbers.
"""


def get_api_key(config: dict) -> Optional[str]:
    """
    Retrieves the OpenAI API key.
    Prioritizes environment variable OPENAI_API_KEY, then config file.
    """
    api_key = os.environ.get("OPENAI_API_KEY")
    if api_key:
        logger.info("Using OpenAI API key from OPENAI_API_KEY environment variable.")
        return api_key

    api_key = ((config or {}).get("api_keys") or {}).get("openai")
    if api_key and api_key != API_KEY_PLACEHOLDER:
        logger.info("Using OpenAI API key from config file.")
        return api_key
    if api_key == API_KEY_PLACEHOLDER:
        logger.warning("Found placeholder OpenAI API key in config file.")

    logger.warning("OpenAI API key not found in environment variables or config file. AI drafting will be skipped.")
    return None


def _prompt_for(r: Report) -> str:
    info = {
        "aliases": r.aliases(),
        "modules": [m.module for m in r.modules],
        "packages": [p.package for m in r.modules for p in m.packages],
        "title": r.summary,
        "description": r.description[:2000],
        "references": [ref.url for ref in r.references][:10],
    }
    return PROMPT_TEMPLATE.format(report_json=json.dumps(info, indent=2), max_summary=MAX_SUMMARY_LENGTH)


def parse_draft(content: str) -> Optional[tuple[str, str]]:
    """Extracts (summary, description) from the model's reply, or None if it is unusable."""
    start, end = content.find('{'), content.rfind('}')
    if start < 0 or end < start:
        return None
    try:
        data = json.loads(content[start:end + 1])
    except json.JSONDecodeError:
        return None
    summary = str(data.get("summary", "")).strip().rstrip('.')
    description = str(data.get("description", "")).strip()
    if not summary or not description:
        return None
    return summary, description


def draft_summary_and_description(r: Report, api_key: str, model: str = DEFAULT_MODEL,
                                  base_url: Optional[str] = None, client=None) -> Optional[Report]:
    """
    Asks the model to draft a summary and description for r.
    Returns an updated copy of the report, or None if drafting failed.
    """
    if not api_key and client is None:
        logger.warning("AI drafting skipped: API key not available.")
        return None

    logger.info(f"Sending request to OpenAI API ({model}) for a draft summary and description...")
    try:
        client = client or OpenAI(api_key=api_key, base_url=base_url)
        chat_completion = client.chat.completions.create(
            messages=[
                {"role": "system", "content": "You are a careful security technical writer."},
                {"role": "user", "content": _prompt_for(r)},
            ],
            model=model,
            temperature=0.2,
        )
    except APIError as e:
        logger.error(f"OpenAI API returned an API Error: {e}")
        return None

    if not chat_completion.choices or not chat_completion.choices[0].message:
        logger.warning("OpenAI response structure unexpected or empty choice.")
        return None
    draft = parse_draft(chat_completion.choices[0].message.content or "")
    if draft is None:
        logger.warning("Could not parse a summary and description from the AI response.")
        return None
    summary, description = draft
    logger.info("Received draft summary and description.")
    return replace(r, summary=summary[:MAX_SUMMARY_LENGTH], description=description)
