"""
Gemini-backed mail writing.

Uses LangChain + Gemini for two features:
- generate_mail: free-form prompt → subject and body
- smart_compose: subject (+ optional context) → subject and body as JSON
"""

import json
import re
from typing import Optional, Dict

from langchain_core.output_parsers import StrOutputParser
from langchain_core.prompts import ChatPromptTemplate
from langchain_google_genai import ChatGoogleGenerativeAI

from xmail import config
from xmail.logging_config import get_logger
from xmail.services.text_cleaner import clean_model_text, strip_code_fences

logger = get_logger(__name__)

DEFAULT_SUBJECT = "AI Generated Mail"
MAX_PROMPT_CHARS = 4000


class MailGenerationError(Exception):
    """Raised when the model cannot produce a mail."""


GENERATE_PROMPT = ChatPromptTemplate.from_messages([
    ("system", """You write professional emails.
Return EXACTLY in this format:
Subject: <subject>
Body:
<email body>"""),
    ("human", "Prompt: {prompt}")
])

SMART_COMPOSE_PROMPT = ChatPromptTemplate.from_messages([
    ("system", """You write professional email bodies.
Respond in JSON format:
{{"subject": "Final Subject", "body": "Generated Email Body"}}"""),
    ("human", """Subject: {subject}
Context: {context}""")
])


def _get_llm(api_key: str) -> ChatGoogleGenerativeAI:
    """Get configured Gemini LLM instance."""
    return ChatGoogleGenerativeAI(
        model=config.GEMINI_MODEL,
        google_api_key=api_key,
        temperature=0.7,
        max_output_tokens=1024,
    )


def _complete(prompt: ChatPromptTemplate, variables: Dict[str, str], api_key: Optional[str] = None) -> str:
    """Run Prompt -> LLM -> text and return the raw reply."""
    key = api_key or config.GOOGLE_API_KEY
    if not key:
        raise MailGenerationError("GOOGLE_API_KEY not configured")

    chain = prompt | _get_llm(key) | StrOutputParser()
    try:
        text = chain.invoke(variables)
    except Exception as e:
        logger.error("Gemini call failed: %s", e)
        raise MailGenerationError(f"Gemini error: {e}") from e

    if not text or not text.strip():
        raise MailGenerationError("Empty AI response")
    return text


def parse_generated_mail(text: str) -> Dict[str, str]:
    """
    Split a "Subject: ... Body: ..." reply.
    
    Missing markers fall back to the default subject and the full text
    as body.
    """
    text = strip_code_fences(text)
    subject = DEFAULT_SUBJECT
    body = text

    subject_match = re.search(r'Subject:\s*(.*)', text, re.IGNORECASE)
    body_match = re.search(r'Body:\s*([\s\S]*)', text, re.IGNORECASE)

    if subject_match and subject_match.group(1).strip():
        subject = subject_match.group(1).strip()
    if body_match:
        body = body_match.group(1).strip()

    return {"subject": subject, "body": clean_model_text(body)}


def generate_mail(prompt: str, api_key: Optional[str] = None) -> Dict[str, str]:
    """
    Generate a professional mail from a free-form prompt.
    
    Args:
        prompt: What the mail should be about
        api_key: Optional Gemini API key
        
    Returns:
        {"subject": ..., "body": ...}
        
    Raises:
        MailGenerationError: Provider missing, failing, or returning nothing
    """
    logger.info("Gemini generate called")
    text = _complete(GENERATE_PROMPT, {"prompt": prompt.strip()[:MAX_PROMPT_CHARS]}, api_key)
    return parse_generated_mail(text)


def parse_smart_compose(text: str, subject: str) -> Dict[str, str]:
    """Read the JSON reply; anything unparsable becomes the body."""
    cleaned = strip_code_fences(text)
    try:
        data = json.loads(cleaned)
    except ValueError:
        return {"subject": subject, "body": clean_model_text(cleaned)}

    if not isinstance(data, dict):
        return {"subject": subject, "body": clean_model_text(cleaned)}

    return {
        "subject": str(data.get("subject") or subject).strip(),
        "body": clean_model_text(str(data.get("body") or "")),
    }


def smart_compose(subject: str, context: Optional[str] = None, api_key: Optional[str] = None) -> Dict[str, str]:
    """Suggest a body (and a polished subject) for the compose view."""
    text = _complete(
        SMART_COMPOSE_PROMPT,
        {
            "subject": subject.strip(),
            "context": (context or "No extra context provided")[:MAX_PROMPT_CHARS],
        },
        api_key,
    )
    return parse_smart_compose(text, subject.strip())
