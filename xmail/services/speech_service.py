"""
Speech-to-text through the AssemblyAI HTTP API.

Flow:
1. POST the audio bytes to /upload -> upload_url
2. POST /transcript with the upload_url -> transcript id
3. Poll GET /transcript/{id} with a fixed sleep until completed or failed
"""

import time
from typing import Optional

import requests

from xmail import config
from xmail.logging_config import get_logger

logger = get_logger(__name__)

REQUEST_TIMEOUT = 30
FAILED_STATUSES = ("error", "failed")


class SpeechToTextError(Exception):
    """Raised when a transcript cannot be produced."""


def _headers(api_key: str) -> dict:
    return {"authorization": api_key}


def _upload_audio(session: requests.Session, audio_path: str, api_key: str) -> str:
    with open(audio_path, "rb") as f:
        response = session.post(
            f"{config.ASSEMBLYAI_BASE_URL}/upload",
            headers=_headers(api_key),
            data=f,
            timeout=REQUEST_TIMEOUT,
        )
    response.raise_for_status()
    return response.json()["upload_url"]


def _start_transcript(session: requests.Session, audio_url: str, api_key: str) -> str:
    response = session.post(
        f"{config.ASSEMBLYAI_BASE_URL}/transcript",
        headers=_headers(api_key),
        json={"audio_url": audio_url},
        timeout=REQUEST_TIMEOUT,
    )
    response.raise_for_status()
    return response.json()["id"]


def _poll_transcript(session: requests.Session, transcript_id: str, api_key: str) -> str:
    for _ in range(config.STT_MAX_POLLS):
        response = session.get(
            f"{config.ASSEMBLYAI_BASE_URL}/transcript/{transcript_id}",
            headers=_headers(api_key),
            timeout=REQUEST_TIMEOUT,
        )
        response.raise_for_status()
        data = response.json()

        status = data.get("status")
        if status == "completed":
            return data.get("text") or ""
        if status in FAILED_STATUSES:
            raise SpeechToTextError(f"Transcription failed: {data.get('error')}")

        time.sleep(config.STT_POLL_INTERVAL)

    raise SpeechToTextError(f"Transcript {transcript_id} not ready after {config.STT_MAX_POLLS} polls")


def transcribe(audio_path: str, api_key: Optional[str] = None) -> str:
    """
    Transcribe a local audio file.
    
    Args:
        audio_path: Path to the stored upload
        api_key: Optional AssemblyAI key (defaults to ASSEMBLYAI_API_KEY)
        
    Returns:
        The transcript text
        
    Raises:
        SpeechToTextError: Missing key, HTTP failure, failed job, or timeout
    """
    key = api_key or config.ASSEMBLYAI_API_KEY
    if not key:
        raise SpeechToTextError("ASSEMBLYAI_API_KEY not configured")

    with requests.Session() as session:
        try:
            audio_url = _upload_audio(session, audio_path, key)
            transcript_id = _start_transcript(session, audio_url, key)
            logger.info("Transcript %s started", transcript_id)
            return _poll_transcript(session, transcript_id, key)
        except requests.RequestException as e:
            logger.error("STT request failed: %s", e)
            raise SpeechToTextError(f"Speech-to-text request failed: {e}") from e
