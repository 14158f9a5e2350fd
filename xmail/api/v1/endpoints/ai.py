"""
AI endpoints for the compose view and the voice assistant.

- POST /ai/stt: audio upload -> transcript (AssemblyAI)
- POST /ai/generate: prompt -> subject and body (Gemini)
- POST /ai/command: transcript -> assistant intent
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from pydantic import BaseModel

from xmail.api.deps import get_current_user
from xmail.logging_config import get_logger
from xmail.models.user import User
from xmail.services import attachment_service
from xmail.services.gemini_composer import MailGenerationError, generate_mail
from xmail.services.speech_service import SpeechToTextError, transcribe
from xmail.services.voice_commands import parse_command

logger = get_logger(__name__)

router = APIRouter(prefix="/ai", tags=["AI"])


class GenerateRequest(BaseModel):
    prompt: Optional[str] = None


class GenerateResponse(BaseModel):
    success: bool = True
    subject: str
    body: str


class CommandRequest(BaseModel):
    text: Optional[str] = None


class CommandResponse(BaseModel):
    """Interpreted assistant utterance."""
    success: bool = True
    intent: str
    recipient: Optional[str] = None
    folder: Optional[str] = None
    action: Optional[str] = None
    text: str = ""


@router.post("/stt")
def speech_to_text(audio: UploadFile = File(None), user: User = Depends(get_current_user)):
    """
    Transcribe an audio recording.

    **Returns:**
    - 200: Transcript text
    - 400: No file, or not an audio file
    - 413: Larger than 15MB
    - 502: Transcription provider failed
    """
    try:
        public_path = attachment_service.save_audio(audio)
    except attachment_service.UploadRejected as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))

    try:
        text = transcribe(attachment_service.resolve_public_path(public_path))
    except SpeechToTextError as e:
        logger.error("STT failed for %s: %s", user.user_id, e)
        raise HTTPException(status_code=502, detail="Speech-to-text failed")
    finally:
        attachment_service.delete_public_file(public_path)

    return {"success": True, "text": text}


@router.post("/generate", response_model=GenerateResponse)
def generate(req: GenerateRequest, user: User = Depends(get_current_user)):
    if not req.prompt or not req.prompt.strip():
        raise HTTPException(status_code=400, detail="Prompt is required")

    try:
        mail = generate_mail(req.prompt)
    except MailGenerationError as e:
        logger.error("AI generate failed for %s: %s", user.user_id, e)
        raise HTTPException(status_code=502, detail="Mail generation failed")

    return GenerateResponse(subject=mail["subject"], body=mail["body"])


@router.post("/command", response_model=CommandResponse)
def command(req: CommandRequest, user: User = Depends(get_current_user)):
    """
    Interpret what the user said to the assistant.

    **Example:**
    ```
    {"text": "send mail to bob"}
    -> {"intent": "compose", "recipient": "bob@xmail.com", ...}
    ```
    """
    if not req.text or not req.text.strip():
        raise HTTPException(status_code=400, detail="Text is required")

    return CommandResponse(**parse_command(req.text))
