"""
Body parsing shared by endpoints that accept either JSON or multipart.

The compose view posts multipart (text fields plus "attachments" files),
while the voice assistant posts plain JSON to the same endpoints.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List

from fastapi import HTTPException, Request
from starlette.datastructures import UploadFile

FORM_CONTENT_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")


@dataclass
class MailForm:
    fields: Dict[str, Any] = field(default_factory=dict)
    files: List[UploadFile] = field(default_factory=list)

    def text(self, name: str) -> str:
        """Field value as a stripped string ("" when missing)."""
        value = self.fields.get(name)
        if value is None:
            return ""
        return str(value).strip()


async def read_mail_form(request: Request) -> MailForm:
    """FastAPI dependency: parse the request body into text fields and files."""
    content_type = request.headers.get("content-type", "")

    if content_type.startswith(FORM_CONTENT_TYPES):
        form = await request.form()
        fields = {
            key: value for key, value in form.multi_items()
            if not isinstance(value, UploadFile)
        }
        files = [
            value for value in form.getlist("attachments")
            if isinstance(value, UploadFile) and value.filename
        ]
        return MailForm(fields=fields, files=files)

    body = await request.body()
    if not body:
        return MailForm()

    try:
        data = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="Malformed JSON body")

    if not isinstance(data, dict):
        raise HTTPException(status_code=400, detail="JSON body must be an object")
    return MailForm(fields=data)
