from __future__ import annotations
import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import requests

DEFAULT_URL = "http://localhost:8080"
DEFAULT_TIMEOUT_S = 30.0

MISSING_IMAGES = "Please upload both before and after images"
MISSING_INSTRUCTIONS = "Please enter verification instructions"
SLOTS = ("before", "after")


class RequestFailed(Exception):
    pass


@dataclass
class ImageSelection:
    path: Path
    filename: str
    content_type: str
    preview_url: Optional[str] = None

    @classmethod
    def from_path(cls, path) -> "ImageSelection":
        p = Path(path)
        ctype = mimetypes.guess_type(p.name)[0] or "application/octet-stream"
        return cls(path=p, filename=p.name, content_type=ctype, preview_url=p.resolve().as_uri())

    def revoke_preview(self) -> None:
        self.preview_url = None


class VerifyClient:
    """Posts one verification request to the relay."""

    def __init__(self, base_url: str = DEFAULT_URL, timeout: float = DEFAULT_TIMEOUT_S,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def verify(self, before: ImageSelection, after: ImageSelection, instructions: str) -> str:
        try:
            with before.path.open("rb") as b, after.path.open("rb") as a:
                files = {
                    "beforeImage": (before.filename, b, before.content_type),
                    "afterImage": (after.filename, a, after.content_type),
                }
                r = self.session.post(
                    f"{self.base_url}/api/verify",
                    files=files,
                    data={"verificationInstructions": instructions},
                    timeout=self.timeout,
                )
        # a selected image may have been moved or deleted since it was picked
        except (OSError, requests.RequestException) as e:
            raise RequestFailed(str(e)) from e
        try:
            body = r.json()
        except ValueError:
            body = None
        if r.ok and isinstance(body, dict) and "analysis" in body:
            return body["analysis"]
        if isinstance(body, dict) and body.get("error"):
            raise RequestFailed(body["error"])
        raise RequestFailed(f"Request failed with status code {r.status_code}")


@dataclass
class VerificationForm:
    before: Optional[ImageSelection] = None
    after: Optional[ImageSelection] = None
    instructions: str = ""
    loading: bool = False
    result: Optional[str] = None
    error: Optional[str] = None

    def select_image(self, slot: str, path) -> ImageSelection:
        self._check_slot(slot)
        selection = ImageSelection.from_path(path)
        self.remove_image(slot)
        setattr(self, slot, selection)
        return selection

    def remove_image(self, slot: str) -> None:
        self._check_slot(slot)
        current = getattr(self, slot)
        if current is not None:
            current.revoke_preview()
        setattr(self, slot, None)

    def reset(self) -> None:
        for slot in SLOTS:
            self.remove_image(slot)
        self.instructions = ""
        self.result = None
        self.error = None

    @property
    def can_submit(self) -> bool:
        return not self.loading and self.before is not None and self.after is not None

    def validate(self) -> Optional[str]:
        if self.before is None or self.after is None:
            return MISSING_IMAGES
        if not self.instructions.strip():
            return MISSING_INSTRUCTIONS
        return None

    def submit(self, client: VerifyClient) -> bool:
        """Send the form once. Returns True when an analysis was received.

        Images and instructions stay selected after a failure.
        """
        if self.loading:
            return False
        problem = self.validate()
        if problem:
            self.error = problem
            return False
        self.loading = True
        self.error = None
        self.result = None
        try:
            self.result = client.verify(self.before, self.after, self.instructions)
        except RequestFailed as e:
            self.error = f"Error analyzing images: {e}"
        finally:
            self.loading = False
        return self.result is not None

    def _check_slot(self, slot: str) -> None:
        if slot not in SLOTS:
            raise ValueError(f"unknown image slot: {slot!r}")


def paragraphs(text: str) -> List[str]:
    # one paragraph per line, blank lines included
    return text.split("\n")
