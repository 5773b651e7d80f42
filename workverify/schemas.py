from __future__ import annotations
from typing import Literal
from pydantic import BaseModel

class HealthResponse(BaseModel):
    status: str = "ok"

class VerifyResponse(BaseModel):
    success: Literal[True] = True
    analysis: str

class ErrorResponse(BaseModel):
    success: Literal[False] = False
    error: str
