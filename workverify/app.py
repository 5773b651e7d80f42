from __future__ import annotations
import logging
from pathlib import Path
from typing import List, Optional
from fastapi import Depends, FastAPI, File, Form, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from .completion import CompletionService
from .config import Settings, settings
from .errors import (
    ErrorKind,
    VerificationError,
    from_exception,
    request_validation_handler,
    verification_error_handler,
)
from .image_io import encode_image_file
from .logger import log_event, log_middleware
from .schemas import ErrorResponse, HealthResponse, VerifyResponse
from .uploads import transient_images

app = FastAPI(title="Work Verification Relay")

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.origins,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "Authorization"],
)

# Logging
app.middleware("http")(log_middleware)

app.add_exception_handler(VerificationError, verification_error_handler)
app.add_exception_handler(RequestValidationError, request_validation_handler)

# Global state
COMPLETION = CompletionService(settings)

log_event(
    "startup",
    port=settings.app_port,
    env=settings.app_env,
    api_key="Set" if settings.openai_api_key else "Not set",
)

def get_settings() -> Settings:
    return settings

def get_completion_service() -> CompletionService:
    return COMPLETION

@app.get("/api/health", response_model=HealthResponse)
def health():
    return HealthResponse()

@app.post(
    "/api/verify",
    response_model=VerifyResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def verify(
    before_images: Optional[List[UploadFile]] = File(None, alias="beforeImage"),
    after_images: Optional[List[UploadFile]] = File(None, alias="afterImage"),
    instructions: Optional[str] = Form(None, alias="verificationInstructions"),
    cfg: Settings = Depends(get_settings),
    completion: CompletionService = Depends(get_completion_service),
):
    # sync handler: runs on the threadpool, so the blocking SDK call is fine here
    parts = (("beforeImage", before_images or []), ("afterImage", after_images or []))
    missing = [name for name, files in parts if not files or not files[0].filename]
    if missing:
        raise VerificationError(ErrorKind.VALIDATION, "Missing required files: " + ", ".join(missing))
    repeated = [name for name, files in parts if len(files) > 1]
    if repeated:
        raise VerificationError(ErrorKind.VALIDATION, "Only one file allowed for: " + ", ".join(repeated))
    before_image, after_image = before_images[0], after_images[0]
    if not instructions or not instructions.strip():
        raise VerificationError(ErrorKind.VALIDATION, "Missing verification instructions")

    uploads = [(f.filename, f.content_type, f.file) for f in (before_image, after_image)]
    try:
        with transient_images(cfg.upload_dir, uploads) as (before, after):
            before_url = encode_image_file(before.path, before.content_type)
            after_url = encode_image_file(after.path, after.content_type)
            analysis = completion.analyze(instructions, before_url, after_url)
    except VerificationError:
        raise
    except Exception as e:
        raise from_exception(e) from e

    return VerifyResponse(analysis=analysis)


class SPAStaticFiles(StaticFiles):
    """Static bundle whose unknown paths fall back to index.html."""

    async def get_response(self, path, scope):
        try:
            response = await super().get_response(path, scope)
        except StarletteHTTPException as e:
            if e.status_code != 404:
                raise
            return await super().get_response("index.html", scope)
        if response.status_code == 404:
            return await super().get_response("index.html", scope)
        return response

def mount_frontend(target: FastAPI, cfg: Settings) -> bool:
    build = Path(cfg.frontend_dir)
    if not (build / "index.html").is_file():
        log_event("frontend_missing", level=logging.WARNING, frontend_dir=str(build))
        return False
    target.mount("/", SPAStaticFiles(directory=str(build), html=True), name="frontend")
    return True

# Serve the prebuilt client in production; API routes above take precedence
if settings.production:
    mount_frontend(app, settings)

def run():
    import uvicorn
    uvicorn.run(app, host=settings.app_host, port=settings.app_port, log_level=settings.log_level.lower())

if __name__ == "__main__":
    run()
