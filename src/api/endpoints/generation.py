import logging
from typing import Any, Callable, Dict, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, ValidationError

from src.error_handler import ErrorHandler
from src.generation.generate import GenerationRateLimitedError, ResumeGenerator
from src.utils.config_loader import GenerationConfig

logger = logging.getLogger(__name__)

api = APIRouter()
generation_api = api

error_handler = ErrorHandler()


class GenerationRequest(BaseModel):
    data: Dict[str, Any] = Field(default_factory=dict)


# Set by src.api.main at import time.
generation_config: Optional[GenerationConfig] = None


def get_generator() -> ResumeGenerator:
    return ResumeGenerator(generation_config)


def get_generator_factory() -> Callable[[], ResumeGenerator]:
    """Generators are built inside the handler so a missing key is answered with a 500 body."""
    return get_generator


async def _run(kind: str, request: GenerationRequest, generator_factory):
    try:
        generator = generator_factory()
        if kind == "resume":
            output = await generator.generate_resume(request.data)
        else:
            output = await generator.generate_cover_letter(request.data)
    except GenerationRateLimitedError as e:
        logger.warning("Generation (%s) rate limited: %s", kind, e.__cause__)
        return JSONResponse(status_code=429, content={"success": False, "message": str(e)})
    except (RuntimeError, ValueError, ValidationError) as e:
        logger.error("AI %s error: %s", kind, e)
        return JSONResponse(status_code=500, content={"success": False, "message": str(e)})
    except Exception as e:
        status_code, body = error_handler.internal_error_response(e, {"endpoint": f"generate-{kind}"})
        return JSONResponse(status_code=status_code, content=body)

    return {"success": True, "data": output}


@api.post("/generate-resume", tags=["Generation"])
async def generate_resume(request: GenerationRequest, factory=Depends(get_generator_factory)):
    return await _run("resume", request, factory)


@api.post("/generate-cover-letter", tags=["Generation"])
async def generate_cover_letter(request: GenerationRequest, factory=Depends(get_generator_factory)):
    return await _run("cover-letter", request, factory)
