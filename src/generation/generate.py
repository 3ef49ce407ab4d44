import asyncio
import json
import logging
import os
from typing import Any, Dict, Optional, Type

from google import genai
from google.genai import types
from pydantic import BaseModel, ValidationError

from src.generation.schemas import CoverLetterOutput, ResumeOutput
from src.utils.config_loader import GenerationConfig
from src.utils.retry import RetryExhaustedError, RetryPolicy, retry_async

logger = logging.getLogger(__name__)

RATE_LIMITED_MESSAGE = "System busy. Please wait a minute and try again."


class GenerationRateLimitedError(RuntimeError):
    """Gemini kept answering 429 / RESOURCE_EXHAUSTED after every retry."""


def is_rate_limited(error: BaseException) -> bool:
    if getattr(error, "code", None) == 429:
        return True
    text = str(error)
    return "429" in text or "RESOURCE_EXHAUSTED" in text or "quota" in text.lower()


def _field(data: Dict[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if isinstance(value, (list, dict)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def build_resume_prompt(data: Dict[str, Any]) -> str:
    is_cv = data.get("mode") == "cv"
    doc_type = "Curriculum Vitae (CV)" if is_cv else "Resume"
    tone = (
        "As this is a CV, keep the tone formal, comprehensive and rigorous."
        if is_cv
        else "Keep it concise and punchy."
    )
    bullet_style = "detailed, formal bullet points" if is_cv else "punchy result-oriented bullets"
    target_role = _field(data, "targetRole")

    lines = [
        f'You are an expert professional resume and CV writer for the "{target_role}" industry.',
        f"Transform the user's rough input into a high-impact, professional {doc_type}.",
        tone,
        "",
        "Input Data:",
        f"- Role Target: {target_role}",
    ]
    for label, key in (
        ("Summary", "summary"),
        ("Skills", "skills"),
        ("Languages", "languages"),
        ("Achievements", "achievements"),
        ("Publications", "publications"),
        ("Certifications", "certifications"),
        ("Experience", "experience"),
        ("Internships", "internships"),
        ("Volunteering", "volunteering"),
        ("Projects", "projects"),
    ):
        lines.append(f"- {label}: {_field(data, key)}")
    lines += [
        "",
        "Instructions:",
        "1. Write a compelling professional summary (max 3-4 sentences).",
        "2. Extract and categorize key technical and soft skills.",
        "3. Format the languages section professionally.",
        f"4. Rewrite experience notes into {bullet_style}.",
        "5. Process internships, volunteering, projects, achievements, publications and certifications.",
        "",
        "Return JSON matching the schema.",
    ]
    return "\n".join(lines)


def build_cover_letter_prompt(data: Dict[str, Any]) -> str:
    experience = data.get("experience") or []
    if isinstance(experience, list):
        experience = experience[:2]
    return "\n".join(
        [
            "You are an expert career coach. Write a powerful, persuasive cover letter.",
            f"Candidate: {_field(data, 'fullName')}, Target: {_field(data, 'targetRole')}",
            f"Skills: {_field(data, 'skills')}",
            f"Key Experience: {json.dumps(experience, ensure_ascii=False)}",
            f"Target Job: {_field(data, 'companyName')}, Recipient: {_field(data, 'recipientName')}",
            f"Job Context: {_field(data, 'jobDescription')}",
            "",
            "Structure:",
            "1. Opening hook",
            "2. Body paragraph on experience match",
            "3. Body paragraph on soft skills and culture",
            "4. Strong closing",
            "",
            "Return JSON.",
        ]
    )


class ResumeGenerator:
    def __init__(self, config: Optional[GenerationConfig] = None, sleep=asyncio.sleep):
        self.config = config or GenerationConfig()
        api_key = os.environ.get(self.config.api_key_env)
        if not api_key:
            raise RuntimeError(f"{self.config.api_key_env} is not set in server environment variables")

        self.client = genai.Client(api_key=api_key)
        self.policy = RetryPolicy(
            max_attempts=self.config.max_attempts,
            base_delay=self.config.base_delay_seconds,
            multiplier=self.config.backoff_multiplier,
            max_delay=self.config.max_delay_seconds,
        )
        self._sleep = sleep

    async def _generate(self, prompt: str, schema: Type[BaseModel], label: str) -> BaseModel:
        def _sync_generate():
            return self.client.models.generate_content(
                model=self.config.model,
                contents=prompt,
                config=types.GenerateContentConfig(
                    temperature=self.config.temperature,
                    response_mime_type="application/json",
                    response_schema=schema,
                ),
            )

        async def _attempt():
            return await asyncio.to_thread(_sync_generate)

        try:
            response = await retry_async(
                _attempt, policy=self.policy, should_retry=is_rate_limited, sleep=self._sleep, label=label
            )
        except RetryExhaustedError as e:
            raise GenerationRateLimitedError(RATE_LIMITED_MESSAGE) from e

        text = (getattr(response, "text", "") or "").strip()
        if not text:
            raise ValueError("Gemini returned an empty response")
        try:
            return schema.model_validate_json(text)
        except ValidationError as e:
            logger.error("%s returned JSON that does not match %s: %s", label, schema.__name__, e)
            raise

    async def generate_resume(self, data: Dict[str, Any]) -> Dict[str, Any]:
        logger.info("Generating %s for role: %s", data.get("mode") or "resume", str(data.get("targetRole", ""))[:100])
        output = await self._generate(build_resume_prompt(data), ResumeOutput, "generate_resume")
        return output.model_dump()

    async def generate_cover_letter(self, data: Dict[str, Any]) -> Dict[str, Any]:
        logger.info("Generating cover letter for company: %s", str(data.get("companyName", ""))[:100])
        output = await self._generate(build_cover_letter_prompt(data), CoverLetterOutput, "generate_cover_letter")
        return output.model_dump(by_alias=True)
