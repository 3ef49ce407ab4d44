import json
from types import SimpleNamespace

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

import src.generation.generate as generate_mod
from src.api.endpoints.generation import generation_api, get_generator_factory
from src.generation.generate import GenerationRateLimitedError, ResumeGenerator
from src.utils.config_loader import GenerationConfig

RESUME_JSON = {
    "summary": "Backend engineer.",
    "skills": ["Python", "FastAPI"],
    "experience": [{"company": "Acme", "role": "Engineer", "dates": "2020-2024", "bullets": ["Shipped payments"]}],
    "internships": [],
    "volunteering": [],
    "projects": [{"name": "CV builder", "dates": "2024", "bullets": ["Built it"]}],
    "achievements": [],
    "publications": [],
    "certifications": [],
}

COVER_LETTER_JSON = {
    "subject": "Application",
    "salutation": "Dear Ms. Doe,",
    "opening": "I am excited to apply.",
    "bodyParagraphs": ["First.", "Second."],
    "closing": "Thank you.",
    "signOff": "Best regards,",
}


class RateLimitError(Exception):
    code = 429


class DummyModels:
    def __init__(self, responses):
        self.responses = list(responses)
        self.last_contents = None
        self.last_config = None
        self.calls = 0

    def generate_content(self, model, contents, config):
        self.calls += 1
        self.last_contents = contents
        self.last_config = config
        item = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(item, Exception):
            raise item
        return SimpleNamespace(text=json.dumps(item))


def install_dummy_client(monkeypatch, responses):
    models = DummyModels(responses)

    class DummyClient:
        def __init__(self, *args, **kwargs):
            self.models = models

    monkeypatch.setenv("GEMINI_API_KEY", "test")
    monkeypatch.setattr(generate_mod.genai, "Client", DummyClient)
    return models


async def no_sleep(seconds):
    return None


@pytest.mark.asyncio
async def test_cv_mode_prompt_and_structured_output(monkeypatch):
    models = install_dummy_client(monkeypatch, [RESUME_JSON])
    generator = ResumeGenerator(sleep=no_sleep)

    out = await generator.generate_resume({"mode": "cv", "targetRole": "Data Engineer", "experience": [{"company": "Acme"}]})

    assert out["experience"][0]["company"] == "Acme"
    assert out["projects"][0]["link"] is None
    assert "Curriculum Vitae (CV)" in models.last_contents
    assert "Data Engineer" in models.last_contents
    assert '"company": "Acme"' in models.last_contents
    assert models.last_config.response_mime_type == "application/json"


@pytest.mark.asyncio
async def test_cover_letter_keeps_camel_case_fields(monkeypatch):
    models = install_dummy_client(monkeypatch, [COVER_LETTER_JSON])
    generator = ResumeGenerator(sleep=no_sleep)

    out = await generator.generate_cover_letter(
        {"fullName": "Jane Doe", "companyName": "Acme", "experience": [1, 2, 3]}
    )

    assert out["bodyParagraphs"] == ["First.", "Second."]
    assert out["signOff"] == "Best regards,"
    assert "Jane Doe" in models.last_contents
    assert "[1, 2]" in models.last_contents


@pytest.mark.asyncio
async def test_rate_limit_is_retried_then_succeeds(monkeypatch):
    models = install_dummy_client(monkeypatch, [RateLimitError("429 RESOURCE_EXHAUSTED"), RESUME_JSON])
    generator = ResumeGenerator(sleep=no_sleep)

    out = await generator.generate_resume({"targetRole": "Engineer"})

    assert out["summary"] == "Backend engineer."
    assert models.calls == 2


@pytest.mark.asyncio
async def test_rate_limit_exhaustion_raises(monkeypatch):
    models = install_dummy_client(monkeypatch, [RateLimitError("429")])
    generator = ResumeGenerator(GenerationConfig(max_attempts=2), sleep=no_sleep)

    with pytest.raises(GenerationRateLimitedError):
        await generator.generate_resume({"targetRole": "Engineer"})
    assert models.calls == 2


def test_missing_api_key_raises(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    with pytest.raises(RuntimeError):
        ResumeGenerator()


def _client(factory=None):
    app = FastAPI()
    app.include_router(generation_api, prefix="/api/ai")
    if factory is not None:
        app.dependency_overrides[get_generator_factory] = lambda: factory
    return TestClient(app)


def test_generate_resume_endpoint(monkeypatch):
    install_dummy_client(monkeypatch, [RESUME_JSON])
    client = _client(lambda: ResumeGenerator(sleep=no_sleep))

    resp = client.post("/api/ai/generate-resume", json={"data": {"targetRole": "Engineer"}})

    assert resp.status_code == 200
    assert resp.json()["success"] is True
    assert resp.json()["data"]["skills"] == ["Python", "FastAPI"]


def test_generate_endpoint_rate_limited_is_429(monkeypatch):
    install_dummy_client(monkeypatch, [RateLimitError("429")])
    client = _client(lambda: ResumeGenerator(GenerationConfig(max_attempts=1), sleep=no_sleep))

    resp = client.post("/api/ai/generate-cover-letter", json={"data": {}})

    assert resp.status_code == 429
    assert resp.json()["success"] is False


def test_generate_endpoint_without_key_is_500(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    client = _client()

    resp = client.post("/api/ai/generate-resume", json={"data": {}})

    assert resp.status_code == 500
    assert "GEMINI_API_KEY" in resp.json()["message"]
