"""
Gemini-backed rewriting of resume, CV and cover letter content.
"""
from .generate import GenerationRateLimitedError, ResumeGenerator
from .schemas import CoverLetterOutput, ResumeOutput

__all__ = [
    "GenerationRateLimitedError",
    "ResumeGenerator",
    "CoverLetterOutput",
    "ResumeOutput",
]
