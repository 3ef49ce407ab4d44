"""Structured output models for the generation endpoints."""
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ExperienceItem(BaseModel):
    company: str
    role: str
    dates: str
    bullets: List[str] = Field(default_factory=list)


class ProjectItem(BaseModel):
    name: str
    link: Optional[str] = None
    dates: str = ""
    bullets: List[str] = Field(default_factory=list)


class ResumeOutput(BaseModel):
    summary: str
    skills: List[str] = Field(default_factory=list)
    languages: List[str] = Field(default_factory=list)
    experience: List[ExperienceItem] = Field(default_factory=list)
    internships: List[ExperienceItem] = Field(default_factory=list)
    volunteering: List[ExperienceItem] = Field(default_factory=list)
    projects: List[ProjectItem] = Field(default_factory=list)
    achievements: List[str] = Field(default_factory=list)
    publications: List[str] = Field(default_factory=list)
    certifications: List[str] = Field(default_factory=list)


class CoverLetterOutput(BaseModel):
    # Field names follow the frontend's camelCase contract.
    model_config = ConfigDict(populate_by_name=True)

    subject: str
    salutation: str
    opening: str
    body_paragraphs: List[str] = Field(default_factory=list, alias="bodyParagraphs")
    closing: str
    sign_off: str = Field(alias="signOff")
