"""
PageBinder — Project history records.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from pagebinder.models.settings import ConversionSettings


class ProjectModel(BaseModel):
    id: str
    name: str = Field(min_length=1, max_length=200)
    created_at: int  # epoch ms
    updated_at: int  # epoch ms
    images: list[str] = Field(default_factory=list)
    settings: ConversionSettings = Field(default_factory=ConversionSettings)
    pdf_path: str | None = None
    notes: str | None = Field(default=None, max_length=5000)


class ProjectCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    images: list[str] = Field(default_factory=list)
    settings: ConversionSettings = Field(default_factory=ConversionSettings)
    pdf_path: str | None = None
    notes: str | None = Field(default=None, max_length=5000)


class ProjectUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    images: list[str] | None = None
    settings: ConversionSettings | None = None
    pdf_path: str | None = None
    notes: str | None = Field(default=None, max_length=5000)


class ProjectStats(BaseModel):
    total_projects: int = 0
    total_images: int = 0
    oldest_project: ProjectModel | None = None
    newest_project: ProjectModel | None = None
