"""
PageBinder — Local project history.

Projects are kept in a single JSON file, oldest first. The store is
capped at max_projects: when full, the single oldest record is evicted
before the new one is appended.
"""

from __future__ import annotations

import json
import os
import time
import uuid
from pathlib import Path

from pydantic import TypeAdapter

from pagebinder.errors import ProjectNotFoundError, StorageFailureError
from pagebinder.models.project import ProjectCreate, ProjectModel, ProjectStats, ProjectUpdate
from pagebinder.utils.logging import logger

MAX_PROJECTS = 50

_projects_adapter = TypeAdapter(list[ProjectModel])


def _now_ms() -> int:
    return int(time.time() * 1000)


class ProjectStore:
    def __init__(self, path: str | Path, max_projects: int = MAX_PROJECTS):
        self.path = Path(path)
        self.max_projects = max_projects

    def _load(self) -> list[ProjectModel]:
        if not self.path.exists():
            return []
        try:
            return _projects_adapter.validate_json(self.path.read_bytes())
        except OSError as exc:
            raise StorageFailureError("read", str(self.path), exc.strerror or str(exc)) from exc
        except ValueError as exc:
            raise StorageFailureError("read", str(self.path), f"corrupt project file: {exc}") from exc

    def _save(self, projects: list[ProjectModel]) -> None:
        payload = json.dumps([p.model_dump(mode="json") for p in projects], ensure_ascii=False, indent=2)
        tmp = self.path.with_suffix(self.path.suffix + ".part")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(payload, encoding="utf-8")
            os.replace(tmp, self.path)
        except OSError as exc:
            raise StorageFailureError("write", str(self.path), exc.strerror or str(exc)) from exc

    def save_project(self, project: ProjectCreate) -> ProjectModel:
        projects = self._load()
        now = _now_ms()
        new = ProjectModel(
            id=f"project_{uuid.uuid4().hex[:12]}",
            created_at=now,
            updated_at=now,
            **project.model_dump(exclude={"settings"}),
            settings=project.settings,
        )

        if len(projects) >= self.max_projects:
            evicted = projects.pop(0)
            logger.info("  Project limit %d reached, evicted %s", self.max_projects, evicted.id)

        projects.append(new)
        self._save(projects)
        logger.info("  Saved project %s (%s)", new.id, new.name)
        return new

    def update_project(self, project_id: str, updates: ProjectUpdate) -> ProjectModel:
        projects = self._load()
        for i, existing in enumerate(projects):
            if existing.id == project_id:
                break
        else:
            raise ProjectNotFoundError(project_id)

        # pdf_path and notes may be cleared; the other fields only replaced
        changes = {
            k: getattr(updates, k)
            for k in updates.model_fields_set
            if getattr(updates, k) is not None or k in ("pdf_path", "notes")
        }
        updated = existing.model_copy(
            update={**changes, "updated_at": max(_now_ms(), existing.updated_at + 1)}
        )
        projects[i] = updated
        self._save(projects)
        return updated

    def get_project(self, project_id: str) -> ProjectModel | None:
        return next((p for p in self._load() if p.id == project_id), None)

    def list_projects(self) -> list[ProjectModel]:
        return self._load()

    def delete_project(self, project_id: str) -> bool:
        projects = self._load()
        remaining = [p for p in projects if p.id != project_id]
        if len(remaining) == len(projects):
            return False
        self._save(remaining)
        return True

    def delete_all(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as exc:
            raise StorageFailureError("delete", str(self.path), exc.strerror or str(exc)) from exc

    def search_projects(self, query: str) -> list[ProjectModel]:
        q = query.lower()
        return [
            p for p in self._load()
            if q in p.name.lower() or (p.notes and q in p.notes.lower())
        ]

    def projects_sorted_by_date(self, descending: bool = True) -> list[ProjectModel]:
        return sorted(self._load(), key=lambda p: p.updated_at, reverse=descending)

    def stats(self) -> ProjectStats:
        projects = self._load()
        return ProjectStats(
            total_projects=len(projects),
            total_images=sum(len(p.images) for p in projects),
            oldest_project=projects[0] if projects else None,
            newest_project=projects[-1] if projects else None,
        )

    def restore_project(self, project_id: str) -> ProjectModel:
        """Touch a project so it sorts as most recently used."""
        return self.update_project(project_id, ProjectUpdate())
