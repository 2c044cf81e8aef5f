# evquote/services/projects.py
from __future__ import annotations

import logging
from typing import List

from evquote.core.errors import InvalidInputError
from evquote.repositories.base import RecordStore
from evquote.schemas.project import Photo, Project
from evquote.workflow.status import PROJECT_STATUSES

logger = logging.getLogger(__name__)


class ProjectService:
    """Read side of PROJECTS and PHOTOS, plus manual status updates."""

    def __init__(self, store: RecordStore, *, projects_table: str = "PROJECTS", photos_table: str = "PHOTOS"):
        self.store = store
        self.projects_table = projects_table
        self.photos_table = photos_table

    def list_projects(self) -> List[Project]:
        records = self.store.list(self.projects_table, sort=[("Customer Name", "asc")])
        return [Project.from_record(r) for r in records]

    def get_project(self, project_id: str) -> Project:
        return Project.from_record(self.store.get(self.projects_table, project_id))

    def set_project_status(self, project_id: str, status: str) -> Project:
        if status not in PROJECT_STATUSES:
            raise InvalidInputError(f"Unknown project status: {status!r}")
        record = self.store.update(self.projects_table, project_id, {"Project Status": status})
        logger.info("project %s status -> %s", project_id, status)
        return Project.from_record(record)

    def list_photos(self, project_id: str) -> List[Photo]:
        records = self.store.list(self.photos_table, linked={"Project": project_id})
        return [Photo.from_record(r) for r in records]
