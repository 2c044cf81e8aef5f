# evquote/routers/projects.py
from __future__ import annotations

from fastapi import APIRouter, Depends

from evquote.config import get_settings
from evquote.core.responses import ok
from evquote.dependencies import get_project_service, get_store
from evquote.repositories.base import RecordStore
from evquote.schemas.common import CamelModel
from evquote.services.config_resolver import resolve_config
from evquote.services.projects import ProjectService

router = APIRouter(prefix="/api", tags=["projects"])


class ProjectStatusUpdate(CamelModel):
    status: str


@router.get("/projects")
def list_projects(svc: ProjectService = Depends(get_project_service)):
    return ok([p.to_api() for p in svc.list_projects()])


@router.get("/projects/{project_id}")
def get_project(project_id: str, svc: ProjectService = Depends(get_project_service)):
    return ok(svc.get_project(project_id).to_api())


@router.patch("/projects/{project_id}/status")
def update_project_status(
    project_id: str,
    payload: ProjectStatusUpdate,
    svc: ProjectService = Depends(get_project_service),
):
    return ok(svc.set_project_status(project_id, payload.status).to_api())


@router.get("/photos/{project_id}")
def list_photos(project_id: str, svc: ProjectService = Depends(get_project_service)):
    return ok([p.to_api() for p in svc.list_photos(project_id)])


@router.get("/company-config")
def company_config(store: RecordStore = Depends(get_store)):
    config = resolve_config(store, get_settings().COMPANY_CONFIG_TABLE)
    return ok(config.to_api())
