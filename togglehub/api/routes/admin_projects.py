"""
Project and environment admin routes.
"""

from fastapi import APIRouter, Depends, status

from togglehub.api.dependencies.auth import AdminToken
from togglehub.api.dependencies.services import get_project_service
from togglehub.schemas.project import (
    EnvironmentCreate,
    EnvironmentListResponse,
    EnvironmentResponse,
    ProjectCreate,
    ProjectListResponse,
    ProjectResponse,
)
from togglehub.services.project import ProjectService

router = APIRouter()


@router.get("/projects", response_model=ProjectListResponse)
async def list_projects(
    _: AdminToken,
    project_service: ProjectService = Depends(get_project_service),
):
    projects = await project_service.list_projects()
    return ProjectListResponse(projects=[ProjectResponse.model_validate(p) for p in projects])


@router.post("/projects", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
async def create_project(
    data: ProjectCreate,
    token: AdminToken,
    project_service: ProjectService = Depends(get_project_service),
):
    project = await project_service.create_project(data, created_by=token.token_name)
    return ProjectResponse.model_validate(project)


@router.get("/environments", response_model=EnvironmentListResponse)
async def list_environments(
    _: AdminToken,
    project_service: ProjectService = Depends(get_project_service),
):
    environments = await project_service.list_environments()
    return EnvironmentListResponse(
        environments=[EnvironmentResponse.model_validate(e) for e in environments],
    )


@router.post(
    "/environments",
    response_model=EnvironmentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_environment(
    data: EnvironmentCreate,
    token: AdminToken,
    project_service: ProjectService = Depends(get_project_service),
):
    environment = await project_service.create_environment(data, created_by=token.token_name)
    return EnvironmentResponse.model_validate(environment)
