"""
Read-only service registry endpoints.

Exposes services, their tags, and tag listings.
"""

from fastapi import APIRouter, HTTPException
from loguru import logger

from app.models.schemas import ServiceDetail, ServiceList, TagList
from app.utils.registry_client import get_registry
from domains.service_registry.errors import IdNotExistsError, TagNotExistsError

router = APIRouter()


@router.get("/services", response_model=ServiceList)
async def list_services():
    """
    List all registered services.

    Returns:
        Sorted service IDs
    """
    services = get_registry().list_services()
    return ServiceList(services=services, total=len(services))


@router.get("/services/{service_id}", response_model=ServiceDetail)
async def get_service(service_id: str):
    """
    Get details for a specific service.

    Args:
        service_id: Service ID

    Returns:
        Service content and tags
    """
    logger.info(f"Getting service: {service_id}")
    registry = get_registry()

    try:
        service = registry.get_service(service_id)
        tags = registry.list_service_tags(service_id)
    except IdNotExistsError:
        raise HTTPException(status_code=404, detail=f"Service '{service_id}' not found")

    return ServiceDetail(
        id=service.id,
        name=service.name,
        description=service.description,
        urls=service.urls,
        public_keys=service.public_keys,
        tags=tags,
    )


@router.get("/tags", response_model=TagList)
async def list_tags():
    """List all tags."""
    tags = get_registry().list_tags()
    return TagList(tags=tags, total=len(tags))


@router.get("/tags/{tag}/services", response_model=ServiceList)
async def list_services_with_tag(tag: str):
    """
    List services carrying a tag.

    Args:
        tag: Tag name

    Returns:
        Sorted service IDs
    """
    try:
        services = get_registry().list_services_with_tag(tag)
    except TagNotExistsError:
        raise HTTPException(status_code=404, detail=f"Tag '{tag}' not found")

    return ServiceList(services=services, total=len(services))
