"""Fragment API routes."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response, status
from starlette.concurrency import run_in_threadpool

from common.constants import API_PREFIX
from common.logging_config import get_logger
from fragments.auth import get_current_user
from fragments.config import Settings
from fragments.dependencies import get_fragment_service, get_settings
from fragments.schemas.common import StatusResponse
from fragments.schemas.fragments import FragmentListResponse, FragmentMetadata, FragmentResponse
from fragments.services.fragment_service import FragmentService
from fragments.utils import split_fragment_path

logger = get_logger(__name__)

router = APIRouter(prefix=f"{API_PREFIX}/fragments", tags=["Fragments"])


def build_location(request: Request, settings: Settings, fragment_id: str) -> str:
    """
    Absolute URL of a fragment, based on API_URL when configured.
    """
    base = settings.api_url or str(request.base_url)
    return f"{base.rstrip('/')}{API_PREFIX}/fragments/{fragment_id}"


def _is_truthy(value: Optional[str]) -> bool:
    return value is not None and value.strip().lower() in ("1", "true", "yes")


@router.get("", response_model=FragmentListResponse)
async def list_fragments(
    expand: Optional[str] = Query(None, description="Set to 1 to return full metadata"),
    current_user: str = Depends(get_current_user),
    fragment_service: FragmentService = Depends(get_fragment_service),
):
    """
    List the current user's fragments.

    Parameters:
        - expand: "1" to return metadata objects instead of ids
        - Authorization header: Basic credentials (required)

    Returns:
        - fragments: List of ids, or of metadata when expanded

    Raises:
        - 401: Missing or invalid credentials
    """
    expanded = _is_truthy(expand)
    fragments = await run_in_threadpool(fragment_service.list_fragments, current_user, expand=expanded)
    if expanded:
        return FragmentListResponse(fragments=[FragmentMetadata.from_fragment(f) for f in fragments])
    return FragmentListResponse(fragments=fragments)


@router.post("", response_model=FragmentResponse, status_code=status.HTTP_201_CREATED)
async def create_fragment(
    request: Request,
    response: Response,
    current_user: str = Depends(get_current_user),
    fragment_service: FragmentService = Depends(get_fragment_service),
    settings: Settings = Depends(get_settings),
):
    """
    Create a fragment from the raw request body.

    Parameters:
        - Content-Type header: Supported fragment type (required)
        - Body: Raw fragment bytes
        - Authorization header: Basic credentials (required)

    Returns:
        - fragment: Metadata of the created fragment, plus a Location header

    Raises:
        - 400: Empty body
        - 401: Missing or invalid credentials
        - 413: Body above the upload ceiling
        - 415: Missing or unsupported type, or content invalid for the type
        - 500: Malformed Content-Type header
    """
    body = await request.body()
    fragment = await run_in_threadpool(
        fragment_service.create_fragment,
        current_user,
        request.headers.get("content-type"),
        body,
    )

    response.headers["Location"] = build_location(request, settings, fragment.id)
    return FragmentResponse(fragment=FragmentMetadata.from_fragment(fragment))


@router.get("/{fragment_id}/info", response_model=FragmentResponse)
async def get_fragment_info(
    fragment_id: str,
    current_user: str = Depends(get_current_user),
    fragment_service: FragmentService = Depends(get_fragment_service),
):
    """
    Get a fragment's metadata.

    Raises:
        - 401: Missing or invalid credentials
        - 404: Fragment not found
    """
    fragment = await run_in_threadpool(fragment_service.get_fragment, current_user, fragment_id)
    return FragmentResponse(fragment=FragmentMetadata.from_fragment(fragment))


@router.get("/{fragment_path}")
async def get_fragment(
    fragment_path: str,
    current_user: str = Depends(get_current_user),
    fragment_service: FragmentService = Depends(get_fragment_service),
):
    """
    Get a fragment's data, optionally converted by extension.

    Parameters:
        - fragment_path: "{id}" or "{id}.{ext}" (e.g., "<id>.html")
        - Authorization header: Basic credentials (required)

    Returns:
        - Raw bytes with the stored or converted Content-Type

    Raises:
        - 401: Missing or invalid credentials
        - 404: Fragment not found
        - 415: Unknown extension or conversion not permitted
    """
    fragment_id, extension = split_fragment_path(fragment_path)
    data, content_type = await run_in_threadpool(
        fragment_service.get_fragment_content,
        current_user,
        fragment_id,
        extension,
    )

    # Set the header directly so text types keep the stored charset (or none).
    return Response(
        content=data,
        headers={"Content-Type": content_type, "Content-Length": str(len(data))},
    )


@router.put("/{fragment_id}", response_model=FragmentResponse, status_code=status.HTTP_201_CREATED)
async def update_fragment(
    fragment_id: str,
    request: Request,
    response: Response,
    current_user: str = Depends(get_current_user),
    fragment_service: FragmentService = Depends(get_fragment_service),
    settings: Settings = Depends(get_settings),
):
    """
    Replace a fragment's data. The base type must match the stored fragment.

    Raises:
        - 400: Empty body or type mismatch
        - 401: Missing or invalid credentials
        - 404: Fragment not found
        - 413: Body above the upload ceiling
        - 415: Unsupported type or content invalid for the type
        - 500: Malformed Content-Type header
    """
    body = await request.body()
    fragment = await run_in_threadpool(
        fragment_service.update_fragment,
        current_user,
        fragment_id,
        request.headers.get("content-type"),
        body,
    )

    response.headers["Location"] = build_location(request, settings, fragment.id)
    return FragmentResponse(fragment=FragmentMetadata.from_fragment(fragment))


@router.delete("/{fragment_id}", response_model=StatusResponse)
async def delete_fragment(
    fragment_id: str,
    current_user: str = Depends(get_current_user),
    fragment_service: FragmentService = Depends(get_fragment_service),
):
    """
    Delete a fragment's metadata and data.

    Raises:
        - 401: Missing or invalid credentials
        - 404: Fragment not found
    """
    await run_in_threadpool(fragment_service.delete_fragment, current_user, fragment_id)
    return StatusResponse()
