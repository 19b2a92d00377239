"""Pydantic schemas for fragment endpoints."""

from typing import List, Literal, Union

from pydantic import BaseModel

from fragments.fragment import Fragment


class FragmentMetadata(BaseModel):
    """Fragment metadata as exposed over the API."""
    id: str
    ownerId: str
    created: str
    updated: str
    type: str
    size: int

    @classmethod
    def from_fragment(cls, fragment: Fragment) -> "FragmentMetadata":
        return cls(**fragment.to_dict())


class FragmentResponse(BaseModel):
    """Response model for create, update and info."""
    status: Literal["ok"] = "ok"
    fragment: FragmentMetadata


class FragmentListResponse(BaseModel):
    """Response model for fragment listing (ids, or metadata when expanded)."""
    status: Literal["ok"] = "ok"
    fragments: Union[List[FragmentMetadata], List[str]]
