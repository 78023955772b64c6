"""
Photo and tag schemas.

Photos are stored once per upload with up to four size variants; tags link
event attendees to photos they appear in.
"""

from __future__ import annotations

from typing import Optional

from pydantic import Field

from .common import CamelModel, PhotoSize


class PhotoMetadata(CamelModel):
    title: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)


class PhotoUrls(CamelModel):
    original: str
    thumbnail: Optional[str] = None
    medium: Optional[str] = None
    large: Optional[str] = None


class TagRequest(CamelModel):
    user_ids: list[str] = Field(..., min_length=1, description="Users to tag in the photo")


class DownloadUrlResponse(CamelModel):
    download_url: str
    size: PhotoSize
