from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class MediaOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    object_key: str
    mime_type: str
    bytes: int
    sha256: Optional[str] = None
    original_name: Optional[str] = None
    owner_id: int
    created_at: datetime


class MediaListOut(BaseModel):
    items: List[MediaOut]


class SignedUrlOut(BaseModel):
    id: int
    url: str
    expires_in: int
