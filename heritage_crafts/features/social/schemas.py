from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel

from heritage_crafts.features.users.schemas import PublicUserOut


class FollowOut(BaseModel):
    follower_id: int
    following_id: int
    following: bool


class FollowListOut(BaseModel):
    items: List[PublicUserOut]
    total: int


class FollowCountsOut(BaseModel):
    user_id: int
    followers: int
    following: int


class ActivityItemOut(BaseModel):
    type: str  # "course" | "product"
    id: int
    craftsman_id: int
    title: Dict[str, str]
    craft_category: Optional[str] = None
    created_at: datetime


class ActivityFeedOut(BaseModel):
    items: List[ActivityItemOut]
