from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
import uuid


class ReviewRequest(BaseModel):
    comments: Optional[str] = None


class RejectRequest(BaseModel):
    comments: str = Field(min_length=1)


class ScriptCreate(BaseModel):
    topic_id: uuid.UUID
    content: str = Field(min_length=1)


class VideoCreate(BaseModel):
    topic_id: uuid.UUID
    title: str = Field(min_length=1, max_length=300)
    video_url: str = Field(min_length=1)
    description: Optional[str] = None
    thumbnail_url: Optional[str] = None
    script_id: Optional[uuid.UUID] = None


class ScriptOut(BaseModel):
    id: uuid.UUID
    topic_id: uuid.UUID
    version: int
    content: str
    status: str
    uploaded_by_id: Optional[uuid.UUID]
    assigned_reviewer_id: Optional[uuid.UUID]
    assigned_at: Optional[datetime]
    locked_by_id: Optional[uuid.UUID]
    locked_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class VideoOut(BaseModel):
    id: uuid.UUID
    topic_id: uuid.UUID
    script_id: Optional[uuid.UUID]
    version: int
    title: str
    description: Optional[str]
    video_url: Optional[str]
    thumbnail_url: Optional[str]
    status: str
    uploaded_by_id: Optional[uuid.UUID]
    assigned_reviewer_id: Optional[uuid.UUID]
    assigned_at: Optional[datetime]
    locked_by_id: Optional[uuid.UUID]
    locked_at: Optional[datetime]
    published_by_id: Optional[uuid.UUID]
    published_at: Optional[datetime]
    deep_link: Optional[str]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ScriptQueueOut(BaseModel):
    available: List[ScriptOut]
    mine: List[ScriptOut]


class VideoQueueOut(BaseModel):
    available: List[VideoOut]
    mine: List[VideoOut]


class ReviewOut(BaseModel):
    id: uuid.UUID
    reviewer_id: uuid.UUID
    reviewer_type: str
    decision: str
    comments: Optional[str]
    reviewed_at: datetime

    class Config:
        from_attributes = True
