"""
Database Schemas for the Social API

Each Pydantic model represents a MongoDB collection. The collection name is the
lowercased class name. Example: class User -> "user" collection.
"""

from datetime import datetime, timezone
from typing import List, Literal

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field

Privacy = Literal["Public", "Friends", "Private"]


class _Document(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True, str_strip_whitespace=True)


class User(_Document):
    username: str = Field(..., min_length=1, description="Unique handle")
    email: str = Field(..., min_length=1, description="Unique email address")
    password_hash: str = Field(..., description="bcrypt hash of the password")
    profilePicture: str = Field("", description="Profile image path or URL")
    friends: List[ObjectId] = Field(default_factory=list, description="Followed user IDs")


class Comment(_Document):
    userId: ObjectId = Field(..., description="User who wrote the comment")
    text: str = Field(..., min_length=1, description="Comment text")
    createdAt: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class Post(_Document):
    userId: ObjectId = Field(..., description="Owner user ID, never changes")
    content: str = Field(..., min_length=1, description="Post text content")
    image: str = Field("", description="Attached image path or URL")
    likes: List[ObjectId] = Field(default_factory=list, description="IDs of users who liked the post")
    comments: List[Comment] = Field(default_factory=list)
    privacy: Privacy = Field("Public", description="Who can see the post")
