"""
Messages échangés entre nœuds amis sur /api/v1/remote/videos.
"""

from datetime import datetime
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field


class RemoteVideoData(BaseModel):
    name: str = Field(min_length=1)
    description: str = ""
    magnet_uri: str = Field(min_length=1)
    author: str
    duration: int = Field(ge=0)
    tags: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    pod_url: str
    thumbnail_url: str


class RemoteVideoRef(BaseModel):
    name: str
    magnet_uri: str = Field(min_length=1)
    pod_url: str


class RemoteAddIn(BaseModel):
    type: Literal["add"] = "add"
    data: RemoteVideoData


class RemoteRemoveIn(BaseModel):
    type: Literal["remove"] = "remove"
    data: RemoteVideoRef


RemoteRequestIn = Annotated[Union[RemoteAddIn, RemoteRemoveIn], Field(discriminator="type")]
