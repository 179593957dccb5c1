from sqlmodel import Field

from .base import BaseModelDB


class Pod(BaseModelDB, table=True):
    """Nœud ami : reçoit nos annonces, et nous acceptons les siennes."""

    url: str = Field(index=True, unique=True, description="URL de base du pair (sans slash final)")
