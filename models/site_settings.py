from pydantic import BaseModel
from sqlalchemy import Column, String, DateTime, func

from models.base import Base


class SiteSetting(Base):
    """
    Key-value store for runtime-configurable shop settings.
    Allows changing settings without a restart.

    Examples:
        - banner_enabled: "true", "false"
        - banner_text: "20% auf Stickerei bis 28.02."
        - banner_link: "/produkte/stickerei"
    """
    __tablename__ = 'site_settings'

    key = Column(String, primary_key=True)
    value = Column(String, nullable=False)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())


class BannerSettingsDTO(BaseModel):
    enabled: bool
    text: str
    link: str | None = None
