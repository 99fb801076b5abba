from sqlalchemy import Column, Integer, String, Boolean, Text, JSON
from backoffice.db.base import BaseModel

class SystemSetting(BaseModel):
    __tablename__ = 'system_settings'

    key = Column(String(100), nullable=False, unique=True)
    category = Column(String(50), nullable=False, index=True)  # app, inventory, notifications
    value = Column(JSON, nullable=False)  # {"kind": ..., "value": ...}
    description = Column(Text)
    is_public = Column(Boolean, default=False)
    updated_by = Column(Integer)  # User ID
