from datetime import datetime

from beanie import Document, Replace, Save, SaveChanges, before_event
from pydantic import Field


class TimestampedDocument(Document):
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @before_event(Replace, Save, SaveChanges)
    def touch(self):
        self.updated_at = datetime.utcnow()
