from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from docreview.core.content import from_value
from docreview.domain import EditableItem


class JsonFilePayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = ""
    name: str = ""
    folder_id: str = Field(default="", alias="folderId")
    content: Any = None

    def has_content(self) -> bool:
        return "content" in self.model_fields_set

    def to_item(self) -> EditableItem:
        return EditableItem(
            id=self.id or self.name,
            name=self.name,
            container_id=self.folder_id,
            content=from_value(self.content) if self.has_content() else None,
        )


class SaveJsonRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    json_file: JsonFilePayload = Field(default_factory=JsonFilePayload, alias="jsonFile")
    folder_name: str = Field(default="", alias="folderName")


class CacheClearRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    key_prefix: str = Field(default="", alias="keyPrefix")


class RefreshRequest(BaseModel):
    force: bool = False


class EditItemRequest(BaseModel):
    content: Any = None
