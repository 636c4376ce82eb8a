from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class CVRecord(BaseModel):
    """One CV entry as persisted to the JSON data file.

    Properties beyond the fixed fields are carried through unchanged.
    """

    id: str
    title: str
    category: str = ""
    year: int | None = None
    description: str = ""
    institution: str = ""
    location: str = ""
    url: str = ""
    icon: str = ""
    has_content: bool = Field(default=False, alias="hasContent")
    page_content: str = Field(default="", alias="pageContent")

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    def to_json_dict(self) -> dict:
        return self.model_dump(by_alias=True)
