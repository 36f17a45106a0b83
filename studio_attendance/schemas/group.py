from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Group(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    spreadsheet_id: str = Field(alias="spreadsheetId")
    sheet_group_id: Optional[str] = Field(default=None, alias="sheetGroupId")
    active: bool = True

    @classmethod
    def from_config(cls, config, fallback_spreadsheet_id: Optional[str] = None) -> "Group":
        return cls(
            id=config.group_id,
            name=config.name,
            spreadsheet_id=config.spreadsheet_id or fallback_spreadsheet_id or "",
            sheet_group_id=config.sheet_group_id,
            active=config.active,
        )

    @property
    def students_group_id(self) -> str:
        """Value the Students sheet uses in its group_id column."""
        return self.sheet_group_id or self.id


class GroupConfigCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    group_id: str = Field(alias="groupId", min_length=1, max_length=50)
    name: str = Field(min_length=1, max_length=100)
    spreadsheet_id: str = Field(alias="spreadsheetId", min_length=1)
    sheet_group_id: Optional[str] = Field(default=None, alias="sheetGroupId")


class GroupConfigUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    spreadsheet_id: Optional[str] = Field(default=None, alias="spreadsheetId", min_length=1)
    sheet_group_id: Optional[str] = Field(default=None, alias="sheetGroupId")
    active: Optional[bool] = None
