# portal/models.py
from __future__ import annotations
from enum import Enum
from typing import Dict, List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class UploadKind(str, Enum):
    SCHEMAS = "schemas"
    PROGRAMMATION = "programmation"
    PICTURES = "pictures"

    @property
    def subfolder(self) -> str:
        return self.value

    @property
    def extracts_archive(self) -> bool:
        return self is UploadKind.PROGRAMMATION


class PortalSettings(BaseModel):
    """Document settings.json (clés camelCase côté disque et API)."""
    model_config = ConfigDict(populate_by_name=True)

    base_path: str = Field("", alias="basePath")
    required_folders: List[str] = Field(default_factory=list, alias="requiredFolders")
    date_format: str = Field("DDMMYYYY", alias="dateFormat")

    @field_validator("base_path", "date_format", mode="before")
    @classmethod
    def _strip(cls, v):
        if v is None:
            return ""
        return v.strip() if isinstance(v, str) else v

    @field_validator("required_folders")
    @classmethod
    def _folder_names(cls, v: List[str]) -> List[str]:
        out: List[str] = []
        for name in v:
            name = name.strip()
            if not name:
                continue
            if "/" in name or "\\" in name or name in (".", ".."):
                raise ValueError(f"invalid folder name: {name!r}")
            out.append(name)
        return out

    def dump(self) -> Dict:
        return self.model_dump(by_alias=True)


class DirectoryEntry(BaseModel):
    path: str
    name: str
    type: Literal["file", "directory"]
    accessible: bool = True


class UploadResult(BaseModel):
    ok: bool = True
    savedAs: str
    kind: str
    name: Optional[str] = None


class Identity(BaseModel):
    """Utilisateur authentifié tel que vu par le cœur (nom pour les initiales, permissions)."""
    id: str
    name: str
    email: str
    role_id: Optional[str] = None
    permissions: List[str] = Field(default_factory=list)
