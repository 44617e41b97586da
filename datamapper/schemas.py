from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ProcessRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    template_path: Optional[str] = Field(default=None, alias="templatePath")
    data_path: Optional[str] = Field(default=None, alias="dataPath")
    model: Optional[str] = None


class SaveResultRequest(BaseModel):
    content: Optional[str] = None
    filename: Optional[str] = None
