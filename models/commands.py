from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from .processing_settings import ProcessingSettings


class ProcessDataCommand(BaseModel):
    type: Literal["process-data"] = "process-data"
    csv_data: str = Field(alias="csvData")
    settings: ProcessingSettings = Field(default_factory=ProcessingSettings)

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ProcessSheetsCommand(BaseModel):
    type: Literal["process-sheets"] = "process-sheets"
    sheets_url: str = Field(alias="sheetsUrl")
    settings: ProcessingSettings = Field(default_factory=ProcessingSettings)

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class TestConnectionCommand(BaseModel):
    __test__ = False  # not a pytest class

    type: Literal["test-connection"] = "test-connection"
    sheets_url: str = Field(alias="sheetsUrl")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


Command = Annotated[
    Union[ProcessDataCommand, ProcessSheetsCommand, TestConnectionCommand],
    Field(discriminator="type"),
]

command_adapter: TypeAdapter[Command] = TypeAdapter(Command)
