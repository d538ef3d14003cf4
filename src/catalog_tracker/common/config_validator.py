"""Configuration validation models using Pydantic."""
from __future__ import annotations

import re
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator


DEFAULT_PRODUCT_NAME_FIELD = "상품명"
DEFAULT_CATEGORY_FIELD = "상품분류 번호"
DEFAULT_PRODUCT_CODE_FIELD = "상품코드"
DEFAULT_IMAGE_FIELD = "이미지등록(상세)"

_COLUMN_RX = re.compile(r"^[A-Z]{1,3}$")


class FieldMapping(BaseModel):
    """Names of the export columns the matcher reads."""

    product_name: str = Field(DEFAULT_PRODUCT_NAME_FIELD, description="Product name column")
    category: str = Field(DEFAULT_CATEGORY_FIELD, description="Pipe-delimited category list column")
    product_code: str = Field(DEFAULT_PRODUCT_CODE_FIELD, description="Product code column")
    image: str = Field(DEFAULT_IMAGE_FIELD, description="Slash-delimited image detail path column")

    model_config = {"frozen": True}

    @field_validator("product_name", "category", "product_code", "image")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("field names must not be blank")
        return v.strip()

    def to_summary(self) -> dict:
        """Field mapping block as written into the comparison summary."""
        return {
            "productNameField": self.product_name,
            "categoryField": self.category,
            "productCodeField": self.product_code,
            "imageField": self.image,
        }


class PathsConfig(BaseModel):
    output_dir: str = Field("outputs", description="Base directory for run folders")
    logs_dir: str = Field("logs", description="Directory for system.log and timing.log")


class InputConfig(BaseModel):
    encoding: str = Field("utf-8", description="Encoding of the snapshot exports")


class PatcherConfig(BaseModel):
    """Spreadsheet batch patching settings."""

    input_dir: str = Field("outputs/split_files", description="Directory holding the upload sheets")
    output_dir: str = Field("outputs/updated_files", description="Directory receiving patched sheets")
    file_prefix: str = Field("review_upload_part_", description="Prefix of numbered upload sheets")
    max_file_number: int = Field(15, ge=1, description="Highest sheet number in the batch")
    column: str = Field("C", description="Column holding product codes")
    first_row: int = Field(2, ge=1, description="First data row (1-based)")
    last_row: int = Field(101, ge=1, description="Last data row (inclusive)")

    @field_validator("column")
    @classmethod
    def validate_column(cls, v: str) -> str:
        col = (v or "").strip().upper()
        if not _COLUMN_RX.fullmatch(col):
            raise ValueError(f"column must be a spreadsheet column letter, got {v!r}")
        return col

    @model_validator(mode="after")
    def validate_row_range(self):
        if self.first_row > self.last_row:
            raise ValueError("first_row must not exceed last_row")
        return self

    def batch_file_names(self) -> list[str]:
        """Numbered sheet names: <prefix>01.xlsx .. <prefix>NN.xlsx."""
        return [f"{self.file_prefix}{i:02d}.xlsx" for i in range(1, self.max_file_number + 1)]


class LoggingConfig(BaseModel):
    level: str = Field("INFO", description="Log level name")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        level = (v or "INFO").strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level {v!r}")
        return level


class TrackerConfig(BaseModel):
    """Complete tracker configuration."""

    fields: FieldMapping = Field(default_factory=FieldMapping)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    input: InputConfig = Field(default_factory=InputConfig)
    patcher: PatcherConfig = Field(default_factory=PatcherConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_and_validate_config(config_dict: Optional[dict]) -> TrackerConfig:
    """
    Validate a raw configuration mapping.

    Missing sections fall back to defaults that match the marketplace export
    headers and upload batch layout.

    Args:
        config_dict: Parsed YAML mapping, or None

    Returns:
        Validated TrackerConfig object

    Raises:
        ValidationError: If configuration is invalid
    """
    return TrackerConfig(**(config_dict or {}))
