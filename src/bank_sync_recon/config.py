"""Configuration loader and validation for reconciliation settings."""

from enum import Enum
from pathlib import Path
from typing import Any, Optional
import logging

import yaml
from pydantic import BaseModel, Field, ValidationError

from .utils.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class DuplicateVendorIdPolicy(str, Enum):
    """What to do when the local batch repeats a vendor id."""

    ERROR = "error"
    FIRST_MATCH = "first_match"


class InputConfig(BaseModel):
    """Configuration for reading transaction batches."""

    encoding: str = "utf-8"
    delimiter: str = ","
    # Transaction attribute -> field name in the batch files
    column_mappings: dict[str, str] = Field(
        default_factory=lambda: {
            "vendor_id": "vendorId",
            "amount": "amount",
            "original_bank_label": "originalBankLabel",
            "date": "date",
        }
    )


class ReconciliationSettings(BaseModel):
    """Settings for the reconciliation engine."""

    duplicate_vendor_ids: DuplicateVendorIdPolicy = DuplicateVendorIdPolicy.ERROR


class ExcelOutputConfig(BaseModel):
    """Configuration for Excel output."""

    filename_template: str = "reconciliation_{date}_{time}.xlsx"


class JsonOutputConfig(BaseModel):
    """Configuration for JSON output."""

    indent: Optional[int] = 2


class SheetConfig(BaseModel):
    """Configuration for a report sheet."""

    enabled: bool = True
    name: str


class SheetsConfig(BaseModel):
    """Configuration for all report sheets."""

    summary: SheetConfig = Field(default_factory=lambda: SheetConfig(name="Summary"))
    new: SheetConfig = Field(default_factory=lambda: SheetConfig(name="New"))
    recovered: SheetConfig = Field(default_factory=lambda: SheetConfig(name="Recovered"))
    updated: SheetConfig = Field(default_factory=lambda: SheetConfig(name="Updated"))
    dropped: SheetConfig = Field(default_factory=lambda: SheetConfig(name="Dropped"))
    gap_events: SheetConfig = Field(default_factory=lambda: SheetConfig(name="Gap Events"))


class OutputConfig(BaseModel):
    """Configuration for output."""

    excel: ExcelOutputConfig = Field(default_factory=ExcelOutputConfig)
    json_output: JsonOutputConfig = Field(default_factory=JsonOutputConfig, alias="json")
    sheets: SheetsConfig = Field(default_factory=SheetsConfig)

    model_config = {"populate_by_name": True}


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file: Optional[str] = None


class ReconConfig(BaseModel):
    """Main configuration model for reconciliation."""

    input: InputConfig = Field(default_factory=InputConfig)
    reconciliation: ReconciliationSettings = Field(default_factory=ReconciliationSettings)
    output: OutputConfig = Field(default_factory=OutputConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    config_file_path: Optional[str] = None


def get_default_config() -> dict[str, Any]:
    """Return the default configuration as a dictionary."""
    return {
        "input": {
            "encoding": "utf-8",
            "delimiter": ",",
            "column_mappings": {
                "vendor_id": "vendorId",
                "amount": "amount",
                "original_bank_label": "originalBankLabel",
                "date": "date",
            },
        },
        "reconciliation": {
            "duplicate_vendor_ids": DuplicateVendorIdPolicy.ERROR.value,
        },
        "output": {
            "excel": {
                "filename_template": "reconciliation_{date}_{time}.xlsx",
            },
            "json": {
                "indent": 2,
            },
            "sheets": {
                "summary": {"enabled": True, "name": "Summary"},
                "new": {"enabled": True, "name": "New"},
                "recovered": {"enabled": True, "name": "Recovered"},
                "updated": {"enabled": True, "name": "Updated"},
                "dropped": {"enabled": True, "name": "Dropped"},
                "gap_events": {"enabled": True, "name": "Gap Events"},
            },
        },
        "logging": {
            "level": "INFO",
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            "file": None,
        },
    }


def load_config(config_path: Optional[Path] = None) -> ReconConfig:
    """
    Load configuration from a YAML file or use defaults.

    Args:
        config_path: Path to YAML configuration file (optional)

    Returns:
        ReconConfig object with loaded or default settings

    Raises:
        ConfigurationError: If the file is not valid YAML or fails validation
    """
    config_dict = get_default_config()

    if config_path and config_path.exists():
        logger.info(f"Loading configuration from: {config_path}")
        try:
            with open(config_path, "r") as f:
                user_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e

        if not isinstance(user_config, dict):
            raise ConfigurationError(f"Configuration root must be a mapping: {config_path}")

        # Deep merge user config into defaults
        config_dict = _deep_merge(config_dict, user_config)
        config_dict["config_file_path"] = str(config_path)
    else:
        logger.info("Using default configuration")

    try:
        return ReconConfig(**config_dict)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


def _deep_merge(base: dict, override: dict) -> dict:
    """
    Deep merge two dictionaries.

    Args:
        base: Base dictionary
        override: Dictionary to merge on top

    Returns:
        Merged dictionary
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def generate_default_config(output_path: Path) -> None:
    """
    Generate a default configuration file.

    Args:
        output_path: Path to write the configuration file
    """
    config_dict = get_default_config()

    yaml_content = """# Transaction reconciliation configuration
# reconciliation.duplicate_vendor_ids: "error" rejects a local batch that
# repeats a vendor id, "first_match" matches against the first occurrence.

"""
    yaml_content += yaml.dump(config_dict, default_flow_style=False, sort_keys=False)

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w") as f:
        f.write(yaml_content)

    logger.info(f"Generated configuration file: {output_path}")
