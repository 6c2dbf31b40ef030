"""
Configuration file parser for tripplanner
Handles YAML and JSON files with validation
"""

import json
from pathlib import Path
from typing import Any, Dict, Optional, Type, TypeVar, Union

import yaml
from pydantic import BaseModel, ValidationError

from tripplanner.core.models import TripSettings

from .models import ConfigFormat, PlannerConfig, SchedulePlan

ModelT = TypeVar("ModelT", bound=BaseModel)


class ConfigParserError(Exception):
    """Configuration parsing error"""
    pass


class ConfigParser:
    """Parser for tripplanner configuration, trip and plan files"""

    @staticmethod
    def detect_format(file_path: Path) -> ConfigFormat:
        """Detect configuration file format from extension"""
        suffix = file_path.suffix.lower()

        if suffix in [".yaml", ".yml"]:
            return ConfigFormat.YAML
        elif suffix == ".json":
            return ConfigFormat.JSON
        else:
            raise ConfigParserError(f"Unsupported file format: {suffix}")

    @staticmethod
    def load_file(file_path: Path) -> Dict[str, Any]:
        """Load file content as a dictionary"""
        if not file_path.exists():
            raise ConfigParserError(f"Configuration file not found: {file_path}")

        format_type = ConfigParser.detect_format(file_path)

        try:
            content = file_path.read_text(encoding="utf-8")
            if format_type == ConfigFormat.YAML:
                return yaml.safe_load(content) or {}
            return json.loads(content)
        except yaml.YAMLError as e:
            raise ConfigParserError(f"Invalid YAML syntax: {e}")
        except json.JSONDecodeError as e:
            raise ConfigParserError(f"Invalid JSON syntax: {e}")
        except OSError as e:
            raise ConfigParserError(f"Error reading file: {e}")

    @staticmethod
    def save_file(
        model: BaseModel, file_path: Path, format_type: Optional[ConfigFormat] = None
    ) -> None:
        """Save any pydantic model to a YAML or JSON file"""
        if format_type is None:
            format_type = ConfigParser.detect_format(file_path)

        file_path.parent.mkdir(parents=True, exist_ok=True)
        data = model.model_dump(exclude_none=True, mode="json")

        if format_type == ConfigFormat.YAML:
            content = yaml.dump(
                data,
                default_flow_style=False,
                allow_unicode=True,
                sort_keys=False,
                indent=2,
            )
        else:
            content = json.dumps(data, indent=2, ensure_ascii=False)

        try:
            file_path.write_text(content, encoding="utf-8")
        except OSError as e:
            raise ConfigParserError(f"Error saving file: {e}")

    @staticmethod
    def _parse(file_path: Union[str, Path], model: Type[ModelT], label: str) -> ModelT:
        data = ConfigParser.load_file(Path(file_path))
        if not isinstance(data, dict):
            raise ConfigParserError(
                f"Invalid {label}: expected a mapping at the top level, got {type(data).__name__}"
            )
        try:
            return model(**data)
        except ValidationError as e:
            raise ConfigParserError(f"Invalid {label}: {e}")

    @staticmethod
    def parse_config(file_path: Union[str, Path]) -> PlannerConfig:
        """
        Parse a planner configuration file

        Args:
            file_path: Path to configuration file

        Returns:
            PlannerConfig instance

        Raises:
            ConfigParserError: If parsing fails
        """
        return ConfigParser._parse(file_path, PlannerConfig, "configuration")

    @staticmethod
    def parse_trip_settings(file_path: Union[str, Path]) -> TripSettings:
        """Parse a trip file (destinations, arrival/departure and preferences)"""
        return ConfigParser._parse(file_path, TripSettings, "trip settings")

    @staticmethod
    def parse_schedule_plan(file_path: Union[str, Path]) -> SchedulePlan:
        """Parse a plan file (ordered route and activities)"""
        return ConfigParser._parse(file_path, SchedulePlan, "schedule plan")

    @staticmethod
    def load_or_default(file_path: Optional[Union[str, Path]]) -> PlannerConfig:
        """Parse the given config file, or fall back to defaults when none is given"""
        if file_path is None:
            return PlannerConfig()
        return ConfigParser.parse_config(file_path)
