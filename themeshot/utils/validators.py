"""Schema validation and config loading.

Provides centralized validation using pydantic:
    - Pipeline config (pipeline.v1.yaml): paths, render size, compare
      thresholds, contact-sheet layout, audit gate, workers, logging
    - Theme catalog (theme-list.json): ordered {slug, name, dark} records
    - Theme document (<slug>.theme.json): required top-level fields, UI
      component keys and the icon color palette

All loaders fail fast with actionable messages (offending keys, expected
values). The theme document schema is strict and used by the audit; the
render path reads theme documents leniently so that a theme missing an
optional component still renders with documented fallbacks.

Usage:
    from themeshot.utils import validators

    cfg = validators.load_pipeline_config("configs/pipeline.v1.yaml")
    entries = validators.load_catalog(cfg.paths.themes_dir / "theme-list.json")
"""

import json
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    RootModel,
    ValidationError,
    field_validator,
    model_validator,
)

from . import fs


class ConfigError(Exception):
    """Raised when a config or catalog file fails validation."""


SLUG_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")

REQUIRED_UI_COMPONENTS = (
    "*",
    "Editor",
    "EditorTabs",
    "Tree",
    "List",
    "Button",
    "ToolWindow",
    "StatusBar",
    "Popup",
    "Menu",
    "ProgressBar",
    "ScrollBar",
)

REQUIRED_DEFAULT_ROLES = (
    "background",
    "foreground",
    "selectionBackground",
    "separatorColor",
    "disabledForeground",
)


# ============================================================================
# CATALOG SCHEMA
# ============================================================================

class CatalogEntryV1(BaseModel):
    """One theme-list.json record."""
    slug: str = Field(..., description="Unique, filesystem-safe theme id")
    name: str = Field(..., min_length=1, description="Display name")
    dark: bool = Field(..., description="True for dark themes")

    @field_validator('slug')
    @classmethod
    def validate_slug(cls, v: str) -> str:
        if not SLUG_PATTERN.match(v):
            raise ValueError(
                f"Slug must match {SLUG_PATTERN.pattern} (no path separators), got {v!r}"
            )
        return v


class CatalogV1(RootModel[List[CatalogEntryV1]]):
    """Ordered list of catalog entries with unique slugs."""

    @model_validator(mode='after')
    def validate_unique_slugs(self) -> 'CatalogV1':
        seen = set()
        for entry in self.root:
            if entry.slug in seen:
                raise ValueError(f"Duplicate slug in catalog: {entry.slug!r}")
            seen.add(entry.slug)
        return self


# ============================================================================
# THEME DOCUMENT SCHEMA
# ============================================================================

class ThemeDocumentV1(BaseModel):
    """IDE theme document (<slug>.theme.json)."""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    name: str = Field(..., min_length=1)
    dark: bool
    author: str
    editor_scheme: str = Field(..., alias="editorScheme")
    ui: Dict[str, Dict[str, Any]]
    icons: Dict[str, Any]

    @field_validator('editor_scheme')
    @classmethod
    def validate_scheme_path(cls, v: str) -> str:
        if not v.startswith("/themes/"):
            raise ValueError(f"editorScheme must start with '/themes/', got {v!r}")
        return v

    @field_validator('ui')
    @classmethod
    def validate_ui_components(cls, v: Dict[str, Dict[str, Any]]) -> Dict[str, Dict[str, Any]]:
        missing = [c for c in REQUIRED_UI_COMPONENTS if c not in v]
        if missing:
            raise ValueError(f"ui is missing components: {missing}")
        missing_roles = [r for r in REQUIRED_DEFAULT_ROLES if r not in v["*"]]
        if missing_roles:
            raise ValueError(f"ui['*'] is missing roles: {missing_roles}")
        return v

    @field_validator('icons')
    @classmethod
    def validate_icon_palette(cls, v: Dict[str, Any]) -> Dict[str, Any]:
        if not isinstance(v.get("ColorPalette"), dict):
            raise ValueError("icons must contain a 'ColorPalette' mapping")
        return v


# ============================================================================
# PIPELINE CONFIG SCHEMA V1
# ============================================================================

class PathsConfig(BaseModel):
    """Input and output locations."""
    model_config = ConfigDict(extra="forbid")

    themes_dir: Path = Field(Path("themes"), description="theme-list.json, *.theme.json, *.xml")
    screenshots_dir: Path = Field(Path("build/screenshots"), description="Rendered PNGs and reports")
    baselines_dir: Path = Field(Path("baselines"), description="Approved reference PNGs")
    diffs_dir: Path = Field(Path("build/screenshots/diffs"), description="Diff PNGs for DIFF results")


class RenderConfig(BaseModel):
    """Synthetic screenshot canvas."""
    model_config = ConfigDict(extra="forbid")

    width: int = Field(800, ge=400)
    height: int = Field(520, ge=300)


class CompareConfig(BaseModel):
    """Pixel diff thresholds."""
    model_config = ConfigDict(extra="forbid")

    pixel_threshold: int = Field(5, ge=0, le=255, description="Max channel delta treated as antialiasing")
    max_diff_percent: float = Field(1.0, ge=0.0, le=100.0, description="OK/DIFF boundary (inclusive OK)")
    match_alpha: int = Field(0x40, ge=0, le=255, description="Alpha of matching pixels in diff image")


class ContactSheetConfig(BaseModel):
    """Grid and dark/light strip layout."""
    model_config = ConfigDict(extra="forbid")

    thumb_width: int = Field(400, gt=0)
    thumb_height: int = Field(260, gt=0)
    padding: int = Field(8, ge=0)
    label_height: int = Field(20, ge=0)
    columns: int = Field(4, ge=1)


class AuditConfig(BaseModel):
    """Theme audit gates."""
    model_config = ConfigDict(extra="forbid")

    min_contrast: float = Field(3.0, ge=1.0, le=21.0, description="Min '*' background/foreground contrast")


class LoggingConfig(BaseModel):
    """Arguments forwarded to logging_config.setup_logging."""
    model_config = ConfigDict(extra="forbid")

    log_level: str = "INFO"
    log_file: Optional[str] = None
    json_lines: bool = Field(False, description="JSON-lines format for the log file")
    color: bool = True

    @field_validator('log_level')
    @classmethod
    def validate_level(cls, v: str) -> str:
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed:
            raise ValueError(f"log_level must be one of {allowed}, got '{v}'")
        return v.upper()


class PipelineConfigV1(BaseModel):
    """Pipeline config schema v1 (complete config file)."""
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    schema_version: str = Field("pipeline.v1", alias="schema", description="Schema version")
    paths: PathsConfig = Field(default_factory=PathsConfig)
    render: RenderConfig = Field(default_factory=RenderConfig)
    compare: CompareConfig = Field(default_factory=CompareConfig)
    contact_sheet: ContactSheetConfig = Field(default_factory=ContactSheetConfig)
    audit: AuditConfig = Field(default_factory=AuditConfig)
    workers: int = Field(4, ge=1, le=64, description="Parallel per-theme workers (1 = serial)")
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator('schema_version')
    @classmethod
    def validate_schema(cls, v: str) -> str:
        if v != "pipeline.v1":
            raise ValueError(f"Expected schema 'pipeline.v1', got '{v}'")
        return v


# ============================================================================
# LOADERS
# ============================================================================

def _load_yaml_document(path: Union[str, Path]) -> Any:
    try:
        return fs.load_yaml(path)
    except yaml.YAMLError as e:
        raise ConfigError(str(e)) from e


def _load_json_document(path: Union[str, Path]) -> Any:
    try:
        return fs.load_json(path)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ConfigError(str(e)) from e


def load_pipeline_config(path: Union[str, Path]) -> PipelineConfigV1:
    """Load and validate a pipeline config.

    Parameters
    ----------
    path : Union[str, Path]
        Path to pipeline.v1.yaml

    Returns
    -------
    PipelineConfigV1
        Validated config; relative paths are kept as written (resolved
        against the working directory by the caller)

    Raises
    ------
    FileNotFoundError
        If file doesn't exist
    ConfigError
        If parsing or validation fails
    """
    data = _load_yaml_document(path) or {}
    try:
        return PipelineConfigV1.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid pipeline config {path}:\n{e}") from e


def load_catalog(path: Union[str, Path]) -> List[CatalogEntryV1]:
    """Load and validate theme-list.json.

    Returns
    -------
    List[CatalogEntryV1]
        Entries in file order

    Raises
    ------
    FileNotFoundError
        If file doesn't exist
    ConfigError
        If the list is malformed, a slug is unsafe, or slugs repeat
    """
    data = _load_json_document(path)
    try:
        return CatalogV1.model_validate(data).root
    except ValidationError as e:
        raise ConfigError(f"Invalid theme catalog {path}:\n{e}") from e


def validate_theme_document(doc: Any) -> List[str]:
    """Validate a parsed theme document against ThemeDocumentV1.

    Returns
    -------
    List[str]
        One human-readable message per violation; empty when valid
    """
    try:
        ThemeDocumentV1.model_validate(doc)
    except ValidationError as e:
        messages = []
        for err in e.errors():
            loc = ".".join(str(part) for part in err["loc"]) or "<root>"
            messages.append(f"{loc}: {err['msg']}")
        return messages
    return []
