"""Configuration models describing tidyup settings."""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

OrganizeMode = Literal["auto", "type", "date", "size", "project"]


class TidyupBaseModel(BaseModel):
    """Shared configuration for tidyup Pydantic models."""

    model_config = ConfigDict(extra="forbid")


class ProcessingOptions(TidyupBaseModel):
    """Options governing how files are discovered and inspected.

    Attributes:
        recurse_directories: Whether to recurse into subdirectories by default.
        process_hidden_files: Whether dotfiles and hidden directories are visited.
        follow_symlinks: Whether symbolic links to files are organized.
        sample_size_kb: Size of the leading text sample used for content sniffing.
        inspect_images: Whether image dimensions and EXIF tags are read.
    """

    recurse_directories: bool = False
    process_hidden_files: bool = False
    follow_symlinks: bool = False
    sample_size_kb: int = Field(default=10, ge=0, le=10)
    inspect_images: bool = True


class ClassificationOptions(TidyupBaseModel):
    """Settings for the scoring pipeline.

    Attributes:
        ensemble_scale: Factor applied to the rule confidence when the ensemble decides.
        model_path: Location of the persisted confidence model.
    """

    ensemble_scale: float = Field(default=0.8, gt=0.0, le=1.0)
    model_path: str = "~/.tidyup/confidence-model.json"


class OrganizationOptions(TidyupBaseModel):
    """Settings that govern how files are placed.

    Attributes:
        default_mode: Mode used when `--mode` is not given.
        state_dirname: Directory created inside each organized root for the journal.
    """

    default_mode: OrganizeMode = "auto"
    state_dirname: str = ".tidyup"


class LoggingSettings(TidyupBaseModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging verbosity level.
    """

    level: str = "WARNING"


class CLIOptions(TidyupBaseModel):
    """CLI behavior defaults and presentation preferences.

    Attributes:
        quiet_default: Whether commands suppress non-error output by default.
        summary_default: Whether commands only print summary lines by default.
        history_limit: Default number of journal blocks shown by `tidyup history`.
    """

    quiet_default: bool = False
    summary_default: bool = False
    history_limit: int = 5


class CustomRuleSpec(TidyupBaseModel):
    """User-defined placement rule evaluated before the built-in table.

    Attributes:
        name: Label reported in the classification rationale.
        extensions: Extensions (without dots) the file must have.
        pattern: Shell-style glob the filename must match.
        mime: MIME prefix the detected type must start with.
        category: Category assigned when the rule matches.
        subcategory: Optional subcategory assigned when the rule matches.
        confidence: Confidence reported for matches.
        destination: Relative directory overriding the hierarchy table.
    """

    name: Optional[str] = None
    extensions: List[str] = Field(default_factory=list)
    pattern: Optional[str] = None
    mime: Optional[str] = None
    category: str
    subcategory: Optional[str] = None
    confidence: int = Field(default=95, ge=1, le=99)
    destination: Optional[str] = None


class TidyupConfig(TidyupBaseModel):
    """Top-level configuration struct for tidyup.

    Attributes:
        processing: Discovery and inspection settings.
        classification: Scoring pipeline settings.
        organization: Placement settings.
        logging: Logging configuration.
        cli: CLI presentation defaults.
        rules: Custom rule definitions applied before the built-in rules.
    """

    processing: ProcessingOptions = Field(default_factory=ProcessingOptions)
    classification: ClassificationOptions = Field(default_factory=ClassificationOptions)
    organization: OrganizationOptions = Field(default_factory=OrganizationOptions)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    cli: CLIOptions = Field(default_factory=CLIOptions)
    rules: List[CustomRuleSpec] = Field(default_factory=list)


__all__ = [
    "OrganizeMode",
    "TidyupBaseModel",
    "ProcessingOptions",
    "ClassificationOptions",
    "OrganizationOptions",
    "LoggingSettings",
    "CLIOptions",
    "CustomRuleSpec",
    "TidyupConfig",
]
