"""Application configuration: settings schema, config.yaml loader, logging setup"""

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field


CONFIG_FILE = "config.yaml"
ENV_PREFIX = "NOTETEX_"


class Settings(BaseModel):
    """Read-only snapshot of every option the conversion stages consume."""
    model_config = ConfigDict(frozen=True)

    # preamble / document
    document_class:   str   = "extarticle"
    font_size:        str   = Field(default="",      description="Class option, e.g. 11pt; empty for class default")
    author:           str   = ""
    title:            str   = Field(default="",      description="Emits \\title + \\maketitle when set")
    margin:           str   = Field(default="0.9in", description="geometry margin; empty loads geometry without options")
    paragraph_indent: int   = Field(default=0, ge=0, description="\\parindent in pt")

    # toggles
    add_table_of_contents:            bool = True
    add_new_page_before_bibliography: bool = True
    allow_display_breaks:             bool = True
    convert_non_embedded_references:  bool = Field(default=True, description="Flatten [[target|text]] links to text")
    resolve_dynamic_inclusions:       bool = Field(default=True, description="Expand !ref{name} markers")

    # tables
    table_package:   str   = Field(default="tabularx", pattern="^(tabularx|longtable|tabular)$")
    table_alignment: str   = Field(default="center",   pattern="^(left|center|right)$")
    table_rel_width: float = Field(default=1.2, ge=0, description="tabularx width as a fraction of \\linewidth; 0 = full")

    # bibliography
    bibliography_style: str = "apacite"
    bibliography_file:  str = "BIBTEX"

    # compilation
    latex_compiler: str  = "pdflatex"
    auto_compile:   bool = False

    # store collections (vault-relative)
    vault_dir:            str = Field(default=".", description="Root directory of the note vault")
    writing_path:         str = "✍Writing"
    equation_blocks_path: str = "✍Writing/equation blocks"
    table_blocks_path:    str = "✍Writing/table blocks"
    figure_blocks_path:   str = "✍Writing/figure blocks"

    # ambient
    db_url:    str = Field(default="sqlite:///notetex.db", description="Conversion history database")
    log_level: str = Field(default="WARNING", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")


def load_config(overrides: dict[str, Any] = None) -> Settings:
    """Load Settings from config.yaml, then NOTETEX_<FIELD> env vars, then non-None CLI overrides."""
    data: dict[str, Any] = {}
    if Path(CONFIG_FILE).exists():
        try:
            data = yaml.safe_load(Path(CONFIG_FILE).read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid {CONFIG_FILE}: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Invalid {CONFIG_FILE}: expected a mapping, got {type(data).__name__}")

    for name in Settings.model_fields:
        if val := os.getenv(f"{ENV_PREFIX}{name.upper()}"):
            data[name] = val

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})
    return Settings(**data)


def configure_logging(level: int | str) -> None:
    """Configure root logging for CLI runs."""
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")
    logging.getLogger().setLevel(level)
