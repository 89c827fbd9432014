"""
Configuration management for JobFinder.

This module provides configuration management including:
- .env file support for environment variables
- JSON config file overrides
- Default values and type conversion of environment overrides
- CLI integration for config display and validation
"""

import copy
import json
import os
from pathlib import Path
from typing import Dict, Any, Optional, List
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table


CRITERIA_MODES = ("off", "display", "filter")


class ConfigManager:
    """Manages JobFinder configuration settings and .env files."""

    # Default configuration values
    DEFAULT_CONFIG = {
        # Hosted inference API settings
        "huggingface": {
            "api_key": "",
            "base_url": "https://router.huggingface.co/hf-inference/models",
            "embedding_model": "sentence-transformers/all-MiniLM-L6-v2",
            "classification_model": "facebook/bart-large-mnli",
            "timeout": 30,
            "max_retries": 3,
            "backoff_base": 0.75,
            "max_chars": 8000
        },

        # Vector store settings
        "chroma": {
            "host": "localhost",
            "port": 8000,
            "collection": "job_collection",
            "max_retries": 3,
            "backoff_base": 0.75
        },

        # Search settings
        "search": {
            "top_k": 3,
            "classification_threshold": 0.5,
            "criteria_mode": "display"
        },

        # Job corpus settings
        "corpus": {
            "path": "data/job_postings.json"
        },

        # Upload settings
        "uploads": {
            "directory": "uploads",
            "max_file_size_mb": 16
        },

        # Web app settings
        "webapp": {
            "host": "0.0.0.0",
            "port": 3000,
            "secret_key": "jobfinder-web-secret-key",
            "debug": False
        }
    }

    def __init__(self, config_dir: str = "."):
        self.config_dir = Path(config_dir)
        self.env_file = self.config_dir / ".env"
        self.config_file = self.config_dir / "jobfinder.config.json"
        self.console = Console()

        # Load configuration on initialization
        self.config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from .env and config files."""
        config = copy.deepcopy(self.DEFAULT_CONFIG)

        if self.env_file.exists():
            load_dotenv(str(self.env_file))

        if self.config_file.exists():
            try:
                with open(self.config_file, 'r') as f:
                    file_config = json.load(f)
                config = self._merge_configs(config, file_config)
            except (json.JSONDecodeError, FileNotFoundError) as e:
                self.console.print(f"[yellow]Warning: Could not load config file: {e}[/yellow]")

        # Environment variables win over the config file
        config = self._apply_env_overrides(config)

        return config

    def _merge_configs(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Overlay file settings onto `base` one section at a time."""
        merged = copy.deepcopy(base)
        for section, values in override.items():
            if isinstance(values, dict) and isinstance(merged.get(section), dict):
                merged[section].update(values)
            else:
                merged[section] = values
        return merged

    def _apply_env_overrides(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Apply environment variable overrides."""
        env_mappings = {
            # Hosted inference API
            "HF_API_KEY": ("huggingface", "api_key"),
            "JOBFINDER_HF_BASE_URL": ("huggingface", "base_url"),
            "JOBFINDER_EMBEDDING_MODEL": ("huggingface", "embedding_model"),
            "JOBFINDER_CLASSIFICATION_MODEL": ("huggingface", "classification_model"),
            "JOBFINDER_HF_TIMEOUT": ("huggingface", "timeout"),
            "JOBFINDER_HF_MAX_RETRIES": ("huggingface", "max_retries"),
            "JOBFINDER_HF_BACKOFF": ("huggingface", "backoff_base"),
            "JOBFINDER_HF_MAX_CHARS": ("huggingface", "max_chars"),

            # Vector store
            "JOBFINDER_CHROMA_HOST": ("chroma", "host"),
            "JOBFINDER_CHROMA_PORT": ("chroma", "port"),
            "JOBFINDER_CHROMA_COLLECTION": ("chroma", "collection"),
            "JOBFINDER_CHROMA_MAX_RETRIES": ("chroma", "max_retries"),
            "JOBFINDER_CHROMA_BACKOFF": ("chroma", "backoff_base"),

            # Search
            "JOBFINDER_TOP_K": ("search", "top_k"),
            "JOBFINDER_CLASSIFICATION_THRESHOLD": ("search", "classification_threshold"),
            "JOBFINDER_CRITERIA_MODE": ("search", "criteria_mode"),

            # Corpus and uploads
            "JOBFINDER_CORPUS_PATH": ("corpus", "path"),
            "JOBFINDER_UPLOAD_DIR": ("uploads", "directory"),
            "JOBFINDER_MAX_UPLOAD_MB": ("uploads", "max_file_size_mb"),

            # Web app
            "JOBFINDER_HOST": ("webapp", "host"),
            "JOBFINDER_PORT": ("webapp", "port"),
            "JOBFINDER_SECRET_KEY": ("webapp", "secret_key"),
            "JOBFINDER_DEBUG": ("webapp", "debug")
        }

        for env_var, (section, key) in env_mappings.items():
            value = os.getenv(env_var)
            if value is not None:
                # Type conversion based on default value type
                default_value = self.DEFAULT_CONFIG[section][key]
                try:
                    if isinstance(default_value, bool):
                        config[section][key] = value.lower() in ('true', '1', 'yes', 'on')
                    elif isinstance(default_value, int):
                        config[section][key] = int(value)
                    elif isinstance(default_value, float):
                        config[section][key] = float(value)
                    else:
                        config[section][key] = value
                except ValueError:
                    self.console.print(f"[yellow]Warning: Invalid value for {env_var}: {value}[/yellow]")

        return config

    def get(self, section: str, key: Optional[str] = None) -> Any:
        """Get configuration value."""
        if key is None:
            return self.config.get(section, {})
        return self.config.get(section, {}).get(key)

    def validate_config(self) -> List[str]:
        """Validate current configuration and return list of issues."""
        issues = []

        if not self.get("huggingface", "api_key"):
            issues.append("HF_API_KEY is not set; hosted inference calls will be rejected")

        hf_timeout = self.get("huggingface", "timeout")
        if not isinstance(hf_timeout, (int, float)) or hf_timeout <= 0:
            issues.append(f"Invalid inference timeout: {hf_timeout}")

        for section in ("huggingface", "chroma"):
            retries = self.get(section, "max_retries")
            if not isinstance(retries, int) or retries < 0:
                issues.append(f"Invalid {section} max_retries: {retries}")

        chroma_port = self.get("chroma", "port")
        if not isinstance(chroma_port, int) or chroma_port < 1 or chroma_port > 65535:
            issues.append(f"Invalid Chroma port: {chroma_port}")

        top_k = self.get("search", "top_k")
        if not isinstance(top_k, int) or top_k < 1:
            issues.append(f"Invalid top_k: {top_k}")

        threshold = self.get("search", "classification_threshold")
        if not isinstance(threshold, (int, float)) or threshold < 0 or threshold > 1:
            issues.append(f"Invalid classification threshold: {threshold}")

        criteria_mode = self.get("search", "criteria_mode")
        if criteria_mode not in CRITERIA_MODES:
            issues.append(f"Invalid criteria mode: {criteria_mode} (expected one of {', '.join(CRITERIA_MODES)})")

        corpus_path = self.get("corpus", "path")
        if not corpus_path or not Path(corpus_path).exists():
            issues.append(f"Job corpus file not found: {corpus_path}")

        return issues

    def display_config(self) -> None:
        """Display current configuration in a formatted table."""
        self.console.print("[bold cyan]JobFinder Configuration[/bold cyan]")
        self.console.print()

        for section_name, section_data in self.config.items():
            table = Table(title=f"{section_name.title()} Settings")
            table.add_column("Setting", style="cyan")
            table.add_column("Value", style="green")
            table.add_column("Type", style="dim")

            for key, value in section_data.items():
                value_str = str(value)
                if key in ("api_key", "secret_key") and value:
                    value_str = "********"
                elif isinstance(value, bool):
                    value_str = "✓" if value else "✗"
                elif isinstance(value, str) and len(value) > 50:
                    value_str = value[:47] + "..."

                table.add_row(
                    key.replace("_", " ").title(),
                    value_str,
                    type(value).__name__
                )

            self.console.print(table)
            self.console.print()

    def get_env_template(self) -> str:
        """Generate a template .env file with all available settings."""
        template_lines = [
            "# JobFinder Configuration",
            "# Copy this file to .env and modify as needed",
            "",
            "# Hosted Inference API (required)",
            "HF_API_KEY=",
            "# JOBFINDER_HF_BASE_URL=https://router.huggingface.co/hf-inference/models",
            "# JOBFINDER_EMBEDDING_MODEL=sentence-transformers/all-MiniLM-L6-v2",
            "# JOBFINDER_CLASSIFICATION_MODEL=facebook/bart-large-mnli",
            "# JOBFINDER_HF_TIMEOUT=30",
            "# JOBFINDER_HF_MAX_RETRIES=3",
            "# JOBFINDER_HF_BACKOFF=0.75",
            "# JOBFINDER_HF_MAX_CHARS=8000",
            "",
            "# Vector Store Settings",
            "# JOBFINDER_CHROMA_HOST=localhost",
            "# JOBFINDER_CHROMA_PORT=8000",
            "# JOBFINDER_CHROMA_COLLECTION=job_collection",
            "# JOBFINDER_CHROMA_MAX_RETRIES=3",
            "# JOBFINDER_CHROMA_BACKOFF=0.75",
            "",
            "# Search Settings",
            "# JOBFINDER_TOP_K=3",
            "# JOBFINDER_CLASSIFICATION_THRESHOLD=0.5",
            "# JOBFINDER_CRITERIA_MODE=display",
            "",
            "# Corpus and Upload Settings",
            "# JOBFINDER_CORPUS_PATH=data/job_postings.json",
            "# JOBFINDER_UPLOAD_DIR=uploads",
            "# JOBFINDER_MAX_UPLOAD_MB=16",
            "",
            "# Web App Settings",
            "# JOBFINDER_HOST=0.0.0.0",
            "# JOBFINDER_PORT=3000",
            "# JOBFINDER_SECRET_KEY=change-me",
            "# JOBFINDER_DEBUG=false",
            ""
        ]

        return "\n".join(template_lines)

    def export_env_template(self, output_path: Optional[str] = None) -> bool:
        """Export .env template to file."""
        try:
            template_path = output_path or ".env.template"
            with open(template_path, 'w') as f:
                f.write(self.get_env_template())
            self.console.print(f"[green]✓ .env template exported to: {template_path}[/green]")
            return True
        except OSError as e:
            self.console.print(f"[red]Error exporting template: {e}[/red]")
            return False


def get_config_manager() -> ConfigManager:
    """Get global configuration manager instance."""
    if not hasattr(get_config_manager, '_instance'):
        get_config_manager._instance = ConfigManager()
    return get_config_manager._instance
