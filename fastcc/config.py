"""Configuration management for fast-cc-hooks."""
from pathlib import Path
from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, PrivateAttr, ValidationError
import tomli
import yaml
import os
import re

from .errors import ConfigError, ConfigErrorKind
from .models import DEFAULT_TYPES

DEFAULT_CONFIG_FILENAME = ".fast-cc-hooks.yaml"
GLOBAL_CONFIG_DIRNAME = ".fast-cc"
GLOBAL_CONFIG_FILENAME = "fast-cc-config.yaml"
PYPROJECT_FILENAME = "pyproject.toml"
PYPROJECT_TABLE = "fast-cc-hooks"
DEFAULT_MAX_SUBJECT_LENGTH = 72
LOG_DIRECTORY = ".fast-cc"
ENTERPRISE_SCOPES = ["api", "web", "cli", "db", "auth", "core", "mw", "net", "sec", "iam", "app"]


class CustomRule(BaseModel):
    """A team-specific rule: the message must match ``pattern``."""

    name: str = Field(default="", description="Rule name reported in violations")
    pattern: str = Field(default="", description="Regular expression the message must contain")
    message: str = Field(default="", description="Explanation shown when the rule fails")


class Config(BaseModel):
    """Validation policy for commit messages.

    This class defines all configurable options that can be set either via a
    config file, ``pyproject.toml`` or environment variables. It is plain
    data; :func:`fastcc.commit_message.build_rule_set` turns it into a
    compiled, immutable rule set.
    """

    types: List[str] = Field(
        default_factory=lambda: list(DEFAULT_TYPES),
        description="Allowed commit types"
    )

    scopes: List[str] = Field(
        default_factory=list,
        description="Allowed scopes (empty means any scope is accepted)"
    )

    scope_required: bool = Field(
        default=False,
        description="Whether every commit must carry a scope"
    )

    max_subject_length: int = Field(
        default=DEFAULT_MAX_SUBJECT_LENGTH,
        description="Maximum subject length in characters"
    )

    allow_breaking_changes: bool = Field(
        default=True,
        description="Whether '!' and BREAKING CHANGE footers are permitted"
    )

    require_jira_ticket: bool = Field(
        default=False,
        description="Require a JIRA ticket reference such as ABC-123"
    )

    require_ticket_ref: bool = Field(
        default=False,
        description="Require any ticket reference (JIRA, #123, GH-456)"
    )

    jira_ticket_pattern: Optional[str] = Field(
        default=None,
        description="Regular expression JIRA ticket ids must match"
    )

    jira_projects: List[str] = Field(
        default_factory=list,
        description="Allowed JIRA project keys (empty means any project)"
    )

    custom_rules: List[CustomRule] = Field(
        default_factory=list,
        description="Additional 'must contain' pattern rules"
    )

    ignore_patterns: List[str] = Field(
        default_factory=list,
        description="Messages matching any of these patterns skip validation"
    )

    always_log: bool = Field(
        default=False,
        description="Whether to always write a timestamped validation log"
    )

    log_file: Optional[str] = Field(
        default=None,
        description="Path to a validation log file"
    )

    _source: Optional[Path] = PrivateAttr(default=None)

    @staticmethod
    def _sanitize_string(value: str) -> str:
        """Strip control characters and bound the length of a string value."""
        if not value:
            return value

        value = re.sub(r'[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]', '', value)

        if len(value) > 1000:
            value = value[:1000]

        return value.strip()

    @staticmethod
    def _is_safe_path(path: str) -> bool:
        """Check if a path is safe (relative, no path traversal)."""
        if not path:
            return False

        if '..' in path or path.startswith('/') or '\\' in path:
            return False

        return not os.path.isabs(path)

    @property
    def source(self) -> Optional[Path]:
        """The file this configuration was loaded from, if any."""
        return self._source

    @classmethod
    def enterprise(cls) -> 'Config':
        """Preset for teams that track work in JIRA: fixed scopes, ticket required."""
        return cls(scopes=list(ENTERPRISE_SCOPES), require_jira_ticket=True)

    @staticmethod
    def global_config_path() -> Path:
        return Path.home() / GLOBAL_CONFIG_DIRNAME / GLOBAL_CONFIG_FILENAME

    @classmethod
    def load(cls, path: Optional[Path] = None, search_dir: Optional[Path] = None) -> 'Config':
        """Load configuration.

        Resolution order: an explicit ``path``, then ``.fast-cc-hooks.yaml``
        in ``search_dir``, then the ``[tool.fast-cc-hooks]`` table of
        ``pyproject.toml`` in ``search_dir``, then the user's global
        ``~/.fast-cc/fast-cc-config.yaml``, then built-in defaults.

        Args:
            path: Explicit configuration file (YAML, or TOML by extension)
            search_dir: Directory to look for project configuration in;
                defaults to the current working directory

        Returns:
            Config: Configuration object with values from file or defaults

        Raises:
            ConfigError: If the explicit path is missing or a file cannot be
                parsed into a valid configuration
        """
        if path is not None:
            path = Path(path)
            if not path.is_file():
                raise ConfigError(ConfigErrorKind.INVALID_FILE, f"config file not found: {path}")
            return cls._from_file(path)

        search_dir = Path(search_dir) if search_dir is not None else Path.cwd()

        local_path = search_dir / DEFAULT_CONFIG_FILENAME
        if local_path.is_file():
            return cls._from_file(local_path)

        pyproject_path = search_dir / PYPROJECT_FILENAME
        if pyproject_path.is_file():
            section = cls._read_toml(pyproject_path).get("tool", {}).get(PYPROJECT_TABLE)
            if section is not None:
                return cls._from_data(section, pyproject_path)

        global_path = cls.global_config_path()
        if global_path.is_file():
            return cls._from_file(global_path)

        return cls._build({}, "FAST_CC_* environment variables")

    @classmethod
    def _from_file(cls, path: Path) -> 'Config':
        if path.suffix == ".toml":
            data = cls._read_toml(path)
            if "tool" in data:
                data = data["tool"].get(PYPROJECT_TABLE, {})
            return cls._from_data(data, path)

        try:
            with path.open('r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(ConfigErrorKind.INVALID_FILE, f"invalid YAML in {path}: {e}") from e
        return cls._from_data(data or {}, path)

    @staticmethod
    def _read_toml(path: Path) -> Dict[str, Any]:
        try:
            with path.open('rb') as f:
                return tomli.load(f)
        except tomli.TOMLDecodeError as e:
            raise ConfigError(ConfigErrorKind.INVALID_FILE, f"invalid TOML in {path}: {e}") from e

    @classmethod
    def _from_data(cls, data: Any, path: Path) -> 'Config':
        if not isinstance(data, dict):
            raise ConfigError(
                ConfigErrorKind.INVALID_FILE,
                f"configuration in {path} must be a mapping of settings"
            )

        if isinstance(data.get('log_file'), str):
            data['log_file'] = cls._sanitize_string(data['log_file'])

        config = cls._build(data, str(path))
        config._source = path
        return config

    @classmethod
    def _build(cls, data: Dict[str, Any], origin: str) -> 'Config':
        """Construct a config, reporting bad values as :class:`ConfigError`."""
        try:
            return cls(**data)
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
                for error in e.errors()
            )
            raise ConfigError(ConfigErrorKind.INVALID_FILE, f"invalid settings in {origin}: {problems}") from e

    def save(self, path: Path) -> None:
        """Save configuration as YAML.

        Args:
            path: Destination file; parent directories are created
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        config_dict = {k: v for k, v in self.model_dump().items() if v is not None}

        if config_dict.get('log_file') and not self._is_safe_path(config_dict['log_file']):
            config_dict.pop('log_file')

        with path.open('w', encoding='utf-8') as f:
            yaml.safe_dump(config_dict, f, sort_keys=False, default_flow_style=False)
        self._source = path

    def get_log_file(self) -> Optional[Path]:
        """Get the path to the log file.

        If always_log is True, generates a timestamped log file name.
        Otherwise, returns the configured log_file path if set and safe.

        Returns:
            Optional[Path]: Path to the log file, or None if logging is disabled
        """
        if self.always_log:
            timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
            return Path(LOG_DIRECTORY) / f"fcc_log-{timestamp}.log"
        elif self.log_file:
            if self._is_safe_path(self.log_file):
                return Path(self.log_file)
            return None
        return None

    def __init__(self, **data):
        """Initialize config with environment variable support."""
        env_data = {}

        env_mapping = {
            'FAST_CC_TYPES': 'types',
            'FAST_CC_SCOPES': 'scopes',
            'FAST_CC_SCOPE_REQUIRED': 'scope_required',
            'FAST_CC_MAX_SUBJECT_LENGTH': 'max_subject_length',
            'FAST_CC_ALLOW_BREAKING_CHANGES': 'allow_breaking_changes',
            'FAST_CC_REQUIRE_JIRA_TICKET': 'require_jira_ticket',
            'FAST_CC_REQUIRE_TICKET_REF': 'require_ticket_ref',
            'FAST_CC_JIRA_TICKET_PATTERN': 'jira_ticket_pattern',
            'FAST_CC_JIRA_PROJECTS': 'jira_projects',
            'FAST_CC_ALWAYS_LOG': 'always_log',
            'FAST_CC_LOG_FILE': 'log_file',
        }

        for env_var, field_name in env_mapping.items():
            if env_var in os.environ:
                value = os.environ[env_var]

                if field_name in ['types', 'scopes', 'jira_projects']:
                    value = [item.strip() for item in value.split(',') if item.strip()]

                elif field_name in ['scope_required', 'allow_breaking_changes', 'require_jira_ticket',
                                    'require_ticket_ref', 'always_log']:
                    value = value.lower() in ['true', '1', 'yes', 'on']

                elif field_name == 'log_file':
                    value = self._sanitize_string(value)

                env_data[field_name] = value

        # Explicit values win over the environment
        merged_data = {**env_data, **data}

        super().__init__(**merged_data)
