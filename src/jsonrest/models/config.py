"""Pydantic configuration model for jsonrest clients."""

import os
import re
from pathlib import Path
from typing import Literal, Optional, Union

from pydantic import BaseModel, Field

JSON_MEDIA_TYPE = "application/json"


def _default_headers() -> dict[str, str]:
    return {"Accept": JSON_MEDIA_TYPE, "Content-Type": JSON_MEDIA_TYPE}


def _expand_env_var(value: str) -> str:
    """Expand environment variable references in a string.

    Supports $VAR and ${VAR} syntax. Unset variables are left as written.
    """
    pattern = r"\$\{([^}]+)\}|\$([A-Za-z_][A-Za-z0-9_]*)"

    def replace(match: re.Match) -> str:
        var_name = match.group(1) or match.group(2)
        return os.environ.get(var_name, match.group(0))

    return re.sub(pattern, replace, value)


class ClientConfig(BaseModel):
    """
    Configuration for a jsonrest Client.

    Header values may reference environment variables, so secrets stay out
    of config files:

    YAML format:
        default_headers:
          Accept: application/json
          Content-Type: application/json
          Authorization: Bearer ${API_TOKEN}
        request_timeout: 30
        log_level: DEBUG
    """

    default_headers: dict[str, str] = Field(
        default_factory=_default_headers,
        description="Headers added to every request unless the caller supplies them",
    )
    allowed_schemes: list[str] = Field(
        default_factory=lambda: ["http", "https"],
        description="URL schemes accepted by the request builder",
    )
    user_agent: Optional[str] = Field(None, description="Custom User-Agent header for the transport session")
    proxy: Optional[str] = Field(None, description="HTTP/HTTPS proxy URL")
    trust_env: bool = Field(
        False,
        description="Read proxy settings and .netrc credentials from the environment",
    )
    request_timeout: Optional[float] = Field(
        None,
        gt=0,
        description="Total transport timeout in seconds (None = no timeout)",
    )
    wait_timeout: Optional[float] = Field(
        None,
        gt=0,
        description="Maximum seconds a blocking call waits for the transport (None = wait forever)",
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        "INFO",
        description="Logging level",
    )
    log_file: Optional[Path] = Field(None, description="Log file path")

    model_config = {"extra": "forbid"}

    def model_post_init(self, __context: object) -> None:
        """Expand environment variables in header values after init."""
        self.default_headers = {name: _expand_env_var(value) for name, value in self.default_headers.items()}

    def to_yaml(self) -> str:
        """Serialize config to YAML string."""
        import yaml

        return yaml.dump(self.model_dump(mode="json", exclude_none=True), default_flow_style=False)

    @classmethod
    def from_yaml(cls, yaml_str: str) -> "ClientConfig":
        """Load config from YAML string."""
        import yaml

        data = yaml.safe_load(yaml_str) or {}
        return cls.model_validate(data)

    @classmethod
    def from_yaml_file(cls, path: Union[str, Path]) -> "ClientConfig":
        """Load config from a YAML file."""
        return cls.from_yaml(Path(path).read_text(encoding="utf-8"))
