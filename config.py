"""
Configuration module for environment variable validation and type-safe config.

Values come from the environment so the same settings work on a
facilitator's machine and inside the GitHub Actions runner, where
AWS_REGION, FUNCTION_NAME and LAMBDA_EXECUTION_ROLE_ARN are set by the
workflow and GITHUB_REPOSITORY by the runner itself.
"""
import os
import re
from dataclasses import dataclass, replace
from typing import Optional

DEFAULT_REGION = "eu-west-1"
DEFAULT_WORKSHOP_ROLE_NAME = "GitHubActions-Lambda-Workshop"
DEFAULT_LAMBDA_EXECUTION_ROLE_NAME = "Lambda-Execution-Role-Workshop"
DEFAULT_GITHUB_REPOSITORY = "daemon-labs-io/github-actions-aws-lambda"

_REPOSITORY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+/[A-Za-z0-9_.-]+$")


def _int_from_env(name: str, default: int, minimum: int, maximum: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got: {raw}")
    if not minimum <= value <= maximum:
        raise ValueError(
            f"{name} must be between {minimum} and {maximum}, got: {value}"
        )
    return value


@dataclass(frozen=True)
class Config:
    """Type-safe configuration object with validated environment variables."""

    aws_region: str = DEFAULT_REGION
    aws_profile: Optional[str] = None
    workshop_role_name: str = DEFAULT_WORKSHOP_ROLE_NAME
    lambda_execution_role_name: str = DEFAULT_LAMBDA_EXECUTION_ROLE_NAME
    github_repository: str = DEFAULT_GITHUB_REPOSITORY
    function_name: Optional[str] = None
    lambda_execution_role_arn: Optional[str] = None
    lambda_runtime: str = "python3.12"
    lambda_handler: str = "handler.handler"
    lambda_timeout: int = 30
    lambda_memory_size: int = 128
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Config":
        """
        Create Config instance from environment variables.

        Raises:
            ValueError: If an environment variable holds an invalid value.
        """
        aws_region = os.environ.get("AWS_REGION") or DEFAULT_REGION
        aws_profile = os.environ.get("AWS_PROFILE") or None

        github_repository = os.environ.get(
            "GITHUB_REPOSITORY", DEFAULT_GITHUB_REPOSITORY
        )
        if not _REPOSITORY_PATTERN.match(github_repository):
            raise ValueError(
                "GITHUB_REPOSITORY must look like owner/name, "
                f"got: {github_repository}"
            )

        log_level = os.environ.get("LOG_LEVEL", "INFO").upper()

        # Validate log level
        valid_log_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if log_level not in valid_log_levels:
            raise ValueError(
                f"LOG_LEVEL must be one of {valid_log_levels}, got: {log_level}"
            )

        return cls(
            aws_region=aws_region,
            aws_profile=aws_profile,
            workshop_role_name=os.environ.get(
                "WORKSHOP_ROLE_NAME", DEFAULT_WORKSHOP_ROLE_NAME
            ),
            lambda_execution_role_name=os.environ.get(
                "LAMBDA_EXECUTION_ROLE_NAME", DEFAULT_LAMBDA_EXECUTION_ROLE_NAME
            ),
            github_repository=github_repository,
            function_name=os.environ.get("FUNCTION_NAME") or None,
            lambda_execution_role_arn=(
                os.environ.get("LAMBDA_EXECUTION_ROLE_ARN") or None
            ),
            lambda_runtime=os.environ.get("LAMBDA_RUNTIME", "python3.12"),
            lambda_handler=os.environ.get("LAMBDA_HANDLER", "handler.handler"),
            lambda_timeout=_int_from_env("LAMBDA_TIMEOUT", 30, 1, 900),
            lambda_memory_size=_int_from_env(
                "LAMBDA_MEMORY_SIZE", 128, 128, 10240
            ),
            log_level=log_level,
        )

    def with_overrides(self, **overrides) -> "Config":
        """Return a copy with every override that is not None applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes) if changes else self

    def require_deploy_settings(self) -> None:
        """
        Ensure the settings a deployment needs are present.

        Raises:
            ValueError: Naming the first missing environment variable.
        """
        if not self.function_name:
            raise ValueError("FUNCTION_NAME environment variable is required")
        if not self.lambda_execution_role_arn:
            raise ValueError(
                "LAMBDA_EXECUTION_ROLE_ARN environment variable is required"
            )


_config: Optional[Config] = None


def get_config() -> Config:
    """
    Get the global configuration instance.

    Returns:
        Config: The validated configuration object

    Raises:
        ValueError: If environment variables hold invalid values.
    """
    global _config
    if _config is None:
        _config = Config.from_env()
    return _config
