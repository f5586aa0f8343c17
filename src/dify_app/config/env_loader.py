"""Environment variable configuration loading.

Reads DIFY_* variables, optionally after loading a .env file, and coerces
them through the settings schema.
"""

import os
from pathlib import Path
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from .schema import DifySettings
from .types import CONFIG_FIELDS, SECRET_FIELDS

ENV_PREFIX = "DIFY_"
ENV_VARS = {f"{ENV_PREFIX}{field.upper()}": field for field in CONFIG_FIELDS}


class EnvironmentConfigLoader:
    """Loads configuration from DIFY_* environment variables and .env files."""

    def load_env_config(self, env_file: str | Path | None = None) -> dict[str, Any]:
        """Load configuration from environment variables.

        Args:
            env_file: Optional .env file loaded into the environment first.
                     Variables already set are not overridden.

        Returns:
            Coerced values for the fields actually present in the environment.

        Raises:
            FileNotFoundError: If ``env_file`` does not exist.
            ValueError: If environment variables contain invalid values.
        """
        if env_file:
            self._load_env_file(env_file)

        env_values = {
            field: os.environ[env_var]
            for env_var, field in ENV_VARS.items()
            if env_var in os.environ
        }
        if not env_values:
            return {}

        try:
            settings = DifySettings(**env_values)
        except PydanticValidationError as e:
            names = ", ".join(
                env_var for env_var, field in ENV_VARS.items() if field in env_values
            )
            # Pydantic echoes input values; keep them out of the message
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
                for err in e.errors(include_input=False)
            )
            raise ValueError(
                f"Invalid environment variable values ({names}): {problems}"
            ) from None

        return {field: getattr(settings, field) for field in env_values}

    def _load_env_file(self, env_file: str | Path) -> None:
        """Load KEY=VALUE lines from a .env file into ``os.environ``.

        Raises:
            FileNotFoundError: If the .env file doesn't exist.
            ValueError: If the .env file has invalid format.
        """
        env_path = Path(env_file)
        if not env_path.exists():
            raise FileNotFoundError(f"Environment file not found: {env_path}")

        try:
            with env_path.open(encoding="utf-8") as f:
                lines = f.readlines()
        except OSError as e:
            raise ValueError(f"Failed to read environment file {env_path}: {e}") from e

        for line_num, line in enumerate(lines, 1):
            line = line.strip()

            if not line or line.startswith("#"):
                continue
            if line.startswith("export "):
                line = line[len("export ") :].lstrip()

            if "=" not in line:
                raise ValueError(
                    f"Invalid format at line {line_num} of {env_path}. "
                    "Expected KEY=VALUE format."
                )

            key, value = line.split("=", 1)
            key = key.strip()
            value = value.strip()

            if (value.startswith('"') and value.endswith('"')) or (
                value.startswith("'") and value.endswith("'")
            ):
                value = value[1:-1]

            # Existing environment wins over the file
            if key not in os.environ:
                os.environ[key] = value

    def get_env_summary(self) -> dict[str, str]:
        """Current DIFY_* configuration variables, secrets redacted."""
        summary = {}
        for env_var, field in ENV_VARS.items():
            if env_var in os.environ:
                summary[env_var] = (
                    "<redacted>" if field in SECRET_FIELDS else os.environ[env_var]
                )
        return summary
