import os

from .types import Credentials


def _parse_env_file(env_path: str) -> dict[str, str]:
    """Parse a simple .env file into a dict without modifying os.environ.

    Supports basic KEY=VALUE pairs, ignoring comments and blank lines.
    Surrounding single/double quotes are stripped if present.
    """
    values: dict[str, str] = {}
    try:
        with open(env_path) as f:
            for raw_line in f:
                line = raw_line.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue
                key, val = line.split("=", 1)
                key = key.strip()
                if key.startswith("export "):
                    key = key[len("export ") :].strip()
                val = val.strip().strip('"').strip("'")
                if key:
                    values[key] = val
    except FileNotFoundError:
        # A missing file just means nothing to augment
        pass
    return values


def load_credentials_from_env(prefix: str = "GEOAPI_", env_path: str | None = None) -> Credentials:
    """Create Credentials from environment variables.

    Looks up ``<prefix>API_KEY``, ``<prefix>CLIENT_ID``, ``<prefix>CLIENT_SECRET`` and
    ``<prefix>CHANNEL``. If 'env_path' is provided, variables from the .env file augment
    lookups (without mutating the process environment); values in the actual environment
    take precedence over the file.

    Raises:
        ValidationError: if neither form (or both forms) of credentials is found
    """
    file_env = _parse_env_file(env_path) if env_path else {}
    env_map: dict[str, str] = {**file_env, **os.environ}

    def _get(name: str) -> str | None:
        return env_map.get(f"{prefix}{name}") or None

    return Credentials(
        api_key=_get("API_KEY"),
        client_id=_get("CLIENT_ID"),
        client_secret=_get("CLIENT_SECRET"),
        channel=_get("CHANNEL"),
    )
