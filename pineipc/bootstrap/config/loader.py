import os
from pathlib import Path

DEFAULT_CONFIG_NAME = "pine.yaml"
CONFIG_ENV_VAR = "PINECONFIG"


def get_configfile() -> Path | None:
    """
    Locate the optional YAML configuration file.

    Priority: PINECONFIG environment variable > ``pine.yaml`` in the
    current working directory. Without either, settings come from the
    environment and built-in defaults only.
    """
    raw = os.getenv(CONFIG_ENV_VAR)

    if raw is None:
        file = Path.cwd() / DEFAULT_CONFIG_NAME
        return file if file.is_file() else None

    file = Path(raw).expanduser()
    if not file.is_file():
        raise SystemExit(
            f"[config] Configuration file not found: '{file}'.\n"
            f"  - Fix or unset the {CONFIG_ENV_VAR} environment variable\n"
            f"  - Or place a '{DEFAULT_CONFIG_NAME}' file in the current working directory."
        )

    return file
