from importlib import resources as importlib_resources
from pathlib import Path


def get_package_root() -> Path:
    """
    Determines the root path of the installed 'formpilot' package.
    """
    return Path(importlib_resources.files("formpilot")).resolve()


def get_log_dir() -> Path:
    """
    Determines a suitable path for log files.
    Logs are stored in the user's home directory under '.formpilot/logs/'.
    """
    log_dir = Path.home() / ".formpilot" / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir
