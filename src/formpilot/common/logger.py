# logger.py
import logging
import logging.config

from formpilot.util.file_utils import from_json_or_yaml


def setup_logging(
    config_file_path=None,
    log_file_path=None,
    verbose=False,
):
    """
    Loads logging config from 'config_file_path' (YAML or JSON) and applies it.
    Falls back to the packaged configs/logging_config.yaml. When 'log_file_path'
    is given, the file handler writes there; 'verbose' lowers the root level to DEBUG.
    """
    if config_file_path is None:
        from formpilot.command.command_utils import get_package_root
        config_file_path = get_package_root() / "configs" / "logging_config.yaml"
    config = from_json_or_yaml(config_file_path)

    handlers = config.get("handlers", {})
    if log_file_path and "file_handler" in handlers:
        handlers["file_handler"]["filename"] = str(log_file_path)
    elif "file_handler" in handlers:
        # No log file requested: keep console output only.
        handlers.pop("file_handler")
        for logger_cfg in [config.get("root", {})] + list(config.get("loggers", {}).values()):
            names = logger_cfg.get("handlers")
            if names and "file_handler" in names:
                logger_cfg["handlers"] = [name for name in names if name != "file_handler"]

    logging.config.dictConfig(config)

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logging.getLogger("formpilot").setLevel(logging.DEBUG)

    return logging.getLogger(__name__)
