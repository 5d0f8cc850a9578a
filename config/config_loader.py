import json
import os
from datetime import datetime

DEFAULT_CONFIG = {
    "max_steps": 10_000,
    "tape_capacity": 512,
    "batch_size": 4096,
    "enable_logging": False,
    "output_directory": "logs/",
    "log_file_prefix": "turing_",
    "show_definition": True,
    "key_bindings": {
        "step": "n",
        "undo": "u",
        "run": "r",
        "rewind": "z",
        "back": "b"
    }
}

# Expected types for validation
CONFIG_SCHEMA = {
    "max_steps": int,
    "tape_capacity": int,
    "batch_size": int,
    "enable_logging": bool,
    "output_directory": str,
    "log_file_prefix": str,
    "show_definition": bool,
    "key_bindings": dict
}

KEY_ACTIONS = ["step", "undo", "run", "rewind", "back"]

DEFAULT_CONFIG_PATH = "config/runtime_config.json"


def default_config():
    config = DEFAULT_CONFIG.copy()
    config["key_bindings"] = dict(DEFAULT_CONFIG["key_bindings"])
    return config


def validate_config(config):
    for key, expected_type in CONFIG_SCHEMA.items():
        if key not in config:
            raise ValueError(f"Missing required configuration key: {key}")
        # bool is an int subclass
        if not isinstance(config[key], expected_type) or (expected_type is int and isinstance(config[key], bool)):
            raise TypeError(f"Config key '{key}' expected {expected_type}, got {type(config[key])}.")

    for key in ["max_steps", "tape_capacity", "batch_size"]:
        if config[key] <= 0:
            raise ValueError(f"Config key '{key}' must be positive, got {config[key]}.")

    # Special check inside key_bindings
    bindings = config["key_bindings"]
    if not all(k in bindings for k in KEY_ACTIONS):
        raise ValueError("Key bindings must contain " + ", ".join(f"'{k}'" for k in KEY_ACTIONS) + ".")
    keys = [bindings[k] for k in KEY_ACTIONS]
    if not all(isinstance(k, str) and len(k) == 1 for k in keys):
        raise ValueError("Key bindings must be single characters.")
    if len(set(keys)) != len(keys):
        raise ValueError("Key bindings must be distinct.")


def load_config(path=DEFAULT_CONFIG_PATH, verbose=False):
    if not os.path.exists(path):
        raise FileNotFoundError(f"Configuration file not found at: {path}")

    with open(path, "r", encoding="utf-8") as f:
        user_config = json.load(f)
    if not isinstance(user_config, dict):
        raise TypeError(f"Configuration file {path} must hold a JSON object.")

    # Merge defaults with overrides
    config = default_config()
    config.update(user_config)

    # Validate schema
    validate_config(config)

    # Validate output directory
    if config["enable_logging"]:
        os.makedirs(config["output_directory"], exist_ok=True)

    if verbose:
        print(f"[{datetime.now()}] Loaded config:")
        for key, value in config.items():
            print(f"  {key}: {value}")

    return config


def load_runtime_config(path=None):
    """Load `path`, else the default config file if present, else the defaults."""
    if path is None:
        if not os.path.exists(DEFAULT_CONFIG_PATH):
            return default_config()
        path = DEFAULT_CONFIG_PATH
    return load_config(path)
