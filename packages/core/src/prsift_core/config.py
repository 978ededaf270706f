import os
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_CONFIG: dict = {
    "model": None,  # engine model identifier, e.g. "anthropic/claude-sonnet-4-20250514"
    "engine": "opencode",
    "engine_command": "opencode",
    "max_diff_size": 100000,  # bytes
    "post_summary": True,
    "review_prompt": None,  # inline custom instructions
    "review_prompt_file": None,  # path to a Markdown file with custom instructions
    "workdir": ".",
    "output_file": "/tmp/opencode-review.json",
    "prompt_file": "/tmp/opencode-prompt.md",
    "engine_log_file": "/tmp/opencode-stdout.txt",
}


def load_config(config_path: str = ".prsift.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .prsift.yml in the current directory
      3. CLI argument overrides (which also carry the action's INPUT_* variables)
    """
    config = dict(DEFAULT_CONFIG)

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        if not isinstance(file_config, dict):
            raise ValueError(f"{config_path} must contain a mapping, got {type(file_config).__name__}")
        config.update(file_config)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    max_diff_size = config["max_diff_size"]
    if isinstance(max_diff_size, bool) or not isinstance(max_diff_size, int) or max_diff_size <= 0:
        raise ValueError(f"max_diff_size must be a positive integer, got {max_diff_size!r}")

    config["github_token"] = os.environ.get("GITHUB_TOKEN")

    return config


def load_custom_instructions(config: dict) -> Optional[str]:
    """
    Return the optional custom review instructions.

    Inline ``review_prompt`` text wins over ``review_prompt_file``. Blank text
    counts as absent so an empty action input does not add an empty section.
    """
    inline = config.get("review_prompt")
    if inline and inline.strip():
        return inline

    custom_path = config.get("review_prompt_file")
    if custom_path:
        p = Path(custom_path)
        if not p.exists():
            raise FileNotFoundError(f"Review prompt file not found: {custom_path}")
        text = p.read_text()
        return text if text.strip() else None

    return None
