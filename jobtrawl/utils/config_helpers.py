from pathlib import Path
from typing import List, Union
from omegaconf import OmegaConf
from omegaconf.dictconfig import DictConfig

# YAML files shipped with the package; CONFIG_PATH in the environment overrides this
BUNDLED_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config"


def merge_configs(config_paths: List[Union[str, Path]]) -> DictConfig:
    """
    Merge multiple YAML configuration files with precedence. Later configs override earlier ones. Useful for applying overrides to base configs.

    Args:
        config_paths: List of paths to YAML config files. Later configs take precedence.

    Returns:
        DictConfig: Merged configuration object

    Raises:
        ValueError: If config_paths is empty
        FileNotFoundError: If any config file doesn't exist

    Example:
        >>> config = merge_configs([BUNDLED_CONFIG_PATH / "fetch.yaml", "config/fetch.local.yaml"])
        >>> fetcher = RequestsPageFetcher.from_config(config)
    """
    if not config_paths:
        raise ValueError("config_paths is empty!")

    merged = OmegaConf.load(config_paths[0])

    for config_path in config_paths[1:]:
        config = OmegaConf.load(config_path)
        merged = OmegaConf.unsafe_merge(merged, config)

    return merged
