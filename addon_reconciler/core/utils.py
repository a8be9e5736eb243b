import base64
import copy
import ipaddress
import logging
from typing import Any

from addon_reconciler.core.config import LOG_LEVEL


def setup_logger(logger_name: str) -> logging.Logger:
    logger = logging.getLogger(logger_name)
    logger.setLevel(LOG_LEVEL)
    logger.propagate = False

    formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s',
                                  datefmt='%d-%b-%y %H:%M:%S')
    console_handler = logging.StreamHandler()
    console_handler.setLevel(level=LOG_LEVEL)
    console_handler.setFormatter(formatter)

    if not logger.handlers:
        logger.addHandler(console_handler)

    return logger


def merge_maps(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into a copy of ``base``.

    Nested dicts are merged key by key, everything else (lists included) is replaced.
    Neither input is modified.
    """
    merged = copy.deepcopy(base)

    for k, v in override.items():
        if k in merged and isinstance(merged[k], dict) and isinstance(v, dict):
            merged[k] = merge_maps(merged[k], v)
        else:
            merged[k] = copy.deepcopy(v)

    return merged


def generate_addon_config(values: dict[str, Any] | None, enabled: bool) -> dict[str, Any]:
    return merge_maps(values or {}, {'enabled': enabled})


def compute_cluster_ip(cidr: str, offset: int) -> str:
    network = ipaddress.ip_network(cidr, strict=False)

    if offset >= network.num_addresses:
        raise ValueError(f'Offset {offset} is outside of network {cidr}')

    return str(network.network_address + offset)


def b64encode(value: str | bytes) -> str:
    if isinstance(value, str):
        value = value.encode('utf-8')

    return base64.b64encode(value).decode('ascii')
