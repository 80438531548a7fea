"""Non-fatal sanity checks on the raw configuration."""

import warnings
from typing import Any, Dict, List


def check_for_warnings(config_dict: Dict[str, Any]) -> List[str]:
    """
    Look for settings that are valid but probably not what the operator wants.

    Args:
        config_dict: Raw configuration dictionary

    Returns:
        List of warning messages
    """
    warning_messages = []

    matching = config_dict.get("matching", {})
    if isinstance(matching, dict):
        threshold = matching.get("similarity_threshold")
        if isinstance(threshold, (int, float)) and 0 <= threshold < 0.1:
            warning_messages.append(
                f"Very low similarity_threshold ({threshold}) will keep almost every suggestion"
            )

    criteria = config_dict.get("criteria", {})
    if isinstance(criteria, dict):
        max_results = criteria.get("max_results")
        if isinstance(max_results, int) and max_results > 200:
            warning_messages.append(
                f"Large criteria.max_results ({max_results}) means one interest lookup per "
                "criterion and may hit ads API rate limits"
            )

    retry = config_dict.get("retry", {})
    if isinstance(retry, dict):
        interval = retry.get("interval")
        if isinstance(interval, str) and interval.strip().lower() in {
            "1m", "2m", "3m", "4m", "pt1m", "pt2m", "pt3m", "pt4m",
        }:
            warning_messages.append(
                f"Short retry.interval ({interval}) may trigger ads API rate limits"
            )

    return warning_messages


def emit_warnings(warning_messages: List[str]) -> None:
    """Emit warning messages through the ``warnings`` module."""
    for message in warning_messages:
        warnings.warn(message, UserWarning, stacklevel=2)
