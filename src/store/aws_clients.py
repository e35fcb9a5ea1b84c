"""AWS client construction.

This module encapsulates boto3 session creation so every component
builds clients for its own region with the configured profile.
"""

from __future__ import annotations

from typing import Any

import boto3

from core.config import DynaloadConfig


def create_client(service_name: str, region: str | None, config: DynaloadConfig) -> Any:
    """Create a boto3 client for one service and region.

    Args:
        service_name: Boto3 service name, e.g. ``dynamodb``.
        region: AWS region; boto3 defaults apply when empty.
        config: Runtime config with optional profile.

    Returns:
        Boto3 client.
    """
    session = boto3.session.Session(**_build_session_kwargs(region, config))
    return session.client(service_name)


def _build_session_kwargs(region: str | None, config: DynaloadConfig) -> dict[str, str]:
    kwargs: dict[str, str] = {}
    if config.aws_profile:
        kwargs["profile_name"] = config.aws_profile
    if region:
        kwargs["region_name"] = region
    return kwargs
