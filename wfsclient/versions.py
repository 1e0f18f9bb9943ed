"""Selecting the protocol version to use."""

from __future__ import annotations

from wfsclient import conf
from wfsclient.types import SUPPORTED_VERSIONS

__all__ = ("AUTO", "resolve_initial_version", "get_version_fallback_chain", "check_version_strategy")

#: The version strategy that negotiates the version with the server.
AUTO = "auto"


def check_version_strategy(strategy: str) -> str:
    """Validate the configured strategy, this is either "auto" or a supported version."""
    if strategy != AUTO and strategy not in SUPPORTED_VERSIONS:
        raise ValueError(
            f"Invalid version strategy {strategy!r}, "
            f"expected '{AUTO}' or one of: {', '.join(SUPPORTED_VERSIONS)}"
        )
    return strategy


def resolve_initial_version(version_strategy: str | None) -> str:
    """Tell which version is tried first."""
    if not version_strategy or version_strategy == AUTO:
        return conf.WFS_CLIENT_DEFAULT_VERSION
    return version_strategy


def get_version_fallback_chain(preferred: str, version_strategy: str | None = AUTO) -> list[str]:
    """Tell which versions are tried during negotiation, in that order.

    A fixed version strategy only gives that version.
    Otherwise, the preferred version is followed by all other supported versions.
    """
    if version_strategy and version_strategy != AUTO:
        return [version_strategy]

    chain = [preferred]
    chain.extend(version for version in SUPPORTED_VERSIONS if version != preferred)
    return chain
