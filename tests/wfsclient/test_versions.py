import pytest
from django.test import override_settings

from wfsclient.versions import (
    AUTO,
    check_version_strategy,
    get_version_fallback_chain,
    resolve_initial_version,
)


class TestFallbackChain:
    def test_auto(self):
        assert get_version_fallback_chain("2.0.2") == ["2.0.2", "2.0.0", "1.1.0"]

    def test_preferred_first(self):
        """Prove that the preferred version is tried first, then the others by preference."""
        assert get_version_fallback_chain("1.1.0", AUTO) == ["1.1.0", "2.0.2", "2.0.0"]

    def test_fixed(self):
        assert get_version_fallback_chain("2.0.2", "1.1.0") == ["1.1.0"]


class TestInitialVersion:
    def test_fixed(self):
        assert resolve_initial_version("2.0.0") == "2.0.0"

    def test_auto(self):
        assert resolve_initial_version(AUTO) == "2.0.2"
        assert resolve_initial_version(None) == "2.0.2"

    def test_settings(self):
        with override_settings(WFS_CLIENT_DEFAULT_VERSION="1.1.0"):
            assert resolve_initial_version(AUTO) == "1.1.0"
        assert resolve_initial_version(AUTO) == "2.0.2"


@pytest.mark.parametrize("strategy", ["auto", "2.0.2", "2.0.0", "1.1.0"])
def test_check_version_strategy(strategy):
    assert check_version_strategy(strategy) == strategy


@pytest.mark.parametrize("strategy", ["1.0.0", "2.0", ""])
def test_check_version_strategy_invalid(strategy):
    with pytest.raises(ValueError):
        check_version_strategy(strategy)
