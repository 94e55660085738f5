"""Tests for configuration and environment variable helpers."""

import pytest

from pydantic import ValidationError

from tipjar.helpers.config import (
    get_int_env,
    get_list_env,
    get_optional_env,
    get_required_env,
    get_rpc_url,
    get_store_url,
    load_chain_config,
)
from tipjar.helpers.constants import DEFAULT_RPC_URL, DEFAULT_STORE_URL


CONFIG_KEYS = [
    "TEST_KEY",
    "TIPJAR_RPC_URL",
    "TIPJAR_API_URL",
    "TIPJAR_CHAIN_ID",
    "TIPJAR_CHAIN_NAME",
    "TIPJAR_CURRENCY_NAME",
    "TIPJAR_CURRENCY_SYMBOL",
    "TIPJAR_CURRENCY_DECIMALS",
    "TIPJAR_EXPLORER_URLS",
    "TIPJAR_ICON_URLS",
]


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove configuration variables for the duration of a test."""
    for key in CONFIG_KEYS:
        monkeypatch.delenv(key, raising=False)


@pytest.mark.usefixtures("clean_env")
class TestGetRequiredEnv:
    """Tests for get_required_env function."""

    def test_returns_env_value_when_set(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that get_required_env returns value when set."""
        monkeypatch.setenv("TEST_KEY", "test_value")
        assert get_required_env("TEST_KEY") == "test_value"

    def test_raises_when_missing(self) -> None:
        """Test that a missing variable raises ValueError."""
        with pytest.raises(ValueError, match="TEST_KEY environment variable is not set"):
            get_required_env("TEST_KEY")

    def test_raises_when_empty(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that an empty variable counts as missing."""
        monkeypatch.setenv("TEST_KEY", "")
        with pytest.raises(ValueError, match="not set"):
            get_required_env("TEST_KEY")


@pytest.mark.usefixtures("clean_env")
class TestOptionalEnv:
    """Tests for optional, integer and list helpers."""

    def test_optional_default(self) -> None:
        """Test the default is returned when unset."""
        assert get_optional_env("TEST_KEY", "fallback") == "fallback"
        assert get_optional_env("TEST_KEY") is None

    def test_int_env_parses_hex_and_decimal(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test integer variables accept decimal and 0x forms."""
        monkeypatch.setenv("TEST_KEY", "0x1f93")
        assert get_int_env("TEST_KEY", 1) == 8083
        monkeypatch.setenv("TEST_KEY", "8083")
        assert get_int_env("TEST_KEY", 1) == 8083

    def test_int_env_invalid(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test malformed integers name the variable."""
        monkeypatch.setenv("TEST_KEY", "eighty")
        with pytest.raises(ValueError, match="TEST_KEY must be an integer"):
            get_int_env("TEST_KEY", 1)

    def test_list_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test comma separated lists are split and trimmed."""
        monkeypatch.setenv("TEST_KEY", "https://a, https://b,")
        assert get_list_env("TEST_KEY", []) == ["https://a", "https://b"]
        monkeypatch.delenv("TEST_KEY")
        assert get_list_env("TEST_KEY", ["x"]) == ["x"]


@pytest.mark.usefixtures("clean_env")
class TestUrls:
    """Tests for RPC and store URL resolution."""

    def test_rpc_url_explicit_wins(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test an explicit URL beats the environment."""
        monkeypatch.setenv("TIPJAR_RPC_URL", "https://env.rpc")
        assert get_rpc_url("https://explicit.rpc") == "https://explicit.rpc"

    def test_rpc_url_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test the environment is used when no URL is given."""
        monkeypatch.setenv("TIPJAR_RPC_URL", "https://env.rpc")
        assert get_rpc_url() == "https://env.rpc"

    def test_rpc_url_default(self) -> None:
        """Test the public endpoint is the fallback."""
        assert get_rpc_url() == DEFAULT_RPC_URL

    def test_store_url_strips_slash(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test trailing slashes are removed."""
        monkeypatch.setenv("TIPJAR_API_URL", "http://store/api/")
        assert get_store_url() == "http://store/api"
        assert get_store_url("http://other/api/") == "http://other/api"

    def test_store_url_default(self) -> None:
        """Test the local store is the fallback."""
        assert get_store_url() == DEFAULT_STORE_URL


@pytest.mark.usefixtures("clean_env")
class TestLoadChainConfig:
    """Tests for load_chain_config."""

    def test_defaults(self) -> None:
        """Test the default target chain."""
        chain = load_chain_config()

        assert chain.chain_id == 8083
        assert chain.chain_id_hex == "0x1f93"
        assert chain.chain_name == "Shardeum Testnet"
        assert chain.currency.symbol == "SHM"
        assert chain.currency.decimals == 18
        assert chain.rpc_urls == [DEFAULT_RPC_URL]

    def test_hex_id_and_add_params_agree(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test the network check and add-chain payload share one chain id."""
        monkeypatch.setenv("TIPJAR_CHAIN_ID", "31337")
        monkeypatch.setenv("TIPJAR_RPC_URL", "http://127.0.0.1:8545")

        chain = load_chain_config()

        assert chain.chain_id_hex == "0x7a69"
        params = chain.add_params().to_request_params()
        assert params["chainId"] == chain.chain_id_hex
        assert params["rpcUrls"] == ["http://127.0.0.1:8545"]

    def test_invalid_decimals(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test negative decimals are rejected."""
        monkeypatch.setenv("TIPJAR_CURRENCY_DECIMALS", "-1")
        with pytest.raises(ValidationError):
            load_chain_config()
