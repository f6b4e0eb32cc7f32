"""Unit tests for the configuration resolver."""

from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from calltest.config import (
    DEFAULT_ABI_PATH,
    DEFAULT_GAS_LIMIT,
    REQUIRED_KEYS,
    Configuration,
    infura_url,
    load_configuration,
)
from calltest.errors import MissingConfigurationError

from conftest import CONTRACT, PRIVATE_KEY

FULL_ENV = {
    "ETHEREUM_NETWORK": "sepolia",
    "INFURA_API_KEY": "abc123",
    "DEMO_CONTRACT": CONTRACT,
    "SIGNER_PRIVATE_KEY": PRIVATE_KEY,
}


class TestLoadConfiguration:
    """Tests for load_configuration with an explicit mapping."""

    def test_all_required_present(self) -> None:
        config = load_configuration(FULL_ENV)
        assert config.network == "sepolia"
        assert config.api_key == "abc123"
        assert config.contract_address == CONTRACT
        assert config.private_key == PRIVATE_KEY
        assert config.abi_path == Path(DEFAULT_ABI_PATH)
        assert config.gas_limit == DEFAULT_GAS_LIMIT

    @pytest.mark.parametrize("missing", REQUIRED_KEYS)
    def test_missing_value_is_named(self, missing: str) -> None:
        env = {k: v for k, v in FULL_ENV.items() if k != missing}
        with pytest.raises(MissingConfigurationError) as excinfo:
            load_configuration(env)
        assert excinfo.value.key == missing
        assert missing in str(excinfo.value)

    @pytest.mark.parametrize("missing", REQUIRED_KEYS)
    def test_blank_value_counts_as_missing(self, missing: str) -> None:
        env = dict(FULL_ENV, **{missing: "   "})
        with pytest.raises(MissingConfigurationError) as excinfo:
            load_configuration(env)
        assert excinfo.value.key == missing

    def test_optional_values(self) -> None:
        env = dict(
            FULL_ENV,
            CONTRACT_ABI_PATH="build/contracts/Test.json",
            GAS_LIMIT="250000",
            RECEIPT_TIMEOUT="30",
            POLL_INTERVAL="0.5",
            ETHEREUM_RPC_URL="http://127.0.0.1:8545",
        )
        config = load_configuration(env)
        assert config.abi_path == Path("build/contracts/Test.json")
        assert config.gas_limit == 250_000
        assert config.receipt_timeout == 30.0
        assert config.poll_interval == 0.5
        assert config.endpoint == "http://127.0.0.1:8545"

    def test_zero_gas_limit_means_estimate(self) -> None:
        config = load_configuration(dict(FULL_ENV, GAS_LIMIT="0"))
        assert config.gas_limit is None

    def test_non_numeric_gas_limit(self) -> None:
        with pytest.raises(MissingConfigurationError) as excinfo:
            load_configuration(dict(FULL_ENV, GAS_LIMIT="lots"))
        assert excinfo.value.key == "GAS_LIMIT"

    @pytest.mark.parametrize("key", ["RECEIPT_TIMEOUT", "POLL_INTERVAL"])
    @pytest.mark.parametrize("raw", ["-1", "nan", "inf"])
    def test_wait_settings_must_be_finite_and_non_negative(self, key: str, raw: str) -> None:
        with pytest.raises(MissingConfigurationError) as excinfo:
            load_configuration(dict(FULL_ENV, **{key: raw}))
        assert excinfo.value.key == key

    def test_zero_poll_interval_is_allowed(self) -> None:
        config = load_configuration(dict(FULL_ENV, POLL_INTERVAL="0"))
        assert config.poll_interval == 0.0

    def test_explicit_mapping_ignores_process_environment(self) -> None:
        with patch.dict(os.environ, FULL_ENV):
            with pytest.raises(MissingConfigurationError):
                load_configuration({})


class TestDotenv:
    """Tests for .env loading when reading the process environment."""

    def test_env_file_is_loaded(self, tmp_path: Path) -> None:
        env_path = tmp_path / ".env"
        env_path.write_text(
            "\n".join(f"{k}={v}" for k, v in FULL_ENV.items()) + "\n",
            encoding="utf-8",
        )
        with patch.dict(os.environ, {}, clear=True):
            config = load_configuration(env_file=env_path)
        assert config.network == "sepolia"
        assert config.private_key == PRIVATE_KEY

    def test_process_environment_wins_over_env_file(self, tmp_path: Path) -> None:
        env_path = tmp_path / ".env"
        env_path.write_text(
            "\n".join(f"{k}={v}" for k, v in FULL_ENV.items()) + "\n",
            encoding="utf-8",
        )
        with patch.dict(os.environ, {"ETHEREUM_NETWORK": "holesky"}, clear=True):
            config = load_configuration(env_file=env_path)
        assert config.network == "holesky"


class TestConfiguration:
    """Tests for the Configuration record itself."""

    def test_endpoint_defaults_to_infura(self) -> None:
        config = load_configuration(FULL_ENV)
        assert config.endpoint == "https://sepolia.infura.io/v3/abc123"
        assert config.endpoint == infura_url("sepolia", "abc123")

    def test_repr_hides_secrets(self) -> None:
        config = load_configuration(FULL_ENV)
        text = repr(config)
        assert PRIVATE_KEY not in text
        assert "abc123" not in text
        assert "sepolia" in text

    def test_immutable(self) -> None:
        config = load_configuration(FULL_ENV)
        with pytest.raises(AttributeError):
            config.network = "mainnet"  # type: ignore[misc]

    def test_direct_construction_validates(self) -> None:
        with pytest.raises(MissingConfigurationError) as excinfo:
            Configuration(
                network="sepolia",
                api_key="",
                contract_address=CONTRACT,
                private_key=PRIVATE_KEY,
            )
        assert excinfo.value.key == "INFURA_API_KEY"
