"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from aries_lend.config import (
    AppConfig,
    ChainConfig,
    ProtocolConfig,
    WalletConfig,
)
from aries_lend.models import (
    InterestRateConfig,
    Profile,
    ReserveConfig,
    ReserveState,
    TableKey,
)

CONTRACT = "0x9770fa9c725cbd97eb50b2be5f7416efdfd1f1554beb0750d4dae4c64e860da3"
APT = "0x1::aptos_coin::AptosCoin"
USDC = f"{CONTRACT}::fa_to_coin_wrapper::WrappedUSDC"


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_chain_config() -> ChainConfig:
    return ChainConfig(
        rest_endpoints=("https://rest1.example.com/v1", "https://rest2.example.com/v1"),
        rest_timeout=10,
    )


@pytest.fixture()
def sample_protocol_config() -> ProtocolConfig:
    return ProtocolConfig(chain="aptos", contract_address=CONTRACT, max_list_nodes=50)


@pytest.fixture()
def sample_app_config(
    sample_chain_config: ChainConfig,
    sample_protocol_config: ProtocolConfig,
) -> AppConfig:
    return AppConfig(
        wallets=(
            WalletConfig(
                label="test-wallet",
                chain="aptos",
                address="0xWALLET123",
                protocols=("aries",),
            ),
        ),
        chains={"aptos": sample_chain_config},
        protocols={"aries": sample_protocol_config},
        reserves=(APT,),
    )


# ---------------------------------------------------------------------------
# Config YAML fixture
# ---------------------------------------------------------------------------

SAMPLE_YAML = textwrap.dedent("""\
    wallets:
      - label: test-wallet
        chain: aptos
        address: "0xTEST"
        profile_address: "0xPROFILE"
        protocols: [aries]
    chains:
      aptos:
        rest_endpoints: ["https://rest.example.com/v1"]
        rest_timeout: 10
    protocols:
      aries:
        chain: aptos
        contract_address: "0xaries"
        max_list_nodes: 200
    reserves:
      - "0x1::aptos_coin::AptosCoin"
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file


# ---------------------------------------------------------------------------
# Sample on-chain data
# ---------------------------------------------------------------------------


@pytest.fixture()
def reserve_payload() -> dict:
    """A ``reserve::reserve_state`` view result captured from mainnet."""
    return {
        "initial_exchange_rate": {"val": "1000000000000000000"},
        "interest_rate_config": {
            "max_borrow_rate": "250",
            "min_borrow_rate": "0",
            "optimal_borrow_rate": "10",
            "optimal_utilization": "80",
        },
        "reserve_amount": {"val": "4062293499709934463904043084"},
        "reserve_config": {
            "allow_collateral": True,
            "allow_redeem": True,
            "borrow_factor": 100,
            "borrow_fee_hundredth_bips": "1000",
            "borrow_limit": "180000000000000",
            "deposit_limit": "260000000000000",
            "flash_loan_fee_hundredth_bips": "3000",
            "liquidation_bonus_bips": "300",
            "liquidation_fee_hundredth_bips": "15000",
            "liquidation_threshold": 85,
            "loan_to_value": 80,
            "reserve_ratio": 20,
            "withdraw_fee_hundredth_bips": "0",
        },
        "total_borrowed": {"val": "72542787130084535030034564078557"},
        "total_borrowed_share": {"val": "70049974561549522190954054254222"},
        "total_cash_available": "47548745480391",
        "total_lp_supply": "117734108748830",
    }


@pytest.fixture()
def sample_reserve() -> ReserveState:
    """Parsed form of ``reserve_payload``."""
    return ReserveState(
        token_address=USDC,
        initial_exchange_rate=10**18,
        total_borrowed=72542787130084535030034564078557,
        total_borrowed_share=70049974561549522190954054254222,
        reserve_amount=4062293499709934463904043084,
        total_cash_available=47548745480391,
        total_lp_supply=117734108748830,
        reserve_config=ReserveConfig(
            loan_to_value=80,
            liquidation_threshold=85,
            borrow_factor=100,
            reserve_ratio=20,
            borrow_fee_hundredth_bips=1000,
            borrow_limit=180000000000000,
            deposit_limit=260000000000000,
            flash_loan_fee_hundredth_bips=3000,
            liquidation_fee_hundredth_bips=15000,
            liquidation_bonus_bips=300,
        ),
        interest_rate_config=InterestRateConfig(
            min_borrow_rate=0,
            optimal_borrow_rate=10,
            max_borrow_rate=250,
            optimal_utilization=80,
        ),
    )


def _make_reserve(
    token_address: str = APT,
    *,
    total_borrowed: int = 0,
    total_borrowed_share: int = 0,
    reserve_amount: int = 0,
    total_cash_available: int = 0,
    total_lp_supply: int = 0,
    loan_to_value: int = 50,
    borrow_factor: int = 100,
    borrow_fee: int = 0,
    borrow_limit: int = 10**30,
    emode: str | None = None,
) -> ReserveState:
    """Small hand-built reserve for aggregation tests."""
    return ReserveState(
        token_address=token_address,
        initial_exchange_rate=10**18,
        total_borrowed=total_borrowed,
        total_borrowed_share=total_borrowed_share,
        reserve_amount=reserve_amount,
        total_cash_available=total_cash_available,
        total_lp_supply=total_lp_supply,
        reserve_config=ReserveConfig(
            loan_to_value=loan_to_value,
            liquidation_threshold=loan_to_value + 5,
            borrow_factor=borrow_factor,
            reserve_ratio=10,
            borrow_fee_hundredth_bips=borrow_fee,
            borrow_limit=borrow_limit,
        ),
        interest_rate_config=InterestRateConfig(
            min_borrow_rate=0,
            optimal_borrow_rate=10,
            max_borrow_rate=100,
            optimal_utilization=80,
        ),
        emode=emode,
    )


@pytest.fixture()
def sample_profile() -> Profile:
    return Profile(
        wallet_address="0xWALLET123",
        name="Main Account",
        profile_address="0xPROFILE1",
    )


def _table_data(handle: str, head: TableKey | None, length: int) -> dict:
    """Raw ``IterableTable`` field as found in a ``profile::Profile`` resource."""
    option = {"vec": [head.to_payload()] if head else []}
    return {
        "inner": {"inner": {"handle": handle}, "length": str(length)},
        "head": option,
        "tail": option,
    }


@pytest.fixture()
def apt_key() -> TableKey:
    return TableKey.from_type_name(APT)


@pytest.fixture()
def usdc_key() -> TableKey:
    return TableKey.from_type_name(USDC)


@pytest.fixture()
def make_reserve():
    return _make_reserve


@pytest.fixture()
def table_data():
    return _table_data
