"""Integration tests for the Aries adapter with a mocked chain client."""
from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock

import pytest

from aries_lend.config import ProtocolConfig
from aries_lend.errors import MalformedDataError, NotFoundError
from aries_lend.fixed_point import DECIMAL_SCALE
from aries_lend.models import FarmType, NodeKind, Profile, TableKey, TableObject
from aries_lend.protocols.aries.adapter import TYPE_INFO, AriesAdapter

APT = "0x1::aptos_coin::AptosCoin"

PROFILES_RESOURCE = {
    "type": "0xaries::profile::Profiles",
    "data": {
        "profile_signers": {
            "data": [
                {"key": "profileMain Account", "value": {"account": "0xP1"}},
                {"key": "profileSecond", "value": {"account": "0xP2"}},
            ]
        }
    },
}

APT_RESERVE = {
    "initial_exchange_rate": {"val": str(DECIMAL_SCALE)},
    "interest_rate_config": {
        "max_borrow_rate": "100",
        "min_borrow_rate": "0",
        "optimal_borrow_rate": "10",
        "optimal_utilization": "80",
    },
    "reserve_amount": {"val": "0"},
    "reserve_config": {
        "allow_collateral": True,
        "allow_redeem": True,
        "borrow_factor": 100,
        "borrow_fee_hundredth_bips": "0",
        "borrow_limit": "1000000000000",
        "deposit_limit": "1000000000000",
        "flash_loan_fee_hundredth_bips": "0",
        "liquidation_bonus_bips": "500",
        "liquidation_fee_hundredth_bips": "0",
        "liquidation_threshold": 60,
        "loan_to_value": 50,
        "reserve_ratio": 10,
        "withdraw_fee_hundredth_bips": "0",
    },
    "total_borrowed": {"val": str(250 * DECIMAL_SCALE)},
    "total_borrowed_share": {"val": str(250 * DECIMAL_SCALE)},
    "total_cash_available": "750",
    "total_lp_supply": "1000",
}


@pytest.fixture()
def mock_chain_client() -> AsyncMock:
    return AsyncMock()


@pytest.fixture()
def adapter(
    mock_chain_client: AsyncMock, sample_protocol_config: ProtocolConfig
) -> AriesAdapter:
    return AriesAdapter(mock_chain_client, sample_protocol_config)


@pytest.fixture()
def contract(sample_protocol_config: ProtocolConfig) -> str:
    return sample_protocol_config.contract_address


def _view_router(contract: str, responses: dict[str, Any]):
    """Dispatch mocked view calls on the module::function part of the name."""

    def view(function: str, type_arguments: list[str], arguments: list[Any]):
        assert function.startswith(contract + "::")
        name = function[len(contract) + 2:]
        response = responses[name]
        return response(type_arguments, arguments) if callable(response) else response

    return view


class TestProfiles:
    def test_protocol_name(self, adapter: AriesAdapter) -> None:
        assert adapter.protocol_name == "aries"

    @pytest.mark.asyncio
    async def test_first_profile_with_emode(
        self, adapter: AriesAdapter, mock_chain_client: AsyncMock, contract: str
    ) -> None:
        mock_chain_client.get_account_resource.return_value = PROFILES_RESOURCE
        mock_chain_client.view.side_effect = _view_router(
            contract, {"emode_category::profile_emode": [{"vec": ["stable"]}]}
        )

        profile = await adapter.get_profile("0xW")

        assert profile == Profile(
            wallet_address="0xW",
            name="Main Account",
            profile_address="0xP1",
            emode="stable",
        )
        mock_chain_client.get_account_resource.assert_awaited_once_with(
            "0xW", f"{contract}::profile::Profiles"
        )
        mock_chain_client.view.assert_awaited_once_with(
            f"{contract}::emode_category::profile_emode", [], ["0xP1"]
        )

    @pytest.mark.asyncio
    async def test_selects_requested_profile(
        self, adapter: AriesAdapter, mock_chain_client: AsyncMock, contract: str
    ) -> None:
        mock_chain_client.get_account_resource.return_value = PROFILES_RESOURCE
        mock_chain_client.view.side_effect = _view_router(
            contract, {"emode_category::profile_emode": [{"vec": []}]}
        )

        profile = await adapter.get_profile("0xW", "0xP2")

        assert profile.name == "Second"
        assert profile.emode is None

    @pytest.mark.asyncio
    async def test_unknown_profile_raises(
        self, adapter: AriesAdapter, mock_chain_client: AsyncMock
    ) -> None:
        mock_chain_client.get_account_resource.return_value = PROFILES_RESOURCE
        with pytest.raises(NotFoundError):
            await adapter.get_profile("0xW", "0xNOPE")
        mock_chain_client.view.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_wallet_without_profiles(
        self, adapter: AriesAdapter, mock_chain_client: AsyncMock
    ) -> None:
        mock_chain_client.get_account_resource.side_effect = NotFoundError("resource")
        with pytest.raises(NotFoundError):
            await adapter.get_profile("0xW")


class TestReads:
    @pytest.mark.asyncio
    async def test_get_reserve(
        self, adapter: AriesAdapter, mock_chain_client: AsyncMock, contract: str
    ) -> None:
        mock_chain_client.view.side_effect = _view_router(
            contract,
            {
                "reserve::reserve_state": [APT_RESERVE],
                "emode_category::reserve_emode": [{"vec": ["apt"]}],
            },
        )

        reserve = await adapter.get_reserve(APT)

        assert reserve.token_address == APT
        assert reserve.emode == "apt"
        assert reserve.total_cash_available == 750
        assert reserve.reserve_config.loan_to_value == 50
        calls = [c.args for c in mock_chain_client.view.await_args_list]
        assert calls[0] == (f"{contract}::reserve::reserve_state", [APT], [])

    @pytest.mark.asyncio
    async def test_get_price(
        self, adapter: AriesAdapter, mock_chain_client: AsyncMock, contract: str
    ) -> None:
        mock_chain_client.view.return_value = [{"val": "8500000"}]
        assert await adapter.get_price(APT) == 8500000
        mock_chain_client.view.assert_awaited_once_with(
            f"{contract}::oracle::get_reserve_price", [APT], []
        )

    @pytest.mark.asyncio
    async def test_get_emode_config(
        self, adapter: AriesAdapter, mock_chain_client: AsyncMock
    ) -> None:
        mock_chain_client.view.return_value = [
            {"loan_to_value": 90, "liquidation_threshold": 93, "liquidation_bonus_bips": "200"}
        ]
        cfg = await adapter.get_emode_config("stable")
        assert cfg.loan_to_value == 90

    @pytest.mark.asyncio
    async def test_missing_emode_config(
        self, adapter: AriesAdapter, mock_chain_client: AsyncMock
    ) -> None:
        mock_chain_client.view.return_value = []
        with pytest.raises(MalformedDataError, match="emode_config"):
            await adapter.get_emode_config("nope")

    @pytest.mark.asyncio
    async def test_loan_amount_scaled_down(
        self, adapter: AriesAdapter, mock_chain_client: AsyncMock, sample_profile: Profile
    ) -> None:
        mock_chain_client.view.return_value = [
            str(5 * DECIMAL_SCALE + 1),
            str(7 * DECIMAL_SCALE),
        ]
        assert await adapter.get_loan_amount(sample_profile, APT) == (6, 7)
        args = mock_chain_client.view.await_args.args
        assert args[2] == [sample_profile.wallet_address, sample_profile.name]

    @pytest.mark.asyncio
    async def test_deposited_amount(
        self, adapter: AriesAdapter, mock_chain_client: AsyncMock, sample_profile: Profile
    ) -> None:
        mock_chain_client.view.return_value = ["400", "420"]
        assert await adapter.get_deposited_amount(sample_profile, APT) == (400, 420)

    @pytest.mark.asyncio
    async def test_fetch_node(
        self, adapter: AriesAdapter, mock_chain_client: AsyncMock, contract: str
    ) -> None:
        key = TableKey.from_type_name(APT)
        mock_chain_client.get_table_item.return_value = {
            "val": {"borrowed_share": {"val": "42"}},
            "prev": {"vec": []},
            "next": {"vec": []},
        }
        table = TableObject(handle="0xLOANS", length=1, head=key, tail=key)

        node = await adapter.fetch_node(table, key, NodeKind.LOAN)

        assert node.amount == 42
        assert node.next is None
        mock_chain_client.get_table_item.assert_awaited_once_with(
            "0xLOANS",
            TYPE_INFO,
            f"{contract}::iterable_table::IterableValue"
            f"<{TYPE_INFO}, {contract}::profile::Loan>",
            key.to_payload(),
        )


class TestRewards:
    @pytest.mark.asyncio
    async def test_reward_type_argument(
        self, adapter: AriesAdapter, mock_chain_client: AsyncMock, contract: str
    ) -> None:
        mock_chain_client.view.return_value = [{"vec": []}]
        assert await adapter.get_rewards(APT, FarmType.BORROW) == []
        mock_chain_client.view.assert_awaited_once_with(
            f"{contract}::reserve::reserve_farm",
            [APT, f"{contract}::reserve_config::BorrowFarming"],
            [],
        )

    @pytest.mark.asyncio
    async def test_describe_reserve(
        self, adapter: AriesAdapter, mock_chain_client: AsyncMock, contract: str
    ) -> None:
        apt_key = TableKey.from_type_name(APT)
        deposit_farm = [
            {
                "vec": [
                    {
                        "reward_types": [apt_key.to_payload()],
                        "rewards": [
                            {
                                "remaining_reward": "1000",
                                "reward_per_day": "10",
                                "reward_per_share_decimal": "0",
                            }
                        ],
                        "share": "1000",
                        "timestamp": "0",
                    }
                ]
            }
        ]

        def farm(type_arguments: list[str], arguments: list[Any]):
            if type_arguments[1].endswith("DepositFarming"):
                return deposit_farm
            return [{"vec": []}]

        mock_chain_client.view.side_effect = _view_router(
            contract,
            {
                "reserve::reserve_state": [APT_RESERVE],
                "emode_category::reserve_emode": [{"vec": []}],
                "oracle::get_reserve_price": [{"val": "5"}],
                "reserve::reserve_farm": farm,
            },
        )

        metrics = await adapter.describe_reserve(APT)

        # 250 borrowed + 750 cash over 1000 LP
        assert metrics.total_assets == 1000
        assert metrics.lp_rate == pytest.approx(1.0)
        assert metrics.share_rate == pytest.approx(1.0)
        assert metrics.utilization == pytest.approx(0.25)
        assert metrics.borrow_apr == pytest.approx(0.25 / 0.8 * 0.10)
        assert metrics.borrow_reward_apr == 0.0
        # same token and price: 10 / 1000 per day
        assert metrics.deposit_reward_apr == pytest.approx(3.65)
        assert metrics.max_borrowable == 750
        assert metrics.emode is None


class TestAccountSummary:
    @pytest.mark.asyncio
    async def test_empty_profile(
        self, adapter: AriesAdapter, mock_chain_client: AsyncMock, contract: str
    ) -> None:
        empty_table = {
            "inner": {"inner": {"handle": "0xH"}, "length": "0"},
            "head": {"vec": []},
            "tail": {"vec": []},
        }

        def resource(address: str, resource_type: str):
            if resource_type.endswith("::Profiles"):
                return PROFILES_RESOURCE
            return {
                "data": {
                    "deposited_reserves": empty_table,
                    "borrowed_reserves": empty_table,
                }
            }

        mock_chain_client.get_account_resource.side_effect = resource
        mock_chain_client.view.side_effect = _view_router(
            contract, {"emode_category::profile_emode": [{"vec": []}]}
        )

        summary = await adapter.fetch_account_summary("0xW")

        assert summary.profile_name == "Main Account"
        assert summary.total_borrow_power == 0
        assert summary.total_borrowed_value == 0
        mock_chain_client.get_table_item.assert_not_awaited()
