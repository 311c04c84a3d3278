"""Account and reserve reporting — iterates wallets x protocols."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from ..chains.aptos import AptosClient
from ..config import AppConfig
from ..errors import AriesError
from ..interfaces.chain import ChainClient
from ..interfaces.protocol_adapter import ProtocolAdapter
from ..models import AccountSummary, ReserveMetrics
from ..protocols.aries import AriesAdapter

logger = logging.getLogger(__name__)

# Registry of protocol adapter factories keyed by protocol name.
_PROTOCOL_FACTORIES: dict[str, Any] = {
    "aries": lambda client, cfg: AriesAdapter(client, cfg),
}


class ReportService:
    """Builds chain clients and adapters from config and runs the reports."""

    def __init__(self, config: AppConfig) -> None:
        self._config = config

        self._chain_clients: dict[str, ChainClient] = {}
        for chain_name, chain_cfg in config.chains.items():
            self._chain_clients[chain_name] = AptosClient(chain_cfg)

        self._adapters: dict[str, ProtocolAdapter] = {}
        for proto_name, proto_cfg in config.protocols.items():
            chain_client = self._chain_clients[proto_cfg.chain]
            factory = _PROTOCOL_FACTORIES.get(proto_name)
            if factory:
                self._adapters[proto_name] = factory(chain_client, proto_cfg)
            else:
                logger.warning("No adapter factory for protocol '%s'", proto_name)

    @staticmethod
    def _format_wallet(address: str) -> str:
        if len(address) > 16:
            return f"{address[:10]}...{address[-6:]}"
        return address

    @staticmethod
    def _now_str() -> str:
        return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")

    async def account_summaries(self) -> list[AccountSummary]:
        """Summarize every configured wallet on each of its protocols.

        A wallet whose data cannot be read is logged and skipped; the other
        wallets are still reported.
        """
        summaries: list[AccountSummary] = []

        for wallet_cfg in self._config.wallets:
            for proto_name in wallet_cfg.protocols:
                adapter = self._adapters.get(proto_name)
                if not adapter:
                    continue

                try:
                    summary = await adapter.fetch_account_summary(
                        wallet_cfg.address, wallet_cfg.profile_address
                    )
                except AriesError as e:
                    logger.error(
                        "Failed to read %s account of %s (%s): %s",
                        proto_name,
                        wallet_cfg.label,
                        self._format_wallet(wallet_cfg.address),
                        e,
                    )
                    continue

                summary = AccountSummary(
                    profile_name=summary.profile_name,
                    profile_address=summary.profile_address,
                    total_borrow_power=summary.total_borrow_power,
                    total_borrowed_value=summary.total_borrowed_value,
                    emode=summary.emode,
                    wallet_label=wallet_cfg.label,
                )
                logger.info(
                    "Account — %s · %s · Power: %d  Borrowed: %d  Usage: %.2f%%",
                    wallet_cfg.label,
                    proto_name,
                    summary.total_borrow_power,
                    summary.total_borrowed_value,
                    summary.usage,
                )
                summaries.append(summary)

        logger.info(
            "Account report finished at %s UTC (%d accounts)",
            self._now_str(),
            len(summaries),
        )
        return summaries

    async def reserve_metrics(self) -> list[ReserveMetrics]:
        """Describe every configured reserve on each protocol."""
        metrics: list[ReserveMetrics] = []

        for proto_name, adapter in self._adapters.items():
            for asset_id in self._config.reserves:
                try:
                    m = await adapter.describe_reserve(asset_id)
                except AriesError as e:
                    logger.error(
                        "Failed to describe %s reserve %s: %s", proto_name, asset_id, e
                    )
                    continue

                logger.info(
                    "Reserve — %s · %s · Util: %.2f%%  Borrow APR: %.2f%%  "
                    "Deposit APR: %.2f%%  Rewards: %.2f%%/%.2f%%  Max borrow: %d",
                    proto_name,
                    asset_id,
                    m.utilization * 100,
                    m.borrow_apr * 100,
                    m.deposit_apr * 100,
                    m.borrow_reward_apr * 100,
                    m.deposit_reward_apr * 100,
                    m.max_borrowable,
                )
                metrics.append(m)

        return metrics
