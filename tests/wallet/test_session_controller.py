"""Tests for the wallet session controller."""

import logging

import pytest

from unittest.mock import AsyncMock

from conftest import ONE_TOKEN, SENDER, TARGET_CHAIN_HEX, FakeProvider

from tipjar.errors import ProviderRpcError, ProviderUnavailable, RpcError, UserRejected
from tipjar.wallet.models import ChainConfig, WalletSession
from tipjar.wallet.provider import ProviderBridge
from tipjar.wallet.session import SessionController


OTHER = "0x2222222222222222222222222222222222222222"


@pytest.fixture
def controller(
    bridge: ProviderBridge,
    mock_rpc: AsyncMock,
    mock_http_client: AsyncMock,
    chain: ChainConfig,
) -> SessionController:
    return SessionController(bridge, mock_rpc, mock_http_client, chain)


class TestConnect:
    """Test connect and restore."""

    @pytest.mark.asyncio
    async def test_connect_builds_session(
        self,
        controller: SessionController,
        mock_rpc: AsyncMock,
        mock_http_client: AsyncMock,
    ) -> None:
        """Test connect fills address, chain and balance."""
        session = await controller.connect()

        assert session == WalletSession(
            connected=True,
            address=SENDER,
            chain_id=TARGET_CHAIN_HEX,
            balance_wei=2 * ONE_TOKEN,
        )
        assert session is controller.session
        assert controller.is_correct_network is True
        mock_rpc.get_balance.assert_awaited_once_with(mock_http_client, SENDER)

    @pytest.mark.asyncio
    async def test_connect_wrong_network(
        self, make_provider, mock_rpc: AsyncMock, mock_http_client: AsyncMock, chain: ChainConfig
    ) -> None:
        """Test a session on another chain is connected but not on the right network."""
        bridge = ProviderBridge(make_provider({"eth_chainId": "0x1"}))
        controller = SessionController(bridge, mock_rpc, mock_http_client, chain)

        session = await controller.connect()

        assert session.connected is True
        assert session.chain_id == "0x1"
        assert controller.is_correct_network is False

    @pytest.mark.asyncio
    async def test_connect_without_provider(
        self, mock_rpc: AsyncMock, mock_http_client: AsyncMock, chain: ChainConfig
    ) -> None:
        """Test connect raises when no wallet is installed."""
        controller = SessionController(
            ProviderBridge(None), mock_rpc, mock_http_client, chain
        )

        with pytest.raises(ProviderUnavailable):
            await controller.connect()
        assert controller.session.connected is False

    @pytest.mark.asyncio
    async def test_connect_rejected(
        self, make_provider, mock_rpc: AsyncMock, mock_http_client: AsyncMock, chain: ChainConfig
    ) -> None:
        """Test a dismissed prompt leaves the session disconnected."""
        provider = make_provider({"eth_requestAccounts": ProviderRpcError(4001, "rejected")})
        controller = SessionController(
            ProviderBridge(provider), mock_rpc, mock_http_client, chain
        )

        with pytest.raises(UserRejected):
            await controller.connect()
        assert controller.session.connected is False
        mock_rpc.get_balance.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_restore_with_authorized_account(
        self, fake_provider: FakeProvider, controller: SessionController
    ) -> None:
        """Test restore uses eth_accounts and never prompts."""
        session = await controller.restore()

        assert session.connected is True
        assert session.address == SENDER
        assert fake_provider.count("eth_requestAccounts") == 0

    @pytest.mark.asyncio
    async def test_restore_without_accounts(
        self, make_provider, mock_rpc: AsyncMock, mock_http_client: AsyncMock, chain: ChainConfig
    ) -> None:
        """Test restore stays disconnected when nothing is authorized."""
        controller = SessionController(
            ProviderBridge(make_provider({"eth_accounts": []})),
            mock_rpc,
            mock_http_client,
            chain,
        )

        session = await controller.restore()

        assert session.connected is False
        mock_rpc.get_balance.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_restore_without_provider(
        self, mock_rpc: AsyncMock, mock_http_client: AsyncMock, chain: ChainConfig
    ) -> None:
        """Test restore is a no-op without a provider."""
        controller = SessionController(
            ProviderBridge(None), mock_rpc, mock_http_client, chain
        )

        assert (await controller.restore()).connected is False


class TestRefreshAndSwitch:
    """Test balance refresh and explicit network switching."""

    @pytest.mark.asyncio
    async def test_refresh_balance(
        self, controller: SessionController, mock_rpc: AsyncMock
    ) -> None:
        """Test refresh re-reads the balance."""
        await controller.connect()
        mock_rpc.get_balance.return_value = ONE_TOKEN

        session = await controller.refresh_balance()

        assert session.balance_wei == ONE_TOKEN

    @pytest.mark.asyncio
    async def test_refresh_when_disconnected(
        self, controller: SessionController, mock_rpc: AsyncMock
    ) -> None:
        """Test refresh does nothing without a connection."""
        await controller.refresh_balance()

        mock_rpc.get_balance.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_switch_network_success(
        self, make_provider, mock_rpc: AsyncMock, mock_http_client: AsyncMock, chain: ChainConfig
    ) -> None:
        """Test a successful switch updates the session chain."""
        state = {"chain": "0x1"}

        def switch(params: list) -> None:
            state["chain"] = params[0]["chainId"]

        provider = make_provider({
            "eth_chainId": lambda params: state["chain"],
            "wallet_switchEthereumChain": switch,
        })
        controller = SessionController(
            ProviderBridge(provider), mock_rpc, mock_http_client, chain
        )
        await controller.connect()
        assert controller.is_correct_network is False

        assert await controller.switch_network() is True
        assert controller.session.chain_id == TARGET_CHAIN_HEX
        assert controller.is_correct_network is True

    @pytest.mark.asyncio
    async def test_switch_network_after_add_rereads_chain(
        self, make_provider, mock_rpc: AsyncMock, mock_http_client: AsyncMock, chain: ChainConfig
    ) -> None:
        """Test the chain is re-read after an add instead of assumed."""
        provider = make_provider({
            "eth_chainId": "0x1",
            "wallet_switchEthereumChain": ProviderRpcError(4902, "Unrecognized chain ID"),
            "wallet_addEthereumChain": None,
        })
        controller = SessionController(
            ProviderBridge(provider), mock_rpc, mock_http_client, chain
        )
        await controller.connect()

        assert await controller.switch_network() is False
        assert provider.count("wallet_switchEthereumChain") == 1
        assert provider.count("wallet_addEthereumChain") == 1


class TestProviderEvents:
    """Test accountsChanged and chainChanged handling."""

    @pytest.mark.asyncio
    async def test_empty_accounts_resets_immediately(
        self, controller: SessionController
    ) -> None:
        """Test disconnect tears the session down before anything else."""
        await controller.connect()

        controller.handle_accounts_changed([])

        assert controller.session == WalletSession.disconnected()

    @pytest.mark.asyncio
    async def test_account_switch_refreshes(
        self, controller: SessionController, mock_rpc: AsyncMock
    ) -> None:
        """Test a new account replaces the address and reloads its balance."""
        await controller.connect()
        mock_rpc.get_balance.return_value = ONE_TOKEN

        controller.handle_accounts_changed([OTHER])
        assert controller.session.address == OTHER
        await controller.drain()

        assert controller.session.balance_wei == ONE_TOKEN
        assert controller.session.connected is True

    @pytest.mark.asyncio
    async def test_rapid_account_switches_keep_latest(
        self, controller: SessionController, mock_rpc: AsyncMock
    ) -> None:
        """Test a superseded account never overwrites the newer one."""
        balances = {SENDER: 5, OTHER: 7}
        mock_rpc.get_balance.side_effect = lambda client, address: balances[address]

        controller.handle_accounts_changed([SENDER])
        controller.handle_accounts_changed([OTHER])
        await controller.drain()

        assert controller.session.address == OTHER
        assert controller.session.balance_wei == 7

    @pytest.mark.asyncio
    async def test_same_account_is_ignored(
        self, controller: SessionController, mock_rpc: AsyncMock
    ) -> None:
        """Test re-announcing the current account does nothing."""
        await controller.connect()
        mock_rpc.get_balance.reset_mock()

        controller.handle_accounts_changed([SENDER])
        await controller.drain()

        mock_rpc.get_balance.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_chain_changed_updates_and_refreshes(
        self, controller: SessionController, mock_rpc: AsyncMock
    ) -> None:
        """Test chainChanged stores the id and re-reads the balance."""
        await controller.connect()
        mock_rpc.get_balance.return_value = 3

        controller.handle_chain_changed("0x1F93")
        await controller.drain()

        assert controller.session.chain_id == TARGET_CHAIN_HEX
        assert controller.session.balance_wei == 3

    @pytest.mark.asyncio
    async def test_numeric_chain_changed(
        self, controller: SessionController
    ) -> None:
        """Test a numeric chainChanged payload is stored as hex."""
        await controller.connect()

        controller.handle_chain_changed(8083)
        await controller.drain()

        assert controller.session.chain_id == TARGET_CHAIN_HEX
        assert controller.is_correct_network is True

    @pytest.mark.asyncio
    async def test_chain_changed_while_disconnected(
        self, controller: SessionController, mock_rpc: AsyncMock
    ) -> None:
        """Test no balance read happens without an account."""
        controller.handle_chain_changed("0x1")
        await controller.drain()

        assert controller.session.chain_id == "0x1"
        mock_rpc.get_balance.assert_not_awaited()

    def test_event_without_running_loop(
        self, controller: SessionController, mock_rpc: AsyncMock
    ) -> None:
        """Test handlers still update state when no event loop is running."""
        controller.session.connected = True
        controller.session.address = SENDER

        controller.handle_chain_changed("0x1")

        assert controller.session.chain_id == "0x1"
        mock_rpc.get_balance.assert_not_called()

    @pytest.mark.asyncio
    async def test_failed_refresh_is_logged(
        self,
        controller: SessionController,
        mock_rpc: AsyncMock,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Test a failing background refresh is logged, not raised."""
        await controller.connect()
        mock_rpc.get_balance.side_effect = RpcError("eth_getBalance", "timeout")

        with caplog.at_level(logging.WARNING):
            controller.handle_chain_changed("0x1f93")
            await controller.drain()

        assert "Balance refresh after provider event failed" in caplog.text
        assert controller.session.balance_wei == 2 * ONE_TOKEN


class TestWatch:
    """Test the subscription scope."""

    @pytest.mark.asyncio
    async def test_watch_routes_events(
        self, fake_provider: FakeProvider, controller: SessionController
    ) -> None:
        """Test events reach the controller while watching."""
        with controller.watch():
            await controller.connect()
            fake_provider.emit("accountsChanged", [])
            assert controller.session.connected is False

        assert fake_provider.listeners["accountsChanged"] == []
        assert fake_provider.listeners["chainChanged"] == []

    def test_rewatch_does_not_stack(
        self, fake_provider: FakeProvider, controller: SessionController
    ) -> None:
        """Test watching twice registers one handler per event."""
        with controller.watch():
            pass
        with controller.watch():
            assert len(fake_provider.listeners["accountsChanged"]) == 1
            assert len(fake_provider.listeners["chainChanged"]) == 1
            fake_provider.emit("chainChanged", "0x5")
            assert controller.session.chain_id == "0x5"

    def test_watch_releases_on_error(
        self, fake_provider: FakeProvider, controller: SessionController
    ) -> None:
        """Test listeners are removed when the block raises."""
        with pytest.raises(RuntimeError), controller.watch():
            raise RuntimeError("unmount")

        assert fake_provider.listeners["accountsChanged"] == []
