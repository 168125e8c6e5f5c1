"""Unit tests for the monitor echo bot and the channel router."""

import pytest
from botbuilder.schema import ActivityTypes, ChannelAccount

from bot import ChannelRouter
from conftest import make_activity, message


class TestMonitorBot:
    """Tests for MonitorBot."""

    @pytest.mark.asyncio
    async def test_echo(self, adapter, monitor_bot, relay):
        """Plain text is echoed back and no monitor is registered."""
        sent = await adapter.run(message("hola", channel_id="emulator"), monitor_bot.on_turn)

        assert [a.text for a in sent] == ['Echo from MonitorBot: "**hola**"']
        assert await relay.target() is None

    @pytest.mark.asyncio
    async def test_monitor_command_registers_target(self, adapter, monitor_bot, relay):
        """"monitor alexa" stores this conversation as the monitor."""
        sent = await adapter.run(
            message("Monitor Alexa", channel_id="msteams", user_id="operator"), monitor_bot.on_turn
        )

        assert [a.text for a in sent] == ["Alexa monitor is on"]
        reference = await relay.target()
        assert reference.channel_id == "msteams"
        assert reference.conversation.id == "conv-operator"

    @pytest.mark.asyncio
    async def test_latest_registration_wins(self, adapter, monitor_bot, relay):
        """A second registration overwrites the first."""
        await adapter.run(message("monitor alexa", channel_id="emulator", user_id="a"), monitor_bot.on_turn)
        await adapter.run(message("monitor alexa", channel_id="webchat", user_id="b"), monitor_bot.on_turn)

        reference = await relay.target()
        assert reference.channel_id == "webchat"
        assert reference.conversation.id == "conv-b"

    @pytest.mark.asyncio
    async def test_members_added_greets_users_only(self, adapter, monitor_bot):
        """Only non-bot members get the greeting."""
        activity = make_activity(ActivityTypes.conversation_update, channel_id="emulator")
        activity.members_added = [ChannelAccount(id="bot"), ChannelAccount(id="user-1")]

        sent = await adapter.run(activity, monitor_bot.on_turn)

        assert [a.text for a in sent] == ["Hello world - From MonitorBot! (channel: emulator)"]


class TestChannelRouter:
    """Tests for channel-keyed dispatch."""

    @pytest.mark.asyncio
    async def test_alexa_goes_to_game(self, adapter, alexa_bot, monitor_bot):
        """Alexa-tagged messages run the game."""
        router = ChannelRouter({"alexa": alexa_bot}, default=monitor_bot)

        sent = await adapter.run(message("Alice"), router.on_turn)

        assert sent[0].text.startswith("Gracias Alice")

    @pytest.mark.asyncio
    async def test_other_channels_go_to_echo(self, adapter, alexa_bot, monitor_bot):
        """Any other channel falls back to the echo bot."""
        router = ChannelRouter({"alexa": alexa_bot}, default=monitor_bot)

        sent = await adapter.run(message("Alice", channel_id="msteams"), router.on_turn)

        assert sent[0].text == 'Echo from MonitorBot: "**Alice**"'

    def test_handler_for(self, alexa_bot, monitor_bot):
        """Lookup uses the table with a default."""
        router = ChannelRouter({"alexa": alexa_bot}, default=monitor_bot)

        assert router.handler_for("alexa") is alexa_bot
        assert router.handler_for("webchat") is monitor_bot
