"""
Page Credential Resolution Tests

FacebookClient.get_api: single-page token, per-page resolver,
echo role swap, InvalidReference / MissingCredential / ConfigurationError.
"""

from unittest.mock import AsyncMock

import pytest

from transport.facebook.client import FacebookClient
from transport.facebook.errors import ConfigurationError, InvalidReference, MissingCredential
from transport.facebook.schemas import Activity


def make_activity(
    sender: str = "user_1",
    recipient: str = "page_1",
    is_echo: bool = False,
) -> Activity:
    return Activity.model_validate(
        {
            "id": "mid.1",
            "from": {"id": sender},
            "recipient": {"id": recipient},
            "channel_data": {
                "sender": {"id": sender},
                "recipient": {"id": recipient},
                "message": {"mid": "mid.1", "text": "hi", "is_echo": is_echo},
            },
        }
    )


class TestSinglePage:
    """Globally configured access token."""

    @pytest.mark.asyncio
    async def test_global_token_used_directly(self, client_config):
        resolver = AsyncMock(return_value="page_token")
        client = FacebookClient(client_config, token_resolver=resolver)

        api = await client.get_api(make_activity())

        assert api.config.access_token == client_config.access_token
        resolver.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_global_token_ignores_missing_recipient(self, client_config):
        """Single-page mode does not need a recipient id."""
        client = FacebookClient(client_config)
        api = await client.get_api(Activity())
        assert api.config.access_token == client_config.access_token

    @pytest.mark.asyncio
    async def test_shared_transport_carried_over(self, client_config):
        sentinel = object()
        client = FacebookClient(client_config, http_client=sentinel)

        api = await client.get_api(make_activity())

        assert api.http_client is sentinel
        assert api is not client


class TestPerPageResolution:
    """Tokens resolved per page id."""

    @pytest.mark.asyncio
    async def test_non_echo_resolves_recipient(self, multi_page_config):
        resolver = AsyncMock(return_value="token_for_page")
        client = FacebookClient(multi_page_config, token_resolver=resolver)

        api = await client.get_api(make_activity(sender="user_1", recipient="page_1"))

        resolver.assert_awaited_once_with("page_1")
        assert api.config.access_token == "token_for_page"
        assert api.config.app_secret == multi_page_config.app_secret
        assert multi_page_config.access_token == ""

    @pytest.mark.asyncio
    async def test_echo_resolves_sender(self, multi_page_config):
        """Echoes carry the page as sender - roles are swapped."""
        resolver = AsyncMock(return_value="token_for_page")
        client = FacebookClient(multi_page_config, token_resolver=resolver)

        activity = make_activity(sender="page_1", recipient="user_1", is_echo=True)
        assert activity.is_echo

        await client.get_api(activity)

        resolver.assert_awaited_once_with("page_1")

    @pytest.mark.asyncio
    async def test_no_channel_data_is_not_echo(self, multi_page_config):
        resolver = AsyncMock(return_value="token")
        client = FacebookClient(multi_page_config, token_resolver=resolver)

        activity = Activity.model_validate(
            {"from": {"id": "user_1"}, "recipient": {"id": "page_1"}}
        )
        await client.get_api(activity)

        resolver.assert_awaited_once_with("page_1")


class TestResolutionErrors:
    """Failure modes."""

    @pytest.mark.asyncio
    async def test_empty_recipient_raises_invalid_reference(self, multi_page_config):
        resolver = AsyncMock(return_value="token")
        client = FacebookClient(multi_page_config, token_resolver=resolver)

        with pytest.raises(InvalidReference):
            await client.get_api(make_activity(recipient=""))

        resolver.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_recipient_raises_invalid_reference(self, multi_page_config):
        client = FacebookClient(multi_page_config, token_resolver=AsyncMock(return_value="t"))

        with pytest.raises(InvalidReference):
            await client.get_api(Activity(text="no recipient"))

    @pytest.mark.asyncio
    async def test_none_activity_raises_invalid_reference(self, client_config):
        with pytest.raises(InvalidReference):
            await FacebookClient(client_config).get_api(None)

    @pytest.mark.asyncio
    async def test_empty_token_raises_missing_credential(self, multi_page_config):
        client = FacebookClient(multi_page_config, token_resolver=AsyncMock(return_value=""))

        with pytest.raises(MissingCredential):
            await client.get_api(make_activity())

    @pytest.mark.asyncio
    async def test_blank_token_raises_missing_credential(self, multi_page_config):
        client = FacebookClient(multi_page_config, token_resolver=AsyncMock(return_value="   "))

        with pytest.raises(MissingCredential):
            await client.get_api(make_activity())

    @pytest.mark.asyncio
    async def test_no_resolver_raises_configuration_error(self, multi_page_config):
        with pytest.raises(ConfigurationError):
            await FacebookClient(multi_page_config).get_api(make_activity())

    @pytest.mark.asyncio
    async def test_resolver_error_propagates(self, multi_page_config):
        resolver = AsyncMock(side_effect=RuntimeError("token store down"))
        client = FacebookClient(multi_page_config, token_resolver=resolver)

        with pytest.raises(RuntimeError):
            await client.get_api(make_activity())
