"""tests for the aiohttp transport against a local server."""

from aiohttp import web
from aiohttp import test_utils
import pytest

from cas_auth.auth import Auth
from cas_auth.const import EndPoint
from cas_auth.exceptions import ClientError
from cas_auth.models import RequestArgs
from cas_auth.network import Network
from cas_auth.session_id import AuthIdGenerator


def make_app(reject=False):
    """CAS-like app: JSON login page, ticket redirect, OAuth text body."""

    async def login_page(request):
        resp = web.json_response({"lt": "LT-42", "execution": "e1s1"})
        resp.set_cookie("JSESSIONID", "cas-session")
        return resp

    async def login_submit(request):
        form = await request.post()
        request.app["submitted"].append(
            {**form, "cookie": request.cookies.get("JSESSIONID")}
        )
        if reject or form.get("password") != "pikachu":
            return web.json_response({"errors": ["bad creds"]}, status=401)
        return web.Response(
            status=302,
            headers={"Location": "https://example.com/cb?ticket=ST-777"},
        )

    async def oauth(request):
        form = await request.post()
        request.app["exchanged"].append(dict(form))
        return web.Response(text=f"access_token=AT-{form['code']}&expires=7200")

    async def not_json(request):
        return web.Response(text="<html>down</html>")

    app = web.Application()
    app["submitted"] = []
    app["exchanged"] = []
    app.router.add_get("/login", login_page)
    app.router.add_post("/login", login_submit)
    app.router.add_post("/oauth", oauth)
    app.router.add_get("/broken", not_json)
    return app


def urls_for(server, login="/login"):
    return {
        EndPoint.LOGIN_INFO: str(server.make_url(login)),
        EndPoint.LOGIN_OAUTH: str(server.make_url("/oauth")),
    }


class TestNetwork:
    """tests for Network request methods."""

    @pytest.mark.asyncio
    async def test_get_json(self):
        """login page JSON is decoded."""
        async with test_utils.TestServer(make_app()) as server:
            async with Network(urls=urls_for(server)) as network:
                resp = await network.get_json(EndPoint.LOGIN_INFO, RequestArgs(1))
                assert resp.status == 200
                assert resp.response == {"lt": "LT-42", "execution": "e1s1"}
                assert resp.received_at > 0

    @pytest.mark.asyncio
    async def test_get_json_undecodable_body(self):
        """a non-JSON body gives response=None."""
        async with test_utils.TestServer(make_app()) as server:
            async with Network(urls=urls_for(server, "/broken")) as network:
                resp = await network.get_json(EndPoint.LOGIN_INFO, RequestArgs(1))
                assert resp.response is None

    @pytest.mark.asyncio
    async def test_post_data_does_not_follow_redirect(self):
        """the ticket redirect is returned, not followed."""
        async with test_utils.TestServer(make_app()) as server:
            async with Network(urls=urls_for(server)) as network:
                resp = await network.post_data(
                    EndPoint.LOGIN_INFO,
                    RequestArgs(1, {"username": "ash", "password": "pikachu"}),
                )
                assert resp.status == 302
                assert resp.headers["location"].endswith("?ticket=ST-777")

    @pytest.mark.asyncio
    async def test_cookies_are_per_session(self):
        """stage 1 cookies reach stage 2 only within the same session id."""
        app = make_app()
        async with test_utils.TestServer(app) as server:
            async with Network(urls=urls_for(server)) as network:
                await network.get_json(EndPoint.LOGIN_INFO, RequestArgs(1))
                params = {"password": "pikachu"}
                await network.post_data(EndPoint.LOGIN_INFO, RequestArgs(1, params))
                await network.post_data(EndPoint.LOGIN_INFO, RequestArgs(2, params))

        assert app["submitted"][0]["cookie"] == "cas-session"
        assert app["submitted"][1]["cookie"] is None

    @pytest.mark.asyncio
    async def test_reset_session(self):
        """reset drops the session and tolerates repeats and unknown ids."""
        async with test_utils.TestServer(make_app()) as server:
            async with Network(urls=urls_for(server)) as network:
                await network.get_json(EndPoint.LOGIN_INFO, RequestArgs(7))
                assert network.active_sessions == frozenset({7})

                network.reset_session(7)
                network.reset_session(7)
                network.reset_session(99)
                assert network.active_sessions == frozenset()

    def test_url_overrides(self):
        """unspecified endpoints keep their default URL."""
        network = Network(urls={EndPoint.LOGIN_OAUTH: "http://localhost/oauth"})
        assert network.url_for(EndPoint.LOGIN_OAUTH) == "http://localhost/oauth"
        assert network.url_for(EndPoint.LOGIN_INFO).startswith("https://")


class TestLoginOverHttp:
    """end-to-end login through the real transport."""

    @pytest.mark.asyncio
    async def test_full_login(self):
        """all three stages succeed and the session is released."""
        app = make_app()
        async with test_utils.TestServer(app) as server:
            async with Network(urls=urls_for(server)) as network:
                auth = Auth(network, AuthIdGenerator())
                token = await auth.login("ash", "pikachu")
                assert network.active_sessions == frozenset()

        assert token.token == "AT-ST-777"
        assert not token.is_expired()
        submitted = app["submitted"][0]
        assert submitted["lt"] == "LT-42"
        assert submitted["execution"] == "e1s1"
        assert submitted["_eventId"] == "submit"
        assert submitted["cookie"] == "cas-session"
        assert app["exchanged"][0]["code"] == "ST-777"
        assert app["exchanged"][0]["grant_type"] == "refresh_token"

    @pytest.mark.asyncio
    async def test_rejected_login(self):
        """a rejection surfaces the server message and skips stage 3."""
        app = make_app(reject=True)
        async with test_utils.TestServer(app) as server:
            async with Network(urls=urls_for(server)) as network:
                auth = Auth(network, AuthIdGenerator())
                with pytest.raises(ClientError) as exc_info:
                    await auth.login("ash", "pikachu")
                assert network.active_sessions == frozenset()

        assert exc_info.value.message == "bad creds"
        assert app["exchanged"] == []
