"""HTTP探测客户端测试"""

import asyncio

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from uptime_monitor.checkers.http_probe import HttpProbeClient, DEFAULT_USER_AGENT
from uptime_monitor.models.probe import ProbeOutcome


def create_target_app() -> web.Application:
    """创建模拟目标服务"""
    seen_user_agents = []

    async def ok(request):
        seen_user_agents.append(request.headers.get('User-Agent'))
        return web.Response(text="ok")

    async def not_found(request):
        return web.Response(status=404, text="missing")

    async def server_error(request):
        return web.Response(status=503, text="unavailable")

    async def redirect(request):
        raise web.HTTPFound('/ok')

    async def not_modified(request):
        return web.Response(status=304)

    async def found_without_location(request):
        return web.Response(status=302)

    async def slow(request):
        await asyncio.sleep(2)
        return web.Response(text="late")

    app = web.Application()
    app['seen_user_agents'] = seen_user_agents
    app.router.add_get('/ok', ok)
    app.router.add_get('/missing', not_found)
    app.router.add_get('/error', server_error)
    app.router.add_get('/redirect', redirect)
    app.router.add_get('/not-modified', not_modified)
    app.router.add_get('/no-location', found_without_location)
    app.router.add_get('/slow', slow)
    return app


class TestHttpProbeClient:
    """HTTP探测客户端测试类"""

    def test_default_timeout(self):
        """测试默认超时时间"""
        client = HttpProbeClient()
        assert client.get_timeout() == 10
        assert client.user_agent == DEFAULT_USER_AGENT

    def test_custom_timeout(self):
        """测试自定义超时时间"""
        client = HttpProbeClient({'timeout': 3})
        assert client.get_timeout() == 3

    @pytest.mark.asyncio
    async def test_probe_healthy(self):
        """测试健康目标"""
        app = create_target_app()
        async with TestServer(app) as server:
            client = HttpProbeClient()
            url = str(server.make_url('/ok'))
            result = await client.probe(url)

        assert result.outcome is ProbeOutcome.HEALTHY
        assert result.status_code == 200
        assert result.url == url
        assert result.error_message is None
        assert result.response_time >= 0

    @pytest.mark.asyncio
    async def test_probe_sends_browser_user_agent(self):
        """测试发送浏览器风格的User-Agent"""
        app = create_target_app()
        async with TestServer(app) as server:
            await HttpProbeClient().probe(str(server.make_url('/ok')))

        assert app['seen_user_agents'] == [DEFAULT_USER_AGENT]

    @pytest.mark.asyncio
    @pytest.mark.parametrize('path,status', [('/missing', 404), ('/error', 503)])
    async def test_probe_unhealthy(self, path, status):
        """测试状态码 >= 400 判定为不健康"""
        async with TestServer(create_target_app()) as server:
            result = await HttpProbeClient().probe(str(server.make_url(path)))

        assert result.outcome is ProbeOutcome.UNHEALTHY
        assert result.status_code == status

    @pytest.mark.asyncio
    async def test_probe_rejects_redirect(self):
        """测试重定向不被跟随并判定为探测失败"""
        app = create_target_app()
        async with TestServer(app) as server:
            result = await HttpProbeClient().probe(str(server.make_url('/redirect')))

        assert result.outcome is ProbeOutcome.PROBE_ERROR
        assert result.status_code == 302
        assert '重定向' in result.error_message
        assert app['seen_user_agents'] == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize('path,status', [('/not-modified', 304), ('/no-location', 302)])
    async def test_probe_non_redirect_3xx_is_healthy(self, path, status):
        """测试没有重定向目标的 3xx 响应判定为健康"""
        async with TestServer(create_target_app()) as server:
            result = await HttpProbeClient().probe(str(server.make_url(path)))

        assert result.outcome is ProbeOutcome.HEALTHY
        assert result.status_code == status
        assert result.error_message is None

    @pytest.mark.asyncio
    async def test_probe_timeout(self):
        """测试请求超时判定为探测失败"""
        async with TestServer(create_target_app()) as server:
            client = HttpProbeClient({'timeout': 0.2})
            result = await client.probe(str(server.make_url('/slow')))

        assert result.outcome is ProbeOutcome.PROBE_ERROR
        assert result.error_message == "HTTP请求超时"
        assert result.response_time < 2

    @pytest.mark.asyncio
    async def test_probe_connection_refused(self):
        """测试连接被拒绝判定为探测失败"""
        result = await HttpProbeClient({'timeout': 2}).probe('http://127.0.0.1:1/')

        assert result.outcome is ProbeOutcome.PROBE_ERROR
        assert result.status_code is None
        assert result.error_message.startswith("HTTP客户端错误")
