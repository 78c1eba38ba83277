"""存活检查 HTTP 服务

GET / 固定返回 200 "Running"，只表示监控进程存活，与目标健康状态无关。
"""

from typing import Optional

from aiohttp import web

from ..utils.log_manager import get_logger


async def _handle_index(request: web.Request) -> web.Response:
    return web.Response(text="Running")


def create_liveness_app() -> web.Application:
    """创建存活检查应用"""
    app = web.Application()
    app.router.add_get("/", _handle_index)
    return app


class LivenessServer:
    """存活检查服务"""

    def __init__(self, host: str = '0.0.0.0', port: int = 8000):
        self.host = host
        self.port = port
        self.runner: Optional[web.AppRunner] = None
        self.logger = get_logger('liveness')

    async def start(self):
        self.runner = web.AppRunner(create_liveness_app())
        await self.runner.setup()
        site = web.TCPSite(self.runner, self.host, self.port)
        await site.start()
        self.logger.info(f"存活检查服务已启动: http://{self.host}:{self.port}/")

    async def stop(self):
        if self.runner:
            await self.runner.cleanup()
            self.runner = None
            self.logger.info("存活检查服务已停止")
