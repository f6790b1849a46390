"""启动 HTTP 服务：``python -m focus_core``。"""

import uvicorn

from focus_core.api.app import create_app
from focus_core.config.settings import load_settings


def main() -> None:
    settings = load_settings()
    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
