"""OpenWings entrypoint.

Run with:
  python -m openwings
"""

import logging

import uvicorn

from openwings.core.config import Settings
from openwings.main import create_app


def main() -> None:
    settings = Settings.from_env()
    logging.basicConfig(
        level=settings.log_level,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == '__main__':
    main()
