# hookbin/__main__.py
import logging

from . import create_app
from .config import Config, parse_bind_addr

logger = logging.getLogger("hookbin")


def main() -> None:
    logging.basicConfig(level=Config.LOG_LEVEL)
    app = create_app()

    base_url = app.config["BASE_URL"]
    if base_url:
        logger.info("Using configured BASE_URL: %s", base_url)
    else:
        logger.info("No BASE_URL configured, will derive webhook URLs from request headers")

    host, port = parse_bind_addr(app.config["BIND_ADDR"])
    logger.info("Listening on %s", app.config["BIND_ADDR"])
    app.run(host=host, port=port, threaded=True)


if __name__ == "__main__":
    main()
