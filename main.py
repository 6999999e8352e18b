from loguru import logger

from workflowy_bridge.cli import app


def main() -> None:
    logger.debug("Application started")
    app()


if __name__ == "__main__":
    main()
