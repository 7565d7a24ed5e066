import uvicorn

from .config import get_settings
from .logging import setup_logging


def main():
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    # log_config=None keeps uvicorn from replacing the Loguru intercept
    uvicorn.run(
        "recipe_manager.app:app",
        host=settings.host,
        port=settings.port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
