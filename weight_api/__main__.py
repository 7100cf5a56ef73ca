"""Run the API with uvicorn: python -m weight_api."""

import uvicorn

from weight_api.config import get_settings


def main() -> None:
    settings = get_settings()
    # log_config=None: setup_logging in the lifespan owns the handlers
    uvicorn.run(
        "weight_api.main:app",
        host=settings.host,
        port=settings.port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
