"""Run the API with uvicorn: `python -m listings` or the `listings` script."""

import uvicorn

from listings.config import settings


def main() -> None:
    uvicorn.run(
        "listings.main:app",
        host=settings.backend_host,
        port=settings.backend_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
