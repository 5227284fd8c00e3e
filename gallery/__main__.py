"""Run the gallery service with uvicorn: ``python -m gallery``."""

import uvicorn

from gallery.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run("gallery.main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
