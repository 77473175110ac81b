# -*- coding: utf-8 -*-
"""
Entry point to run the service via python -m content_ingest.
"""
import uvicorn

from content_ingest.config import settings


def main():
    """Start the Uvicorn server."""
    uvicorn.run(
        "content_ingest.api:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=False,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
