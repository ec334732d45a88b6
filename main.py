"""
Gov Hub Helpdesk API
Development entry point: python main.py
"""

import os
import uvicorn

from app.core.config import settings

if __name__ == "__main__":
    is_dev = settings.ENVIRONMENT != "production"
    port = int(os.getenv("PORT", str(settings.port)))
    uvicorn.run(
        # Use import string so reload/workers work correctly (and avoid warnings).
        "app.main:app",
        host=settings.host,
        port=port,
        reload=is_dev and settings.reload,
        log_level=settings.LOG_LEVEL.lower()
    )
