import logging

import uvicorn
from modelcanvas.config import settings

if __name__ == "__main__":
    logging.basicConfig(level=settings.LOG_LEVEL)
    # Start the API server
    print(f"Starting API server on {settings.API_HOST}:{settings.API_PORT}...")
    uvicorn.run(
        "modelcanvas.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.API_RELOAD
    )
