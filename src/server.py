import uvicorn
from dotenv import load_dotenv

load_dotenv()

from lms_backend.settings import settings

if __name__ == "__main__":

    reload = settings.DEBUG_MODE != "production"

    uvicorn.run("lms_backend.server:app", host="0.0.0.0", port=8000, log_level=settings.LOG_LEVEL.lower(), reload=reload, workers=1)
