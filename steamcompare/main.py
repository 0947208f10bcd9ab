import uvicorn

from steamcompare.api.app import create_app
from steamcompare.settings import settings
from steamcompare.utils.logging import configure_logging

configure_logging(settings.log_level)

app = create_app()


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000, log_level=settings.log_level.lower())
