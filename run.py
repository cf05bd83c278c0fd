"""Development server: ``python run.py``. Production runs uvicorn/gunicorn against app.main:app."""
import os

import uvicorn
from dotenv import find_dotenv, load_dotenv


def main() -> None:
    # .env must be loaded before app.core.config builds its settings
    load_dotenv(find_dotenv(), override=False)
    uvicorn.run(
        "app.main:app",
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8000")),
        reload=os.getenv("ENVIRONMENT", "development") == "development",
    )


if __name__ == "__main__":
    main()
