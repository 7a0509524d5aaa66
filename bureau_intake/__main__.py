from __future__ import annotations

import os

import uvicorn

from bureau_intake.config import settings


def main() -> None:
    uvicorn.run(
        "bureau_intake.main:app",
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", 8000)),
        log_level=settings.INTAKE_LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
