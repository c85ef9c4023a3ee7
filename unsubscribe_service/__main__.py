"""Run the service with uvicorn: ``python -m unsubscribe_service``."""

import os

import uvicorn


def main() -> None:
    uvicorn.run(
        "unsubscribe_service.main:create_app",
        factory=True,
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        log_config=None,
    )


if __name__ == "__main__":
    main()
