import uvicorn

from contact_relay.core.config import settings


def main() -> None:
    uvicorn.run(
        "contact_relay.main:app",
        host=settings.app.host,
        port=settings.app.port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
