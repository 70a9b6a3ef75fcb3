import uvicorn

from .core.settings import settings


def main() -> None:
    uvicorn.run("referral_api.app:create_app", factory=True, host=settings.server_host, port=settings.server_port)


if __name__ == "__main__":
    main()
