import uvicorn

from apps.api.settings import get_api_settings


def main() -> None:
    settings = get_api_settings()
    uvicorn.run("apps.api.main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
