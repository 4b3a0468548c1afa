import uvicorn

from face_gateway.core.config import get_settings

if __name__ == "__main__":
    settings = get_settings()

    print(f"Starting Face Gateway on {settings.host}:{settings.port} ({settings.environment})...")
    uvicorn.run(
        "face_gateway.main:app",
        host=settings.host,
        port=settings.port,
        reload=not settings.is_production,
        proxy_headers=True,
    )
