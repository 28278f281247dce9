# =======================================================================================
# gate_auth/__main__.py - Development Server (python -m gate_auth)
# =======================================================================================
import uvicorn

from .config import config


def main() -> None:
    uvicorn.run(
        "gate_auth.main:app",
        host=config.API_HOST,
        port=config.API_PORT,
        log_level="debug" if config.API_DEBUG else "info",
        reload=False,
    )


if __name__ == "__main__":
    main()
