# /camview/main.py

import uvicorn

from camview.config import get_api_config


def main() -> None:
    cfg = get_api_config()
    uvicorn.run(
        "camview.api.app:app",
        host=cfg.HOST,
        port=cfg.PORT,
        log_level=cfg.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
