"""Run the MedMeet API with uvicorn.

Usage:
    python -m medmeet.serve
"""
import uvicorn

from medmeet.core import config


def main() -> None:
    uvicorn.run("medmeet.main:app", host=config.HOST, port=config.PORT, log_level=config.LOG_LEVEL.lower())


if __name__ == "__main__":
    main()
