#!/usr/bin/env python3
"""
Guidance Validation & Precedent Retrieval Engine - Main Entry Point

Usage:
    python main.py                          # Serve the HTTP API (default)
    python main.py --validate request.json  # Validate one request and print the JSON result
"""

import asyncio
import json
import sys
from pathlib import Path

# Ensure project root is in path
PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

from src.config.logging_config import logger
from src.config.settings import config, validate_env_for_app


def run_server():
    """Launch the FastAPI app with uvicorn"""
    import uvicorn

    from src.api.app import create_app

    logger.info("Starting API on %s:%s", config.API_HOST, config.API_PORT)
    uvicorn.run(create_app(), host=config.API_HOST, port=config.API_PORT)


async def run_validate_async(request_path: Path) -> str:
    from src.api.schemas import ValidationRequestIn, ValidationResponse
    from src.services.bootstrap import build_services

    body = ValidationRequestIn.model_validate(json.loads(request_path.read_text(encoding="utf-8")))
    services = build_services()
    result = await services.engine.validate(body.to_request())
    return ValidationResponse.from_result(result).model_dump_json(by_alias=True, indent=2)


def run_validate(request_path: str):
    """One-shot validation against the configured backends"""
    path = Path(request_path)
    if not path.is_file():
        raise SystemExit(f"Request file not found: {path}")
    from src.services.guidance.errors import GuidanceEngineError

    try:
        print(asyncio.run(run_validate_async(path)))
    except GuidanceEngineError as e:
        raise SystemExit(f"Validation failed: {e}") from e


def main():
    """Main entry point"""
    validate_env_for_app()
    if len(sys.argv) > 2 and sys.argv[1] == "--validate":
        run_validate(sys.argv[2])
    elif len(sys.argv) > 1 and sys.argv[1] == "--validate":
        raise SystemExit("Usage: python main.py --validate request.json")
    else:
        run_server()


if __name__ == "__main__":
    main()
