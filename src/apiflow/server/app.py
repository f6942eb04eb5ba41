"""
apiflow HTTP Service

FastAPI service exposing flow generation and recovery to the flow editor.

Endpoints:
- GET  /health    service status
- POST /generate  steps -> Playwright script
- POST /recover   Playwright script -> steps (may be empty)
- POST /import    script or JSON step list -> steps (at least one)
- POST /validate  steps -> scope and field issues
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import uvicorn

from .. import __version__
from ..config import FlowConfig
from ..playwright import (
    Flow,
    PlaywrightCodeGenerator,
    PlaywrightScriptParser,
    FlowValidationError,
    import_flow,
    validate_flow,
)


class MalformedRequest(Exception):
    """Request body could not be decoded."""


class FlowServer:
    """HTTP front end for the flow transcoder."""

    def __init__(self, config: Optional[FlowConfig] = None):
        """
        Initialize the service.

        Args:
            config: Service and generation settings
        """
        self.config = config or FlowConfig()

        self.logger = logging.getLogger("apiflow.server")
        self.logger.setLevel(getattr(logging, self.config.log_level.upper()))

        self.generator = PlaywrightCodeGenerator(self.config)
        self.parser = PlaywrightScriptParser(self.config)

        self.app = self._create_app()

    def _create_app(self) -> FastAPI:
        """Create FastAPI application with routes."""
        app = FastAPI(
            title="apiflow",
            description="Convert between API step flows and Playwright test scripts",
            version=__version__
        )

        @app.exception_handler(ValueError)
        async def value_error_handler(request: Request, exc: ValueError):
            content: Dict[str, Any] = {'detail': str(exc)}
            if isinstance(exc, FlowValidationError):
                content['issues'] = [issue.to_dict() for issue in exc.issues]
            self.logger.info(f"{request.method} {request.url.path} rejected: {exc}")
            return JSONResponse(status_code=422, content=content)

        @app.exception_handler(MalformedRequest)
        async def malformed_request_handler(request: Request, exc: MalformedRequest):
            return JSONResponse(status_code=400, content={'detail': str(exc)})

        @app.get("/health")
        async def health():
            """Service status."""
            return {'status': 'ok', 'version': __version__}

        @app.post("/generate")
        async def generate(request: Request):
            """Render steps as a Playwright script."""
            flow = self._flow_from_payload(await self._read_json(request))
            code = self.generator.generate(flow)
            return {'code': code, 'steps': len(flow.steps)}

        @app.post("/recover")
        async def recover(request: Request):
            """Recover steps from a Playwright script."""
            payload = await self._read_json(request)
            code = self._text_field(payload, 'code')
            flow = self.parser.parse(code)
            self.logger.debug(f"Recovered {len(flow.steps)} steps")
            return flow.to_dict()

        @app.post("/import")
        async def import_content(request: Request):
            """Import a script or JSON step list; fails when nothing is found."""
            payload = await self._read_json(request)
            content = self._text_field(payload, 'content')
            return import_flow(content, self.config).to_dict()

        @app.post("/validate")
        async def validate(request: Request):
            """Check variable scope and step fields."""
            flow = self._flow_from_payload(await self._read_json(request))
            issues = validate_flow(flow)
            return {
                'valid': not any(issue.severity == 'error' for issue in issues),
                'issues': [issue.to_dict() for issue in issues]
            }

        return app

    async def _read_json(self, request: Request) -> Any:
        try:
            return await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            raise MalformedRequest("Request body must be valid JSON") from None

    def _flow_from_payload(self, payload: Any) -> Flow:
        if isinstance(payload, dict) and 'steps' not in payload:
            raise ValueError("Request must contain a 'steps' list")
        return Flow.from_dict(payload, default_base_url=self.config.default_base_url)

    @staticmethod
    def _text_field(payload: Any, name: str) -> str:
        if not isinstance(payload, dict) or not isinstance(payload.get(name), str):
            raise ValueError(f"Request must contain a '{name}' string")
        return payload[name]

    def start(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        access_log: bool = True
    ):
        """
        Start the service.

        Args:
            host: Host to bind to (overrides config)
            port: Port to bind to (overrides config)
            access_log: Enable access logging
        """
        actual_host = host or self.config.host
        actual_port = port or self.config.port

        print(f"apiflow service starting on http://{actual_host}:{actual_port}")
        print(f"   Default base URL: {self.config.default_base_url}")
        print(f"   Reference validation: {'on' if self.config.validate_references else 'off'}")
        print()

        uvicorn.run(
            self.app,
            host=actual_host,
            port=actual_port,
            log_level=self.config.log_level,
            access_log=access_log
        )

    def get_app(self) -> FastAPI:
        """
        Get the FastAPI app instance for testing or custom deployment.

        Returns:
            FastAPI application instance
        """
        return self.app


def create_flow_server(
    config_path: Optional[str] = None,
    host: Optional[str] = None,
    port: Optional[int] = None,
    validate_references: Optional[bool] = None
) -> FlowServer:
    """
    Convenience function to create and configure the service.

    Args:
        config_path: Optional YAML config file
        host: Host to bind to
        port: Port to bind to
        validate_references: Override reference validation

    Returns:
        Configured FlowServer instance

    Example:
        server = create_flow_server('apiflow.yaml', port=8080)
        server.start()
    """
    config = FlowConfig.from_yaml(config_path) if config_path else FlowConfig()
    if host:
        config.host = host
    if port:
        config.port = port
    if validate_references is not None:
        config.validate_references = validate_references

    return FlowServer(config)
