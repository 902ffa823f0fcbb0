"""HTTP surface for the slackthread tools.

Routes:
- GET  /health         liveness check
- GET  /tools          tool names, descriptions and input schemas
- POST /tools/{name}   invoke a tool with a JSON object of arguments
"""

import logging

from fastapi import Body, FastAPI, HTTPException
from pydantic import BaseModel

from .tools import ToolRegistry

logger = logging.getLogger(__name__)


class ToolResponse(BaseModel):
    content: str
    isError: bool = False


def create_app(registry: ToolRegistry) -> FastAPI:
    """Build the FastAPI app around *registry*."""
    app = FastAPI(
        title="slackthread",
        description="Read Slack threads and channel details from shareable links",
        version="0.1.0",
    )

    @app.get("/health")
    async def health_check():
        return {"status": "healthy", "service": "slackthread"}

    @app.get("/tools")
    async def list_tools():
        return {"tools": registry.list_operations()}

    @app.post("/tools/{name}", response_model=ToolResponse)
    async def call_tool(name: str, args: dict | None = Body(default=None)):
        if registry.get(name) is None:
            raise HTTPException(status_code=404, detail=f"Unknown tool: {name}")
        logger.debug("Invoking %s", name)
        result = await registry.invoke(name, args)
        return ToolResponse(content=result.text, isError=result.is_error)

    return app
