from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field, ValidationError

from readable_markdown.config import DEFAULT_TIMEOUT_MS, BrowserConfig
from readable_markdown.errors import ReadableMarkdownError
from readable_markdown.fetcher import BrowserPageFetcher, HttpPageFetcher, PageFetcher
from readable_markdown.url_to_markdown import __version__, convert_to_markdown


app = FastAPI(
    title="Readable-Markdown MCP Server",
    version=__version__,
    description="FastAPI-based MCP-like server exposing the convert_url tool.",
)


# ----- Pydantic models -----


class ConvertArgs(BaseModel):
    url: str = Field(..., description="The URL of the webpage to process.")
    timeout_ms: int = Field(
        default=DEFAULT_TIMEOUT_MS,
        gt=0,
        description="Maximum time to wait for page loading, in milliseconds.",
    )
    disable_scripts: bool = Field(
        default=False,
        description="Load the page with JavaScript disabled and skip the dynamic-content wait.",
    )
    static: bool = Field(
        default=False,
        description="Fetch with a plain HTTP request instead of a headless browser.",
    )


class ToolInvokeRequest(BaseModel):
    tool: str = Field(..., description="Tool to invoke.")
    args: Dict[str, Any] = Field(default_factory=dict, description="Arguments for the tool.")


class ToolInvokeResponse(BaseModel):
    ok: bool
    result: Optional[str] = None
    error: Optional[str] = None


def make_fetcher(args: ConvertArgs) -> PageFetcher:
    config = BrowserConfig.from_env()
    if args.static:
        return HttpPageFetcher(config)
    return BrowserPageFetcher(config)


# ----- Endpoints -----


@app.get("/", tags=["meta"])
def root() -> Dict[str, Any]:
    return {"name": "readable-markdown-mcp", "version": __version__}


@app.get("/tools", tags=["discovery"])
def get_tools() -> Dict[str, Any]:
    return {
        "tools": [
            {
                "name": "convert_url",
                "description": "Render a URL, extract its main content and return it as Markdown with a title heading.",
                "params": {
                    "url": {"type": "string", "required": True, "description": "Target URL"},
                    "timeout_ms": {"type": "integer", "required": False, "default": DEFAULT_TIMEOUT_MS},
                    "disable_scripts": {"type": "boolean", "required": False, "default": False},
                    "static": {"type": "boolean", "required": False, "default": False},
                },
            },
        ]
    }


@app.post("/invoke", response_model=ToolInvokeResponse, tags=["invoke"])
def invoke(request: ToolInvokeRequest) -> ToolInvokeResponse:
    if request.tool == "convert_url":
        try:
            args = ConvertArgs(**request.args)
        except ValidationError as e:
            # Mirror FastAPI's own 422 for missing/invalid args
            raise HTTPException(status_code=422, detail=e.errors(include_url=False))
        try:
            md = convert_to_markdown(
                args.url,
                timeout_ms=args.timeout_ms,
                disable_scripts=args.disable_scripts,
                fetcher=make_fetcher(args),
            )
        except ReadableMarkdownError as e:
            return ToolInvokeResponse(ok=False, error=f"{type(e).__name__}: {e.message}")
        return ToolInvokeResponse(ok=True, result=md)

    # Unknown tool: structured error (200 with ok=false) so callers get a consistent payload.
    return ToolInvokeResponse(ok=False, error=f"Unknown tool: {request.tool}")


def main() -> None:
    import uvicorn

    uvicorn.run("readable_markdown.mcp_server.server:app", host="127.0.0.1", port=8000)


if __name__ == "__main__":
    main()
