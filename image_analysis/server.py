"""MCP server — advertises analyze_image and dispatches calls to the handler."""
import logging

import mcp.types as types
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server
from mcp.shared.exceptions import McpError

from image_analysis.constants import (
    ARG_IMAGE_URL,
    ARG_IMAGE_URL_DESCRIPTION,
    MSG_ERR_UNKNOWN_TOOL,
    MSG_SERVER_RUNNING,
    SERVER_NAME,
    SERVER_VERSION,
    TOOL_ANALYZE_IMAGE,
    TOOL_ANALYZE_IMAGE_DESCRIPTION,
)
from image_analysis.errors import InvalidArgumentsError
from image_analysis.handler import ImageAnalysisHandler
from image_analysis.models import AnalysisResult

logger = logging.getLogger(__name__)

ANALYZE_IMAGE_TOOL = types.Tool(
    name=TOOL_ANALYZE_IMAGE,
    description=TOOL_ANALYZE_IMAGE_DESCRIPTION,
    inputSchema={
        "type": "object",
        "properties": {
            ARG_IMAGE_URL: {
                "type": "string",
                "description": ARG_IMAGE_URL_DESCRIPTION,
            },
        },
        "required": [ARG_IMAGE_URL],
    },
)


def to_call_tool_result(result: AnalysisResult) -> types.CallToolResult:
    content = [types.TextContent(type="text", text=result.text)]
    match result.is_error:
        case True:
            return types.CallToolResult(content=content, isError=True)
        case False:
            return types.CallToolResult(content=content)


async def dispatch_tool_call(
    handler: ImageAnalysisHandler, name: str, arguments: dict | None
) -> types.CallToolResult:
    """Run one tool call. Unknown tools and bad arguments raise McpError."""
    if name != TOOL_ANALYZE_IMAGE:
        raise McpError(
            types.ErrorData(code=types.METHOD_NOT_FOUND, message=MSG_ERR_UNKNOWN_TOOL % name)
        )
    try:
        result = await handler.handle(arguments)
    except InvalidArgumentsError as exc:
        raise McpError(types.ErrorData(code=types.INVALID_PARAMS, message=str(exc))) from exc
    return to_call_tool_result(result)


def build_server(handler: ImageAnalysisHandler) -> Server:
    server = Server(SERVER_NAME, version=SERVER_VERSION)

    @server.list_tools()
    async def _list_tools() -> list[types.Tool]:
        return [ANALYZE_IMAGE_TOOL]

    async def _call_tool(request: types.CallToolRequest) -> types.ServerResult:
        result = await dispatch_tool_call(handler, request.params.name, request.params.arguments)
        return types.ServerResult(result)

    # McpError raised by _call_tool must reach the client as a JSON-RPC error,
    # so it is registered directly instead of through @server.call_tool().
    server.request_handlers[types.CallToolRequest] = _call_tool
    return server


async def serve(server: Server) -> None:
    async with stdio_server() as (read_stream, write_stream):
        logger.info(MSG_SERVER_RUNNING)
        await server.run(read_stream, write_stream, server.create_initialization_options())
