from dotenv import load_dotenv
from fastmcp import FastMCP
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

load_dotenv('./.env')

# Imports below must come after load_dotenv() to ensure env vars are loaded
from src.auth.authentication import create_auth_middleware, create_credentials_config  # noqa: E402
from src.auth.manager import get_auth_manager  # noqa: E402
from src.server.tools import account as account_tools  # noqa: E402
from src.server.tools import groups as groups_tools  # noqa: E402
from src.server.tools import resources as resources_tools  # noqa: E402
from src.server.tools.base import get_psn_client  # noqa: E402
from src.utils.logging import get_logger  # noqa: E402


logger = get_logger("mcp_server")

VERSION = "1.0.0"


async def resource_content(request: Request) -> Response:
    """Stream a group resource back with the content type PSN declared."""
    group_id = request.path_params["group_id"]
    resource_id = request.path_params["resource_id"]
    result = await get_psn_client().get_resource(group_id, resource_id)
    if not result.success:
        return JSONResponse(
            {
                "success": False,
                "error": result.error.message,
                "category": result.error.category.value,
            },
            status_code=result.error.status,
        )
    return Response(content=result.data["content"], media_type=result.data["content_type"])


def create_mcp_server() -> FastMCP:
    """Create and configure the MCP server."""
    mcp = FastMCP(
        name="PSN Bridge",
        instructions="PlayStation Network bridge: profiles, friends, search, group messaging and resources.",
    )

    for middleware in create_auth_middleware(
        create_credentials_config(), auth_manager=get_auth_manager()
    ):
        mcp.add_middleware(middleware)

    # Account tools
    mcp.tool(
        name='get_npsso',
        description='Fetch the NPSSO session cookie from Sony. Only works when the server holds a signed-in Sony session.',
    )(account_tools.get_npsso)
    mcp.tool(
        name='get_access_token',
        description='Return the current PSN token pair, acquiring it from the NPSSO or refreshing it when expired.',
    )(account_tools.get_access_token)
    mcp.tool(
        name='get_profile',
        description='Get a PSN profile by online id, or the signed-in account when name is empty.',
    )(account_tools.get_profile)
    mcp.tool(
        name='get_friends',
        description='List the friends of the signed-in account with their profiles.',
    )(account_tools.get_friends)
    mcp.tool(
        name='delete_friend',
        description='Remove a friend (by online id) from the signed-in account.',
    )(account_tools.delete_friend)
    mcp.tool(
        name='search',
        description='Universal search for PSN accounts. Returns the first domain response with ranked results.',
    )(account_tools.search)
    # Group tools
    mcp.tool(
        name='create_group',
        description='Create a messaging group inviting the given account ids.',
    )(groups_tools.create_group)
    mcp.tool(
        name='get_groups',
        description='List the messaging groups of the signed-in account.',
    )(groups_tools.get_groups)
    mcp.tool(
        name='get_messages',
        description='Get messages of a group thread; thread_id defaults to the group id (main thread).',
    )(groups_tools.get_messages)
    mcp.tool(
        name='get_first_group_messages',
        description='Get the messages of the first group\'s main thread together with the group.',
    )(groups_tools.get_first_group_messages)
    mcp.tool(
        name='send_message',
        description='Send a text message to a group thread.',
    )(groups_tools.send_message)
    # Resource tools
    mcp.tool(
        name='add_resource',
        description='Upload a local image or a .png/.jpg/.jpeg link to a group. Returns the resourceId.',
    )(resources_tools.add_resource)
    mcp.tool(
        name='send_resource',
        description='Send an uploaded resource to a group thread as an image (0) or sticker (1).',
    )(resources_tools.send_resource)
    mcp.tool(
        name='get_resource',
        description='Download a group resource. Returns its content type and base64 encoded bytes.',
    )(resources_tools.get_resource)

    mcp.custom_route("/resources/{group_id}/{resource_id}", methods=["GET"])(resource_content)

    # Health check endpoint for monitoring and load balancers
    @mcp.custom_route("/health", methods=["GET"])
    async def health_check(request):
        """Health check endpoint for monitoring, load balancers, and deployment platforms."""
        return JSONResponse({
            "status": "ok",
            "service": "psn-bridge",
            "version": VERSION,
        })

    @mcp.custom_route("/", methods=["GET"])
    async def index(request):
        """List the HTTP routes exposed next to the MCP endpoint."""
        return JSONResponse({
            "message": "PSN Bridge",
            "version": VERSION,
            "endpoints": {
                "health": "GET /health",
                "resource": "GET /resources/{group_id}/{resource_id}",
                "mcp": "POST /mcp",
            },
        })

    return mcp
