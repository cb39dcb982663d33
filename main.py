"""Entry point for the PSN Bridge server."""

import os
import sys
from dotenv import load_dotenv

from src.utils.logging import get_logger

logger = get_logger("main")

def main():
    """Main entry point."""
    try:
        # Load environment variables
        env_path = '.env'
        load_dotenv(env_path)

        # Try to fetch NPSSO on startup if not set
        if not os.getenv("NPSSO"):
            from src.auth.npsso import fetch_npsso

            npsso = fetch_npsso()
            if npsso:
                logger.info("NPSSO fetched automatically (length: %d)", len(npsso))
                os.environ["NPSSO"] = npsso
            else:
                logger.warning(
                    "Could not fetch NPSSO automatically. Provide NPSSO via environment "
                    "variable or the x-npsso header."
                )

        from src.config.settings import Settings
        from src.server.mcp_server import create_mcp_server

        # Create and run MCP server
        server = create_mcp_server()
        logger.info("Starting PSN Bridge with HTTP transport")
        server.run(transport="http", host="0.0.0.0", port=Settings.from_env().port)

    except KeyboardInterrupt:
        logger.info("Server stopped by user")
    except Exception as e:
        logger.error(f"Server failed to start: {e}")
        sys.exit(1)

if __name__ == "__main__":
    main()
