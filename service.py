"""Main entry point for the LibreLinkUp status monitor

Supports two modes:
- API mode: Poll on the configured interval and serve the status over REST
- Once mode: Run one update and print the status line
"""

import os
import sys
import logging
import uvicorn
from libre_link_up_status.api import create_app
from libre_link_up_status.config import load_config
from libre_link_up_status.display import present
from libre_link_up_status.exceptions import ConfigurationError
from libre_link_up_status.poller import StatusPoller
from libre_link_up_status.session_manager import SessionManager

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)


def run_api_server(host: str = "0.0.0.0", port: int = 8080):
    """Run the REST API server with the poller"""
    logger.info(f"Starting LibreLinkUp status server on {host}:{port}")
    app = create_app(StatusPoller(SessionManager()))
    uvicorn.run(app, host=host, port=port, log_level="info")


def run_once():
    """Run a single update"""
    try:
        config = load_config()
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(1)

    result = SessionManager().fetch_latest_reading(config)
    state = present(result.measurement, config)
    print(state.text)
    if state.warning:
        print(state.warning)
    sys.exit(0 if result.ok else 1)


if __name__ == '__main__':
    if len(sys.argv) > 1 and sys.argv[1] == 'once':
        run_once()
    else:
        port = int(os.getenv('PORT', '8080'))
        run_api_server(port=port)
