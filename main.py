"""
Quizdown Service: Main Entry Point
==================================
Starts the Flask-based quiz server.

Usage:
    python main.py                        # Default: 0.0.0.0:3000
    python main.py --port 8000            # Custom port
    python main.py --quiz-dir ./quizzes   # Custom quiz library
    python main.py --debug                # Debug mode
"""

import argparse
import logging

from quizdown.server import create_app
from quizdown.storage import get_quiz_dir

logging.basicConfig(
    level=logging.INFO,
    format="[%(asctime)s] %(levelname)-8s %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Quizdown Service")
    parser.add_argument("--host", default="0.0.0.0", help="Bind host")
    parser.add_argument("--port", type=int, default=3000, help="Bind port")
    parser.add_argument("--quiz-dir", default=None, help="Quiz library")
    parser.add_argument("--debug", action="store_true", help="Debug mode")
    args = parser.parse_args()

    app = create_app({"QUIZ_DIR": args.quiz_dir})

    logger.info(f"Quiz library: {get_quiz_dir(args.quiz_dir)}")
    logger.info(f"Starting server on {args.host}:{args.port}")
    app.run(host=args.host, port=args.port, debug=args.debug)


if __name__ == "__main__":
    main()
