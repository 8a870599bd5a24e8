"""tablewalk: dev launcher. Loads .env from the checkout and runs the CLI."""

import sys
from pathlib import Path

from dotenv import load_dotenv

ROOT = Path(__file__).parent
load_dotenv(ROOT / ".env")

from tablewalk.cli import main  # noqa: E402

if __name__ == "__main__":
    sys.exit(main())
