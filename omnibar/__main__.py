import os

from dotenv import load_dotenv

from omnibar.cli.commands import app

# Load .env file from ~/.omnibar/ if it exists
# Precedence: existing env vars > .env file (override=False)
load_dotenv(os.path.expanduser("~/.omnibar/.env"), override=False)

if __name__ == "__main__":
    app()
