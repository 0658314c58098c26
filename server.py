"""
Relay server entry point.

Runs the Flask relay (llmchess_opponent.relay) that forwards decision prompts to
the configured OpenAI-compatible gateway. Allowed caller origins come from
LLMCHESS_ALLOWED_ORIGINS (settings.yml or environment).
"""
from __future__ import annotations

import logging
import os

from llmchess_opponent.relay import create_app

logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO").upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

app = create_app()


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=int(os.environ.get("PORT", 8000)), debug=False)
