"""
Prompt builders for remote decision requests using modular templates.

Templates carry {PLACEHOLDER} tokens that are substituted per request. Anything
user-supplied (chat message, transcript) goes through sanitize_message() first
so the outbound payload stays a well-formed single-line quoted string.
"""
from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass
from typing import Dict, Iterable, Optional

MOVE_TEMPLATE = """You are a chess engine assistant. Analyze the following chess position in FEN notation and suggest the best move.

FEN: {FEN}
Side to move: {SIDE_TO_MOVE}
Difficulty level: {DIFFICULTY}

Rules:
1. Provide the move in long algebraic form: from-square then to-square, like "e2e4" or "g1f3".
2. If it's a pawn promotion, add the promotion piece at the end, like "e7e8q" for queen promotion.
3. The move must be legal according to chess rules.
4. For beginner difficulty, you can make suboptimal but reasonable moves.
5. For master difficulty, provide the strongest move you can find.

Format your response as: "Explanation: [your explanation]. Move: [from-square][to-square]"
IMPORTANT: Always use the exact square-to-square format (like "g1f3"), never algebraic notation (like "Nf3")."""

MOVE_RETRY_TEMPLATE = """Your previous response {PREVIOUS} was invalid{REASON}. Please try again with a valid move.

{PROMPT}

CRITICAL: Provide a LEGAL move in the exact square format like "e2e4", or "e7e8q" for promotion, after "Move:".
Remember that if the king is in check, you MUST address the check by:
1. Moving the king to a safe square
2. Capturing the checking piece
3. Blocking the check with another piece"""

ANALYSIS_TEMPLATE = """You are a chess coach analyzing a position. Provide analysis for the following chess position in FEN notation.

FEN: {FEN}
Difficulty level: {DIFFICULTY}

Rules:
1. Analyze the position based on the difficulty level.
2. For beginner difficulty, use simple language and focus on basic concepts.
3. For master difficulty, provide deeper analysis with concrete variations.
4. Mention material balance, piece activity, and potential tactics.
5. Keep your analysis concise (2-3 sentences).

Respond with ONLY the analysis, nothing else."""

CHAT_TEMPLATE = """You are a chess AI assistant responding to a player's message during a game. The current chess position is given in FEN notation.

FEN: {FEN}
Difficulty level: {DIFFICULTY}
Recent conversation:
{HISTORY}
Player's message: "{MESSAGE}"

Rules:
1. Respond in a helpful, concise manner (1-3 sentences).
2. If the player asks for a hint or help, suggest a good move or strategy based on the position.
3. If the player asks about the position, provide a brief analysis.
4. Adjust your language based on the difficulty level (simpler for beginner, more technical for master).
5. Stay in character as a chess AI assistant.
6. If the player asks something unrelated to chess, politely redirect to the game.

Respond with ONLY your chat message, nothing else."""

TEXT_RETRY_PREFIX = "Your previous response was empty or could not be read. Please try again.\n\n"

HISTORY_LIMIT = 10

_NEWLINES_RE = re.compile(r"\s*[\r\n]+\s*")


@dataclass
class ChatMessage:
    sender: str
    message: str
    timestamp: Optional[float] = None


def render_custom_prompt(template: str, values: Dict[str, str]) -> str:
    """Replace known placeholders in the template. Unknown tokens are left intact."""
    rendered = template or ""
    for key, val in values.items():
        rendered = rendered.replace(f"{{{key}}}", val)
    return rendered


def sanitize_message(text: str) -> str:
    """Collapse newlines, strip control characters, escape backslashes and double quotes."""
    collapsed = _NEWLINES_RE.sub(" ", text or "")
    cleaned = "".join(ch for ch in collapsed if unicodedata.category(ch) != "Cc")
    return cleaned.replace("\\", "\\\\").replace('"', '\\"').strip()


def format_history(history: Iterable[ChatMessage] | None, limit: int = HISTORY_LIMIT) -> str:
    lines = [f"{sanitize_message(m.sender)}: {sanitize_message(m.message)}" for m in (history or [])]
    return "\n".join(lines[-limit:]) if lines else "(none)"


def side_label(fen: str) -> str:
    parts = fen.split()
    return "black" if len(parts) > 1 and parts[1] == "b" else "white"


def build_move_prompt(fen: str, difficulty: str) -> str:
    return render_custom_prompt(MOVE_TEMPLATE, {
        "FEN": fen,
        "SIDE_TO_MOVE": side_label(fen),
        "DIFFICULTY": difficulty,
    })


def build_move_retry_prompt(base_prompt: str, previous_token: str | None, reason: str | None = None) -> str:
    """Wrap the original move prompt with feedback naming the rejected token."""
    previous = f'"{sanitize_message(previous_token)}"' if previous_token else "(no move found)"
    return render_custom_prompt(MOVE_RETRY_TEMPLATE, {
        "PREVIOUS": previous,
        "REASON": f" ({reason})" if reason else "",
        "PROMPT": base_prompt,
    })


def build_analysis_prompt(fen: str, difficulty: str) -> str:
    return render_custom_prompt(ANALYSIS_TEMPLATE, {"FEN": fen, "DIFFICULTY": difficulty})


def build_chat_prompt(fen: str, difficulty: str, message: str,
                      history: Iterable[ChatMessage] | None = None) -> str:
    return render_custom_prompt(CHAT_TEMPLATE, {
        "FEN": fen,
        "DIFFICULTY": difficulty,
        "HISTORY": format_history(history),
        "MESSAGE": sanitize_message(message),
    })
