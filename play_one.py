import argparse
import json
import logging

import chess
import chess.pgn

from llmchess_opponent.config import SETTINGS
from llmchess_opponent.difficulty import Difficulty
from llmchess_opponent.opponent import AIOpponent
from llmchess_opponent.remote_adapter import RemoteDecisionAdapter
from llmchess_opponent.transport import transport_from_settings


def load_json_config(path: str) -> dict:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, ValueError) as e:
        logging.getLogger("play_one").error("Failed to read config %s: %s", path, e)
        return {}


def build_adapter(remote: bool, relay_url: str | None, model: str | None, max_attempts: int):
    if not remote:
        return None
    return RemoteDecisionAdapter(transport_from_settings(model, relay_url), max_attempts=max_attempts)


def play_self_game(white: AIOpponent, black: AIOpponent, board: chess.Board, max_plies: int, log: logging.Logger) -> chess.Board:
    for _ in range(max_plies):
        if board.is_game_over():
            break
        side = white if board.turn == chess.WHITE else black
        result = side.choose_move(board)
        if not result or not result.move:
            break
        log.info("%s plays %s (%s)", side.name, board.san(result.move), result.source)
        board.push(result.move)
    return board


if __name__ == "__main__":
    difficulties = [d.value for d in Difficulty]
    ap = argparse.ArgumentParser(description="Ask the opponent for a move, or let it play itself.")
    ap.add_argument("--config", default=None, help="Optional JSON config file to load defaults from.")
    ap.add_argument("--fen", default=None, help="Position to move from (default: standard start)")
    ap.add_argument("--difficulty", choices=difficulties, default=None)
    ap.add_argument("--black-difficulty", choices=difficulties, default=None, help="Black's difficulty in self-play (defaults to --difficulty)")
    ap.add_argument("--self-play", action="store_true", help="Play a full game between two opponents")
    ap.add_argument("--max-plies", type=int, default=None)
    ap.add_argument("--remote", action="store_true", help="Ask the hosted model first, fall back to local search")
    ap.add_argument("--relay-url", default=None, help="Relay endpoint (default: settings; empty calls the gateway directly)")
    ap.add_argument("--model", default=None, help="Upstream model name for direct calls")
    ap.add_argument("--max-attempts", type=int, default=None, help="Remote attempts per decision")
    ap.add_argument("--analyze", action="store_true", help="Also print an analysis of the final position")
    ap.add_argument("--pgn-out", default=None, help="Optional path to write PGN at end (self-play)")
    ap.add_argument("--log-level", default=None, help="Python logging level (e.g., INFO, DEBUG)")

    args = ap.parse_args()
    cfg_dict = load_json_config(args.config) if args.config else {}

    # Resolve values with precedence: CLI arg if provided -> config -> default
    def pick(*keys, default=None):
        for k in keys:
            v = getattr(args, k, None)
            if v is not None:
                return v
            if k in cfg_dict and cfg_dict[k] is not None:
                return cfg_dict[k]
        return default

    log_level = pick("log_level", default="INFO").upper()
    logging.basicConfig(level=getattr(logging, log_level, logging.INFO), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    log = logging.getLogger("play_one")

    difficulty = pick("difficulty", default="intermediate")
    black_difficulty = pick("black_difficulty", default=difficulty)
    remote = args.remote or bool(cfg_dict.get("remote", SETTINGS.use_remote))
    relay_url = pick("relay_url", default=SETTINGS.relay_url)
    model = pick("model", default=SETTINGS.model)
    max_attempts = int(pick("max_attempts", default=SETTINGS.remote_max_attempts))
    max_plies = int(pick("max_plies", default=240))
    fen = pick("fen", default=chess.STARTING_FEN)

    adapter = build_adapter(remote, relay_url, model, max_attempts)
    board = chess.Board(fen)
    white = AIOpponent(difficulty, adapter=adapter, remote_enabled=remote, name=f"White[{difficulty}]")
    black = AIOpponent(black_difficulty, adapter=adapter, remote_enabled=remote, name=f"Black[{black_difficulty}]")

    try:
        if args.self_play or cfg_dict.get("self_play"):
            log.info("Starting self-play: white=%s black=%s remote=%s", difficulty, black_difficulty, remote)
            play_self_game(white, black, board, max_plies, log)
            game = chess.pgn.Game.from_board(board)
            game.headers["White"] = white.name
            game.headers["Black"] = black.name
            pgn = str(game)
            print("Result:", board.result(claim_draw=True))
            print("PGN:\n", pgn)
            if args.pgn_out:
                with open(args.pgn_out, "w", encoding="utf-8") as f:
                    f.write(pgn)
                log.info("Wrote PGN to %s", args.pgn_out)
        else:
            mover = white if board.turn == chess.WHITE else black
            result = mover.choose_move(board)
            if result and result.move:
                print(json.dumps(result.to_dict()))
            else:
                print(json.dumps({"move": None, "reason": "no legal moves"}))

        if args.analyze:
            analysis = white.analyze(board)
            print("Analysis:", analysis.text if analysis else "(stale)")
    finally:
        white.close()
