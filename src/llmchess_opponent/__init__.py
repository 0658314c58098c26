"""
LLM Chess Opponent package.

Components:
- evaluation/search: static evaluator and minimax with alpha-beta pruning (python-chess board)
- difficulty: fixed per-level depth, randomness and temperature settings
- move_selector: select_move() entry point, remote first with silent local fallback
- remote_adapter/prompting/move_validator: prompt build, reply parsing, legality re-check, bounded retries
- transport/relay/llm_client: relay contract, Flask relay service, OpenAI-compatible gateway call
- opponent/commentary: per-game facade with stale-decision discarding and offline analysis/chat
"""
# Package exports are intentionally minimal; import modules directly as needed.
