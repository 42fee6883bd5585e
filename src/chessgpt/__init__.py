"""
ChessGPT package.

Components:
- game_state: python-chess board wrapper (moves, PGN load/export)
- proposers/move_parser/prompting: ask a model for a move and match it against legal moves
- llm_client: injected OpenAI transport (chat and legacy completion call shapes)
- autoplay/session: model-vs-model loop and per-tab shared state
- server: Flask JSON API + single-page UI
"""
# Package exports are intentionally minimal; import modules directly as needed.
