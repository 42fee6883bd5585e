import unittest

import chess

from chessgpt.errors import InvalidPGNError
from chessgpt.game_state import GameState, MoveRequest

FOOLS_MATE = "1. f3 e5 2. g4 Qh4#"


class ApplyMoveTests(unittest.TestCase):
    def setUp(self):
        self.game = GameState()

    def test_san_token(self):
        self.assertEqual(self.game.apply_move("e4"), "e4")
        self.assertEqual(self.game.turn(), "black")

    def test_uci_token_fallback(self):
        self.assertEqual(self.game.apply_move("g1f3"), "Nf3")

    def test_square_triple(self):
        self.assertEqual(self.game.apply_move(MoveRequest("e2", "e4")), "e4")
        self.assertEqual(self.game.fen(), "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq - 0 1")

    def test_illegal_move_does_not_mutate(self):
        before = self.game.fen()
        self.assertIsNone(self.game.apply_move(MoveRequest("e2", "e5")))
        self.assertIsNone(self.game.apply_move("Ke2"))
        self.assertIsNone(self.game.apply_move("banana"))
        self.assertIsNone(self.game.apply_move(MoveRequest("z9", "e4")))
        self.assertEqual(self.game.fen(), before)
        self.assertEqual(self.game.movetext(), "")

    def test_promotion_defaults_to_queen(self):
        self.game.board = chess.Board("8/P7/8/8/8/7k/8/K7 w - - 0 1")
        self.assertEqual(self.game.apply_move(MoveRequest("a7", "a8")), "a8=Q")

    def test_promotion_piece_can_be_chosen(self):
        self.game.board = chess.Board("8/P7/8/8/8/7k/8/K7 w - - 0 1")
        self.assertEqual(self.game.apply_move(MoveRequest("a7", "a8", "n")), "a8=N")

    def test_promotion_ignored_for_ordinary_moves(self):
        self.assertEqual(self.game.apply_move(MoveRequest("b1", "c3", "q")), "Nc3")


class QueryTests(unittest.TestCase):
    def test_fresh_game(self):
        game = GameState()
        self.assertEqual(game.turn(), "white")
        self.assertEqual(len(game.legal_moves()), 20)
        self.assertIn("Nf3", game.legal_moves())
        self.assertFalse(game.is_terminal())
        self.assertEqual(game.movetext(), "")
        self.assertEqual(game.pgn(), "")
        self.assertEqual(game.result(), "*")

    def test_movetext_is_numbered_san(self):
        game = GameState()
        for san in ("e4", "e5", "Nf3"):
            game.apply_move(san)
        self.assertEqual(game.movetext(), "1. e4 e5 2. Nf3")
        self.assertIn("1. e4 e5 2. Nf3", game.pgn())

    def test_checkmate_is_terminal(self):
        game = GameState()
        game.load_pgn(FOOLS_MATE)
        self.assertTrue(game.is_checkmate())
        self.assertTrue(game.is_terminal())
        self.assertEqual(game.legal_moves(), [])
        self.assertEqual(game.result(), "0-1")

    def test_stalemate_is_terminal_draw(self):
        game = GameState()
        game.board = chess.Board("7k/5Q2/6K1/8/8/8/8/8 b - - 0 1")
        self.assertTrue(game.is_stalemate())
        self.assertTrue(game.is_draw())
        self.assertTrue(game.is_terminal())

    def test_reset(self):
        game = GameState()
        game.load_pgn('[Event "Test"]\n\n1. d4 d5')
        game.reset()
        self.assertEqual(game.fen(), chess.STARTING_FEN)
        self.assertEqual(game.pgn(), "")


class LoadPgnTests(unittest.TestCase):
    def setUp(self):
        self.game = GameState()
        self.game.apply_move("d4")

    def test_valid_pgn_replaces_game(self):
        self.game.load_pgn("1. e4 e5 2. Nf3")
        self.assertEqual(self.game.movetext(), "1. e4 e5 2. Nf3")
        self.assertEqual(self.game.turn(), "black")

    def test_headers_are_kept_for_export(self):
        self.game.load_pgn('[Event "Casual"]\n[White "A"]\n[Black "B"]\n\n1. e4 *')
        pgn = self.game.pgn()
        self.assertIn('[Event "Casual"]', pgn)
        self.assertIn('[White "A"]', pgn)
        self.assertIn("1. e4", pgn)

    def test_setup_position(self):
        fen = "8/P7/8/8/8/7k/8/K7 w - - 0 1"
        self.game.load_pgn(f'[SetUp "1"]\n[FEN "{fen}"]\n\n1. a8=Q')
        self.assertEqual(self.game.turn(), "black")
        self.assertEqual(self.game.movetext(), "1. a8=Q")

    def _assert_rejected(self, text):
        before_fen, before_pgn = self.game.fen(), self.game.pgn()
        with self.assertRaises(InvalidPGNError):
            self.game.load_pgn(text)
        self.assertEqual(self.game.fen(), before_fen)
        self.assertEqual(self.game.pgn(), before_pgn)

    def test_illegal_move_rejected(self):
        self._assert_rejected("1. e4 e5 2. Ke3")

    def test_prose_rejected(self):
        self._assert_rejected("not a game")

    def test_words_that_are_not_moves_rejected(self):
        self._assert_rejected("1. e4 e5 2. Nf3 banana")
        self._assert_rejected("hello world 1-0")
        self._assert_rejected("1. e4 e5 zzz9")
        self._assert_rejected("e4 e5 Nf3 lorem ipsum")

    def test_unclosed_comment_rejected(self):
        self._assert_rejected("1. e4 {unclosed")

    def test_comments_nags_and_variations_accepted(self):
        self.game.load_pgn("1. e4 {best by test} e5 (1... c5 2. Nf3) 2. Nf3 $1 *")
        self.assertEqual(self.game.movetext(), "1. e4 e5 2. Nf3")

    def test_empty_rejected(self):
        self._assert_rejected("")
        self._assert_rejected("   \n")

    def test_error_message(self):
        with self.assertRaises(InvalidPGNError) as ctx:
            self.game.load_pgn("1. Nf6")
        self.assertEqual(str(ctx.exception), "Invalid PGN provided")


if __name__ == "__main__":
    unittest.main()
