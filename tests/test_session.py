import dataclasses
import time
import unittest
from unittest import mock

from chessgpt.config import SETTINGS
from chessgpt.errors import InvalidPGNError, LLMServiceError, SessionNotFoundError, UnknownModelError
from chessgpt.game_state import MoveRequest
from chessgpt.session import NO_MOVE_MESSAGE, PlaySession, SessionStore

TEST_SETTINGS = dataclasses.replace(SETTINGS, autoplay_delay_s=30)


class ProposeOnceTests(unittest.TestCase):
    def setUp(self):
        self.client = mock.Mock()
        self.session = PlaySession(self.client, settings=TEST_SETTINGS)

    def test_scenario_e4(self):
        self.client.complete.return_value = "1. e4 is strong"
        self.assertEqual(self.session.propose_once(), "e4")
        self.assertEqual(self.session.game.turn(), "black")
        self.assertEqual(self.session.status, "Model suggests move: e4.")

    def test_no_move_single_shot(self):
        self.client.complete.return_value = "I cannot help with that."
        self.assertIsNone(self.session.propose_once())
        self.assertEqual(self.client.complete.call_count, 1)
        self.assertEqual(self.session.status, NO_MOVE_MESSAGE)
        self.assertEqual(self.session.status_kind, "no_move")
        self.assertEqual(self.session.game.movetext(), "")

    def test_service_failure_is_reported_distinctly(self):
        self.client.complete.side_effect = LLMServiceError("invalid api key")
        self.assertIsNone(self.session.propose_once())
        self.assertEqual(self.session.status_kind, "error")
        self.assertEqual(self.session.status, "Model request failed: invalid api key")

    def test_uses_model_of_side_to_move(self):
        self.session.set_models(black="gpt-4")
        self.session.drop_move(MoveRequest("e2", "e4"))
        self.client.chat.return_value = "c5"
        self.assertEqual(self.session.propose_once(), "c5")
        self.assertEqual(self.client.chat.call_args[0][0], "gpt-4")
        self.client.complete.assert_not_called()

    def test_edited_system_prompt_is_sent(self):
        self.session.set_models(white="gpt-4")
        self.session.set_prompts(system_prompt="Reply with one SAN move.")
        self.client.chat.return_value = "d4"
        self.session.propose_once()
        messages = self.client.chat.call_args[0][1]
        self.assertEqual(messages[0], {"role": "system", "content": "Reply with one SAN move."})

    def test_game_over(self):
        self.session.load_pgn("1. f3 e5 2. g4 Qh4#")
        self.assertIsNone(self.session.propose_once())
        self.client.complete.assert_not_called()
        self.assertEqual(self.session.status, "Game over (0-1).")


class SessionActionTests(unittest.TestCase):
    def setUp(self):
        self.session = PlaySession(mock.Mock(), settings=TEST_SETTINGS)

    def test_drop_move(self):
        self.assertEqual(self.session.drop_move(MoveRequest("g1", "f3")), "Nf3")
        self.assertEqual(self.session.drop_move(MoveRequest("e7", "e5", "q")), "e5")
        self.assertEqual(self.session.game.movetext(), "1. Nf3 e5")

    def test_illegal_drop(self):
        self.assertIsNone(self.session.drop_move(MoveRequest("e2", "e6")))
        self.assertEqual(self.session.game.movetext(), "")

    def test_load_pgn_failure_keeps_game(self):
        self.session.drop_move(MoveRequest("d2", "d4"))
        with self.assertRaises(InvalidPGNError):
            self.session.load_pgn("1. e4 Ke7 Ke9")
        self.assertEqual(self.session.game.movetext(), "1. d4")

    def test_reset_clears_status(self):
        self.session.set_status("Model suggests move: e4.")
        self.session.drop_move(MoveRequest("e2", "e4"))
        self.session.reset()
        self.assertEqual(self.session.status, "")
        self.assertEqual(self.session.game.movetext(), "")

    def test_set_models_validates_both_slots_first(self):
        with self.assertRaises(UnknownModelError):
            self.session.set_models(white="gpt-4", black="nope")
        self.assertEqual(self.session.white_model, "gpt-3.5-turbo-instruct")

    def test_snapshot(self):
        snap = self.session.snapshot()
        self.assertEqual(snap["turn"], "white")
        self.assertEqual(snap["pgn"], "")
        self.assertFalse(snap["system_prompt_enabled"])
        self.assertFalse(snap["autoplay"]["enabled"])
        self.assertEqual(snap["autoplay"]["state"], "idle")
        self.session.set_models(black="gpt-4")
        self.assertTrue(self.session.snapshot()["system_prompt_enabled"])


class SessionStoreTests(unittest.TestCase):
    def test_create_and_get(self):
        store = SessionStore(mock.Mock(), settings=TEST_SETTINGS)
        session = store.create()
        self.assertIs(store.get(session.id), session)
        with self.assertRaises(SessionNotFoundError):
            store.get("missing")

    def test_cleanup_drops_idle_sessions(self):
        store = SessionStore(mock.Mock(), settings=TEST_SETTINGS)
        old = store.create()
        fresh = store.create()
        old.updated_at = time.time() - 10_000
        self.assertEqual(store.cleanup(max_age_s=60), 1)
        self.assertEqual(len(store), 1)
        self.assertIs(store.get(fresh.id), fresh)


if __name__ == "__main__":
    unittest.main()
