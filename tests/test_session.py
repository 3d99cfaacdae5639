import unittest

from stardash.application.session import CONTRIBUTORS, TRENDS, SessionState


class TestSessionState(unittest.TestCase):
    def test_claim_suppresses_pending_and_completed(self) -> None:
        state = SessionState()

        self.assertTrue(state.claim(TRENDS, 1))
        self.assertFalse(state.claim(TRENDS, 1))
        self.assertTrue(state.is_pending(TRENDS, 1))

        state.finish(TRENDS, 1)

        self.assertFalse(state.is_pending(TRENDS, 1))
        self.assertTrue(state.is_completed(TRENDS, 1))
        self.assertFalse(state.claim(TRENDS, 1))

    def test_kinds_are_tracked_separately(self) -> None:
        state = SessionState()
        state.claim(TRENDS, 1)
        self.assertTrue(state.claim(CONTRIBUTORS, 1))

    def test_reset_discards_everything(self) -> None:
        state = SessionState(username="octocat")
        state.claim(TRENDS, 1)
        state.finish(TRENDS, 1)
        state.notices.append("notice")

        state.reset("hubot")

        self.assertEqual(state.username, "hubot")
        self.assertEqual(state.notices, [])
        self.assertTrue(state.claim(TRENDS, 1))
