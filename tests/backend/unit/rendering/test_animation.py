from typing import Any

from rendering.animation import AnimationTracker, RenderMode


def _msg(message_id: int, role: str = "assistant") -> dict[str, Any]:
    return {"id": message_id, "role": role, "content": f"message {message_id}"}


class TestObserve:
    def test_initial_load_is_history(self) -> None:
        tracker = AnimationTracker()

        assert tracker.observe(1, [_msg(1, "user"), _msg(2)]) is None
        assert tracker.state.observed_count == 2

    def test_empty_conversation_then_history(self) -> None:
        tracker = AnimationTracker()

        assert tracker.observe(1, []) is None
        assert tracker.observe(1, [_msg(1, "user")]) is None
        assert tracker.state.observed_count == 1

    def test_appended_assistant_animates(self) -> None:
        tracker = AnimationTracker()
        history = [_msg(1, "user"), _msg(2)]
        tracker.observe(1, history)

        assert tracker.observe(1, [*history, _msg(3)]) == 3
        assert tracker.state.observed_count == 3

    def test_appended_user_never_animates(self) -> None:
        tracker = AnimationTracker()
        history = [_msg(1, "user"), _msg(2)]
        tracker.observe(1, history)

        assert tracker.observe(1, [*history, _msg(3, "user")]) is None

    def test_last_of_several_appended_assistants_animates(self) -> None:
        tracker = AnimationTracker()
        tracker.observe(1, [_msg(1, "user")])

        messages = [_msg(1, "user"), _msg(2), _msg(3, "user"), _msg(4)]

        assert tracker.observe(1, messages) == 4

    def test_user_exchange_after_assistant_keeps_animating_id(self) -> None:
        tracker = AnimationTracker()
        messages = [_msg(1, "user")]
        tracker.observe(1, messages)
        messages = [*messages, _msg(2)]
        tracker.observe(1, messages)

        assert tracker.observe(1, [*messages, _msg(3, "user")]) == 2

    def test_conversation_switch_resets(self) -> None:
        tracker = AnimationTracker()
        tracker.observe(1, [_msg(1, "user")])
        tracker.observe(1, [_msg(1, "user"), _msg(2)])
        assert tracker.animating_message_id == 2

        assert tracker.observe(2, [_msg(10, "user"), _msg(11)]) is None
        assert tracker.state.conversation_id == 2
        assert tracker.state.observed_count == 2

    def test_shrink_records_count(self) -> None:
        tracker = AnimationTracker()
        tracker.observe(1, [_msg(1, "user"), _msg(2), _msg(3, "user")])

        assert tracker.observe(1, [_msg(1, "user")]) is None
        assert tracker.state.observed_count == 1

    def test_shrink_dropping_animating_message_clears_it(self) -> None:
        tracker = AnimationTracker()
        tracker.observe(1, [_msg(1, "user")])
        tracker.observe(1, [_msg(1, "user"), _msg(2)])

        assert tracker.observe(1, [_msg(1, "user")]) is None


class TestCompleteAndDecide:
    def _animating(self) -> AnimationTracker:
        tracker = AnimationTracker()
        tracker.observe(1, [_msg(1, "user"), _msg(2)])
        tracker.observe(1, [_msg(1, "user"), _msg(2), _msg(3, "user"), _msg(4)])
        return tracker

    def test_complete_clears_matching_id(self) -> None:
        tracker = self._animating()

        assert tracker.complete(4) is True
        assert tracker.animating_message_id is None

    def test_stale_complete_is_ignored(self) -> None:
        tracker = self._animating()

        assert tracker.complete(2) is False
        assert tracker.animating_message_id == 4

    def test_decide(self) -> None:
        tracker = self._animating()

        assert tracker.decide(_msg(4)) is RenderMode.ANIMATE_FROM_EMPTY
        assert tracker.decide(_msg(2)) is RenderMode.REVEAL_INSTANTLY
        assert tracker.decide(_msg(4, "user")) is RenderMode.REVEAL_INSTANTLY

    def test_decide_without_animation(self) -> None:
        tracker = AnimationTracker()

        assert tracker.decide(_msg(1)) is RenderMode.REVEAL_INSTANTLY

    def test_reset(self) -> None:
        tracker = self._animating()
        tracker.reset()

        assert tracker.animating_message_id is None
        assert tracker.state.conversation_id is None
