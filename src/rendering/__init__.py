"""
Client-side rendering of conversation messages.

Decides per message whether to reveal it instantly or type it out, strips
the quick-questions block before display, and routes suggested-question
clicks to the message composer of the same view.
"""

from rendering.animation import AnimationState, AnimationTracker, RenderMode
from rendering.content import PreparedContent, prepare_content
from rendering.events import QuickQuestionChannel, QuickQuestionSelected
from rendering.markdown import to_plain_text
from rendering.typewriter import TypewriterAnimation
from rendering.view import ConversationView, MessageComposer, RenderedMessage

__all__ = [
    "AnimationState",
    "AnimationTracker",
    "ConversationView",
    "MessageComposer",
    "PreparedContent",
    "QuickQuestionChannel",
    "QuickQuestionSelected",
    "RenderMode",
    "RenderedMessage",
    "TypewriterAnimation",
    "prepare_content",
    "to_plain_text",
]
