from ducky.conversation.models import ConversationRecord, Message, Role
from ducky.conversation.store import ConversationStore
from ducky.conversation.transient import TransientSession
from ducky.conversation.window import ContextWindowManager

__all__ = [
    "ContextWindowManager",
    "ConversationRecord",
    "ConversationStore",
    "Message",
    "Role",
    "TransientSession",
]
