from chat_api.db.base_class import Base

# Import ALL models so SQLAlchemy registers them
from chat_api.models.user import User  # noqa: F401
from chat_api.models.friendship import Friendship  # noqa: F401
from chat_api.models.friend_request import FriendRequest  # noqa: F401
from chat_api.models.pinned_chat import PinnedChat  # noqa: F401
from chat_api.models.last_interaction import LastInteraction  # noqa: F401
from chat_api.models.notification import Notification  # noqa: F401
from chat_api.models.message import Message  # noqa: F401
