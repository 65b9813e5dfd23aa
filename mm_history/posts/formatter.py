from datetime import datetime
from typing import Any, Mapping

from mm_history.models import Post, UserProfile

UNKNOWN_USER = "(username unknown)"
AUTHOR_WIDTH = 21


def format_timestamp(epoch_ms: int | float) -> str:
    """Render epoch milliseconds as local ``YYYY-MM-DD HH:MM:SS.mmm``.

    Raises OverflowError, OSError or ValueError for times the platform cannot represent.
    """
    millis = int(epoch_ms)
    dt = datetime.fromtimestamp(millis // 1000)
    return f"{dt:%Y-%m-%d %H:%M:%S}.{millis % 1000:03d}"


def _message_text(message: Any) -> str:
    if message is None:
        return ""
    return message if isinstance(message, str) else str(message)


def format_post(post: Post, users: Mapping[str, UserProfile]) -> str:
    """One transcript line: timestamp, author padded to 21 columns, two spaces, message.

    The message is written verbatim, embedded newlines included.
    """
    user = users.get(post.user_id)
    author = user.username if user is not None else UNKNOWN_USER
    return f"{format_timestamp(post.create_at)} {author:<{AUTHOR_WIDTH}}  {_message_text(post.message)}"
