from chyrp.services.comments import CommentService
from chyrp.services.interactions import InteractionService, toggle_interaction
from chyrp.services.posts import PostService
from chyrp.services.users import UserService

__all__ = [
    "CommentService",
    "InteractionService",
    "PostService",
    "UserService",
    "toggle_interaction",
]
