from huequitas.models.users import UserAuth, UserProfile
from huequitas.models.restaurants import Restaurant
from huequitas.models.reviews import Review
from huequitas.models.likes import Like
from huequitas.models.messages import Message

__all__ = ["UserAuth", "UserProfile", "Restaurant", "Review", "Like", "Message"]
