from .base import WithCtime
from .id import GroupID, UserID


class GroupMembership(WithCtime):
    group_id: GroupID
    user_id: UserID
