from .user import User, UserTier
from .story import Story, StoryFavorite
from .story_usage import StoryUsage
from .follow import Follow
from .gamification import LoginStreak, UserAchievement, UserStats
from .public_feed import DailyShareLimit, PublicStory, PublicStoryComment, PublicStoryLike, ThemeUnlock
from .notification import PushNotification, PushSubscription

__all__ = [
    "User",
    "UserTier",
    "Story",
    "StoryFavorite",
    "StoryUsage",
    "Follow",
    "UserStats",
    "UserAchievement",
    "LoginStreak",
    "PublicStory",
    "PublicStoryLike",
    "PublicStoryComment",
    "DailyShareLimit",
    "ThemeUnlock",
    "PushNotification",
    "PushSubscription",
]
