from reviewflow.models.topic import Topic
from reviewflow.models.script import Script
from reviewflow.models.video import Video
from reviewflow.models.review import ScriptReview, VideoReview
from reviewflow.models.audit_log import AuditLog
from reviewflow.models.video_analytics import VideoAnalytics
from .user import User
from .session import Session
