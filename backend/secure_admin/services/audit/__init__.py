from .activity_recorder import ActivityAction, ActivityRecorder, RequestContext

__all__ = ["ActivityAction", "ActivityRecorder", "RequestContext"]
