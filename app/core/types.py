from enum import Enum


class ActorRole(str, Enum):
    # who may trigger a transition
    staff = "staff"
    writer = "writer"
    system = "system"


class NotifyTarget(str, Enum):
    client = "notify_client"
    writer = "notify_writer"
    admin = "notify_admin"
