from .auth import User, new_id
from .projects import Project, ProjectMember, Task, Expense, Comment
from .communications import Activity, Notification

__all__ = [
    'User', 'new_id',
    'Project', 'ProjectMember', 'Task', 'Expense', 'Comment',
    'Activity', 'Notification',
]
