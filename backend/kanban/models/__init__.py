"""Model exports for SQLModel table classes."""

from kanban.models.activity_log import ActivityLogEntry
from kanban.models.attachments import Attachment
from kanban.models.board_columns import BoardColumn
from kanban.models.boards import Board
from kanban.models.comments import Comment
from kanban.models.invitations import Invitation
from kanban.models.organization_members import OrganizationMember
from kanban.models.organizations import Organization
from kanban.models.projects import Project
from kanban.models.task_relationships import TaskRelationship
from kanban.models.tasks import Task
from kanban.models.team_grants import BoardTeamGrant, ProjectTeamGrant
from kanban.models.teams import Team, TeamMember
from kanban.models.users import User

__all__ = [
    "ActivityLogEntry",
    "Attachment",
    "Board",
    "BoardColumn",
    "BoardTeamGrant",
    "Comment",
    "Invitation",
    "Organization",
    "OrganizationMember",
    "Project",
    "ProjectTeamGrant",
    "Task",
    "TaskRelationship",
    "Team",
    "TeamMember",
    "User",
]
