"""Users app package.

Defines the club's custom user model with a member/administrator role.
Use ``apps.users.models.CustomUser`` as the AUTH_USER_MODEL throughout
the project.
"""
